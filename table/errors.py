"""Errors raised by the round engine."""


class RoundError(Exception):
    """
    A command was rejected.

    Rejections are recoverable: the engine is left exactly as it was before the
    command was issued.
    """

    code = "round_error"

    def __init__(self, message: str, action: str | None = None) -> None:
        super().__init__(message)
        self.action = action


class InvalidBet(RoundError):
    """Bet is not a positive integer or exceeds the available balance."""

    code = "invalid_bet"


class IllegalAction(RoundError):
    """Action is not allowed in the current phase or on the active hand."""

    code = "illegal_action"


class InsufficientBalance(RoundError):
    """Balance cannot cover the extra stake of a double or split."""

    code = "insufficient_balance"


class EmptyShoe(RuntimeError):
    """A card was drawn from a shoe that was never replenished."""

    code = "empty_shoe"
