"""Round phase enumeration."""

from enum import Enum, auto


class Phase(Enum):
    """
    Round state machine phases.

    Flow: AWAITING_BET → DEALING → PLAYER_TURN → DEALER_TURN → SETTLED
    DEALING goes straight to SETTLED when either side is dealt a natural.
    """

    # No round has been played since the engine was created or reset
    AWAITING_BET = auto()

    # Initial four cards being dealt
    DEALING = auto()

    # Player acts on the active hand
    PLAYER_TURN = auto()

    # Dealer draws to 17
    DEALER_TURN = auto()

    # Round resolved, ready for the next bet
    SETTLED = auto()

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()

    @property
    def is_terminal(self) -> bool:
        """Check if a new round may start from this phase."""
        return self in (Phase.AWAITING_BET, Phase.SETTLED)

