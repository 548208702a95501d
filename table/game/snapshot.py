"""Read-only views of engine state handed to the presentation layer."""

from dataclasses import dataclass

from table.cards import Card
from table.game.state import Phase
from table.hand import Hand, Outcome, best_value


@dataclass(frozen=True)
class HandSnapshot:
    """Frozen copy of a player hand."""

    cards: tuple[Card, ...]
    bet: int
    doubled: bool
    finished: bool
    result: Outcome | None
    value: int
    soft: bool
    blackjack: bool
    busted: bool

    @classmethod
    def of(cls, hand: Hand) -> "HandSnapshot":
        return cls(
            cards=tuple(hand.cards),
            bet=hand.bet,
            doubled=hand.doubled,
            finished=hand.finished,
            result=hand.result,
            value=hand.value,
            soft=hand.is_soft,
            blackjack=hand.is_blackjack,
            busted=hand.is_busted,
        )


@dataclass(frozen=True)
class DealerSnapshot:
    """
    Frozen copy of the dealer hand.

    ``concealed`` runs parallel to ``cards``; ``value`` only counts the cards that
    are face up.
    """

    cards: tuple[Card, ...]
    concealed: tuple[bool, ...]

    @property
    def visible_cards(self) -> tuple[Card, ...]:
        return tuple(c for c, hidden in zip(self.cards, self.concealed) if not hidden)

    @property
    def value(self) -> int:
        return best_value(self.visible_cards)

    @property
    def has_concealed(self) -> bool:
        return any(self.concealed)


@dataclass(frozen=True)
class RoundSnapshot:
    """Everything the presentation layer may observe about the engine."""

    phase: Phase
    balance: int
    active_hand_index: int
    hands: tuple[HandSnapshot, ...]
    dealer: DealerSnapshot
    wagered: int
    paid_out: int
    cards_remaining: int

    @property
    def active_hand(self) -> HandSnapshot | None:
        if 0 <= self.active_hand_index < len(self.hands):
            return self.hands[self.active_hand_index]
        return None

    @property
    def results(self) -> list[Outcome | None]:
        return [hand.result for hand in self.hands]
