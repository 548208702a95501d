"""Hand evaluation and settlement for blackjack."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Sequence

from table.cards import Card


class Outcome(Enum):
    """Settled result of a player hand."""

    WIN = "WIN"
    LOSE = "LOSE"
    PUSH = "PUSH"
    BLACKJACK = "BLACKJACK"

    def __str__(self) -> str:
        return self.value


def _hard_total(cards: Sequence[Card]) -> tuple[int, int]:
    total = 0
    aces = 0
    for card in cards:
        if card.is_ace:
            aces += 1
        total += card.value
    return total, aces


def best_value(cards: Sequence[Card]) -> int:
    """
    Calculate the best hand value.

    Every Ace starts at 1, then each one is upgraded to 11 while the total stays
    at or below 21. Only the multiset of ranks matters, not the card order.
    """
    total, aces = _hard_total(cards)
    for _ in range(aces):
        if total + 10 <= 21:
            total += 10
    return total


def is_soft(cards: Sequence[Card]) -> bool:
    """Check if at least one Ace is being counted as 11."""
    total, aces = _hard_total(cards)
    return aces > 0 and total + 10 <= 21


def is_blackjack(cards: Sequence[Card]) -> bool:
    """Check for a two-card 21."""
    return len(cards) == 2 and best_value(cards) == 21


def is_busted(cards: Sequence[Card]) -> bool:
    """Check if the hand value is over 21."""
    return best_value(cards) > 21


def blackjack_payout(bet: int) -> int:
    """Return stake plus 3:2 profit, rounded down."""
    return bet * 5 // 2


@dataclass
class Hand:
    """A blackjack hand with its stake and play status."""

    cards: list[Card] = field(default_factory=list)
    bet: int = 0
    doubled: bool = False
    finished: bool = False
    result: Outcome | None = None

    def add_card(self, card: Card) -> None:
        """Add a card to the hand."""
        self.cards.append(card)

    @property
    def value(self) -> int:
        return best_value(self.cards)

    @property
    def is_soft(self) -> bool:
        return is_soft(self.cards)

    @property
    def is_blackjack(self) -> bool:
        return is_blackjack(self.cards)

    @property
    def is_busted(self) -> bool:
        return is_busted(self.cards)

    @property
    def is_pair(self) -> bool:
        """Check if the hand is two cards of the same rank."""
        return len(self.cards) == 2 and self.cards[0].rank == self.cards[1].rank

    @property
    def can_double(self) -> bool:
        """Check if the hand shape allows a double down."""
        return len(self.cards) == 2 and not self.doubled and not self.finished

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __str__(self) -> str:
        cards_str = " ".join(str(card) for card in self.cards)
        value_str = f"({self.value})"
        if self.is_soft:
            value_str = f"(soft {self.value})"
        if self.is_blackjack:
            value_str = "(BLACKJACK)"
        if self.is_busted:
            value_str = "(BUST)"
        return f"{cards_str} {value_str}"


def settle_hand(hand: Hand, dealer_cards: Sequence[Card]) -> tuple[Outcome, int]:
    """
    Settle a finished player hand against the dealer.

    Returns:
        The outcome and the amount credited back to the balance (stake included).
        The stake itself was already deducted when it was placed.
    """
    if hand.is_busted:
        return Outcome.LOSE, 0

    if hand.is_blackjack and not is_blackjack(dealer_cards):
        return Outcome.BLACKJACK, blackjack_payout(hand.bet)

    dealer_value = best_value(dealer_cards)
    if dealer_value > 21:
        return Outcome.WIN, hand.bet * 2

    player_value = hand.value
    if player_value > dealer_value:
        return Outcome.WIN, hand.bet * 2
    if player_value == dealer_value:
        return Outcome.PUSH, hand.bet
    return Outcome.LOSE, 0
