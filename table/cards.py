"""Card and Shoe classes - immutable cards and a replenishing multi-deck shoe."""

from dataclasses import dataclass
from enum import Enum, auto
from random import Random
from typing import Iterable, Iterator

from table.errors import EmptyShoe

DEFAULT_RESHUFFLE_THRESHOLD = 15


class Suit(Enum):
    """Card suits."""

    SPADES = auto()
    HEARTS = auto()
    DIAMONDS = auto()
    CLUBS = auto()

    def __str__(self) -> str:
        symbols = {
            Suit.SPADES: "♠",
            Suit.HEARTS: "♥",
            Suit.DIAMONDS: "♦",
            Suit.CLUBS: "♣",
        }
        return symbols[self]

    @property
    def is_red(self) -> bool:
        """Check if this suit is printed in red."""
        return self in (Suit.HEARTS, Suit.DIAMONDS)


class Rank(Enum):
    """Card ranks."""

    ACE = 1
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13

    def __str__(self) -> str:
        if 2 <= self.value <= 10:
            return str(self.value)
        return {
            Rank.ACE: "A",
            Rank.JACK: "J",
            Rank.QUEEN: "Q",
            Rank.KING: "K",
        }[self]

    @property
    def hard_value(self) -> int:
        """Return the fixed point value, counting an Ace as 1."""
        return min(self.value, 10)

    @property
    def values(self) -> tuple[int, ...]:
        """Return every point value the rank can take (Ace = 1 or 11)."""
        if self is Rank.ACE:
            return (1, 11)
        return (self.hard_value,)

    @property
    def is_ace(self) -> bool:
        """Check if this rank is an Ace."""
        return self is Rank.ACE


_RANK_CODES = {str(rank): rank for rank in Rank}
_RANK_CODES["T"] = Rank.TEN

_SUIT_CODES = {
    "S": Suit.SPADES,
    "♠": Suit.SPADES,
    "H": Suit.HEARTS,
    "♥": Suit.HEARTS,
    "D": Suit.DIAMONDS,
    "♦": Suit.DIAMONDS,
    "C": Suit.CLUBS,
    "♣": Suit.CLUBS,
}


@dataclass(frozen=True, slots=True)
class Card:
    """
    Immutable playing card.

    ``deck`` is the index of the physical deck the card was composed from, so two
    aces of spades in a six-deck shoe are distinct cards.
    """

    rank: Rank
    suit: Suit
    deck: int = 0

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"

    def __repr__(self) -> str:
        return f"Card({self.rank.name}, {self.suit.name}, deck={self.deck})"

    @property
    def id(self) -> str:
        """Return an identifier unique within a shoe."""
        return f"{self.rank}{self.suit}{self.deck}"

    @property
    def value(self) -> int:
        """Return the fixed point value (Ace = 1)."""
        return self.rank.hard_value

    @property
    def is_ace(self) -> bool:
        """Check if this card is an Ace."""
        return self.rank.is_ace

    @classmethod
    def from_string(cls, s: str, deck: int = 0) -> "Card":
        """Create a card from a string like 'AS', '10h', 'K♥'."""
        s = s.strip().upper()
        if len(s) < 2:
            raise ValueError(f"Invalid card string: {s}")

        rank_str = s[:-1]
        suit_str = s[-1]

        if rank_str not in _RANK_CODES:
            raise ValueError(f"Invalid rank: {rank_str}")
        if suit_str not in _SUIT_CODES:
            raise ValueError(f"Invalid suit: {suit_str}")

        return cls(_RANK_CODES[rank_str], _SUIT_CODES[suit_str], deck)


def compose_shoe(num_decks: int, rng: Random | None = None) -> list[Card]:
    """
    Build ``num_decks`` standard 52-card decks and shuffle them together.

    ``Random.shuffle`` performs a Fisher-Yates shuffle, so every ordering is
    equally likely.
    """
    if num_decks < 1:
        raise ValueError("Shoe must have at least 1 deck")

    cards = [
        Card(rank, suit, deck)
        for deck in range(num_decks)
        for suit in Suit
        for rank in Rank
    ]
    (rng or Random()).shuffle(cards)
    return cards


def _check_shoe_size(num_decks: int, reshuffle_threshold: int) -> None:
    if num_decks < 1:
        raise ValueError("Shoe must have at least 1 deck")
    if not 0 <= reshuffle_threshold < num_decks * 52:
        raise ValueError("Reshuffle threshold must be between 0 and the shoe size")


class Shoe:
    """A multi-deck shoe that is recomposed when it runs low."""

    def __init__(
        self,
        num_decks: int = 6,
        reshuffle_threshold: int = DEFAULT_RESHUFFLE_THRESHOLD,
        rng: Random | None = None,
    ) -> None:
        """
        Initialize and shuffle a shoe.

        Args:
            num_decks: Number of decks in the shoe
            reshuffle_threshold: Recompose the shoe once fewer cards than this remain
            rng: Random number generator for shuffling
        """
        _check_shoe_size(num_decks, reshuffle_threshold)
        self._num_decks = num_decks
        self._reshuffle_threshold = reshuffle_threshold
        self._rng = rng or Random()
        # Top of the shoe is the end of the list.
        self._cards: list[Card] = []
        self.reshuffle()

    @classmethod
    def from_cards(
        cls,
        cards: Iterable[Card],
        num_decks: int = 6,
        reshuffle_threshold: int = DEFAULT_RESHUFFLE_THRESHOLD,
        rng: Random | None = None,
    ) -> "Shoe":
        """
        Build a shoe whose cards are drawn in the given order.

        The cards are taken as they are. If fewer than ``reshuffle_threshold`` are
        given, the first draw through ``RoundEngine`` recomposes a full shoe instead.
        """
        _check_shoe_size(num_decks, reshuffle_threshold)
        shoe = cls.__new__(cls)
        shoe._num_decks = num_decks
        shoe._reshuffle_threshold = reshuffle_threshold
        shoe._rng = rng or Random()
        shoe._cards = list(reversed(list(cards)))
        return shoe

    def reshuffle(self) -> None:
        """Replace every card with a freshly composed and shuffled set."""
        self._cards = compose_shoe(self._num_decks, self._rng)

    def draw(self) -> Card:
        """Remove and return the top card."""
        if not self._cards:
            raise EmptyShoe("Cannot draw from an empty shoe")
        return self._cards.pop()

    @property
    def needs_reshuffle(self) -> bool:
        """
        Check if the shoe must be recomposed before the next draw.

        An empty shoe always needs it, so a threshold of 0 deals down to the last card.
        """
        return not self._cards or len(self._cards) < self._reshuffle_threshold

    @property
    def cards(self) -> list[Card]:
        """Return the remaining cards in draw order."""
        return list(reversed(self._cards))

    @property
    def cards_remaining(self) -> int:
        """Return the number of cards remaining."""
        return len(self._cards)

    @property
    def total_cards(self) -> int:
        """Return the number of cards in a full shoe."""
        return self._num_decks * 52

    @property
    def num_decks(self) -> int:
        return self._num_decks

    @property
    def reshuffle_threshold(self) -> int:
        return self._reshuffle_threshold

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)
