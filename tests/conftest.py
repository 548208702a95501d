"""Pytest fixtures for blackjack table tests."""

from random import Random

import pytest
from hypothesis import strategies as st

from table.cards import Card, Rank, Shoe, Suit, compose_shoe
from table.game import RoundEngine
from table.hand import Hand


def stacked_shoe(codes, num_decks=2, seed=7):
    """
    Build a real shoe whose first draws are the given cards, in order.

    Matching cards are moved from a freshly composed shoe, so the shoe still holds
    exactly ``num_decks`` copies of every card.
    """
    rest = compose_shoe(num_decks, Random(seed))
    top = []
    for code in codes:
        wanted = Card.from_string(code)
        match = next(c for c in rest if c.rank == wanted.rank and c.suit == wanted.suit)
        rest.remove(match)
        top.append(match)
    return Shoe.from_cards(top + rest, num_decks=num_decks)


def make_hand(*codes, bet=0):
    """Build a hand from card strings like 'AS', '10H'."""
    return Hand(cards=[Card.from_string(c) for c in codes], bet=bet)


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def shoe(rng):
    """A shuffled 6-deck shoe."""
    return Shoe(num_decks=6, rng=rng)


@pytest.fixture
def empty_hand():
    """An empty player hand."""
    return Hand()


@pytest.fixture
def blackjack_hand():
    """A natural blackjack hand."""
    return make_hand("AS", "KH", bet=50)


@pytest.fixture
def soft_17_hand():
    """A soft 17 hand (A-6)."""
    return make_hand("AS", "6H")


@pytest.fixture
def hard_16_hand():
    """A hard 16 hand (10-6)."""
    return make_hand("10S", "6H", bet=50)


@pytest.fixture
def pair_8s_hand():
    """A pair of 8s hand."""
    return make_hand("8S", "8H", bet=50)


@pytest.fixture
def bust_hand():
    """A busted hand."""
    return make_hand("10S", "6H", "KC", bet=50)


@pytest.fixture
def engine(rng):
    """A new engine with a seeded shoe."""
    return RoundEngine(initial_balance=1000, rng=rng)


@pytest.fixture
def rigged_engine():
    """
    Factory for engines with a known deal.

    Cards are drawn in the order given: player, dealer, player, dealer for the
    initial deal, then whatever the test needs next.
    """

    def _make(*codes, balance=1000, auto_dealer=True, num_decks=2):
        return RoundEngine(
            shoe=stacked_shoe(codes, num_decks=num_decks),
            initial_balance=balance,
            auto_dealer=auto_dealer,
        )

    return _make


# Hypothesis strategies for property-based testing
@st.composite
def card_strategy(draw):
    """Generate a random card."""
    rank = draw(st.sampled_from(list(Rank)))
    suit = draw(st.sampled_from(list(Suit)))
    return Card(rank, suit)


@st.composite
def cards_strategy(draw, min_cards=1, max_cards=8):
    """Generate a random list of cards."""
    return draw(st.lists(card_strategy(), min_size=min_cards, max_size=max_cards))
