"""Tests for Card, compose_shoe and Shoe."""

from collections import Counter
from random import Random
from unittest.mock import patch

import pytest

from table.cards import Card, Rank, Shoe, Suit, compose_shoe
from table.errors import EmptyShoe


class TestCard:
    """Tests for the Card class."""

    def test_card_creation(self):
        """Test creating a card."""
        card = Card(Rank.ACE, Suit.SPADES)
        assert card.rank == Rank.ACE
        assert card.suit == Suit.SPADES
        assert card.deck == 0

    def test_card_immutability(self):
        """Test that cards are immutable."""
        card = Card(Rank.ACE, Suit.SPADES)
        with pytest.raises(AttributeError):
            card.rank = Rank.KING

    def test_card_value(self):
        """Test fixed card values."""
        assert Card(Rank.TWO, Suit.HEARTS).value == 2
        assert Card(Rank.TEN, Suit.HEARTS).value == 10
        assert Card(Rank.JACK, Suit.HEARTS).value == 10
        assert Card(Rank.QUEEN, Suit.HEARTS).value == 10
        assert Card(Rank.KING, Suit.HEARTS).value == 10
        assert Card(Rank.ACE, Suit.HEARTS).value == 1

    def test_rank_values(self):
        """Test that only the Ace is dual-valued."""
        assert Rank.ACE.values == (1, 11)
        assert Rank.SEVEN.values == (7,)
        assert Rank.QUEEN.values == (10,)

    def test_card_is_ace(self):
        """Test ace detection."""
        assert Card(Rank.ACE, Suit.SPADES).is_ace
        assert not Card(Rank.KING, Suit.SPADES).is_ace

    def test_card_from_string(self):
        """Test creating cards from strings."""
        assert Card.from_string("AS") == Card(Rank.ACE, Suit.SPADES)
        assert Card.from_string("2H") == Card(Rank.TWO, Suit.HEARTS)
        assert Card.from_string("10d") == Card(Rank.TEN, Suit.DIAMONDS)
        assert Card.from_string("TD") == Card(Rank.TEN, Suit.DIAMONDS)
        assert Card.from_string("KC") == Card(Rank.KING, Suit.CLUBS)

    def test_card_from_string_with_symbols(self):
        """Test creating cards from strings with suit symbols."""
        assert Card.from_string("A♠") == Card(Rank.ACE, Suit.SPADES)
        assert Card.from_string("K♥") == Card(Rank.KING, Suit.HEARTS)

    @pytest.mark.parametrize("bad", ["", "A", "1S", "AX", "11H"])
    def test_card_from_string_invalid(self, bad):
        """Test that malformed strings are rejected."""
        with pytest.raises(ValueError):
            Card.from_string(bad)

    def test_card_str(self):
        """Test string representation."""
        assert str(Card(Rank.ACE, Suit.SPADES)) == "A♠"
        assert str(Card(Rank.TEN, Suit.HEARTS)) == "10♥"

    def test_card_identity_includes_deck(self):
        """Test that the same rank and suit from different decks are distinct cards."""
        first = Card(Rank.ACE, Suit.SPADES, deck=0)
        second = Card(Rank.ACE, Suit.SPADES, deck=1)
        assert first != second
        assert first.id != second.id
        assert len({first, second}) == 2

    def test_red_suits(self):
        assert Suit.HEARTS.is_red
        assert Suit.DIAMONDS.is_red
        assert not Suit.SPADES.is_red


class TestComposeShoe:
    """Tests for shoe composition."""

    @pytest.mark.parametrize("num_decks", [1, 2, 6, 8])
    def test_every_card_present_once_per_deck(self, num_decks):
        """Test that a shuffled shoe holds exactly num_decks copies of the 52 cards."""
        cards = compose_shoe(num_decks, Random(1))

        assert len(cards) == num_decks * 52
        counts = Counter((c.rank, c.suit) for c in cards)
        assert len(counts) == 52
        assert set(counts.values()) == {num_decks}

    def test_card_identities_unique(self):
        """Test that every physical card has its own identity."""
        cards = compose_shoe(6, Random(1))
        assert len({c.id for c in cards}) == len(cards)

    def test_shuffle_is_a_permutation(self):
        """Test that two shuffles hold the same cards in a different order."""
        first = compose_shoe(2, Random(1))
        second = compose_shoe(2, Random(2))

        assert sorted(first, key=lambda c: c.id) == sorted(second, key=lambda c: c.id)
        assert first != second

    def test_seeded_shuffle_is_reproducible(self):
        assert compose_shoe(1, Random(5)) == compose_shoe(1, Random(5))

    def test_zero_decks_raises(self):
        with pytest.raises(ValueError):
            compose_shoe(0)


class TestShoe:
    """Tests for the Shoe class."""

    def test_shoe_creation(self):
        """Test creating a shoe with multiple decks."""
        shoe = Shoe(num_decks=6)
        assert len(shoe) == 312
        assert shoe.num_decks == 6
        assert shoe.total_cards == 312
        assert shoe.reshuffle_threshold == 15

    def test_shoe_invalid_decks_raises(self):
        """Test that invalid deck count raises error."""
        with pytest.raises(ValueError):
            Shoe(num_decks=0)

    def test_shoe_invalid_threshold_raises(self):
        """Test that the threshold must leave cards to deal."""
        with pytest.raises(ValueError):
            Shoe(num_decks=1, reshuffle_threshold=-1)
        with pytest.raises(ValueError):
            Shoe(num_decks=1, reshuffle_threshold=52)

    def test_shoe_draw(self, shoe):
        """Test drawing removes the top card."""
        top = shoe.cards[0]
        card = shoe.draw()
        assert card == top
        assert len(shoe) == 311
        assert card not in shoe.cards

    def test_needs_reshuffle_below_threshold(self):
        """Test the low-water mark."""
        shoe = Shoe(num_decks=1, reshuffle_threshold=15, rng=Random(3))

        for _ in range(52 - 15):
            assert not shoe.needs_reshuffle
            shoe.draw()

        assert len(shoe) == 15
        assert not shoe.needs_reshuffle
        shoe.draw()
        assert shoe.needs_reshuffle

    def test_reshuffle_restores_full_shoe(self):
        """Test that reshuffling recomposes every card."""
        shoe = Shoe(num_decks=2, rng=Random(3))
        for _ in range(100):
            shoe.draw()

        shoe.reshuffle()

        assert len(shoe) == 104
        counts = Counter((c.rank, c.suit) for c in shoe)
        assert set(counts.values()) == {2}

    def test_draw_from_empty_shoe_raises(self):
        """Test the defensive empty-shoe error."""
        shoe = Shoe.from_cards([Card(Rank.TWO, Suit.CLUBS)], num_decks=1)
        shoe.draw()

        with pytest.raises(EmptyShoe):
            shoe.draw()

    def test_from_cards_draw_order(self):
        """Test that a rebuilt shoe deals in the given order."""
        cards = [Card.from_string(s) for s in ("AS", "KH", "7D")]
        shoe = Shoe.from_cards(cards, num_decks=1)

        assert shoe.cards == cards
        assert [shoe.draw() for _ in range(3)] == cards

    def test_from_cards_keeps_given_cards(self):
        """Test that a rebuilt shoe never composes cards of its own."""
        cards = [Card.from_string(s) for s in ("AS", "KH")]
        with patch("table.cards.compose_shoe") as compose:
            shoe = Shoe.from_cards(cards, num_decks=1)

        compose.assert_not_called()
        assert shoe.cards == cards
        assert shoe.total_cards == 52

    def test_from_cards_invalid_threshold_raises(self):
        with pytest.raises(ValueError):
            Shoe.from_cards([], num_decks=1, reshuffle_threshold=52)

    def test_short_stack_needs_reshuffle(self):
        cards = [Card.from_string(s) for s in ("AS", "KH", "7D")]
        shoe = Shoe.from_cards(cards, num_decks=1, reshuffle_threshold=15)
        assert shoe.needs_reshuffle

    def test_zero_threshold_deals_to_last_card(self):
        """Test that a zero threshold only asks for a reshuffle once the shoe is empty."""
        shoe = Shoe(num_decks=1, reshuffle_threshold=0, rng=Random(3))

        for _ in range(52):
            assert not shoe.needs_reshuffle
            shoe.draw()

        assert len(shoe) == 0
        assert shoe.needs_reshuffle
