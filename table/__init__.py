"""Blackjack round engine - 100% UI-agnostic."""

from table.cards import Card, Rank, Shoe, Suit, compose_shoe
from table.errors import EmptyShoe, IllegalAction, InsufficientBalance, InvalidBet, RoundError
from table.hand import Hand, Outcome, best_value, is_blackjack, is_busted, is_soft, settle_hand

__all__ = [
    "Card",
    "Rank",
    "Shoe",
    "Suit",
    "compose_shoe",
    "EmptyShoe",
    "IllegalAction",
    "InsufficientBalance",
    "InvalidBet",
    "RoundError",
    "Hand",
    "Outcome",
    "best_value",
    "is_blackjack",
    "is_busted",
    "is_soft",
    "settle_hand",
]
