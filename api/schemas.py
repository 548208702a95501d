"""Pydantic schemas for API requests and responses."""

from typing import Literal

from pydantic import BaseModel, Field


# Game schemas
class NewGameRequest(BaseModel):
    """Request to start (or restart) a table."""

    starting_balance: int | None = Field(default=None, ge=0, description="Starting balance")
    auto_dealer: bool | None = Field(
        default=None,
        description="Play the dealer automatically; false means clients call dealer-step",
    )


class BetRequest(BaseModel):
    """Request to place a bet."""

    amount: int = Field(..., ge=1, description="Bet amount")


class ActionRequest(BaseModel):
    """Request for player action."""

    action: Literal["hit", "stand", "double", "split"]


class CardResponse(BaseModel):
    """Card representation. Concealed cards carry no rank or suit."""

    rank: str | None
    suit: str | None
    value: int | None
    concealed: bool = False


class HandResponse(BaseModel):
    """Player hand representation."""

    cards: list[CardResponse]
    value: int
    is_soft: bool
    is_blackjack: bool
    is_busted: bool
    bet: int
    doubled: bool
    finished: bool
    result: Literal["WIN", "LOSE", "PUSH", "BLACKJACK"] | None = None


class DealerResponse(BaseModel):
    """Dealer hand representation; ``value`` counts face-up cards only."""

    cards: list[CardResponse]
    value: int
    has_concealed: bool


class GameStateResponse(BaseModel):
    """Current game state."""

    phase: str
    player_hands: list[HandResponse]
    active_hand_index: int
    dealer_hand: DealerResponse
    balance: int
    wagered: int
    paid_out: int
    legal_actions: list[str]
    can_hit: bool
    can_stand: bool
    can_double: bool
    can_split: bool
    shoe_cards_remaining: int


class NewGameResponse(BaseModel):
    """Created session."""

    session_id: str
    balance: int


class ErrorResponse(BaseModel):
    """Rejected command."""

    error: str
    detail: str


# Statistics schemas
class StatsResponse(BaseModel):
    """Cumulative session statistics."""

    rounds_played: int
    hands_played: int
    wins: int
    losses: int
    pushes: int
    blackjacks: int
    busts: int
    doubles: int
    splits: int
    total_wagered: int
    net_result: int
    win_rate: float
    balance: int
