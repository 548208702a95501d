"""Round engine and state management."""

from table.game.events import EventType, GameEvent
from table.game.state import Phase
from table.game.snapshot import DealerSnapshot, HandSnapshot, RoundSnapshot
from table.game.engine import Round, RoundEngine

__all__ = [
    "EventType",
    "GameEvent",
    "Phase",
    "DealerSnapshot",
    "HandSnapshot",
    "RoundSnapshot",
    "Round",
    "RoundEngine",
]
