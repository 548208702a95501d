"""Cumulative statistics built from engine events."""

from dataclasses import asdict, dataclass, fields
from typing import Any

from table.game.engine import RoundEngine
from table.game.events import EventType, GameEvent


@dataclass
class TableStats:
    """Running totals across rounds."""

    rounds_played: int = 0
    hands_played: int = 0
    wins: int = 0
    losses: int = 0
    pushes: int = 0
    blackjacks: int = 0
    busts: int = 0
    doubles: int = 0
    splits: int = 0
    total_wagered: int = 0
    net_result: int = 0  # Running profit/loss

    @property
    def win_rate(self) -> float:
        """Fraction of decided hands that were won (blackjacks count as wins)."""
        decided = self.wins + self.blackjacks + self.losses
        if decided == 0:
            return 0.0
        return (self.wins + self.blackjacks) / decided


class StatsRecorder:
    """Keeps a ``TableStats`` up to date by listening to an engine.

    The engine never owns statistics; whoever hosts it decides whether and
    where to persist them.
    """

    def __init__(self, stats: TableStats | None = None) -> None:
        self.stats = stats or TableStats()

    def attach(self, engine: RoundEngine) -> None:
        """Start recording events from an engine."""
        engine.subscribe(self._on_double, EventType.PLAYER_DOUBLE)
        engine.subscribe(self._on_split, EventType.PLAYER_SPLIT)
        engine.subscribe(self._on_settled, EventType.ROUND_SETTLED)

    def reset(self) -> None:
        self.stats = TableStats()

    def _on_double(self, event: GameEvent) -> None:
        self.stats.doubles += 1

    def _on_split(self, event: GameEvent) -> None:
        self.stats.splits += 1

    def _on_settled(self, event: GameEvent) -> None:
        stats = self.stats
        stats.rounds_played += 1
        stats.total_wagered += event.data["wagered"]
        stats.net_result += event.data["paid_out"] - event.data["wagered"]

        for result in event.data["results"]:
            stats.hands_played += 1
            outcome = result["result"]
            if outcome == "WIN":
                stats.wins += 1
            elif outcome == "BLACKJACK":
                stats.blackjacks += 1
            elif outcome == "PUSH":
                stats.pushes += 1
            else:
                stats.losses += 1
                if result["hand_value"] > 21:
                    stats.busts += 1

    def to_dict(self) -> dict[str, Any]:
        """Serialize the stats for storage."""
        return asdict(self.stats)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StatsRecorder":
        """Rebuild a recorder from stored stats, ignoring unknown keys."""
        known = {f.name for f in fields(TableStats)}
        return cls(TableStats(**{k: v for k, v in data.items() if k in known}))
