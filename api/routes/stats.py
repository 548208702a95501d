"""Statistics API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Header

from api.schemas import StatsResponse
from api.tables import TableSession, load_table, require_session, save_table

router = APIRouter()


def _stats_response(table: TableSession) -> StatsResponse:
    stats = table.recorder.stats
    return StatsResponse(
        rounds_played=stats.rounds_played,
        hands_played=stats.hands_played,
        wins=stats.wins,
        losses=stats.losses,
        pushes=stats.pushes,
        blackjacks=stats.blackjacks,
        busts=stats.busts,
        doubles=stats.doubles,
        splits=stats.splits,
        total_wagered=stats.total_wagered,
        net_result=stats.net_result,
        win_rate=round(stats.win_rate, 4),
        balance=table.engine.balance,
    )


@router.get("")
async def get_stats(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> StatsResponse:
    """Get cumulative statistics for the session."""
    table = await load_table(require_session(session_id))
    return _stats_response(table)


@router.post("/reset")
async def reset_stats(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> StatsResponse:
    """Clear cumulative statistics (the balance is left alone)."""
    table = await load_table(require_session(session_id))
    table.recorder.reset()
    await save_table(session_id, table)
    return _stats_response(table)
