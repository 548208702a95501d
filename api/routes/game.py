"""Game API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Header

from api.schemas import (
    ActionRequest,
    BetRequest,
    ErrorResponse,
    GameStateResponse,
    NewGameRequest,
    NewGameResponse,
)
from api.session import create_session, extract_session_id
from api.tables import (
    evict_stale_tables,
    game_state_response,
    load_table,
    new_table,
    replace_table,
    require_session,
    save_table,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Rejected commands (see the RoundError handler in api.main)
REJECTED = {400: {"model": ErrorResponse, "description": "Command rejected by the table"}}


@router.post("/new")
async def new_game(
    request: NewGameRequest | None = None,
    session_id: Annotated[str | None, Header(alias="X-Session-ID")] = None,
) -> NewGameResponse:
    """Create a session, or restart the table of an existing one."""
    if session_id is None or extract_session_id(session_id) is None:
        session_id = await create_session()
        await evict_stale_tables()

    request = request or NewGameRequest()
    table = new_table(
        starting_balance=request.starting_balance,
        auto_dealer=request.auto_dealer,
    )
    await replace_table(session_id, table)
    logger.info("New table: balance=%d", table.engine.balance)

    return NewGameResponse(session_id=session_id, balance=table.engine.balance)


@router.get("/state")
async def get_state(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> GameStateResponse:
    """Get current game state."""
    table = await load_table(require_session(session_id))
    return game_state_response(table.engine)


@router.post("/bet", responses=REJECTED)
async def place_bet(
    request: BetRequest,
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> GameStateResponse:
    """Place a bet and deal a round."""
    table = await load_table(require_session(session_id))
    table.engine.start_round(request.amount)
    await save_table(session_id, table)
    return game_state_response(table.engine)


@router.post("/action", responses=REJECTED)
async def player_action(
    request: ActionRequest,
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> GameStateResponse:
    """Execute a player action."""
    table = await load_table(require_session(session_id))
    engine = table.engine

    actions = {
        "hit": engine.hit,
        "stand": engine.stand,
        "double": engine.double_down,
        "split": engine.split,
    }
    actions[request.action]()

    await save_table(session_id, table)
    return game_state_response(engine)


@router.post("/dealer-step", responses=REJECTED)
async def dealer_step(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> GameStateResponse:
    """Advance the dealer by one action (for tables without auto dealer)."""
    table = await load_table(require_session(session_id))
    table.engine.dealer_step()
    await save_table(session_id, table)
    return game_state_response(table.engine)
