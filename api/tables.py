"""Per-session engines, their persistence and response conversion."""

import logging
import time
from dataclasses import dataclass
from typing import Any

from fastapi import HTTPException

from api.schemas import CardResponse, DealerResponse, GameStateResponse, HandResponse
from api.session import extract_session_id, get_session_store
from config import config
from table.cards import Card, Rank, Shoe, Suit
from table.game import Round, RoundEngine
from table.game.snapshot import HandSnapshot
from table.hand import Hand, Outcome
from table.stats import StatsRecorder

logger = logging.getLogger(__name__)

# Session data keys
SESSION_KEY_GAME = "game"
SESSION_KEY_STATS = "stats"
SESSION_KEY_CREATED_AT = "created_at"
SESSION_KEY_LAST_ACTIVITY = "last_activity"


@dataclass
class TableSession:
    """An engine plus the statistics recorded from it."""

    engine: RoundEngine
    recorder: StatsRecorder


# Live engines (backed by the session store)
_tables: dict[str, TableSession] = {}


def _serialize_card(card: Card) -> dict[str, int]:
    """Serialize a card to a dict."""
    return {"rank": card.rank.value, "suit": card.suit.value, "deck": card.deck}


def _deserialize_card(data: dict[str, int]) -> Card:
    """Deserialize a card from a dict."""
    return Card(Rank(data["rank"]), Suit(data["suit"]), data.get("deck", 0))


def _serialize_hand(hand: Hand) -> dict[str, Any]:
    """Serialize a hand to a dict."""
    return {
        "cards": [_serialize_card(c) for c in hand.cards],
        "bet": hand.bet,
        "doubled": hand.doubled,
        "finished": hand.finished,
        "result": hand.result.value if hand.result else None,
    }


def _deserialize_hand(data: dict[str, Any]) -> Hand:
    """Deserialize a hand from a dict."""
    return Hand(
        cards=[_deserialize_card(c) for c in data["cards"]],
        bet=data["bet"],
        doubled=data["doubled"],
        finished=data["finished"],
        result=Outcome(data["result"]) if data["result"] else None,
    )


def _serialize_engine(engine: RoundEngine) -> dict[str, Any]:
    """Serialize engine state for session storage."""
    round_data = None
    if engine.round is not None:
        round_data = {
            "player_hands": [_serialize_hand(h) for h in engine.round.player_hands],
            "dealer_hand": _serialize_hand(engine.round.dealer_hand),
            "active_hand_index": engine.round.active_hand_index,
            "hole_concealed": engine.round.hole_concealed,
            "wagered": engine.round.wagered,
            "paid_out": engine.round.paid_out,
        }

    return {
        "phase": engine._machine_state,
        "balance": engine.balance,
        "initial_balance": engine.initial_balance,
        "auto_dealer": engine.auto_dealer,
        "shoe": {
            "cards": [_serialize_card(c) for c in engine.shoe.cards],
            "num_decks": engine.shoe.num_decks,
            "reshuffle_threshold": engine.shoe.reshuffle_threshold,
        },
        "round": round_data,
    }


def _deserialize_engine(data: dict[str, Any]) -> RoundEngine:
    """Restore an engine from session data."""
    shoe_data = data["shoe"]
    shoe = Shoe.from_cards(
        [_deserialize_card(c) for c in shoe_data["cards"]],
        num_decks=shoe_data["num_decks"],
        reshuffle_threshold=shoe_data["reshuffle_threshold"],
    )
    engine = RoundEngine(
        shoe=shoe,
        initial_balance=data["initial_balance"],
        auto_dealer=data["auto_dealer"],
    )
    engine.balance = data["balance"]

    round_data = data["round"]
    if round_data is not None:
        engine.round = Round(
            player_hands=[_deserialize_hand(h) for h in round_data["player_hands"]],
            dealer_hand=_deserialize_hand(round_data["dealer_hand"]),
            active_hand_index=round_data["active_hand_index"],
            hole_concealed=round_data["hole_concealed"],
            wagered=round_data["wagered"],
            paid_out=round_data["paid_out"],
        )

    # Restore state machine state
    engine._machine_state = data["phase"]
    return engine


def new_table(
    starting_balance: int | None = None,
    auto_dealer: bool | None = None,
) -> TableSession:
    """Create a fresh engine using the configured table defaults."""
    table_config = config.table
    engine = RoundEngine(
        num_decks=table_config.num_decks,
        reshuffle_threshold=table_config.reshuffle_threshold,
        initial_balance=(
            table_config.starting_balance if starting_balance is None else starting_balance
        ),
        auto_dealer=table_config.auto_dealer if auto_dealer is None else auto_dealer,
    )
    recorder = StatsRecorder()
    recorder.attach(engine)
    return TableSession(engine=engine, recorder=recorder)


def require_session(token: str) -> str:
    """Reject tokens that were not issued by this server."""
    if extract_session_id(token) is None:
        raise HTTPException(status_code=401, detail="Invalid or expired session")
    return token


async def load_table(session_id: str) -> TableSession:
    """Get the table for a session, restoring or creating it as needed."""
    store = await get_session_store()
    session_data = await store.get(session_id)
    if session_data is None:
        # The store no longer knows this session, so a cached engine is stale
        if _tables.pop(session_id, None) is not None:
            logger.info("Dropped cached table of a deleted session")
        session_data = {}
    elif session_id in _tables:
        return _tables[session_id]

    if SESSION_KEY_GAME in session_data:
        engine = _deserialize_engine(session_data[SESSION_KEY_GAME])
        recorder = StatsRecorder.from_dict(session_data.get(SESSION_KEY_STATS, {}))
        recorder.attach(engine)
        table = TableSession(engine=engine, recorder=recorder)
        logger.debug("Restored table from session store")
    else:
        table = new_table()

    _tables[session_id] = table
    await save_table(session_id, table)
    return table


async def evict_stale_tables() -> int:
    """Drop cached tables whose sessions were deleted or expired from the store."""
    store = await get_session_store()
    stale = [sid for sid in list(_tables) if not await store.exists(sid)]
    for sid in stale:
        _tables.pop(sid, None)
    if stale:
        logger.info("Evicted %d stale tables", len(stale))
    return len(stale)


async def replace_table(session_id: str, table: TableSession) -> None:
    """Install a new table for a session and persist it."""
    _tables[session_id] = table
    await save_table(session_id, table)


async def save_table(session_id: str, table: TableSession) -> None:
    """Save a table to the session store."""
    store = await get_session_store()
    session_data = await store.get(session_id) or {}
    session_data[SESSION_KEY_GAME] = _serialize_engine(table.engine)
    session_data[SESSION_KEY_STATS] = table.recorder.to_dict()
    session_data[SESSION_KEY_LAST_ACTIVITY] = int(time.time())
    session_data.setdefault(SESSION_KEY_CREATED_AT, int(time.time()))
    await store.set(session_id, session_data)


def _card_response(card: Card, concealed: bool = False) -> CardResponse:
    if concealed:
        return CardResponse(rank=None, suit=None, value=None, concealed=True)
    return CardResponse(rank=str(card.rank), suit=str(card.suit), value=card.value)


def _hand_response(hand: HandSnapshot) -> HandResponse:
    return HandResponse(
        cards=[_card_response(c) for c in hand.cards],
        value=hand.value,
        is_soft=hand.soft,
        is_blackjack=hand.blackjack,
        is_busted=hand.busted,
        bet=hand.bet,
        doubled=hand.doubled,
        finished=hand.finished,
        result=hand.result.value if hand.result else None,
    )


def game_state_response(engine: RoundEngine) -> GameStateResponse:
    """Convert engine state to a response, masking the hole card while it is face down."""
    snapshot = engine.snapshot()
    dealer = snapshot.dealer
    return GameStateResponse(
        phase=snapshot.phase.name,
        player_hands=[_hand_response(h) for h in snapshot.hands],
        active_hand_index=snapshot.active_hand_index,
        dealer_hand=DealerResponse(
            cards=[_card_response(c, hidden) for c, hidden in zip(dealer.cards, dealer.concealed)],
            value=dealer.value,
            has_concealed=dealer.has_concealed,
        ),
        balance=snapshot.balance,
        wagered=snapshot.wagered,
        paid_out=snapshot.paid_out,
        legal_actions=engine.legal_actions(),
        can_hit=engine.can_hit,
        can_stand=engine.can_stand,
        can_double=engine.can_double,
        can_split=engine.can_split,
        shoe_cards_remaining=snapshot.cards_remaining,
    )
