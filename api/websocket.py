"""WebSocket endpoint streaming engine events to a presentation client."""

import json
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from api.session import extract_session_id
from api.tables import TableSession, game_state_response, load_table, new_table, replace_table, save_table
from table.errors import RoundError
from table.game.events import EventHandler, GameEvent

logger = logging.getLogger(__name__)

router = APIRouter()


class ConnectionManager:
    """Track open connections per session and relay engine events to all of them."""

    def __init__(self) -> None:
        self._connections: dict[str, list[WebSocket]] = {}
        self._pending: dict[str, list[GameEvent]] = {}
        self._listening: dict[str, tuple[TableSession, EventHandler]] = {}

    async def connect(self, websocket: WebSocket, session_id: str) -> None:
        """Accept and register a new connection."""
        await websocket.accept()
        self._connections.setdefault(session_id, []).append(websocket)

    def disconnect(self, websocket: WebSocket, session_id: str) -> None:
        """
        Remove one connection.

        The table stays subscribed while other connections of the session are
        open, and is kept in the table cache for reconnection after the last one.
        """
        sockets = self._connections.get(session_id, [])
        if websocket in sockets:
            sockets.remove(websocket)
        if not sockets:
            self._connections.pop(session_id, None)
            self.stop_listening(session_id)
            self._pending.pop(session_id, None)

    def connection_count(self, session_id: str) -> int:
        return len(self._connections.get(session_id, []))

    def listen(self, session_id: str, table: TableSession) -> None:
        """Buffer the table's events until the current command finishes."""
        current = self._listening.get(session_id)
        if current is not None and current[0] is table:
            return
        self.stop_listening(session_id)
        handler = self._pending.setdefault(session_id, []).append
        table.engine.subscribe(handler)
        self._listening[session_id] = (table, handler)

    def stop_listening(self, session_id: str) -> None:
        current = self._listening.pop(session_id, None)
        if current is not None:
            table, handler = current
            table.engine.events.unsubscribe(handler)

    def discard_pending(self, session_id: str) -> None:
        self._pending.get(session_id, []).clear()

    def take_pending(self, session_id: str) -> list[GameEvent]:
        """Remove and return the events buffered since the last take."""
        events = self._pending.get(session_id, [])
        taken = list(events)
        events.clear()
        return taken

    async def broadcast(self, session_id: str, message: dict[str, Any]) -> None:
        """Send a message to every connection of a session."""
        for websocket in list(self._connections.get(session_id, [])):
            try:
                await websocket.send_json(message)
            except (WebSocketDisconnect, RuntimeError):
                # Closed while sending; its own handler unregisters it
                logger.debug("Skipped a closing connection")

    async def broadcast_events(
        self,
        session_id: str,
        events: list[GameEvent],
        state: dict[str, Any],
    ) -> None:
        """Send each event of a command, together with the state after the command."""
        for event in events:
            await self.broadcast(session_id, _event_to_message(event, state))


# Global connection manager
manager = ConnectionManager()


def _event_to_message(event: GameEvent, state: dict[str, Any]) -> dict[str, Any]:
    """Convert an engine event to a WebSocket message."""
    return {
        "type": "event",
        "event_type": event.event_type.name,
        "data": event.data,
        "state": state,
    }


def _run_command(table: TableSession, message: dict[str, Any]) -> TableSession | None:
    """
    Apply one client command to the table.

    Returns a replacement table for ``reset``, otherwise None.
    """
    if not isinstance(message, dict):
        raise ValueError("Messages must be JSON objects")
    msg_type = message.get("type")
    engine = table.engine

    if msg_type == "bet":
        engine.start_round(message.get("amount"))
    elif msg_type == "action":
        actions = {
            "hit": engine.hit,
            "stand": engine.stand,
            "double": engine.double_down,
            "split": engine.split,
        }
        action = message.get("action")
        if action not in actions:
            raise ValueError(f"Unknown action: {action}")
        actions[action]()
    elif msg_type == "dealer_step":
        engine.dealer_step()
    elif msg_type == "reset":
        return new_table(
            starting_balance=message.get("starting_balance"),
            auto_dealer=message.get("auto_dealer"),
        )
    elif msg_type != "get_state":
        raise ValueError(f"Unknown message type: {msg_type}")
    return None


@router.websocket("/game/{session_id}")
async def game_websocket(websocket: WebSocket, session_id: str) -> None:
    """
    WebSocket endpoint for real-time game updates.

    Every connection of a session sees the events and state updates caused by
    any of them; errors go only to the connection that sent the command.

    Messages from client:
    - {"type": "bet", "amount": 100}
    - {"type": "action", "action": "hit"|"stand"|"double"|"split"}
    - {"type": "dealer_step"}
    - {"type": "reset", "starting_balance": 1000}
    - {"type": "get_state"}

    Messages to client:
    - {"type": "state_update", "state": {...}}
    - {"type": "event", "event_type": "...", "data": {...}, "state": {...}}
    - {"type": "error", "error": "...", "message": "..."}
    """
    if extract_session_id(session_id) is None:
        await websocket.close(code=1008)
        return

    await manager.connect(websocket, session_id)
    logger.debug("WebSocket connected (%d open for session)", manager.connection_count(session_id))
    try:
        table = await load_table(session_id)
        manager.listen(session_id, table)
        await websocket.send_json({
            "type": "state_update",
            "state": game_state_response(table.engine).model_dump(),
        })

        while True:
            data = await websocket.receive_text()
            # Another connection or an HTTP request may have replaced the table
            table = await load_table(session_id)
            manager.listen(session_id, table)
            manager.discard_pending(session_id)
            try:
                message = json.loads(data)
                replacement = _run_command(table, message)
            except RoundError as e:
                # The rejection event is discarded; the error message replaces it
                manager.discard_pending(session_id)
                await websocket.send_json({
                    "type": "error",
                    "error": e.code,
                    "message": str(e),
                })
                continue
            except (ValueError, TypeError) as e:
                manager.discard_pending(session_id)
                await websocket.send_json({
                    "type": "error",
                    "error": "bad_request",
                    "message": str(e),
                })
                continue

            events = manager.take_pending(session_id)
            if replacement is not None:
                table = replacement
            state = game_state_response(table.engine).model_dump()

            if replacement is not None:
                await replace_table(session_id, table)
                manager.listen(session_id, table)
            else:
                await save_table(session_id, table)

            await manager.broadcast_events(session_id, events, state)
            await manager.broadcast(session_id, {"type": "state_update", "state": state})

    except WebSocketDisconnect:
        logger.debug("WebSocket disconnected")
    finally:
        manager.disconnect(websocket, session_id)
