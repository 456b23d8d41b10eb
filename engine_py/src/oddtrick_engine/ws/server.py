"""
WebSocket endpoint and connection manager for the game server.

The manager is the only place that knows about sockets. It turns inbound
frames into registry calls and implements the registry's outbox with one
bounded queue and one writer task per connection, so a slow or dead peer
never holds up the room or the other seats.
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Set, Tuple

import orjson
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..errors import ACTION_NOT_ALLOWED, INTERNAL_ERROR, MALFORMED_MESSAGE, GameError
from ..registry import RoomRegistry, Session
from ..settings import ServerSettings
from .events import (
    JoinRoomEvent, LeaveRoomEvent, PlayerActionEvent, RequestStateEvent,
    create_error_event, create_joined_event, parse_inbound_event,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class Connection:
    """One live socket plus its outbound queue and, once joined, its session."""

    def __init__(self, websocket: WebSocket, outbox_size: int):
        self.websocket = websocket
        self.session: Optional[Session] = None
        self.alive = True
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=outbox_size)
        self._writer: Optional[asyncio.Task] = None

    def start(self, on_failure):
        self._writer = asyncio.create_task(self._write_loop(on_failure))

    def post(self, message: Dict[str, Any]) -> bool:
        """Queue a frame without waiting. False means the peer can't keep up or is gone."""
        if not self.alive:
            return False
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            return False
        return True

    async def _write_loop(self, on_failure):
        while True:
            message = await self._queue.get()
            try:
                await self.websocket.send_text(orjson.dumps(message).decode())
            except Exception as e:
                logger.warning(f"Send failed for {self.session}: {e}")
                on_failure(self)
                return

    async def stop(self):
        self.alive = False
        if self._writer is None or self._writer.done():
            return
        self._writer.cancel()
        try:
            await self._writer
        except asyncio.CancelledError:
            pass


class ConnectionManager:
    """Maps live connections to (room, seat) and carries messages both ways."""

    def __init__(self, settings: Optional[ServerSettings] = None):
        self.settings = settings or ServerSettings()
        self.registry = RoomRegistry(
            self,
            rule_overrides={"redeal_delay": self.settings.redeal_delay},
            hide_opponent_hands=self.settings.hide_opponent_hands,
        )
        self.connections: Set[Connection] = set()
        self._seats: Dict[Tuple[str, int], Connection] = {}
        self._pending_leaves: Set[asyncio.Task] = set()

    # Outbox
    def post(self, room_id: str, seat: int, message: Dict[str, Any]) -> None:
        connection = self._seats.get((room_id, seat))
        if connection is None:
            return
        if not connection.post(message):
            logger.warning(f"Dropping room {room_id} seat {seat}: outbound queue unavailable")
            self._detach(connection)

    def open(self, websocket: WebSocket) -> Connection:
        connection = Connection(websocket, self.settings.outbox_size)
        connection.start(self._detach)
        self.connections.add(connection)
        return connection

    def _unseat(self, connection: Connection) -> Optional[Session]:
        session = connection.session
        connection.session = None
        if session and self._seats.get((session.room_id, session.seat)) is connection:
            del self._seats[(session.room_id, session.seat)]
        return session

    def _detach(self, connection: Connection):
        """Treat a broken peer as having left; the leave runs through the room queue."""
        connection.alive = False
        session = self._unseat(connection)
        if session is not None:
            task = asyncio.create_task(self._leave_quietly(session))
            self._pending_leaves.add(task)
            task.add_done_callback(self._pending_leaves.discard)

    async def _leave_quietly(self, session: Session, vacate: bool = False):
        try:
            await self.registry.leave(session, vacate=vacate)
        except GameError as e:
            logger.debug(f"Leave for {session} ignored: {e.message}")

    def send_error(self, connection: Connection, code: str, message: str):
        connection.post(create_error_event(code, message).model_dump(mode="json"))

    async def handle_event(self, connection: Connection, event):
        """Handle an inbound event."""
        if isinstance(event, JoinRoomEvent):
            await self.handle_join(connection, event)
        elif isinstance(event, PlayerActionEvent):
            await self.handle_action(connection, event)
        elif isinstance(event, LeaveRoomEvent):
            await self.handle_leave(connection)
        elif isinstance(event, RequestStateEvent):
            self.handle_request_state(connection)
        else:
            raise ValueError(f"Unhandled event type: {type(event)}")

    async def handle_join(self, connection: Connection, event: JoinRoomEvent):
        if connection.session is not None:
            self.send_error(connection, ACTION_NOT_ALLOWED, "Already seated in a room")
            return

        result, session = await self.registry.join(event.room_id, event.seat, event.mode, event.name)
        if not result.success:
            self.send_error(connection, result.error_code, result.error_message)
            return

        connection.session = session
        self._seats[(session.room_id, session.seat)] = connection
        snapshot = self.registry.snapshot(session)
        joined = create_joined_event(
            session.seat,
            session.room_id,
            session.session_id,
            snapshot["state"],
            snapshot["occupancy"],
        )
        connection.post(joined.model_dump(mode="json"))

    async def handle_action(self, connection: Connection, event: PlayerActionEvent):
        if connection.session is None:
            self.send_error(connection, ACTION_NOT_ALLOWED, "Player not found in any room")
            return
        result = await self.registry.dispatch(connection.session, event.action)
        if not result.success:
            self.send_error(connection, result.error_code, result.error_message)

    async def handle_leave(self, connection: Connection):
        session = self._unseat(connection)
        if session is None:
            self.send_error(connection, ACTION_NOT_ALLOWED, "Player not found in any room")
            return
        await self._leave_quietly(session, vacate=True)

    def handle_request_state(self, connection: Connection):
        if connection.session is None:
            self.send_error(connection, ACTION_NOT_ALLOWED, "Player not found in any room")
            return
        connection.post(self.registry.snapshot(connection.session))

    async def disconnect(self, connection: Connection):
        """Transport is gone: free the seat (entry kept as disconnected) and stop writing."""
        connection.alive = False
        self.connections.discard(connection)
        session = self._unseat(connection)
        if session is not None:
            await self._leave_quietly(session)
        await connection.stop()

    def stats(self) -> Dict[str, int]:
        return {
            "rooms": len(self.registry),
            "connections": len(self.connections),
            "seated": len(self._seats),
        }

    async def shutdown(self):
        if self._pending_leaves:
            await asyncio.gather(*self._pending_leaves, return_exceptions=True)
        await self.registry.close()


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Main WebSocket endpoint."""
    manager: ConnectionManager = websocket.app.state.manager
    await websocket.accept()
    logger.info("WebSocket connection accepted")
    connection = manager.open(websocket)

    try:
        while True:
            raw_data = await websocket.receive_text()

            try:
                data = orjson.loads(raw_data)
                event = parse_inbound_event(data)
                await manager.handle_event(connection, event)
            except ValueError as e:
                # orjson.JSONDecodeError is a ValueError too
                manager.send_error(connection, MALFORMED_MESSAGE, str(e))
            except GameError as e:
                manager.send_error(connection, e.code, e.message)
            except Exception:
                logger.exception("Error handling event")
                manager.send_error(connection, INTERNAL_ERROR, "Internal server error")

    except WebSocketDisconnect:
        logger.info("WebSocket disconnected")
    except Exception as e:
        logger.error(f"WebSocket error: {e}")
    finally:
        await manager.disconnect(connection)
