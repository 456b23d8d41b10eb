"""
Room registry and per-room workers.

Every room has exactly one worker task draining one queue, so actions on a
room are applied strictly in arrival order while separate rooms run side by
side. Timed follow-ups (the re-deal after an all-pass bidding round) go
through the same queue.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol, Tuple, Union

from .actions import Action
from .constants import DEFAULT_MODE
from .engine import (
    EngineResult, ScheduledAction, SCHEDULE_REDEAL, apply_action, create_room, join_room,
    leave_room, redeal,
)
from .errors import INTERNAL_ERROR, INVALID_SESSION, GameError
from .ws.events import create_game_state_event
from .models import RoomState
from .rules import RuleConfig, rules_for_mode
from .serialization import occupancy_list, sanitize_state
from .shuffle import validate_deck_integrity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    """Handle issued on join. Every later request for the seat must present it."""
    room_id: str
    seat: int
    session_id: str


class Outbox(Protocol):
    """Where a room drops messages for its seats. Must never block."""

    def post(self, room_id: str, seat: int, message: Dict[str, Any]) -> None:
        ...


@dataclass
class JoinCommand:
    seat: int
    name: Optional[str] = None
    mode: Optional[int] = None


@dataclass
class LeaveCommand:
    seat: int
    session_id: str
    vacate: bool = False


@dataclass
class ActionCommand:
    seat: int
    session_id: str
    action: Action


@dataclass
class RedealCommand:
    pass


Command = Union[JoinCommand, LeaveCommand, ActionCommand, RedealCommand]


@dataclass
class CommandOutcome:
    result: EngineResult
    session: Optional[Session] = None


class RoomWorker:
    """Owns one room's state and applies commands to it one at a time."""

    def __init__(
        self,
        state: RoomState,
        outbox: Outbox,
        rules: RuleConfig,
        on_close: Callable[['RoomWorker'], None],
        hide_opponent_hands: bool = False
    ):
        self.state = state
        self.rules = rules
        self.sessions: Dict[int, str] = {}
        self.closed = False
        self._outbox = outbox
        self._on_close = on_close
        self._hide_hands = hide_opponent_hands
        self._queue: asyncio.Queue = asyncio.Queue()
        self._redeal_timer: Optional[asyncio.TimerHandle] = None
        self._task = asyncio.create_task(self._run(), name=f"room-{state.id}")

    @property
    def room_id(self) -> str:
        return self.state.id

    def submit(self, command: Command) -> 'asyncio.Future[CommandOutcome]':
        """Queue a command and return a future for its outcome."""
        if self.closed:
            raise RuntimeError(f"Room {self.room_id} is closed")
        future = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((command, future))
        return future

    def state_payload(self, seat: int) -> Dict[str, Any]:
        return sanitize_state(self.state, seat, self._hide_hands)

    async def _run(self):
        while True:
            command, future = await self._queue.get()
            try:
                outcome = self._handle(command)
            except Exception:
                logger.exception(f"Room {self.room_id}: error applying {type(command).__name__}")
                outcome = CommandOutcome(
                    EngineResult.fail(self.state, INTERNAL_ERROR, "Internal server error")
                )
            if future is not None and not future.done():
                future.set_result(outcome)
            self._queue.task_done()

            if not self.state.occupancy and self._queue.empty():
                self.close()
                return

    def _handle(self, command: Command) -> CommandOutcome:
        if isinstance(command, JoinCommand):
            result = self._commit(
                join_room(self.state, command.seat, command.name, command.mode),
                exclude=command.seat
            )
            if not result.success:
                return CommandOutcome(result)
            session = Session(self.room_id, command.seat, uuid.uuid4().hex)
            self.sessions[command.seat] = session.session_id
            return CommandOutcome(result, session)

        elif isinstance(command, LeaveCommand):
            if self.sessions.get(command.seat) != command.session_id:
                return CommandOutcome(self._stale_session())
            result = self._commit(leave_room(self.state, command.seat, command.vacate))
            if result.success:
                self.sessions.pop(command.seat, None)
            return CommandOutcome(result)

        elif isinstance(command, ActionCommand):
            if self.sessions.get(command.seat) != command.session_id:
                return CommandOutcome(self._stale_session())
            return CommandOutcome(
                self._commit(apply_action(self.state, command.seat, command.action, self.rules))
            )

        elif isinstance(command, RedealCommand):
            result = redeal(self.state, self.rules)
            if not result.success:
                logger.debug(f"Room {self.room_id}: scheduled re-deal skipped ({result.error_message})")
                return CommandOutcome(result)
            return CommandOutcome(self._commit(result))

        else:
            raise ValueError(f"Unhandled command type: {type(command)}")

    def _stale_session(self) -> EngineResult:
        return EngineResult.fail(self.state, INVALID_SESSION, "Session is no longer valid for this seat")

    def _commit(self, result: EngineResult, exclude: Optional[int] = None) -> EngineResult:
        """Adopt an accepted transition, schedule its follow-up and broadcast it."""
        if not result.success:
            logger.info(f"Room {self.room_id}: rejected [{result.error_code}] {result.error_message}")
            return result

        if not validate_deck_integrity(result.state):
            logger.error(
                f"Room {self.room_id}: card conservation broken after transition to "
                f"{result.state.phase}; keeping version {self.state.version}"
            )
            return EngineResult.fail(self.state, INTERNAL_ERROR, "Internal server error")

        if result.state.phase != self.state.phase:
            logger.info(f"Room {self.room_id}: {self.state.phase} -> {result.state.phase}")
        self.state = result.state

        if result.scheduled is not None:
            self._schedule(result.scheduled)
        self._broadcast(exclude)
        return result

    def _schedule(self, scheduled: ScheduledAction):
        if scheduled.kind != SCHEDULE_REDEAL:
            raise ValueError(f"Unknown scheduled action: {scheduled.kind}")
        if self._redeal_timer is not None:
            self._redeal_timer.cancel()
        loop = asyncio.get_running_loop()
        self._redeal_timer = loop.call_later(scheduled.delay, self._enqueue_redeal)

    def _enqueue_redeal(self):
        self._redeal_timer = None
        if self.closed:
            return
        self._queue.put_nowait((RedealCommand(), None))

    def _broadcast(self, exclude: Optional[int] = None):
        occupancy = occupancy_list(self.state)
        for seat in occupancy:
            if seat == exclude:
                continue
            message = create_game_state_event(self.state_payload(seat), occupancy).model_dump(mode="json")
            try:
                self._outbox.post(self.room_id, seat, message)
            except Exception:
                logger.exception(f"Room {self.room_id}: could not queue update for seat {seat}")

    def close(self):
        if self.closed:
            return
        self.closed = True
        if self._redeal_timer is not None:
            self._redeal_timer.cancel()
            self._redeal_timer = None
        self._on_close(self)

    async def stop(self):
        self.close()
        if not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass


class RoomRegistry:
    """
    Maps room ids to their workers.

    Rooms are created on the first join and destroyed once the last seat
    leaves and nothing else is queued for them.
    """

    def __init__(
        self,
        outbox: Outbox,
        rule_overrides: Optional[Dict[str, Any]] = None,
        hide_opponent_hands: bool = False
    ):
        self._outbox = outbox
        self._rule_overrides = dict(rule_overrides or {})
        self._hide_hands = hide_opponent_hands
        self._rooms: Dict[str, RoomWorker] = {}

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, room_id: str) -> bool:
        return room_id in self._rooms

    def get_state(self, room_id: str) -> Optional[RoomState]:
        worker = self._rooms.get(room_id)
        return worker.state if worker else None

    def rules_for(self, mode: int) -> RuleConfig:
        return rules_for_mode(mode, **self._rule_overrides)

    def _get_or_create(self, room_id: str, mode: Optional[int]) -> RoomWorker:
        worker = self._rooms.get(room_id)
        if worker is None or worker.closed:
            mode = mode if mode is not None else DEFAULT_MODE
            worker = RoomWorker(
                create_room(room_id, mode),
                self._outbox,
                self.rules_for(mode),
                on_close=self._discard,
                hide_opponent_hands=self._hide_hands,
            )
            self._rooms[room_id] = worker
            logger.info(f"Room {room_id} created ({mode} seats)")
        return worker

    def _discard(self, worker: RoomWorker):
        if self._rooms.get(worker.room_id) is worker:
            del self._rooms[worker.room_id]
            logger.info(f"Room {worker.room_id} destroyed")

    def _worker_for(self, session: Session) -> RoomWorker:
        worker = self._rooms.get(session.room_id)
        if worker is None or worker.closed:
            raise GameError(INVALID_SESSION, f"Room {session.room_id} no longer exists")
        return worker

    async def join(
        self,
        room_id: str,
        seat: int,
        mode: Optional[int] = None,
        name: Optional[str] = None
    ) -> Tuple[EngineResult, Optional[Session]]:
        """Take a seat, creating the room with the given mode if it doesn't exist."""
        worker = self._get_or_create(room_id, mode)
        outcome = await worker.submit(JoinCommand(seat=seat, name=name, mode=mode))
        return outcome.result, outcome.session

    async def leave(self, session: Session, vacate: bool = False) -> EngineResult:
        worker = self._worker_for(session)
        outcome = await worker.submit(LeaveCommand(session.seat, session.session_id, vacate))
        return outcome.result

    async def dispatch(self, session: Session, action: Action) -> EngineResult:
        worker = self._worker_for(session)
        outcome = await worker.submit(ActionCommand(session.seat, session.session_id, action))
        return outcome.result

    def snapshot(self, session: Session) -> Dict[str, Any]:
        """Current gameState message for the session's seat."""
        worker = self._worker_for(session)
        if worker.sessions.get(session.seat) != session.session_id:
            raise GameError(INVALID_SESSION, "Session is no longer valid for this seat")
        return create_game_state_event(
            worker.state_payload(session.seat),
            occupancy_list(worker.state)
        ).model_dump(mode="json")

    async def close(self):
        for worker in list(self._rooms.values()):
            await worker.stop()
        self._rooms.clear()
