"""
Message envelopes exchanged with connected players.
"""

import time
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..actions import Action
from ..constants import MODES


class EventType(str, Enum):
    """Inbound event types."""
    JOIN_ROOM = "joinRoom"
    PLAYER_ACTION = "playerAction"
    LEAVE_ROOM = "leaveRoom"
    REQUEST_STATE = "requestState"


class OutboundEventType(str, Enum):
    """Outbound event types."""
    JOINED = "joined"
    GAME_STATE = "gameState"
    ERROR = "error"


# Inbound event models
class BaseEvent(BaseModel):
    """Base event model."""
    model_config = ConfigDict(populate_by_name=True)

    type: EventType


class JoinRoomEvent(BaseEvent):
    """Join room event."""
    type: EventType = EventType.JOIN_ROOM
    room_id: str = Field(..., min_length=1, max_length=50, validation_alias=AliasChoices("roomId", "room_id"))
    seat: int = Field(..., validation_alias=AliasChoices("seat", "playerIndex"))
    mode: Optional[int] = Field(default=None, validation_alias=AliasChoices("mode", "gameMode"))
    name: Optional[str] = Field(default=None, min_length=1, max_length=30)

    @field_validator("mode", mode="before")
    @classmethod
    def parse_mode(cls, v):
        """Accept 2, 4, "2", "2-player" or "4-player"."""
        if v is None or isinstance(v, int):
            mode = v
        elif isinstance(v, str):
            text = v.strip().lower()
            if text.endswith("-player"):
                text = text[:-len("-player")]
            try:
                mode = int(text)
            except ValueError:
                raise ValueError(f"Unknown game mode: {v}")
        else:
            raise ValueError(f"Unknown game mode: {v}")
        if mode is not None and mode not in MODES:
            raise ValueError(f"Unsupported game mode: {v}")
        return mode


class PlayerActionEvent(BaseEvent):
    """Game action from a seated player."""
    type: EventType = EventType.PLAYER_ACTION
    action: Action


class LeaveRoomEvent(BaseEvent):
    """Vacate the seat."""
    type: EventType = EventType.LEAVE_ROOM


class RequestStateEvent(BaseEvent):
    """Request full state event."""
    type: EventType = EventType.REQUEST_STATE


# Union type for all inbound events
InboundEvent = Union[
    JoinRoomEvent,
    PlayerActionEvent,
    LeaveRoomEvent,
    RequestStateEvent,
]


# Outbound event models
class JoinedEvent(BaseModel):
    """Join confirmation sent to the new seat."""
    type: OutboundEventType = OutboundEventType.JOINED
    seat: int
    roomId: str
    sessionId: str
    state: Dict[str, Any]
    occupancy: List[int]
    timestamp: float


class GameStateEvent(BaseModel):
    """Full state broadcast after every accepted change."""
    type: OutboundEventType = OutboundEventType.GAME_STATE
    state: Dict[str, Any]
    occupancy: List[int]
    timestamp: float


class ErrorEvent(BaseModel):
    """Error event."""
    type: OutboundEventType = OutboundEventType.ERROR
    code: str
    message: str
    timestamp: float


def parse_inbound_event(data: Dict[str, Any]) -> InboundEvent:
    """
    Parse raw event data into appropriate event model.

    Args:
        data: Raw event data from the connection

    Returns:
        Parsed event model

    Raises:
        ValueError: If event type is invalid or data is malformed
    """
    if not isinstance(data, dict):
        raise ValueError("Message must be a JSON object")

    event_type = data.get("type")

    if not event_type:
        raise ValueError("Missing event type")

    try:
        event_type = EventType(event_type)
    except ValueError:
        raise ValueError(f"Invalid event type: {event_type}")

    event_map = {
        EventType.JOIN_ROOM: JoinRoomEvent,
        EventType.PLAYER_ACTION: PlayerActionEvent,
        EventType.LEAVE_ROOM: LeaveRoomEvent,
        EventType.REQUEST_STATE: RequestStateEvent,
    }

    event_class = event_map[event_type]

    try:
        return event_class.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid event data: {e.errors(include_url=False)}")


def create_error_event(code: str, message: str) -> ErrorEvent:
    """Create an error event."""
    return ErrorEvent(
        code=code,
        message=message,
        timestamp=time.time()
    )


def create_joined_event(
    seat: int,
    room_id: str,
    session_id: str,
    state: Dict[str, Any],
    occupancy: List[int]
) -> JoinedEvent:
    """Create a join confirmation event."""
    return JoinedEvent(
        seat=seat,
        roomId=room_id,
        sessionId=session_id,
        state=state,
        occupancy=occupancy,
        timestamp=time.time()
    )


def create_game_state_event(state: Dict[str, Any], occupancy: List[int]) -> GameStateEvent:
    """Create a full state event."""
    return GameStateEvent(
        state=state,
        occupancy=occupancy,
        timestamp=time.time()
    )
