"""
WebSocket event models and validation.
"""

import time
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError, model_validator

from ..errors import ErrorCode
from ..models import ActionType


class EventType(str, Enum):
    """Inbound event types."""
    CREATE_ROOM = "create_room"
    JOIN = "join"
    START = "start"
    ACTION = "action"
    LEAVE = "leave"
    UPDATE_SCORE_LIMIT = "update_score_limit"
    REQUEST_STATE = "request_state"


class OutboundEventType(str, Enum):
    """Outbound event types."""
    ROOM_JOINED = "room_joined"
    ROOM_UPDATED = "room_updated"
    GAME_STARTED = "game_started"
    GAME_UPDATED = "game_updated"
    HAND = "hand"
    GAME_ENDED = "game_ended"
    ERROR = "error"


# Inbound event models
class BaseEvent(BaseModel):
    """Base event model."""
    type: EventType


class CreateRoomEvent(BaseEvent):
    """Create room event; the sender becomes host."""
    type: EventType = EventType.CREATE_ROOM
    name: str = Field(..., min_length=1, max_length=30)
    score_limit: Optional[int] = Field(default=None, ge=1, le=10000)


class JoinEvent(BaseEvent):
    """Join room event."""
    type: EventType = EventType.JOIN
    room_id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=30)


class StartEvent(BaseEvent):
    """Start game event."""
    type: EventType = EventType.START


class ActionEvent(BaseEvent):
    """A game move by the sender."""
    type: EventType = EventType.ACTION
    action: ActionType
    card_id: Optional[str] = Field(default=None, min_length=1, max_length=20)

    @model_validator(mode='after')
    def check_card_id(self):
        if self.action == ActionType.DISCARD and not self.card_id:
            raise ValueError("DISCARD requires card_id")
        return self


class LeaveEvent(BaseEvent):
    """Leave room event."""
    type: EventType = EventType.LEAVE


class UpdateScoreLimitEvent(BaseEvent):
    """Host changes the room's score limit."""
    type: EventType = EventType.UPDATE_SCORE_LIMIT
    score_limit: int = Field(..., ge=1, le=10000)


class RequestStateEvent(BaseEvent):
    """Request full state event."""
    type: EventType = EventType.REQUEST_STATE


# Union type for all inbound events
InboundEvent = Union[
    CreateRoomEvent,
    JoinEvent,
    StartEvent,
    ActionEvent,
    LeaveEvent,
    UpdateScoreLimitEvent,
    RequestStateEvent
]


# Outbound event models
class RoomJoinedEvent(BaseModel):
    """Sent to a player once they are seated in a room."""
    type: OutboundEventType = OutboundEventType.ROOM_JOINED
    player_id: str
    room: Dict[str, Any]
    timestamp: float


class RoomUpdatedEvent(BaseModel):
    type: OutboundEventType = OutboundEventType.ROOM_UPDATED
    room: Dict[str, Any]
    timestamp: float


class GameStartedEvent(BaseModel):
    type: OutboundEventType = OutboundEventType.GAME_STARTED
    state: Dict[str, Any]
    timestamp: float


class GameUpdatedEvent(BaseModel):
    type: OutboundEventType = OutboundEventType.GAME_UPDATED
    state: Dict[str, Any]
    timestamp: float


class HandEvent(BaseModel):
    """Private hand, delivered to its holder only."""
    type: OutboundEventType = OutboundEventType.HAND
    player_id: str
    hand: List[Dict[str, Any]]
    score: int
    can_show: bool
    timestamp: float


class GameEndedEvent(BaseModel):
    type: OutboundEventType = OutboundEventType.GAME_ENDED
    state: Dict[str, Any]
    leaderboard: List[Dict[str, Any]]
    timestamp: float


class ErrorEvent(BaseModel):
    """Error event."""
    type: OutboundEventType = OutboundEventType.ERROR
    code: ErrorCode
    message: str
    timestamp: float


# Union type for all outbound events
OutboundEvent = Union[
    RoomJoinedEvent,
    RoomUpdatedEvent,
    GameStartedEvent,
    GameUpdatedEvent,
    HandEvent,
    GameEndedEvent,
    ErrorEvent
]


EVENT_MAP = {
    EventType.CREATE_ROOM: CreateRoomEvent,
    EventType.JOIN: JoinEvent,
    EventType.START: StartEvent,
    EventType.ACTION: ActionEvent,
    EventType.LEAVE: LeaveEvent,
    EventType.UPDATE_SCORE_LIMIT: UpdateScoreLimitEvent,
    EventType.REQUEST_STATE: RequestStateEvent,
}


def parse_inbound_event(data: Dict[str, Any]) -> InboundEvent:
    """
    Parse raw event data into appropriate event model.

    Args:
        data: Raw event data from WebSocket

    Returns:
        Parsed event model

    Raises:
        ValueError: If event type is invalid or data is malformed
    """
    if not isinstance(data, dict):
        raise ValueError("Event must be a JSON object")

    event_type = data.get("type")
    if not event_type:
        raise ValueError("Missing event type")

    try:
        event_type = EventType(event_type)
    except ValueError:
        raise ValueError(f"Invalid event type: {event_type}")

    try:
        return EVENT_MAP[event_type](**data)
    except ValidationError as e:
        raise ValueError(f"Invalid event data: {e.errors()[0]['msg']}")


def create_error_event(code: ErrorCode, message: str) -> ErrorEvent:
    """Create an error event."""
    return ErrorEvent(code=code, message=message, timestamp=time.time())


def create_room_joined_event(player_id: str, room: Dict[str, Any]) -> RoomJoinedEvent:
    return RoomJoinedEvent(player_id=player_id, room=room, timestamp=time.time())


def create_room_updated_event(room: Dict[str, Any]) -> RoomUpdatedEvent:
    return RoomUpdatedEvent(room=room, timestamp=time.time())


def create_game_started_event(state: Dict[str, Any]) -> GameStartedEvent:
    return GameStartedEvent(state=state, timestamp=time.time())


def create_game_updated_event(state: Dict[str, Any]) -> GameUpdatedEvent:
    return GameUpdatedEvent(state=state, timestamp=time.time())


def create_hand_event(payload: Dict[str, Any]) -> HandEvent:
    return HandEvent(**payload, timestamp=time.time())


def create_game_ended_event(payload: Dict[str, Any]) -> GameEndedEvent:
    return GameEndedEvent(**payload, timestamp=time.time())
