"""
WebSocket boundary adapter: turns socket messages into coordinator calls
and delivers the resulting state back to the room.
"""

import logging
from typing import Dict, List, Optional, Tuple

import orjson
from fastapi import WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from ..coordinator import GameCoordinator, RoomListener
from ..errors import ErrorCode, GameError, raise_error
from ..models import GameAction, Room
from ..serialization import (
    sanitize_game_state, serialize_game_over, serialize_private_hand, serialize_room
)
from .events import (
    ActionEvent, CreateRoomEvent, JoinEvent, LeaveEvent, RequestStateEvent, StartEvent,
    UpdateScoreLimitEvent, create_error_event, create_game_ended_event,
    create_game_started_event, create_game_updated_event, create_hand_event,
    create_room_joined_event, create_room_updated_event, parse_inbound_event
)

logger = logging.getLogger(__name__)


def encode(event: BaseModel) -> str:
    return orjson.dumps(event.model_dump(mode="json")).decode()


class ConnectionManager(RoomListener):
    """Tracks which socket belongs to which seated player and fans out updates."""

    def __init__(self):
        self.active_connections: Dict[str, WebSocket] = {}
        self.socket_seats: Dict[WebSocket, Tuple[str, str]] = {}

    def bind(self, websocket: WebSocket, room_id: str, player_id: str):
        self.active_connections[player_id] = websocket
        self.socket_seats[websocket] = (room_id, player_id)
        logger.info(f"Player {player_id} connected to room {room_id}")

    def unbind(self, websocket: WebSocket) -> Tuple[Optional[str], Optional[str]]:
        room_id, player_id = self.socket_seats.pop(websocket, (None, None))
        if player_id and self.active_connections.get(player_id) is websocket:
            del self.active_connections[player_id]
        return room_id, player_id

    def seat_of(self, websocket: WebSocket) -> Tuple[str, str]:
        seat = self.socket_seats.get(websocket)
        if seat is None:
            raise_error(ErrorCode.ACTION_NOT_ALLOWED, "Not in a room")
        return seat

    async def send(self, websocket: WebSocket, event: BaseModel):
        await websocket.send_text(encode(event))

    async def send_to_player(self, player_id: str, event: BaseModel):
        websocket = self.active_connections.get(player_id)
        if websocket is None:
            return
        try:
            await websocket.send_text(encode(event))
        except Exception as e:
            logger.error(f"Error sending to player {player_id}: {e}")
            # The seat stays bound so the receive loop still reports the disconnect
            if self.active_connections.get(player_id) is websocket:
                del self.active_connections[player_id]

    async def room_updated(self, room: Room):
        for member in room.players:
            await self.send_to_player(member.id, create_room_updated_event(serialize_room(room, member.id)))

    async def game_started(self, room: Room):
        for member in room.players:
            await self.send_to_player(
                member.id, create_game_started_event(sanitize_game_state(room.game, member.id))
            )
        await self._send_hands(room, [p.id for p in room.game.players])

    async def game_updated(self, room: Room, hand_changed: List[str]):
        for member in room.players:
            await self.send_to_player(
                member.id, create_game_updated_event(sanitize_game_state(room.game, member.id))
            )
        await self._send_hands(room, hand_changed)

    async def game_ended(self, room: Room):
        event = create_game_ended_event(serialize_game_over(room.game))
        for member in room.players:
            await self.send_to_player(member.id, event)

    async def _send_hands(self, room: Room, player_ids: List[str]):
        for player_id in player_ids:
            player = room.game.get_player(player_id)
            if player is not None:
                await self.send_to_player(player_id, create_hand_event(serialize_private_hand(player)))


class GameWebSocketManager:
    def __init__(self, coordinator: GameCoordinator, connection_manager: ConnectionManager):
        self.coordinator = coordinator
        self.connection_manager = connection_manager

    async def handle_websocket(self, websocket: WebSocket):
        await websocket.accept()
        logger.info("WebSocket connection accepted")

        try:
            while True:
                raw_data = await websocket.receive_text()
                await self.handle_message(websocket, raw_data)
        except WebSocketDisconnect:
            logger.info("WebSocket disconnected")
        except Exception as e:
            logger.error(f"WebSocket error: {e}")
        finally:
            room_id, player_id = self.connection_manager.unbind(websocket)
            if room_id and player_id:
                try:
                    await self.coordinator.on_player_disconnected(room_id, player_id)
                except GameError as e:
                    logger.debug(f"Disconnect of {player_id} after room {room_id} closed: {e}")

    async def handle_message(self, websocket: WebSocket, raw_data: str):
        try:
            event = parse_inbound_event(orjson.loads(raw_data))
            await self.handle_event(websocket, event)
        except GameError as e:
            await self.connection_manager.send(websocket, create_error_event(e.code, e.message))
        except ValueError as e:
            # Malformed JSON (orjson.JSONDecodeError) or a payload that failed validation
            await self.connection_manager.send(websocket, create_error_event(ErrorCode.INVALID_EVENT, str(e)))
        except WebSocketDisconnect:
            raise
        except Exception as e:
            logger.error(f"Error handling event: {e}")
            await self.connection_manager.send(
                websocket, create_error_event(ErrorCode.INTERNAL_ERROR, "Internal server error")
            )

    async def handle_event(self, websocket: WebSocket, event):
        if isinstance(event, CreateRoomEvent):
            await self.handle_create_room(websocket, event)
        elif isinstance(event, JoinEvent):
            await self.handle_join(websocket, event)
        elif isinstance(event, StartEvent):
            room_id, player_id = self.connection_manager.seat_of(websocket)
            await self.coordinator.start_game(room_id, player_id)
        elif isinstance(event, ActionEvent):
            await self.handle_action(websocket, event)
        elif isinstance(event, LeaveEvent):
            await self.handle_leave(websocket)
        elif isinstance(event, UpdateScoreLimitEvent):
            room_id, player_id = self.connection_manager.seat_of(websocket)
            await self.coordinator.update_score_limit(room_id, player_id, event.score_limit)
        elif isinstance(event, RequestStateEvent):
            await self.handle_request_state(websocket)
        else:
            raise ValueError(f"Unhandled event type: {type(event)}")

    def _ensure_unseated(self, websocket: WebSocket):
        if websocket in self.connection_manager.socket_seats:
            raise_error(ErrorCode.ACTION_NOT_ALLOWED, "Already in a room")

    async def handle_create_room(self, websocket: WebSocket, event: CreateRoomEvent):
        self._ensure_unseated(websocket)
        room, host = await self.coordinator.create_room(event.name, event.score_limit)
        self.connection_manager.bind(websocket, room.id, host.id)
        await self.connection_manager.send(
            websocket, create_room_joined_event(host.id, serialize_room(room, host.id))
        )

    async def handle_join(self, websocket: WebSocket, event: JoinEvent):
        self._ensure_unseated(websocket)
        room, member = await self.coordinator.join_room(event.room_id, event.name)
        self.connection_manager.bind(websocket, room.id, member.id)
        await self.connection_manager.send(
            websocket, create_room_joined_event(member.id, serialize_room(room, member.id))
        )

    async def handle_action(self, websocket: WebSocket, event: ActionEvent):
        room_id, player_id = self.connection_manager.seat_of(websocket)
        action = GameAction(player_id=player_id, type=event.action, card_id=event.card_id)
        result = await self.coordinator.handle_action(room_id, action)
        if not result.success:
            await self.connection_manager.send(
                websocket, create_error_event(result.error_code, result.error_message)
            )

    async def handle_leave(self, websocket: WebSocket):
        room_id, player_id = self.connection_manager.seat_of(websocket)
        self.connection_manager.unbind(websocket)
        await self.coordinator.on_player_left(room_id, player_id)

    async def handle_request_state(self, websocket: WebSocket):
        room_id, player_id = self.connection_manager.seat_of(websocket)
        room = self.coordinator.registry.require_room(room_id)
        await self.connection_manager.send(
            websocket, create_room_updated_event(serialize_room(room, player_id))
        )
        if room.game is not None:
            player = room.game.get_player(player_id)
            if player is not None:
                await self.connection_manager.send(
                    websocket, create_hand_event(serialize_private_hand(player))
                )
