"""In-memory room registry."""

import logging
import threading
import uuid
from typing import Dict, List, Optional, Tuple

from .clock import TurnClock
from .errors import ErrorCode, raise_error
from .models import Room, RoomMember
from .rules import RuleConfig, default_rules

logger = logging.getLogger(__name__)


def new_room_id() -> str:
    return str(uuid.uuid4())[:8].upper()


def new_player_id() -> str:
    return str(uuid.uuid4())


class RoomRegistry:
    """
    Maps room ids to rooms.

    The internal lock only guards the dict itself. Roster changes on a room
    (join, leave, host hand-over) are expected to run under that room's own
    lock, which the coordinator holds.
    """

    def __init__(self, rules: RuleConfig = default_rules):
        self.rules = rules
        self._rooms: Dict[str, Room] = {}
        self._lock = threading.Lock()

    def create_room(
        self,
        host_name: str,
        score_limit: Optional[int] = None,
        room_id: Optional[str] = None,
        host_id: Optional[str] = None
    ) -> Tuple[Room, RoomMember]:
        room_id = room_id or new_room_id()
        host = RoomMember(id=host_id or new_player_id(), name=host_name, is_host=True)
        room = Room(
            id=room_id,
            host_id=host.id,
            score_limit=score_limit or self.rules.score_limit,
            max_players=self.rules.max_players,
            players=[host],
            clock=TurnClock(self.rules.turn_timeout),
        )

        with self._lock:
            if room_id in self._rooms:
                raise_error(ErrorCode.ROOM_ALREADY_EXISTS, f"Room {room_id} already exists")
            self._rooms[room_id] = room

        logger.info(f"Room created: {room_id} by {host_name}")
        return room, host

    def get_room(self, room_id: str) -> Optional[Room]:
        with self._lock:
            return self._rooms.get(room_id)

    def require_room(self, room_id: str) -> Room:
        room = self.get_room(room_id)
        if room is None:
            raise_error(ErrorCode.ROOM_NOT_FOUND, "Room not found")
        return room

    def list_rooms(self) -> List[Room]:
        with self._lock:
            return list(self._rooms.values())

    def delete_room(self, room_id: str) -> bool:
        with self._lock:
            room = self._rooms.pop(room_id, None)
        if room is None:
            return False
        # A timer must never outlive its room
        if room.clock is not None:
            room.clock.cancel()
        logger.info(f"Room deleted: {room_id}")
        return True

    def find_room_by_player(self, player_id: str) -> Optional[Room]:
        for room in self.list_rooms():
            if room.get_member(player_id):
                return room
        return None

    def join_room(self, room_id: str, player_name: str, player_id: Optional[str] = None) -> RoomMember:
        room = self.require_room(room_id)
        if len(room.players) >= room.max_players:
            raise_error(ErrorCode.ROOM_FULL, "Room is full")

        member = RoomMember(id=player_id or new_player_id(), name=player_name)
        room.players.append(member)
        logger.info(f"{player_name} joined room: {room_id}")
        return member

    def leave_room(self, room_id: str, player_id: str) -> bool:
        """
        Remove a player from the roster.

        Returns:
            True if the room was emptied and deleted
        """
        room = self.require_room(room_id)
        member = room.get_member(player_id)
        if member is None:
            raise_error(ErrorCode.PLAYER_NOT_FOUND, "Player not in room")

        room.players.remove(member)
        logger.info(f"{member.name} left room: {room_id}")

        if not room.players:
            return self.delete_room(room_id)

        if not any(p.is_host for p in room.players):
            new_host = room.players[0]
            new_host.is_host = True
            room.host_id = new_host.id
            logger.info(f"{new_host.name} is now host of room {room_id}")
        return False
