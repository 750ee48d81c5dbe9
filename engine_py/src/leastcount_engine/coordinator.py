"""
Per-room coordination of the engine, the registry and the turn clock.

Every mutation of a room, whatever triggers it (a player's action, a turn
timeout, a disconnect, a departure), goes through ``GameCoordinator`` and
runs while holding that room's ``asyncio.Lock``. Rooms never share a lock,
so independent rooms proceed concurrently.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional, Tuple

from .engine import ActionResult, LeastCountEngine
from .errors import ErrorCode, raise_error
from .models import GameAction, GameState, Room, RoomMember
from .rooms import RoomRegistry
from .rules import RuleConfig, default_rules

logger = logging.getLogger(__name__)


class RoomListener:
    """
    Hooks the boundary adapter implements to deliver updates.

    Called with the room lock held, so deliveries for one room keep the
    order of the mutations that produced them.
    """

    async def room_updated(self, room: Room) -> None:
        pass

    async def game_started(self, room: Room) -> None:
        pass

    async def game_updated(self, room: Room, hand_changed: List[str]) -> None:
        """``hand_changed`` lists players whose private hand must be re-sent."""
        pass

    async def game_ended(self, room: Room) -> None:
        pass


class GameCoordinator:
    def __init__(
        self,
        registry: Optional[RoomRegistry] = None,
        engine: Optional[LeastCountEngine] = None,
        listener: Optional[RoomListener] = None,
        rules: RuleConfig = default_rules
    ):
        self.rules = rules
        self.registry = registry or RoomRegistry(rules)
        self.engine = engine or LeastCountEngine(hand_size=rules.hand_size)
        self.listener = listener or RoomListener()

    @asynccontextmanager
    async def _locked(self, room_id: str) -> AsyncIterator[Room]:
        room = self.registry.require_room(room_id)
        async with room.lock:
            # The room may have been deleted while we waited for the lock
            if self.registry.get_room(room_id) is not room:
                raise_error(ErrorCode.ROOM_NOT_FOUND, "Room not found")
            yield room

    async def create_room(
        self,
        host_name: str,
        score_limit: Optional[int] = None,
        room_id: Optional[str] = None
    ) -> Tuple[Room, RoomMember]:
        return self.registry.create_room(host_name, score_limit, room_id)

    async def join_room(self, room_id: str, player_name: str) -> Tuple[Room, RoomMember]:
        async with self._locked(room_id) as room:
            member = self.registry.join_room(room_id, player_name)
            await self.listener.room_updated(room)
            return room, member

    async def start_game(self, room_id: str, player_id: Optional[str] = None) -> GameState:
        async with self._locked(room_id) as room:
            if player_id is not None and player_id != room.host_id:
                raise_error(ErrorCode.NOT_HOST, "Only the host can start the game")
            if room.has_active_game:
                raise_error(ErrorCode.GAME_IN_PROGRESS, "A game is already in progress")
            if len(room.players) < self.rules.min_players:
                raise_error(
                    ErrorCode.NOT_ENOUGH_PLAYERS,
                    f"Need at least {self.rules.min_players} players to start"
                )

            room.game = self.engine.initialize_game(room.players, room.score_limit)
            self._arm_clock(room)
            logger.info(f"Game started in room: {room_id}")
            await self.listener.game_started(room)
            return room.game

    async def handle_action(self, room_id: str, action: GameAction) -> ActionResult:
        """
        Apply a player's action.

        Room-level failures (unknown room, no game) raise ``GameError``;
        rule violations come back as a failed ``ActionResult`` and leave the
        room untouched.
        """
        async with self._locked(room_id) as room:
            if room.game is None:
                raise_error(ErrorCode.GAME_NOT_FOUND, "Game not found")

            result = self.engine.process_action(room.game, action)
            if result.success:
                await self._commit(room, result, [action.player_id])
            return result

    async def update_score_limit(self, room_id: str, player_id: str, score_limit: int) -> Room:
        async with self._locked(room_id) as room:
            if player_id != room.host_id:
                raise_error(ErrorCode.NOT_HOST, "Only the host can change the score limit")

            room.score_limit = score_limit
            if room.has_active_game:
                room.game.score_limit = score_limit
                room.game.version += 1
            await self.listener.room_updated(room)
            return room

    async def on_player_disconnected(self, room_id: str, player_id: str) -> None:
        """Mark the player offline; if they hold the turn, declare on their behalf."""
        async with self._locked(room_id) as room:
            member = room.get_member(player_id)
            if member is None:
                raise_error(ErrorCode.PLAYER_NOT_FOUND, "Player not in room")
            member.is_online = False
            logger.info(f"{member.name} went offline in room {room_id}")

            game = room.game
            if room.has_active_game and game.current_player.id == player_id and not game.current_player.has_shown:
                result = self.engine.force_show(game)
                if result.success:
                    await self._commit(room, result, [player_id])
                else:
                    logger.error(f"Auto-show failed in room {room_id}: {result.error_message}")

            if not any(m.is_online for m in room.players):
                # Nobody is left to play or to be timed out for
                self.registry.delete_room(room_id)
                logger.info(f"Room {room_id} closed, every member is offline")
                return

            await self.listener.room_updated(room)

    async def on_player_left(self, room_id: str, player_id: str) -> bool:
        """
        Remove the player from the room, passing their turn if they held it.

        Returns:
            True if the room was emptied and deleted
        """
        async with self._locked(room_id) as room:
            if self.registry.leave_room(room_id, player_id):
                return True

            game = room.game
            if room.has_active_game and game.current_player.id == player_id:
                result = self.engine.force_pass(game)
                if result.success:
                    await self._commit(room, result, [])
                else:
                    logger.error(f"Skipping departed player failed in room {room_id}: {result.error_message}")

            await self.listener.room_updated(room)
            return False

    async def close(self) -> None:
        for room in self.registry.list_rooms():
            if room.clock is not None:
                room.clock.cancel()

    async def _commit(self, room: Room, result: ActionResult, hand_changed: List[str]) -> None:
        room.game = result.state

        if result.game_ended:
            if room.clock is not None:
                room.clock.cancel()
        elif result.turn_changed:
            self._arm_clock(room)

        if result.round_ended:
            # Everyone was dealt a fresh hand, or has a final one to see
            hand_changed = [p.id for p in result.state.players]
        await self.listener.game_updated(room, hand_changed)

        if result.game_ended:
            await self.listener.game_ended(room)

    def _arm_clock(self, room: Room) -> None:
        if room.clock is None or room.game is None:
            return
        room_id = room.id

        async def expire(token: int):
            await self._on_turn_timeout(room_id, token)

        room.clock.arm(room.game.turn_number, expire)

    async def _on_turn_timeout(self, room_id: str, token: int) -> None:
        room = self.registry.get_room(room_id)
        if room is None:
            return

        async with room.lock:
            game = room.game
            if self.registry.get_room(room_id) is not room or game is None:
                return
            if game.game_ended or game.turn_number != token:
                logger.debug(f"Ignoring stale turn timer in room {room_id}")
                return

            logger.info(f"Turn timed out for {game.current_player.name} in room {room_id}")
            result = self.engine.force_pass(game)
            if result.success:
                await self._commit(room, result, [])
            else:
                logger.error(f"Forced pass failed in room {room_id}: {result.error_message}")
