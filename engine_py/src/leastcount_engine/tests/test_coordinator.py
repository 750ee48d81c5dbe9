"""
Tests for per-room coordination: locking, turn timer, disconnects and departures.
"""

import asyncio
import random

import pytest
import pytest_asyncio

from leastcount_engine.coordinator import GameCoordinator, RoomListener
from leastcount_engine.engine import LeastCountEngine
from leastcount_engine.errors import ErrorCode, GameError
from leastcount_engine.models import ActionType, GameAction
from leastcount_engine.rules import create_rules


class RecordingListener(RoomListener):
    def __init__(self):
        self.events = []
        self.turns = []

    async def room_updated(self, room):
        self.events.append(("room_updated", room.id))

    async def game_started(self, room):
        self.events.append(("game_started", room.id))

    async def game_updated(self, room, hand_changed):
        self.events.append(("game_updated", list(hand_changed)))
        self.turns.append(room.game.current_player.id)

    async def game_ended(self, room):
        self.events.append(("game_ended", room.game.winner))

    def names(self):
        return [name for name, _ in self.events]


def make_coordinator(listener, turn_timeout=300):
    rules = create_rules(turn_timeout=turn_timeout)
    return GameCoordinator(
        engine=LeastCountEngine(rng=random.Random(9)),
        listener=listener,
        rules=rules,
    )


@pytest.fixture
def listener():
    return RecordingListener()


@pytest_asyncio.fixture
async def coordinator(listener):
    coordinator = make_coordinator(listener)
    yield coordinator
    await coordinator.close()


async def seat(coordinator, *names, score_limit=None):
    room, host = await coordinator.create_room(names[0], score_limit)
    ids = [host.id]
    for name in names[1:]:
        _, member = await coordinator.join_room(room.id, name)
        ids.append(member.id)
    return room, ids


async def play(coordinator, room, action_type, card_id=None):
    player_id = room.game.current_player.id
    return await coordinator.handle_action(room.id, GameAction(player_id, action_type, card_id))


async def play_turn(coordinator, room):
    drawn = await play(coordinator, room, ActionType.DRAW_DECK)
    assert drawn.success, drawn.error_message
    discarded = await play(coordinator, room, ActionType.DISCARD, room.game.current_player.hand[0].id)
    assert discarded.success, discarded.error_message


@pytest.mark.asyncio
async def test_join_notifies_room(coordinator, listener):
    room, ids = await seat(coordinator, "Alice", "Bob")
    assert len(room.players) == 2
    assert listener.names() == ["room_updated"]


@pytest.mark.asyncio
async def test_start_requires_host(coordinator):
    room, (host, guest) = await seat(coordinator, "Alice", "Bob")
    with pytest.raises(GameError) as exc:
        await coordinator.start_game(room.id, guest)
    assert exc.value.code == ErrorCode.NOT_HOST
    assert room.game is None


@pytest.mark.asyncio
async def test_start_requires_two_players(coordinator):
    room, (host,) = await seat(coordinator, "Alice")
    with pytest.raises(GameError) as exc:
        await coordinator.start_game(room.id, host)
    assert exc.value.code == ErrorCode.NOT_ENOUGH_PLAYERS


@pytest.mark.asyncio
async def test_start_twice_rejected(coordinator):
    room, (host, _) = await seat(coordinator, "Alice", "Bob")
    await coordinator.start_game(room.id, host)
    with pytest.raises(GameError) as exc:
        await coordinator.start_game(room.id, host)
    assert exc.value.code == ErrorCode.GAME_IN_PROGRESS


@pytest.mark.asyncio
async def test_start_deals_and_arms_clock(coordinator, listener):
    room, (host, guest) = await seat(coordinator, "Alice", "Bob", score_limit=60)
    game = await coordinator.start_game(room.id, host)

    assert room.game is game
    assert game.score_limit == 60
    assert [p.id for p in game.players] == [host, guest]
    assert room.clock.armed
    assert room.clock.token == game.turn_number
    assert listener.names()[-1] == "game_started"


@pytest.mark.asyncio
async def test_action_on_missing_room_or_game(coordinator):
    with pytest.raises(GameError) as exc:
        await coordinator.handle_action("NOPE", GameAction("x", ActionType.PASS))
    assert exc.value.code == ErrorCode.ROOM_NOT_FOUND

    room, (host, _) = await seat(coordinator, "Alice", "Bob")
    with pytest.raises(GameError) as exc:
        await coordinator.handle_action(room.id, GameAction(host, ActionType.PASS))
    assert exc.value.code == ErrorCode.GAME_NOT_FOUND


@pytest.mark.asyncio
async def test_rejected_action_changes_nothing(coordinator, listener):
    room, (host, guest) = await seat(coordinator, "Alice", "Bob")
    await coordinator.start_game(room.id, host)
    game = room.game
    token = room.clock.token
    sent = len(listener.events)

    result = await coordinator.handle_action(room.id, GameAction(guest, ActionType.DRAW_DECK))

    assert not result.success
    assert result.error_code == ErrorCode.NOT_YOUR_TURN
    assert room.game is game
    assert room.clock.token == token
    assert len(listener.events) == sent


@pytest.mark.asyncio
async def test_accepted_actions_commit_and_rearm(coordinator, listener):
    room, (host, guest) = await seat(coordinator, "Alice", "Bob")
    await coordinator.start_game(room.id, host)
    token = room.clock.token

    drawn = await play(coordinator, room, ActionType.DRAW_DECK)
    assert drawn.success
    assert room.game is drawn.state
    assert listener.events[-1] == ("game_updated", [host])
    # still the same turn
    assert room.clock.token == token

    await play(coordinator, room, ActionType.DISCARD, room.game.current_player.hand[0].id)
    assert room.game.current_player.id == guest
    assert room.clock.armed
    assert room.clock.token == room.game.turn_number != token


@pytest.mark.asyncio
async def test_concurrent_actions_serialize(coordinator):
    room, (host, guest) = await seat(coordinator, "Alice", "Bob")
    await coordinator.start_game(room.id, host)

    results = await asyncio.gather(
        coordinator.handle_action(room.id, GameAction(host, ActionType.DRAW_DECK)),
        coordinator.handle_action(room.id, GameAction(host, ActionType.DRAW_DISCARD)),
    )

    assert [r.success for r in results] == [True, False]
    assert results[1].error_code == ErrorCode.CANNOT_DRAW
    assert len(room.game.players[0].hand) == 8


@pytest.mark.asyncio
async def test_game_end_stops_clock(coordinator, listener):
    room, (host, guest) = await seat(coordinator, "Alice", "Bob")
    await coordinator.start_game(room.id, host)
    room.game.score_limit = 0
    await play_turn(coordinator, room)
    await play_turn(coordinator, room)

    result = await play(coordinator, room, ActionType.DECLARE)

    assert result.game_ended
    assert room.game.game_ended
    assert not room.clock.armed
    assert not room.has_active_game
    assert listener.names()[-2:] == ["game_updated", "game_ended"]
    # every player gets their final hand
    assert set(listener.events[-2][1]) == {host, guest}


@pytest.mark.asyncio
async def test_round_end_resends_every_hand(listener):
    coordinator = make_coordinator(listener)
    room, (host, guest) = await seat(coordinator, "Alice", "Bob", score_limit=1000)
    await coordinator.start_game(room.id, host)
    await play_turn(coordinator, room)
    await play_turn(coordinator, room)

    result = await play(coordinator, room, ActionType.DECLARE)

    assert result.round_ended
    assert not result.game_ended
    assert room.game.round_number == 2
    assert listener.events[-1] == ("game_updated", [host, guest])
    assert room.clock.token == room.game.turn_number
    await coordinator.close()


@pytest.mark.asyncio
async def test_update_score_limit(coordinator):
    room, (host, guest) = await seat(coordinator, "Alice", "Bob")
    with pytest.raises(GameError) as exc:
        await coordinator.update_score_limit(room.id, guest, 20)
    assert exc.value.code == ErrorCode.NOT_HOST

    await coordinator.start_game(room.id, host)
    await coordinator.update_score_limit(room.id, host, 20)
    assert room.score_limit == 20
    assert room.game.score_limit == 20


@pytest.mark.asyncio
async def test_disconnect_of_current_player_auto_shows(coordinator):
    room, (a, b, c) = await seat(coordinator, "Alice", "Bob", "Charlie")
    await coordinator.start_game(room.id, a)

    # the first-round gate does not apply to a forced show
    await coordinator.on_player_disconnected(room.id, a)

    assert not room.get_member(a).is_online
    assert room.game.get_player(a).has_shown
    assert room.game.current_player.id == b
    assert room.clock.token == room.game.turn_number


@pytest.mark.asyncio
async def test_disconnect_of_waiting_player_only_marks_offline(coordinator):
    room, (a, b, c) = await seat(coordinator, "Alice", "Bob", "Charlie")
    await coordinator.start_game(room.id, a)
    game = room.game

    await coordinator.on_player_disconnected(room.id, c)

    assert not room.get_member(c).is_online
    assert room.game is game
    assert not game.get_player(c).has_shown


@pytest.mark.asyncio
async def test_leave_passes_current_turn(coordinator):
    room, (a, b, c) = await seat(coordinator, "Alice", "Bob", "Charlie")
    await coordinator.start_game(room.id, a)

    deleted = await coordinator.on_player_left(room.id, a)

    assert not deleted
    assert room.get_member(a) is None
    assert room.host_id == b
    assert room.game.current_player.id == b


@pytest.mark.asyncio
async def test_last_leave_deletes_room(coordinator):
    room, (a, b) = await seat(coordinator, "Alice", "Bob")
    assert not await coordinator.on_player_left(room.id, a)
    assert await coordinator.on_player_left(room.id, b)
    assert coordinator.registry.get_room(room.id) is None

    with pytest.raises(GameError) as exc:
        await coordinator.start_game(room.id, b)
    assert exc.value.code == ErrorCode.ROOM_NOT_FOUND


@pytest.mark.asyncio
async def test_timeouts_rotate_past_disconnected_players(coordinator):
    room, (a, b, c) = await seat(coordinator, "Alice", "Bob", "Charlie")
    await coordinator.start_game(room.id, a)
    await coordinator.on_player_disconnected(room.id, b)
    await coordinator.on_player_disconnected(room.id, c)
    await play_turn(coordinator, room)
    assert room.game.current_player.id == b

    await coordinator._on_turn_timeout(room.id, room.clock.token)
    assert room.game.current_player.id == c

    await coordinator._on_turn_timeout(room.id, room.clock.token)
    assert room.game.current_player.id == a
    assert not room.game.current_player.has_shown
    assert room.clock.token == room.game.turn_number


@pytest.mark.asyncio
async def test_stale_timeout_is_ignored(coordinator):
    room, (a, b) = await seat(coordinator, "Alice", "Bob")
    await coordinator.start_game(room.id, a)
    stale = room.clock.token
    await coordinator.handle_action(room.id, GameAction(a, ActionType.PASS))
    game = room.game

    await coordinator._on_turn_timeout(room.id, stale)

    assert room.game is game
    assert room.game.current_player.id == b


@pytest.mark.asyncio
async def test_timeout_for_deleted_room_is_ignored(coordinator):
    room, (a, b) = await seat(coordinator, "Alice", "Bob")
    await coordinator.start_game(room.id, a)
    token = room.clock.token
    coordinator.registry.delete_room(room.id)

    await coordinator._on_turn_timeout(room.id, token)
    assert room.game.current_player.id == a


@pytest.mark.asyncio
async def test_turn_timer_passes_idle_players(listener):
    coordinator = make_coordinator(listener, turn_timeout=0.02)
    room, (a, b, c) = await seat(coordinator, "Alice", "Bob", "Charlie")
    await coordinator.start_game(room.id, a)

    for _ in range(100):
        if len(listener.turns) >= 3:
            break
        await asyncio.sleep(0.02)
    await coordinator.close()

    assert listener.turns[:3] == [b, c, a]


@pytest.mark.asyncio
async def test_room_closes_when_everyone_is_offline(coordinator):
    room, (a, b) = await seat(coordinator, "Alice", "Bob")
    await coordinator.start_game(room.id, a)

    await coordinator.on_player_disconnected(room.id, b)
    assert coordinator.registry.get_room(room.id) is room
    assert room.clock.armed

    await coordinator.on_player_disconnected(room.id, a)

    assert coordinator.registry.get_room(room.id) is None
    assert not room.clock.armed
