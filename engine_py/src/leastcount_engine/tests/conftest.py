import random

import pytest

from leastcount_engine.engine import LeastCountEngine
from leastcount_engine.models import ActionType, GameAction, RoomMember


@pytest.fixture
def engine():
    return LeastCountEngine(rng=random.Random(42))


@pytest.fixture
def members():
    return [
        RoomMember(id="p1", name="Alice", is_host=True),
        RoomMember(id="p2", name="Bob"),
        RoomMember(id="p3", name="Charlie"),
    ]


@pytest.fixture
def two_player_game(engine, members):
    return engine.initialize_game(members[:2], score_limit=50)


@pytest.fixture
def three_player_game(engine, members):
    return engine.initialize_game(members, score_limit=1000)


@pytest.fixture
def play_turn(engine):
    """Draw from the deck and discard the first card in hand for the current player."""
    def _play(state):
        player_id = state.current_player.id
        drawn = engine.process_action(state, GameAction(player_id, ActionType.DRAW_DECK))
        assert drawn.success, drawn.error_message
        card_id = drawn.state.current_player.hand[0].id
        discarded = engine.process_action(drawn.state, GameAction(player_id, ActionType.DISCARD, card_id))
        assert discarded.success, discarded.error_message
        return discarded.state
    return _play
