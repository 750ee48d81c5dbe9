"""Authoritative game engine and room coordination for the Least Count card game."""

from .coordinator import GameCoordinator, RoomListener
from .engine import ActionResult, LeastCountEngine
from .errors import ErrorCode, GameError
from .models import ActionType, Card, GameAction, GamePlayer, GameState, Room, RoomMember, TurnPhase
from .rooms import RoomRegistry
from .rules import RuleConfig, create_rules

__version__ = "1.0.0"

__all__ = [
    "ActionResult",
    "ActionType",
    "Card",
    "ErrorCode",
    "GameAction",
    "GameCoordinator",
    "GameError",
    "GamePlayer",
    "GameState",
    "LeastCountEngine",
    "Room",
    "RoomListener",
    "RoomMember",
    "RoomRegistry",
    "RuleConfig",
    "TurnPhase",
    "create_rules",
]
