# engine_py/src/leastcount_engine/errors.py

from enum import Enum


class ErrorCode(str, Enum):
    """Error codes reported back to the originating client."""
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    CANNOT_DRAW = "CANNOT_DRAW"
    CARD_NOT_FOUND = "CARD_NOT_FOUND"
    CANNOT_SHOW_FIRST_ROUND = "CANNOT_SHOW_FIRST_ROUND"
    UNKNOWN_ACTION = "UNKNOWN_ACTION"
    ACTION_NOT_ALLOWED = "ACTION_NOT_ALLOWED"
    NOT_ENOUGH_PLAYERS = "NOT_ENOUGH_PLAYERS"
    ROOM_FULL = "ROOM_FULL"
    ROOM_ALREADY_EXISTS = "ROOM_ALREADY_EXISTS"
    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    GAME_NOT_FOUND = "GAME_NOT_FOUND"
    GAME_IN_PROGRESS = "GAME_IN_PROGRESS"
    NOT_HOST = "NOT_HOST"
    INVALID_EVENT = "INVALID_EVENT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class GameError(Exception):
    """Base exception for game-related errors."""
    def __init__(self, code: ErrorCode, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code.value}] {message}")


# Helper function to raise common errors
def raise_error(code: ErrorCode, message: str):
    raise GameError(code, message)
