"""
WebSocket server and event handling for the Least Count game.
"""

from .events import *
from .server import ConnectionManager, GameWebSocketManager

__all__ = ["ConnectionManager", "GameWebSocketManager"]
