"""Game models and data structures"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from .clock import TurnClock


class TurnPhase(str, Enum):
    """Where the current player is within their turn."""
    AWAITING_DRAW = "AWAITING_DRAW"
    AWAITING_DISCARD = "AWAITING_DISCARD"


class ActionType(str, Enum):
    DRAW_DECK = "DRAW_DECK"
    DRAW_DISCARD = "DRAW_DISCARD"
    DISCARD = "DISCARD"
    DECLARE = "DECLARE"
    PASS = "PASS"


@dataclass
class Card:
    id: str
    suit: str
    rank: str
    value: int
    # Recomputed against the game's joker rank every time the card enters a hand
    is_wild: bool = False


@dataclass
class GamePlayer:
    id: str
    name: str
    hand: List[Card] = field(default_factory=list)
    score: int = 0  # value of the current hand
    total_score: int = 0
    has_shown: bool = False
    can_show: bool = False


@dataclass
class GameState:
    id: str
    players: List[GamePlayer]
    deck: List[Card] = field(default_factory=list)  # top of deck is the last element
    discard_pile: List[Card] = field(default_factory=list)  # top is the last element
    joker_rank: str = 'A'
    score_limit: int = 100
    current_player_index: int = 0
    phase: TurnPhase = TurnPhase.AWAITING_DRAW
    turn_number: int = 0
    round_number: int = 1
    is_first_round: bool = True
    game_ended: bool = False
    winner: Optional[str] = None  # player id
    version: int = 0
    round_history: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def current_player(self) -> GamePlayer:
        return self.players[self.current_player_index]

    def get_player(self, player_id: str) -> Optional[GamePlayer]:
        return next((p for p in self.players if p.id == player_id), None)

    def active_players(self) -> List[GamePlayer]:
        """Players that have not declared this round."""
        return [p for p in self.players if not p.has_shown]


@dataclass
class GameAction:
    player_id: str
    type: Any  # ActionType, or a raw string from the wire
    card_id: Optional[str] = None


@dataclass
class RoomMember:
    id: str
    name: str
    is_host: bool = False
    is_online: bool = True


@dataclass
class Room:
    id: str
    host_id: str
    score_limit: int
    max_players: int = 8
    players: List[RoomMember] = field(default_factory=list)
    game: Optional[GameState] = None
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    # Single-writer discipline: every mutation of this room happens under this lock
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)
    clock: Optional[TurnClock] = field(default=None, repr=False, compare=False)

    def get_member(self, player_id: str) -> Optional[RoomMember]:
        return next((p for p in self.players if p.id == player_id), None)

    @property
    def has_active_game(self) -> bool:
        return self.game is not None and not self.game.game_ended
