"""Game constants and utilities"""

from typing import List

SUITS = ['hearts', 'diamonds', 'clubs', 'spades']
RANKS = ['A', '2', '3', '4', '5', '6', '7', '8', '9', '10', 'J', 'Q', 'K']
JOKER = 'JOKER'

# Physical jokers carry a suit only so clients can colour them
JOKER_CARDS = [('joker-1', 'hearts'), ('joker-2', 'spades')]

DECK_SIZE = len(SUITS) * len(RANKS) + len(JOKER_CARDS)  # 54
HAND_SIZE = 7
MIN_PLAYERS = 2
MAX_PLAYERS = 8
DEFAULT_SCORE_LIMIT = 100
TURN_TIMEOUT_SECONDS = 30

FACE_RANKS = ['J', 'Q', 'K']


def card_value(rank: str) -> int:
    """Base numeric value of a rank: A=1, J/Q/K=10, Joker=0, others face value."""
    if rank == 'A':
        return 1
    if rank in FACE_RANKS:
        return 10
    if rank == JOKER:
        return 0
    return int(rank)


def card_id(suit: str, rank: str) -> str:
    return f"{suit}-{rank}"


def joker_rank_choices() -> List[str]:
    """Ranks eligible to be the game's wild rank (never the physical Joker)."""
    return list(RANKS)
