"""Hand scoring against the game's wild rank."""

from typing import Dict, Iterable, List, Optional

from .constants import JOKER
from .models import Card, GamePlayer, GameState


def is_wild(card: Card, joker_rank: Optional[str]) -> bool:
    return card.rank == JOKER or card.rank == joker_rank


def mark_wildness(cards: Iterable[Card], joker_rank: Optional[str]) -> None:
    for card in cards:
        card.is_wild = is_wild(card, joker_rank)


def hand_value(hand: Iterable[Card], joker_rank: Optional[str]) -> int:
    """
    Flat sum of base card values. Physical jokers and every card of the
    joker rank count as zero; no meld or sequence discount applies.
    """
    return sum(card.value for card in hand if not is_wild(card, joker_rank))


def rescore_player(player: GamePlayer, joker_rank: str) -> int:
    mark_wildness(player.hand, joker_rank)
    player.score = hand_value(player.hand, joker_rank)
    return player.score


def pick_winner(players: List[GamePlayer]) -> GamePlayer:
    """Lowest total wins; on a tie the player seated first is kept."""
    winner = players[0]
    for player in players[1:]:
        if player.total_score < winner.total_score:
            winner = player
    return winner


def leaderboard(state: GameState) -> List[Dict]:
    ranked = sorted(state.players, key=lambda p: p.total_score)
    return [
        {
            "position": i + 1,
            "player_id": p.id,
            "name": p.name,
            "total_score": p.total_score,
        }
        for i, p in enumerate(ranked)
    ]
