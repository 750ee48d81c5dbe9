"""
State serialization and sanitization utilities.
"""

from typing import Any, Dict, List, Optional

from .models import Card, GamePlayer, GameState, Room, RoomMember
from .scoring import leaderboard


def serialize_card(card: Card) -> Dict[str, Any]:
    return {
        "id": card.id,
        "suit": card.suit,
        "rank": card.rank,
        "value": card.value,
        "is_wild": card.is_wild,
    }


def sanitize_game_state(state: GameState, viewer_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Sanitize game state for transmission to clients.

    Args:
        state: Game state to sanitize
        viewer_id: ID of the player viewing the state (to show their cards)

    Returns:
        Sanitized state dictionary safe for JSON transmission. Hands are
        replaced by counts for everyone except the viewer, and the deck is
        never revealed.
    """
    winner = state.get_player(state.winner) if state.winner else None
    sanitized = {
        "id": state.id,
        "version": state.version,
        "current_player_index": state.current_player_index,
        "current_player_id": state.current_player.id if state.players else None,
        "phase": state.phase.value,
        "turn_number": state.turn_number,
        "round_number": state.round_number,
        "is_first_round": state.is_first_round,
        "joker_rank": state.joker_rank,
        "score_limit": state.score_limit,
        "deck_count": len(state.deck),
        "discard_top": serialize_card(state.discard_pile[-1]) if state.discard_pile else None,
        "discard_count": len(state.discard_pile),
        "game_ended": state.game_ended,
        "winner": state.winner,
        "winner_name": winner.name if winner else None,
        "round_history": [dict(entry) for entry in state.round_history],
        "players": [],
    }

    for player in state.players:
        sanitized_player = {
            "id": player.id,
            "name": player.name,
            "hand_count": len(player.hand),
            "total_score": player.total_score,
            "has_shown": player.has_shown,
            "can_show": player.can_show,
        }

        # Cards are only ever visible to their holder; a declared score is public
        if player.id == viewer_id:
            sanitized_player["hand"] = [serialize_card(c) for c in player.hand]
        if player.id == viewer_id or player.has_shown:
            sanitized_player["score"] = player.score

        sanitized["players"].append(sanitized_player)

    return sanitized


def serialize_private_hand(player: GamePlayer) -> Dict[str, Any]:
    """Payload delivered only to the holder of the hand."""
    return {
        "player_id": player.id,
        "hand": [serialize_card(c) for c in player.hand],
        "score": player.score,
        "can_show": player.can_show,
    }


def serialize_member(member: RoomMember) -> Dict[str, Any]:
    return {
        "id": member.id,
        "name": member.name,
        "is_host": member.is_host,
        "is_online": member.is_online,
    }


def serialize_room(room: Room, viewer_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "id": room.id,
        "host_id": room.host_id,
        "players": [serialize_member(p) for p in room.players],
        "max_players": room.max_players,
        "score_limit": room.score_limit,
        "created_at": room.created_at,
        "game": sanitize_game_state(room.game, viewer_id) if room.game else None,
    }


def serialize_game_over(state: GameState) -> Dict[str, Any]:
    return {
        "state": sanitize_game_state(state),
        "leaderboard": leaderboard(state),
    }


def get_public_room_info(room: Room) -> Dict[str, Any]:
    """Get public information about a room for listings."""
    return {
        "id": room.id,
        "player_count": len(room.players),
        "max_players": room.max_players,
        "score_limit": room.score_limit,
        "in_game": room.has_active_game,
    }


def list_public_rooms(rooms: List[Room]) -> List[Dict[str, Any]]:
    return [get_public_room_info(room) for room in rooms]
