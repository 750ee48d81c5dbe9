"""Turn state machine for Least Count: deal, validate and apply actions, score rounds."""

import copy
import logging
import random
import uuid
from typing import Callable, List, Optional

from .constants import DECK_SIZE, HAND_SIZE
from .errors import ErrorCode, GameError, raise_error
from .models import ActionType, Card, GameAction, GamePlayer, GameState, TurnPhase
from .scoring import is_wild, pick_winner, rescore_player
from .shuffle import build_deck, choose_joker_rank, deal_cards, shuffle_deck

logger = logging.getLogger(__name__)


class ActionResult:
    """Outcome of a single engine mutation."""

    def __init__(
        self,
        success: bool,
        state: GameState,
        error_code: Optional[ErrorCode] = None,
        error_message: Optional[str] = None,
        round_ended: bool = False,
        game_ended: bool = False,
        turn_changed: bool = False
    ):
        self.success = success
        self.state = state
        self.error_code = error_code
        self.error_message = error_message
        self.round_ended = round_ended
        self.game_ended = game_ended
        self.turn_changed = turn_changed

    @classmethod
    def ok(cls, state: GameState, **flags) -> 'ActionResult':
        return cls(success=True, state=state, **flags)

    @classmethod
    def error(cls, state: GameState, error_code: ErrorCode, error_message: str) -> 'ActionResult':
        return cls(success=False, state=state, error_code=error_code, error_message=error_message)

    def __repr__(self):
        if self.success:
            return f"ActionResult(success=True, round_ended={self.round_ended}, game_ended={self.game_ended})"
        return f"ActionResult(success=False, error_code={self.error_code})"


class LeastCountEngine:
    """
    Authoritative game-state engine.

    The engine never mutates the state it is handed: every action runs
    against a deep copy which is returned on success. A rejected action
    (or an internal inconsistency) hands back the original state untouched.
    """

    def __init__(self, rng: Optional[random.Random] = None, hand_size: int = HAND_SIZE):
        self.rng = rng or random.Random()
        self.hand_size = hand_size

    def hand_size_for(self, player_count: int) -> int:
        # A full table of 8 cannot take 7 each and still leave a discard
        return min(self.hand_size, (DECK_SIZE - 1) // max(player_count, 1))

    def initialize_game(self, players, score_limit: int, game_id: Optional[str] = None) -> GameState:
        """
        Deal the first round.

        Args:
            players: Roster entries exposing ``id`` and ``name``; at least two
            score_limit: Total at which the game ends
            game_id: Optional identifier, generated when omitted

        Returns:
            A new GameState with a dealt hand per player, one face-up discard
            and the game's joker rank chosen
        """
        state = GameState(
            id=game_id or str(uuid.uuid4()),
            players=[GamePlayer(id=p.id, name=p.name) for p in players],
            score_limit=score_limit,
        )
        self._deal_round(state)
        state.joker_rank = choose_joker_rank(self.rng)
        for player in state.players:
            rescore_player(player, state.joker_rank)

        state.current_player_index = 0
        state.phase = TurnPhase.AWAITING_DRAW
        state.turn_number = 1
        state.round_number = 1
        state.is_first_round = True
        state.game_ended = False
        state.winner = None

        logger.info(
            f"Game {state.id} initialized for {len(state.players)} players, "
            f"joker rank {state.joker_rank}, score limit {score_limit}"
        )
        return state

    def process_action(self, state: GameState, action: GameAction) -> ActionResult:
        """Validate and apply one player-submitted action."""
        return self._apply(state, lambda working: self._dispatch(working, action))

    def force_pass(self, state: GameState) -> ActionResult:
        """Pass the current player's turn without a turn-ownership check (timeouts, departures)."""
        return self._apply(state, self._advance_turn)

    def force_show(self, state: GameState) -> ActionResult:
        """Declare on behalf of the current player, ignoring the first-round gate (disconnects)."""
        def mutate(working: GameState):
            player = self._current_player(working)
            if player.has_shown:
                raise_error(ErrorCode.ACTION_NOT_ALLOWED, f"{player.name} has already shown")
            self._show(working, player)

        return self._apply(state, mutate)

    def _apply(self, state: GameState, mutate: Callable[[GameState], None]) -> ActionResult:
        if state.game_ended:
            return ActionResult.error(state, ErrorCode.ACTION_NOT_ALLOWED, "Game has ended")

        working = copy.deepcopy(state)
        try:
            mutate(working)
        except GameError as e:
            logger.debug(f"Rejected action in game {state.id}: {e}")
            return ActionResult.error(state, e.code, e.message)

        working.version += 1
        return ActionResult.ok(
            working,
            round_ended=working.round_number != state.round_number or working.game_ended,
            game_ended=working.game_ended,
            turn_changed=working.turn_number != state.turn_number,
        )

    def _current_player(self, state: GameState) -> GamePlayer:
        if not 0 <= state.current_player_index < len(state.players):
            raise_error(
                ErrorCode.INTERNAL_ERROR,
                f"Turn index {state.current_player_index} does not reference a player"
            )
        return state.players[state.current_player_index]

    def _dispatch(self, state: GameState, action: GameAction):
        player = self._current_player(state)
        if player.id != action.player_id:
            raise_error(ErrorCode.NOT_YOUR_TURN, "Not your turn")

        try:
            action_type = ActionType(action.type)
        except ValueError:
            raise_error(ErrorCode.UNKNOWN_ACTION, f"Unknown action: {action.type}")

        if action_type == ActionType.DRAW_DECK:
            self._draw(state, player, state.deck, "deck")
        elif action_type == ActionType.DRAW_DISCARD:
            self._draw(state, player, state.discard_pile, "discard pile")
        elif action_type == ActionType.DISCARD:
            self._discard(state, player, action.card_id)
        elif action_type == ActionType.DECLARE:
            self._declare(state, player)
        elif action_type == ActionType.PASS:
            self._advance_turn(state)

    def _draw(self, state: GameState, player: GamePlayer, pile: List[Card], source: str):
        if state.phase != TurnPhase.AWAITING_DRAW:
            raise_error(ErrorCode.CANNOT_DRAW, "Already drew this turn")
        if not pile:
            raise_error(ErrorCode.CANNOT_DRAW, f"Cannot draw from empty {source}")

        card = pile.pop()
        card.is_wild = is_wild(card, state.joker_rank)
        player.hand.append(card)
        rescore_player(player, state.joker_rank)
        state.phase = TurnPhase.AWAITING_DISCARD

    def _discard(self, state: GameState, player: GamePlayer, card_id: Optional[str]):
        if state.phase != TurnPhase.AWAITING_DISCARD:
            raise_error(ErrorCode.ACTION_NOT_ALLOWED, "Draw a card before discarding")

        index = next((i for i, c in enumerate(player.hand) if c.id == card_id), None)
        if index is None:
            raise_error(ErrorCode.CARD_NOT_FOUND, f"Card not found: {card_id}")

        state.discard_pile.append(player.hand.pop(index))
        rescore_player(player, state.joker_rank)
        player.can_show = True
        self._advance_turn(state)

    def _declare(self, state: GameState, player: GamePlayer):
        if state.phase != TurnPhase.AWAITING_DRAW:
            raise_error(ErrorCode.ACTION_NOT_ALLOWED, "Show at the start of your turn, before drawing")
        if state.is_first_round and not player.can_show:
            raise_error(ErrorCode.CANNOT_SHOW_FIRST_ROUND, "Cannot show in first round without playing")
        self._show(state, player)

    def _show(self, state: GameState, player: GamePlayer):
        player.has_shown = True
        rescore_player(player, state.joker_rank)
        logger.debug(f"{player.name} showed with {player.score} in game {state.id}")

        if len(state.active_players()) <= 1:
            self._end_round(state)
        else:
            self._advance_turn(state)

    def _advance_turn(self, state: GameState):
        """Move to the next player who has not shown."""
        n = len(state.players)
        for _ in range(n):
            state.current_player_index = (state.current_player_index + 1) % n
            if not state.players[state.current_player_index].has_shown:
                state.phase = TurnPhase.AWAITING_DRAW
                state.turn_number += 1
                return
        raise_error(ErrorCode.INTERNAL_ERROR, "No player left to take a turn")

    def _end_round(self, state: GameState):
        round_scores = {}
        for player in state.players:
            # Players still holding cards are scored on their hand as it stands
            player.has_shown = True
            rescore_player(player, state.joker_rank)
            player.total_score += player.score
            round_scores[player.id] = player.score

        state.round_history.append({
            "round_number": state.round_number,
            "scores": round_scores,
            "totals": {p.id: p.total_score for p in state.players},
        })
        logger.info(f"Round {state.round_number} of game {state.id} ended: {round_scores}")

        if max(p.total_score for p in state.players) >= state.score_limit:
            winner = pick_winner(state.players)
            state.game_ended = True
            state.winner = winner.id
            logger.info(f"Game {state.id} ended, winner {winner.name} with {winner.total_score}")
            return

        state.round_number += 1
        state.is_first_round = False
        self._deal_round(state)
        for player in state.players:
            rescore_player(player, state.joker_rank)
        state.current_player_index = 0
        state.phase = TurnPhase.AWAITING_DRAW
        state.turn_number += 1

    def _deal_round(self, state: GameState):
        """Fresh shuffled deck, a hand for everyone and one face-up discard."""
        deck = shuffle_deck(build_deck(), self.rng)
        hand_size = self.hand_size_for(len(state.players))
        for player in state.players:
            player.hand = deal_cards(deck, hand_size)
            player.has_shown = False
            player.can_show = False
        state.discard_pile = deal_cards(deck, 1)
        state.deck = deck
