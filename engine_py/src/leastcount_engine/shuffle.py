"""
Card shuffling and dealing utilities.
"""

import random
from typing import List, Optional

from .constants import DECK_SIZE, JOKER, JOKER_CARDS, RANKS, SUITS, card_id, card_value, joker_rank_choices
from .models import Card, GameState


def build_deck() -> List[Card]:
    """
    Create a fresh 54-card deck.

    Cards come out in a fixed order: every rank of each suit in suit order,
    followed by the two jokers. Each call returns new Card objects.
    """
    deck = []

    for suit in SUITS:
        for rank in RANKS:
            deck.append(Card(id=card_id(suit, rank), suit=suit, rank=rank, value=card_value(rank)))

    for joker_id, suit in JOKER_CARDS:
        deck.append(Card(id=joker_id, suit=suit, rank=JOKER, value=0, is_wild=True))

    return deck


def shuffle_deck(deck: List[Card], rng: Optional[random.Random] = None) -> List[Card]:
    """
    Shuffle a deck in place with a backward Fisher-Yates sweep.

    Args:
        deck: Cards to shuffle
        rng: Random source; pass a seeded ``random.Random`` for deterministic deals

    Returns:
        The same list, shuffled
    """
    rng = rng or random.Random()

    for i in range(len(deck) - 1, 0, -1):
        j = rng.randrange(i + 1)
        deck[i], deck[j] = deck[j], deck[i]

    return deck


def deal_cards(deck: List[Card], num_cards: int) -> List[Card]:
    """Deal a number of cards from the top of the deck."""
    if len(deck) < num_cards:
        raise ValueError(f"Cannot deal {num_cards} cards from deck of {len(deck)}")

    return [deck.pop() for _ in range(num_cards)]


def choose_joker_rank(rng: Optional[random.Random] = None) -> str:
    """Pick the game's wild rank uniformly from the 13 standard ranks."""
    rng = rng or random.Random()
    return rng.choice(joker_rank_choices())


def count_cards(state: GameState) -> int:
    return len(state.deck) + len(state.discard_pile) + sum(len(p.hand) for p in state.players)


def validate_deck_integrity(state: GameState) -> bool:
    """
    Validate that all cards are accounted for and no duplicates exist.

    Args:
        state: Game state to validate

    Returns:
        True if deck, discard pile and hands partition exactly one full deck
    """
    all_cards = list(state.deck) + list(state.discard_pile)
    for player in state.players:
        all_cards.extend(player.hand)

    ids = [card.id for card in all_cards]
    expected = {card.id for card in build_deck()}

    return (
        len(ids) == DECK_SIZE and
        len(set(ids)) == len(ids) and  # No duplicates
        set(ids) == expected
    )
