"""
Card shuffling and dealing utilities.
"""

import random
from typing import List, Optional, Tuple

from .constants import SUITS, VALUES
from .errors import INSUFFICIENT_CARDS, GameError
from .models import Card, RoomState


def build_deck() -> List[Card]:
    """Create a standard 52-card deck in suit-then-value order."""
    return [Card(suit=suit, value=value) for suit in SUITS for value in VALUES]


def shuffle_deck(deck: List[Card], seed: Optional[int] = None) -> List[Card]:
    """
    Shuffle a deck deterministically if seed is provided.

    Args:
        deck: Cards to shuffle
        seed: Optional seed for deterministic shuffling

    Returns:
        Shuffled copy of the deck
    """
    deck_copy = deck.copy()

    if seed is not None:
        rng = random.Random(seed)
        rng.shuffle(deck_copy)
    else:
        random.shuffle(deck_copy)

    return deck_copy


def deal_hands(deck: List[Card], seat_count: int, cards_per_seat: int) -> Tuple[List[List[Card]], List[Card]]:
    """
    Deal fixed-size hands from the front of an already shuffled deck.

    Seat 0 takes the first block of cards, seat 1 the next, and so on.

    Returns:
        (hands indexed by seat, undealt remainder)

    Raises:
        GameError: INSUFFICIENT_CARDS if the deck cannot cover every seat
    """
    needed = seat_count * cards_per_seat
    if needed > len(deck):
        raise GameError(
            INSUFFICIENT_CARDS,
            f"Cannot deal {cards_per_seat} cards to {seat_count} seats from {len(deck)} cards"
        )

    hands = [deck[seat * cards_per_seat:(seat + 1) * cards_per_seat] for seat in range(seat_count)]
    return hands, deck[needed:]


def validate_deck_integrity(state: RoomState) -> bool:
    """
    Validate that all cards are accounted for and no duplicates exist.

    Before the first deal nothing is in play and the check passes trivially.
    """
    all_cards: List[Card] = []

    for player in state.players:
        all_cards.extend(player.hand)
    all_cards.extend(play.card for play in state.current_trick)
    all_cards.extend(state.deck)
    all_cards.extend(state.discard)

    if not all_cards:
        return True

    actual_cards = set(all_cards)
    return (
        len(all_cards) == len(actual_cards) and  # No duplicates
        actual_cards == set(build_deck())
    )
