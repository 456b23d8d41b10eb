"""
Mulligan exchange: discard marked cards and redraw from the deck.
"""

from typing import Iterable, List, Tuple

from .errors import INSUFFICIENT_CARDS, INVALID_CARD, GameError
from .models import Card


def normalize_discard_indices(hand: List[Card], discard_indices: Iterable[int]) -> List[int]:
    """Unique indices, highest first, each checked against the hand."""
    indices = sorted(set(discard_indices), reverse=True)
    for index in indices:
        if index < 0 or index >= len(hand):
            raise GameError(INVALID_CARD, f"No card at position {index}")
    return indices


def exchange_cards(
    hand: List[Card],
    discard_indices: Iterable[int],
    deck: List[Card]
) -> Tuple[List[Card], List[Card], List[Card]]:
    """
    Replace the marked cards with cards from the front of the deck.

    Indices are removed highest first so earlier removals never shift the
    positions of later ones. Replacements are appended in draw order.

    Args:
        hand: Current hand
        discard_indices: Hand positions to throw away (order and duplicates don't matter)
        deck: Undealt cards

    Returns:
        (new hand, new deck, discarded cards)

    Raises:
        GameError: INSUFFICIENT_CARDS if the deck can't replace every discard,
            INVALID_CARD for an index outside the hand
    """
    indices = normalize_discard_indices(hand, discard_indices)
    if len(indices) > len(deck):
        raise GameError(
            INSUFFICIENT_CARDS,
            f"Only {len(deck)} cards left to replace {len(indices)} discards"
        )

    new_hand = list(hand)
    discarded = []
    for index in indices:
        discarded.append(new_hand.pop(index))

    drawn = deck[:len(indices)]
    new_hand.extend(drawn)
    return new_hand, deck[len(indices):], discarded
