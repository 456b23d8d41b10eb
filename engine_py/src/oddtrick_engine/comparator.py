"""
Card ranking under the round's chosen order, plus trump and odd-card predicates.
"""

from typing import List, Optional

from .constants import HIGH_ORDER, LOW_ORDER, ODD_VALUES, ORDER_HIGH, ORDER_LOW
from .models import Card


def get_rank_order(order: str) -> List[str]:
    """Get the 13-value ladder, lowest first, for a ranking order."""
    if order == ORDER_HIGH:
        return HIGH_ORDER
    if order == ORDER_LOW:
        return LOW_ORDER
    raise ValueError(f"Invalid ranking order: {order}")


def rank(card: Card, order: str = ORDER_HIGH) -> int:
    """Position of the card's value in the ladder. Suit never matters."""
    ladder = get_rank_order(order)
    try:
        return ladder.index(card.value)
    except ValueError:
        raise ValueError(f"Invalid card value: {card.value}")


def compare_cards(card_a: Card, card_b: Card, order: str = ORDER_HIGH) -> int:
    """
    Compare two cards by value only.

    Returns:
        < 0 if card_a ranks lower than card_b
        0 if equal value
        > 0 if card_a ranks higher than card_b
    """
    return rank(card_a, order) - rank(card_b, order)


def is_higher(card_a: Card, card_b: Card, order: str = ORDER_HIGH) -> bool:
    return compare_cards(card_a, card_b, order) > 0


def is_trump(card: Card, trump_suit: Optional[str]) -> bool:
    return trump_suit is not None and card.suit == trump_suit


def is_odd(card: Card) -> bool:
    return card.value in ODD_VALUES

