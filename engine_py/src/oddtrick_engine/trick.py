"""
Trick resolution: who takes a completed trick and whether it is void.
"""

from dataclasses import dataclass
from typing import List, Optional

from .comparator import is_higher, is_odd, is_trump
from .models import TrickPlay


@dataclass
class TrickOutcome:
    winner: int  # seat
    void: bool


def lead_suit(trick: List[TrickPlay]) -> Optional[str]:
    return trick[0].card.suit if trick else None


def _best_play(plays: List[TrickPlay], order: str) -> TrickPlay:
    # Strictly-higher comparison keeps the earliest play on a tie
    best = plays[0]
    for play in plays[1:]:
        if is_higher(play.card, best.card, order):
            best = play
    return best


def trick_winner(trick: List[TrickPlay], trump_suit: Optional[str], order: str) -> int:
    """
    Seat that takes the trick.

    Highest trump if any trump was played, otherwise highest card of the
    suit that was led.
    """
    if not trick:
        raise ValueError("Cannot resolve an empty trick")

    trumps = [play for play in trick if is_trump(play.card, trump_suit)]
    if trumps:
        return _best_play(trumps, order).seat

    led = lead_suit(trick)
    return _best_play([play for play in trick if play.card.suit == led], order).seat


def is_void(trick: List[TrickPlay], seat_count: int) -> bool:
    """A full trick in which every card is odd-valued scores for nobody."""
    return sum(1 for play in trick if is_odd(play.card)) == seat_count


def resolve_trick(trick: List[TrickPlay], trump_suit: Optional[str], order: str, seat_count: int) -> TrickOutcome:
    return TrickOutcome(
        winner=trick_winner(trick, trump_suit, order),
        void=is_void(trick, seat_count),
    )
