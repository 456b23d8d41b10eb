"""
Tests for trick resolution and the all-odd void rule.
"""

import pytest
from oddtrick_engine.models import Card, TrickPlay
from oddtrick_engine.trick import is_void, lead_suit, resolve_trick, trick_winner


def make_trick(*cards, first_seat=0, seat_count=4):
    """Build a trick from 'VS' strings, e.g. '10H', played clockwise from first_seat."""
    plays = []
    for offset, text in enumerate(cards):
        plays.append(TrickPlay(card=Card(suit=text[-1], value=text[:-1]),
                               seat=(first_seat + offset) % seat_count))
    return plays


def test_lead_suit():
    assert lead_suit([]) is None
    assert lead_suit(make_trick("4D", "8S")) == "D"


def test_highest_of_led_suit_wins_without_trump():
    trick = make_trick("4D", "QD", "AS", "9D")
    # Ace of spades is off-suit and can't win
    assert trick_winner(trick, None, "high") == 1


def test_trump_beats_led_suit():
    trick = make_trick("AD", "KD", "2H", "QD")
    assert trick_winner(trick, "H", "high") == 2


def test_highest_trump_wins():
    trick = make_trick("AD", "3H", "2H", "QD")
    assert trick_winner(trick, "H", "high") == 1
    assert trick_winner(trick, "H", "low") == 2


def test_low_order_winner():
    trick = make_trick("AD", "2D", "KD", "10D", first_seat=2)
    assert trick_winner(trick, None, "low") == 3


def test_equal_values_keep_earliest_play():
    trick = make_trick("8C", "8C", first_seat=1, seat_count=2)
    assert trick_winner(trick, None, "high") == 1


def test_empty_trick_raises():
    with pytest.raises(ValueError):
        trick_winner([], None, "high")


def test_all_odd_trick_is_void():
    trick = make_trick("3S", "5H", "JD", "AS")
    assert is_void(trick, 4)
    outcome = resolve_trick(trick, "H", "high", 4)
    assert outcome.void
    # The nominal winner still leads the next trick
    assert outcome.winner == 1


def test_one_even_card_breaks_void():
    trick = make_trick("3S", "5H", "QD", "AS")
    outcome = resolve_trick(trick, None, "high", 4)
    assert not outcome.void
    assert outcome.winner == 3


def test_head_to_head_void():
    assert is_void(make_trick("7C", "9C", seat_count=2), 2)
    assert not is_void(make_trick("7C", "10C", seat_count=2), 2)
