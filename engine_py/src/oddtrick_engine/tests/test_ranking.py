from oddtrick_engine.comparator import compare_cards, is_higher, is_odd, is_trump, rank
from oddtrick_engine.models import Card

import pytest


def test_high_order_ace_is_top():
    assert rank(Card("S", "A"), "high") == 12
    assert rank(Card("S", "2"), "high") == 0
    assert is_higher(Card("H", "A"), Card("H", "K"), "high")
    assert is_higher(Card("H", "10"), Card("H", "9"), "high")


def test_low_order_is_reverse_of_high():
    # Low ranking: 2 beats everything, ace is the weakest card
    assert is_higher(Card("D", "2"), Card("D", "3"), "low")
    assert is_higher(Card("D", "3"), Card("D", "A"), "low")
    assert rank(Card("D", "A"), "low") == 0
    assert rank(Card("D", "2"), "low") == 12


def test_compare_ignores_suit():
    assert compare_cards(Card("S", "7"), Card("C", "7")) == 0
    assert compare_cards(Card("S", "8"), Card("C", "7")) > 0
    assert compare_cards(Card("S", "8"), Card("C", "7"), "low") < 0


def test_invalid_order():
    with pytest.raises(ValueError):
        rank(Card("S", "7"), "sideways")


def test_odd_cards():
    odd = ["3", "5", "7", "9", "J", "K", "A"]
    even = ["2", "4", "6", "8", "10", "Q"]
    assert all(is_odd(Card("H", value)) for value in odd)
    assert not any(is_odd(Card("H", value)) for value in even)


def test_trump_membership():
    assert is_trump(Card("H", "2"), "H")
    assert not is_trump(Card("S", "2"), "H")
    # No-trump round: nothing is trump
    assert not is_trump(Card("H", "2"), None)
