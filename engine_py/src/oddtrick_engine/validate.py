"""
Legality checks for player actions.
"""

from typing import Optional

from .constants import PHASE_BIDDING, PHASE_PLAYING
from .errors import (
    ACTION_NOT_ALLOWED, INVALID_BID, INVALID_CARD, MUST_FOLLOW_SUIT, NOT_YOUR_TURN,
)
from .models import RoomState
from .trick import lead_suit


class ValidationResult:
    """Result of action validation."""

    def __init__(
        self,
        valid: bool,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None
    ):
        self.valid = valid
        self.error_code = error_code
        self.error_message = error_message

    @classmethod
    def success(cls) -> 'ValidationResult':
        """Create a successful validation result."""
        return cls(valid=True)

    @classmethod
    def error(cls, error_code: str, error_message: str) -> 'ValidationResult':
        """Create an error validation result."""
        return cls(valid=False, error_code=error_code, error_message=error_message)


def validate_turn(state: RoomState, seat: int) -> ValidationResult:
    if state.current_seat != seat:
        return ValidationResult.error(NOT_YOUR_TURN, "It is not your turn")
    return ValidationResult.success()


def validate_phase(state: RoomState, phase: str, action_name: str) -> ValidationResult:
    if state.phase != phase:
        return ValidationResult.error(
            ACTION_NOT_ALLOWED,
            f"Cannot {action_name} during {state.phase}"
        )
    return ValidationResult.success()


def validate_bid(state: RoomState, amount: int, max_bid: int) -> ValidationResult:
    """
    A pass (0) is always accepted; anything else must beat the standing bid.
    """
    result = validate_phase(state, PHASE_BIDDING, "bid")
    if not result.valid:
        return result

    if amount < 0:
        return ValidationResult.error(INVALID_BID, "Bid cannot be negative")
    if amount == 0:
        return ValidationResult.success()
    if amount <= state.highest_bid:
        return ValidationResult.error(
            INVALID_BID,
            f"Bid must be higher than {state.highest_bid}"
        )
    if amount > max_bid:
        return ValidationResult.error(INVALID_BID, f"Bid cannot exceed {max_bid}")
    return ValidationResult.success()


def validate_card_index(state: RoomState, seat: int, index: int) -> ValidationResult:
    hand = state.players[seat].hand
    if index < 0 or index >= len(hand):
        return ValidationResult.error(INVALID_CARD, f"No card at position {index}")
    return ValidationResult.success()


def validate_play(state: RoomState, seat: int, index: int) -> ValidationResult:
    """
    Check a card play against phase, hand bounds and the follow-suit rule.

    The turn itself is checked before dispatch, so it is not repeated here.
    """
    result = validate_phase(state, PHASE_PLAYING, "play a card")
    if not result.valid:
        return result

    result = validate_card_index(state, seat, index)
    if not result.valid:
        return result

    led = lead_suit(state.current_trick)
    if led is None:
        return ValidationResult.success()

    hand = state.players[seat].hand
    if hand[index].suit != led and any(card.suit == led for card in hand):
        return ValidationResult.error(MUST_FOLLOW_SUIT, "You must follow suit if possible!")
    return ValidationResult.success()
