"""
Game rule configuration and validation.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .constants import (
    BASE_TARGET_SCORE, CARDS_PER_SEAT, MODES, REDEAL_DELAY_SECONDS, TRICK_CAP,
)


class RuleConfig(BaseModel):
    """Configuration for one table shape."""

    seat_count: int = Field(
        default=4,
        description="Number of seats at the table (2 head-to-head, 4 in two teams)"
    )
    cards_per_seat: int = Field(
        default=7,
        ge=1,
        le=13,
        description="Cards dealt to each seat"
    )
    trick_cap: int = Field(
        default=7,
        ge=1,
        description="Credited tricks that end a round"
    )
    base_target_score: int = Field(
        default=BASE_TARGET_SCORE,
        ge=1,
        description="Score that ends the game before escalation"
    )
    redeal_delay: float = Field(
        default=REDEAL_DELAY_SECONDS,
        ge=0,
        le=30,
        description="Seconds to wait before re-dealing after everyone passes"
    )
    max_bid: Optional[int] = Field(
        default=None,
        ge=1,
        description="Highest allowed bid (defaults to the trick cap)"
    )

    @field_validator('seat_count')
    @classmethod
    def validate_seat_count(cls, v):
        """Only the two fixed table shapes are supported."""
        if v not in MODES:
            raise ValueError(f'seat_count must be one of {MODES}, got {v}')
        return v

    @model_validator(mode='after')
    def validate_deal_fits_deck(self):
        if self.seat_count * self.cards_per_seat > 52:
            raise ValueError(
                f'{self.seat_count} seats x {self.cards_per_seat} cards exceeds the deck'
            )
        if self.max_bid is None:
            self.max_bid = self.trick_cap
        return self


def rules_for_mode(mode: int, **overrides) -> RuleConfig:
    """Create the RuleConfig for a table shape with optional overrides."""
    if mode not in MODES:
        raise ValueError(f"Unsupported mode: {mode}")
    config_dict = {
        "seat_count": mode,
        "cards_per_seat": CARDS_PER_SEAT[mode],
        "trick_cap": TRICK_CAP[mode],
    }
    config_dict.update(overrides)
    return RuleConfig(**config_dict)
