"""
Player actions as a closed, tagged union.

Each action kind has its own model; pydantic picks the model from the
``type`` field so unknown kinds and bad payloads fail at the boundary.
"""

from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from .constants import ORDER_HIGH, SUITS, SYMBOL_SUITS

NO_TRUMP_NAMES = ("", "none", "no trump", "notrump", "nt")


class BaseAction(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class StartGameAction(BaseAction):
    type: Literal["startGame"] = "startGame"


class BidAction(BaseAction):
    type: Literal["bid"] = "bid"
    amount: int = Field(..., ge=0, validation_alias=AliasChoices("amount", "bidAmount"))


class TrumpSelectionAction(BaseAction):
    type: Literal["trumpSelection"] = "trumpSelection"
    suit: Optional[str] = None
    order: Literal["high", "low"] = ORDER_HIGH

    @field_validator("suit", mode="before")
    @classmethod
    def normalize_suit(cls, v):
        """Accept S/H/D/C, suit symbols, or a no-trump spelling."""
        if v is None:
            return None
        if not isinstance(v, str):
            raise ValueError("suit must be a string or null")
        text = v.strip()
        if text.lower() in NO_TRUMP_NAMES:
            return None
        suit = SYMBOL_SUITS.get(text, text.upper())
        if suit not in SUITS:
            raise ValueError(f"Unknown suit: {v}")
        return suit


class CardSelectionAction(BaseAction):
    type: Literal["cardSelection"] = "cardSelection"
    index: int = Field(..., ge=0, validation_alias=AliasChoices("index", "cardIndex"))


class ConfirmMulliganAction(BaseAction):
    type: Literal["confirmMulligan"] = "confirmMulligan"


class PlayCardAction(BaseAction):
    type: Literal["playCard"] = "playCard"
    index: int = Field(..., ge=0, validation_alias=AliasChoices("index", "cardIndex"))


class StartNextRoundAction(BaseAction):
    type: Literal["startNextRound"] = "startNextRound"


class StartNewGameAction(BaseAction):
    type: Literal["startNewGame"] = "startNewGame"


Action = Annotated[
    Union[
        StartGameAction,
        BidAction,
        TrumpSelectionAction,
        CardSelectionAction,
        ConfirmMulliganAction,
        PlayCardAction,
        StartNextRoundAction,
        StartNewGameAction,
    ],
    Field(discriminator="type"),
]

_action_adapter = TypeAdapter(Action)


def parse_action(data: Dict[str, Any]) -> Action:
    """
    Parse a raw action payload.

    Raises:
        pydantic.ValidationError: unknown kind or malformed payload
    """
    return _action_adapter.validate_python(data)
