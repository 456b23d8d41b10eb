"""Game models and data structures"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from .constants import (
    BASE_TARGET_SCORE, DEFAULT_MODE, ORDER_HIGH, PHASE_WAITING, SIDE_KEYS,
    SUIT_SYMBOLS, default_player_name,
)


@dataclass(frozen=True)
class Card:
    suit: str   # S|H|D|C
    value: str  # A,2..10,J,Q,K

    def __str__(self) -> str:
        return f"{self.value}{SUIT_SYMBOLS.get(self.suit, self.suit)}"


@dataclass
class TrickPlay:
    card: Card
    seat: int


@dataclass
class Player:
    seat: int
    name: str
    hand: List[Card] = field(default_factory=list)  # deal order
    bid: Optional[int] = None  # None = not yet bid, 0 = pass
    selected_cards: List[int] = field(default_factory=list)  # hand indices marked for mulligan
    connected: bool = False


def _new_players(mode: int) -> List[Player]:
    return [Player(seat=seat, name=default_player_name(seat)) for seat in range(mode)]


def _zero_sides(mode: int) -> Dict[str, int]:
    return {side: 0 for side in SIDE_KEYS[mode]}


@dataclass
class RoomState:
    id: str
    mode: int = DEFAULT_MODE
    version: int = 0
    phase: str = PHASE_WAITING  # waiting|setup|bidding|trump_selection|mulligan|playing|round_end|game_end
    players: List[Player] = field(default_factory=list)
    occupancy: Set[int] = field(default_factory=set)
    dealer_seat: int = 0
    current_seat: int = 0
    lead_bidder_seat: int = 1
    highest_bid: int = 0
    winning_bidder: Optional[int] = None
    trump_suit: Optional[str] = None  # None = no trump
    ranking_order: str = ORDER_HIGH
    current_trick: List[TrickPlay] = field(default_factory=list)
    trick_winner: Optional[int] = None
    last_trick: List[TrickPlay] = field(default_factory=list)
    last_trick_void: bool = False
    tricks_won: Dict[str, int] = field(default_factory=dict)
    scores: Dict[str, int] = field(default_factory=dict)
    target_score: int = BASE_TARGET_SCORE
    current_round: int = 1
    deck: List[Card] = field(default_factory=list)
    discard: List[Card] = field(default_factory=list)  # resolved tricks and mulligan discards
    redeal_pending: bool = False
    game_started: bool = False
    last_round: Optional[Dict[str, Any]] = None
    winner: Optional[str] = None
    message: str = ''

    def __post_init__(self):
        if not self.players:
            self.players = _new_players(self.mode)
        if not self.tricks_won:
            self.tricks_won = _zero_sides(self.mode)
        if not self.scores:
            self.scores = _zero_sides(self.mode)
        self.lead_bidder_seat = (self.dealer_seat + 1) % self.mode

    def is_full(self) -> bool:
        return len(self.occupancy) == self.mode

    def next_seat(self, seat: int) -> int:
        return (seat + 1) % self.mode

    def increment_version(self):
        self.version += 1

    def reset_tricks(self):
        self.tricks_won = _zero_sides(self.mode)
        self.current_trick = []

    def reset_match(self):
        """Back to the mode's defaults; occupancy and names survive."""
        names = [player.name for player in self.players]
        connected = [player.connected for player in self.players]
        self.players = _new_players(self.mode)
        for player, name, is_connected in zip(self.players, names, connected):
            player.name = name
            player.connected = is_connected
        self.dealer_seat = 0
        self.current_seat = 0
        self.lead_bidder_seat = 1 % self.mode
        self.highest_bid = 0
        self.winning_bidder = None
        self.trump_suit = None
        self.ranking_order = ORDER_HIGH
        self.trick_winner = None
        self.last_trick = []
        self.last_trick_void = False
        self.reset_tricks()
        self.scores = _zero_sides(self.mode)
        self.target_score = BASE_TARGET_SCORE
        self.current_round = 1
        self.deck = []
        self.discard = []
        self.redeal_pending = False
        self.game_started = False
        self.last_round = None
        self.winner = None
