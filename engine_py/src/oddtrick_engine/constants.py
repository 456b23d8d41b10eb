"""Game constants and utilities"""

from typing import Dict, Tuple

SUITS = ['S', 'H', 'D', 'C']
VALUES = ['A', '2', '3', '4', '5', '6', '7', '8', '9', '10', 'J', 'Q', 'K']

SUIT_SYMBOLS = {'S': '♠', 'H': '♥', 'D': '♦', 'C': '♣'}
SYMBOL_SUITS = {symbol: suit for suit, symbol in SUIT_SYMBOLS.items()}

# Ascending ladder for ace-high; ace-low is the exact reverse.
HIGH_ORDER = ['2', '3', '4', '5', '6', '7', '8', '9', '10', 'J', 'Q', 'K', 'A']
LOW_ORDER = list(reversed(HIGH_ORDER))

ORDER_HIGH = 'high'
ORDER_LOW = 'low'

ODD_VALUES = frozenset(['3', '5', '7', '9', 'J', 'K', 'A'])

# Table shapes
MODE_HEAD_TO_HEAD = 2
MODE_TEAMS = 4
MODES = (MODE_HEAD_TO_HEAD, MODE_TEAMS)
DEFAULT_MODE = MODE_TEAMS

CARDS_PER_SEAT: Dict[int, int] = {MODE_HEAD_TO_HEAD: 9, MODE_TEAMS: 7}
TRICK_CAP: Dict[int, int] = {MODE_HEAD_TO_HEAD: 9, MODE_TEAMS: 7}

SIDE_KEYS: Dict[int, Tuple[str, str]] = {
    MODE_HEAD_TO_HEAD: ('player1', 'player2'),
    MODE_TEAMS: ('team1', 'team2'),
}

BASE_TARGET_SCORE = 21
ESCALATION_BASE = 31
REDEAL_DELAY_SECONDS = 2.0

# Phases
PHASE_WAITING = 'waiting'
PHASE_SETUP = 'setup'
PHASE_BIDDING = 'bidding'
PHASE_TRUMP_SELECTION = 'trump_selection'
PHASE_MULLIGAN = 'mulligan'
PHASE_PLAYING = 'playing'
PHASE_ROUND_END = 'round_end'
PHASE_GAME_END = 'game_end'

# Action kinds that only the current seat may submit
TURN_BOUND_ACTIONS = frozenset(['bid', 'trumpSelection', 'confirmMulligan', 'playCard'])


def default_player_name(seat: int) -> str:
    return f"Player {seat + 1}"


def side_label(side: str) -> str:
    """'team1' -> 'Team 1', 'player2' -> 'Player 2'."""
    return f"{side[:-1].capitalize()} {side[-1]}"
