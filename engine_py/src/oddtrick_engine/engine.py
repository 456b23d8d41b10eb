"""Room state machine: every transition of a match, as functions over RoomState.

Transitions never touch the state they are given. Each one validates, works on
a deep copy, and hands back an EngineResult carrying either the new state or
the untouched original plus an error code.
"""

import copy
import logging
from dataclasses import dataclass
from typing import Optional

from .actions import (
    Action, BidAction, CardSelectionAction, ConfirmMulliganAction, PlayCardAction,
    StartGameAction, StartNewGameAction, StartNextRoundAction, TrumpSelectionAction,
)
from .constants import (
    DEFAULT_MODE, MODES, PHASE_BIDDING, PHASE_GAME_END, PHASE_MULLIGAN, PHASE_PLAYING,
    PHASE_ROUND_END, PHASE_SETUP, PHASE_TRUMP_SELECTION, PHASE_WAITING, SIDE_KEYS,
    SUIT_SYMBOLS, TURN_BOUND_ACTIONS, default_player_name, side_label,
)
from .errors import (
    ACTION_NOT_ALLOWED, INVALID_SEAT, MODE_MISMATCH, ROOM_FULL, SEAT_TAKEN, GameError,
)
from .exchange import exchange_cards
from .models import RoomState, TrickPlay
from .rules import RuleConfig, rules_for_mode
from .scoring import score_round, side_for_seat
from .shuffle import build_deck, deal_hands, shuffle_deck
from .trick import resolve_trick
from .validate import (
    ValidationResult, validate_bid, validate_card_index, validate_phase, validate_play,
    validate_turn,
)

logger = logging.getLogger(__name__)

SCHEDULE_REDEAL = "redeal"


@dataclass
class ScheduledAction:
    """Follow-up the room must run later through its own action queue."""
    kind: str
    delay: float


class EngineResult:
    """Outcome of one transition."""

    def __init__(
        self,
        success: bool,
        state: RoomState,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None,
        scheduled: Optional[ScheduledAction] = None
    ):
        self.success = success
        self.state = state
        self.error_code = error_code
        self.error_message = error_message
        self.scheduled = scheduled

    @classmethod
    def ok(cls, state: RoomState, scheduled: Optional[ScheduledAction] = None) -> 'EngineResult':
        state.increment_version()
        return cls(success=True, state=state, scheduled=scheduled)

    @classmethod
    def fail(cls, state: RoomState, error_code: str, error_message: str) -> 'EngineResult':
        return cls(success=False, state=state, error_code=error_code, error_message=error_message)

    @classmethod
    def rejected(cls, state: RoomState, validation: ValidationResult) -> 'EngineResult':
        return cls.fail(state, validation.error_code, validation.error_message)


def _rules(state: RoomState, rules: Optional[RuleConfig]) -> RuleConfig:
    return rules if rules is not None else rules_for_mode(state.mode)


def _name(state: RoomState, seat: int) -> str:
    return state.players[seat].name


def _score_line(state: RoomState) -> str:
    return ", ".join(f"{side_label(side)}: {state.scores[side]}" for side in SIDE_KEYS[state.mode])


# --- membership ---------------------------------------------------------------

def create_room(room_id: str, mode: int = DEFAULT_MODE) -> RoomState:
    if mode not in MODES:
        raise ValueError(f"Unsupported mode: {mode}")
    room = RoomState(id=room_id, mode=mode)
    room.message = f"Waiting for {mode} players..."
    return room


def join_room(state: RoomState, seat: int, name: Optional[str] = None, mode: Optional[int] = None) -> EngineResult:
    """Seat a player. Filling the last seat moves the room from waiting to setup."""
    if mode is not None and mode != state.mode:
        return EngineResult.fail(
            state, MODE_MISMATCH,
            f"Room {state.id} is a {state.mode}-player room"
        )
    if seat < 0 or seat >= state.mode:
        return EngineResult.fail(state, INVALID_SEAT, "Invalid player index")
    if seat in state.occupancy:
        return EngineResult.fail(state, SEAT_TAKEN, "Player slot already taken")
    if state.is_full():
        return EngineResult.fail(state, ROOM_FULL, "Room is full")

    new_state = copy.deepcopy(state)
    player = new_state.players[seat]
    player.connected = True
    if name:
        player.name = name
    new_state.occupancy.add(seat)

    if new_state.is_full():
        if new_state.phase == PHASE_WAITING:
            new_state.phase = PHASE_SETUP
        new_state.message = "All players connected! Ready to start game."
    else:
        missing = new_state.mode - len(new_state.occupancy)
        new_state.message = f"Waiting for {missing} more players..."

    logger.info(f"Seat {seat} joined room {state.id} ({len(new_state.occupancy)}/{new_state.mode})")
    return EngineResult.ok(new_state)


def leave_room(state: RoomState, seat: int, vacate: bool = False) -> EngineResult:
    """
    Drop a seat from the room.

    The player's entry is kept but marked disconnected. An explicit vacate
    also clears the display name and mulligan marks. Any phase other than
    waiting falls back to waiting until the table is full again.
    """
    if seat not in state.occupancy:
        return EngineResult.fail(state, ACTION_NOT_ALLOWED, "Seat is not occupied")

    new_state = copy.deepcopy(state)
    player = new_state.players[seat]
    player.connected = False
    if vacate:
        player.name = default_player_name(seat)
        player.selected_cards = []
    new_state.occupancy.discard(seat)

    if new_state.phase != PHASE_WAITING:
        new_state.phase = PHASE_WAITING
        new_state.redeal_pending = False
        new_state.message = f"{_name(state, seat)} disconnected. Waiting for reconnection..."
    else:
        missing = new_state.mode - len(new_state.occupancy)
        new_state.message = f"Waiting for {missing} more players..."

    logger.info(f"Seat {seat} left room {state.id} ({len(new_state.occupancy)}/{new_state.mode})")
    return EngineResult.ok(new_state)


# --- dealing and bidding ------------------------------------------------------

def start_game(state: RoomState, rules: Optional[RuleConfig] = None, seed: Optional[int] = None) -> EngineResult:
    """Shuffle, deal per-mode hands and open the bidding left of the dealer."""
    result = validate_phase(state, PHASE_SETUP, "start the game")
    if not result.valid:
        return EngineResult.rejected(state, result)
    if not state.is_full():
        return EngineResult.fail(state, ACTION_NOT_ALLOWED, "Not all seats are filled")

    rules = _rules(state, rules)
    new_state = copy.deepcopy(state)

    deck = shuffle_deck(build_deck(), seed)
    hands, remainder = deal_hands(deck, new_state.mode, rules.cards_per_seat)
    for player, hand in zip(new_state.players, hands):
        player.hand = hand
        player.bid = None
        player.selected_cards = []

    new_state.deck = remainder
    new_state.discard = []
    new_state.reset_tricks()
    new_state.trick_winner = None
    new_state.last_trick = []
    new_state.last_trick_void = False
    new_state.trump_suit = None
    new_state.phase = PHASE_BIDDING
    new_state.lead_bidder_seat = new_state.next_seat(new_state.dealer_seat)
    new_state.current_seat = new_state.lead_bidder_seat
    new_state.highest_bid = 0
    new_state.winning_bidder = None
    new_state.redeal_pending = False
    new_state.game_started = True
    new_state.message = f"{_name(new_state, new_state.current_seat)}'s turn to bid"

    logger.info(f"Room {state.id}: round {new_state.current_round} dealt, dealer seat {new_state.dealer_seat}")
    return EngineResult.ok(new_state)


def redeal(state: RoomState, rules: Optional[RuleConfig] = None, seed: Optional[int] = None) -> EngineResult:
    """Run the deal scheduled after an all-pass bidding round, if still wanted."""
    if state.phase != PHASE_SETUP or not state.redeal_pending:
        return EngineResult.fail(state, ACTION_NOT_ALLOWED, "No re-deal pending")
    return start_game(state, rules, seed)


def place_bid(state: RoomState, seat: int, amount: int, rules: Optional[RuleConfig] = None) -> EngineResult:
    """
    Record a bid or a pass (0).

    Once every seat has acted the bid winner picks trump; if everyone passed
    the room goes back to setup and a re-deal is scheduled.
    """
    rules = _rules(state, rules)
    result = validate_bid(state, amount, rules.max_bid)
    if not result.valid:
        return EngineResult.rejected(state, result)

    new_state = copy.deepcopy(state)
    new_state.players[seat].bid = amount
    if amount > new_state.highest_bid:
        new_state.highest_bid = amount
        new_state.winning_bidder = seat

    if all(player.bid is not None for player in new_state.players):
        if new_state.highest_bid == 0:
            new_state.phase = PHASE_SETUP
            new_state.highest_bid = 0
            new_state.winning_bidder = None
            new_state.redeal_pending = True
            new_state.message = "All players passed! Dealing new hand..."
            logger.info(f"Room {state.id}: all passed, re-deal in {rules.redeal_delay}s")
            return EngineResult.ok(new_state, ScheduledAction(SCHEDULE_REDEAL, rules.redeal_delay))

        winner = new_state.winning_bidder
        new_state.phase = PHASE_TRUMP_SELECTION
        new_state.current_seat = winner
        new_state.message = (
            f"{_name(new_state, winner)} won the bid with {new_state.highest_bid}! "
            "Choose trump suit and ranking."
        )
    else:
        new_state.current_seat = new_state.next_seat(new_state.current_seat)
        new_state.message = f"{_name(new_state, new_state.current_seat)}'s turn to bid"

    return EngineResult.ok(new_state)


def select_trump(state: RoomState, seat: int, suit: Optional[str], order: str) -> EngineResult:
    result = validate_phase(state, PHASE_TRUMP_SELECTION, "choose trump")
    if not result.valid:
        return EngineResult.rejected(state, result)

    new_state = copy.deepcopy(state)
    new_state.trump_suit = suit
    new_state.ranking_order = order
    new_state.phase = PHASE_MULLIGAN
    new_state.current_seat = new_state.next_seat(new_state.dealer_seat)
    trump_name = SUIT_SYMBOLS[suit] if suit else "No Trump"
    new_state.message = (
        f"Trump: {trump_name}, {order} ranking. Mulligan phase: select cards to discard."
    )
    return EngineResult.ok(new_state)


# --- mulligan -----------------------------------------------------------------

def toggle_card_selection(state: RoomState, seat: int, index: int) -> EngineResult:
    """Mark or unmark a hand position for discard. Any seat may do this at any point of the mulligan."""
    result = validate_phase(state, PHASE_MULLIGAN, "select cards")
    if not result.valid:
        return EngineResult.rejected(state, result)
    result = validate_card_index(state, seat, index)
    if not result.valid:
        return EngineResult.rejected(state, result)

    new_state = copy.deepcopy(state)
    selected = new_state.players[seat].selected_cards
    if index in selected:
        selected.remove(index)
    else:
        selected.append(index)
    return EngineResult.ok(new_state)


def confirm_mulligan(state: RoomState, seat: int) -> EngineResult:
    """
    Swap the seat's marked cards for fresh ones and pass the mulligan on.

    When the turn comes back around to the dealer's left, play starts with
    the bid winner leading.
    """
    result = validate_phase(state, PHASE_MULLIGAN, "confirm a mulligan")
    if not result.valid:
        return EngineResult.rejected(state, result)

    player = state.players[seat]
    try:
        hand, deck, discarded = exchange_cards(player.hand, player.selected_cards, state.deck)
    except GameError as e:
        logger.warning(f"Room {state.id}: mulligan refused for seat {seat}: {e.message}")
        return EngineResult.fail(state, e.code, e.message)

    new_state = copy.deepcopy(state)
    new_player = new_state.players[seat]
    new_player.hand = hand
    new_player.selected_cards = []
    new_state.deck = deck
    new_state.discard.extend(discarded)

    next_seat = new_state.next_seat(new_state.current_seat)
    if next_seat == new_state.next_seat(new_state.dealer_seat):
        new_state.phase = PHASE_PLAYING
        new_state.current_seat = new_state.winning_bidder
        new_state.current_trick = []
        new_state.message = f"{_name(new_state, new_state.current_seat)} leads the first trick"
    else:
        new_state.current_seat = next_seat
        new_state.message = f"{_name(new_state, next_seat)}'s turn for mulligan"
    return EngineResult.ok(new_state)


# --- trick play ---------------------------------------------------------------

def play_card(state: RoomState, seat: int, index: int, rules: Optional[RuleConfig] = None) -> EngineResult:
    """Move a card from the seat's hand to the trick, resolving the trick when full."""
    result = validate_play(state, seat, index)
    if not result.valid:
        return EngineResult.rejected(state, result)

    rules = _rules(state, rules)
    new_state = copy.deepcopy(state)
    card = new_state.players[seat].hand.pop(index)
    new_state.current_trick.append(TrickPlay(card=card, seat=seat))

    if len(new_state.current_trick) == new_state.mode:
        _resolve_trick(new_state, rules)
    else:
        new_state.current_seat = new_state.next_seat(new_state.current_seat)
        new_state.message = f"{_name(new_state, new_state.current_seat)}'s turn"
    return EngineResult.ok(new_state)


def _resolve_trick(state: RoomState, rules: RuleConfig):
    outcome = resolve_trick(state.current_trick, state.trump_suit, state.ranking_order, state.mode)
    winner = outcome.winner

    state.trick_winner = winner
    state.last_trick = list(state.current_trick)
    state.last_trick_void = outcome.void
    state.discard.extend(play.card for play in state.current_trick)
    state.current_trick = []
    hands_empty = all(not player.hand for player in state.players)

    if outcome.void:
        state.current_seat = winner
        state.message = f"All odd cards! Trick discarded. {_name(state, winner)} leads next."
        if hands_empty:
            _resolve_round(state, rules)
        return

    state.tricks_won[side_for_seat(winner, state.mode)] += 1
    if sum(state.tricks_won.values()) >= rules.trick_cap or hands_empty:
        _resolve_round(state, rules)
    else:
        state.current_seat = winner
        state.message = f"{_name(state, winner)} wins the trick and leads next"


def _resolve_round(state: RoomState, rules: RuleConfig):
    outcome = score_round(
        state.scores,
        state.tricks_won,
        state.winning_bidder,
        state.highest_bid,
        state.mode,
        rules.base_target_score,
    )
    state.scores = outcome.scores
    state.target_score = outcome.target_score
    state.last_round = {"round": state.current_round, **outcome.to_dict()}
    state.reset_tricks()

    if outcome.winner:
        state.phase = PHASE_GAME_END
        state.winner = outcome.winner
        state.message = f"{side_label(outcome.winner)} wins the game! Final score: {_score_line(state)}"
        logger.info(f"Room {state.id}: game over, {outcome.winner} wins ({state.scores})")
    else:
        state.phase = PHASE_ROUND_END
        state.dealer_seat = state.next_seat(state.dealer_seat)
        state.lead_bidder_seat = state.next_seat(state.dealer_seat)
        state.current_round += 1
        state.message = (
            f"Round {state.current_round - 1} complete! Score: {_score_line(state)}. "
            "Click to start next round."
        )
        logger.info(f"Room {state.id}: round {state.current_round - 1} scored {state.scores}")


# --- between rounds -----------------------------------------------------------

def start_next_round(state: RoomState) -> EngineResult:
    result = validate_phase(state, PHASE_ROUND_END, "start the next round")
    if not result.valid:
        return EngineResult.rejected(state, result)

    new_state = copy.deepcopy(state)
    new_state.reset_tricks()
    new_state.phase = PHASE_SETUP
    new_state.message = 'Click "Start Game" to begin the next round'
    return EngineResult.ok(new_state)


def start_new_game(state: RoomState) -> EngineResult:
    """Hard reset of scores, round counter and dealer. Seats stay as they are."""
    new_state = copy.deepcopy(state)
    new_state.reset_match()
    if new_state.is_full():
        new_state.phase = PHASE_SETUP
        new_state.message = "All players connected! Ready to start game."
    else:
        new_state.phase = PHASE_WAITING
        missing = new_state.mode - len(new_state.occupancy)
        new_state.message = f"Waiting for {missing} more players..."
    return EngineResult.ok(new_state)


# --- dispatch -----------------------------------------------------------------

def apply_action(
    state: RoomState,
    seat: int,
    action: Action,
    rules: Optional[RuleConfig] = None,
    seed: Optional[int] = None
) -> EngineResult:
    """Validate the acting seat, then route the action to its transition."""
    if seat not in state.occupancy:
        return EngineResult.fail(state, ACTION_NOT_ALLOWED, "Seat is not in this room")

    if action.type in TURN_BOUND_ACTIONS:
        result = validate_turn(state, seat)
        if not result.valid:
            return EngineResult.rejected(state, result)

    if isinstance(action, StartGameAction):
        return start_game(state, rules, seed)
    elif isinstance(action, BidAction):
        return place_bid(state, seat, action.amount, rules)
    elif isinstance(action, TrumpSelectionAction):
        return select_trump(state, seat, action.suit, action.order)
    elif isinstance(action, CardSelectionAction):
        return toggle_card_selection(state, seat, action.index)
    elif isinstance(action, ConfirmMulliganAction):
        return confirm_mulligan(state, seat)
    elif isinstance(action, PlayCardAction):
        return play_card(state, seat, action.index, rules)
    elif isinstance(action, StartNextRoundAction):
        return start_next_round(state)
    elif isinstance(action, StartNewGameAction):
        return start_new_game(state)
    else:
        raise ValueError(f"Unhandled action type: {type(action)}")
