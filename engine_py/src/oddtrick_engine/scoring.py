# engine_py/src/oddtrick_engine/scoring.py

from dataclasses import dataclass
from typing import Dict, Optional

from .constants import BASE_TARGET_SCORE, ESCALATION_BASE, MODE_TEAMS, SIDE_KEYS


@dataclass
class RoundOutcome:
    bidding_side: str
    bid: int
    made: bool
    tricks_won: Dict[str, int]
    deltas: Dict[str, int]
    scores: Dict[str, int]
    target_score: int
    winner: Optional[str]

    def to_dict(self) -> dict:
        return {
            "bidding_side": self.bidding_side,
            "bid": self.bid,
            "made": self.made,
            "tricks_won": dict(self.tricks_won),
            "deltas": dict(self.deltas),
            "scores": dict(self.scores),
            "target_score": self.target_score,
            "winner": self.winner,
        }



def side_for_seat(seat: int, mode: int) -> str:
    """
    Scoring side a seat plays for.

    Head-to-head: seat 0 is player1, seat 1 is player2.
    Teams: seats 0 and 2 are team1, seats 1 and 3 are team2.
    """
    first, second = SIDE_KEYS[mode]
    if mode == MODE_TEAMS:
        return first if seat % 2 == 0 else second
    return first if seat == 0 else second


def other_side(side: str, mode: int) -> str:
    first, second = SIDE_KEYS[mode]
    return second if side == first else first


def target_score(scores: Dict[str, int], base: int = BASE_TARGET_SCORE) -> int:
    """
    Score needed to end the game.

    Once both sides are past the base, the bar moves to
    31 + floor(leader / 10) * 10 - 21, recomputed from the current leader.
    """
    if all(score > base for score in scores.values()):
        leader = max(scores.values())
        return ESCALATION_BASE + (leader // 10) * 10 - base
    return base


def game_winner(scores: Dict[str, int], target: int, mode: int) -> Optional[str]:
    """Side that ends the game, if any side reached the target. Ties go to the first side."""
    first, second = SIDE_KEYS[mode]
    if scores[first] < target and scores[second] < target:
        return None
    return second if scores[second] > scores[first] else first


def score_round(
    scores: Dict[str, int],
    tricks_won: Dict[str, int],
    winning_bidder: int,
    bid: int,
    mode: int,
    base_target: int = BASE_TARGET_SCORE
) -> RoundOutcome:
    """
    Apply one round to the cumulative scores.

    The bidding side scores its tricks if it met the bid and loses the bid
    amount otherwise. The other side always scores its own tricks.
    """
    bidding_side = side_for_seat(winning_bidder, mode)
    defending_side = other_side(bidding_side, mode)
    made = tricks_won[bidding_side] >= bid

    deltas = {
        bidding_side: tricks_won[bidding_side] if made else -bid,
        defending_side: tricks_won[defending_side],
    }
    new_scores = {side: scores[side] + deltas[side] for side in SIDE_KEYS[mode]}
    target = target_score(new_scores, base_target)

    return RoundOutcome(
        bidding_side=bidding_side,
        bid=bid,
        made=made,
        tricks_won=dict(tricks_won),
        deltas=deltas,
        scores=new_scores,
        target_score=target,
        winner=game_winner(new_scores, target, mode),
    )
