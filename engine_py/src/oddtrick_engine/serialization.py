"""
State serialization and sanitization utilities.
"""

from typing import Any, Dict, List, Optional

from .models import Card, Player, RoomState


def serialize_card(card: Card) -> Dict[str, str]:
    return {"suit": card.suit, "value": card.value}


def _serialize_cards(cards: List[Card]) -> List[Dict[str, str]]:
    return [serialize_card(card) for card in cards]


def _serialize_player(player: Player, show_hand: bool) -> Dict[str, Any]:
    sanitized = {
        "seat": player.seat,
        "name": player.name,
        "bid": player.bid,
        "selectedCards": list(player.selected_cards),
        "connected": player.connected,
        "handCount": len(player.hand),
    }
    if show_hand:
        sanitized["cards"] = _serialize_cards(player.hand)
    return sanitized


def occupancy_list(state: RoomState) -> List[int]:
    return sorted(state.occupancy)


def sanitize_state(state: RoomState, viewer_seat: Optional[int] = None, hide_hands: bool = False) -> Dict[str, Any]:
    """
    Turn room state into plain dicts and lists for transmission.

    Args:
        state: Room state to serialize
        viewer_seat: Seat receiving the state
        hide_hands: Only show the viewer's own hand and keep the deck as a count

    Returns:
        JSON-safe state dictionary
    """
    sanitized = {
        "roomId": state.id,
        "version": state.version,
        "phase": state.phase,
        "gameMode": state.mode,
        "players": [
            _serialize_player(player, show_hand=not hide_hands or player.seat == viewer_seat)
            for player in state.players
        ],
        "currentPlayerIndex": state.current_seat,
        "dealerIndex": state.dealer_seat,
        "biddingPlayerIndex": state.lead_bidder_seat,
        "highestBid": state.highest_bid,
        "winningBidder": state.winning_bidder,
        "trumpSuit": state.trump_suit,
        "rankingOrder": state.ranking_order,
        "currentTrick": [
            {"card": serialize_card(play.card), "playerIndex": play.seat}
            for play in state.current_trick
        ],
        "trickWinner": state.trick_winner,
        "lastTrick": {
            "plays": [
                {"card": serialize_card(play.card), "playerIndex": play.seat}
                for play in state.last_trick
            ],
            "void": state.last_trick_void,
        },
        "tricksWon": dict(state.tricks_won),
        "scores": dict(state.scores),
        "targetScore": state.target_score,
        "currentRound": state.current_round,
        "deckCount": len(state.deck),
        "gameStarted": state.game_started,
        "lastRound": state.last_round,
        "winner": state.winner,
        "message": state.message,
    }

    if not hide_hands:
        sanitized["deck"] = _serialize_cards(state.deck)

    return sanitized


def get_public_room_info(state: RoomState) -> Dict[str, Any]:
    """Get public information about a room for listings."""
    return {
        "roomId": state.id,
        "phase": state.phase,
        "gameMode": state.mode,
        "occupancy": occupancy_list(state),
        "scores": dict(state.scores),
        "currentRound": state.current_round,
    }
