# engine_py/src/oddtrick_engine/errors.py

class GameError(Exception):
    """Base exception for game-related errors."""
    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")

# Specific error codes
INVALID_SEAT = "INVALID_SEAT"
SEAT_TAKEN = "SEAT_TAKEN"
ROOM_FULL = "ROOM_FULL"
MODE_MISMATCH = "MODE_MISMATCH"
NOT_YOUR_TURN = "NOT_YOUR_TURN"
MUST_FOLLOW_SUIT = "MUST_FOLLOW_SUIT"
INVALID_BID = "INVALID_BID"
INVALID_CARD = "INVALID_CARD"
INSUFFICIENT_CARDS = "INSUFFICIENT_CARDS"
ACTION_NOT_ALLOWED = "ACTION_NOT_ALLOWED"
INVALID_SESSION = "INVALID_SESSION"
MALFORMED_MESSAGE = "MALFORMED_MESSAGE"
INTERNAL_ERROR = "INTERNAL_ERROR"
