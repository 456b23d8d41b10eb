"""
WebSocket transport and message envelopes for the Odd Trick game.
"""

from .events import *
