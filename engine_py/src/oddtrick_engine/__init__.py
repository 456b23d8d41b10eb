"""Odd Trick card game engine and server."""
