"""Crossfading timeline player."""

__version__ = "0.1.0"
