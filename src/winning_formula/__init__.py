"""Winning Formula - creative pattern insights for short-form video."""

__version__ = "0.1.0"
