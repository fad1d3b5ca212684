"""Funtan: game-state engine for a chat economy game."""

__version__ = "1.0.0"
