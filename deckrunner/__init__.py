"""Supervisor for the deckathon automation scripts."""

__version__ = "1.0.0"
