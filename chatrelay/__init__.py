"""Presence-aware chat relay core."""

__version__ = "0.1.0"
