"""Frequency - a playlist player with shuffle and loop modes."""

__version__ = "0.3.0"
