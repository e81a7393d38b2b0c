"""
Argument and command parsing utilities.

Cross-cutting utilities for parsing user input and command arguments.
"""

import shlex
from typing import List, Optional


def split_args(user_input: str) -> List[str]:
    """
    Split a command line respecting single and double quotes.

    Unbalanced quotes fall back to whitespace splitting rather than failing.

    Example:
        'playlist rename "Old Name" "New Name"'
        -> ['playlist', 'rename', 'Old Name', 'New Name']
    """
    try:
        return shlex.split(user_input)
    except ValueError:
        return user_input.split()


def parse_command(user_input: str) -> tuple[str, List[str]]:
    """
    Parse user input into command and arguments.

    Args:
        user_input: Raw user input string

    Returns:
        Tuple of (command, args) where command is lowercase and args is a list
    """
    parts = split_args(user_input.strip())
    if not parts:
        return "", []

    command = parts[0].lower()
    return command, parts[1:]


def parse_volume(value: str) -> Optional[float]:
    """
    Parse a user volume as a 0-1 fraction.

    Accepts percentages ("40", "40%") and fractions ("0.4").
    Numbers above 1 are treated as percentages.

    Returns:
        The fraction (not clamped), or None if the value is not a number
    """
    text = value.strip().rstrip("%")
    try:
        number = float(text)
    except ValueError:
        return None
    if value.strip().endswith("%") or number > 1:
        return number / 100
    return number


def parse_position(value: str) -> Optional[int]:
    """Parse a 1-based position typed by the user into a 0-based index."""
    try:
        position = int(value)
    except ValueError:
        return None
    return position - 1 if position >= 1 else None
