"""Playback-specific exceptions."""


class PlaybackError(Exception):
    """Base exception for playback operations."""

    pass


class SinkError(PlaybackError):
    """Raised when the audio output rejects a command (autoplay blocked,
    resource unreachable, player process missing)."""

    pass


class SessionInvariantError(ValueError):
    """Raised when a session snapshot contradicts the playlist it refers to.

    This signals a programming error in a transition, never a user mistake.
    """

    pass
