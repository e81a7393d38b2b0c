"""
Playback session state for Frequency

The session is an immutable snapshot. Transitions build a new snapshot with
_replace() and the engine swaps it in, so no half-applied state is ever visible.
"""

import math
from collections import Counter
from enum import Enum
from typing import Any, NamedTuple, Optional

from frequency.domain.playlists.models import Playlist

from .exceptions import SessionInvariantError

DEFAULT_VOLUME = 1.0


class LoopMode(str, Enum):
    """What happens when playback reaches the end of the ordering."""

    OFF = "off"  # Stop after the last track
    ALL = "all"  # Wrap to the first track
    ONE = "one"  # Repeat the current track when it ends

    def cycle(self) -> "LoopMode":
        """OFF -> ALL -> ONE -> OFF."""
        return _LOOP_CYCLE[self]

    @classmethod
    def parse(cls, value: str) -> "LoopMode":
        """Parse a persisted loop mode string (case-insensitive).

        Raises:
            ValueError: If the value is not one of off/all/one
        """
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Invalid loop mode: {value!r}") from None


_LOOP_CYCLE = {
    LoopMode.OFF: LoopMode.ALL,
    LoopMode.ALL: LoopMode.ONE,
    LoopMode.ONE: LoopMode.OFF,
}


def clamp_volume(value: Any) -> float:
    """Clamp a volume to [0.0, 1.0].

    Raises:
        ValueError: If the value is not a finite number
    """
    try:
        volume = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Volume must be a number, got {value!r}") from None
    if math.isnan(volume):
        raise ValueError("Volume must not be NaN")
    return min(1.0, max(0.0, volume))


class PlaybackSettings(NamedTuple):
    """The part of the session that survives restarts."""

    volume: float = DEFAULT_VOLUME
    loop_mode: LoopMode = LoopMode.OFF
    shuffle_enabled: bool = False


class PlaybackSession(NamedTuple):
    """Immutable playback session snapshot."""

    active_playlist_id: Optional[str] = None
    current_track_id: Optional[str] = None
    is_playing: bool = False
    volume: float = DEFAULT_VOLUME
    loop_mode: LoopMode = LoopMode.OFF
    shuffle_enabled: bool = False
    shuffle_queue: Optional[tuple[str, ...]] = None  # Only defined while shuffling
    restart_epoch: int = 0  # Bumped when the current track must replay from zero

    @classmethod
    def from_settings(cls, settings: PlaybackSettings) -> "PlaybackSession":
        """Start-up session: restored settings, paused, nothing selected."""
        return cls(
            volume=clamp_volume(settings.volume),
            loop_mode=settings.loop_mode,
            shuffle_enabled=settings.shuffle_enabled,
            shuffle_queue=() if settings.shuffle_enabled else None,
        )

    @property
    def settings(self) -> PlaybackSettings:
        return PlaybackSettings(
            volume=self.volume,
            loop_mode=self.loop_mode,
            shuffle_enabled=self.shuffle_enabled,
        )


def check_session(session: PlaybackSession, playlist: Optional[Playlist]) -> None:
    """Verify the session invariants against its active playlist.

    Args:
        session: Snapshot to check
        playlist: The playlist named by session.active_playlist_id (None if unset)

    Raises:
        SessionInvariantError: If any invariant is violated
    """
    if session.active_playlist_id is None and playlist is not None:
        raise SessionInvariantError("Playlist given for a session with no active playlist")
    if playlist is not None and playlist.id != session.active_playlist_id:
        raise SessionInvariantError(
            f"Playlist {playlist.id} is not the active playlist {session.active_playlist_id}"
        )

    if not 0.0 <= session.volume <= 1.0:
        raise SessionInvariantError(f"Volume out of range: {session.volume}")

    if session.current_track_id is not None:
        if playlist is None or playlist.find_track(session.current_track_id) is None:
            raise SessionInvariantError(
                f"Current track {session.current_track_id} is not in the active playlist"
            )

    if session.shuffle_enabled:
        if session.shuffle_queue is None:
            raise SessionInvariantError("Shuffle is on but no queue is defined")
        expected = playlist.track_ids if playlist is not None else []
        if Counter(session.shuffle_queue) != Counter(expected):
            raise SessionInvariantError(
                "Shuffle queue is not a permutation of the active playlist's tracks"
            )
    elif session.shuffle_queue is not None:
        raise SessionInvariantError("Shuffle queue defined while shuffle is off")
