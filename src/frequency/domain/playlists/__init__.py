"""Playlists domain - tracks, playlists and the store that owns them.

This domain handles:
- Immutable Track/Playlist records and their JSON mapping
- Playlist CRUD, track add/remove/rename and reordering
- Persistence of playlists and settings (see .persistence)
"""

from .exceptions import (
    PlaylistError,
    PlaylistNotFoundError,
    TrackNotFoundError,
    DuplicateTrackError,
    InvalidReorderError,
    InvalidTitleError,
)
from .models import Playlist, Track
from .store import PlaylistStore

__all__ = [
    # Models
    "Playlist",
    "Track",
    # Store
    "PlaylistStore",
    # Exceptions
    "PlaylistError",
    "PlaylistNotFoundError",
    "TrackNotFoundError",
    "DuplicateTrackError",
    "InvalidReorderError",
    "InvalidTitleError",
]
