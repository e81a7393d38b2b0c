"""Playlist-specific exceptions for rejected store mutations."""


class PlaylistError(ValueError):
    """Base exception for invalid playlist operations."""

    pass


class PlaylistNotFoundError(PlaylistError):
    """Raised when a playlist id does not exist in the store."""

    def __init__(self, playlist_id: str, message: str = None):
        self.playlist_id = playlist_id
        super().__init__(message or f"Playlist not found: {playlist_id}")


class TrackNotFoundError(PlaylistError):
    """Raised when a track id is not part of the given playlist."""

    def __init__(self, playlist_id: str, track_id: str, message: str = None):
        self.playlist_id = playlist_id
        self.track_id = track_id
        super().__init__(
            message or f"Track {track_id} not found in playlist {playlist_id}"
        )


class DuplicateTrackError(PlaylistError):
    """Raised when a track id is already present in the playlist."""

    def __init__(self, playlist_id: str, track_id: str):
        self.playlist_id = playlist_id
        self.track_id = track_id
        super().__init__(f"Track {track_id} already in playlist {playlist_id}")


class InvalidReorderError(PlaylistError):
    """Raised when a new track order is not a permutation of the current one."""

    pass


class InvalidTitleError(PlaylistError):
    """Raised when a playlist or track title is blank."""

    pass
