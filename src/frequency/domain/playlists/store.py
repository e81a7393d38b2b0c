"""
Playlist store for Frequency.

Owns the ordered collection of playlists and is the single source of truth
for which tracks exist and in what order. Every mutation validates first and
then swaps in a new tuple of playlists, so a rejected call leaves the store
untouched.
"""

import time
from typing import Iterable, Optional

from loguru import logger

from .exceptions import (
    DuplicateTrackError,
    InvalidReorderError,
    InvalidTitleError,
    PlaylistNotFoundError,
    TrackNotFoundError,
)
from .models import Playlist, Track


def _validate_title(title: str, kind: str) -> str:
    if not isinstance(title, str) or not title.strip():
        raise InvalidTitleError(f"{kind} title must not be blank")
    return title.strip()


class PlaylistStore:
    """In-memory ordered collection of playlists."""

    def __init__(self, playlists: Optional[Iterable[Playlist]] = None):
        self._playlists: tuple[Playlist, ...] = ()
        self._last_id = 0
        if playlists is not None:
            self.replace_all(playlists)

    # Queries

    @property
    def playlists(self) -> tuple[Playlist, ...]:
        """Ordered snapshot of all playlists."""
        return self._playlists

    def __len__(self) -> int:
        return len(self._playlists)

    def __iter__(self):
        return iter(self._playlists)

    def find(self, playlist_id: Optional[str]) -> Optional[Playlist]:
        """Return the playlist with the given id, or None."""
        if playlist_id is None:
            return None
        for playlist in self._playlists:
            if playlist.id == playlist_id:
                return playlist
        return None

    def get(self, playlist_id: str) -> Playlist:
        """Return the playlist with the given id.

        Raises:
            PlaylistNotFoundError: If no playlist has this id
        """
        playlist = self.find(playlist_id)
        if playlist is None:
            raise PlaylistNotFoundError(playlist_id)
        return playlist

    def first(self) -> Optional[Playlist]:
        return self._playlists[0] if self._playlists else None

    def find_by_title(self, title: str) -> Optional[Playlist]:
        """Case-insensitive lookup by title; first match wins."""
        wanted = title.strip().lower()
        for playlist in self._playlists:
            if playlist.title.lower() == wanted:
                return playlist
        return None

    # Mutations

    def replace_all(self, playlists: Iterable[Playlist]) -> None:
        """Replace the whole collection (used when loading from storage).

        Raises:
            ValueError: If two playlists share an id
        """
        new_playlists = tuple(playlists)
        ids = [p.id for p in new_playlists]
        if len(ids) != len(set(ids)):
            raise ValueError("Playlist ids must be unique")
        self._playlists = new_playlists

    def create_playlist(self, title: str) -> Playlist:
        """Create an empty playlist with a new unique id and append it."""
        clean_title = _validate_title(title, "Playlist")
        playlist = Playlist(id=self._new_id(), title=clean_title, tracks=())
        self._playlists = self._playlists + (playlist,)
        logger.debug(f"Created playlist {playlist.id} '{clean_title}'")
        return playlist

    def delete_playlist(self, playlist_id: str) -> Playlist:
        """Remove a playlist and its tracks. Returns the removed playlist."""
        removed = self.get(playlist_id)
        self._playlists = tuple(p for p in self._playlists if p.id != playlist_id)
        logger.debug(f"Deleted playlist {playlist_id} ({len(removed)} tracks)")
        return removed

    def rename_playlist(self, playlist_id: str, title: str) -> Playlist:
        clean_title = _validate_title(title, "Playlist")
        playlist = self.get(playlist_id)
        return self._put(playlist.with_title(clean_title))

    def add_track(self, playlist_id: str, track: Track) -> Playlist:
        """Append a track to a playlist.

        Raises:
            PlaylistNotFoundError: If the playlist does not exist
            DuplicateTrackError: If the track id is already in the playlist
        """
        playlist = self.get(playlist_id)
        if playlist.find_track(track.id) is not None:
            raise DuplicateTrackError(playlist_id, track.id)
        return self._put(playlist.with_tracks(playlist.tracks + (track,)))

    def remove_track(self, playlist_id: str, track_id: str) -> Playlist:
        """Remove a track from a playlist.

        Raises:
            PlaylistNotFoundError: If the playlist does not exist
            TrackNotFoundError: If the track is not in the playlist
        """
        playlist = self.get(playlist_id)
        if playlist.find_track(track_id) is None:
            raise TrackNotFoundError(playlist_id, track_id)
        return self._put(
            playlist.with_tracks([t for t in playlist.tracks if t.id != track_id])
        )

    def rename_track(self, playlist_id: str, track_id: str, title: str) -> Playlist:
        clean_title = _validate_title(title, "Track")
        playlist = self.get(playlist_id)
        if playlist.find_track(track_id) is None:
            raise TrackNotFoundError(playlist_id, track_id)
        return self._put(
            playlist.with_tracks(
                [
                    t.with_title(clean_title) if t.id == track_id else t
                    for t in playlist.tracks
                ]
            )
        )

    def reorder_tracks(self, playlist_id: str, new_order: list[str]) -> Playlist:
        """Reorder a playlist's tracks.

        Args:
            playlist_id: Playlist to reorder
            new_order: Track ids in their new order

        Raises:
            PlaylistNotFoundError: If the playlist does not exist
            InvalidReorderError: If new_order is not a permutation of the
                playlist's current track ids
        """
        playlist = self.get(playlist_id)
        new_order = list(new_order)
        current_ids = playlist.track_ids
        if len(new_order) != len(current_ids) or sorted(new_order) != sorted(current_ids):
            raise InvalidReorderError(
                f"New order for playlist {playlist_id} is not a permutation "
                f"of its {len(current_ids)} track ids"
            )
        by_id = {t.id: t for t in playlist.tracks}
        return self._put(playlist.with_tracks([by_id[tid] for tid in new_order]))

    def move_track(self, playlist_id: str, track_id: str, position: int) -> Playlist:
        """Move one track to a 0-based position, shifting the others."""
        playlist = self.get(playlist_id)
        order = playlist.track_ids
        if track_id not in order:
            raise TrackNotFoundError(playlist_id, track_id)
        if not 0 <= position < len(order):
            raise InvalidReorderError(
                f"Position {position} out of range for {len(order)} tracks"
            )
        order.remove(track_id)
        order.insert(position, track_id)
        return self.reorder_tracks(playlist_id, order)

    # Internals

    def _put(self, updated: Playlist) -> Playlist:
        self._playlists = tuple(
            updated if p.id == updated.id else p for p in self._playlists
        )
        return updated

    def _new_id(self) -> str:
        # Millisecond timestamps, bumped past any id already handed out
        candidate = max(int(time.time() * 1000), self._last_id + 1)
        existing = {p.id for p in self._playlists}
        while str(candidate) in existing:
            candidate += 1
        self._last_id = candidate
        return str(candidate)
