"""
Shared helpers for command handlers: resolving what the user typed into
playlists and tracks, and formatting them for display.
"""

from typing import Optional

from frequency.domain.playlists.models import Playlist, Track
from frequency.domain.playlists.store import PlaylistStore
from frequency.utils.parsers import parse_position


def resolve_playlist(store: PlaylistStore, ref: str) -> Optional[Playlist]:
    """
    Find a playlist by id, title (case-insensitive) or 1-based list position.
    """
    playlist = store.find(ref) or store.find_by_title(ref)
    if playlist is not None:
        return playlist
    index = parse_position(ref)
    if index is not None and index < len(store):
        return store.playlists[index]
    return None


def resolve_track(playlist: Playlist, ref: str) -> Optional[Track]:
    """
    Find a track by id, 1-based position, or title (case-insensitive).
    """
    track = playlist.find_track(ref)
    if track is not None:
        return track
    index = parse_position(ref)
    if index is not None and index < len(playlist.tracks):
        return playlist.tracks[index]
    wanted = ref.strip().lower()
    for track in playlist.tracks:
        if track.title.lower() == wanted:
            return track
    return None


def describe_url(track: Track) -> str:
    """Short description of where a track's audio lives."""
    if track.url.startswith("data:"):
        return "embedded"
    if len(track.url) > 60:
        return track.url[:57] + "..."
    return track.url
