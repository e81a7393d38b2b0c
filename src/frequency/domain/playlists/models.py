"""
Playlist domain models.

Contains the immutable records for tracks and playlists, and their mapping
to and from the JSON shape used by persistence.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Optional


@dataclass(frozen=True)
class Track:
    """A single playable audio entry.

    The url is either a remote reference (http/https), a local file
    (file URI or plain path), or an embedded ``data:`` URL.
    """

    id: str
    title: str
    url: str
    added_at: str = ""
    is_local: bool = False

    def with_title(self, title: str) -> "Track":
        return replace(self, title=title)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "addedAt": self.added_at,
            "isLocal": self.is_local,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Track":
        """Build a Track from its JSON mapping.

        Raises:
            ValueError: If a required key is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise ValueError(f"Track record must be an object, got {type(data).__name__}")

        for key in ("id", "title", "url"):
            if not isinstance(data.get(key), str):
                raise ValueError(f"Track record has invalid '{key}': {data.get(key)!r}")

        is_local = data.get("isLocal")
        if is_local is None:
            is_local = False
        if not isinstance(is_local, bool):
            raise ValueError(f"Track record has invalid 'isLocal': {is_local!r}")

        added_at = data.get("addedAt") or ""
        return cls(
            id=data["id"],
            title=data["title"],
            url=data["url"],
            added_at=str(added_at),
            is_local=is_local,
        )


@dataclass(frozen=True)
class Playlist:
    """An ordered, named collection of tracks.

    Insertion order is significant. Track ids are unique within a playlist.
    """

    id: str
    title: str
    tracks: tuple[Track, ...] = field(default_factory=tuple)

    @property
    def track_ids(self) -> list[str]:
        return [track.id for track in self.tracks]

    def __len__(self) -> int:
        return len(self.tracks)

    def find_track(self, track_id: Optional[str]) -> Optional[Track]:
        """Return the track with the given id, or None."""
        if track_id is None:
            return None
        for track in self.tracks:
            if track.id == track_id:
                return track
        return None

    def index_of(self, track_id: Optional[str]) -> int:
        """0-based position of a track, or -1 when absent."""
        for i, track in enumerate(self.tracks):
            if track.id == track_id:
                return i
        return -1

    def with_tracks(self, tracks: list[Track] | tuple[Track, ...]) -> "Playlist":
        return replace(self, tracks=tuple(tracks))

    def with_title(self, title: str) -> "Playlist":
        return replace(self, title=title)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "tracks": [track.to_dict() for track in self.tracks],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Playlist":
        """Build a Playlist from its JSON mapping.

        Raises:
            ValueError: If the record or any of its tracks is malformed
        """
        if not isinstance(data, dict):
            raise ValueError(
                f"Playlist record must be an object, got {type(data).__name__}"
            )
        if not isinstance(data.get("id"), str) or not isinstance(data.get("title"), str):
            raise ValueError(f"Playlist record has invalid id/title: {data!r}")

        raw_tracks = data.get("tracks", [])
        if not isinstance(raw_tracks, list):
            raise ValueError(f"Playlist {data['id']} has non-list tracks")

        tracks = tuple(Track.from_dict(t) for t in raw_tracks)
        if len({t.id for t in tracks}) != len(tracks):
            raise ValueError(f"Playlist {data['id']} has duplicate track ids")

        return cls(id=data["id"], title=data["title"], tracks=tracks)
