"""Library domain - turning URLs and audio files into tracks."""

from .ingest import (
    IngestError,
    new_track_id,
    track_from_url,
    track_from_file,
    tracks_from_paths,
    read_title,
    embed_file,
)

__all__ = [
    "IngestError",
    "new_track_id",
    "track_from_url",
    "track_from_file",
    "tracks_from_paths",
    "read_title",
    "embed_file",
]
