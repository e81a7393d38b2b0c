"""
Persistence gateway for playlists and playback settings.

Reads and writes the stored keys, upgrades the legacy single-playlist format,
and recovers from corrupt values by falling back to defaults.
"""

import json
import sqlite3
import time
from typing import Optional

from loguru import logger

from frequency.core import database
from frequency.domain.playback.state import (
    DEFAULT_VOLUME,
    LoopMode,
    PlaybackSettings,
    clamp_volume,
)

from .models import Playlist, Track

PLAYLISTS_KEY = "music_playlists"
LEGACY_TRACKS_KEY = "music_tracks"
VOLUME_KEY = "music_volume"
LOOP_KEY = "music_loop"
SHUFFLE_KEY = "music_shuffle"

LEGACY_PLAYLIST_TITLE = "Default Frequency"


def encode_playlists(playlists: list[Playlist] | tuple[Playlist, ...]) -> str:
    return json.dumps([p.to_dict() for p in playlists], ensure_ascii=False)


def decode_playlists(raw: str) -> list[Playlist]:
    """Parse the stored playlists array.

    Raises:
        ValueError: If the JSON or any record is malformed
    """
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array of playlists, got {type(data).__name__}")
    playlists = [Playlist.from_dict(item) for item in data]
    ids = [p.id for p in playlists]
    if len(ids) != len(set(ids)):
        raise ValueError("Duplicate playlist ids")
    return playlists


def decode_legacy_tracks(raw: str) -> list[Track]:
    """Parse the legacy bare array of tracks.

    Raises:
        ValueError: If the JSON or any record is malformed
    """
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array of tracks, got {type(data).__name__}")
    tracks = []
    seen = set()
    for item in data:
        track = Track.from_dict(item)
        if track.id in seen:
            logger.warning(f"Dropping duplicate legacy track {track.id}")
            continue
        seen.add(track.id)
        tracks.append(track)
    return tracks


def encode_settings(settings: PlaybackSettings) -> dict[str, str]:
    return {
        VOLUME_KEY: repr(float(settings.volume)),
        LOOP_KEY: settings.loop_mode.value,
        SHUFFLE_KEY: "true" if settings.shuffle_enabled else "false",
    }


def _parse_volume(raw: Optional[str]) -> float:
    if raw is None:
        return DEFAULT_VOLUME
    try:
        return clamp_volume(raw)
    except ValueError:
        logger.warning(f"Ignoring corrupt stored volume {raw!r}")
        return DEFAULT_VOLUME


def _parse_loop(raw: Optional[str]) -> LoopMode:
    if raw is None:
        return LoopMode.OFF
    try:
        return LoopMode.parse(raw)
    except ValueError:
        logger.warning(f"Ignoring corrupt stored loop mode {raw!r}")
        return LoopMode.OFF


def _parse_bool(raw: Optional[str]) -> bool:
    if raw is None:
        return False
    value = raw.strip().lower()
    if value in ("true", "1"):
        return True
    if value not in ("false", "0"):
        logger.warning(f"Ignoring corrupt stored shuffle flag {raw!r}")
    return False


def decode_settings(values: dict[str, Optional[str]]) -> PlaybackSettings:
    """Build settings from stored strings; each bad value falls back alone."""
    return PlaybackSettings(
        volume=_parse_volume(values.get(VOLUME_KEY)),
        loop_mode=_parse_loop(values.get(LOOP_KEY)),
        shuffle_enabled=_parse_bool(values.get(SHUFFLE_KEY)),
    )


class PersistenceGateway:
    """Loads and saves playlists and settings through the key/value storage."""

    def load_playlists(self) -> list[Playlist]:
        """
        Load all playlists, migrating the legacy format on first sight.

        Returns:
            Stored playlists in order; an empty list when nothing is stored or
            the stored value is corrupt
        """
        raw = database.get_value(PLAYLISTS_KEY)
        legacy_raw = database.get_value(LEGACY_TRACKS_KEY)

        if raw is None:
            if legacy_raw is not None:
                return self._migrate_legacy(legacy_raw)
            return []

        if legacy_raw is not None:
            logger.warning(
                f"Both '{PLAYLISTS_KEY}' and legacy '{LEGACY_TRACKS_KEY}' are stored; "
                "dropping the legacy key"
            )
            database.delete_value(LEGACY_TRACKS_KEY)

        try:
            return decode_playlists(raw)
        except (ValueError, TypeError) as e:
            logger.warning(f"Stored playlists are corrupt, starting empty: {e}")
            return []

    def save_playlists(self, playlists: list[Playlist] | tuple[Playlist, ...]) -> None:
        database.set_value(PLAYLISTS_KEY, encode_playlists(playlists))
        logger.debug(f"Saved {len(playlists)} playlists")

    def load_settings(self) -> PlaybackSettings:
        values = {
            key: database.get_value(key) for key in (VOLUME_KEY, LOOP_KEY, SHUFFLE_KEY)
        }
        return decode_settings(values)

    def save_settings(self, settings: PlaybackSettings) -> None:
        database.set_values(encode_settings(settings))
        logger.debug(f"Saved settings {settings}")

    def _migrate_legacy(self, legacy_raw: str) -> list[Playlist]:
        try:
            tracks = decode_legacy_tracks(legacy_raw)
        except (ValueError, TypeError) as e:
            logger.warning(f"Legacy track list is corrupt, discarding it: {e}")
            database.delete_value(LEGACY_TRACKS_KEY)
            return []

        playlist = Playlist(
            id=str(int(time.time() * 1000)),
            title=LEGACY_PLAYLIST_TITLE,
            tracks=tuple(tracks),
        )
        self.save_playlists([playlist])
        database.delete_value(LEGACY_TRACKS_KEY)
        logger.info(
            f"Migrated {len(tracks)} legacy tracks into playlist '{LEGACY_PLAYLIST_TITLE}'"
        )
        return [playlist]


def open_gateway() -> Optional[PersistenceGateway]:
    """Initialise storage and return a gateway, or None when storage is unusable."""
    try:
        database.init_database()
    except (sqlite3.Error, OSError) as e:
        logger.error(f"Storage unavailable ({database.get_database_path()}): {e}")
        return None
    return PersistenceGateway()
