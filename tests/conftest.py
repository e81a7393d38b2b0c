"""Shared fixtures for Frequency tests."""

from pathlib import Path
from typing import Iterable

import pytest

from frequency.core import database
from frequency.domain.playlists import Playlist, Track


class ScriptedRandom:
    """randint() that replays a fixed script, then falls back to the lower bound."""

    def __init__(self, values: Iterable[int] = ()):
        self.values = list(values)
        self.calls: list[tuple[int, int]] = []

    def randint(self, a: int, b: int) -> int:
        self.calls.append((a, b))
        if self.values:
            return self.values.pop(0)
        return a


def make_track(track_id: str, title: str = None) -> Track:
    return Track(
        id=track_id,
        title=title or f"Track {track_id.upper()}",
        url=f"https://example.com/{track_id}.mp3",
        added_at="2024-05-01",
    )


def make_playlist(playlist_id: str, track_ids: Iterable[str] = (), title: str = None) -> Playlist:
    return Playlist(
        id=playlist_id,
        title=title or f"Playlist {playlist_id}",
        tracks=tuple(make_track(tid) for tid in track_ids),
    )


@pytest.fixture
def abc_playlist() -> Playlist:
    """Playlist with tracks a, b, c in order."""
    return make_playlist("p1", ["a", "b", "c"], title="Focus")


@pytest.fixture
def data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point config, data and the database at a temporary directory."""
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    for name in ("FREQUENCY_PLAYER_BACKEND", "FREQUENCY_LOG_LEVEL", "FREQUENCY_DATABASE_PATH"):
        monkeypatch.delenv(name, raising=False)
    database.set_database_path(tmp_path / "frequency.db")
    yield tmp_path
    database.set_database_path(None)


@pytest.fixture
def test_db(data_dir: Path) -> Path:
    """An initialised database in the temporary data directory."""
    database.init_database()
    return database.get_database_path()


@pytest.fixture
def track_factory():
    """make_track(track_id, title=None) -> Track"""
    return make_track


@pytest.fixture
def playlist_factory():
    """make_playlist(playlist_id, track_ids=(), title=None) -> Playlist"""
    return make_playlist


@pytest.fixture
def scripted_rng():
    """ScriptedRandom(values) factory for deterministic shuffles."""
    return ScriptedRandom
