"""Tests for input parsing and reference resolution."""

import pytest

from frequency.domain.playlists import PlaylistStore
from frequency.helpers import describe_url, resolve_playlist, resolve_track
from frequency.utils.parsers import parse_command, parse_position, parse_volume, split_args


class TestSplitArgs:
    def test_quotes_group_words(self) -> None:
        assert split_args('playlist rename "Old Name" \'New Name\'') == [
            "playlist",
            "rename",
            "Old Name",
            "New Name",
        ]

    def test_unbalanced_quote_falls_back(self) -> None:
        assert split_args('add url "Broken https://x') == ["add", "url", '"Broken', "https://x"]


class TestParseCommand:
    def test_lowercases_command_only(self) -> None:
        assert parse_command("  PLAY Track  ") == ("play", ["Track"])

    def test_empty(self) -> None:
        assert parse_command("   ") == ("", [])


class TestParseVolume:
    @pytest.mark.parametrize(
        "text,expected",
        [("40", 0.4), ("40%", 0.4), ("0.4", 0.4), ("1", 1.0), ("0", 0.0), ("100", 1.0), ("1%", 0.01)],
    )
    def test_values(self, text: str, expected: float) -> None:
        assert parse_volume(text) == pytest.approx(expected)

    @pytest.mark.parametrize("text", ["", "loud", "%"])
    def test_not_a_number(self, text: str) -> None:
        assert parse_volume(text) is None


class TestParsePosition:
    @pytest.mark.parametrize("text,expected", [("1", 0), ("12", 11), ("0", None), ("-3", None), ("two", None)])
    def test_positions(self, text: str, expected) -> None:
        assert parse_position(text) == expected


class TestResolve:
    """Tests for turning user references into playlists and tracks."""

    def test_resolve_playlist(self, abc_playlist, playlist_factory) -> None:
        store = PlaylistStore([abc_playlist, playlist_factory("p2", title="Run")])
        assert resolve_playlist(store, "p2").title == "Run"
        assert resolve_playlist(store, "focus").id == "p1"
        assert resolve_playlist(store, "2").id == "p2"
        assert resolve_playlist(store, "3") is None
        assert resolve_playlist(store, "Walk") is None

    def test_resolve_track(self, abc_playlist) -> None:
        assert resolve_track(abc_playlist, "b").id == "b"
        assert resolve_track(abc_playlist, "3").id == "c"
        assert resolve_track(abc_playlist, " track a ").id == "a"
        assert resolve_track(abc_playlist, "4") is None

    def test_id_wins_over_position(self, playlist_factory) -> None:
        playlist = playlist_factory("p", ["2", "1"])
        assert resolve_track(playlist, "1").id == "1"

    def test_describe_url(self, track_factory) -> None:
        track = track_factory("a")
        assert describe_url(track) == "https://example.com/a.mp3"
        embedded = track.__class__(id="e", title="E", url="data:audio/mpeg;base64," + "A" * 500)
        assert describe_url(embedded) == "embedded"
        long_url = track.__class__(id="l", title="L", url="https://example.com/" + "x" * 100)
        assert len(describe_url(long_url)) == 60
