"""Tests for transport transitions and session invariants."""

import random

import pytest

from frequency.domain.playback import transport
from frequency.domain.playback.exceptions import SessionInvariantError
from frequency.domain.playback.state import (
    LoopMode,
    PlaybackSession,
    PlaybackSettings,
    check_session,
    clamp_volume,
)
from frequency.domain.playlists import Playlist, TrackNotFoundError


def _active(playlist: Playlist, **overrides) -> PlaybackSession:
    return PlaybackSession(active_playlist_id=playlist.id, **overrides)


def _shuffled(playlist: Playlist, queue, **overrides) -> PlaybackSession:
    return PlaybackSession(
        active_playlist_id=playlist.id,
        shuffle_enabled=True,
        shuffle_queue=tuple(queue),
        **overrides,
    )


class TestLoopMode:
    """Tests for LoopMode cycling and parsing."""

    def test_cycle_order(self) -> None:
        assert LoopMode.OFF.cycle() is LoopMode.ALL
        assert LoopMode.ALL.cycle() is LoopMode.ONE
        assert LoopMode.ONE.cycle() is LoopMode.OFF

    @pytest.mark.parametrize("raw,expected", [("off", LoopMode.OFF), ("ALL", LoopMode.ALL), (" one ", LoopMode.ONE)])
    def test_parse(self, raw: str, expected: LoopMode) -> None:
        assert LoopMode.parse(raw) is expected

    def test_parse_rejects_unknown(self) -> None:
        with pytest.raises(ValueError):
            LoopMode.parse("sometimes")


class TestClampVolume:
    """Tests for clamp_volume."""

    @pytest.mark.parametrize("value,expected", [(-0.5, 0.0), (0.0, 0.0), (0.25, 0.25), (1.0, 1.0), (3, 1.0), ("0.5", 0.5)])
    def test_clamps(self, value, expected: float) -> None:
        assert clamp_volume(value) == expected

    @pytest.mark.parametrize("value", [None, "loud", float("nan")])
    def test_rejects_non_numbers(self, value) -> None:
        with pytest.raises(ValueError):
            clamp_volume(value)


class TestPlaybackSession:
    """Tests for the session snapshot itself."""

    def test_defaults(self) -> None:
        session = PlaybackSession()
        assert session.active_playlist_id is None
        assert session.current_track_id is None
        assert session.is_playing is False
        assert session.volume == 1.0
        assert session.loop_mode is LoopMode.OFF
        assert session.shuffle_enabled is False
        assert session.shuffle_queue is None

    def test_from_settings_is_paused_with_nothing_selected(self) -> None:
        session = PlaybackSession.from_settings(
            PlaybackSettings(volume=0.3, loop_mode=LoopMode.ALL, shuffle_enabled=True)
        )
        assert session.volume == 0.3
        assert session.loop_mode is LoopMode.ALL
        assert session.shuffle_enabled is True
        assert session.shuffle_queue == ()
        assert session.current_track_id is None
        assert session.is_playing is False

    def test_settings_property(self) -> None:
        session = PlaybackSession(volume=0.4, loop_mode=LoopMode.ONE, shuffle_enabled=False)
        assert session.settings == PlaybackSettings(0.4, LoopMode.ONE, False)


class TestCheckSession:
    """Tests for invariant checking."""

    def test_valid_session_passes(self, abc_playlist: Playlist) -> None:
        check_session(_active(abc_playlist, current_track_id="b"), abc_playlist)
        check_session(_shuffled(abc_playlist, ["c", "a", "b"]), abc_playlist)
        check_session(PlaybackSession(), None)

    def test_dangling_current_track_fails(self, abc_playlist: Playlist) -> None:
        with pytest.raises(SessionInvariantError):
            check_session(_active(abc_playlist, current_track_id="zzz"), abc_playlist)

    def test_queue_must_be_permutation(self, abc_playlist: Playlist) -> None:
        with pytest.raises(SessionInvariantError):
            check_session(_shuffled(abc_playlist, ["a", "b"]), abc_playlist)
        with pytest.raises(SessionInvariantError):
            check_session(_shuffled(abc_playlist, ["a", "a", "b"]), abc_playlist)

    def test_queue_only_while_shuffling(self, abc_playlist: Playlist) -> None:
        with pytest.raises(SessionInvariantError):
            check_session(_active(abc_playlist, shuffle_queue=("a", "b", "c")), abc_playlist)

    def test_wrong_playlist_fails(self, abc_playlist: Playlist, playlist_factory) -> None:
        other = playlist_factory("p2", ["x"])
        with pytest.raises(SessionInvariantError):
            check_session(_active(abc_playlist), other)


class TestPlay:
    """Tests for transport.play."""

    def test_play_sets_current_and_playing(self, abc_playlist: Playlist) -> None:
        session = transport.play(_active(abc_playlist), abc_playlist, "b")
        assert session.current_track_id == "b"
        assert session.is_playing is True

    def test_play_unknown_track_raises(self, abc_playlist: Playlist) -> None:
        with pytest.raises(TrackNotFoundError):
            transport.play(_active(abc_playlist), abc_playlist, "nope")

    def test_play_in_other_playlist_switches_and_reshuffles(
        self, abc_playlist: Playlist, playlist_factory, scripted_rng
    ) -> None:
        """Test switching playlists while shuffling builds a queue for the new one."""
        other = playlist_factory("p2", ["x", "y"])
        session = _shuffled(abc_playlist, ["a", "b", "c"], current_track_id="a")
        session = transport.play(session, other, "y", scripted_rng([0]))
        assert session.active_playlist_id == "p2"
        assert session.current_track_id == "y"
        assert session.shuffle_queue == ("y", "x")
        check_session(session, other)

    def test_play_same_playlist_keeps_queue(self, abc_playlist: Playlist) -> None:
        session = _shuffled(abc_playlist, ["c", "a", "b"])
        session = transport.play(session, abc_playlist, "a")
        assert session.shuffle_queue == ("c", "a", "b")

    def test_pause(self, abc_playlist: Playlist) -> None:
        session = transport.play(_active(abc_playlist), abc_playlist, "a")
        paused = transport.pause(session)
        assert paused.is_playing is False
        assert paused.current_track_id == "a"


class TestNext:
    """Tests for transport.next_track."""

    def test_next_stops_after_last_without_loop(self, abc_playlist: Playlist) -> None:
        """Test play(a), next x2, then next stops on c."""
        session = transport.play(_active(abc_playlist), abc_playlist, "a")
        session = transport.next_track(session, abc_playlist)
        assert session.current_track_id == "b"
        session = transport.next_track(session, abc_playlist)
        assert session.current_track_id == "c"
        assert session.is_playing is True

        session = transport.next_track(session, abc_playlist)
        assert session.is_playing is False
        assert session.current_track_id == "c"

    def test_next_wraps_with_loop_all(self, abc_playlist: Playlist) -> None:
        """Test loop ALL: play(c) then next goes to a and keeps playing."""
        session = _active(abc_playlist, loop_mode=LoopMode.ALL)
        session = transport.play(session, abc_playlist, "c")
        session = transport.next_track(session, abc_playlist)
        assert session.current_track_id == "a"
        assert session.is_playing is True

    def test_next_with_loop_one_still_stops_at_end(self, abc_playlist: Playlist) -> None:
        session = _active(abc_playlist, loop_mode=LoopMode.ONE)
        session = transport.play(session, abc_playlist, "c")
        session = transport.next_track(session, abc_playlist)
        assert session.is_playing is False
        assert session.current_track_id == "c"

    @pytest.mark.parametrize("length", [1, 2, 5, 9])
    def test_stops_exactly_after_n_nexts(self, length: int, playlist_factory) -> None:
        """Test loop OFF from index 0: the Nth next is the one that stops."""
        ids = [f"t{i}" for i in range(length)]
        playlist = playlist_factory("p", ids)
        session = transport.play(_active(playlist), playlist, ids[0])
        for step in range(1, length):
            session = transport.next_track(session, playlist)
            assert session.is_playing is True
            assert session.current_track_id == ids[step]
        session = transport.next_track(session, playlist)
        assert session.is_playing is False
        assert session.current_track_id == ids[-1]

    def test_loop_all_covers_every_track_before_repeating(self, playlist_factory) -> None:
        ids = [f"t{i}" for i in range(6)]
        playlist = playlist_factory("p", ids)
        session = transport.play(_active(playlist, loop_mode=LoopMode.ALL), playlist, ids[0])
        seen = [session.current_track_id]
        for _ in range(len(ids) * 3 - 1):
            session = transport.next_track(session, playlist)
            assert session.is_playing is True
            seen.append(session.current_track_id)
        for cycle in range(3):
            assert seen[cycle * 6:(cycle + 1) * 6] == ids

    def test_loop_all_single_track_restarts_each_wrap(self, playlist_factory) -> None:
        solo = playlist_factory("p", ["a"])
        session = transport.play(_active(solo, loop_mode=LoopMode.ALL), solo, "a")
        for epoch in range(1, 4):
            session = transport.next_track(session, solo)
            assert session.current_track_id == "a"
            assert session.is_playing is True
            assert session.restart_epoch == epoch

    def test_moving_to_another_track_keeps_epoch(self, abc_playlist: Playlist) -> None:
        session = transport.play(_active(abc_playlist, loop_mode=LoopMode.ALL), abc_playlist, "c")
        assert transport.next_track(session, abc_playlist).restart_epoch == 0

    def test_next_follows_shuffle_queue(self, abc_playlist: Playlist) -> None:
        session = _shuffled(abc_playlist, ["c", "a", "b"], current_track_id="c", is_playing=True)
        session = transport.next_track(session, abc_playlist)
        assert session.current_track_id == "a"

    def test_next_without_current_starts_ordering(self, abc_playlist: Playlist) -> None:
        session = transport.next_track(_active(abc_playlist), abc_playlist)
        assert session.current_track_id == "a"
        assert session.is_playing is True

    def test_next_on_empty_playlist_pauses(self, playlist_factory) -> None:
        empty = playlist_factory("p", [])
        session = transport.next_track(_active(empty, is_playing=True), empty)
        assert session.is_playing is False
        assert session.current_track_id is None

    def test_next_without_playlist_pauses(self) -> None:
        session = transport.next_track(PlaybackSession(is_playing=True), None)
        assert session.is_playing is False


class TestPrev:
    """Tests for transport.prev_track."""

    @pytest.mark.parametrize("mode", list(LoopMode))
    def test_prev_from_first_wraps_regardless_of_loop(self, abc_playlist: Playlist, mode: LoopMode) -> None:
        session = transport.play(_active(abc_playlist, loop_mode=mode), abc_playlist, "a")
        session = transport.prev_track(session, abc_playlist)
        assert session.current_track_id == "c"
        assert session.is_playing is True

    def test_prev_steps_back(self, abc_playlist: Playlist) -> None:
        session = transport.play(_active(abc_playlist), abc_playlist, "c")
        session = transport.prev_track(session, abc_playlist)
        assert session.current_track_id == "b"

    def test_prev_wraps_in_shuffle_order(self, abc_playlist: Playlist, scripted_rng) -> None:
        """Test queue [b, a, c]: play(b) then prev wraps to c."""
        session = transport.toggle_shuffle(_active(abc_playlist), abc_playlist, scripted_rng([2, 0]))
        assert session.shuffle_queue == ("b", "a", "c")
        session = transport.play(session, abc_playlist, "b")
        session = transport.prev_track(session, abc_playlist)
        assert session.current_track_id == "c"

    def test_prev_on_empty_playlist_pauses(self, playlist_factory) -> None:
        empty = playlist_factory("p", [])
        session = transport.prev_track(_active(empty, is_playing=True), empty)
        assert session.is_playing is False

    def test_prev_in_single_track_ordering_restarts(self, playlist_factory) -> None:
        solo = playlist_factory("p", ["a"])
        session = transport.play(_active(solo), solo, "a")
        session = transport.prev_track(session, solo)
        assert session.current_track_id == "a"
        assert session.restart_epoch == 1


class TestOnEnded:
    """Tests for transport.on_ended."""

    def test_loop_one_replays_same_track(self, abc_playlist: Playlist) -> None:
        session = transport.play(_active(abc_playlist, loop_mode=LoopMode.ONE), abc_playlist, "b")
        for epoch in range(1, 4):
            session = transport.on_ended(session, abc_playlist)
            assert session.current_track_id == "b"
            assert session.is_playing is True
            assert session.restart_epoch == epoch

    def test_loop_off_advances(self, abc_playlist: Playlist) -> None:
        session = transport.play(_active(abc_playlist), abc_playlist, "a")
        session = transport.on_ended(session, abc_playlist)
        assert session.current_track_id == "b"
        assert session.restart_epoch == 0

    def test_loop_off_last_track_stops(self, abc_playlist: Playlist) -> None:
        session = transport.play(_active(abc_playlist), abc_playlist, "c")
        session = transport.on_ended(session, abc_playlist)
        assert session.is_playing is False
        assert session.current_track_id == "c"

    def test_loop_all_last_track_wraps(self, abc_playlist: Playlist) -> None:
        session = transport.play(_active(abc_playlist, loop_mode=LoopMode.ALL), abc_playlist, "c")
        session = transport.on_ended(session, abc_playlist)
        assert session.current_track_id == "a"


class TestSettingsTransitions:
    """Tests for volume, loop and shuffle transitions."""

    def test_set_volume_clamps(self) -> None:
        assert transport.set_volume(PlaybackSession(), 1.7).volume == 1.0
        assert transport.set_volume(PlaybackSession(), -1).volume == 0.0
        assert transport.set_volume(PlaybackSession(), 0.42).volume == 0.42

    def test_cycle_loop_mode(self) -> None:
        session = PlaybackSession()
        modes = []
        for _ in range(4):
            session = transport.cycle_loop_mode(session)
            modes.append(session.loop_mode)
        assert modes == [LoopMode.ALL, LoopMode.ONE, LoopMode.OFF, LoopMode.ALL]

    def test_toggle_shuffle_on_builds_queue(self, abc_playlist: Playlist) -> None:
        session = transport.toggle_shuffle(_active(abc_playlist), abc_playlist, random.Random(3))
        assert session.shuffle_enabled is True
        assert sorted(session.shuffle_queue) == ["a", "b", "c"]
        check_session(session, abc_playlist)

    def test_toggle_shuffle_off_drops_queue(self, abc_playlist: Playlist) -> None:
        session = transport.toggle_shuffle(_shuffled(abc_playlist, ["b", "c", "a"]), abc_playlist)
        assert session.shuffle_enabled is False
        assert session.shuffle_queue is None

    def test_toggle_shuffle_keeps_current_track(self, abc_playlist: Playlist) -> None:
        session = transport.play(_active(abc_playlist), abc_playlist, "b")
        session = transport.toggle_shuffle(session, abc_playlist, random.Random(0))
        assert session.current_track_id == "b"
        assert session.is_playing is True


class TestSelectPlaylist:
    """Tests for transport.select_playlist."""

    def test_switch_clears_current_and_pauses(self, abc_playlist: Playlist, playlist_factory) -> None:
        other = playlist_factory("p2", ["x"])
        session = transport.play(_active(abc_playlist), abc_playlist, "a")
        session = transport.select_playlist(session, other)
        assert session.active_playlist_id == "p2"
        assert session.current_track_id is None
        assert session.is_playing is False

    def test_same_playlist_is_noop(self, abc_playlist: Playlist) -> None:
        session = transport.play(_active(abc_playlist), abc_playlist, "a")
        assert transport.select_playlist(session, abc_playlist) is session

    def test_switch_regenerates_queue(self, abc_playlist: Playlist, playlist_factory) -> None:
        other = playlist_factory("p2", ["x", "y", "z"])
        session = _shuffled(abc_playlist, ["a", "b", "c"])
        session = transport.select_playlist(session, other, random.Random(9))
        assert sorted(session.shuffle_queue) == ["x", "y", "z"]

    def test_deselect(self, abc_playlist: Playlist) -> None:
        session = transport.select_playlist(_active(abc_playlist), None)
        assert session.active_playlist_id is None


class TestReconcile:
    """Tests for repairing a session after store changes."""

    def test_removed_current_track_is_cleared(self, abc_playlist: Playlist) -> None:
        session = transport.play(_active(abc_playlist), abc_playlist, "b")
        shrunk = abc_playlist.with_tracks([t for t in abc_playlist.tracks if t.id != "b"])
        session = transport.reconcile(session, shrunk)
        assert session.current_track_id is None
        assert session.is_playing is False
        check_session(session, shrunk)

    def test_surviving_current_track_is_kept(self, abc_playlist: Playlist) -> None:
        session = transport.play(_active(abc_playlist), abc_playlist, "a")
        shrunk = abc_playlist.with_tracks(abc_playlist.tracks[:2])
        session = transport.reconcile(session, shrunk)
        assert session.current_track_id == "a"
        assert session.is_playing is True

    def test_queue_regenerated_when_track_added(self, abc_playlist: Playlist, track_factory) -> None:
        session = _shuffled(abc_playlist, ["c", "b", "a"])
        grown = abc_playlist.with_tracks(abc_playlist.tracks + (track_factory("d"),))
        session = transport.reconcile(session, grown, random.Random(5))
        assert sorted(session.shuffle_queue) == ["a", "b", "c", "d"]
        check_session(session, grown)

    def test_queue_kept_on_reorder(self, abc_playlist: Playlist) -> None:
        session = _shuffled(abc_playlist, ["c", "b", "a"])
        reordered = abc_playlist.with_tracks(tuple(reversed(abc_playlist.tracks)))
        assert transport.reconcile(session, reordered).shuffle_queue == ("c", "b", "a")

    def test_missing_playlist_clears_everything(self, abc_playlist: Playlist) -> None:
        session = transport.play(_active(abc_playlist), abc_playlist, "a")
        session = transport.reconcile(session, None)
        assert session.active_playlist_id is None
        assert session.current_track_id is None
        assert session.is_playing is False

    def test_missing_playlist_with_shuffle_empties_queue(self, abc_playlist: Playlist) -> None:
        session = transport.reconcile(_shuffled(abc_playlist, ["a", "b", "c"]), None)
        assert session.shuffle_queue == ()
        check_session(session, None)

    @pytest.mark.parametrize("seed", range(10))
    def test_removing_current_never_dangles(self, seed: int, playlist_factory) -> None:
        """Test random removals never leave a current id that no longer exists."""
        rng = random.Random(seed)
        ids = [f"t{i}" for i in range(8)]
        playlist = playlist_factory("p", ids)
        session = transport.play(_active(playlist, shuffle_enabled=True, shuffle_queue=tuple(ids)), playlist, rng.choice(ids))
        while playlist.tracks:
            victim = session.current_track_id or rng.choice(playlist.track_ids)
            playlist = playlist.with_tracks([t for t in playlist.tracks if t.id != victim])
            session = transport.reconcile(session, playlist, rng)
            check_session(session, playlist)
            if playlist.tracks:
                session = transport.play(session, playlist, rng.choice(playlist.track_ids))
