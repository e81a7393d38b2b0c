"""Tests for the mpv sink (IPC and process calls are mocked)."""

import base64
import time
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from frequency.core.config import PlayerConfig
from frequency.domain.playback import NullSink, SinkError
from frequency.domain.playback.player import (
    MpvSink,
    check_mpv_available,
    create_sink,
    get_mpv_property,
    materialize_data_url,
    resolve_playable_target,
    send_mpv_command,
)

PLAYER = "frequency.domain.playback.player"


@pytest.fixture
def running_sink() -> MpvSink:
    """MpvSink that believes mpv is running."""
    sink = MpvSink(PlayerConfig(backend="mpv"))
    sink.socket_path = "/tmp/frequency-test.sock"
    with patch.object(MpvSink, "is_running", return_value=True):
        yield sink


def _properties(position, duration, eof):
    values = {"time-pos": position, "duration": duration, "eof-reached": eof}
    return lambda _socket, name: values[name]


class TestTargets:
    """Tests for turning track urls into mpv targets."""

    def test_file_uri_becomes_path(self) -> None:
        assert resolve_playable_target("file:///music/My%20Song.mp3") == "/music/My Song.mp3"

    @pytest.mark.parametrize("url", ["https://example.com/a.mp3", "/music/a.flac"])
    def test_other_urls_pass_through(self, url: str) -> None:
        assert resolve_playable_target(url) == url

    def test_materialize_data_url(self, tmp_path: Path) -> None:
        payload = base64.b64encode(b"ID3fake-audio").decode("ascii")
        path = materialize_data_url(f"data:audio/mpeg;base64,{payload}", tmp_path)
        assert path.parent == tmp_path
        assert path.suffix == ".mpeg"
        assert path.read_bytes() == b"ID3fake-audio"

    @pytest.mark.parametrize(
        "url",
        ["data:audio/mpeg,plain-text", "data:audio/mpeg;base64,@@not-base64@@", "https://x/y"],
    )
    def test_materialize_rejects_bad_urls(self, url: str, tmp_path: Path) -> None:
        with pytest.raises(SinkError):
            materialize_data_url(url, tmp_path)


class TestIpcHelpers:
    """Tests for the socket helpers."""

    def test_missing_socket(self, tmp_path: Path) -> None:
        missing = str(tmp_path / "none.sock")
        assert send_mpv_command(missing, {"command": ["stop"]}) is False
        assert send_mpv_command(None, {"command": ["stop"]}) is False
        assert get_mpv_property(missing, "volume") is None

    def test_send_reads_error_field(self, tmp_path: Path) -> None:
        sock_path = tmp_path / "mpv.sock"
        sock_path.touch()
        fake_socket = MagicMock()
        fake_socket.recv.return_value = (
            b'{"event":"pause"}\n{"error":"success","request_id":0}\n'
        )
        with patch(f"{PLAYER}.socket.socket", return_value=fake_socket):
            assert send_mpv_command(str(sock_path), {"command": ["stop"]}) is True
        fake_socket.connect.assert_called_once_with(str(sock_path))

    def test_send_reports_rejection(self, tmp_path: Path) -> None:
        sock_path = tmp_path / "mpv.sock"
        sock_path.touch()
        fake_socket = MagicMock()
        fake_socket.recv.return_value = b'{"error":"invalid parameter"}\n'
        with patch(f"{PLAYER}.socket.socket", return_value=fake_socket):
            assert send_mpv_command(str(sock_path), {"command": ["bogus"]}) is False

    def test_get_property(self, tmp_path: Path) -> None:
        sock_path = tmp_path / "mpv.sock"
        sock_path.touch()
        fake_socket = MagicMock()
        fake_socket.recv.return_value = b'{"data":42.5,"error":"success"}\n'
        with patch(f"{PLAYER}.socket.socket", return_value=fake_socket):
            assert get_mpv_property(str(sock_path), "time-pos") == 42.5

    def test_check_mpv_available(self) -> None:
        with patch(f"{PLAYER}.shutil.which", return_value=None):
            assert check_mpv_available("mpv") is False
        with (
            patch(f"{PLAYER}.shutil.which", return_value="/usr/bin/mpv"),
            patch(f"{PLAYER}.subprocess.run", return_value=MagicMock(returncode=0)),
        ):
            assert check_mpv_available("mpv") is True


class TestMpvSink:
    """Tests for MpvSink commands."""

    def test_load_pauses_then_loads(self, running_sink: MpvSink) -> None:
        with patch(f"{PLAYER}.send_mpv_command", return_value=True) as send:
            running_sink.load("file:///music/a.flac")
        commands = [c.args[1]["command"] for c in send.call_args_list]
        assert commands == [
            ["set_property", "pause", True],
            ["loadfile", "/music/a.flac", "replace"],
        ]

    def test_play_pause_rewind_volume(self, running_sink: MpvSink) -> None:
        with patch(f"{PLAYER}.send_mpv_command", return_value=True) as send:
            assert running_sink.play() is None
            running_sink.pause()
            running_sink.rewind()
            running_sink.set_volume(0.35)
        commands = [c.args[1]["command"] for c in send.call_args_list]
        assert commands == [
            ["set_property", "pause", False],
            ["set_property", "pause", True],
            ["seek", 0, "absolute"],
            ["set_property", "volume", 35],
        ]

    def test_rejected_command_raises(self, running_sink: MpvSink) -> None:
        with patch(f"{PLAYER}.send_mpv_command", return_value=False):
            with pytest.raises(SinkError):
                running_sink.play()

    def test_load_data_url_uses_temp_file(self, running_sink: MpvSink) -> None:
        payload = base64.b64encode(b"audio").decode("ascii")
        with patch(f"{PLAYER}.send_mpv_command", return_value=True) as send:
            running_sink.load(f"data:audio/ogg;base64,{payload}")
        target = send.call_args_list[1].args[1]["command"][1]
        assert Path(target).read_bytes() == b"audio"

        running_sink.close()
        assert not Path(target).exists()

    def test_start_failure_raises(self) -> None:
        sink = MpvSink(PlayerConfig(mpv_path="/nonexistent/mpv"))
        with patch(f"{PLAYER}.subprocess.Popen", side_effect=FileNotFoundError("mpv")):
            with pytest.raises(SinkError):
                sink.load("https://example.com/a.mp3")

    def test_volume_before_start_is_remembered(self) -> None:
        sink = MpvSink(PlayerConfig())
        with patch(f"{PLAYER}.send_mpv_command") as send:
            sink.set_volume(0.5)
        send.assert_not_called()
        assert sink._volume == 0.5


class TestIsFinished:
    """Tests for end-of-track detection safeguards."""

    def test_not_running(self) -> None:
        assert MpvSink(PlayerConfig()).is_finished() is False

    def test_position_at_end(self, running_sink: MpvSink) -> None:
        running_sink.playback_started_at = time.time() - 60
        with patch(f"{PLAYER}.get_mpv_property", side_effect=_properties(179.8, 180.0, False)):
            assert running_sink.is_finished() is True

    def test_mid_track(self, running_sink: MpvSink) -> None:
        running_sink.playback_started_at = time.time() - 60
        with patch(f"{PLAYER}.get_mpv_property", side_effect=_properties(60.0, 180.0, False)):
            assert running_sink.is_finished() is False

    def test_minimum_playback_time(self, running_sink: MpvSink) -> None:
        running_sink.playback_started_at = time.time()
        with patch(f"{PLAYER}.get_mpv_property", side_effect=_properties(180.0, 180.0, True)):
            assert running_sink.is_finished() is False

    def test_short_duration_needs_eof(self, running_sink: MpvSink) -> None:
        running_sink.playback_started_at = time.time() - 60
        with patch(f"{PLAYER}.get_mpv_property", side_effect=_properties(4.95, 5.0, False)):
            assert running_sink.is_finished() is False
        with patch(f"{PLAYER}.get_mpv_property", side_effect=_properties(4.95, 5.0, True)):
            assert running_sink.is_finished() is True


class TestCreateSink:
    def test_null_backend(self) -> None:
        assert isinstance(create_sink(PlayerConfig(backend="null")), NullSink)

    def test_mpv_backend(self) -> None:
        assert isinstance(create_sink(PlayerConfig(backend="mpv")), MpvSink)
