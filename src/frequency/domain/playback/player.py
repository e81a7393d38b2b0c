"""
MPV audio sink with JSON IPC for Frequency
"""

import base64
import binascii
import json
import os
import shutil
import socket
import subprocess
import tempfile
import time
from concurrent.futures import Future
from pathlib import Path
from typing import Any, Optional
from urllib.parse import unquote, urlparse

from loguru import logger

from frequency.core.config import PlayerConfig

from .exceptions import SinkError

# Minimum valid duration (seconds) - durations below this indicate metadata errors
MIN_VALID_DURATION = 10.0

# Minimum playback time before allowing "track finished" (seconds)
MIN_PLAYBACK_TIME = 3.0


def check_mpv_available(mpv_path: str = "mpv") -> bool:
    """Check if MPV is available on the system."""
    if shutil.which(mpv_path) is None:
        return False
    try:
        result = subprocess.run(
            [mpv_path, "--version"], capture_output=True, text=True, timeout=5
        )
        return result.returncode == 0
    except (subprocess.SubprocessError, FileNotFoundError, OSError):
        return False


def send_mpv_command(socket_path: Optional[str], command: dict[str, Any]) -> bool:
    """Send JSON IPC command to MPV."""
    if not socket_path or not os.path.exists(socket_path):
        return False

    try:
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        sock.settimeout(2.0)
        sock.connect(socket_path)

        command_json = json.dumps(command) + "\n"
        sock.send(command_json.encode("utf-8"))

        response = sock.recv(4096).decode("utf-8").strip()
        sock.close()

        if response:
            try:
                # mpv may interleave event lines; the reply is the line with "error"
                for line in response.splitlines():
                    response_data = json.loads(line)
                    if "error" in response_data:
                        return response_data.get("error") == "success"
            except json.JSONDecodeError:
                return False

        return True

    except (socket.error, OSError):
        return False


def get_mpv_property(socket_path: Optional[str], property_name: str) -> Any:
    """Get a property value from MPV."""
    if not socket_path or not os.path.exists(socket_path):
        return None

    try:
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        sock.settimeout(2.0)
        sock.connect(socket_path)

        command = {"command": ["get_property", property_name]}
        command_json = json.dumps(command) + "\n"
        sock.send(command_json.encode("utf-8"))

        response = sock.recv(4096).decode("utf-8").strip()
        sock.close()

        for line in response.splitlines():
            try:
                response_data = json.loads(line)
            except json.JSONDecodeError:
                continue
            if response_data.get("error") == "success":
                return response_data.get("data")

        return None

    except (socket.error, OSError):
        return None


def resolve_playable_target(url: str) -> str:
    """Turn a track url into something mpv can open.

    file:// URIs become plain paths; http(s) urls and paths pass through.
    data: urls are handled by MpvSink, which writes them to a temp file.
    """
    parsed = urlparse(url)
    if parsed.scheme == "file":
        return unquote(parsed.path)
    return url


def materialize_data_url(url: str, directory: Path) -> Path:
    """Decode a base64 data: URL into a temporary file.

    Raises:
        SinkError: If the url is not a base64 data url
    """
    header, sep, payload = url.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise SinkError("Only base64 data: URLs can be played")
    try:
        content = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise SinkError(f"Corrupt embedded audio: {e}") from e

    mime = header[len("data:"):-len(";base64")]
    suffix = "." + mime.split("/")[-1] if "/" in mime else ""
    fd, name = tempfile.mkstemp(prefix="frequency-", suffix=suffix, dir=directory)
    with os.fdopen(fd, "wb") as f:
        f.write(content)
    return Path(name)


class MpvSink:
    """AudioSink backed by an mpv process controlled over its IPC socket.

    The process is started lazily on the first load().
    """

    def __init__(self, config: PlayerConfig):
        self.config = config
        self.socket_path: Optional[str] = None
        self.process: Optional[subprocess.Popen] = None
        self.playback_started_at: Optional[float] = None
        self._volume = 1.0
        self._temp_dir: Optional[tempfile.TemporaryDirectory] = None
        self._temp_file: Optional[Path] = None

    # Process management

    def is_running(self) -> bool:
        """Check if the mpv process is alive and its socket exists."""
        if not self.process or self.process.poll() is not None:
            return False
        return bool(self.socket_path and os.path.exists(self.socket_path))

    def start(self) -> None:
        """Start mpv with JSON IPC.

        Raises:
            SinkError: If mpv is missing or its socket never appears
        """
        if self.is_running():
            return

        if self.config.mpv_socket_path:
            socket_path = self.config.mpv_socket_path
        else:
            temp_dir = Path(tempfile.gettempdir())
            socket_path = str(temp_dir / f"frequency-mpv-{os.getpid()}.sock")

        logger.info(f"Starting MPV player with socket: {socket_path}")

        if os.path.exists(socket_path):
            logger.debug(f"Removing existing socket: {socket_path}")
            os.unlink(socket_path)

        cmd = [
            self.config.mpv_path,
            "--idle=yes",
            "--no-video",
            "--no-terminal",
            f"--input-ipc-server={socket_path}",
            f"--volume={round(self._volume * 100)}",
            "--keep-open=yes",
            "--load-scripts=no",
        ]

        try:
            process = subprocess.Popen(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                stdin=subprocess.DEVNULL,
            )
        except (subprocess.SubprocessError, OSError) as e:
            raise SinkError(f"Failed to start MPV: {e}") from e

        timeout = 5.0
        start_time = time.time()
        while not os.path.exists(socket_path):
            if time.time() - start_time > timeout:
                process.kill()
                raise SinkError(f"MPV socket creation timeout after {timeout}s")
            time.sleep(0.1)

        self.process = process
        self.socket_path = socket_path
        logger.info("MPV started successfully")

    def close(self) -> None:
        """Stop the mpv process and clean up its socket and temp files."""
        if self.process:
            try:
                self.process.kill()
                self.process.wait(timeout=2.0)
            except (OSError, subprocess.TimeoutExpired) as e:
                logger.warning(f"MPV cleanup: {e}")
        self.process = None

        if self.socket_path and os.path.exists(self.socket_path):
            try:
                os.unlink(self.socket_path)
            except OSError:
                pass
        self.socket_path = None

        if self._temp_dir is not None:
            self._temp_dir.cleanup()
            self._temp_dir = None
            self._temp_file = None

    # AudioSink

    def load(self, url: str) -> None:
        """Load a resource paused; play() starts it."""
        self.start()
        target = self._prepare_target(url)

        self._command(["set_property", "pause", True], "pause before load")
        self._command(["loadfile", target, "replace"], f"load {target}")
        self.playback_started_at = None
        logger.debug(f"Loaded {target}")

    def rewind(self) -> None:
        self._command(["seek", 0, "absolute"], "rewind")
        self.playback_started_at = None

    def set_volume(self, volume: float) -> None:
        self._volume = volume
        if self.is_running():
            self._command(["set_property", "volume", round(volume * 100)], "set volume")

    def play(self) -> Optional[Future]:
        self._command(["set_property", "pause", False], "play")
        if self.playback_started_at is None:
            self.playback_started_at = time.time()
        return None

    def pause(self) -> None:
        self._command(["set_property", "pause", True], "pause")

    def stop(self) -> None:
        if self.is_running():
            self._command(["stop"], "stop")
        self.playback_started_at = None

    def is_finished(self) -> bool:
        """Check if track finished with multiple validation layers.

        Safeguards:
        1. Minimum playback time (prevents incomplete metadata issues)
        2. Duration sanity check (detects corrupted/incomplete metadata)
        3. Position-based completion check
        4. EOF flag validation (with position confirmation)
        """
        if not self.is_running():
            return False

        position = get_mpv_property(self.socket_path, "time-pos") or 0.0
        duration = get_mpv_property(self.socket_path, "duration") or 0.0
        eof = get_mpv_property(self.socket_path, "eof-reached")

        # SAFEGUARD 1: Minimum playback time
        if self.playback_started_at is not None:
            if time.time() - self.playback_started_at < MIN_PLAYBACK_TIME:
                return False

        # SAFEGUARD 2: Duration sanity check
        if 0 < duration < MIN_VALID_DURATION:
            return eof is True and position >= duration - 0.1

        # SAFEGUARD 3: Position-based check (primary)
        finished_by_position = duration > 0 and position >= duration - 0.5

        # SAFEGUARD 4: EOF flag check (secondary)
        finished_by_eof = eof is True and duration > 0 and position >= duration - 1.0

        return finished_by_position or finished_by_eof

    # Internals

    def _command(self, command: list, description: str) -> None:
        if not send_mpv_command(self.socket_path, {"command": command}):
            raise SinkError(f"MPV rejected {description}")

    def _prepare_target(self, url: str) -> str:
        if not url.startswith("data:"):
            return resolve_playable_target(url)

        if self._temp_dir is None:
            self._temp_dir = tempfile.TemporaryDirectory(prefix="frequency-")
        if self._temp_file is not None and self._temp_file.exists():
            self._temp_file.unlink()
        self._temp_file = materialize_data_url(url, Path(self._temp_dir.name))
        return str(self._temp_file)


def create_sink(config: PlayerConfig):
    """Build the configured AudioSink."""
    if config.backend == "null":
        from .sink import NullSink

        return NullSink()
    return MpvSink(config)
