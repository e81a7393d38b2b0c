"""
Audio sink binding for Frequency

The engine computes the desired (url, volume, is_playing) state; the binding
applies it to an AudioSink idempotently. The only inbound signal is a
TrackFinished message returned by poll().
"""

from concurrent.futures import Future
from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

from loguru import logger

from .exceptions import SinkError


@dataclass(frozen=True)
class SinkCommand:
    """Desired output state derived from the session."""

    track_id: Optional[str] = None
    url: Optional[str] = None
    volume: float = 1.0
    is_playing: bool = False
    restart_epoch: int = 0


@dataclass(frozen=True)
class TrackFinished:
    """The loaded track reached its natural end."""

    track_id: str
    restart_epoch: int


@runtime_checkable
class AudioSink(Protocol):
    """Audio output driven by the binding.

    play() may start playback synchronously (return None) or hand back a
    Future that resolves once the output actually starts. Failures are
    reported as SinkError, raised or set on the future.
    """

    def load(self, url: str) -> None: ...

    def rewind(self) -> None: ...

    def set_volume(self, volume: float) -> None: ...

    def play(self) -> Optional[Future]: ...

    def pause(self) -> None: ...

    def stop(self) -> None: ...

    def is_finished(self) -> bool: ...

    def close(self) -> None: ...


class NullSink:
    """Silent sink that records calls. finish() simulates an end of track."""

    def __init__(self):
        self.calls: list[tuple] = []
        self.url: Optional[str] = None
        self.volume: float = 1.0
        self.playing = False
        self._finished = False

    def load(self, url: str) -> None:
        self.calls.append(("load", url))
        self.url = url
        self.playing = False
        self._finished = False

    def rewind(self) -> None:
        self.calls.append(("rewind",))
        self._finished = False

    def set_volume(self, volume: float) -> None:
        self.calls.append(("set_volume", volume))
        self.volume = volume

    def play(self) -> Optional[Future]:
        self.calls.append(("play",))
        self.playing = True
        return None

    def pause(self) -> None:
        self.calls.append(("pause",))
        self.playing = False

    def stop(self) -> None:
        self.calls.append(("stop",))
        self.url = None
        self.playing = False
        self._finished = False

    def finish(self) -> None:
        self.playing = False
        self._finished = True

    def is_finished(self) -> bool:
        return self._finished

    def close(self) -> None:
        self.calls.append(("close",))


class SinkBinding:
    """One-directional adapter from SinkCommand to an AudioSink."""

    def __init__(self, sink: AudioSink):
        self.sink = sink
        self.last_error: Optional[str] = None
        self._applied: Optional[SinkCommand] = None
        self._finish_reported = False

    @property
    def applied(self) -> Optional[SinkCommand]:
        """The last command applied to the sink."""
        return self._applied

    def apply(self, command: SinkCommand) -> None:
        """Bring the sink in line with the command. Repeated calls are no-ops."""
        previous = self._applied
        if previous == command:
            return

        if command.url is None:
            if previous is not None and previous.url is not None:
                self._guard(self.sink.stop, "stop")
            self._applied = command
            self._finish_reported = False
            return

        restarted = False
        if (
            previous is None
            or previous.url != command.url
            or previous.track_id != command.track_id
        ):
            if not self._guard(lambda: self.sink.load(command.url), "load"):
                # Nothing usable is loaded; the next apply retries the load
                self._applied = None
                return
            restarted = True
        elif previous.restart_epoch != command.restart_epoch:
            self._guard(self.sink.rewind, "rewind")
            restarted = True
        elif command.is_playing and not previous.is_playing and self._finish_reported:
            # The loaded track already ran out; playing it again starts over
            self._guard(self.sink.rewind, "rewind")
            restarted = True

        if restarted:
            self._finish_reported = False

        if previous is None or restarted or previous.volume != command.volume:
            self._guard(lambda: self.sink.set_volume(command.volume), "set_volume")

        # Recorded before play() so an already-resolved future is not seen as stale
        self._applied = command

        if command.is_playing:
            if restarted or not previous.is_playing:
                self._start(command.track_id)
        elif not restarted and previous.is_playing:
            self._guard(self.sink.pause, "pause")

    def poll(self) -> Optional[TrackFinished]:
        """Report a natural end of the loaded track, once per load or restart."""
        command = self._applied
        if command is None or command.url is None or command.track_id is None:
            return None
        if not command.is_playing or self._finish_reported:
            return None
        try:
            finished = self.sink.is_finished()
        except SinkError as e:
            logger.warning(f"Sink status check failed: {e}")
            return None
        if not finished:
            return None
        if self._applied is not command:
            # Superseded while the sink was being queried
            return None
        self._finish_reported = True
        return TrackFinished(track_id=command.track_id, restart_epoch=command.restart_epoch)

    def close(self) -> None:
        self._guard(self.sink.close, "close")
        self._applied = None

    def _start(self, track_id: Optional[str]) -> None:
        try:
            result = self.sink.play()
        except SinkError as e:
            self._report_failure(track_id, e)
            return

        if result is None:
            self.last_error = None
            return
        result.add_done_callback(lambda future: self._settle(track_id, future))

    def _settle(self, track_id: Optional[str], future: Future) -> None:
        applied = self._applied
        current_id = applied.track_id if applied is not None else None
        if current_id != track_id:
            logger.debug(f"Ignoring stale play result for track {track_id}")
            return
        if future.cancelled():
            logger.debug(f"Play request for track {track_id} was cancelled")
            return
        error = future.exception()
        if error is not None:
            self._report_failure(track_id, error)
        else:
            self.last_error = None

    def _report_failure(self, track_id: Optional[str], error: BaseException) -> None:
        self.last_error = str(error) or type(error).__name__
        logger.warning(f"Playback failed for track {track_id}: {self.last_error}")

    def _guard(self, action, name: str) -> bool:
        try:
            action()
            return True
        except SinkError as e:
            self.last_error = str(e)
            logger.warning(f"Sink {name} failed: {e}")
            return False
