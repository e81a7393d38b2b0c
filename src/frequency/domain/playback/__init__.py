"""Playback domain - session state, transport and audio output.

This domain handles:
- The immutable playback session and persisted settings
- Shuffle queue generation (Fisher-Yates, injectable randomness)
- Transport transitions: play, pause, next, prev, end of track
- The engine that keeps the session consistent with the playlist store
- Driving an audio sink (mpv over JSON IPC, or a silent sink)
"""

# State
from .state import (
    LoopMode,
    PlaybackSession,
    PlaybackSettings,
    check_session,
    clamp_volume,
)

# Shuffle
from .shuffle import generate_shuffle_queue

# Sink
from .sink import (
    AudioSink,
    NullSink,
    SinkBinding,
    SinkCommand,
    TrackFinished,
)

# Engine
from .engine import PlaybackEngine, desired_sink_state

# Exceptions
from .exceptions import PlaybackError, SinkError, SessionInvariantError

__all__ = [
    # State
    "LoopMode",
    "PlaybackSession",
    "PlaybackSettings",
    "check_session",
    "clamp_volume",
    # Shuffle
    "generate_shuffle_queue",
    # Sink
    "AudioSink",
    "NullSink",
    "SinkBinding",
    "SinkCommand",
    "TrackFinished",
    # Engine
    "PlaybackEngine",
    "desired_sink_state",
    # Exceptions
    "PlaybackError",
    "SinkError",
    "SessionInvariantError",
]
