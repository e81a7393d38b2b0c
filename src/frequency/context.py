"""Application context for explicit state passing.

Command handlers receive an AppContext and return it (possibly replaced)
together with a should_continue flag, instead of reaching for globals.
"""

from dataclasses import dataclass
from typing import Optional

from rich.console import Console

from frequency.core.config import Config
from frequency.domain.playback.engine import PlaybackEngine
from frequency.domain.playback.sink import SinkBinding


@dataclass(frozen=True)
class AppContext:
    """Application context passed to all command handlers.

    Attributes:
        config: Application configuration
        engine: Playlist store and playback session handle
        binding: Audio output binding (None when running without output)
        console: Rich Console for formatted output
        interactive: True inside the shell, False for one-shot commands
    """

    config: Config
    engine: PlaybackEngine
    binding: Optional[SinkBinding] = None
    console: Optional[Console] = None
    interactive: bool = True

    @classmethod
    def create(
        cls,
        config: Config,
        engine: PlaybackEngine,
        binding: Optional[SinkBinding] = None,
        console: Optional[Console] = None,
        interactive: bool = True,
    ) -> "AppContext":
        """Create the application context, attaching the binding to the engine."""
        if binding is not None:
            engine.attach_sink(binding)
        return cls(
            config=config,
            engine=engine,
            binding=binding,
            console=console,
            interactive=interactive,
        )
