"""
Frequency - Main entry point and interactive loop
"""

import sys
import threading
from pathlib import Path
from typing import List, Optional

from loguru import logger
from prompt_toolkit import PromptSession
from prompt_toolkit.patch_stdout import patch_stdout
from prompt_toolkit.styles import Style

from frequency import completers
from frequency import router
from frequency.context import AppContext
from frequency.core import config
from frequency.core import database
from frequency.core.console import get_console, safe_print
from frequency.core.output import set_quiet, setup_loguru
from frequency.domain.playback import PlaybackEngine, SinkBinding
from frequency.domain.playback.player import check_mpv_available, create_sink
from frequency.domain.playlists.persistence import open_gateway
from frequency.utils import parsers

PROMPT_STYLE = Style.from_dict({
    'prompt': '#00aa00 bold',
    'completion-menu.completion': 'bg:#008888 #ffffff',
    'completion-menu.completion.current': 'bg:#00aaaa #000000',
    'completion-menu.meta.completion': '#888888',
    'completion-menu.meta.completion.current': 'bg:#00aaaa #ffffff',
})


def setup_logging(cfg: config.Config) -> Path:
    """Initialize loguru from the [logging] section. Returns the log file path."""
    log_file = (
        Path(cfg.logging.log_file).expanduser()
        if cfg.logging.log_file
        else (config.get_data_dir() / "frequency.log")
    )
    setup_loguru(
        log_file,
        level=cfg.logging.level,
        max_file_size_mb=cfg.logging.max_file_size_mb,
        backup_count=cfg.logging.backup_count,
        console_output=cfg.logging.console_output,
    )
    return log_file


def create_engine(cfg: config.Config) -> PlaybackEngine:
    """
    Open storage and build the engine from persisted playlists and settings.

    When storage cannot be opened the engine runs in memory with defaults,
    so the shell stays usable and nothing is written.
    """
    if cfg.storage.database_path:
        database.set_database_path(Path(cfg.storage.database_path).expanduser())

    gateway = open_gateway()
    if gateway is None:
        safe_print(
            "⚠️  Storage unavailable - playlists will not be saved this session",
            style="yellow",
        )
        return PlaybackEngine()
    return PlaybackEngine.from_gateway(gateway)


def bootstrap(
    backend: Optional[str] = None, interactive: bool = True
) -> AppContext:
    """
    Load config, logging, storage and the audio output into an AppContext.

    Args:
        backend: Overrides [player] backend ("mpv" or "null")
        interactive: Whether the context drives the interactive shell
    """
    cfg = config.load_config()
    if backend is not None:
        cfg.player.backend = backend

    setup_logging(cfg)
    if cfg.player.backend == "mpv" and not check_mpv_available(cfg.player.mpv_path):
        safe_print(
            f"⚠️  {cfg.player.mpv_path} not found - install mpv or use --backend null",
            style="yellow",
        )
    engine = create_engine(cfg)
    binding = SinkBinding(create_sink(cfg.player))
    return AppContext.create(
        cfg, engine, binding=binding, console=get_console(), interactive=interactive
    )


def start_sink_watcher(ctx: AppContext, stop: threading.Event) -> threading.Thread:
    """
    Background thread that polls the audio output for finished tracks.

    Messages from this thread go to the log file only, so they never break
    into the prompt line.
    """
    interval = ctx.config.player.poll_interval

    def watch() -> None:
        set_quiet(True)
        while not stop.wait(interval):
            try:
                event = ctx.engine.tick()
            except Exception:
                logger.exception("Sink watcher iteration failed")
                continue
            if event is not None:
                track = ctx.engine.current_track
                logger.info(
                    f"Track {event.track_id} finished; now "
                    f"{track.title if track else 'stopped'}"
                )

    thread = threading.Thread(target=watch, name="sink-watcher", daemon=True)
    thread.start()
    return thread


def shutdown(ctx: AppContext) -> None:
    """Release the audio output."""
    if ctx.binding is not None:
        ctx.binding.close()
    logger.info("Frequency stopped")


def run_command(command: str, args: List[str], backend: Optional[str] = None) -> int:
    """
    Run one command against persisted state and exit.

    One-shot runs use the silent output unless a backend is given, since the
    process exits right after the command.

    Rejected commands are reported like in the shell and still exit 0.
    """
    ctx = bootstrap(backend=backend or "null", interactive=False)
    try:
        router.handle_command(ctx, command.lower(), list(args))
    finally:
        shutdown(ctx)
    return 0


def interactive_mode(backend: Optional[str] = None) -> None:
    """Run the interactive command loop."""
    ctx = bootstrap(backend=backend, interactive=True)
    console = ctx.console or get_console()

    stop = threading.Event()
    start_sink_watcher(ctx, stop)

    console.print("[bold green]Welcome to Frequency![/bold green]")
    console.print("Type 'help' for available commands, or 'quit' to exit.")
    console.print("💡 [dim]Tip: Use Tab to complete commands, playlists and tracks[/dim]")
    active = ctx.engine.active_playlist
    if active is not None:
        console.print(f"📋 Active playlist: {active.title} ({len(active.tracks)} tracks)")
    console.print()

    session = PromptSession(
        completer=completers.FrequencyCompleter(ctx.engine),
        style=PROMPT_STYLE,
        complete_while_typing=False,
    )

    try:
        should_continue = True
        while should_continue:
            try:
                with patch_stdout():
                    user_input = session.prompt("frequency> ").strip()
                command, args = parsers.parse_command(user_input)

                # Execute command with context
                ctx, should_continue = router.handle_command(ctx, command, args)

            except KeyboardInterrupt:
                console.print(
                    "\n[yellow]Use 'quit' or 'exit' to leave gracefully.[/yellow]"
                )
            except EOFError:
                console.print("\n[green]Goodbye![/green]")
                break

    except Exception as e:
        logger.exception("Unexpected error in interactive loop")
        console.print(f"[red]An unexpected error occurred: {e}[/red]")
        sys.exit(1)
    finally:
        stop.set()
        shutdown(ctx)
