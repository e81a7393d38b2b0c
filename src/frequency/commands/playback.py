"""
Playback command handlers for Frequency.

Handles: play, pause, resume, next, prev, volume, loop, shuffle, status
"""

from typing import List, Tuple

from frequency import helpers
from frequency.context import AppContext
from frequency.core.output import log
from frequency.domain.playback import LoopMode
from frequency.utils.parsers import parse_volume

LOOP_LABELS = {
    LoopMode.OFF: "off",
    LoopMode.ALL: "all (repeat playlist)",
    LoopMode.ONE: "one (repeat track)",
}


def _now_playing(ctx: AppContext) -> None:
    track = ctx.engine.current_track
    if track is None:
        log("⏹  Nothing playing", level="info")
        return
    state = "▶" if ctx.engine.session.is_playing else "⏸"
    log(f"{state}  {track.title}", level="info")


def handle_play_command(ctx: AppContext, args: List[str]) -> Tuple[AppContext, bool]:
    """
    Handle play command.

    With no argument this behaves like resume. Otherwise the argument names a
    track of the active playlist by id, position or title.

    Args:
        ctx: Application context
        args: Command arguments

    Returns:
        (updated_context, should_continue)
    """
    if not args:
        return handle_resume_command(ctx)

    playlist = ctx.engine.active_playlist
    if playlist is None:
        log("❌ No active playlist. Use: playlist select <playlist>", level="error")
        return ctx, True

    ref = " ".join(args)
    track = helpers.resolve_track(playlist, ref)
    if track is None:
        log(f"❌ Track '{ref}' not found in {playlist.title}", level="error")
        return ctx, True

    ctx.engine.play(track.id, playlist.id)
    _now_playing(ctx)
    return ctx, True


def handle_pause_command(ctx: AppContext) -> Tuple[AppContext, bool]:
    ctx.engine.pause()
    log("⏸  Paused", level="info")
    return ctx, True


def handle_resume_command(ctx: AppContext) -> Tuple[AppContext, bool]:
    """Resume the current track, or start the active playlist from the top."""
    playlist = ctx.engine.active_playlist
    if playlist is None or not playlist.tracks:
        log("Nothing to play. Add tracks with: add url <title> <url>", level="warning")
        return ctx, True
    ctx.engine.resume()
    _now_playing(ctx)
    return ctx, True


def handle_next_command(ctx: AppContext) -> Tuple[AppContext, bool]:
    ctx.engine.next()
    _now_playing(ctx)
    return ctx, True


def handle_prev_command(ctx: AppContext) -> Tuple[AppContext, bool]:
    ctx.engine.prev()
    _now_playing(ctx)
    return ctx, True


def handle_volume_command(ctx: AppContext, args: List[str]) -> Tuple[AppContext, bool]:
    """Show or set the volume. Accepts 0-100, a percentage, or a 0-1 fraction."""
    if not args:
        log(f"🔊 Volume: {round(ctx.engine.session.volume * 100)}%", level="info")
        return ctx, True

    value = parse_volume(args[0])
    if value is None:
        log(f"❌ Invalid volume '{args[0]}'. Use a number from 0 to 100", level="error")
        return ctx, True

    volume = ctx.engine.set_volume(value)
    log(f"🔊 Volume: {round(volume * 100)}%", level="info")
    return ctx, True


def handle_loop_command(ctx: AppContext) -> Tuple[AppContext, bool]:
    """Cycle the loop mode: off → all → one → off."""
    ctx.engine.toggle_loop()
    log(f"🔁 Loop: {LOOP_LABELS[ctx.engine.session.loop_mode]}", level="info")
    return ctx, True


def handle_shuffle_command(ctx: AppContext) -> Tuple[AppContext, bool]:
    ctx.engine.toggle_shuffle()
    enabled = ctx.engine.session.shuffle_enabled
    log(f"🔀 Shuffle: {'on' if enabled else 'off'}", level="info")
    return ctx, True


def handle_status_command(ctx: AppContext) -> Tuple[AppContext, bool]:
    """Handle status command - show current player and track status.

    Args:
        ctx: Application context

    Returns:
        (updated_context, should_continue)
    """
    session = ctx.engine.session
    playlist = ctx.engine.active_playlist
    track = ctx.engine.current_track

    log("Frequency Status:", "info")
    log("─" * 40, "info")
    log(f"♪ Player: {'Playing' if session.is_playing else 'Paused'}", "info")

    if track is not None and playlist is not None:
        position = playlist.index_of(track.id) + 1
        log(f"♫ Track: {track.title} ({position}/{len(playlist.tracks)})", "info")
    else:
        log("♫ Track: None", "info")

    if playlist is not None:
        log(f"📋 Active Playlist: {playlist.title}", "info")
    else:
        log("📋 Active Playlist: None", "info")

    log(f"🔊 Volume: {round(session.volume * 100)}%", "info")
    log(f"🔁 Loop: {LOOP_LABELS[session.loop_mode]}", "info")
    log(f"🔀 Shuffle: {'on' if session.shuffle_enabled else 'off'}", "info")

    binding = ctx.binding
    if binding is not None and binding.last_error is not None:
        log(f"⚠️  Audio output: {binding.last_error}", "warning")
    return ctx, True
