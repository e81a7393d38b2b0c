"""
Track command handlers for Frequency.

Handles: add url, add file, remove, move, rename
All of them act on the active playlist.
"""

from typing import List, Optional, Tuple

from frequency import helpers
from frequency.context import AppContext
from frequency.core.output import log
from frequency.domain import library
from frequency.domain.playlists import Playlist, Track
from frequency.utils.parsers import parse_position


def _require_active(ctx: AppContext) -> Optional[Playlist]:
    playlist = ctx.engine.active_playlist
    if playlist is None:
        log(
            "❌ No active playlist. Create one with: playlist new <title>",
            level="error",
        )
    return playlist


def _lookup_track(playlist: Playlist, ref: str) -> Optional[Track]:
    track = helpers.resolve_track(playlist, ref)
    if track is None:
        log(f"❌ Track '{ref}' not found in {playlist.title}", level="error")
    return track


def handle_add_command(ctx: AppContext, args: List[str]) -> Tuple[AppContext, bool]:
    """
    Handle add command - add tracks to the active playlist.

    Usage:
        add url <title> <url>
        add file <path> [<path> ...]

    Args:
        ctx: Application context
        args: Command arguments

    Returns:
        (updated_context, should_continue)
    """
    if not args or args[0] not in ("url", "file"):
        log("Usage: add url <title> <url>  |  add file <path>...", level="warning")
        return ctx, True

    playlist = _require_active(ctx)
    if playlist is None:
        return ctx, True

    if args[0] == "url":
        if len(args) != 3:
            log('Usage: add url "<title>" <url>', level="warning")
            return ctx, True
        track = library.track_from_url(args[1], args[2])
        ctx.engine.add_track(playlist.id, track)
        log(f"✅ Added to {playlist.title}: {track.title}", level="success")
        return ctx, True

    paths = args[1:]
    if not paths:
        log("Usage: add file <path> [<path> ...]", level="warning")
        return ctx, True

    library_config = ctx.config.library
    tracks, errors = library.tracks_from_paths(
        paths,
        embed=library_config.embed_local_files,
        max_embed_bytes=library_config.max_embed_size_mb * 1024 * 1024,
        supported_formats=library_config.supported_formats,
    )
    for error in errors:
        log(f"⚠️  Skipped: {error}", level="warning")
    if not tracks:
        log("❌ No tracks added", level="error")
        return ctx, True

    ctx.engine.add_tracks(playlist.id, tracks)
    if len(tracks) == 1:
        log(f"✅ Added to {playlist.title}: {tracks[0].title}", level="success")
    else:
        log(f"✅ Added {len(tracks)} tracks to {playlist.title}", level="success")
    return ctx, True


def handle_remove_command(ctx: AppContext, args: List[str]) -> Tuple[AppContext, bool]:
    """Remove a track from the active playlist. Removing the current track stops playback."""
    if not args:
        log("Usage: remove <track>", level="warning")
        return ctx, True

    playlist = _require_active(ctx)
    if playlist is None:
        return ctx, True
    track = _lookup_track(playlist, " ".join(args))
    if track is None:
        return ctx, True

    was_current = track.id == ctx.engine.session.current_track_id
    ctx.engine.remove_track(playlist.id, track.id)
    log(f"✅ Removed from {playlist.title}: {track.title}", level="success")
    if was_current:
        log("⏹  Playback stopped", level="info")
    return ctx, True


def handle_move_command(ctx: AppContext, args: List[str]) -> Tuple[AppContext, bool]:
    """Move a track to a new 1-based position in the active playlist."""
    if len(args) != 2:
        log("Usage: move <track> <position>", level="warning")
        return ctx, True

    playlist = _require_active(ctx)
    if playlist is None:
        return ctx, True
    track = _lookup_track(playlist, args[0])
    if track is None:
        return ctx, True

    index = parse_position(args[1])
    if index is None or index >= len(playlist.tracks):
        log(
            f"❌ Position must be between 1 and {len(playlist.tracks)}",
            level="error",
        )
        return ctx, True

    ctx.engine.move_track(playlist.id, track.id, index)
    log(f"✅ Moved {track.title} to position {index + 1}", level="success")
    return ctx, True


def handle_rename_command(ctx: AppContext, args: List[str]) -> Tuple[AppContext, bool]:
    """Rename a track of the active playlist."""
    if len(args) != 2:
        log('Usage: rename <track> "<new title>"', level="warning")
        return ctx, True

    playlist = _require_active(ctx)
    if playlist is None:
        return ctx, True
    track = _lookup_track(playlist, args[0])
    if track is None:
        return ctx, True

    ctx.engine.rename_track(playlist.id, track.id, args[1])
    log(f"✅ Renamed track: {track.title} → {args[1].strip()}", level="success")
    return ctx, True
