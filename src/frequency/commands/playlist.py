"""
Playlist command handlers for Frequency.

Handles: playlist list, playlist new, playlist delete, playlist select,
         playlist rename, playlist show
"""

from typing import List, Optional, Tuple

from frequency import helpers
from frequency.context import AppContext
from frequency.core.output import log
from frequency.domain.playlists import Playlist


def _lookup(ctx: AppContext, ref: str) -> Optional[Playlist]:
    playlist = helpers.resolve_playlist(ctx.engine.store, ref)
    if playlist is None:
        log(f"❌ Playlist '{ref}' not found", level="error")
    return playlist


def handle_playlist_list_command(ctx: AppContext) -> Tuple[AppContext, bool]:
    """
    Handle playlist command - list all playlists, marking the active one.

    Args:
        ctx: Application context

    Returns:
        (updated_context, should_continue)
    """
    store = ctx.engine.store
    if not len(store):
        log("No playlists found. Create one with: playlist new <title>", level="info")
        return ctx, True

    active_id = ctx.engine.session.active_playlist_id
    log(f"📋 Playlists ({len(store)}):", level="info")
    for position, playlist in enumerate(store, 1):
        marker = "▶" if playlist.id == active_id else " "
        count = len(playlist.tracks)
        log(
            f"  {marker} {position}. {playlist.title} "
            f"({count} track{'s' if count != 1 else ''})",
            level="info",
        )
    return ctx, True


def handle_playlist_new_command(
    ctx: AppContext, args: List[str]
) -> Tuple[AppContext, bool]:
    """Create a playlist and make it active."""
    if not args:
        log("Usage: playlist new <title>", level="warning")
        return ctx, True

    title = " ".join(args)
    playlist = ctx.engine.create_playlist(title)
    ctx.engine.select_playlist(playlist.id)
    log(f"✅ Created playlist: {playlist.title}", level="success")
    return ctx, True


def handle_playlist_delete_command(
    ctx: AppContext, args: List[str]
) -> Tuple[AppContext, bool]:
    if not args:
        log("Usage: playlist delete <playlist>", level="warning")
        return ctx, True

    playlist = _lookup(ctx, " ".join(args))
    if playlist is None:
        return ctx, True

    ctx.engine.delete_playlist(playlist.id)
    log(f"🗑  Deleted playlist: {playlist.title}", level="success")

    active = ctx.engine.active_playlist
    if active is not None:
        log(f"📋 Active playlist: {active.title}", level="info")
    return ctx, True


def handle_playlist_select_command(
    ctx: AppContext, args: List[str]
) -> Tuple[AppContext, bool]:
    """Set the active playlist. 'none' clears it."""
    if not args:
        log("Usage: playlist select <playlist|none>", level="warning")
        return ctx, True

    ref = " ".join(args)
    if ref.lower() == "none":
        ctx.engine.select_playlist(None)
        log("✅ Cleared active playlist", level="success")
        return ctx, True

    playlist = _lookup(ctx, ref)
    if playlist is None:
        return ctx, True

    ctx.engine.select_playlist(playlist.id)
    log(f"📋 Active playlist: {playlist.title}", level="success")
    return ctx, True


def handle_playlist_rename_command(
    ctx: AppContext, args: List[str]
) -> Tuple[AppContext, bool]:
    """Rename a playlist. Titles with spaces need quotes."""
    if len(args) != 2:
        log('Usage: playlist rename "old title" "new title"', level="warning")
        return ctx, True

    playlist = _lookup(ctx, args[0])
    if playlist is None:
        return ctx, True

    renamed = ctx.engine.rename_playlist(playlist.id, args[1])
    log(f"✅ Renamed playlist: {playlist.title} → {renamed.title}", level="success")
    return ctx, True


def handle_playlist_show_command(
    ctx: AppContext, args: List[str]
) -> Tuple[AppContext, bool]:
    """
    Show the tracks of a playlist (default: the active one).

    The current track is marked, and the shuffle order is listed when shuffle
    is on for the active playlist.
    """
    if args:
        playlist = _lookup(ctx, " ".join(args))
        if playlist is None:
            return ctx, True
    else:
        playlist = ctx.engine.active_playlist
        if playlist is None:
            log("No active playlist. Use: playlist select <playlist>", level="warning")
            return ctx, True

    session = ctx.engine.session
    is_active = playlist.id == session.active_playlist_id

    log(f"📋 {playlist.title}", level="info")
    if not playlist.tracks:
        log("  (empty) Add tracks with: add url <title> <url> or add file <path>", level="info")
        return ctx, True

    for position, track in enumerate(playlist.tracks, 1):
        marker = "♪" if is_active and track.id == session.current_track_id else " "
        log(
            f"  {marker} {position}. {track.title}  [dim]{helpers.describe_url(track)}[/dim]",
            level="info",
        )

    if is_active and session.shuffle_queue:
        order = [str(playlist.index_of(track_id) + 1) for track_id in session.shuffle_queue]
        log(f"  🔀 Shuffle order: {' '.join(order)}", level="info")
    return ctx, True
