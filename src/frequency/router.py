"""
Command routing for Frequency.

Routes user commands to appropriate handler functions.
"""

from typing import List, Tuple

from rich.markup import escape

from frequency.context import AppContext
from frequency.core.output import log
from frequency.domain.library import IngestError
from frequency.domain.playback import SessionInvariantError
from frequency.domain.playlists import PlaylistError

# Import command handlers
from frequency.commands import playback
from frequency.commands import playlist
from frequency.commands import track

HELP_TEXT = """
Frequency - playlists and playback from the terminal

Playback:
  play [track]          Play a track of the active playlist (resume if none given)
  pause                 Pause playback
  resume                Resume, or start the active playlist from the top
  next                  Next track (wraps only with loop all)
  prev                  Previous track (always wraps)
  volume [0-100]        Show or set the volume
  loop                  Cycle loop mode: off, all, one
  shuffle               Toggle shuffle
  status                Show current track and player status

Playlists:
  playlist                          List playlists
  playlist new <title>              Create a playlist and make it active
  playlist delete <playlist>        Delete a playlist
  playlist select <playlist|none>   Set the active playlist
  playlist rename "old" "new"       Rename a playlist (use quotes)
  playlist show [playlist]          Show the tracks of a playlist

Tracks (active playlist):
  add url "<title>" <url>           Add a track by URL
  add file <path> [<path> ...]      Add local audio files
  remove <track>                    Remove a track
  move <track> <position>           Move a track to a 1-based position
  rename <track> "<title>"          Rename a track

  help                  Show this help message
  quit, exit            Exit the program

A <track> is its position in the playlist, its title, or its id.
A <playlist> is its position in the list, its title, or its id.

Examples:
  playlist new "Late Night"
  add url "Lo-fi stream" https://example.com/stream.mp3
  add file ~/Music/*.flac
  play 2
  volume 40
"""


def print_help() -> None:
    """Display help information for available commands."""
    log(escape(HELP_TEXT.strip()), level="info")


def handle_command(ctx: AppContext, command: str, args: List[str]) -> Tuple[AppContext, bool]:
    """
    Handle a single command with explicit state passing.

    Rejected operations (unknown ids, duplicate tracks, invalid input) are
    reported to the user and never end the session. Broken session
    invariants are programming errors and propagate.

    Args:
        ctx: Application context
        command: Command name
        args: Command arguments

    Returns:
        (updated_context, should_continue) - Updated context and whether to continue
    """
    try:
        return _dispatch(ctx, command, args)
    except SessionInvariantError:
        raise
    except (PlaylistError, IngestError, ValueError) as e:
        log(f"❌ Error: {e}", level="error")
        return ctx, True


def _dispatch(ctx: AppContext, command: str, args: List[str]) -> Tuple[AppContext, bool]:
    if command in ['quit', 'exit']:
        log("Goodbye!", level="info")
        return ctx, False

    elif command == 'help':
        print_help()
        return ctx, True

    elif command == 'play':
        return playback.handle_play_command(ctx, args)

    elif command == 'pause':
        return playback.handle_pause_command(ctx)

    elif command == 'resume':
        return playback.handle_resume_command(ctx)

    elif command in ['next', 'skip']:
        return playback.handle_next_command(ctx)

    elif command in ['prev', 'previous']:
        return playback.handle_prev_command(ctx)

    elif command == 'volume':
        return playback.handle_volume_command(ctx, args)

    elif command == 'loop':
        return playback.handle_loop_command(ctx)

    elif command == 'shuffle':
        return playback.handle_shuffle_command(ctx)

    elif command == 'status':
        return playback.handle_status_command(ctx)

    elif command == 'playlist':
        if not args:
            return playlist.handle_playlist_list_command(ctx)
        elif args[0] == 'none':
            return playlist.handle_playlist_select_command(ctx, ['none'])
        elif args[0] == 'new':
            return playlist.handle_playlist_new_command(ctx, args[1:])
        elif args[0] == 'delete':
            return playlist.handle_playlist_delete_command(ctx, args[1:])
        elif args[0] in ['select', 'active']:
            return playlist.handle_playlist_select_command(ctx, args[1:])
        elif args[0] == 'rename':
            return playlist.handle_playlist_rename_command(ctx, args[1:])
        elif args[0] == 'show':
            return playlist.handle_playlist_show_command(ctx, args[1:])
        else:
            log(
                f"Unknown playlist subcommand: '{args[0]}'. "
                "Available: new, delete, select, rename, show, none",
                level="warning",
            )
            return ctx, True

    elif command == 'add':
        return track.handle_add_command(ctx, args)

    elif command == 'remove':
        return track.handle_remove_command(ctx, args)

    elif command == 'move':
        return track.handle_move_command(ctx, args)

    elif command == 'rename':
        return track.handle_rename_command(ctx, args)

    elif command == '':
        # Empty command, do nothing
        return ctx, True

    else:
        log(f"Unknown command: '{command}'. Type 'help' for available commands.", level="warning")
        return ctx, True
