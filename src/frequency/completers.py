"""
prompt_toolkit completers for Frequency
Provides autocomplete for commands, playlist titles and track titles
"""

from typing import Iterable, Optional

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from frequency.domain.playback.engine import PlaybackEngine
from frequency.utils.parsers import split_args


class FrequencyCompleter(Completer):
    """
    Command completer with descriptions.

    The first word completes against COMMANDS. After 'playlist <sub>' the
    argument completes against playlist titles; after a track command it
    completes against the titles of the active playlist.
    """

    # Format: 'command': ('icon', 'description')
    COMMANDS = {
        # Playback commands
        'play': ('▶', 'Play a track of the active playlist'),
        'pause': ('⏸', 'Pause playback'),
        'resume': ('▸', 'Resume playback'),
        'next': ('⏭', 'Next track'),
        'prev': ('⏮', 'Previous track'),
        'volume': ('🔊', 'Show or set the volume'),
        'loop': ('🔁', 'Cycle loop mode'),
        'shuffle': ('🔀', 'Toggle shuffle'),
        'status': ('ℹ', 'Show player status'),

        # Playlist commands
        'playlist': ('📋', 'List and manage playlists'),

        # Track commands
        'add': ('➕', 'Add a URL or local files'),
        'remove': ('➖', 'Remove a track'),
        'move': ('↕', 'Move a track'),
        'rename': ('✏', 'Rename a track'),

        # System commands
        'help': ('❓', 'Show help'),
        'quit': ('👋', 'Exit Frequency'),
        'exit': ('👋', 'Exit Frequency'),
    }

    PLAYLIST_SUBCOMMANDS = {
        'new': 'Create a playlist',
        'delete': 'Delete a playlist',
        'select': 'Set the active playlist',
        'rename': 'Rename a playlist',
        'show': 'Show playlist tracks',
        'none': 'Clear the active playlist',
    }

    ADD_SUBCOMMANDS = {
        'url': 'Add a track by URL',
        'file': 'Add local audio files',
    }

    TRACK_COMMANDS = ('play', 'remove', 'move', 'rename')

    def __init__(self, engine: Optional[PlaybackEngine] = None):
        self.engine = engine

    def get_completions(self, document: Document, complete_event) -> Iterable[Completion]:
        """Generate completions for the word under the cursor."""
        text = document.text_before_cursor
        words = split_args(text)
        if text.endswith(' '):
            words.append('')

        if len(words) <= 1:
            yield from self._complete_commands(words[0] if words else '')
            return

        command = words[0].lower()
        if command == 'playlist' and len(words) == 2:
            yield from self._complete_options(words[1], self.PLAYLIST_SUBCOMMANDS)
        elif command == 'playlist' and len(words) == 3 and words[1] in ('delete', 'select', 'rename', 'show'):
            yield from self._complete_playlists(words[2])
        elif command == 'add' and len(words) == 2:
            yield from self._complete_options(words[1], self.ADD_SUBCOMMANDS)
        elif command in self.TRACK_COMMANDS and len(words) == 2:
            yield from self._complete_tracks(words[1])

    def _complete_commands(self, word: str) -> Iterable[Completion]:
        matches = []
        for command, (icon, description) in self.COMMANDS.items():
            # Only match against the command name, not the description
            if command.startswith(word.lower()):
                matches.append((command, icon, description))

        matches.sort()
        for command, icon, description in matches[:10]:
            yield Completion(
                command,
                start_position=-len(word),
                display=command,
                display_meta=f"{icon}\t{description}",
            )

    def _complete_options(self, word: str, options: dict) -> Iterable[Completion]:
        for option, description in options.items():
            if option.startswith(word.lower()):
                yield Completion(option, start_position=-len(word), display_meta=description)

    def _complete_playlists(self, word: str) -> Iterable[Completion]:
        if self.engine is None:
            return
        for playlist in self.engine.store:
            if word.lower() in playlist.title.lower():
                yield Completion(
                    _quote(playlist.title),
                    start_position=-len(word),
                    display=playlist.title,
                    display_meta=f"{len(playlist.tracks)} tracks",
                )

    def _complete_tracks(self, word: str) -> Iterable[Completion]:
        if self.engine is None:
            return
        playlist = self.engine.active_playlist
        if playlist is None:
            return
        for position, track in enumerate(playlist.tracks, 1):
            if word.lower() in track.title.lower():
                yield Completion(
                    _quote(track.title),
                    start_position=-len(word),
                    display=track.title,
                    display_meta=f"#{position}",
                )


def _quote(title: str) -> str:
    """Quote titles containing spaces so the command parser keeps them whole."""
    if ' ' in title or '"' in title:
        return '"' + title.replace('"', '\\"') + '"'
    return title
