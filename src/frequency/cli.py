"""
Frequency - Entry point

This module serves as the CLI entry point, supporting both interactive mode
and one-shot commands against the saved playlists.
"""

import argparse
import sys

from frequency import __version__
from frequency.core.config import VALID_BACKENDS


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="frequency",
        description="Frequency - playlists and playback from the terminal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Run without a command to start the interactive shell.\n"
            "Examples:\n"
            "  frequency playlist\n"
            '  frequency playlist new "Late Night"\n'
            '  frequency add url "Lo-fi stream" https://example.com/stream.mp3\n'
        ),
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        '--backend',
        choices=sorted(VALID_BACKENDS),
        default=None,
        help='Audio output to use (overrides [player] backend)',
    )
    parser.add_argument(
        'command',
        nargs='?',
        help='Shell command to run once (see "frequency help")',
    )
    parser.add_argument(
        'args',
        nargs=argparse.REMAINDER,
        help='Arguments for the command',
    )
    return parser


def main(argv=None) -> None:
    """Main entry point for the frequency command."""
    args = build_parser().parse_args(argv)

    if args.command:
        from .main import run_command
        sys.exit(run_command(args.command, args.args, backend=args.backend))

    # No command - start interactive mode
    from .main import interactive_mode
    interactive_mode(backend=args.backend)


if __name__ == "__main__":
    main()
