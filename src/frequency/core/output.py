"""
Unified output system using Loguru.
Every user-facing message is written to the log file and echoed to the terminal.
"""

import sys
import threading
from pathlib import Path

from loguru import logger

from .console import get_console

LEVEL_STYLES = {
    "debug": "cyan",
    "info": None,
    "success": "green",
    "warning": "yellow",
    "error": "red",
}

_quiet = threading.local()


def setup_loguru(
    log_file: Path,
    level: str = "INFO",
    max_file_size_mb: int = 10,
    backup_count: int = 5,
    console_output: bool = False,
) -> None:
    """
    Configure loguru with a rotating file sink and an optional stderr sink.

    Args:
        log_file: Path to log file
        level: Minimum level for logging (DEBUG, INFO, WARNING, ERROR)
        max_file_size_mb: Rotate the file once it reaches this size
        backup_count: Number of rotated files to keep
        console_output: Also emit log records on stderr
    """
    logger.remove()

    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        rotation=f"{max_file_size_mb} MB",
        retention=backup_count,
        level=level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}",
        enqueue=False,  # Synchronous writes (thread-safe but blocking)
    )

    if console_output:
        logger.add(sys.stderr, level=level, format="{level}: {message}")

    logger.info(f"Loguru initialized: {log_file} (level={level})")


def set_quiet(quiet: bool) -> None:
    """Suppress terminal echo of log() on the calling thread.

    The sink watcher thread runs quiet so its messages only reach the log file.
    """
    _quiet.enabled = quiet


def log(message: str, level: str = "info") -> None:
    """
    Unified logging: writes to the log file AND prints to the terminal.

    Use this instead of print() for user-facing messages.

    Args:
        message: User-facing message (may include Rich markup)
        level: Log level (debug, info, success, warning, error)
    """
    log_func = getattr(logger, level)
    log_func(message)

    if getattr(_quiet, "enabled", False) or level == "debug":
        return

    style = LEVEL_STYLES.get(level)
    console = get_console()
    if style:
        console.print(message, style=style)
    else:
        console.print(message)
