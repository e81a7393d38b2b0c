"""
Configuration management for Frequency
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

VALID_BACKENDS = ("mpv", "null")
VALID_LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


@dataclass
class PlayerConfig:
    """Configuration for the audio output."""

    backend: str = "mpv"  # 'mpv' or 'null' (silent, for headless use)
    mpv_path: str = "mpv"
    mpv_socket_path: Optional[str] = None
    poll_interval: float = 0.5  # Seconds between end-of-track checks

    def validate(self) -> None:
        """Validate player configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        if self.backend not in VALID_BACKENDS:
            raise ValueError(
                f"Invalid player backend: {self.backend!r}. "
                f"Valid backends are: {', '.join(VALID_BACKENDS)}"
            )
        if not isinstance(self.poll_interval, (int, float)) or self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {self.poll_interval!r}")


@dataclass
class LibraryConfig:
    """Configuration for adding tracks."""

    supported_formats: List[str] = field(
        default_factory=lambda: [".mp3", ".m4a", ".wav", ".flac", ".ogg", ".opus"]
    )
    embed_local_files: bool = False  # Store file contents as data: URLs
    max_embed_size_mb: int = 8

    def validate(self) -> None:
        if self.max_embed_size_mb <= 0:
            raise ValueError(
                f"max_embed_size_mb must be positive, got {self.max_embed_size_mb!r}"
            )
        bad = [f for f in self.supported_formats if not f.startswith(".")]
        if bad:
            raise ValueError(f"Formats must start with '.': {bad}")


@dataclass
class StorageConfig:
    """Configuration for persisted playlists and settings."""

    database_path: Optional[str] = None  # Default: <data dir>/frequency.db


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = (
        None  # Custom log file path (default: ~/.local/share/frequency/frequency.log)
    )
    max_file_size_mb: int = 10  # Maximum log file size before rotation
    backup_count: int = 5  # Number of backup files to keep
    console_output: bool = False  # Also output to stderr (for debugging)


@dataclass
class Config:
    """Main configuration object."""

    player: PlayerConfig = field(default_factory=PlayerConfig)
    library: LibraryConfig = field(default_factory=LibraryConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "frequency"
    return Path.home() / ".config" / "frequency"


def _find_project_config() -> Optional[Path]:
    """Find config.toml in project root by looking for pyproject.toml.

    Used during development so a checkout's config.toml wins even when the
    working directory is elsewhere.

    Returns:
        Path to config.toml in project root, or None if not found
    """
    current = Path(__file__).resolve().parent
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            config_path = parent / "config.toml"
            if config_path.exists():
                return config_path
            return None
    return None


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. Project root (detected via pyproject.toml) - for development
    2. Current working directory
    3. XDG_CONFIG_HOME/frequency (or ~/.config/frequency)
    """
    project_config = _find_project_config()
    if project_config:
        return project_config

    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "frequency"
    return Path.home() / ".local" / "share" / "frequency"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# Frequency Configuration

[player]
# Audio output: "mpv" (requires the mpv binary) or "null" (silent)
backend = "mpv"

# mpv executable
mpv_path = "mpv"

# Path for mpv socket (auto-generated if not specified)
# mpv_socket_path = "/tmp/frequency-mpv.sock"

# Seconds between end-of-track checks
poll_interval = 0.5

[library]
# File extensions accepted by 'add file'
supported_formats = [".mp3", ".m4a", ".wav", ".flac", ".ogg", ".opus"]

# Store local files inside the database as data: URLs instead of file references
embed_local_files = false

# Largest file that may be embedded, in MB
max_embed_size_mb = 8

[storage]
# Custom database path (default: ~/.local/share/frequency/frequency.db)
# database_path = "/path/to/frequency.db"

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/frequency/frequency.log)
# log_file = "/path/to/custom/frequency.log"

# Maximum log file size in MB before rotation
max_file_size_mb = 10

# Number of backup log files to keep
backup_count = 5

# Also output logs to stderr (useful for debugging)
console_output = false
""".strip()


def parse_config(toml_data: dict) -> Config:
    """Build a Config from parsed TOML, falling back per section on bad values."""
    config = Config()

    if "player" in toml_data:
        player_data = toml_data["player"]
        config.player = PlayerConfig(
            backend=player_data.get("backend", config.player.backend),
            mpv_path=player_data.get("mpv_path", config.player.mpv_path),
            mpv_socket_path=player_data.get("mpv_socket_path"),
            poll_interval=player_data.get("poll_interval", config.player.poll_interval),
        )
        try:
            config.player.validate()
        except ValueError as e:
            print(f"Warning: Invalid player configuration: {e}")
            print("Using default player configuration.")
            config.player = PlayerConfig()

    if "library" in toml_data:
        library_data = toml_data["library"]
        config.library = LibraryConfig(
            supported_formats=[
                f.lower()
                for f in library_data.get(
                    "supported_formats", config.library.supported_formats
                )
            ],
            embed_local_files=library_data.get(
                "embed_local_files", config.library.embed_local_files
            ),
            max_embed_size_mb=library_data.get(
                "max_embed_size_mb", config.library.max_embed_size_mb
            ),
        )
        try:
            config.library.validate()
        except ValueError as e:
            print(f"Warning: Invalid library configuration: {e}")
            print("Using default library configuration.")
            config.library = LibraryConfig()

    if "storage" in toml_data:
        database_path = toml_data["storage"].get("database_path")
        if database_path:
            database_path = str(Path(database_path).expanduser())
        config.storage = StorageConfig(database_path=database_path)

    if "logging" in toml_data:
        logging_data = toml_data["logging"]
        log_file = logging_data.get("log_file")
        if log_file:
            log_file = str(Path(log_file).expanduser())
        level = str(logging_data.get("level", config.logging.level)).upper()
        if level not in VALID_LOG_LEVELS:
            print(f"Warning: Unknown log level {level!r}, using INFO.")
            level = "INFO"
        config.logging = LoggingConfig(
            level=level,
            log_file=log_file,
            max_file_size_mb=logging_data.get(
                "max_file_size_mb", config.logging.max_file_size_mb
            ),
            backup_count=logging_data.get("backup_count", config.logging.backup_count),
            console_output=logging_data.get(
                "console_output", config.logging.console_output
            ),
        )

    return config


def apply_env_overrides(config: Config) -> Config:
    """Apply FREQUENCY_* environment variables on top of file values.

    - FREQUENCY_PLAYER_BACKEND
    - FREQUENCY_LOG_LEVEL
    - FREQUENCY_DATABASE_PATH
    """
    backend = os.environ.get("FREQUENCY_PLAYER_BACKEND")
    if backend:
        if backend in VALID_BACKENDS:
            config.player.backend = backend
        else:
            print(f"Warning: Ignoring FREQUENCY_PLAYER_BACKEND={backend!r}")

    log_level = os.environ.get("FREQUENCY_LOG_LEVEL")
    if log_level and log_level.upper() in VALID_LOG_LEVELS:
        config.logging.level = log_level.upper()

    database_path = os.environ.get("FREQUENCY_DATABASE_PATH")
    if database_path:
        config.storage.database_path = str(Path(database_path).expanduser())

    return config


def load_config() -> Config:
    """Load configuration from file or create default.

    Environment variables (optionally from a .env file in the config
    directory) override TOML values.
    """
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = get_config_path()

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_default_config())
        print(f"Created default configuration at: {config_path}")
        return apply_env_overrides(Config())

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)
        config = parse_config(toml_data)
    except (OSError, tomllib.TOMLDecodeError) as e:
        print(f"Error loading configuration from {config_path}: {e}")
        print("Using default configuration.")
        config = Config()

    return apply_env_overrides(config)


def ensure_directories() -> None:
    """Ensure all necessary directories exist."""
    get_config_dir().mkdir(parents=True, exist_ok=True)
    get_data_dir().mkdir(parents=True, exist_ok=True)
