"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Key/value storage (SQLite)
- Console and log output (Rich, Loguru)

The core layer has no dependencies on the domain or command layers.
"""

# Configuration
from .config import (
    Config,
    load_config,
    parse_config,
    get_config_dir,
    get_config_path,
    get_data_dir,
    create_default_config,
    ensure_directories,
)

# Storage
from .database import (
    get_database_path,
    set_database_path,
    get_db_connection,
    init_database,
    migrate_database,
    get_value,
    set_value,
    set_values,
    delete_value,
)

# Console and output
from .console import get_console, safe_print
from .output import log, setup_loguru

__all__ = [
    # Config
    "Config",
    "load_config",
    "parse_config",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "create_default_config",
    "ensure_directories",
    # Storage
    "get_database_path",
    "set_database_path",
    "get_db_connection",
    "init_database",
    "migrate_database",
    "get_value",
    "set_value",
    "set_values",
    "delete_value",
    # Console and output
    "get_console",
    "safe_print",
    "log",
    "setup_loguru",
]
