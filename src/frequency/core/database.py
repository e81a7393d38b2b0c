"""
SQLite key/value storage for Frequency

Playlists and playback settings are stored as text values under fixed keys,
the same shape the browser build kept in local storage.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from loguru import logger

from .config import get_data_dir

# Database schema version for migrations (stored in PRAGMA user_version)
SCHEMA_VERSION = 2

_database_path: Optional[Path] = None


def set_database_path(path: Optional[Path]) -> None:
    """Override the database location (None restores the default)."""
    global _database_path
    _database_path = Path(path) if path is not None else None


def get_database_path() -> Path:
    """Get the path to the SQLite database file."""
    if _database_path is not None:
        return _database_path
    return get_data_dir() / "frequency.db"


@contextmanager
def get_db_connection():
    """Get a database connection with proper cleanup."""
    db_path = get_database_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path, timeout=30.0)
    conn.row_factory = sqlite3.Row  # Enable dict-like access

    try:
        yield conn
    finally:
        conn.close()


def migrate_database(conn: sqlite3.Connection, current_version: int) -> None:
    """Migrate database from current_version to latest schema."""
    if current_version < 1:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS storage (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
        """)

    if current_version < 2:
        # v1 -> v2: track when each key was last written
        columns = {row["name"] for row in conn.execute("PRAGMA table_info(storage)")}
        if "updated_at" not in columns:
            conn.execute("ALTER TABLE storage ADD COLUMN updated_at TIMESTAMP")
            conn.execute("UPDATE storage SET updated_at = CURRENT_TIMESTAMP")

    conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
    conn.commit()


def init_database() -> None:
    """Create or upgrade the database schema."""
    with get_db_connection() as conn:
        current_version = conn.execute("PRAGMA user_version").fetchone()[0]
        if current_version < SCHEMA_VERSION:
            logger.info(
                f"Migrating database {get_database_path()} "
                f"from v{current_version} to v{SCHEMA_VERSION}"
            )
            migrate_database(conn, current_version)


def get_value(key: str) -> Optional[str]:
    """Read a stored value, or None when the key is absent."""
    with get_db_connection() as conn:
        row = conn.execute("SELECT value FROM storage WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None


def set_value(key: str, value: str) -> None:
    """Insert or replace a stored value."""
    with get_db_connection() as conn:
        conn.execute(
            """
            INSERT INTO storage (key, value, updated_at)
            VALUES (?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
            """,
            (key, value),
        )
        conn.commit()


def set_values(values: dict[str, str]) -> None:
    """Write several keys in one transaction."""
    with get_db_connection() as conn:
        with conn:
            conn.executemany(
                """
                INSERT INTO storage (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                list(values.items()),
            )


def delete_value(key: str) -> bool:
    """Delete a key. Returns True if a row was removed."""
    with get_db_connection() as conn:
        cursor = conn.execute("DELETE FROM storage WHERE key = ?", (key,))
        conn.commit()
        return cursor.rowcount > 0


def list_keys() -> list[str]:
    with get_db_connection() as conn:
        return [row["key"] for row in conn.execute("SELECT key FROM storage ORDER BY key")]
