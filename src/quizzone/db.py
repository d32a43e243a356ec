"""Database initialization and the key-value persistence gateway."""
import logging
import os
import sqlite3
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = os.getenv("QUIZZONE_DB", str(Path.home() / ".quizzone" / "quizzone.db"))

SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value BLOB NOT NULL,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating the store table if it doesn't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()


def load(db_path: str, key: str) -> Optional[bytes]:
    """Return the stored blob for key, or None if absent or unreadable."""
    try:
        conn = get_connection(db_path)
        try:
            row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        finally:
            conn.close()
    except sqlite3.Error as e:
        logger.warning("Could not read %r from %s: %s", key, db_path, e)
        return None
    if row is None:
        return None
    return bytes(row["value"])


def save(db_path: str, key: str, value: bytes) -> bool:
    """Store value under key. Returns False if the write failed."""
    try:
        conn = get_connection(db_path)
        try:
            conn.execute(
                "INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP) "
                "ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at",
                (key, value),
            )
            conn.commit()
        finally:
            conn.close()
    except sqlite3.Error as e:
        logger.warning("Could not write %r to %s: %s", key, db_path, e)
        return False
    return True