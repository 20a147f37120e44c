"""Shared SQLite helpers: WAL mode, row_factory defaults."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path


def wal_connect(db_path: str | Path, row_factory: bool = False) -> sqlite3.Connection:
    """Open SQLite connection with WAL journal mode.

    Args:
        db_path: Path to database file.
        row_factory: If True, set conn.row_factory = sqlite3.Row.
    """
    conn = sqlite3.connect(str(db_path), timeout=10.0)
    conn.execute("PRAGMA journal_mode=WAL")
    if row_factory:
        conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def wal_session(db_path: str | Path, row_factory: bool = False):
    """Connection scoped to one transaction: commit on success, rollback on error, always close."""
    conn = wal_connect(db_path, row_factory=row_factory)
    try:
        with conn:
            yield conn
    finally:
        conn.close()
