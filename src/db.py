"""Shared SQLite helpers: WAL mode, foreign keys, row_factory defaults."""

import sqlite3
from pathlib import Path


def wal_connect(
    db_path: str | Path, row_factory: bool = False, check_same_thread: bool = True
) -> sqlite3.Connection:
    """Open SQLite connection with WAL journal mode and FK enforcement.

    Args:
        db_path: Path to database file, or ":memory:".
        row_factory: If True, set conn.row_factory = sqlite3.Row.
        check_same_thread: Passed to sqlite3.connect; False lets a caller share
            the connection across threads under its own lock.
    """
    target = str(db_path)
    if target != ":memory:":
        Path(target).expanduser().parent.mkdir(parents=True, exist_ok=True)
        target = str(Path(target).expanduser())
    conn = sqlite3.connect(target, check_same_thread=check_same_thread)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    if row_factory:
        conn.row_factory = sqlite3.Row
    return conn
