"""Database initialisation helpers.

``init_db(conn)`` is idempotent and safe to call on an existing database.
"""

from __future__ import annotations

import sqlite3

from atlas.config import settings

CONTENT_TABLES = ("domains", "modules", "artifacts")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _read_schema() -> str:
    """Load the bundled schema.sql script."""
    return settings.schema_path.read_text(encoding="utf-8")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def init_db(conn: sqlite3.Connection) -> None:
    """Create the ``metadata``, ``domains``, ``modules`` and ``artifacts`` tables.

    This function is **idempotent**: every DDL statement uses ``IF NOT EXISTS``
    so calling it multiple times on the same database is safe.

    Args:
        conn: An open, configured SQLite connection.
    """
    # executescript() issues an implicit COMMIT before running, which is
    # fine for a DDL-only script.
    conn.executescript(_read_schema())


def count_rows(conn: sqlite3.Connection, table: str) -> int:
    """Return the number of rows in one of the content tables."""
    if table not in CONTENT_TABLES:
        raise ValueError(f"Unknown content table: {table!r}")
    row = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()  # noqa: S608
    return int(row[0]) if row else 0


def is_empty(conn: sqlite3.Connection) -> bool:
    """``True`` when none of the content tables holds a row."""
    return all(count_rows(conn, table) == 0 for table in CONTENT_TABLES)
