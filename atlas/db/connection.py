"""In-memory SQLite handles backed by a single on-disk image.

The whole database lives in process memory between flushes.  Opening
deserialises the file image into a fresh ``:memory:`` connection and
flushing serialises the complete image back over the file.

Usage::

    from atlas.db.connection import flush_database, open_database

    conn = open_database(path)
    ...
    flush_database(conn, path)
"""

from __future__ import annotations

import logging
import os
import sqlite3
from pathlib import Path
from typing import Optional

from atlas.db.errors import StoreInitializationError

logger = logging.getLogger(__name__)


def _new_connection() -> sqlite3.Connection:
    """Return an empty, configured in-memory connection.

    ``isolation_level=None`` leaves transaction control to the caller
    (explicit ``BEGIN`` / ``COMMIT`` / ``ROLLBACK``).

    Raises:
        StoreInitializationError: If the SQLite engine is unavailable or was
            built without serialize / deserialize support.
    """
    if not hasattr(sqlite3.Connection, "serialize") or not hasattr(
        sqlite3.Connection, "deserialize"
    ):
        raise StoreInitializationError(
            "The SQLite engine does not support serialize/deserialize "
            f"(sqlite {sqlite3.sqlite_version})"
        )
    try:
        conn = sqlite3.connect(":memory:", check_same_thread=False, isolation_level=None)
    except sqlite3.Error as exc:
        raise StoreInitializationError(f"Failed to start the SQLite engine: {exc}") from exc
    conn.row_factory = sqlite3.Row
    return conn


def _configure(conn: sqlite3.Connection) -> sqlite3.Connection:
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def _load_image(conn: sqlite3.Connection, image: bytes) -> None:
    """Deserialise *image* into *conn* and verify it is a readable database.

    Raises:
        sqlite3.DatabaseError: If the image is not a usable SQLite database.
    """
    conn.deserialize(image)
    row = conn.execute("PRAGMA quick_check").fetchone()
    if row is None or row[0] != "ok":
        raise sqlite3.DatabaseError(f"integrity check failed: {row[0] if row else 'no result'}")


def open_database(path: Optional[Path] = None, strict: bool = False) -> sqlite3.Connection:
    """Open a database image from *path* into memory.

    A missing or empty file yields a fresh empty database.  A file that
    cannot be read as SQLite is logged as a warning and also replaced by a
    fresh empty database; the file itself is only overwritten on the next
    flush.

    Args:
        path: On-disk image to load.  ``None`` opens an empty database that
            is never backed by a file.
        strict: Refuse an unreadable image instead of starting empty.

    Returns:
        A configured :class:`sqlite3.Connection` with ``row_factory`` set to
        :class:`sqlite3.Row`.

    Raises:
        StoreInitializationError: If the file cannot be read, or, with
            *strict*, is not a usable SQLite database.
    """
    conn = _new_connection()

    image = b""
    if path is not None and path.exists():
        try:
            image = path.read_bytes()
        except OSError as exc:
            conn.close()
            raise StoreInitializationError(f"Failed to read database {path}: {exc}") from exc

    if image:
        try:
            _load_image(conn, image)
        except sqlite3.Error as exc:
            conn.close()
            if strict:
                raise StoreInitializationError(
                    f"{path} is not a readable graph database: {exc}"
                ) from exc
            logger.warning(
                "Failed to load existing database %s, creating a new one: %s", path, exc
            )
            conn = _new_connection()

    return _configure(conn)


def flush_database(conn: sqlite3.Connection, path: Path) -> None:
    """Write the full in-memory image of *conn* to *path*.

    The image goes to a sibling temporary file first and is then moved over
    *path*, so readers never observe a partially written file.
    """
    image = conn.serialize()
    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.write_bytes(image)
    os.replace(tmp_path, path)
    logger.debug("Flushed %d bytes to %s", len(image), path)
