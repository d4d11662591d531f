"""Transactional snapshot store.

The store owns a single in-memory SQLite handle.  Every write replaces the
whole graph inside one transaction and then flushes the full database image
to disk; every read rebuilds a fresh :class:`GraphSnapshot` from the rows.

Usage::

    from atlas.db.store import GraphStore

    store = GraphStore()
    store.initialize(database_path=path, seed_with_initial_data=False)
    store.persist_snapshot(snapshot)
    snapshot = store.load_snapshot()
    store.close()
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

from atlas.config import settings
from atlas.db.connection import flush_database, open_database
from atlas.db.domains import build_domain_tree, flatten_domains
from atlas.db.errors import (
    GraphStoreError,
    SnapshotReadError,
    SnapshotWriteError,
    StoreInitializationError,
    StoreNotInitializedError,
)
from atlas.db.layout import normalize_layout
from atlas.db.migrations import count_rows, init_db, is_empty
from atlas.db.models import GRAPH_SNAPSHOT_VERSION, DomainRow, GraphSnapshot
from atlas.db.seed import load_seed_snapshot

logger = logging.getLogger(__name__)

SnapshotLike = Union[GraphSnapshot, dict[str, Any]]


# ---------------------------------------------------------------------------
# Shape guard
# ---------------------------------------------------------------------------

def is_valid_snapshot_shape(value: Any) -> bool:
    """``True`` iff *value* is a dict with list-typed domains, modules and artifacts.

    Element shapes and the ``version`` field are not inspected.
    """
    if not isinstance(value, dict):
        return False
    return all(isinstance(value.get(key), list) for key in ("domains", "modules", "artifacts"))


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_domain(row: sqlite3.Row) -> DomainRow:
    return DomainRow(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        parent_id=row["parent_id"],
        position=int(row["position"]),
    )


def _record_id(record: Any, kind: str, index: int) -> str:
    if not isinstance(record, dict) or not isinstance(record.get("id"), str):
        raise ValueError(f"{kind} at index {index} has no string 'id'")
    return record["id"]


def _read_metadata(conn: sqlite3.Connection, key: str) -> Optional[str]:
    row = conn.execute("SELECT value FROM metadata WHERE key = ?", (key,)).fetchone()
    return row["value"] if row else None


def _upsert_metadata(conn: sqlite3.Connection, key: str, value: str) -> None:
    conn.execute(
        """
        INSERT INTO metadata (key, value) VALUES (?, ?)
        ON CONFLICT(key) DO UPDATE SET value = excluded.value
        """,
        (key, value),
    )


def _delete_metadata(conn: sqlite3.Connection, key: str) -> None:
    conn.execute("DELETE FROM metadata WHERE key = ?", (key,))


def _parse_version(raw: Optional[str]) -> int:
    if raw is None:
        return GRAPH_SNAPSHOT_VERSION
    try:
        return int(raw.strip())
    except ValueError:
        logger.warning("Ignoring unparseable snapshotVersion metadata: %r", raw)
        return GRAPH_SNAPSHOT_VERSION


def _parse_layout(raw: Optional[str]) -> Optional[dict[str, Any]]:
    if raw is None:
        return None
    try:
        return normalize_layout(json.loads(raw))
    except ValueError as exc:
        logger.warning("Ignoring malformed layout metadata: %s", exc)
        return None


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class GraphStore:
    """Owner of the single database handle for one process.

    All public methods are serialised by one re-entrant lock, so concurrent
    callers inside the process see whole snapshots only.  Nothing guards
    against a second process writing the same file.
    """

    def __init__(self) -> None:
        self._conn: Optional[sqlite3.Connection] = None
        self._path: Optional[Path] = None
        self._read_only = False
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def read_only(self) -> bool:
        return self._read_only

    @property
    def database_path(self) -> Optional[Path]:
        """Path of the backing file while open, else ``None``."""
        return self._path

    def initialize(
        self,
        database_path: Optional[Union[str, Path]] = None,
        seed_with_initial_data: bool = True,
        initial_snapshot: Optional[SnapshotLike] = None,
    ) -> None:
        """Open (or create) the database file and make it ready for use.

        Args:
            database_path: Backing file.  Defaults to ``settings.db_path``.
            seed_with_initial_data: Write *initial_snapshot* when all content
                tables are empty.  Existing content is never overwritten.
            initial_snapshot: First-boot dataset.  Defaults to the bundled
                seed catalogue.

        Raises:
            StoreInitializationError: If the SQLite engine cannot be started
                or the database file cannot be read or written.
        """
        path = Path(database_path) if database_path else settings.db_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreInitializationError(f"Cannot create {path.parent}: {exc}") from exc

        with self._lock:
            conn = open_database(path)
            self._dispose()
            self._conn = conn
            self._path = path
            self._read_only = False

            init_db(conn)

            if seed_with_initial_data and is_empty(conn):
                if initial_snapshot is None:
                    initial_snapshot = load_seed_snapshot()
                logger.info("Seeding empty database at %s", path)
                self.persist_snapshot(initial_snapshot)

            try:
                flush_database(conn, path)
            except OSError as exc:
                raise StoreInitializationError(f"Failed to write database {path}: {exc}") from exc
            logger.info("Graph store ready at %s", path)

    def open_read_only(self, database_path: Union[str, Path]) -> None:
        """Load an existing database file for inspection.

        The file is never written: nothing is seeded or flushed, and
        ``persist_snapshot`` is refused until the store is re-initialized.

        Raises:
            StoreInitializationError: If *database_path* is not an existing
                file or is not a readable graph database.
        """
        path = Path(database_path)
        if not path.is_file():
            raise StoreInitializationError(f"No database file at {path}")

        with self._lock:
            conn = open_database(path, strict=True)
            self._dispose()
            self._conn = conn
            self._path = path
            self._read_only = True
            # Applies to the in-memory copy only.
            init_db(conn)

    def close(self) -> None:
        """Release the database handle.  Safe to call when already closed."""
        with self._lock:
            self._dispose()
            self._path = None
            self._read_only = False

    def _reload_from_disk(self) -> None:
        """Replace the in-memory image with the last image saved to disk."""
        if self._path is None:
            return
        try:
            conn = open_database(self._path, strict=True)
            init_db(conn)
        except (GraphStoreError, sqlite3.Error) as exc:
            logger.warning(
                "Could not reload %s; in-memory data no longer matches the file: %s",
                self._path,
                exc,
            )
            return
        self._dispose()
        self._conn = conn

    def _dispose(self) -> None:
        if self._conn is None:
            return
        try:
            self._conn.close()
        except sqlite3.Error as exc:
            logger.warning("Error while closing database handle: %s", exc)
        self._conn = None

    def _require_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreNotInitializedError()
        return self._conn

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------
    def load_snapshot(self) -> GraphSnapshot:
        """Rebuild the full snapshot from the database.

        Raises:
            StoreNotInitializedError: Before ``initialize()`` or after ``close()``.
            SnapshotReadError: If a query fails or a stored record is not
                valid JSON.
        """
        with self._lock:
            conn = self._require_conn()
            try:
                domain_rows = conn.execute(
                    """
                    SELECT id, name, description, parent_id, position
                    FROM   domains
                    ORDER  BY parent_id IS NOT NULL, parent_id, position
                    """
                ).fetchall()
                module_rows = conn.execute(
                    "SELECT data FROM modules ORDER BY position"
                ).fetchall()
                artifact_rows = conn.execute(
                    "SELECT data FROM artifacts ORDER BY position"
                ).fetchall()

                return GraphSnapshot(
                    version=_parse_version(_read_metadata(conn, "snapshotVersion")),
                    exported_at=_read_metadata(conn, "updatedAt"),
                    domains=build_domain_tree([_row_to_domain(r) for r in domain_rows]),
                    modules=[json.loads(r["data"]) for r in module_rows],
                    artifacts=[json.loads(r["data"]) for r in artifact_rows],
                    layout=_parse_layout(_read_metadata(conn, "layout")),
                )
            except (sqlite3.Error, ValueError, TypeError) as exc:
                logger.error("Snapshot read failed: %s", exc)
                raise SnapshotReadError(f"Failed to load graph snapshot: {exc}") from exc

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------
    def persist_snapshot(self, snapshot: SnapshotLike) -> None:
        """Replace the stored graph with *snapshot* in a single transaction.

        Anything not present in *snapshot* is removed.  On failure the
        transaction is rolled back and the previous state is left intact.

        Raises:
            StoreNotInitializedError: Before ``initialize()`` or after ``close()``.
            SnapshotWriteError: If any statement or the flush to disk fails,
                or the store is read-only; ``__cause__`` holds the original
                exception.  After a failed flush the in-memory data is
                reloaded from the file.
        """
        if isinstance(snapshot, dict):
            snapshot = GraphSnapshot.from_payload(snapshot)

        with self._lock:
            conn = self._require_conn()
            if self._read_only:
                raise SnapshotWriteError(f"Database {self._path} is open read-only")
            try:
                conn.execute("BEGIN")
                self._write_snapshot(conn, snapshot)
                conn.execute("COMMIT")
            except Exception as exc:
                try:
                    conn.execute("ROLLBACK")
                except sqlite3.Error as rollback_exc:
                    logger.warning("Rollback failed: %s", rollback_exc)
                logger.error("Snapshot write failed: %s", exc)
                raise SnapshotWriteError(f"Failed to persist graph snapshot: {exc}") from exc

            if self._path is None:
                return
            try:
                flush_database(conn, self._path)
            except OSError as exc:
                logger.error("Flush to %s failed, reloading saved state: %s", self._path, exc)
                self._reload_from_disk()
                raise SnapshotWriteError(f"Failed to write graph snapshot to disk: {exc}") from exc

    @staticmethod
    def _write_snapshot(conn: sqlite3.Connection, snapshot: GraphSnapshot) -> None:
        conn.execute("DELETE FROM domains")
        conn.execute("DELETE FROM modules")
        conn.execute("DELETE FROM artifacts")

        conn.executemany(
            """
            INSERT INTO domains (id, name, description, parent_id, position)
            VALUES (?, ?, ?, ?, ?)
            """,
            [
                (r.id, r.name, r.description, r.parent_id, r.position)
                for r in flatten_domains(snapshot.domains)
            ],
        )
        conn.executemany(
            "INSERT INTO modules (id, position, data) VALUES (?, ?, ?)",
            [
                (_record_id(m, "module", i), i, json.dumps(m, ensure_ascii=False))
                for i, m in enumerate(snapshot.modules)
            ],
        )
        conn.executemany(
            "INSERT INTO artifacts (id, position, data) VALUES (?, ?, ?)",
            [
                (_record_id(a, "artifact", i), i, json.dumps(a, ensure_ascii=False))
                for i, a in enumerate(snapshot.artifacts)
            ],
        )

        layout = normalize_layout(snapshot.layout)
        if layout is not None:
            _upsert_metadata(conn, "layout", json.dumps(layout))
        else:
            _delete_metadata(conn, "layout")

        _upsert_metadata(conn, "snapshotVersion", str(snapshot.version))
        _upsert_metadata(conn, "updatedAt", snapshot.exported_at or _utc_now())

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    def stats(self) -> dict[str, Any]:
        """Row counts and metadata for the open database."""
        with self._lock:
            conn = self._require_conn()
            try:
                return {
                    "path": str(self._path) if self._path else None,
                    "domains": count_rows(conn, "domains"),
                    "modules": count_rows(conn, "modules"),
                    "artifacts": count_rows(conn, "artifacts"),
                    "version": _parse_version(_read_metadata(conn, "snapshotVersion")),
                    "updatedAt": _read_metadata(conn, "updatedAt"),
                    "hasLayout": _read_metadata(conn, "layout") is not None,
                }
            except sqlite3.Error as exc:
                raise SnapshotReadError(f"Failed to read database stats: {exc}") from exc
