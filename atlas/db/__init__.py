"""Database layer package.

Public re-exports so callers can write::

    from atlas.db import GraphStore, GraphSnapshot
    from atlas.db import is_valid_snapshot_shape
"""

from atlas.db.errors import (
    GraphStoreError,
    SnapshotReadError,
    SnapshotWriteError,
    StoreInitializationError,
    StoreNotInitializedError,
)
from atlas.db.models import GRAPH_SNAPSHOT_VERSION, GraphSnapshot
from atlas.db.store import GraphStore, is_valid_snapshot_shape

__all__ = [
    "GRAPH_SNAPSHOT_VERSION",
    "GraphSnapshot",
    "GraphStore",
    "GraphStoreError",
    "SnapshotReadError",
    "SnapshotWriteError",
    "StoreInitializationError",
    "StoreNotInitializedError",
    "is_valid_snapshot_shape",
]
