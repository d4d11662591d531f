"""Exceptions raised by the snapshot store."""

from __future__ import annotations


class GraphStoreError(Exception):
    """Base class for every snapshot store failure."""


class StoreInitializationError(GraphStoreError):
    """The embedded SQLite engine could not be brought up."""


class StoreNotInitializedError(GraphStoreError):
    """An operation was attempted before ``initialize()`` or after ``close()``."""

    def __init__(self, message: str = "Database has not been initialized") -> None:
        super().__init__(message)


class SnapshotWriteError(GraphStoreError):
    """A snapshot write failed and was rolled back.

    The original exception is always available as ``__cause__``.
    """


class SnapshotReadError(GraphStoreError):
    """Stored rows could not be turned back into a snapshot.

    The original exception is always available as ``__cause__``.
    """
