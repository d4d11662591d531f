"""Dataclass models representing DB rows and the snapshot aggregate.

These are plain Python objects – not ORM models.  Module and artifact
records stay plain dicts: the store only ever looks at their ``id``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

GRAPH_SNAPSHOT_VERSION = 1


@dataclass
class DomainRow:
    id: str
    name: str
    description: Optional[str]
    parent_id: Optional[str]
    position: int


@dataclass
class GraphLink:
    source: str
    target: str
    type: str

    def to_dict(self) -> dict[str, str]:
        return {"source": self.source, "target": self.target, "type": self.type}


@dataclass
class GraphSnapshot:
    """The complete graph state exchanged between the UI, the API and the store."""

    domains: list[dict[str, Any]] = field(default_factory=list)
    modules: list[dict[str, Any]] = field(default_factory=list)
    artifacts: list[dict[str, Any]] = field(default_factory=list)
    version: int = GRAPH_SNAPSHOT_VERSION
    exported_at: Optional[str] = None
    layout: Optional[dict[str, Any]] = None

    # ------------------------------------------------------------------
    # Wire conversion
    # ------------------------------------------------------------------
    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> GraphSnapshot:
        """Build a snapshot from a JSON payload (camelCase keys).

        ``version`` falls back to :data:`GRAPH_SNAPSHOT_VERSION` when missing
        or not an integer.  The layout is carried as-is; the store sanitises
        it on write.
        """
        version = payload.get("version")
        if isinstance(version, bool) or not isinstance(version, int):
            version = GRAPH_SNAPSHOT_VERSION
        exported_at = payload.get("exportedAt")
        return cls(
            domains=list(payload.get("domains") or []),
            modules=list(payload.get("modules") or []),
            artifacts=list(payload.get("artifacts") or []),
            version=version,
            exported_at=exported_at if isinstance(exported_at, str) else None,
            layout=payload.get("layout"),
        )

    def to_payload(self) -> dict[str, Any]:
        """Serialise to the JSON payload shape, omitting absent optional fields."""
        payload: dict[str, Any] = {"version": self.version}
        if self.exported_at is not None:
            payload["exportedAt"] = self.exported_at
        payload["domains"] = self.domains
        payload["modules"] = self.modules
        payload["artifacts"] = self.artifacts
        if self.layout is not None:
            payload["layout"] = self.layout
        return payload
