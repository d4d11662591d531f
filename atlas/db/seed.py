"""Bundled first-boot dataset."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from atlas.config import settings
from atlas.db.models import GraphSnapshot


def load_seed_snapshot(path: Optional[Path] = None) -> GraphSnapshot:
    """Read the seed catalogue and stamp it with the current time."""
    payload = json.loads((path or settings.seed_path).read_text(encoding="utf-8"))
    snapshot = GraphSnapshot.from_payload(payload)
    snapshot.exported_at = datetime.now(timezone.utc).isoformat()
    return snapshot
