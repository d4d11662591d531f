"""Sanitising of the optional graph layout overlay.

The layout is ``{"nodes": {node_id: {"x", "y", "fx"?, "fy"?}}}``.  It is
visual state only, so bad coordinates are dropped instead of failing a read
or a write.
"""

from __future__ import annotations

import math
from typing import Any, Optional


def _finite(value: Any) -> Optional[float]:
    """Coerce *value* to a finite float, or return ``None``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _plain(number: float) -> int | float:
    # Keep integral coordinates as ints so JSON output matches the input.
    return int(number) if number.is_integer() else number


def normalize_layout(layout: Any) -> Optional[dict[str, Any]]:
    """Return a cleaned copy of *layout*, or ``None`` when nothing usable is left.

    * Entries whose ``x`` or ``y`` is missing or not finite are dropped.
    * ``fx`` / ``fy`` are kept independently, only when finite.
    * An empty result is reported as ``None`` so that "no layout" and
      "empty layout" never diverge in storage.

    The function is pure and idempotent.
    """
    if not isinstance(layout, dict):
        return None
    nodes = layout.get("nodes")
    if not isinstance(nodes, dict):
        return None

    cleaned: dict[str, dict[str, int | float]] = {}
    for node_id, position in nodes.items():
        if not isinstance(position, dict):
            continue

        x = _finite(position.get("x"))
        y = _finite(position.get("y"))
        if x is None or y is None:
            continue

        entry: dict[str, int | float] = {"x": _plain(x), "y": _plain(y)}
        for key in ("fx", "fy"):
            pinned = _finite(position.get(key))
            if pinned is not None:
                entry[key] = _plain(pinned)

        cleaned[str(node_id)] = entry

    if not cleaned:
        return None
    return {"nodes": cleaned}
