"""Conversion between the nested domain tree and flat ``domains`` rows.

Both directions use an explicit stack so arbitrarily deep trees never hit
the interpreter's recursion limit.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from atlas.db.models import DomainRow

logger = logging.getLogger(__name__)


def flatten_domains(tree: list[dict[str, Any]]) -> list[DomainRow]:
    """Flatten *tree* into rows in depth-first pre-order.

    Each row carries its parent's id (``None`` for roots) and its 0-based
    index among its siblings as ``position``.
    """
    rows: list[DomainRow] = []
    # Stack of (node, parent_id, position); pushed in reverse to keep pre-order.
    stack: list[tuple[dict[str, Any], Optional[str], int]] = [
        (node, None, index) for index, node in reversed(list(enumerate(tree)))
    ]
    while stack:
        node, parent_id, position = stack.pop()
        rows.append(
            DomainRow(
                id=node["id"],
                name=node["name"],
                description=node.get("description"),
                parent_id=parent_id,
                position=position,
            )
        )
        children = node.get("children") or []
        for index in range(len(children) - 1, -1, -1):
            stack.append((children[index], node["id"], index))
    return rows


def build_domain_tree(rows: list[DomainRow]) -> list[dict[str, Any]]:
    """Rebuild the nested tree from flat *rows*.

    Siblings are ordered by ``position``.  ``children`` is only emitted for
    domains that actually have children and ``description`` only when set,
    so a round trip reproduces hand-written input exactly.
    """
    groups: dict[Optional[str], list[DomainRow]] = {}
    for row in rows:
        groups.setdefault(row.parent_id, []).append(row)
    for siblings in groups.values():
        siblings.sort(key=lambda r: r.position)

    def _node(row: DomainRow) -> dict[str, Any]:
        node: dict[str, Any] = {"id": row.id, "name": row.name}
        if row.description is not None:
            node["description"] = row.description
        return node

    roots = [_node(row) for row in groups.get(None, [])]
    stack: list[dict[str, Any]] = list(roots)
    attached = len(roots)
    while stack:
        parent = stack.pop()
        child_rows = groups.get(parent["id"])
        if not child_rows:
            continue
        children = [_node(row) for row in child_rows]
        parent["children"] = children
        attached += len(children)
        stack.extend(children)

    if attached != len(rows):
        logger.debug(
            "Dropped %d domain row(s) unreachable from the root level",
            len(rows) - attached,
        )
    return roots
