"""Derive the graph's edge list from a snapshot.

Links are not stored; they follow from the module records:

* ``domain``     module → each domain it belongs to
* ``dependency`` module → each module it depends on
* ``produces``   module → each artifact it produces
* ``consumes``   artifact → module, for every ``dataIn`` entry naming a known artifact
"""

from __future__ import annotations

from typing import Any

from atlas.db.models import GraphLink, GraphSnapshot


def _ids(record: dict[str, Any], key: str) -> list[str]:
    values = record.get(key) or []
    return [v for v in values if isinstance(v, str)]


def build_links(snapshot: GraphSnapshot) -> list[GraphLink]:
    """Return every link implied by *snapshot*, grouped per module in order."""
    artifact_ids = {a.get("id") for a in snapshot.artifacts if isinstance(a, dict)}

    links: list[GraphLink] = []
    for module in snapshot.modules:
        if not isinstance(module, dict):
            continue
        module_id = module.get("id")
        links.extend(GraphLink(module_id, d, "domain") for d in _ids(module, "domains"))
        links.extend(GraphLink(module_id, d, "dependency") for d in _ids(module, "dependencies"))
        links.extend(GraphLink(module_id, a, "produces") for a in _ids(module, "produces"))
        for data_in in module.get("dataIn") or []:
            source_id = data_in.get("sourceId") if isinstance(data_in, dict) else None
            if source_id and source_id in artifact_ids:
                links.append(GraphLink(source_id, module_id, "consumes"))
    return links
