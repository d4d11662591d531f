"""Tests for the domain tree codec (``atlas.db.domains``)."""

from __future__ import annotations

import random

from atlas.db.domains import build_domain_tree, flatten_domains
from atlas.db.models import DomainRow

_TREE = [
    {
        "id": "root-a",
        "name": "Root A",
        "description": "First root",
        "children": [
            {"id": "a-1", "name": "A one"},
            {
                "id": "a-2",
                "name": "A two",
                "description": "Has a grandchild",
                "children": [{"id": "a-2-x", "name": "Grandchild"}],
            },
        ],
    },
    {"id": "root-b", "name": "Root B"},
]


# ---------------------------------------------------------------------------
# flatten
# ---------------------------------------------------------------------------

class TestFlattenDomains:
    def test_pre_order_with_parents_and_positions(self) -> None:
        rows = flatten_domains(_TREE)
        assert [(r.id, r.parent_id, r.position) for r in rows] == [
            ("root-a", None, 0),
            ("a-1", "root-a", 0),
            ("a-2", "root-a", 1),
            ("a-2-x", "a-2", 0),
            ("root-b", None, 1),
        ]

    def test_missing_description_is_none(self) -> None:
        rows = {r.id: r for r in flatten_domains(_TREE)}
        assert rows["root-a"].description == "First root"
        assert rows["a-1"].description is None

    def test_empty_tree(self) -> None:
        assert flatten_domains([]) == []


# ---------------------------------------------------------------------------
# rebuild
# ---------------------------------------------------------------------------

class TestBuildDomainTree:
    def test_round_trip(self) -> None:
        assert build_domain_tree(flatten_domains(_TREE)) == _TREE

    def test_row_order_is_irrelevant(self) -> None:
        rows = flatten_domains(_TREE)
        random.Random(7).shuffle(rows)
        assert build_domain_tree(rows) == _TREE

    def test_leaves_have_no_children_key(self) -> None:
        tree = build_domain_tree(flatten_domains(_TREE))
        assert "children" not in tree[1]
        assert "children" not in tree[0]["children"][0]

    def test_siblings_sorted_by_position(self) -> None:
        rows = [
            DomainRow("second", "Second", None, None, 1),
            DomainRow("first", "First", None, None, 0),
        ]
        assert [d["id"] for d in build_domain_tree(rows)] == ["first", "second"]

    def test_orphan_rows_are_dropped(self) -> None:
        rows = [
            DomainRow("root", "Root", None, None, 0),
            DomainRow("orphan", "Orphan", None, "missing-parent", 0),
        ]
        assert build_domain_tree(rows) == [{"id": "root", "name": "Root"}]

    def test_deep_tree_does_not_recurse(self) -> None:
        depth = 5000
        node = {"id": f"d{depth - 1}", "name": "leaf"}
        for i in range(depth - 2, -1, -1):
            node = {"id": f"d{i}", "name": f"level {i}", "children": [node]}
        rows = flatten_domains([node])
        assert len(rows) == depth
        rebuilt = build_domain_tree(rows)

        level = rebuilt[0]
        seen = 1
        while "children" in level:
            level = level["children"][0]
            seen += 1
        assert seen == depth
