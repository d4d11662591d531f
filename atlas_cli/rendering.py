"""Utilities for rendering the domain tree in the CLI."""

from __future__ import annotations

from typing import Any


def render_domain_tree(domains: list[dict[str, Any]], module_counts: dict[str, int]) -> str:
    """Render the nested domain tree as ASCII art.

    Args:
        domains: Top-level domains as returned by ``load_snapshot()``.
        module_counts: Number of modules per domain id, shown after the name.

    Returns:
        String representation of the tree, one domain per line.
    """
    lines: list[str] = []
    # Stack of (domain, prefix, is_last, is_root)
    stack: list[tuple[dict[str, Any], str, bool, bool]] = [
        (d, "", i == len(domains) - 1, True) for i, d in reversed(list(enumerate(domains)))
    ]
    while stack:
        domain, prefix, is_last, is_root = stack.pop()
        count = module_counts.get(domain["id"], 0)
        label = f"{domain['name']} ({domain['id']})"
        if count:
            label += f" [{count} module{'s' if count != 1 else ''}]"

        if is_root:
            lines.append(label)
            child_prefix = ""
        else:
            connector = "└── " if is_last else "├── "
            lines.append(f"{prefix}{connector}{label}")
            child_prefix = prefix + ("    " if is_last else "│   ")

        children = domain.get("children") or []
        for i in range(len(children) - 1, -1, -1):
            stack.append((children[i], child_prefix, i == len(children) - 1, False))

    return "\n".join(lines)
