"""Local database commands: init, stats, tree, export, import, links.

stats, tree, links and export only read the file and never write it.
"""

from __future__ import annotations

import json
from collections import Counter
from pathlib import Path
from typing import Optional

import typer

from atlas.config import settings
from atlas.db import GraphSnapshot, GraphStore, GraphStoreError, is_valid_snapshot_shape
from atlas.db.links import build_links
from atlas_cli.rendering import render_domain_tree

db_app = typer.Typer(help="Operate on the local snapshot database.", no_args_is_help=True)

_PATH_OPTION = typer.Option(None, "--path", help="Database file (defaults to ATLAS_DB_PATH / data dir).")


def _open_store(path: Optional[Path], seed: bool = False, read_only: bool = False) -> GraphStore:
    store = GraphStore()
    target = path or settings.db_path
    try:
        if read_only:
            store.open_read_only(target)
        else:
            store.initialize(database_path=target, seed_with_initial_data=seed)
    except GraphStoreError as exc:
        typer.echo(f"[db] Failed to open database: {exc}", err=True)
        raise typer.Exit(1)
    return store


def _read_snapshot(path: Optional[Path], command: str) -> GraphSnapshot:
    store = _open_store(path, read_only=True)
    try:
        return store.load_snapshot()
    except GraphStoreError as exc:
        typer.echo(f"[db {command}] {exc}", err=True)
        raise typer.Exit(1)
    finally:
        store.close()


@db_app.command("init")
def db_init(
    path: Optional[Path] = _PATH_OPTION,
    seed: bool = typer.Option(True, "--seed/--no-seed", help="Seed an empty database."),
) -> None:
    """Create the database file and schema, seeding it when empty."""
    store = _open_store(path, seed=seed)
    try:
        stats = store.stats()
    finally:
        store.close()
    typer.echo(
        f"[db init] Database ready at {stats['path']}  "
        f"domains={stats['domains']} modules={stats['modules']} artifacts={stats['artifacts']}"
    )


@db_app.command("stats")
def db_stats(path: Optional[Path] = _PATH_OPTION) -> None:
    """Print row counts and snapshot metadata."""
    store = _open_store(path, read_only=True)
    try:
        stats = store.stats()
    except GraphStoreError as exc:
        typer.echo(f"[db stats] {exc}", err=True)
        raise typer.Exit(1)
    finally:
        store.close()
    for key, value in stats.items():
        typer.echo(f"  {key:<10} {value}")


@db_app.command("tree")
def db_tree(path: Optional[Path] = _PATH_OPTION) -> None:
    """Show the domain tree with module counts."""
    snapshot = _read_snapshot(path, "tree")

    if not snapshot.domains:
        typer.echo("[db tree] No domains found.")
        return
    counts = Counter(
        domain_id for module in snapshot.modules for domain_id in module.get("domains") or []
    )
    typer.echo(render_domain_tree(snapshot.domains, dict(counts)))


@db_app.command("links")
def db_links(path: Optional[Path] = _PATH_OPTION) -> None:
    """List the links derived from the stored modules."""
    snapshot = _read_snapshot(path, "links")

    links = build_links(snapshot)
    if not links:
        typer.echo("[db links] No links found.")
        return
    for link in links:
        typer.echo(f"  {link.source}  --{link.type}-->  {link.target}")


@db_app.command("export")
def db_export(
    output: Path = typer.Argument(..., help="Destination JSON file."),
    path: Optional[Path] = _PATH_OPTION,
) -> None:
    """Write the stored snapshot to a JSON file."""
    snapshot = _read_snapshot(path, "export")

    output.write_text(
        json.dumps(snapshot.to_payload(), indent=2, ensure_ascii=False), encoding="utf-8"
    )
    typer.echo(
        f"[db export] Wrote {len(snapshot.domains)} root domains, "
        f"{len(snapshot.modules)} modules, {len(snapshot.artifacts)} artifacts to {output}"
    )


@db_app.command("import")
def db_import(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="Snapshot JSON file."),
    path: Optional[Path] = _PATH_OPTION,
) -> None:
    """Replace the stored graph with a snapshot JSON file."""
    try:
        payload = json.loads(source.read_text(encoding="utf-8"))
    except ValueError as exc:
        typer.echo(f"[db import] {source} is not valid JSON: {exc}", err=True)
        raise typer.Exit(1)

    if not is_valid_snapshot_shape(payload):
        typer.echo(
            "[db import] Snapshot must contain 'domains', 'modules' and 'artifacts' lists.",
            err=True,
        )
        raise typer.Exit(1)

    store = _open_store(path)
    try:
        store.persist_snapshot(payload)
    except GraphStoreError as exc:
        typer.echo(f"[db import] {exc}", err=True)
        raise typer.Exit(1)
    finally:
        store.close()
    typer.echo(f"[db import] Imported {source} into {path or settings.db_path}")
