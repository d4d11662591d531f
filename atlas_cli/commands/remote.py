"""Commands that talk to a running storage API."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from atlas.client import GraphStorageClient, GraphStorageError
from atlas.db import is_valid_snapshot_shape

remote_app = typer.Typer(help="Pull / push snapshots from a running server.", no_args_is_help=True)

_BASE_URL_OPTION = typer.Option(None, "--base-url", help="API base URL (defaults to ATLAS_API_BASE).")


@remote_app.command("health")
def remote_health(base_url: Optional[str] = _BASE_URL_OPTION) -> None:
    """Check that the server is up."""
    with GraphStorageClient(base_url) as client:
        healthy = client.health()
    if not healthy:
        typer.echo("[remote health] Server is not responding.", err=True)
        raise typer.Exit(1)
    typer.echo("[remote health] ok")


@remote_app.command("pull")
def remote_pull(
    output: Path = typer.Argument(..., help="Destination JSON file."),
    base_url: Optional[str] = _BASE_URL_OPTION,
) -> None:
    """Download the server's snapshot to a JSON file."""
    try:
        with GraphStorageClient(base_url) as client:
            snapshot = client.fetch_snapshot()
    except GraphStorageError as exc:
        typer.echo(f"[remote pull] {exc}", err=True)
        raise typer.Exit(1)

    output.write_text(
        json.dumps(snapshot.to_payload(), indent=2, ensure_ascii=False), encoding="utf-8"
    )
    typer.echo(f"[remote pull] Saved snapshot to {output}")


@remote_app.command("push")
def remote_push(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="Snapshot JSON file."),
    base_url: Optional[str] = _BASE_URL_OPTION,
) -> None:
    """Upload a snapshot JSON file, replacing the server's graph."""
    try:
        payload = json.loads(source.read_text(encoding="utf-8"))
    except ValueError as exc:
        typer.echo(f"[remote push] {source} is not valid JSON: {exc}", err=True)
        raise typer.Exit(1)
    if not is_valid_snapshot_shape(payload):
        typer.echo(
            "[remote push] Snapshot must contain 'domains', 'modules' and 'artifacts' lists.",
            err=True,
        )
        raise typer.Exit(1)

    try:
        with GraphStorageClient(base_url) as client:
            client.persist_snapshot(payload)
    except GraphStorageError as exc:
        typer.echo(f"[remote push] {exc}", err=True)
        raise typer.Exit(1)
    typer.echo(f"[remote push] Uploaded {source}")
