"""Module Atlas CLI entry-point for all backend operations.

Usage:
    atlas --help

Sub-command groups:
    serve     → run the storage API
    db        → local snapshot database
    remote    → pull / push against a running server
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from atlas.config import settings
from atlas.logging_setup import configure_logging
from atlas_cli.commands.db import db_app
from atlas_cli.commands.remote import remote_app

app = typer.Typer(
    name="atlas",
    help="Module Atlas backend CLI.",
    no_args_is_help=True,
)
app.add_typer(db_app, name="db")
app.add_typer(remote_app, name="remote")


@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address (defaults to ATLAS_HOST)."),
    port: Optional[int] = typer.Option(None, help="Port (defaults to PORT)."),
    db_path: Optional[Path] = typer.Option(None, "--db-path", help="Database file override."),
    seed: Optional[bool] = typer.Option(
        None, "--seed/--no-seed", help="Seed an empty database (defaults to ATLAS_SEED)."
    ),
) -> None:
    """Run the graph storage API with uvicorn."""
    import uvicorn

    from atlas.api.app import create_app

    configure_logging(settings.log_level)
    if db_path is not None:
        settings.db_path_override = db_path
    if seed is not None:
        settings.seed_with_initial_data = seed

    bind_host = host or settings.host
    bind_port = port or settings.port
    typer.echo(f"[serve] Graph storage server listening on http://{bind_host}:{bind_port}")
    uvicorn.run(create_app(), host=bind_host, port=bind_port, log_level=settings.log_level.lower())


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
