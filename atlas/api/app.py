"""FastAPI application factory.

Lifespan
--------
On startup the app initialises one :class:`~atlas.db.store.GraphStore`
(shared across all requests via ``request.app.state.store``) from
``settings``.  On shutdown it closes the store cleanly.  A store passed to
:func:`create_app` that is already open is used as-is and left open.

Routers
-------
    /api/graph     whole-snapshot read / replace, derived links
    /api/health    liveness probe
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from atlas import __version__
from atlas.config import settings
from atlas.db import GraphStore

from atlas.api.routers import graph as graph_router
from atlas.api.routers import health as health_router


def create_app(store: Optional[GraphStore] = None) -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    graph_store = store or GraphStore()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Open the store on startup and close it on shutdown."""
        owned = not graph_store.is_open
        if owned:
            graph_store.initialize(
                database_path=settings.db_path,
                seed_with_initial_data=settings.seed_with_initial_data,
            )
        app.state.store = graph_store
        try:
            yield
        finally:
            if owned:
                graph_store.close()

    app = FastAPI(
        title="Module Atlas API",
        description=(
            "Persistence service for the module / domain / artifact graph. "
            "Stores and serves the complete graph snapshot."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(graph_router.router, prefix="/api/graph", tags=["graph"])
    app.include_router(health_router.router, prefix="/api", tags=["health"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn atlas.api.app:app
app = create_app()
