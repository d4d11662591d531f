"""Whole-graph snapshot endpoints.

Routes
------
GET    /api/graph          Return the stored snapshot
POST   /api/graph          Replace the stored snapshot (full replace)
GET    /api/graph/links    Return the link list derived from the snapshot
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from atlas.config import settings
from atlas.db import GraphStore, is_valid_snapshot_shape
from atlas.db.links import build_links

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------

class GraphSnapshotResponse(BaseModel):
    version: int
    exportedAt: Optional[str] = None
    domains: list[dict[str, Any]]
    modules: list[dict[str, Any]]
    artifacts: list[dict[str, Any]]
    layout: Optional[dict[str, Any]] = None


class LinkResponse(BaseModel):
    source: str
    target: str
    type: str


class MessageResponse(BaseModel):
    message: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _store(request: Request) -> GraphStore:
    return request.app.state.store


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=None,
    responses={200: {"model": GraphSnapshotResponse}, 500: {"model": MessageResponse}},
)
async def read_graph(request: Request) -> JSONResponse:
    """Return the full graph snapshot."""
    try:
        snapshot = await run_in_threadpool(_store(request).load_snapshot)
    except Exception:  # noqa: BLE001
        logger.exception("Failed to load graph snapshot")
        return _message(500, "Failed to load graph data.")
    # Records are returned verbatim; absent optional fields stay absent.
    return JSONResponse(content=snapshot.to_payload())


@router.post(
    "",
    status_code=204,
    responses={
        400: {"model": MessageResponse},
        413: {"model": MessageResponse},
        500: {"model": MessageResponse},
    },
)
async def write_graph(request: Request) -> Response:
    """Replace the stored graph with the request body."""
    body = await request.body()
    if len(body) > settings.max_body_bytes:
        return _message(413, "Graph payload is too large.")

    try:
        payload = json.loads(body)
    except ValueError:
        return _message(400, "Invalid graph data format.")

    if not is_valid_snapshot_shape(payload):
        return _message(400, "Invalid graph data format.")

    try:
        await run_in_threadpool(_store(request).persist_snapshot, payload)
    except Exception:  # noqa: BLE001
        logger.exception("Failed to save graph snapshot")
        return _message(500, "Failed to save graph data.")
    return Response(status_code=204)


@router.get(
    "/links",
    response_model=list[LinkResponse],
    responses={500: {"model": MessageResponse}},
)
async def graph_links(request: Request) -> Any:
    """Return the links implied by the stored modules."""
    try:
        snapshot = await run_in_threadpool(_store(request).load_snapshot)
        links = build_links(snapshot)
    except Exception:  # noqa: BLE001
        logger.exception("Failed to derive graph links")
        return _message(500, "Failed to load graph data.")
    return [link.to_dict() for link in links]
