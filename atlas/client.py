"""HTTP client for the graph storage API.

Mirrors what the browser does: fetch the whole snapshot, post it back in
full, and surface the server's ``{"message": ...}`` text on failure.

Usage::

    from atlas.client import GraphStorageClient

    with GraphStorageClient("http://127.0.0.1:4000") as client:
        snapshot = client.fetch_snapshot()
        client.persist_snapshot(snapshot)
"""

from __future__ import annotations

from typing import Any, Optional, Union

import httpx

from atlas.config import settings
from atlas.db.layout import normalize_layout
from atlas.db.models import GraphSnapshot

GRAPH_ENDPOINT = "/api/graph"
HEALTH_ENDPOINT = "/api/health"


class GraphStorageError(Exception):
    """A storage API call failed; ``str(exc)`` is meant for end users."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _read_error_message(response: httpx.Response) -> Optional[str]:
    """Return ``message`` from a JSON error body, or ``None``."""
    try:
        data = response.json()
    except ValueError:
        return None
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        return data["message"]
    return None


def _raise_for_status(response: httpx.Response, action: str) -> None:
    if response.is_success:
        return
    message = _read_error_message(response)
    raise GraphStorageError(
        message or f"Failed to {action} graph. Status code: {response.status_code}",
        status_code=response.status_code,
    )


class GraphStorageClient:
    """Thin synchronous wrapper around the ``/api/graph`` endpoints."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url or settings.api_base,
            timeout=timeout if timeout is not None else settings.request_timeout,
            transport=transport,
        )

    def __enter__(self) -> GraphStorageClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _request(self, method: str, url: str, action: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise GraphStorageError(f"Failed to {action} graph: {exc}") from exc
        _raise_for_status(response, action)
        return response

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def fetch_snapshot(self) -> GraphSnapshot:
        """Download the stored snapshot.

        ``version`` defaults to the current snapshot version and the layout
        is sanitised again, so callers can trust what they get back.

        Raises:
            GraphStorageError: On transport failure or a non-2xx response.
        """
        response = self._request("GET", GRAPH_ENDPOINT, "load")
        try:
            payload = response.json()
        except ValueError as exc:
            raise GraphStorageError("Failed to load graph: response is not JSON") from exc
        if not isinstance(payload, dict):
            raise GraphStorageError("Failed to load graph: unexpected response shape")

        snapshot = GraphSnapshot.from_payload(payload)
        snapshot.layout = normalize_layout(snapshot.layout)
        return snapshot

    def persist_snapshot(self, snapshot: Union[GraphSnapshot, dict[str, Any]]) -> None:
        """Upload *snapshot*, replacing everything stored on the server.

        Raises:
            GraphStorageError: On transport failure or a non-2xx response.
        """
        payload = snapshot.to_payload() if isinstance(snapshot, GraphSnapshot) else snapshot
        self._request("POST", GRAPH_ENDPOINT, "save", json=payload)

    def health(self) -> bool:
        """``True`` when the server answers the health probe with ``ok``."""
        try:
            response = self._client.get(HEALTH_ENDPOINT)
        except httpx.HTTPError:
            return False
        if not response.is_success:
            return False
        try:
            data = response.json()
        except ValueError:
            return False
        return isinstance(data, dict) and data.get("status") == "ok"
