"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from atlas.api import create_app

    uvicorn atlas.api:app
"""

from atlas.api.app import app, create_app

__all__ = ["app", "create_app"]
