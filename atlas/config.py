"""Centralised settings for the Module Atlas backend.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env from the project root (one level up from the package)
_project_root = Path(__file__).resolve().parent.parent
load_dotenv(_project_root / ".env", override=False)

_FALSE_VALUES = {"0", "false", "no", "off"}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() not in _FALSE_VALUES


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------
    data_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("ATLAS_DATA_DIR", _project_root / "data")
        )
    )
    db_path_override: Optional[Path] = field(
        default_factory=lambda: (
            Path(os.environ["ATLAS_DB_PATH"]) if os.environ.get("ATLAS_DB_PATH") else None
        )
    )
    seed_with_initial_data: bool = field(
        default_factory=lambda: _env_flag("ATLAS_SEED", True)
    )

    @property
    def db_path(self) -> Path:
        """Absolute path to the SQLite snapshot file."""
        return self.db_path_override or self.data_dir / "graph.db"

    @property
    def schema_path(self) -> Path:
        """Absolute path to the schema SQL file bundled with the package."""
        return Path(__file__).resolve().parent / "db" / "schema.sql"

    @property
    def seed_path(self) -> Path:
        """Absolute path to the bundled first-boot dataset."""
        return Path(__file__).resolve().parent / "data" / "seed.json"

    # ------------------------------------------------------------------
    # HTTP server
    # ------------------------------------------------------------------
    host: str = field(default_factory=lambda: os.environ.get("ATLAS_HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.environ.get("PORT", "4000")))
    max_body_bytes: int = field(
        default_factory=lambda: int(os.environ.get("ATLAS_MAX_BODY_BYTES", str(5 * 1024 * 1024)))
    )
    log_level: str = field(default_factory=lambda: os.environ.get("ATLAS_LOG_LEVEL", "INFO"))

    # ------------------------------------------------------------------
    # Client
    # ------------------------------------------------------------------
    api_base: str = field(
        default_factory=lambda: os.environ.get("ATLAS_API_BASE", "http://127.0.0.1:4000")
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("ATLAS_REQUEST_TIMEOUT", "10.0"))
    )


# Module-level singleton, import this everywhere:
#   from atlas.config import settings
settings = Settings()
