"""Tests for environment-driven settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from atlas.config import Settings, _env_flag


class TestEnvFlag:
    @pytest.mark.parametrize("raw", ["0", "false", "FALSE", "no", " off "])
    def test_false_values(self, raw: str, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ATLAS_TEST_FLAG", raw)
        assert _env_flag("ATLAS_TEST_FLAG", True) is False

    @pytest.mark.parametrize("raw", ["1", "true", "yes", "anything"])
    def test_true_values(self, raw: str, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ATLAS_TEST_FLAG", raw)
        assert _env_flag("ATLAS_TEST_FLAG", False) is True

    def test_unset_or_blank_uses_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("ATLAS_TEST_FLAG", raising=False)
        assert _env_flag("ATLAS_TEST_FLAG", True) is True
        monkeypatch.setenv("ATLAS_TEST_FLAG", "  ")
        assert _env_flag("ATLAS_TEST_FLAG", False) is False


class TestSettings:
    def test_db_path_defaults_under_data_dir(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ATLAS_DATA_DIR", str(tmp_path))
        monkeypatch.delenv("ATLAS_DB_PATH", raising=False)
        assert Settings().db_path == tmp_path / "graph.db"

    def test_db_path_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ATLAS_DB_PATH", str(tmp_path / "custom.db"))
        assert Settings().db_path == tmp_path / "custom.db"

    def test_server_and_client_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PORT", "8123")
        monkeypatch.setenv("ATLAS_MAX_BODY_BYTES", "1024")
        monkeypatch.setenv("ATLAS_SEED", "off")
        monkeypatch.setenv("ATLAS_API_BASE", "http://example.invalid:9")
        monkeypatch.setenv("ATLAS_REQUEST_TIMEOUT", "2.5")
        cfg = Settings()
        assert cfg.port == 8123
        assert cfg.max_body_bytes == 1024
        assert cfg.seed_with_initial_data is False
        assert cfg.api_base == "http://example.invalid:9"
        assert cfg.request_timeout == 2.5

    def test_bundled_files_exist(self) -> None:
        cfg = Settings()
        assert cfg.schema_path.is_file()
        assert cfg.seed_path.is_file()
