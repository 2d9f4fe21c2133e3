"""Tests for configuration loading and backend selection."""

import tempfile
from pathlib import Path

import pytest

from atlas.config import DatabaseSettings, Settings
from atlas.errors import ConfigurationError
from atlas.storage.db import _is_memory_sqlite, resolve_database_url


class TestConfigDefaults:
    def test_default_settings_load(self):
        """Settings should construct with all defaults when no config file exists."""
        settings = Settings()
        assert settings.general.log_level in ("INFO", "DEBUG", "WARNING", "ERROR")
        assert settings.anthropic.max_tool_rounds >= 1
        assert settings.api.port > 0

    def test_cors_defaults_include_dev_servers(self):
        settings = Settings.load(Path("/nonexistent/config.toml"))
        assert "http://localhost:5173" in settings.api.cors_origins


class TestConfigFromToml:
    def test_load_from_toml(self):
        """Should load overrides from a TOML file."""
        toml_content = """
[general]
log_level = "DEBUG"

[database]
url = "sqlite+aiosqlite:///tmp/atlas-test.db"

[anthropic]
max_tool_rounds = 3

[api]
port = 9001
"""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".toml", delete=False) as f:
            f.write(toml_content)
            f.flush()

            settings = Settings.load(Path(f.name))
            assert settings.general.log_level == "DEBUG"
            assert settings.database.url == "sqlite+aiosqlite:///tmp/atlas-test.db"
            assert settings.anthropic.max_tool_rounds == 3
            assert settings.api.port == 9001

    def test_missing_config_file_uses_defaults(self):
        settings = Settings.load(Path("/nonexistent/config.toml"))
        assert settings.anthropic.model == "claude-haiku-4-5-20251001"

    def test_partial_toml_fills_defaults(self, tmp_path):
        """A TOML with only [general] should still have defaults for other sections."""
        path = tmp_path / "config.toml"
        path.write_text('[general]\nlog_level = "WARNING"\n')

        settings = Settings.load(path)
        assert settings.general.log_level == "WARNING"
        assert settings.anthropic.max_tokens > 0


class TestResolveDatabaseUrl:
    def _settings(self, **db):
        return Settings(database=DatabaseSettings(**db))

    def test_development_uses_local_url(self):
        settings = self._settings(
            environment="development",
            url="sqlite+aiosqlite:///./local.db",
            managed_url="postgresql+asyncpg://db.example.com/atlas",
        )
        assert resolve_database_url(settings) == "sqlite+aiosqlite:///./local.db"

    def test_production_uses_managed_url(self):
        settings = self._settings(
            environment="production",
            url="sqlite+aiosqlite:///./local.db",
            managed_url="postgresql+asyncpg://db.example.com/atlas",
        )
        assert resolve_database_url(settings) == "postgresql+asyncpg://db.example.com/atlas"

    def test_production_without_managed_url_falls_back(self):
        settings = self._settings(environment="production", url="sqlite+aiosqlite:///./local.db", managed_url="")
        assert resolve_database_url(settings) == "sqlite+aiosqlite:///./local.db"

    def test_empty_url_is_a_configuration_error(self):
        settings = self._settings(environment="development", url="", managed_url="")
        with pytest.raises(ConfigurationError):
            resolve_database_url(settings)


class TestMemorySqlite:
    def test_detects_memory_urls(self):
        assert _is_memory_sqlite("sqlite+aiosqlite://")
        assert _is_memory_sqlite("sqlite+aiosqlite:///:memory:")
        assert not _is_memory_sqlite("sqlite+aiosqlite:///./atlas.db")
        assert not _is_memory_sqlite("postgresql+asyncpg://localhost/atlas")
