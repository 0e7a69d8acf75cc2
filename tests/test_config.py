from pathlib import Path

import pytest
from pydantic import ValidationError

from config.settings import CacheSettings, ClientSettings, CrawlerSettings, Settings, DEFAULT_BASE_URL


class TestSettings:
    """Test configuration defaults and environment overrides."""

    def test_defaults(self):
        settings = Settings()

        assert settings.cache.cache_dir == Path(".cache")
        assert settings.cache.max_bytes == 250 * 1024 * 1024
        assert settings.cache.max_entries == 5000
        assert settings.crawler.rate_limit_delay == 0.1
        assert settings.crawler.max_retries == 3
        assert settings.crawler.max_concurrency == 5
        assert settings.crawler.max_depth == 4
        assert settings.client.base_url == DEFAULT_BASE_URL
        assert not settings.telemetry_enabled

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DEVDOCS_CACHE_DIR", str(tmp_path))
        monkeypatch.setenv("MCP_CACHE_MAX_BYTES", "1024")
        monkeypatch.setenv("MCP_CACHE_MAX_ENTRIES", "10")
        monkeypatch.setenv("MCP_TELEMETRY", "1")
        monkeypatch.setenv("DEVDOCS_MAX_DEPTH", "2")
        monkeypatch.setenv("DEVDOCS_BASE_URL", "https://example.com/data/")
        monkeypatch.setenv("DEVDOCS_LOG_LEVEL", "debug")

        settings = Settings.from_env()

        assert settings.cache.cache_dir == tmp_path
        assert settings.cache.max_bytes == 1024
        assert settings.cache.max_entries == 10
        assert settings.crawler.max_depth == 2
        assert settings.client.base_url == "https://example.com/data"
        assert settings.telemetry_enabled
        assert settings.log_level == "DEBUG"

    def test_telemetry_requires_exact_flag(self, monkeypatch):
        monkeypatch.setenv("MCP_TELEMETRY", "true")

        assert not Settings.from_env().telemetry_enabled

    @pytest.mark.parametrize("factory", [
        lambda: CacheSettings(max_bytes=0),
        lambda: CacheSettings(max_entries=-1),
        lambda: CrawlerSettings(max_retries=0),
        lambda: CrawlerSettings(rate_limit_delay=-0.5),
        lambda: ClientSettings(request_timeout=0),
    ])
    def test_invalid_values_rejected(self, factory):
        with pytest.raises(ValidationError):
            factory()

    def test_invalid_environment_value(self, monkeypatch):
        monkeypatch.setenv("MCP_CACHE_MAX_ENTRIES", "lots")

        with pytest.raises(ValueError):
            CacheSettings.from_env()
