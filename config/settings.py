"""Settings for DevDocs Cache.

Provides validated configuration for the file cache, the symbol crawler and
the documentation HTTP client, with defaults overridable from the environment.
"""

import os
import logging
from pathlib import Path
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://developer.apple.com/tutorials/data"


class CacheSettings(BaseModel):
    """File cache configuration."""
    cache_dir: Path = Field(default=Path(".cache"), description="Directory holding cached documents")
    max_bytes: int = Field(default=250 * 1024 * 1024, gt=0, description="Byte budget for cached documents")
    max_entries: int = Field(default=5000, gt=0, description="Maximum number of cached documents")
    schema_version: int = Field(default=1, ge=1, description="On-disk format version")

    @classmethod
    def from_env(cls) -> 'CacheSettings':
        """Create cache configuration from environment variables."""
        return cls(
            cache_dir=Path(os.getenv('DEVDOCS_CACHE_DIR', '.cache')),
            max_bytes=int(os.getenv('MCP_CACHE_MAX_BYTES', str(250 * 1024 * 1024))),
            max_entries=int(os.getenv('MCP_CACHE_MAX_ENTRIES', '5000'))
        )


class CrawlerSettings(BaseModel):
    """Symbol crawler limits."""
    rate_limit_delay: float = Field(default=0.1, ge=0, description="Delay before every fetch in seconds")
    max_retries: int = Field(default=3, ge=1, description="Attempts per identifier")
    max_concurrency: int = Field(default=5, ge=1, description="Identifiers fetched per batch")
    max_depth: int = Field(default=4, ge=1, description="Maximum traversal depth per crawl")

    @classmethod
    def from_env(cls) -> 'CrawlerSettings':
        """Create crawler configuration from environment variables."""
        return cls(
            rate_limit_delay=float(os.getenv('DEVDOCS_RATE_LIMIT_DELAY', '0.1')),
            max_retries=int(os.getenv('DEVDOCS_MAX_RETRIES', '3')),
            max_concurrency=int(os.getenv('DEVDOCS_MAX_CONCURRENCY', '5')),
            max_depth=int(os.getenv('DEVDOCS_MAX_DEPTH', '4'))
        )


class ClientSettings(BaseModel):
    """Documentation API client configuration."""
    base_url: str = Field(default=DEFAULT_BASE_URL, description="Documentation data endpoint")
    request_timeout: float = Field(default=15.0, gt=0, description="Request timeout in seconds")
    memory_cache_size: int = Field(default=500, ge=1, description="Responses kept in memory")
    memory_cache_ttl: int = Field(default=300, ge=1, description="Seconds a response stays in memory")
    referer: str = "https://developer.apple.com/documentation"
    user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/138.0.0.0 Safari/537.36"
    )

    @classmethod
    def from_env(cls) -> 'ClientSettings':
        """Create client configuration from environment variables."""
        return cls(
            base_url=os.getenv('DEVDOCS_BASE_URL', DEFAULT_BASE_URL).rstrip('/'),
            request_timeout=float(os.getenv('DEVDOCS_REQUEST_TIMEOUT', '15'))
        )


class Settings(BaseModel):
    """Top-level configuration."""
    cache: CacheSettings = Field(default_factory=CacheSettings)
    crawler: CrawlerSettings = Field(default_factory=CrawlerSettings)
    client: ClientSettings = Field(default_factory=ClientSettings)
    telemetry_enabled: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> 'Settings':
        """Create the full configuration from environment variables."""
        settings = cls(
            cache=CacheSettings.from_env(),
            crawler=CrawlerSettings.from_env(),
            client=ClientSettings.from_env(),
            telemetry_enabled=os.getenv('MCP_TELEMETRY') == '1',
            log_level=os.getenv('DEVDOCS_LOG_LEVEL', 'INFO').upper()
        )
        logger.debug(f"Loaded settings with cache directory {settings.cache.cache_dir}")
        return settings
