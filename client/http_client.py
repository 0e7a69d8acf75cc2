"""HTTP transport for the documentation JSON API."""

import time
import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from config.settings import ClientSettings
from .errors import FetchError
from .memory_cache import MemoryCache

logger = logging.getLogger(__name__)


class HttpClient:
    """Asynchronous documentation fetcher with short-lived response memoization."""

    def __init__(self, settings: Optional[ClientSettings] = None, max_connections: int = 10):
        """Initialize client.

        Args:
            settings: Endpoint, timeout, headers and memory cache sizing
            max_connections: Connection pool limit for the underlying session
        """
        self.settings = settings or ClientSettings()
        self.base_url = self.settings.base_url.rstrip('/')
        self.max_connections = max_connections
        self.session: Optional[aiohttp.ClientSession] = None
        self.memory_cache = MemoryCache(
            max_size=self.settings.memory_cache_size,
            ttl=self.settings.memory_cache_ttl
        )

    async def __aenter__(self):
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            connector = aiohttp.TCPConnector(limit=self.max_connections)
            timeout = aiohttp.ClientTimeout(total=self.settings.request_timeout)
            self.session = aiohttp.ClientSession(
                connector=connector,
                timeout=timeout,
                headers={
                    'User-Agent': self.settings.user_agent,
                    'Referer': self.settings.referer,
                    'Accept': 'application/json'
                }
            )
        return self.session

    async def close(self):
        """Close the HTTP session."""
        if self.session:
            await self.session.close()
            self.session = None

    def build_url(self, path: str) -> str:
        return f"{self.base_url}/{path.strip('/')}.json"

    async def get_documentation(self, path: str) -> Any:
        """Fetch the JSON document for a documentation path.

        Raises:
            FetchError: On timeout, connection failure, HTTP error status or
                a body that is not JSON.
        """
        url = self.build_url(path)
        cached = self.memory_cache.get(url)
        if cached is not None:
            return cached

        session = await self._ensure_session()
        logger.debug(f"Fetching {url}")

        try:
            async with session.get(url) as response:
                if response.status >= 400:
                    raise FetchError(path, f"HTTP {response.status}", status=response.status)
                try:
                    data = await response.json(content_type=None)
                except ValueError as e:
                    raise FetchError(path, f"invalid JSON: {e}", status=response.status) from e
        except (asyncio.TimeoutError, aiohttp.ServerTimeoutError) as e:
            raise FetchError(path, "request timed out") from e
        except aiohttp.ClientError as e:
            raise FetchError(path, f"client error: {e}") from e

        self.memory_cache.set(url, data)
        return data

    async def check_health(self) -> Dict[str, Any]:
        """Check the documentation API by fetching the technology catalog."""
        path = 'documentation/technologies'
        self.memory_cache.delete(self.build_url(path))
        start_time = time.time()
        try:
            await self.get_documentation(path)
        except FetchError as e:
            return {
                'ok': False,
                'latency_ms': round((time.time() - start_time) * 1000, 2),
                'message': str(e)
            }

        return {
            'ok': True,
            'latency_ms': round((time.time() - start_time) * 1000, 2),
            'message': 'Documentation API reachable'
        }

    def clear_cache(self) -> None:
        self.memory_cache.clear()
