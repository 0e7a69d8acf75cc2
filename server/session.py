"""Explicit session context for DevDocs Cache.

A :class:`DocsSession` owns everything scoped to one active technology: the
local symbol index, the crawler and the single background crawl slot. All of
it is rebuilt whenever the technology or the documentation provider changes.
"""

import asyncio
import logging
from typing import Optional

from config.settings import Settings
from cache.file_store import FileStore
from client.docs_client import DocsClient
from client.errors import InvalidRequestError, NoTechnologySelectedError
from client.http_client import HttpClient
from client.types import Technology
from indexer.symbol_index import GlobalSymbolIndex, LocalSymbolIndex
from observability.telemetry import SessionTelemetry
from pipelines.crawler import CrawlStats, SymbolCrawler, framework_name_for
from pipelines.frontier import FrontierStore

logger = logging.getLogger(__name__)


class DocsSession:
    """Active technology, indexes and crawl state for one caller."""

    def __init__(self,
                 settings: Optional[Settings] = None,
                 client: Optional[DocsClient] = None,
                 file_store: Optional[FileStore] = None,
                 telemetry: Optional[SessionTelemetry] = None):
        """Initialize session.

        Args:
            settings: Configuration; defaults to built-in settings
            client: Documentation client; an HTTP-backed one is created when omitted
            file_store: Document store; defaults to the client's store
            telemetry: Session counters
        """
        self.settings = settings or Settings()
        self.telemetry = telemetry or SessionTelemetry(enabled=self.settings.telemetry_enabled)

        if file_store is None:
            file_store = client.file_store if client is not None else FileStore(
                self.settings.cache, telemetry=self.telemetry
            )
        self.file_store = file_store

        self.http_client: Optional[HttpClient] = None
        if client is None:
            self.http_client = HttpClient(self.settings.client)
            client = DocsClient(self.http_client, self.file_store)
        self.client = client

        self.frontier_store = FrontierStore(self.file_store.frontier_path)
        self.active_technology: Optional[Technology] = None
        self.global_index = GlobalSymbolIndex(self.file_store)
        self.local_index: Optional[LocalSymbolIndex] = None
        self.crawler: Optional[SymbolCrawler] = None
        self.last_crawl_stats: Optional[CrawlStats] = None
        self._crawl_task: Optional[asyncio.Task] = None

    def set_active_technology(self, technology: Optional[Technology]) -> None:
        """Select a technology; switching to a different one resets all scoped state."""
        previous = self.active_technology
        self.active_technology = technology

        if technology is None or previous is None or previous.identifier != technology.identifier:
            self._reset_technology_state()

    def set_provider(self, client: DocsClient) -> None:
        """Swap the documentation client and reset all scoped state."""
        self.client = client
        self._reset_technology_state()

    def _reset_technology_state(self) -> None:
        self._cancel_background_crawl()
        self.global_index = GlobalSymbolIndex(self.file_store)

        technology = self.active_technology
        if technology is None:
            self.local_index = None
            self.crawler = None
            return

        self.local_index = LocalSymbolIndex(self.file_store, technology.identifier)
        self.crawler = SymbolCrawler(
            self.client,
            self.frontier_store,
            settings=self.settings.crawler,
            telemetry=self.telemetry
        )
        logger.debug(f"Session scoped to {technology.identifier}")

    def require_technology(self) -> Technology:
        if self.active_technology is None:
            raise NoTechnologySelectedError()
        return self.active_technology

    def framework_name(self) -> str:
        """Framework name of the active technology, e.g. ``swiftui``."""
        technology = self.require_technology()
        name = framework_name_for(technology.identifier)
        if not name:
            raise InvalidRequestError(f"Invalid technology identifier: {technology.identifier}")
        return name

    # Background crawl

    def start_background_crawl(self) -> bool:
        """Start a crawl for the active technology without waiting for it.

        Returns:
            False if a crawl is already tracked
        """
        technology = self.require_technology()
        if self._crawl_task is not None:
            return False

        local_index = self.local_index
        task = asyncio.create_task(
            self.crawler.download_all_symbols(technology, on_downloaded=local_index.ingest_symbol_data)
        )
        self._crawl_task = task
        task.add_done_callback(self._on_crawl_done)
        self.telemetry.record_background_crawl()
        logger.info(f"Started background crawl for {technology.title or technology.identifier}")
        return True

    def _on_crawl_done(self, task: asyncio.Task) -> None:
        if self._crawl_task is task:
            self._crawl_task = None

        if task.cancelled():
            logger.info("Background crawl cancelled")
            return

        error = task.exception()
        if error is not None:
            logger.error(f"Background crawl failed: {error}")
            return

        self.last_crawl_stats = task.result()

    def is_crawl_running(self) -> bool:
        return self._crawl_task is not None and not self._crawl_task.done()

    async def wait_for_background_crawl(self) -> Optional[CrawlStats]:
        """Wait for the tracked crawl; returns its stats, or None if it did not complete."""
        task = self._crawl_task
        if task is None:
            return None

        await asyncio.wait({task})
        if task.cancelled() or task.exception() is not None:
            return None
        return task.result()

    def _cancel_background_crawl(self) -> Optional[asyncio.Task]:
        task = self._crawl_task
        self._crawl_task = None
        if task is not None and not task.done():
            task.cancel()
        return task

    async def stop_background_crawl(self) -> None:
        """Cancel the tracked crawl and wait until it has unwound."""
        task = self._cancel_background_crawl()
        if task is not None:
            await asyncio.wait({task})

    async def close(self) -> None:
        await self.stop_background_crawl()
        if self.http_client is not None:
            await self.http_client.close()
