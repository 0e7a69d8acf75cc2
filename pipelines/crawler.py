"""Recursive symbol crawler for DevDocs Cache.

Downloads every symbol reachable from a technology's framework document,
breadth first, through the cache-through :class:`DocsClient`. Progress is
kept in a :class:`FrontierStore` so an interrupted crawl resumes where it
stopped.
"""

import re
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Set

from config.settings import CrawlerSettings
from client.docs_client import DocsClient
from client.errors import DevDocsError, InvalidRequestError, NoTechnologySelectedError
from client.types import Document, Technology
from .frontier import CrawlFrontier, FrontierStore

logger = logging.getLogger(__name__)

_DOC_SCHEME_PREFIX = re.compile(r'^doc://[^/]+/')

DocumentCallback = Callable[[Document], Any]


def normalize_identifier(identifier: str) -> str:
    """Rewrite an identifier to the relative documentation path form."""
    if identifier.startswith('documentation/'):
        return identifier

    if _DOC_SCHEME_PREFIX.match(identifier):
        return _DOC_SCHEME_PREFIX.sub('', identifier).lstrip('/')

    if '/' in identifier:
        return identifier.lstrip('/')

    return identifier


def extract_identifiers(document: Document) -> List[str]:
    """Identifiers linked from a document: topic sections first, then references."""
    identifiers: Dict[str, None] = {}
    for section in document.topic_sections:
        for identifier in section.identifiers:
            identifiers[identifier] = None
    for ref_id in document.references:
        identifiers[ref_id] = None
    return list(identifiers)


def framework_name_for(technology_identifier: str) -> str:
    return technology_identifier.split('/')[-1]


@dataclass
class CrawlStats:
    """Statistics for a crawl session."""
    technology_identifier: str = ''
    attempted: int = 0
    successful: int = 0
    failed: int = 0
    retried: int = 0
    seeded: int = 0
    depth_reached: int = 0
    remaining: int = 0
    skipped: bool = False
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    def __post_init__(self):
        if self.start_time is None:
            self.start_time = datetime.now(timezone.utc)

    @property
    def duration(self) -> Optional[timedelta]:
        if self.end_time and self.start_time:
            return self.end_time - self.start_time
        return None

    def finish(self):
        """Mark crawl as finished."""
        self.end_time = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'technology_identifier': self.technology_identifier,
            'attempted': self.attempted,
            'successful': self.successful,
            'failed': self.failed,
            'retried': self.retried,
            'seeded': self.seeded,
            'depth_reached': self.depth_reached,
            'remaining': self.remaining,
            'skipped': self.skipped,
            'duration_seconds': self.duration.total_seconds() if self.duration else None
        }


class SymbolCrawler:
    """Rate-limited, depth-bounded, resumable symbol downloader."""

    def __init__(self,
                 client: DocsClient,
                 frontier_store: FrontierStore,
                 settings: Optional[CrawlerSettings] = None,
                 telemetry=None,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        """Initialize crawler.

        Args:
            client: Cache-through client used for every download
            frontier_store: Where the crawl frontier is persisted
            settings: Rate limit, retry, concurrency and depth limits
            telemetry: Optional SessionTelemetry receiving failure counts
            sleep: Awaitable delay used for rate limiting and backoff
        """
        self.client = client
        self.frontier_store = frontier_store
        self.settings = settings or CrawlerSettings()
        self.telemetry = telemetry
        self._sleep = sleep

        self.technology_identifier: Optional[str] = None
        self.pending: List[str] = []
        self.completed: Dict[str, None] = {}
        # Identifiers that exhausted their retries; never retried by this instance
        self.failed: Set[str] = set()
        self._in_flight: Set[str] = set()
        self._priority_buffer: List[str] = []
        self._remaining_in_level = 0
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def get_downloaded_count(self) -> int:
        return len(self.completed)

    def get_downloaded_symbols(self) -> List[str]:
        return list(self.completed)

    def queue_priority_paths(self, paths: Iterable[str]) -> int:
        """Put paths at the front of the pending queue, in the given order.

        While idle the paths are buffered and merged when the next crawl
        loads its frontier.

        Returns:
            Number of paths queued
        """
        normalized = list(dict.fromkeys(normalize_identifier(path) for path in paths))
        for path in normalized:
            self.failed.discard(path)

        if not self._running:
            added = [path for path in normalized if path not in self._priority_buffer]
            self._priority_buffer.extend(added)
            logger.debug(f"Buffered {len(added)} priority paths until the next crawl")
            return len(added)

        inserted = self._insert_priority(normalized)
        self._remaining_in_level += inserted
        if inserted:
            logger.info(f"Queued {inserted} priority paths")
        return inserted

    def _insert_priority(self, paths: List[str]) -> int:
        pending_set = set(self.pending)
        inserted = []
        for path in paths:
            if path in self.completed or path in pending_set or path in self._in_flight:
                continue
            inserted.append(path)
            pending_set.add(path)
        self.pending[0:0] = inserted
        return len(inserted)

    def _queue_identifiers(self, identifiers: Iterable[str]) -> int:
        pending_set = set(self.pending)
        added = 0
        for identifier in identifiers:
            normalized = normalize_identifier(identifier)
            if (normalized in self.completed or normalized in pending_set
                    or normalized in self.failed or normalized in self._in_flight):
                continue
            self.pending.append(normalized)
            pending_set.add(normalized)
            added += 1
        return added

    def _load_state(self, technology_identifier: str) -> None:
        self.technology_identifier = technology_identifier
        frontier = self.frontier_store.load(technology_identifier)
        self.completed = dict.fromkeys(frontier.completed)
        self.pending = [item for item in frontier.pending if item not in self.failed]

        if self.pending or self.completed:
            logger.info(f"Resuming crawl for {technology_identifier}: "
                        f"{len(self.pending)} pending, {len(self.completed)} completed")

    def _merge_priority_buffer(self) -> None:
        buffered, self._priority_buffer = self._priority_buffer, []
        if buffered:
            self._insert_priority(buffered)

    def _persist_state(self) -> None:
        if not self.technology_identifier:
            return
        self.frontier_store.persist(CrawlFrontier(
            technology_identifier=self.technology_identifier,
            pending=list(self.pending),
            completed=list(self.completed)
        ))

    def _emit(self, callback: Optional[DocumentCallback], document: Document) -> None:
        if callback is None:
            return
        try:
            callback(document)
        except Exception as e:
            logger.warning(f"Document callback failed: {e}")

    async def _download_with_retry(self,
                                   label: str,
                                   fetch: Callable[[], Awaitable[Document]],
                                   stats: CrawlStats) -> Optional[Document]:
        max_retries = self.settings.max_retries
        for attempt in range(1, max_retries + 1):
            await self._sleep(self.settings.rate_limit_delay)
            try:
                return await fetch()
            except (DevDocsError, OSError) as e:
                logger.warning(f"Attempt {attempt}/{max_retries} failed for {label}: {e}")
                if attempt < max_retries:
                    stats.retried += 1
                    # Exponential backoff
                    await self._sleep(self.settings.rate_limit_delay * (2 ** (attempt - 1)))

        logger.warning(f"Dropping {label} after {max_retries} attempts")
        return None

    async def _process_identifier(self,
                                  identifier: str,
                                  on_downloaded: Optional[DocumentCallback],
                                  stats: CrawlStats) -> Optional[Document]:
        if identifier in self.completed or identifier in self.failed:
            return None

        stats.attempted += 1
        self._in_flight.add(identifier)
        try:
            document = await self._download_with_retry(
                identifier, lambda: self.client.get_symbol(identifier), stats
            )
        finally:
            self._in_flight.discard(identifier)

        if document is None:
            self.failed.add(identifier)
            stats.failed += 1
            return None

        self.completed[identifier] = None
        stats.successful += 1
        self._emit(on_downloaded, document)
        return document

    async def _drain(self, on_downloaded: Optional[DocumentCallback], stats: CrawlStats) -> None:
        depth = 0
        self._remaining_in_level = len(self.pending)

        while self.pending and depth < self.settings.max_depth:
            batch_size = min(self.settings.max_concurrency, max(self._remaining_in_level, 1))
            batch = self.pending[:batch_size]
            del self.pending[:batch_size]
            self._remaining_in_level -= len(batch)

            logger.debug(f"Processing {len(batch)} symbols (depth {depth}, "
                         f"{len(self.completed)} downloaded)")

            documents = await asyncio.gather(*(
                self._process_identifier(identifier, on_downloaded, stats)
                for identifier in batch
            ))

            discovered = []
            for document in documents:
                if document is not None:
                    discovered.extend(extract_identifiers(document))
            added = self._queue_identifiers(discovered)
            if added:
                logger.debug(f"Found {added} new identifiers for depth {depth + 1}")

            self._persist_state()

            if self._remaining_in_level <= 0:
                depth += 1
                self._remaining_in_level = len(self.pending)

        stats.depth_reached = depth
        if self.pending:
            logger.info(f"Pausing crawl at depth {depth} with {len(self.pending)} identifiers pending")

    async def download_all_symbols(self,
                                   technology: Optional[Technology],
                                   on_downloaded: Optional[DocumentCallback] = None) -> CrawlStats:
        """Crawl every symbol reachable from the technology's framework document.

        Args:
            technology: Active technology; its identifier scopes the frontier
            on_downloaded: Called with every downloaded document

        Returns:
            CrawlStats for this run; ``skipped`` is set when a crawl was
            already running

        Raises:
            NoTechnologySelectedError: If no technology is given
            InvalidRequestError: If the identifier has no framework name
        """
        if technology is None:
            raise NoTechnologySelectedError()

        framework_name = framework_name_for(technology.identifier)
        if not framework_name:
            raise InvalidRequestError(f"Invalid technology identifier: {technology.identifier}")

        stats = CrawlStats(technology_identifier=technology.identifier)
        if self._running:
            logger.info("Symbol crawl already running, skipping")
            stats.skipped = True
            stats.finish()
            return stats

        self._running = True
        logger.info(f"Starting symbol crawl for {technology.title or framework_name}")
        try:
            self._load_state(technology.identifier)
            needs_seed = not self.pending
            self._merge_priority_buffer()

            if needs_seed:
                framework = await self._download_with_retry(
                    framework_name, lambda: self.client.get_framework(framework_name), stats
                )
                if framework is None:
                    stats.failed += 1
                    logger.error(f"Could not load framework {framework_name}, crawl aborted")
                    return stats

                self._emit(on_downloaded, framework)
                stats.seeded = self._queue_identifiers(extract_identifiers(framework))
                logger.info(f"Found {stats.seeded} initial identifiers to process")

            await self._drain(on_downloaded, stats)
        finally:
            self._running = False
            self._persist_state()
            stats.remaining = len(self.pending)
            stats.finish()
            if self.telemetry is not None and stats.failed:
                self.telemetry.record_crawl_failure(stats.failed)

        logger.info(f"Symbol crawl finished: {stats.successful} downloaded, {stats.failed} dropped, "
                    f"{len(self.completed)} total")
        return stats
