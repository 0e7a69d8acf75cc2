"""Search and maintenance services for DevDocs Cache.

Each function takes the :class:`DocsSession` explicitly and returns plain
structured data; rendering is left to the caller.
"""

import re
import time
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from cache.bundles import BundleManager, BundleManifest
from cache.file_store import framework_file_name
from client.errors import DevDocsError, InvalidRequestError
from client.types import Document, SearchResult, Technology
from indexer.semantic import semantic_rank
from indexer.symbol_index import SymbolIndex, SymbolIndexEntry, technology_slug
from pipelines.crawler import framework_name_for
from .session import DocsSession

logger = logging.getLogger(__name__)

SEARCH_SCOPES = ("technology", "global")

# Below this many indexed symbols a technology search also falls back to the
# framework document and starts a background crawl
SPARSE_INDEX_THRESHOLD = 50

# Keyword matches handed to the semantic re-ranker
SEMANTIC_CANDIDATES = 500

DEFAULT_DIFF_WINDOW = timedelta(hours=24)

_TYPE_NAME = re.compile(r'^[A-Z][a-zA-Z\d]*$')
_MEMBER_TYPE_NAME = re.compile(r'^[A-Z][a-zA-Z\d]*\.[A-Z][a-zA-Z\d]*$')


def looks_like_symbol_name(query: str) -> bool:
    """True for queries shaped like a type name, e.g. ``GridItem`` or ``Text.Scale``."""
    return bool(_TYPE_NAME.match(query) or _MEMBER_TYPE_NAME.match(query))


def normalize_platform(value: str) -> str:
    return re.sub(r'[^a-z\d]+', '', value.lower())


@dataclass
class SearchOutcome:
    """Results of a symbol search plus how they were obtained."""
    query: str
    scope: str
    technology: Optional[str]
    results: List[SymbolIndexEntry] = field(default_factory=list)
    total_indexed: int = 0
    limited_coverage: bool = False
    used_framework_fallback: bool = False
    crawl_started: bool = False
    live_lookup: bool = False
    queued_priority_path: Optional[str] = None
    has_unrelated_results: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'query': self.query,
            'scope': self.scope,
            'technology': self.technology,
            'matches': len(self.results),
            'total_indexed': self.total_indexed,
            'limited_coverage': self.limited_coverage,
            'used_framework_fallback': self.used_framework_fallback,
            'crawl_started': self.crawl_started,
            'live_lookup': self.live_lookup,
            'queued_priority_path': self.queued_priority_path,
            'has_unrelated_results': self.has_unrelated_results,
            'results': [entry.to_dict() for entry in self.results]
        }


@dataclass
class SearchExplanation:
    """Why a symbol scored what it did for a query."""
    symbol: SymbolIndexEntry
    score: int
    tokens: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'symbol': self.symbol.title,
            'path': self.symbol.path,
            'score': self.score,
            'tokens': list(self.tokens)
        }


@dataclass
class MultiFrameworkOutcome:
    """Framework search hits gathered across several frameworks."""
    query: str
    frameworks: List[str]
    results: List[SearchResult] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'query': self.query,
            'frameworks': list(self.frameworks),
            'failed': list(self.failed),
            'matches': len(self.results),
            'results': [result.model_dump() for result in self.results]
        }


def _entry_from_search_result(result: SearchResult) -> SymbolIndexEntry:
    return SymbolIndexEntry(
        id=result.path or result.title,
        title=result.title,
        path=result.path or '',
        kind=result.symbol_kind or 'symbol',
        abstract=result.description,
        platforms=tuple(result.platforms),
        tokens=frozenset()
    )


def _entry_from_document(document: Document, path: str, fallback_title: str) -> SymbolIndexEntry:
    return SymbolIndexEntry(
        id=path,
        title=document.metadata.title or fallback_title,
        path=path,
        kind=document.metadata.symbol_kind or 'symbol',
        abstract=document.abstract_text,
        platforms=tuple(document.platform_names),
        tokens=frozenset()
    )


def _check_max_results(max_results: int) -> None:
    if max_results < 1:
        raise InvalidRequestError(f"max_results must be at least 1, got {max_results}")


def _select_index(session: DocsSession, scope: str) -> SymbolIndex:
    if scope not in SEARCH_SCOPES:
        raise InvalidRequestError(f"Unknown search scope: {scope}")
    index = session.global_index if scope == "global" else session.local_index
    _prepare_index(session, index)
    return index


def _prepare_index(session: DocsSession, index: SymbolIndex) -> None:
    try:
        if not index.index_built:
            index.build_index_from_cache()
            session.telemetry.record_index_build()
        index.refresh_from_cache()
    except OSError as e:
        logger.warning(f"Failed to update symbol index from cache: {e}")


async def search_symbols(session: DocsSession,
                         query: str,
                         max_results: int = 20,
                         platform: Optional[str] = None,
                         symbol_type: Optional[str] = None,
                         scope: str = "technology") -> SearchOutcome:
    """Search indexed symbols, falling back to the network when coverage is thin.

    Raises:
        NoTechnologySelectedError: If no technology is active
        InvalidRequestError: For an unknown scope, an empty query or a
            max_results below 1
    """
    technology = session.require_technology()
    if scope not in SEARCH_SCOPES:
        raise InvalidRequestError(f"Unknown search scope: {scope}")
    if not query.strip():
        raise InvalidRequestError("Query must not be empty")
    _check_max_results(max_results)

    start_time = time.perf_counter()
    use_global = scope == "global"
    index = _select_index(session, scope)

    outcome = SearchOutcome(query=query, scope=scope, technology=technology.title or technology.identifier)
    results = index.search(query, max_results * 2)

    if not use_global and not results and index.get_symbol_count() < SPARSE_INDEX_THRESHOLD:
        outcome.crawl_started = session.start_background_crawl()
        try:
            framework_results = await session.client.search_framework(
                session.framework_name(),
                query,
                max_results=max_results * 2,
                platform=platform,
                symbol_type=symbol_type
            )
            results = [_entry_from_search_result(result) for result in framework_results]
            outcome.used_framework_fallback = True
        except DevDocsError as e:
            logger.warning(f"Framework search failed for {technology.identifier}: {e}")

    if platform:
        wanted = normalize_platform(platform)
        results = [
            entry for entry in results
            if any(wanted in normalize_platform(name) for name in entry.platforms)
        ]

    if symbol_type:
        wanted_kind = symbol_type.lower()
        results = [entry for entry in results if wanted_kind in entry.kind.lower()]

    results = results[:max_results]

    if not use_global:
        technology_path = technology_slug(technology.identifier).lower()
        outcome.has_unrelated_results = any(
            technology_path not in entry.path.lower() for entry in results
        )

    if not results and looks_like_symbol_name(query):
        framework_name = framework_name_for(technology.identifier)
        fallback_path = f"documentation/{framework_name}/{query}" if framework_name else query
        try:
            document = await session.client.get_symbol(fallback_path)
            results = [_entry_from_document(document, fallback_path, query)]
            outcome.live_lookup = True
        except DevDocsError as e:
            logger.warning(f"Live lookup failed for {fallback_path}: {e}")
            if not use_global and session.crawler is not None:
                session.crawler.queue_priority_paths([fallback_path])
                outcome.queued_priority_path = fallback_path

    outcome.results = results
    outcome.total_indexed = index.get_symbol_count()
    outcome.limited_coverage = not use_global and outcome.total_indexed < SPARSE_INDEX_THRESHOLD

    session.telemetry.record_search(time.perf_counter() - start_time, scope)
    return outcome


def explain_search(session: DocsSession, query: str, symbol: str) -> Optional[SearchExplanation]:
    """Score breakdown for one indexed symbol, or None when it is not indexed."""
    query = query.strip()
    symbol = symbol.strip()
    if not query or not symbol:
        raise InvalidRequestError("Provide both a query and a symbol")

    session.require_technology()
    index = session.local_index
    _prepare_index(session, index)

    entry = index.find_entry(symbol)
    if entry is None:
        return None

    explanation = index.explain_match(query, entry)
    return SearchExplanation(symbol=entry, score=explanation.score, tokens=explanation.tokens)


def index_status(session: DocsSession) -> Dict[str, Any]:
    """Index sizes, cache usage, crawl progress and telemetry."""
    _prepare_index(session, session.global_index)
    technology = session.active_technology
    crawler = session.crawler

    return {
        'technology': technology.identifier if technology else None,
        'local_index_symbols': session.local_index.get_symbol_count() if session.local_index else 0,
        'global_index_symbols': session.global_index.get_symbol_count(),
        'cache': session.file_store.stats(),
        'crawl': {
            'running': session.is_crawl_running(),
            'downloaded': crawler.get_downloaded_count() if crawler else 0,
            'pending': len(crawler.pending) if crawler else 0,
            'dropped': len(crawler.failed) if crawler else 0,
            'last_run': session.last_crawl_stats.to_dict() if session.last_crawl_stats else None
        },
        'telemetry': session.telemetry.snapshot()
    }


async def refresh_framework(session: DocsSession) -> Document:
    """Refetch the active technology's framework document."""
    framework_name = session.framework_name()
    document = await session.client.refresh_framework(framework_name)
    if session.local_index is not None:
        session.local_index.ingest_symbol_data(document, framework_file_name(framework_name))
    return document


async def refresh_technologies(session: DocsSession) -> Dict[str, Technology]:
    return await session.client.refresh_technologies()


async def clear_cache(session: DocsSession) -> int:
    """Delete all cached documents and empty both indexes.

    Returns:
        Number of files removed
    """
    await session.stop_background_crawl()
    removed = session.client.clear_cache()
    if session.local_index is not None:
        session.local_index.clear()
    session.global_index.clear()
    logger.info(f"Cache cleared, {removed} files removed")
    return removed


async def choose_technology(session: DocsSession, name: str) -> Technology:
    """Make a technology active by identifier, path or title.

    Raises:
        InvalidRequestError: If no technology in the catalog matches
    """
    wanted = name.strip().lower()
    if not wanted:
        raise InvalidRequestError("Technology name must not be empty")

    technologies = await session.client.get_technologies()
    for technology in technologies.values():
        if wanted in (
            technology.identifier.lower(),
            technology_slug(technology.identifier).lower(),
            technology.title.lower()
        ):
            session.set_active_technology(technology)
            return technology

    raise InvalidRequestError(f"Technology not found: {name}")


def semantic_search(session: DocsSession,
                    query: str,
                    max_results: int = 10,
                    scope: str = "technology") -> List[SymbolIndexEntry]:
    """Re-rank the index's keyword matches by token cosine similarity.

    Only symbols already in the index are considered; nothing is fetched.
    """
    session.require_technology()
    if not query.strip():
        raise InvalidRequestError("Query must not be empty")
    _check_max_results(max_results)

    start_time = time.perf_counter()
    index = _select_index(session, scope)
    candidates = index.search(query, SEMANTIC_CANDIDATES)
    results = semantic_rank(query, candidates, max_results)

    session.telemetry.record_search(time.perf_counter() - start_time, scope)
    return results


async def search_multi_framework(session: DocsSession,
                                 query: str,
                                 frameworks: Iterable[str],
                                 max_results: int = 10) -> MultiFrameworkOutcome:
    """Run a framework search over several frameworks concurrently.

    Frameworks that cannot be loaded are reported in ``failed`` instead of
    failing the whole search.
    """
    query = query.strip()
    names = list(dict.fromkeys(name.strip() for name in frameworks if name.strip()))
    if not query or not names:
        raise InvalidRequestError("Provide a query and at least one framework")
    _check_max_results(max_results)

    hits = await asyncio.gather(
        *(session.client.search_framework(name, query, max_results=max_results) for name in names),
        return_exceptions=True
    )

    outcome = MultiFrameworkOutcome(query=query, frameworks=names)
    for name, result in zip(names, hits):
        if isinstance(result, DevDocsError):
            logger.warning(f"Framework search failed for {name}: {result}")
            outcome.failed.append(name)
        elif isinstance(result, BaseException):
            raise result
        else:
            outcome.results.extend(result)
    return outcome


def parse_since(value: str) -> datetime:
    """Parse an ISO-8601 date or timestamp; naive values are taken as UTC.

    Raises:
        InvalidRequestError: If the value is not a date
    """
    text = value.strip()
    if text.endswith(('Z', 'z')):
        text = text[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise InvalidRequestError(f'Invalid "since" date: {value}') from None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def cache_diff(session: DocsSession, since: Optional[str] = None) -> Dict[str, Any]:
    """Cached files written after ``since`` (default: the last 24 hours)."""
    if since:
        since_time = parse_since(since)
    else:
        since_time = session.file_store.current_time() - DEFAULT_DIFF_WINDOW

    entries = session.file_store.changed_since(since_time)
    return {
        'since': since_time.astimezone(timezone.utc).isoformat(),
        'count': len(entries),
        'entries': [{'file_name': entry.file_name, 'updated_at': entry.updated_at} for entry in entries]
    }


def list_bundles(session: DocsSession) -> List[str]:
    return BundleManager(session.file_store).list_bundles()


def export_bundle(session: DocsSession, name: str, filters: Iterable[str]) -> BundleManifest:
    return BundleManager(session.file_store).export_bundle(name.strip(), filters)


def import_bundle(session: DocsSession, name: str) -> List[str]:
    """Restore a bundle into the cache; indexes pick the files up on their next refresh."""
    return BundleManager(session.file_store).import_bundle(name.strip())


async def api_health(session: DocsSession) -> Dict[str, Any]:
    """Reachability and latency of the documentation API."""
    health = await session.client.check_health()
    return {
        'provider': getattr(session.client.fetcher, 'base_url', type(session.client.fetcher).__name__),
        'ok': bool(health.get('ok')),
        'latency_ms': health.get('latency_ms'),
        'message': health.get('message')
    }
