"""Cache-through documentation client.

Every read first consults the :class:`FileStore`; only misses (or cached
payloads that no longer validate) go to the network. Raw payloads are
persisted so later sessions and the symbol index can read them back.
"""

import logging
from typing import Any, Dict, List, Optional

from cache.file_store import FileStore
from .errors import DocumentValidationError
from .formatters import extract_plain_text
from .types import (
    Document,
    SearchResult,
    Technology,
    normalize_technologies,
    parse_document,
    parse_technologies
)

logger = logging.getLogger(__name__)

TECHNOLOGIES_PATH = "documentation/technologies"


class DocsClient:
    """Documentation client backed by the persistent file store.

    The fetcher is any object with an async ``get_documentation(path)``
    returning parsed JSON and raising on failure; :class:`HttpClient` is the
    production implementation.
    """

    extract_text = staticmethod(extract_plain_text)

    def __init__(self, fetcher, file_store: FileStore):
        self.fetcher = fetcher
        self.file_store = file_store

    async def _fetch_document(self, path: str) -> tuple:
        raw = await self.fetcher.get_documentation(path)
        return raw, parse_document(raw)

    async def get_framework(self, framework_name: str) -> Document:
        cached = self.file_store.load_framework(framework_name)
        if cached is not None:
            try:
                return parse_document(cached)
            except DocumentValidationError as e:
                logger.warning(f"Cached framework {framework_name} is invalid, refetching: {e}")

        return await self.refresh_framework(framework_name)

    async def refresh_framework(self, framework_name: str) -> Document:
        """Fetch a framework document from the network and cache it."""
        raw, document = await self._fetch_document(f"documentation/{framework_name}")
        self.file_store.save_framework(framework_name, raw)
        return document

    async def get_symbol(self, path: str) -> Document:
        clean_path = path.lstrip('/')

        cached = self.file_store.load_symbol(clean_path)
        if cached is not None:
            try:
                return parse_document(cached)
            except DocumentValidationError as e:
                logger.warning(f"Cached symbol {clean_path} is invalid, refetching: {e}")

        raw, document = await self._fetch_document(clean_path)
        self.file_store.save_symbol(clean_path, raw)
        return document

    async def get_technologies(self) -> Dict[str, Technology]:
        cached = self.file_store.load_technologies()
        if cached:
            return parse_technologies(cached)

        return await self.refresh_technologies()

    async def refresh_technologies(self) -> Dict[str, Technology]:
        """Download the technology catalog, caching it when non-empty."""
        response = await self.fetcher.get_documentation(TECHNOLOGIES_PATH)
        catalog = normalize_technologies(response) or {}

        if catalog:
            self.file_store.save_technologies(catalog)
        else:
            logger.warning("Technology catalog response was empty or unrecognized")

        return parse_technologies(catalog)

    async def search_framework(self,
                               framework_name: str,
                               query: str,
                               max_results: int = 20,
                               platform: Optional[str] = None,
                               symbol_type: Optional[str] = None) -> List[SearchResult]:
        """Substring search over the references of one framework document.

        Matches the query against reference titles and abstracts, then
        applies the optional kind and platform filters.
        """
        framework = await self.get_framework(framework_name)
        lower_query = query.lower()
        results: List[SearchResult] = []

        for ref in framework.references.values():
            if len(results) >= max_results:
                break

            title = ref.title or ''
            abstract_text = ref.abstract_text
            if lower_query not in title.lower() and lower_query not in abstract_text.lower():
                continue

            if symbol_type and (ref.kind or '').lower() != symbol_type.lower():
                continue

            platform_names = ref.platform_names or framework.platform_names
            if platform:
                platform_lower = platform.lower()
                if not any(platform_lower in name.lower() for name in ref.platform_names):
                    continue

            results.append(SearchResult(
                title=ref.title or 'Symbol',
                framework=framework_name,
                path=ref.url,
                description=abstract_text,
                symbol_kind=ref.kind,
                platforms=platform_names
            ))

        return results

    def clear_cache(self) -> int:
        """Drop the persistent cache and any in-memory responses."""
        removed = self.file_store.clear_all()
        clear_transport = getattr(self.fetcher, 'clear_cache', None)
        if callable(clear_transport):
            clear_transport()
        return removed

    async def check_health(self) -> Dict[str, Any]:
        check = getattr(self.fetcher, 'check_health', None)
        if check is None:
            return {'ok': True, 'latency_ms': 0.0, 'message': 'Fetcher does not report health'}
        return await check()
