"""Pipelines package for DevDocs Cache.

Provides the symbol crawler, its persistent frontier and framework prefetch.
"""

from .frontier import CrawlFrontier, FrontierStore
from .crawler import (
    SymbolCrawler,
    CrawlStats,
    normalize_identifier,
    extract_identifiers,
    framework_name_for
)
from .prefetch import prefetch_core_frameworks

__all__ = [
    # Frontier
    'CrawlFrontier',
    'FrontierStore',

    # Crawler
    'SymbolCrawler',
    'CrawlStats',
    'normalize_identifier',
    'extract_identifiers',
    'framework_name_for',

    # Prefetch
    'prefetch_core_frameworks'
]
