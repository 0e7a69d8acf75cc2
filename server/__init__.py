"""Session and services for DevDocs Cache."""

from .session import DocsSession
from .search import (
    SearchOutcome,
    SearchExplanation,
    MultiFrameworkOutcome,
    search_symbols,
    semantic_search,
    search_multi_framework,
    explain_search,
    index_status,
    refresh_framework,
    refresh_technologies,
    clear_cache,
    choose_technology,
    cache_diff,
    list_bundles,
    export_bundle,
    import_bundle,
    api_health,
    looks_like_symbol_name
)

__all__ = [
    'DocsSession',
    'SearchOutcome',
    'SearchExplanation',
    'MultiFrameworkOutcome',
    'search_symbols',
    'semantic_search',
    'search_multi_framework',
    'explain_search',
    'index_status',
    'refresh_framework',
    'refresh_technologies',
    'clear_cache',
    'choose_technology',
    'cache_diff',
    'list_bundles',
    'export_bundle',
    'import_bundle',
    'api_health',
    'looks_like_symbol_name'
]
