"""Persistent document cache for DevDocs Cache.

Provides the cache ledger, the integrity-checked file store and bundles.
"""

from .cache_index import CacheIndex, CacheEntry, CACHE_INDEX_FILE, CACHE_INDEX_VERSION
from .file_store import (
    FileStore,
    framework_file_name,
    symbol_file_name,
    SCHEMA_FILE,
    TECHNOLOGIES_FILE,
    FRONTIER_FILE,
    RESERVED_FILES,
    TIMESTAMP_FORMAT
)
from .bundles import BundleManager, BundleManifest, BUNDLES_DIR, MANIFEST_FILE

__all__ = [
    'CacheIndex',
    'CacheEntry',
    'CACHE_INDEX_FILE',
    'CACHE_INDEX_VERSION',
    'FileStore',
    'framework_file_name',
    'symbol_file_name',
    'SCHEMA_FILE',
    'TECHNOLOGIES_FILE',
    'FRONTIER_FILE',
    'RESERVED_FILES',
    'TIMESTAMP_FORMAT',
    'BundleManager',
    'BundleManifest',
    'BUNDLES_DIR',
    'MANIFEST_FILE'
]
