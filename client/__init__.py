"""Documentation client for DevDocs Cache.

Provides document models, the HTTP transport and the cache-through client.
Import :mod:`client.docs_client` directly for :class:`DocsClient`, which
depends on the :mod:`cache` package.
"""

from .errors import (
    DevDocsError,
    FetchError,
    DocumentValidationError,
    InvalidRequestError,
    NoTechnologySelectedError
)
from .formatters import extract_plain_text
from .memory_cache import MemoryCache
from .http_client import HttpClient
from .types import (
    PlatformInfo,
    ReferenceData,
    TopicSection,
    DocumentMetadata,
    Technology,
    FrameworkDocument,
    SymbolDocument,
    Document,
    SearchResult,
    parse_document,
    normalize_technologies,
    parse_technologies
)

__all__ = [
    'DevDocsError',
    'FetchError',
    'DocumentValidationError',
    'InvalidRequestError',
    'NoTechnologySelectedError',
    'extract_plain_text',
    'MemoryCache',
    'HttpClient',
    'PlatformInfo',
    'ReferenceData',
    'TopicSection',
    'DocumentMetadata',
    'Technology',
    'FrameworkDocument',
    'SymbolDocument',
    'Document',
    'SearchResult',
    'parse_document',
    'normalize_technologies',
    'parse_technologies'
]
