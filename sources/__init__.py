"""Sources package for DevDocs Cache.

Provides the prefetch configuration.
"""

from .loader import (
    PrefetchConfig,
    load_prefetch_config,
    DEFAULT_FRAMEWORKS,
    DEFAULT_PREFETCH_FILE
)

__all__ = [
    'PrefetchConfig',
    'load_prefetch_config',
    'DEFAULT_FRAMEWORKS',
    'DEFAULT_PREFETCH_FILE'
]
