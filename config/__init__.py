"""Configuration module for DevDocs Cache.

Provides configuration for the file cache, crawler and documentation client.
"""

from .settings import (
    CacheSettings,
    CrawlerSettings,
    ClientSettings,
    Settings,
    DEFAULT_BASE_URL
)

__all__ = [
    'CacheSettings',
    'CrawlerSettings',
    'ClientSettings',
    'Settings',
    'DEFAULT_BASE_URL'
]
