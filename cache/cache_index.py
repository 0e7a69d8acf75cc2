"""Cache ledger for DevDocs Cache.

Maps each cached file name to its size, content hash and recency. The ledger
is the single source of truth for eviction order and corruption detection.
"""

import json
import hashlib
import logging
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

CACHE_INDEX_VERSION = 1
CACHE_INDEX_FILE = "cache-index.json"


@dataclass
class CacheEntry:
    """Integrity and recency metadata for one cached file."""
    file_name: str
    byte_size: int
    content_hash: str
    last_accessed_at: str
    updated_at: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CacheEntry':
        return cls(
            file_name=data['file_name'],
            byte_size=int(data['byte_size']),
            content_hash=data['content_hash'],
            last_accessed_at=data['last_accessed_at'],
            updated_at=data['updated_at']
        )


class CacheIndex:
    """In-memory ledger persisted as a single JSON file."""

    def __init__(self, cache_dir: Union[str, Path]):
        self.cache_dir = Path(cache_dir)
        self.index_path = self.cache_dir / CACHE_INDEX_FILE
        self._entries: Optional[Dict[str, CacheEntry]] = None

    @staticmethod
    def create_hash(content: Union[str, bytes]) -> str:
        """SHA-256 hex digest of raw file content."""
        if isinstance(content, str):
            content = content.encode('utf-8')
        return hashlib.sha256(content).hexdigest()

    @property
    def is_loaded(self) -> bool:
        return self._entries is not None

    def load(self) -> None:
        """Read the ledger from disk; a no-op once loaded.

        A missing file starts an empty ledger. Unparseable content or a version
        mismatch also resets to empty; wiping the documents is the caller's job.
        """
        if self._entries is not None:
            return

        try:
            raw = self.index_path.read_text(encoding='utf-8')
        except FileNotFoundError:
            self._entries = {}
            return

        try:
            parsed = json.loads(raw)
            if parsed.get('version') != CACHE_INDEX_VERSION or not isinstance(parsed.get('entries'), dict):
                logger.warning(f"Cache index version mismatch in {self.index_path}, starting empty")
                self._entries = {}
                return

            self._entries = {
                name: CacheEntry.from_dict(entry)
                for name, entry in parsed['entries'].items()
            }
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Unreadable cache index {self.index_path}: {e}")
            self._entries = {}

    def persist(self) -> None:
        """Write the whole ledger to disk."""
        if self._entries is None:
            self.load()

        payload = {
            'version': CACHE_INDEX_VERSION,
            'entries': {name: entry.to_dict() for name, entry in self._entries.items()}
        }
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.index_path.write_text(json.dumps(payload, indent=2), encoding='utf-8')

    def get_entry(self, file_name: str) -> Optional[CacheEntry]:
        if self._entries is None:
            return None
        return self._entries.get(file_name)

    def set_entry(self, entry: CacheEntry) -> None:
        if self._entries is None:
            self._entries = {}
        self._entries[entry.file_name] = entry

    def remove_entry(self, file_name: str) -> None:
        if self._entries is not None:
            self._entries.pop(file_name, None)

    def list_entries(self) -> List[CacheEntry]:
        return list((self._entries or {}).values())

    def reset(self) -> None:
        """Drop every entry."""
        self._entries = {}

    def total_bytes(self) -> int:
        return sum(entry.byte_size for entry in self.list_entries())

    def entry_count(self) -> int:
        return len(self._entries or {})
