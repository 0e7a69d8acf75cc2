"""Integrity-checked, size-bounded JSON document store for DevDocs Cache.

Documents are written one file per logical key under the cache directory and
tracked in the :class:`CacheIndex` ledger. Reads verify the stored SHA-256
hash; anything that does not match is deleted and reported as a miss.
"""

import json
import re
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional

from config.settings import CacheSettings
from client.types import normalize_technologies
from .cache_index import CacheIndex, CacheEntry, CACHE_INDEX_FILE

logger = logging.getLogger(__name__)

SCHEMA_FILE = "cache-schema.json"
TECHNOLOGIES_FILE = "technologies.json"
FRONTIER_FILE = "crawl-state.json"

# Files in the cache directory that are not documents
RESERVED_FILES = {CACHE_INDEX_FILE, SCHEMA_FILE, TECHNOLOGIES_FILE, FRONTIER_FILE}

# Fixed-width UTC timestamps sort correctly as strings
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

_UNSAFE_NAME_CHARS = re.compile(r'[^\w-]', re.ASCII)


def framework_file_name(framework_name: str) -> str:
    """Cache file name for a framework document."""
    return f"{_UNSAFE_NAME_CHARS.sub('_', framework_name)}.json"


def symbol_file_name(path: str) -> str:
    """Cache file name for a symbol document at a documentation path."""
    return f"{path.lstrip('/').replace('/', '__')}.json"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class FileStore:
    """Durable storage of named JSON documents with integrity and eviction."""

    def __init__(self,
                 settings: Optional[CacheSettings] = None,
                 telemetry=None,
                 clock: Optional[Callable[[], datetime]] = None):
        """Initialize the store.

        Args:
            settings: Cache location, budgets and schema version
            telemetry: Optional SessionTelemetry receiving eviction counts
            clock: Source of timestamps (defaults to the current UTC time)
        """
        self.settings = settings or CacheSettings()
        self.cache_dir = Path(self.settings.cache_dir)
        self.cache_index = CacheIndex(self.cache_dir)
        self.schema_path = self.cache_dir / SCHEMA_FILE
        self.frontier_path = self.cache_dir / FRONTIER_FILE
        self.max_bytes = self.settings.max_bytes
        self.max_entries = self.settings.max_entries
        self.telemetry = telemetry
        self._clock = clock or _utc_now
        self._ready = False
        self._batch_depth = 0
        self._index_dirty = False

    def current_time(self) -> datetime:
        return self._clock()

    def _now(self) -> str:
        return self._clock().astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)

    def ensure_ready(self) -> None:
        """Create the cache directory, run the schema guard and load the ledger."""
        if self._ready:
            return

        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self._ensure_schema_version()
        self.cache_index.load()
        self._ready = True

    def _ensure_schema_version(self) -> None:
        expected = self.settings.schema_version
        try:
            parsed = json.loads(self.schema_path.read_text(encoding='utf-8'))
            version = parsed.get('version') if isinstance(parsed, dict) else None
        except FileNotFoundError:
            self._write_schema()
            return
        except ValueError:
            version = None

        if version != expected:
            logger.warning(f"Cache schema version {version} does not match {expected}, clearing cache")
            self._clear_cache_dir()
            self.cache_index.reset()
            self.cache_index.persist()
            self._write_schema()

    def _write_schema(self) -> None:
        self.schema_path.write_text(
            json.dumps({'version': self.settings.schema_version}, indent=2),
            encoding='utf-8'
        )

    def _clear_cache_dir(self) -> int:
        removed = 0
        for entry in self.cache_dir.iterdir():
            if entry == self.schema_path or not entry.is_file():
                continue
            entry.unlink(missing_ok=True)
            if entry.name != CACHE_INDEX_FILE:
                removed += 1
        return removed

    @contextmanager
    def batch(self) -> Iterator[None]:
        """Defer ledger persistence until the outermost batch exits."""
        self.ensure_ready()
        self._batch_depth += 1
        try:
            yield
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._index_dirty:
                self._index_dirty = False
                self.cache_index.persist()

    def _persist_index(self) -> None:
        if self._batch_depth:
            self._index_dirty = True
        else:
            self.cache_index.persist()

    def _remove_corrupt_file(self, file_name: str) -> None:
        (self.cache_dir / file_name).unlink(missing_ok=True)
        self.cache_index.remove_entry(file_name)
        self._persist_index()

    def load(self, file_name: str) -> Optional[Any]:
        """Read and verify a cached document.

        Returns:
            The parsed JSON document, or None when missing or corrupt
        """
        self.ensure_ready()
        file_path = self.cache_dir / file_name

        try:
            raw = file_path.read_bytes()
        except FileNotFoundError:
            if self.cache_index.get_entry(file_name):
                self.cache_index.remove_entry(file_name)
                self._persist_index()
            return None

        content_hash = CacheIndex.create_hash(raw)
        existing = self.cache_index.get_entry(file_name)

        if existing and existing.content_hash != content_hash:
            logger.warning(f"Cache hash mismatch for {file_name}, discarding")
            self._remove_corrupt_file(file_name)
            return None

        try:
            document = json.loads(raw.decode('utf-8'))
        except ValueError as e:
            logger.warning(f"Cached file {file_name} is not valid JSON, discarding: {e}")
            self._remove_corrupt_file(file_name)
            return None

        now = self._now()
        self.cache_index.set_entry(CacheEntry(
            file_name=file_name,
            byte_size=len(raw),
            content_hash=content_hash,
            last_accessed_at=now,
            updated_at=existing.updated_at if existing else now
        ))
        self._persist_index()
        return document

    def save(self, file_name: str, document: Any) -> None:
        """Write a document, record it in the ledger and enforce the budgets."""
        self.ensure_ready()
        payload = json.dumps(document, indent=2, ensure_ascii=False).encode('utf-8')
        (self.cache_dir / file_name).write_bytes(payload)

        now = self._now()
        self.cache_index.set_entry(CacheEntry(
            file_name=file_name,
            byte_size=len(payload),
            content_hash=CacheIndex.create_hash(payload),
            last_accessed_at=now,
            updated_at=now
        ))
        self._persist_index()
        self.enforce_limits()

    def enforce_limits(self) -> int:
        """Evict least-recently-accessed documents until both budgets hold.

        Returns:
            Number of evicted documents
        """
        entries = self.cache_index.list_entries()
        total_bytes = sum(entry.byte_size for entry in entries)
        total_entries = len(entries)

        if total_bytes <= self.max_bytes and total_entries <= self.max_entries:
            return 0

        evicted: List[str] = []
        for entry in sorted(entries, key=lambda e: e.last_accessed_at):
            if total_bytes <= self.max_bytes and total_entries <= self.max_entries:
                break
            total_bytes -= entry.byte_size
            total_entries -= 1
            self.cache_index.remove_entry(entry.file_name)
            evicted.append(entry.file_name)

        for file_name in evicted:
            (self.cache_dir / file_name).unlink(missing_ok=True)

        self._persist_index()
        logger.info(f"Evicted {len(evicted)} cached documents to stay within "
                    f"{self.max_bytes} bytes / {self.max_entries} entries")
        if self.telemetry is not None:
            self.telemetry.record_cache_eviction(len(evicted))
        return len(evicted)

    def clear_all(self) -> int:
        """Delete every cached file except the schema marker.

        Returns:
            Number of files removed
        """
        self.ensure_ready()
        removed = self._clear_cache_dir()
        self.cache_index.reset()
        self.cache_index.persist()
        logger.info(f"Cleared {removed} cached files from {self.cache_dir}")
        return removed

    def document_names(self) -> List[str]:
        """Names of cached framework and symbol documents."""
        self.ensure_ready()
        return sorted(
            path.name for path in self.cache_dir.glob('*.json')
            if path.name not in RESERVED_FILES and path.is_file()
        )

    # Document families

    def load_framework(self, framework_name: str) -> Optional[Any]:
        return self.load(framework_file_name(framework_name))

    def save_framework(self, framework_name: str, document: Any) -> None:
        self.save(framework_file_name(framework_name), document)

    def load_symbol(self, path: str) -> Optional[Any]:
        return self.load(symbol_file_name(path))

    def save_symbol(self, path: str, document: Any) -> None:
        self.save(symbol_file_name(path), document)

    def load_technologies(self) -> Optional[Dict[str, Any]]:
        """Load the technology catalog; an empty or unrecognized catalog is a miss."""
        data = self.load(TECHNOLOGIES_FILE)
        if data is None:
            return None

        technologies = normalize_technologies(data)
        if not technologies:
            logger.warning("Technologies cache exists but appears invalid, will refetch")
            return None
        return technologies

    def save_technologies(self, payload: Any) -> bool:
        """Persist the catalog as a bare map; empty catalogs are not stored."""
        technologies = normalize_technologies(payload)
        if not technologies:
            logger.warning("Refusing to cache an empty technology catalog")
            return False
        self.save(TECHNOLOGIES_FILE, technologies)
        return True

    def changed_since(self, since: datetime) -> List[CacheEntry]:
        """Ledger entries written after ``since``, oldest first."""
        self.ensure_ready()
        cutoff = since.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)
        return sorted(
            (entry for entry in self.cache_index.list_entries() if entry.updated_at > cutoff),
            key=lambda entry: entry.updated_at
        )

    def stats(self) -> Dict[str, int]:
        self.ensure_ready()
        return {
            'entries': self.cache_index.entry_count(),
            'total_bytes': self.cache_index.total_bytes(),
            'max_entries': self.max_entries,
            'max_bytes': self.max_bytes
        }
