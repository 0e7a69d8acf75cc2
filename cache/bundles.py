"""Named snapshots of cached documents.

A bundle is a directory under ``<cache_dir>/bundles`` holding copies of the
cached files whose names match a set of filters, plus a ``manifest.json``.
Bundles survive :meth:`FileStore.clear_all`, so a cleared cache can be
restored from them without touching the network.
"""

import re
import json
import shutil
import logging
from dataclasses import dataclass, asdict, field
from pathlib import Path
from typing import Any, Dict, Iterable, List

from client.errors import InvalidRequestError
from .cache_index import CACHE_INDEX_FILE
from .file_store import FileStore, SCHEMA_FILE, TECHNOLOGIES_FILE, FRONTIER_FILE

logger = logging.getLogger(__name__)

BUNDLES_DIR = "bundles"
MANIFEST_FILE = "manifest.json"

_BUNDLE_NAME = re.compile(r'^\w[\w.-]*$')

# Bookkeeping files that are never copied back into the cache
_NOT_IMPORTABLE = {MANIFEST_FILE, CACHE_INDEX_FILE, SCHEMA_FILE, FRONTIER_FILE}


@dataclass
class BundleManifest:
    """What a bundle contains and how it was selected."""
    name: str
    filters: List[str] = field(default_factory=list)
    files: List[str] = field(default_factory=list)
    created_at: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BundleManifest':
        return cls(
            name=data['name'],
            filters=list(data.get('filters', [])),
            files=list(data.get('files', [])),
            created_at=data.get('created_at', '')
        )


class BundleManager:
    """Export and import bundles of one file store."""

    def __init__(self, file_store: FileStore):
        self.file_store = file_store
        self.bundle_root = file_store.cache_dir / BUNDLES_DIR

    def bundle_path(self, name: str) -> Path:
        """Directory of a bundle.

        Raises:
            InvalidRequestError: If the name is empty or could escape the bundle root
        """
        if not name or not _BUNDLE_NAME.match(name):
            raise InvalidRequestError(f"Invalid bundle name: {name!r}")
        return self.bundle_root / name

    def list_bundles(self) -> List[str]:
        if not self.bundle_root.is_dir():
            return []
        return sorted(path.name for path in self.bundle_root.iterdir() if path.is_dir())

    def export_bundle(self, name: str, filters: Iterable[str]) -> BundleManifest:
        """Copy cached files whose names contain any filter into a bundle.

        Files are read through the store, so entries failing the integrity
        check are left out. Exporting over an existing bundle replaces it.
        """
        bundle_dir = self.bundle_path(name)
        wanted = [value.strip().lower() for value in filters if value.strip()]
        if not wanted:
            raise InvalidRequestError("Provide at least one filter")

        candidates = self.file_store.document_names()
        if (self.file_store.cache_dir / TECHNOLOGIES_FILE).is_file():
            candidates.append(TECHNOLOGIES_FILE)
        matches = sorted(
            file_name for file_name in candidates
            if any(value in file_name.lower() for value in wanted)
        )

        if bundle_dir.exists():
            shutil.rmtree(bundle_dir)
        bundle_dir.mkdir(parents=True)

        exported: List[str] = []
        with self.file_store.batch():
            for file_name in matches:
                document = self.file_store.load(file_name)
                if document is None:
                    logger.warning(f"Skipping {file_name} in bundle {name}: missing or corrupt")
                    continue
                (bundle_dir / file_name).write_text(
                    json.dumps(document, indent=2, ensure_ascii=False), encoding='utf-8'
                )
                exported.append(file_name)

        manifest = BundleManifest(
            name=name,
            filters=wanted,
            files=exported,
            created_at=self.file_store.current_time().isoformat()
        )
        (bundle_dir / MANIFEST_FILE).write_text(json.dumps(manifest.to_dict(), indent=2), encoding='utf-8')
        logger.info(f"Exported {len(exported)} files to bundle {name}")
        return manifest

    def import_bundle(self, name: str) -> List[str]:
        """Write every document of a bundle into the cache.

        Returns:
            Names of the imported files

        Raises:
            InvalidRequestError: If the bundle does not exist
        """
        bundle_dir = self.bundle_path(name)
        if not bundle_dir.is_dir():
            raise InvalidRequestError(f"Bundle not found: {name}")

        imported: List[str] = []
        with self.file_store.batch():
            for path in sorted(bundle_dir.glob('*.json')):
                if path.name in _NOT_IMPORTABLE:
                    continue
                try:
                    document = json.loads(path.read_text(encoding='utf-8'))
                except ValueError as e:
                    logger.warning(f"Skipping unreadable bundle file {path.name}: {e}")
                    continue
                self.file_store.save(path.name, document)
                imported.append(path.name)

        logger.info(f"Imported {len(imported)} files from bundle {name}")
        return imported
