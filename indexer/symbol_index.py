"""In-memory symbol indexes built from cached documentation.

Entries are derived from the documents held by the :class:`FileStore`; the
index itself is never persisted. :class:`LocalSymbolIndex` keeps only symbols
belonging to one technology, :class:`GlobalSymbolIndex` keeps everything.
"""

import re
import logging
from dataclasses import dataclass, asdict, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from cache.file_store import FileStore
from client.errors import DocumentValidationError
from client.types import DocumentData, parse_document
from .tokenizer import (
    compile_wildcard,
    expand_tokens,
    is_wildcard_query,
    score_entry,
    tokenize
)

logger = logging.getLogger(__name__)

_DOC_SCHEME_PREFIX = re.compile(r'^doc://[^/]+/')


def technology_slug(identifier: Optional[str]) -> str:
    """Reduce a technology identifier to its documentation path, e.g. ``swiftui``."""
    if not identifier:
        return ''
    slug = _DOC_SCHEME_PREFIX.sub('', identifier)
    return re.sub(r'^documentation/', '', slug)


def create_tokens(title: str, abstract: str, path: str, platforms: Iterable[str]) -> FrozenSet[str]:
    tokens: Set[str] = set()
    for text in (title, abstract, path, *platforms):
        tokens.update(tokenize(text))
    return frozenset(tokens)


@dataclass(frozen=True)
class SymbolIndexEntry:
    """A searchable symbol."""
    id: str
    title: str
    path: str
    kind: str
    abstract: str
    platforms: Tuple[str, ...]
    tokens: FrozenSet[str]
    source_file: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'path': self.path,
            'kind': self.kind,
            'abstract': self.abstract,
            'platforms': list(self.platforms),
            'source_file': self.source_file
        }


@dataclass
class IndexBuildReport:
    """Outcome of scanning cached files into an index."""
    processed: int = 0
    skipped: int = 0
    symbols: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass
class MatchExplanation:
    score: int
    tokens: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SymbolIndex:
    """Tokenized symbol catalog with scored and wildcard search."""

    def __init__(self, file_store: FileStore, technology_identifier: Optional[str] = None):
        """Initialize an empty index.

        Args:
            file_store: Store whose cached documents feed the index
            technology_identifier: When set, only symbols whose path contains
                this technology's slug are kept
        """
        self.file_store = file_store
        self.technology_identifier = technology_identifier
        self.technology_path = technology_slug(technology_identifier).lower()
        self.symbols: Dict[str, SymbolIndexEntry] = {}
        self.processed_files: Set[str] = set()
        self.index_built = False

    def _in_scope(self, path: str) -> bool:
        if not self.technology_path or not path:
            return True
        return self.technology_path in path.lower()

    def ingest_symbol_data(self, document: Any, source_file: str = '') -> None:
        """Add a document and the symbols it references to the index.

        The document's own entry replaces any entry with the same id;
        referenced symbols never replace an existing entry.

        Raises:
            DocumentValidationError: If a raw payload is not a document.
        """
        if not isinstance(document, DocumentData):
            document = parse_document(document)

        path = document.path
        if self._in_scope(path):
            abstract = document.abstract_text
            platforms = tuple(document.platform_names)
            entry_id = document.reference_id or path or document.title
            self.symbols[entry_id] = SymbolIndexEntry(
                id=entry_id,
                title=document.title,
                path=path,
                kind=document.symbol_kind,
                abstract=abstract,
                platforms=platforms,
                tokens=create_tokens(document.title, abstract, path, platforms),
                source_file=source_file
            )

        for ref_id, ref in document.references.items():
            if ref.kind != 'symbol' or not ref.title or ref_id in self.symbols:
                continue

            ref_path = ref.url or ''
            if not self._in_scope(ref_path):
                continue

            abstract = ref.abstract_text
            platforms = tuple(ref.platform_names)
            self.symbols[ref_id] = SymbolIndexEntry(
                id=ref_id,
                title=ref.title,
                path=ref_path,
                kind=ref.kind,
                abstract=abstract,
                platforms=platforms,
                tokens=create_tokens(ref.title, abstract, ref_path, platforms),
                source_file=source_file
            )

    def _ingest_cached_files(self, file_names: Iterable[str]) -> IndexBuildReport:
        report = IndexBuildReport()

        with self.file_store.batch():
            for file_name in file_names:
                raw = self.file_store.load(file_name)
                if raw is None:
                    logger.warning(f"Cached file {file_name} is missing or corrupt, skipping")
                    report.skipped += 1
                    continue

                try:
                    self.ingest_symbol_data(raw, file_name)
                except DocumentValidationError as e:
                    logger.warning(f"Invalid cache data in {file_name}, skipping: {e}")
                    report.skipped += 1
                    continue

                self.processed_files.add(file_name)
                report.processed += 1

        report.symbols = len(self.symbols)
        return report

    def build_index_from_cache(self) -> IndexBuildReport:
        """Scan every cached document once."""
        if self.index_built:
            logger.debug("Symbol index already built, skipping rebuild")
            return IndexBuildReport(symbols=len(self.symbols))

        file_names = self.file_store.document_names()
        logger.info(f"Building symbol index from {len(file_names)} cached files")
        report = self._ingest_cached_files(file_names)
        self.index_built = True

        logger.info(f"Symbol index built with {report.symbols} symbols "
                    f"({report.processed} files processed, {report.skipped} skipped)")
        return report

    def refresh_from_cache(self) -> IndexBuildReport:
        """Ingest cached documents that have not been seen yet."""
        new_files = [
            name for name in self.file_store.document_names()
            if name not in self.processed_files
        ]
        if not new_files:
            return IndexBuildReport(symbols=len(self.symbols))

        report = self._ingest_cached_files(new_files)
        logger.debug(f"Refreshed symbol index with {report.processed} new files")
        return report

    def search(self, query: str, max_results: int = 20) -> List[SymbolIndexEntry]:
        if max_results < 1:
            return []

        query_tokens = expand_tokens(tokenize(query))
        pattern = compile_wildcard(query) if is_wildcard_query(query) else None

        scored = []
        for entry in self.symbols.values():
            score = score_entry(entry, query_tokens, pattern)
            if score > 0:
                scored.append((score, entry))

        # Stable sort keeps insertion order among equal scores
        scored.sort(key=lambda item: item[0], reverse=True)
        return [entry for _, entry in scored[:max_results]]

    def explain_match(self, query: str, entry: SymbolIndexEntry) -> MatchExplanation:
        query_tokens = expand_tokens(tokenize(query))
        pattern = compile_wildcard(query) if is_wildcard_query(query) else None
        return MatchExplanation(score=score_entry(entry, query_tokens, pattern), tokens=query_tokens)

    def find_entry(self, query: str) -> Optional[SymbolIndexEntry]:
        """Look up an entry by id, then by case-insensitive title or path."""
        if query in self.symbols:
            return self.symbols[query]

        lowered = query.lower()
        for entry in self.symbols.values():
            if entry.title.lower() == lowered or entry.path.lower() == lowered:
                return entry
        return None

    def get_symbol_count(self) -> int:
        return len(self.symbols)

    def clear(self) -> None:
        self.symbols.clear()
        self.processed_files.clear()
        self.index_built = False


class LocalSymbolIndex(SymbolIndex):
    """Index restricted to the symbols of one technology."""

    def __init__(self, file_store: FileStore, technology_identifier: str):
        super().__init__(file_store, technology_identifier)


class GlobalSymbolIndex(SymbolIndex):
    """Index over every cached document."""

    def __init__(self, file_store: FileStore):
        super().__init__(file_store, None)
