"""Documentation document models.

Framework and symbol documents share one JSON shape upstream; which one a
payload is gets decided once, in :func:`parse_document`, from the presence of
``metadata.symbolKind``.
"""

from __future__ import annotations

from typing import Any, ClassVar, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import DocumentValidationError
from .formatters import extract_plain_text


def _list_or_empty(value: Any) -> Any:
    return [] if value is None else value


class _DocsModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PlatformInfo(_DocsModel):
    """Platform availability of a symbol."""
    name: Optional[str] = None
    introduced_at: Optional[str] = Field(default=None, alias="introducedAt")
    beta: bool = False
    deprecated: bool = False


class ReferenceData(_DocsModel):
    """A linked symbol as described inside another document."""
    title: Optional[str] = None
    kind: Optional[str] = None
    url: Optional[str] = None
    identifier: Optional[str] = None
    role: Optional[str] = None
    abstract: List[Any] = Field(default_factory=list)
    platforms: List[PlatformInfo] = Field(default_factory=list)

    @field_validator("abstract", "platforms", mode="before")
    @classmethod
    def none_to_list(cls, value: Any) -> Any:
        return _list_or_empty(value)

    @property
    def platform_names(self) -> List[str]:
        return [platform.name for platform in self.platforms if platform.name]

    @property
    def abstract_text(self) -> str:
        return extract_plain_text(self.abstract)


class TopicSection(_DocsModel):
    """A titled group of identifiers on a framework or symbol page."""
    title: Optional[str] = None
    identifiers: List[str] = Field(default_factory=list)

    @field_validator("identifiers", mode="before")
    @classmethod
    def string_identifiers(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, str)]


class DocumentIdentifier(_DocsModel):
    url: Optional[str] = None
    interface_language: Optional[str] = Field(default=None, alias="interfaceLanguage")


class DocumentMetadata(_DocsModel):
    title: Optional[str] = None
    url: Optional[str] = None
    symbol_kind: Optional[str] = Field(default=None, alias="symbolKind")
    role: Optional[str] = None
    platforms: List[PlatformInfo] = Field(default_factory=list)

    @field_validator("platforms", mode="before")
    @classmethod
    def none_to_list(cls, value: Any) -> Any:
        return _list_or_empty(value)


class Technology(_DocsModel):
    """An entry in the technology catalog."""
    identifier: str
    title: str = ""
    url: Optional[str] = None
    kind: Optional[str] = None
    role: Optional[str] = None
    abstract: List[Any] = Field(default_factory=list)

    @field_validator("abstract", mode="before")
    @classmethod
    def none_to_list(cls, value: Any) -> Any:
        return _list_or_empty(value)


class DocumentData(_DocsModel):
    """Fields shared by framework and symbol documents."""
    document_kind: ClassVar[str] = "document"

    abstract: List[Any]
    metadata: DocumentMetadata
    references: Dict[str, ReferenceData] = Field(default_factory=dict)
    topic_sections: List[TopicSection] = Field(default_factory=list, alias="topicSections")
    identifier: Optional[DocumentIdentifier] = None

    @field_validator("abstract", "topic_sections", mode="before")
    @classmethod
    def none_to_list(cls, value: Any) -> Any:
        return _list_or_empty(value)

    @field_validator("references", mode="before")
    @classmethod
    def mapping_references(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return {}
        return {key: ref for key, ref in value.items() if isinstance(ref, dict)}

    @property
    def title(self) -> str:
        return self.metadata.title or "Unknown"

    @property
    def path(self) -> str:
        return self.metadata.url or ""

    @property
    def symbol_kind(self) -> str:
        return self.metadata.symbol_kind or "framework"

    @property
    def platform_names(self) -> List[str]:
        return [platform.name for platform in self.metadata.platforms if platform.name]

    @property
    def abstract_text(self) -> str:
        return extract_plain_text(self.abstract)

    @property
    def reference_id(self) -> Optional[str]:
        if self.identifier and self.identifier.url:
            return self.identifier.url
        return None


class FrameworkDocument(DocumentData):
    document_kind: ClassVar[str] = "framework"


class SymbolDocument(DocumentData):
    document_kind: ClassVar[str] = "symbol"


Document = Union[FrameworkDocument, SymbolDocument]


def parse_document(raw: Any) -> Document:
    """Validate a raw payload and return the matching document variant.

    Raises:
        DocumentValidationError: If the payload is not a documentation document.
    """
    if not isinstance(raw, dict):
        raise DocumentValidationError("Document is not a JSON object")

    if 'abstract' not in raw or 'metadata' not in raw:
        raise DocumentValidationError("Document is missing 'abstract' or 'metadata'")

    metadata = raw['metadata']
    if not isinstance(metadata, dict):
        raise DocumentValidationError("Document metadata is not an object")

    model = SymbolDocument if isinstance(metadata.get('symbolKind'), str) else FrameworkDocument
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise DocumentValidationError(f"Invalid document structure: {e.error_count()} errors") from e


def normalize_technologies(payload: Any) -> Optional[Dict[str, Any]]:
    """Reduce a technology catalog payload to a bare identifier -> technology map.

    Accepts either the API wrapper (``{"references": {...}}``) or an already
    unwrapped map. Returns None for anything empty or unrecognizable so callers
    treat it as a cache miss.
    """
    if not isinstance(payload, dict) or not payload:
        return None

    references = payload.get('references')
    if isinstance(references, dict) and references:
        return references

    first_value = next(iter(payload.values()))
    if isinstance(first_value, dict) and ('identifier' in first_value or 'title' in first_value):
        return payload

    return None


def parse_technologies(catalog: Dict[str, Any]) -> Dict[str, Technology]:
    """Parse a normalized catalog, skipping entries that are not technologies."""
    technologies = {}
    for key, value in catalog.items():
        if not isinstance(value, dict):
            continue
        try:
            technologies[key] = Technology.model_validate({'identifier': key, **value})
        except ValidationError:
            continue
    return technologies


class SearchResult(_DocsModel):
    """A reference matched by a direct framework search."""
    title: str
    framework: str
    path: Optional[str] = None
    description: str = ""
    symbol_kind: Optional[str] = None
    platforms: List[str] = Field(default_factory=list)
