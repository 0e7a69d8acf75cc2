"""Tokenizing and scoring shared by the symbol indexes."""

import re
from typing import Dict, Iterable, List, Optional, Pattern

_DELIMITERS = re.compile(r'[\s/._-]+')
_UPPERCASE_BOUNDARY = re.compile(r'(?=[A-Z])')

SYNONYMS: Dict[str, List[str]] = {
    'auth': ['authentication', 'authorize', 'oauth', 'signin'],
    'notification': ['push', 'alert'],
    'tabbar': ['tab', 'tabs'],
    'modal': ['sheet', 'dialog'],
    'db': ['database', 'storage'],
    'net': ['network', 'networking'],
}

TITLE_MATCH_SCORE = 50
TOKEN_MATCH_SCORE = 30
ABSTRACT_MATCH_SCORE = 10
WILDCARD_MATCH_SCORE = 100


def tokenize(text: str) -> List[str]:
    """Split text into search tokens.

    ``GridItem`` yields ``griditem``, ``GridItem``, ``grid``, ``Grid``,
    ``item`` and ``Item``.
    """
    if not text:
        return []

    tokens: Dict[str, None] = {}
    for piece in _DELIMITERS.split(text):
        if not piece:
            continue
        tokens[piece.lower()] = None
        tokens[piece] = None

        camel_parts = [part for part in _UPPERCASE_BOUNDARY.split(piece) if part]
        if len(camel_parts) > 1:
            for part in camel_parts:
                tokens[part.lower()] = None
                tokens[part] = None
            tokens[''.join(camel_parts).lower()] = None

    return list(tokens)


def expand_tokens(tokens: Iterable[str]) -> List[str]:
    """Lower-case query tokens and add their synonyms."""
    expanded: Dict[str, None] = {}
    for token in tokens:
        normalized = token.lower()
        expanded[normalized] = None
        for synonym in SYNONYMS.get(normalized, []):
            expanded[synonym.lower()] = None
    return list(expanded)


def is_wildcard_query(query: str) -> bool:
    return '*' in query or '?' in query


def compile_wildcard(query: str) -> Pattern[str]:
    """Translate ``*`` and ``?`` into an anchored, case-insensitive pattern."""
    parts = []
    for char in query:
        if char == '*':
            parts.append('.*')
        elif char == '?':
            parts.append('.')
        else:
            parts.append(re.escape(char))
    return re.compile(f"^{''.join(parts)}$", re.IGNORECASE | re.DOTALL)


def score_entry(entry, query_tokens: List[str], pattern: Optional[Pattern[str]] = None) -> int:
    """Score an index entry against expanded query tokens or a wildcard pattern."""
    if pattern is not None:
        if (pattern.match(entry.title) or pattern.match(entry.path)
                or any(pattern.match(token) for token in entry.tokens)):
            return WILDCARD_MATCH_SCORE
        return 0

    title = entry.title.lower()
    abstract = entry.abstract.lower()
    score = 0
    for token in query_tokens:
        lowered = token.lower()
        if lowered in title:
            score += TITLE_MATCH_SCORE
        if token in entry.tokens:
            score += TOKEN_MATCH_SCORE
        if lowered in abstract:
            score += ABSTRACT_MATCH_SCORE
    return score
