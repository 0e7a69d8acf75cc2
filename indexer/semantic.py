"""Cosine re-ranking of symbol index candidates.

Queries and entries are compared as bags of lower-cased tokens; there is no
embedding model involved.
"""

import math
from collections import Counter
from typing import Iterable, List

from .symbol_index import SymbolIndexEntry


def to_vector(tokens: Iterable[str]) -> Counter:
    return Counter(token.lower() for token in tokens)


def cosine_similarity(a: Counter, b: Counter) -> float:
    magnitude = math.sqrt(sum(value * value for value in a.values())) * \
        math.sqrt(sum(value * value for value in b.values()))
    if magnitude == 0:
        return 0.0

    dot = sum(value * b[token] for token, value in a.items() if token in b)
    return dot / magnitude


def semantic_rank(query: str, entries: Iterable[SymbolIndexEntry],
                  max_results: int = 20) -> List[SymbolIndexEntry]:
    """Order entries by similarity to the whitespace-separated query words.

    Entries sharing no token with the query are dropped; ties keep the
    order the entries came in.
    """
    query_vector = to_vector(query.split())

    scored = []
    for entry in entries:
        score = cosine_similarity(query_vector, to_vector(entry.tokens))
        if score > 0:
            scored.append((score, entry))

    scored.sort(key=lambda item: item[0], reverse=True)
    return [entry for _, entry in scored[:max_results]]
