"""Symbol indexing for DevDocs Cache.

Provides the tokenizer and scorer, the local and global symbol indexes and
cosine re-ranking of their results.
"""

from .tokenizer import (
    SYNONYMS,
    tokenize,
    expand_tokens,
    is_wildcard_query,
    compile_wildcard,
    score_entry
)
from .symbol_index import (
    SymbolIndexEntry,
    IndexBuildReport,
    MatchExplanation,
    SymbolIndex,
    LocalSymbolIndex,
    GlobalSymbolIndex,
    technology_slug
)
from .semantic import cosine_similarity, semantic_rank, to_vector

__all__ = [
    'SYNONYMS',
    'tokenize',
    'expand_tokens',
    'is_wildcard_query',
    'compile_wildcard',
    'score_entry',
    'SymbolIndexEntry',
    'IndexBuildReport',
    'MatchExplanation',
    'SymbolIndex',
    'LocalSymbolIndex',
    'GlobalSymbolIndex',
    'technology_slug',
    'to_vector',
    'cosine_similarity',
    'semantic_rank'
]
