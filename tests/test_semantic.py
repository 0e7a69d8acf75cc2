from collections import Counter

from indexer.semantic import cosine_similarity, semantic_rank, to_vector
from indexer.symbol_index import SymbolIndexEntry


def entry(title, *tokens):
    return SymbolIndexEntry(
        id=title, title=title, path=f"/documentation/swiftui/{title.lower()}", kind="struct",
        abstract="", platforms=(), tokens=frozenset(tokens)
    )


class TestVectors:
    """Test token vectors and similarity."""

    def test_to_vector_folds_case(self):
        assert to_vector(["Grid", "grid", "item"]) == Counter({"grid": 2, "item": 1})

    def test_identical_vectors(self):
        vector = to_vector(["grid", "item"])

        assert round(cosine_similarity(vector, vector), 6) == 1.0

    def test_empty_vector_scores_zero(self):
        assert cosine_similarity(Counter(), to_vector(["grid"])) == 0.0
        assert cosine_similarity(to_vector(["grid"]), Counter()) == 0.0


class TestSemanticRank:
    """Test re-ranking of candidates."""

    def test_orders_by_similarity_and_drops_unrelated(self):
        lazy_grid = entry("LazyVGrid", "grid", "lazy", "vertical", "container")
        grid_item = entry("GridItem", "grid", "item")
        toggle = entry("Toggle", "toggle")

        ranked = semantic_rank("grid item", [lazy_grid, toggle, grid_item])

        assert [result.title for result in ranked] == ["GridItem", "LazyVGrid"]

    def test_max_results(self):
        entries = [entry("GridItem", "grid", "item"), entry("GridRow", "grid", "row")]

        assert [result.title for result in semantic_rank("grid", entries, max_results=1)] == ["GridItem"]

    def test_ties_keep_candidate_order(self):
        entries = [entry("GridRow", "grid", "row"), entry("GridItem", "grid", "item")]

        assert [result.title for result in semantic_rank("grid", entries)] == ["GridRow", "GridItem"]

    def test_blank_query(self):
        assert semantic_rank("   ", [entry("GridItem", "grid")]) == []
