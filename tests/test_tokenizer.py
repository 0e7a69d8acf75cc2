import pytest

from indexer.symbol_index import SymbolIndexEntry, create_tokens
from indexer.tokenizer import (
    ABSTRACT_MATCH_SCORE,
    TITLE_MATCH_SCORE,
    TOKEN_MATCH_SCORE,
    WILDCARD_MATCH_SCORE,
    compile_wildcard,
    expand_tokens,
    is_wildcard_query,
    score_entry,
    tokenize
)


def make_entry(title, abstract="", path="", tokens=None):
    if tokens is None:
        tokens = create_tokens(title, abstract, path, ())
    return SymbolIndexEntry(
        id=title, title=title, path=path, kind="struct",
        abstract=abstract, platforms=(), tokens=frozenset(tokens)
    )


class TestTokenize:
    """Test token generation."""

    def test_camel_case_split(self):
        assert tokenize("GridItem") == ["griditem", "GridItem", "grid", "Grid", "item", "Item"]

    def test_delimiters(self):
        tokens = tokenize("documentation/swiftui/view-layout")

        assert {"documentation", "swiftui", "view", "layout"} <= set(tokens)

    def test_empty_text(self):
        assert tokenize("") == []
        assert tokenize(" / ") == []

    def test_single_word_keeps_both_cases(self):
        assert tokenize("Toggle") == ["toggle", "Toggle"]

    def test_expand_adds_synonyms(self):
        expanded = expand_tokens(["Auth", "grid"])

        assert expanded[:2] == ["auth", "authentication"]
        assert "oauth" in expanded
        assert expanded[-1] == "grid"


class TestScoring:
    """Test keyword and wildcard scoring."""

    def test_title_token_and_abstract_add_up(self):
        entry = make_entry("GridItem", abstract="A description of a row or a column in a lazy grid.")

        score = score_entry(entry, expand_tokens(tokenize("grid")))

        assert score == TITLE_MATCH_SCORE + TOKEN_MATCH_SCORE + ABSTRACT_MATCH_SCORE

    def test_title_outranks_abstract(self):
        in_title = make_entry("ButtonStyle", abstract="Styles a button.", tokens=())
        in_abstract = make_entry("Label", abstract="Pairs with a button.", tokens=())
        query = expand_tokens(tokenize("button"))

        assert score_entry(in_title, query) == TITLE_MATCH_SCORE + ABSTRACT_MATCH_SCORE
        assert score_entry(in_abstract, query) == ABSTRACT_MATCH_SCORE

    def test_no_match_scores_zero(self):
        assert score_entry(make_entry("Toggle"), expand_tokens(tokenize("grid"))) == 0

    def test_wildcard_scores_flat(self):
        pattern = compile_wildcard("Grid*")

        assert score_entry(make_entry("GridItem"), [], pattern) == WILDCARD_MATCH_SCORE
        assert score_entry(make_entry("LazyVGrid"), [], pattern) == WILDCARD_MATCH_SCORE
        assert score_entry(make_entry("ListView"), [], pattern) == 0


class TestWildcard:
    """Test wildcard translation."""

    @pytest.mark.parametrize("query,expected", [
        ("Grid*", True),
        ("Lazy?Grid", True),
        ("GridItem", False),
    ])
    def test_detection(self, query, expected):
        assert is_wildcard_query(query) is expected

    def test_anchored_and_case_insensitive(self):
        pattern = compile_wildcard("grid*")

        assert pattern.match("GridItem")
        assert not pattern.match("LazyVGrid")

    def test_question_mark_matches_one_character(self):
        pattern = compile_wildcard("Lazy?Grid")

        assert pattern.match("LazyVGrid")
        assert pattern.match("LazyHGrid")
        assert not pattern.match("LazyGrid")

    def test_other_characters_are_literal(self):
        pattern = compile_wildcard("GridItem.Size*")

        assert pattern.match("GridItem.Size")
        assert not pattern.match("GridItemXSize")
        assert compile_wildcard("a+b*").match("a+bc")
