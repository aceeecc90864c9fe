"""Tests for ohmyfix.core.review.matcher -- line location fallback chain."""

import pytest

from ohmyfix.core.review.matcher import (
    LineMatcher,
    MatchResult,
    MatchStrategy,
    collapse_whitespace,
    locate_line,
    strip_quotes,
)

DOC = ["const x = 1;", "foo()"]


class TestStripQuotes:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("'foo()'", "foo()"),
            ('"foo()"', "foo()"),
            ("  foo()  ", "foo()"),
            ("''foo()''", "'foo()'"),
            ("'", ""),
            ("", ""),
            ("`foo()`", "`foo()`"),
        ],
    )
    def test_single_layer(self, raw, expected):
        assert strip_quotes(raw) == expected

    def test_collapse_whitespace(self):
        assert collapse_whitespace("  let   a =\t1 ") == "let a = 1"


class TestFallbackChain:
    def test_exact_after_quote_strip(self):
        assert locate_line(DOC, "'foo()'") == MatchResult(True, 1, MatchStrategy.EXACT)

    def test_substring(self):
        assert locate_line(DOC, "foo(") == MatchResult(True, 1, MatchStrategy.SUBSTRING)

    def test_not_found(self):
        result = locate_line(DOC, "bar()")
        assert result.found is False
        assert result.line_index is None
        assert result.strategy is MatchStrategy.NOT_FOUND

    def test_indentation_is_ignored_for_exact(self):
        result = locate_line(["function f() {", "    return 1", "}"], "return 1")
        assert result == MatchResult(True, 1, MatchStrategy.EXACT)

    def test_normalized_whitespace(self):
        result = locate_line(["let  a  =  1"], "let a = 1")
        assert result == MatchResult(True, 0, MatchStrategy.NORMALIZED)

    def test_exact_preferred_over_earlier_substring(self):
        lines = ["foo();  // foo() again", "foo();"]
        assert locate_line(lines, "foo();") == MatchResult(True, 1, MatchStrategy.EXACT)

    def test_duplicates_resolve_to_first(self):
        lines = ["x++;", "y++;", "x++;"]
        assert locate_line(lines, "x++;").line_index == 0

    def test_empty_needle_never_matches(self):
        assert locate_line(["", "a"], "").found is False
        assert locate_line(["''", "a"], "''").found is False

    def test_empty_document(self):
        assert LineMatcher().locate([], "foo()").found is False

    def test_not_found_factory(self):
        assert MatchResult.not_found() == MatchResult(False, None, MatchStrategy.NOT_FOUND)
