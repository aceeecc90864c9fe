"""Tests for ohmyfix.core.llm.prompts."""

from ohmyfix.core.llm.prompts import build_review_prompt, language_for
from ohmyfix.core.review.parser import NO_ERRORS_SENTINEL


class TestLanguageFor:
    def test_known(self):
        assert language_for("src/app.js") == "javascript"
        assert language_for("Component.TSX") == "tsx"

    def test_unknown(self):
        assert language_for("Makefile") == "text"


class TestBuildReviewPrompt:
    def test_contains_code_and_format(self):
        prompt = build_review_prompt("app.js", "let a = 1")
        assert 'file "app.js"' in prompt
        assert "```javascript\nlet a = 1\n```" in prompt
        assert "Error:" in prompt
        assert "Solution: ```javascript" in prompt

    def test_mentions_sentinel(self):
        assert f'"{NO_ERRORS_SENTINEL}"' in build_review_prompt("a.py", "x = 1")
