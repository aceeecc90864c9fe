"""Tests for ohmyfix.core.review.session -- the parse/decide/match/patch pass."""

import asyncio
from unittest.mock import MagicMock

import pytest

from ohmyfix.core.review import (
    Decision,
    FindingStatus,
    MatchStrategy,
    PatchApplier,
    ReviewSession,
    always_accept,
    always_skip,
)


def _finding(error, *solution):
    return "\n".join([f"Error: {error}", "Solution: ```javascript", *solution, "```"])


def _reply(*blocks):
    return "\n\n".join(blocks)


class TestEndToEnd:
    def test_single_fix_applied(self):
        final, outcome = ReviewSession().run(
            "let a = 1\nconsole.log(a)",
            _finding("let a = 1", "let a = 1;"),
            always_accept,
        )
        assert final == "let a = 1;\nconsole.log(a)"
        assert (outcome.applied, outcome.skipped, outcome.unmatched) == (1, 0, 0)
        assert outcome.found == 1
        assert outcome.changed is True

    def test_reject_leaves_text_identical(self):
        original = "let a = 1\r\nconsole.log(a)\r\n"
        final, outcome = ReviewSession().run(
            original, _finding("let a = 1", "let a = 1;"), always_skip
        )
        assert final == original
        assert outcome.skipped == 1
        assert outcome.applied == 0
        assert outcome.changed is False

    def test_bool_callback(self):
        reply = _reply(_finding("a", "a;"), _finding("b", "b;"))
        answers = iter([True, False])
        final, outcome = ReviewSession().run("a\nb", reply, lambda f: next(answers))
        assert final == "a;\nb"
        assert (outcome.applied, outcome.skipped) == (1, 1)

    def test_unmatched_does_not_stop_session(self):
        reply = _reply(_finding("missing()", "x"), _finding("b", "b;"))
        final, outcome = ReviewSession().run("a\nb", reply, always_accept)
        assert final == "a\nb;"
        assert outcome.unmatched == 1
        assert outcome.applied == 1
        assert outcome.reports[0].status is FindingStatus.UNMATCHED
        assert outcome.reports[1].status is FindingStatus.APPLIED


class TestSequentialApplication:
    def test_second_finding_matches_edited_document(self):
        reply = _reply(
            _finding("let a = 1", "let a = 2"),
            _finding("let a = 2", "const a = 2;"),
        )
        final, outcome = ReviewSession().run("let a = 1\nuse(a)", reply, always_accept)
        assert final == "const a = 2;\nuse(a)"
        assert outcome.applied == 2

    def test_multiline_replacement_shifts_later_matches(self):
        reply = _reply(
            _finding("if (x) go()", "if (x) {", "  go();", "}"),
            _finding("stop()", "stop();"),
        )
        final, outcome = ReviewSession().run("if (x) go()\nstop()", reply, always_accept)
        assert final == "if (x) {\n  go();\n}\nstop();"
        assert outcome.reports[1].match.line_index == 3

    def test_replaced_line_no_longer_matches(self):
        reply = _reply(_finding("a()", "b()"), _finding("a()", "c()"))
        final, outcome = ReviewSession().run("a()", reply, always_accept)
        assert final == "b()"
        assert outcome.applied == 1
        assert outcome.unmatched == 1

    def test_mixed_line_endings_keep_other_lines(self):
        final, outcome = ReviewSession().run(
            "let a = 1\nlet b = 2\nlet c = 3\r\n",
            _finding("let b = 2", "let b = 3;"),
            always_accept,
        )
        assert final == "let a = 1\nlet b = 3;\nlet c = 3\r\n"
        assert outcome.reports[0].match.strategy is MatchStrategy.EXACT


class TestShortCircuits:
    def test_no_errors_sentinel(self):
        decide = MagicMock()
        final, outcome = ReviewSession().run("x = 1\n", "No errors found", decide)
        assert final == "x = 1\n"
        assert outcome.clean is True
        assert outcome.summary() == "No errors found"
        decide.assert_not_called()

    def test_degraded_reply(self):
        final, outcome = ReviewSession().run("x = 1", "I am not sure.", always_accept)
        assert final == "x = 1"
        assert outcome.degraded is True
        assert outcome.clean is False
        assert outcome.summary() == "Reply could not be parsed into findings"

    def test_partial_block_is_reported(self):
        reply = "Error: a\nSolution: ```\na;"
        final, outcome = ReviewSession().run("a", reply, always_accept)
        assert final == "a;"
        assert outcome.partial_blocks == 1
        assert "1 partial" in outcome.summary()


class TestAbort:
    def test_abort_stops_and_counts_remaining(self):
        reply = _reply(_finding("a", "a;"), _finding("b", "b;"), _finding("c", "c;"))
        answers = iter([Decision.ACCEPT, Decision.ABORT])
        final, outcome = ReviewSession().run("a\nb\nc", reply, lambda f: next(answers))
        assert final == "a;\nb\nc"
        assert outcome.aborted is True
        assert outcome.remaining == 2
        assert [r.status for r in outcome.reports] == [
            FindingStatus.APPLIED,
            FindingStatus.NOT_REVIEWED,
            FindingStatus.NOT_REVIEWED,
        ]
        assert outcome.summary() == "3 found, 1 applied, 0 skipped, 0 unmatched, 2 not reviewed"


class TestAsync:
    def test_arun_awaits_callback(self):
        async def decide(finding):
            await asyncio.sleep(0)
            return finding.erroneous_line == "b"

        reply = _reply(_finding("a", "a;"), _finding("b", "b;"))
        final, outcome = asyncio.run(ReviewSession().arun("a\nb", reply, decide))
        assert final == "a\nb;"
        assert (outcome.applied, outcome.skipped) == (1, 1)

    def test_arun_accepts_plain_callback(self):
        final, _ = asyncio.run(
            ReviewSession().arun("a", _finding("a", "a;"), always_accept)
        )
        assert final == "a;"

    def test_run_rejects_async_callback(self):
        async def decide(finding):
            return True

        with pytest.raises(TypeError):
            ReviewSession().run("a", _finding("a", "a;"), decide)


class TestOutcomeReporting:
    def test_to_dict(self):
        _, outcome = ReviewSession().run("  a", _finding("'a'", "a;"), always_accept)
        data = outcome.to_dict()
        assert data["applied"] == 1
        assert data["findings"][0]["status"] == "applied"
        assert data["findings"][0]["strategy"] == MatchStrategy.EXACT.value
        assert data["findings"][0]["line"] == 1

    def test_custom_applier_is_used(self):
        session = ReviewSession(applier=PatchApplier(preserve_indentation=False))
        final, _ = session.run("    a", _finding("a", "a;"), always_accept)
        assert final == "a;"

    def test_default_applier_keeps_indent(self):
        final, _ = ReviewSession().run("    a", _finding("a", "a;"), always_accept)
        assert final == "    a;"
