"""Tests for ohmyfix.core.review.parser -- Error:/Solution: reply parsing."""

import pytest

from ohmyfix.core.review.parser import (
    AwaitingFence,
    AwaitingSolution,
    Finding,
    Idle,
    InSolution,
    ParseResult,
    ResponseParser,
    parse_response,
)


def _reply(*lines):
    return "\n".join(lines)


class TestSentinel:
    def test_sentinel_sets_no_errors(self):
        result = parse_response("No errors found")
        assert result.no_errors is True
        assert result.findings == []
        assert result.degraded is False

    def test_sentinel_is_trimmed(self):
        result = parse_response("  \n No errors found \n\n")
        assert result.no_errors is True

    def test_sentinel_inside_prose_is_not_clean(self):
        result = parse_response("I looked carefully. No errors found")
        assert result.no_errors is False
        assert result.degraded is True

    def test_custom_sentinel(self):
        parser = ResponseParser(sentinel="LGTM")
        assert parser.parse("LGTM").no_errors is True
        assert parser.parse("No errors found").no_errors is False


class TestWellFormedPairs:
    def test_single_pair(self):
        result = parse_response(_reply(
            "Error: let a = 1",
            "Solution: ```javascript",
            "let a = 1;",
            "```",
        ))
        assert len(result) == 1
        assert result[0] == Finding(erroneous_line="let a = 1", solution_text="let a = 1;")
        assert result.degraded is False
        assert result.partial_blocks == 0

    def test_marker_contents_are_stripped(self):
        result = parse_response(_reply(
            "Error:     foo()   ",
            "Solution: ```",
            "",
            "   foo();   ",
            "",
            "```",
        ))
        assert result[0].erroneous_line == "foo()"
        assert result[0].solution_text == "foo();"

    def test_multiline_solution_keeps_inner_lines(self):
        result = parse_response(_reply(
            "Error: if (x) doThing()",
            "Solution: ```js",
            "if (x) {",
            "  doThing();",
            "}",
            "```",
        ))
        assert result[0].solution_text == "if (x) {\n  doThing();\n}"

    def test_findings_keep_reply_order(self):
        result = parse_response(_reply(
            "Error: first",
            "Solution: ```",
            "first;",
            "```",
            "Some prose between findings.",
            "Error: second",
            "Solution: ```",
            "second;",
            "```",
        ))
        assert [f.erroneous_line for f in result] == ["first", "second"]

    def test_prose_becomes_description(self):
        result = parse_response(_reply(
            "Error: console.log(x",
            "Description: Missing closing parenthesis.",
            "The call never ends.",
            "Solution: ```",
            "console.log(x);",
            "```",
        ))
        assert result[0].description == "Missing closing parenthesis. The call never ends."

    def test_fence_on_next_line(self):
        result = parse_response(_reply(
            "Error: var y = 2",
            "Solution:",
            "",
            "```javascript",
            "const y = 2;",
            "```",
        ))
        assert result[0].solution_text == "const y = 2;"

    def test_indented_markers(self):
        result = parse_response(_reply(
            "  Error: a()",
            "  Solution: ```",
            "a();",
            "  ```",
        ))
        assert result[0].erroneous_line == "a()"
        assert result[0].solution_text == "a();"

    def test_crlf_reply(self):
        result = parse_response("Error: a()\r\nSolution: ```\r\na();\r\n```\r\n")
        assert result[0].solution_text == "a();"


class TestMalformedReplies:
    def test_error_without_solution_yields_nothing(self):
        result = parse_response("Error: let a = 1\nThis line is wrong.")
        assert result.findings == []
        assert result.degraded is True

    def test_last_error_wins(self):
        result = parse_response(_reply(
            "Error: first",
            "Error: second",
            "Solution: ```",
            "second;",
            "```",
        ))
        assert len(result) == 1
        assert result[0].erroneous_line == "second"

    def test_replaced_error_drops_its_description(self):
        result = parse_response(_reply(
            "Error: first",
            "about first",
            "Error: second",
            "Solution: ```",
            "second;",
            "```",
        ))
        assert result[0].description == ""

    def test_unterminated_block_is_partial(self):
        result = parse_response(_reply(
            "Error: a()",
            "Solution: ```",
            "a();",
            "b();",
        ))
        assert len(result) == 1
        assert result[0].partial is True
        assert result[0].solution_text == "a();\nb();"
        assert result.partial_blocks == 1
        assert result.degraded is False

    def test_orphan_solution_block_is_dropped(self):
        result = parse_response(_reply(
            "Solution: ```",
            "Error: inside the block",
            "```",
        ))
        assert result.findings == []
        assert result.degraded is True

    def test_solution_without_fence_falls_back(self):
        result = parse_response(_reply(
            "Error: a()",
            "Solution:",
            "just call it properly",
            "Error: b()",
            "Solution: ```",
            "b();",
            "```",
        ))
        assert [f.erroneous_line for f in result] == ["b()"]

    def test_empty_reply_is_degraded(self):
        result = parse_response("")
        assert result.no_errors is False
        assert result.degraded is True

    def test_none_reply_does_not_raise(self):
        result = parse_response(None)
        assert result.degraded is True

    def test_prose_only(self):
        result = parse_response("The code looks mostly fine but consider tests.")
        assert result.findings == []
        assert result.degraded is True


class TestStateTransitions:
    @pytest.fixture
    def parser(self):
        return ResponseParser()

    def test_idle_ignores_prose(self, parser):
        result = ParseResult()
        assert parser.step(Idle(), "hello", result) == Idle()

    def test_error_from_idle(self, parser):
        state = parser.step(Idle(), "Error: x", ParseResult())
        assert state == AwaitingSolution(erroneous_line="x")

    def test_error_replaces_pending(self, parser):
        state = parser.step(AwaitingSolution("x"), "Error: y", ParseResult())
        assert state == AwaitingSolution(erroneous_line="y")

    def test_bare_solution_awaits_fence(self, parser):
        pending = AwaitingSolution("x")
        state = parser.step(pending, "Solution:", ParseResult())
        assert state == AwaitingFence(pending=pending)

    def test_fence_opens_block(self, parser):
        pending = AwaitingSolution("x")
        state = parser.step(AwaitingFence(pending=pending), "```js", ParseResult())
        assert isinstance(state, InSolution)
        assert state.pending == pending

    def test_closing_fence_completes(self, parser):
        result = ParseResult()
        state = parser.step(InSolution(AwaitingSolution("x"), ["y"]), "```", result)
        assert state == Idle()
        assert result.findings == [Finding("x", "y")]
