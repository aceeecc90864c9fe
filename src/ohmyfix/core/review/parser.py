# OhMyFix
# Copyright (C) 2025 Phoenix Link (Pty) Ltd. All Rights Reserved.
#
# This file is part of OhMyFix.
#
# OhMyFix is dual-licensed:
#
# 1. Open Source: GNU Affero General Public License v3.0 (AGPL-3.0)
#    You may use, modify, and distribute this file under AGPL-3.0.
#    See LICENSE for the full text.
#
# 2. Commercial: Available from Phoenix Link (Pty) Ltd
#    For proprietary use, SaaS deployment, or enterprise licensing.
#    See LICENSE-ENTERPRISE.md or contact info@phoenixlink.co.za
#
# Contributions require a signed CLA. See COPYRIGHT.md and CLA.md.
"""
OhMyFix -- Response Parser (v1.1.0)

Converts the model's review reply into an ordered list of findings.

The reply is natural language with two recognised markers:

    Error: <the erroneous line, copied from the source>
    <optional prose describing the problem>
    Solution: ```javascript
    <corrected line(s)>
    ```

or the literal sentinel ``No errors found``.

The parser is a small state machine with one pending-finding slot:

    Idle --Error:--> AwaitingSolution --Solution: ```--> InSolution --```--> Idle
                          |    ^
                          +----+  (another Error: replaces the pending finding)

Malformed replies never raise. They degrade to fewer findings, and the
``ParseResult`` flags tell the caller what happened.
"""

import logging
import re
from dataclasses import dataclass, field

logger = logging.getLogger("ohmyfix.review.parser")

NO_ERRORS_SENTINEL = "No errors found"
ERROR_MARKER = "Error:"
SOLUTION_MARKER = "Solution:"
DESCRIPTION_LABEL = "Description:"
FENCE = "```"

# ``` optionally followed by a language tag (javascript, c++, objective-c, ...)
_OPENING_FENCE = re.compile(r"^```[\w.+#-]*\s*$")


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass(frozen=True)
class Finding:
    """One defect/fix pair extracted from a model reply."""

    erroneous_line: str
    solution_text: str
    description: str = ""
    partial: bool = False  # solution block was never closed


@dataclass
class ParseResult:
    """Findings in reply order, plus flags describing how the parse went."""

    findings: list[Finding] = field(default_factory=list)
    no_errors: bool = False  # reply was the sentinel
    degraded: bool = False  # not the sentinel, yet nothing usable came out
    partial_blocks: int = 0  # unterminated solution blocks recovered

    def __iter__(self):
        return iter(self.findings)

    def __len__(self) -> int:
        return len(self.findings)

    def __getitem__(self, index: int) -> Finding:
        return self.findings[index]


# =============================================================================
# PARSER STATES
# =============================================================================


@dataclass(frozen=True)
class Idle:
    """No finding pending. Prose is ignored."""


@dataclass(frozen=True)
class AwaitingSolution:
    """An ``Error:`` marker was seen; waiting for its ``Solution:`` block."""

    erroneous_line: str
    description: tuple[str, ...] = ()


@dataclass(frozen=True)
class AwaitingFence:
    """A bare ``Solution:`` line was seen; the opening fence should follow."""

    pending: AwaitingSolution | None


@dataclass
class InSolution:
    """Collecting lines of a fenced solution block.

    ``pending`` is None for a block that had no ``Error:`` marker; such a
    block is consumed so its code cannot start findings, then dropped.
    """

    pending: AwaitingSolution | None
    lines: list[str] = field(default_factory=list)


ParserState = Idle | AwaitingSolution | AwaitingFence | InSolution


# =============================================================================
# RESPONSE PARSER
# =============================================================================


class ResponseParser:
    """
    Parses ``Error:`` / ``Solution:`` replies.

    Usage:
        parser = ResponseParser()
        result = parser.parse(reply_text)
        if result.no_errors:
            ...
        for finding in result:
            print(finding.erroneous_line, "->", finding.solution_text)
    """

    def __init__(self, sentinel: str = NO_ERRORS_SENTINEL):
        self.sentinel = sentinel

    def parse(self, raw: str) -> ParseResult:
        """Parse a raw reply. Never raises on malformed input."""
        result = ParseResult()
        text = (raw or "").strip()

        if text == self.sentinel:
            result.no_errors = True
            return result

        state: ParserState = Idle()
        for line in text.splitlines():
            state = self.step(state, line, result)
        self._finish(state, result)

        result.degraded = not result.findings
        if result.degraded:
            logger.info("Reply yielded no findings (%d chars)", len(text))
        return result

    def step(self, state: ParserState, line: str, result: ParseResult) -> ParserState:
        """Advance the state machine by one line, appending completed findings to ``result``."""
        stripped = line.strip()

        if isinstance(state, InSolution):
            if stripped.startswith(FENCE):
                self._complete(state, result, partial=False)
                return Idle()
            state.lines.append(line)
            return state

        if isinstance(state, AwaitingFence):
            if not stripped:
                return state
            if _OPENING_FENCE.match(stripped):
                return InSolution(pending=state.pending)
            # No fence after all: fall back and read this line normally
            fallback: ParserState = state.pending if state.pending is not None else Idle()
            return self.step(fallback, line, result)

        if stripped.startswith(ERROR_MARKER):
            if isinstance(state, AwaitingSolution):
                logger.debug("Replacing unanswered finding: %.80s", state.erroneous_line)
            return AwaitingSolution(erroneous_line=stripped[len(ERROR_MARKER):].strip())

        if stripped.startswith(SOLUTION_MARKER):
            rest = stripped[len(SOLUTION_MARKER):].strip()
            pending = state if isinstance(state, AwaitingSolution) else None
            if _OPENING_FENCE.match(rest):
                return InSolution(pending=pending)
            if not rest:
                return AwaitingFence(pending=pending)

        if isinstance(state, AwaitingSolution) and stripped:
            prose = stripped
            if prose.startswith(DESCRIPTION_LABEL):
                prose = prose[len(DESCRIPTION_LABEL):].strip()
            if prose:
                return AwaitingSolution(
                    erroneous_line=state.erroneous_line,
                    description=state.description + (prose,),
                )
        return state

    def _finish(self, state: ParserState, result: ParseResult):
        if isinstance(state, InSolution):
            self._complete(state, result, partial=True)
        elif isinstance(state, AwaitingSolution):
            logger.debug("Dropping finding without solution: %.80s", state.erroneous_line)
        elif isinstance(state, AwaitingFence) and state.pending is not None:
            logger.debug(
                "Dropping finding whose solution never opened: %.80s",
                state.pending.erroneous_line,
            )

    def _complete(self, state: InSolution, result: ParseResult, partial: bool):
        if state.pending is None:
            logger.debug("Dropping solution block with no Error: marker")
            return

        if partial:
            result.partial_blocks += 1
            logger.warning(
                "Solution block never closed; using remaining %d line(s)", len(state.lines)
            )

        result.findings.append(
            Finding(
                erroneous_line=state.pending.erroneous_line,
                solution_text="\n".join(state.lines).strip(),
                description=" ".join(state.pending.description),
                partial=partial,
            )
        )


_default_parser = ResponseParser()


def parse_response(raw: str) -> ParseResult:
    """Parse a reply with the default sentinel."""
    return _default_parser.parse(raw)
