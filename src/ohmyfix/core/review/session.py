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
OhMyFix -- Review Session (v1.1.0)

Drives one review pass over one document:

    reply --parse--> findings
    for each finding, in reply order:
        decide(finding) --SKIP--> skipped
                        --ACCEPT--> match against the CURRENT document
                                      --found--> patch --> applied
                                      --none---> unmatched
                        --ABORT--> stop; the rest stay unreviewed

Findings are processed strictly one at a time. The decision callback is
the only suspension point; a match followed by its patch always runs to
completion once started.
"""

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ohmyfix.core.review.matcher import LineMatcher, MatchResult
from ohmyfix.core.review.parser import Finding, ParseResult, ResponseParser
from ohmyfix.core.review.patcher import AppliedPatch, PatchApplier, SourceDocument

logger = logging.getLogger("ohmyfix.review.session")


# =============================================================================
# DECISIONS & OUTCOMES
# =============================================================================


class Decision(Enum):
    """What to do with a finding."""

    ACCEPT = "accept"
    SKIP = "skip"
    ABORT = "abort"


class FindingStatus(Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"
    UNMATCHED = "unmatched"
    NOT_REVIEWED = "not_reviewed"


@dataclass
class FindingReport:
    """What happened to a single finding."""

    index: int
    finding: Finding
    status: FindingStatus
    match: MatchResult | None = None
    patch: AppliedPatch | None = None


@dataclass
class SessionOutcome:
    """Aggregate counters for one review pass. Reported, never persisted."""

    found: int = 0
    applied: int = 0
    skipped: int = 0
    unmatched: int = 0
    remaining: int = 0
    no_errors: bool = False
    degraded: bool = False
    partial_blocks: int = 0
    aborted: bool = False
    reports: list[FindingReport] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        """The model reported no errors."""
        return self.no_errors

    @property
    def changed(self) -> bool:
        return self.applied > 0

    def summary(self) -> str:
        if self.no_errors:
            return "No errors found"
        if self.degraded:
            return "Reply could not be parsed into findings"
        parts = [
            f"{self.found} found",
            f"{self.applied} applied",
            f"{self.skipped} skipped",
            f"{self.unmatched} unmatched",
        ]
        if self.aborted:
            parts.append(f"{self.remaining} not reviewed")
        if self.partial_blocks:
            parts.append(f"{self.partial_blocks} partial")
        return ", ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "found": self.found,
            "applied": self.applied,
            "skipped": self.skipped,
            "unmatched": self.unmatched,
            "remaining": self.remaining,
            "no_errors": self.no_errors,
            "degraded": self.degraded,
            "partial_blocks": self.partial_blocks,
            "aborted": self.aborted,
            "findings": [
                {
                    "index": r.index,
                    "erroneous_line": r.finding.erroneous_line,
                    "solution": r.finding.solution_text,
                    "description": r.finding.description,
                    "partial": r.finding.partial,
                    "status": r.status.value,
                    "strategy": r.match.strategy.value if r.match else None,
                    "line": r.match.line_index + 1 if r.match and r.match.found else None,
                }
                for r in self.reports
            ],
        }


DecisionResult = bool | Decision | None
DecisionCallback = Callable[[Finding], DecisionResult | Awaitable[DecisionResult]]


def always_accept(finding: Finding) -> Decision:
    return Decision.ACCEPT


def always_skip(finding: Finding) -> Decision:
    return Decision.SKIP


def _coerce(result: DecisionResult) -> Decision:
    if isinstance(result, Decision):
        return result
    return Decision.ACCEPT if result else Decision.SKIP


# =============================================================================
# REVIEW SESSION
# =============================================================================


class ReviewSession:
    """
    One review pass: parse, decide, match, patch.

    Usage:
        session = ReviewSession()
        final_text, outcome = session.run(source_text, reply, always_accept)

        # async decision sources (prompts, web approvals)
        final_text, outcome = await session.arun(source_text, reply, ask_user)
    """

    def __init__(
        self,
        parser: ResponseParser | None = None,
        matcher: LineMatcher | None = None,
        applier: PatchApplier | None = None,
    ):
        self.parser = parser or ResponseParser()
        self.matcher = matcher or LineMatcher()
        self.applier = applier or PatchApplier()
        self.document = SourceDocument()

    def run(self, original_text: str, raw: str, decide: DecisionCallback) -> tuple[str, SessionOutcome]:
        """Synchronous pass. ``decide`` must return a plain decision."""
        parsed, outcome = self._begin(original_text, raw)
        if outcome.no_errors:
            return original_text, outcome

        for index, finding in enumerate(parsed):
            result = decide(finding)
            if inspect.isawaitable(result):
                if inspect.iscoroutine(result):
                    result.close()
                raise TypeError("decision callback returned an awaitable; use arun()")
            if not self._process(index, finding, _coerce(result), parsed, outcome):
                break

        return self._end(outcome)

    async def arun(self, original_text: str, raw: str, decide: DecisionCallback) -> tuple[str, SessionOutcome]:
        """Async pass. ``decide`` may return a decision or an awaitable of one."""
        parsed, outcome = self._begin(original_text, raw)
        if outcome.no_errors:
            return original_text, outcome

        for index, finding in enumerate(parsed):
            result = decide(finding)
            if inspect.isawaitable(result):
                result = await result
            if not self._process(index, finding, _coerce(result), parsed, outcome):
                break

        return self._end(outcome)

    # =========================================================================
    # INTERNAL
    # =========================================================================

    def _begin(self, original_text: str, raw: str) -> tuple[ParseResult, SessionOutcome]:
        self.document = SourceDocument.from_text(original_text)
        parsed = self.parser.parse(raw)
        outcome = SessionOutcome(
            found=len(parsed),
            no_errors=parsed.no_errors,
            degraded=parsed.degraded,
            partial_blocks=parsed.partial_blocks,
        )
        logger.info(
            "Review started: %d finding(s), %d line(s)", outcome.found, len(self.document)
        )
        return parsed, outcome

    def _process(
        self,
        index: int,
        finding: Finding,
        decision: Decision,
        parsed: ParseResult,
        outcome: SessionOutcome,
    ) -> bool:
        """Handle one finding. Returns False when the session should stop."""
        if decision is Decision.ABORT:
            outcome.aborted = True
            outcome.remaining = len(parsed) - index
            for later in range(index, len(parsed)):
                outcome.reports.append(
                    FindingReport(later, parsed[later], FindingStatus.NOT_REVIEWED)
                )
            logger.info("Review aborted with %d finding(s) left", outcome.remaining)
            return False

        if decision is Decision.SKIP:
            outcome.skipped += 1
            outcome.reports.append(FindingReport(index, finding, FindingStatus.SKIPPED))
            return True

        match = self.matcher.locate(self.document.lines, finding.erroneous_line)
        if not match.found:
            outcome.unmatched += 1
            outcome.reports.append(
                FindingReport(index, finding, FindingStatus.UNMATCHED, match=match)
            )
            logger.info("Finding %d unmatched: %.80r", index + 1, finding.erroneous_line)
            return True

        patch = self.applier.patch(self.document, match.line_index, finding.solution_text)
        outcome.applied += 1
        outcome.reports.append(
            FindingReport(index, finding, FindingStatus.APPLIED, match=match, patch=patch)
        )
        return True

    def _end(self, outcome: SessionOutcome) -> tuple[str, SessionOutcome]:
        logger.info("Review finished: %s", outcome.summary())
        return self.document.to_text(), outcome
