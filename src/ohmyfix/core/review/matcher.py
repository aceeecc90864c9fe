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
OhMyFix -- Line Matcher (v1.1.0)

Finds the document line a finding refers to. The model's quoted
"erroneous line" often differs from the source by quoting or whitespace,
so matching walks a fallback chain and the first tier with a hit wins:

    1. EXACT       -- equal after stripping one layer of quotes and whitespace
    2. NORMALIZED  -- equal after also collapsing internal whitespace runs
    3. SUBSTRING   -- needle contained in the line
    4. NOT_FOUND

Each tier scans top to bottom. Duplicate or overlapping lines resolve to
the first candidate.
"""

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger("ohmyfix.review.matcher")

QUOTE_CHARS = "\"'"

_WHITESPACE_RUN = re.compile(r"\s+")


class MatchStrategy(Enum):
    """Which tier of the fallback chain located the line."""

    EXACT = "exact"
    NORMALIZED = "normalized"
    SUBSTRING = "substring"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class MatchResult:
    found: bool
    line_index: int | None
    strategy: MatchStrategy

    @classmethod
    def not_found(cls) -> "MatchResult":
        return cls(found=False, line_index=None, strategy=MatchStrategy.NOT_FOUND)


def strip_quotes(text: str) -> str:
    """Strip surrounding whitespace and a single layer of leading/trailing quotes."""
    text = text.strip()
    if text and text[0] in QUOTE_CHARS:
        text = text[1:]
    if text and text[-1] in QUOTE_CHARS:
        text = text[:-1]
    return text.strip()


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RUN.sub(" ", strip_quotes(text))


class LineMatcher:
    """
    Locates a finding's erroneous line in a sequence of lines.

    Usage:
        matcher = LineMatcher()
        match = matcher.locate(document.lines, finding.erroneous_line)
        if match.found:
            ...
    """

    def locate(self, lines: Sequence[str], erroneous_line: str) -> MatchResult:
        needle = strip_quotes(erroneous_line or "")
        if not needle:
            return MatchResult.not_found()

        stripped = [strip_quotes(line) for line in lines]

        for index, candidate in enumerate(stripped):
            if candidate == needle:
                return self._hit(index, MatchStrategy.EXACT, needle)

        collapsed_needle = collapse_whitespace(needle)
        for index, candidate in enumerate(stripped):
            if collapse_whitespace(candidate) == collapsed_needle:
                return self._hit(index, MatchStrategy.NORMALIZED, needle)

        for index, candidate in enumerate(stripped):
            if needle in candidate:
                return self._hit(index, MatchStrategy.SUBSTRING, needle)

        logger.debug("No line matches %.80r", needle)
        return MatchResult.not_found()

    def _hit(self, index: int, strategy: MatchStrategy, needle: str) -> MatchResult:
        logger.debug("Matched %.80r at line %d (%s)", needle, index + 1, strategy.value)
        return MatchResult(found=True, line_index=index, strategy=strategy)


_default_matcher = LineMatcher()


def locate_line(lines: Sequence[str], erroneous_line: str) -> MatchResult:
    """Locate ``erroneous_line`` in ``lines`` with the default matcher."""
    return _default_matcher.locate(lines, erroneous_line)
