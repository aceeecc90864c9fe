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
OhMyFix -- Review Engine

Turns a loosely formatted model reply into findings and applies them to
the text under review.

Pipeline:
    1. PARSE:  ResponseParser  -- reply text -> ordered Finding records
    2. MATCH:  LineMatcher     -- Finding -> line index in the current document
    3. PATCH:  PatchApplier    -- replace the matched line with the solution
    4. REVIEW: ReviewSession   -- drives 1-3 with a per-finding decision
"""

from ohmyfix.core.review.matcher import LineMatcher, MatchResult, MatchStrategy, locate_line
from ohmyfix.core.review.parser import (
    NO_ERRORS_SENTINEL,
    Finding,
    ParseResult,
    ResponseParser,
    parse_response,
)
from ohmyfix.core.review.patcher import (
    AppliedPatch,
    PatchApplier,
    PatchError,
    SourceDocument,
    apply_patch,
)
from ohmyfix.core.review.session import (
    Decision,
    FindingReport,
    FindingStatus,
    ReviewSession,
    SessionOutcome,
    always_accept,
    always_skip,
)

__all__ = [
    "NO_ERRORS_SENTINEL",
    "AppliedPatch",
    "Decision",
    "Finding",
    "FindingReport",
    "FindingStatus",
    "LineMatcher",
    "MatchResult",
    "MatchStrategy",
    "ParseResult",
    "PatchApplier",
    "PatchError",
    "ResponseParser",
    "ReviewSession",
    "SessionOutcome",
    "SourceDocument",
    "always_accept",
    "always_skip",
    "apply_patch",
    "locate_line",
    "parse_response",
]
