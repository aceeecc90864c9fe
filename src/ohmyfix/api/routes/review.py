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
"""OhMyFix -- Review Routes (parse a reply, apply findings, review a snippet)."""

import itertools

from fastapi import APIRouter, HTTPException

from ohmyfix.api._shared import ApplyRequest, ParseRequest, SnippetRequest, _get_fix_log
from ohmyfix.core.review import (
    Decision,
    PatchApplier,
    ReviewSession,
    always_accept,
    parse_response,
)

router = APIRouter()


def _accept_indexes(accept: list[int] | None):
    """Decision callback accepting findings by position in the reply."""
    if accept is None:
        return always_accept
    wanted = set(accept)
    counter = itertools.count()

    def decide(finding) -> Decision:
        return Decision.ACCEPT if next(counter) in wanted else Decision.SKIP

    return decide


@router.post("/api/review/parse")
async def parse_reply(request: ParseRequest):
    """Parse a model reply into findings without touching any code."""
    result = parse_response(request.response)
    return {
        "no_errors": result.no_errors,
        "degraded": result.degraded,
        "partial_blocks": result.partial_blocks,
        "findings": [
            {
                "index": i,
                "erroneous_line": f.erroneous_line,
                "solution": f.solution_text,
                "description": f.description,
                "partial": f.partial,
            }
            for i, f in enumerate(result.findings)
        ],
    }


@router.post("/api/review/apply")
async def apply_reply(request: ApplyRequest):
    """Apply the accepted findings of a reply to ``code``."""
    session = ReviewSession(applier=PatchApplier(request.preserve_indentation))
    code, outcome = await session.arun(request.code, request.response, _accept_indexes(request.accept))
    log = _get_fix_log()
    if log:
        log.review(
            "<api>",
            found=outcome.found,
            applied=outcome.applied,
            skipped=outcome.skipped,
            unmatched=outcome.unmatched,
        )
    return {"code": code, "summary": outcome.summary(), "outcome": outcome.to_dict()}


@router.post("/api/review/snippet")
async def review_snippet(request: SnippetRequest):
    """Ask the configured model to review ``code`` and apply every finding."""
    from ohmyfix.cli.settings_manager import get_review_settings
    from ohmyfix.core.llm.config import load_model_config
    from ohmyfix.core.llm.providers import ProviderError
    from ohmyfix.core.reviewer import Reviewer

    reviewer = Reviewer(
        load_model_config(),
        preserve_indentation=get_review_settings().preserve_indentation,
        log=_get_fix_log(),
    )
    try:
        code, outcome = await reviewer.review_text(request.code, request.filename, always_accept)
    except ProviderError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"code": code, "summary": outcome.summary(), "outcome": outcome.to_dict()}
