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
OhMyFix -- Reviewer (v1.1.0)

Glue between the model and the review engine. For each file:

    read -> build prompt -> call_provider -> ReviewSession -> write back

Files are reviewed one after another. A file is written only when at
least one fix was applied; a provider failure is recorded for that file
and the review moves on.
"""

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from ohmyfix.core.llm.config import ModelConfig
from ohmyfix.core.llm.prompts import SYSTEM_PROMPT, build_review_prompt
from ohmyfix.core.llm.providers import ProviderError, call_provider
from ohmyfix.core.logging import FixLogger
from ohmyfix.core.review.patcher import PatchApplier
from ohmyfix.core.review.session import DecisionCallback, FindingStatus, ReviewSession, SessionOutcome

logger = logging.getLogger("ohmyfix.reviewer")


@dataclass
class FileReview:
    """Result of reviewing one file."""

    path: str
    outcome: SessionOutcome | None = None
    error: str = ""
    written: bool = False

    @property
    def ok(self) -> bool:
        return not self.error


class Reviewer:
    """
    Reviews text with the configured model.

    Usage:
        reviewer = Reviewer(ModelConfig(provider="google", model="gemini-2.5-flash"))
        final_text, outcome = await reviewer.review_text(code, "app.js", always_accept)
        results = await reviewer.review_files(paths, root, decide_for)
    """

    def __init__(
        self,
        model_config: ModelConfig,
        preserve_indentation: bool = True,
        write_files: bool = True,
        log: FixLogger | None = None,
    ):
        self.model_config = model_config
        self.preserve_indentation = preserve_indentation
        self.write_files = write_files
        self.log = log

    async def request_review(self, text: str, filename: str) -> str:
        """Ask the model for findings. Raises ProviderError."""
        prompt = build_review_prompt(filename, text)
        start = time.monotonic()
        try:
            raw = await call_provider(self.model_config, SYSTEM_PROMPT, prompt, component="Reviewer")
        except ProviderError:
            if self.log:
                self.log.llm("Reviewer", model=self.model_config.model, success=False, file=filename)
            raise
        if self.log:
            self.log.llm(
                "Reviewer",
                model=self.model_config.model,
                latency_ms=int((time.monotonic() - start) * 1000),
                file=filename,
            )
        return raw

    async def review_text(
        self, text: str, filename: str, decide: DecisionCallback
    ) -> tuple[str, SessionOutcome]:
        """Request findings for ``text`` and run them through a review session."""
        raw = await self.request_review(text, filename)
        return await self.apply_reply(text, raw, decide)

    async def apply_reply(
        self, text: str, raw: str, decide: DecisionCallback
    ) -> tuple[str, SessionOutcome]:
        session = ReviewSession(applier=PatchApplier(self.preserve_indentation))
        return await session.arun(text, raw, decide)

    async def review_file(self, path: Path, root: Path, decide: DecisionCallback) -> FileReview:
        rel = _relative(path, root)
        try:
            with open(path, encoding="utf-8", newline="") as f:
                original = f.read()
        except (OSError, UnicodeDecodeError) as e:
            return FileReview(path=rel, error=f"Could not read file: {e}")

        try:
            final, outcome = await self.review_text(original, rel, decide)
        except ProviderError as e:
            logger.error("Error analyzing %s: %s", rel, e)
            return FileReview(path=rel, error=str(e))

        result = FileReview(path=rel, outcome=outcome)
        if outcome.changed and self.write_files:
            path.write_text(final, encoding="utf-8", newline="")
            result.written = True

        if self.log:
            self.log.review(
                rel,
                found=outcome.found,
                applied=outcome.applied,
                skipped=outcome.skipped,
                unmatched=outcome.unmatched,
                written=result.written,
            )
            for report in outcome.reports:
                if report.status is FindingStatus.APPLIED:
                    self.log.patch(rel, report.match.line_index + 1, strategy=report.match.strategy.value)
        return result

    async def review_files(
        self,
        paths: Iterable[Path],
        root: Path,
        decide_for: Callable[[str], DecisionCallback],
        on_result: Callable[[FileReview], None] | None = None,
    ) -> list[FileReview]:
        """Review files in order; ``decide_for(relative_path)`` supplies each file's callback."""
        results = []
        for path in paths:
            rel = _relative(path, root)
            result = await self.review_file(path, root, decide_for(rel))
            results.append(result)
            if on_result:
                on_result(result)
            if result.outcome and result.outcome.aborted:
                break
        return results


def _relative(path: Path, root: Path) -> str:
    if root.is_file():
        return path.name
    try:
        return path.resolve().relative_to(root.resolve()).as_posix()
    except ValueError:
        return str(path)
