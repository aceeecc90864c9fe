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
OhMyFix -- Review Prompts

Builds the prompt that asks the model for findings in the
``Error:`` / ``Solution:`` format the response parser understands.
"""

from pathlib import PurePath

from ohmyfix.core.review.parser import NO_ERRORS_SENTINEL

SYSTEM_PROMPT = (
    "You are a meticulous code reviewer. You find syntax errors and typos "
    "and answer only in the exact format you are given."
)

LANGUAGES = {
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "jsx",
    ".ts": "typescript",
    ".tsx": "tsx",
    ".py": "python",
    ".rb": "ruby",
    ".go": "go",
    ".java": "java",
    ".php": "php",
    ".css": "css",
    ".html": "html",
}


def language_for(filename: str) -> str:
    """Fence language tag for a file name; ``text`` when unknown."""
    return LANGUAGES.get(PurePath(filename).suffix.lower(), "text")


def build_review_prompt(filename: str, content: str) -> str:
    """User prompt asking for line-level fixes to ``content``."""
    lang = language_for(filename)
    return f"""Analyze this code from file "{filename}":
```{lang}
{content}
```
- List only syntax errors or typos (e.g., undefined variables, wrong method names).
- For each error, copy the single erroneous line exactly as it appears in the code.
- For each error, provide only the corrected code as the solution, not the whole file.
- If there are no errors, reply with exactly "{NO_ERRORS_SENTINEL}".
- Format each error and solution as:
Error: <the erroneous line, copied exactly>
<one sentence describing the problem>
Solution: ```{lang}
<corrected line(s)>
```
"""
