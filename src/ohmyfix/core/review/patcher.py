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
OhMyFix -- Patch Applier (v1.1.0)

Holds the mutable line view of the text under review and replaces single
lines with solution text. A multi-line solution takes the place of the one
line it replaces, so the line count can change; later matches must run
against the updated document, never the original snapshot.

Edits are permanent for the session. There is no rollback.
"""

import logging
import re
from dataclasses import dataclass

logger = logging.getLogger("ohmyfix.review.patcher")

_LEADING_WS = re.compile(r"^[ \t]*")
_LINE_BREAK = re.compile(r"(\r\n|\n)")


class PatchError(IndexError):
    """Raised when a patch targets a line outside the document."""


# =============================================================================
# SOURCE DOCUMENT
# =============================================================================


class SourceDocument:
    """
    Ordered lines of the text under review.

    Each line keeps its own terminator (``"\\n"``, ``"\\r\\n"`` or ``""`` for
    an unterminated last line), so ``to_text()`` reproduces untouched input
    byte for byte even when a file mixes line endings.
    """

    def __init__(self, lines: list[str] | None = None, newline: str = "\n", trailing_newline: bool = False):
        self.lines: list[str] = list(lines or [])
        self.newline = newline
        self.endings: list[str] = [newline] * len(self.lines)
        if self.endings and not trailing_newline:
            self.endings[-1] = ""

    @classmethod
    def from_text(cls, text: str) -> "SourceDocument":
        if not text:
            return cls()
        parts = _LINE_BREAK.split(text)
        lines, endings = parts[0::2], parts[1::2]
        if endings and lines[-1] == "":
            lines.pop()
        else:
            endings.append("")
        doc = cls(newline=endings[0] or "\n")
        doc.lines = lines
        doc.endings = endings
        return doc

    @property
    def trailing_newline(self) -> bool:
        return bool(self.endings) and self.endings[-1] != ""

    def replace(self, index: int, new_lines: list[str]) -> None:
        """Swap one line for ``new_lines``, carrying the old line's terminator."""
        ending = self.endings[index]
        inner = ending or self.newline
        self.lines[index : index + 1] = new_lines
        self.endings[index : index + 1] = [inner] * (len(new_lines) - 1) + [ending]

    def to_text(self) -> str:
        return "".join(line + ending for line, ending in zip(self.lines, self.endings))

    def __len__(self) -> int:
        return len(self.lines)

    def __getitem__(self, index: int) -> str:
        return self.lines[index]

    def __iter__(self):
        return iter(self.lines)

    def __repr__(self) -> str:
        return f"SourceDocument(lines={len(self.lines)}, newline={self.newline!r})"


# =============================================================================
# PATCH APPLIER
# =============================================================================


@dataclass(frozen=True)
class AppliedPatch:
    """Record of one replacement, kept for diff display and logging."""

    line_index: int
    removed: str
    inserted: tuple[str, ...]

    @property
    def line_delta(self) -> int:
        return len(self.inserted) - 1


class PatchApplier:
    """
    Replaces one document line with a solution block.

    The parser trims solution text, which drops the first line's
    indentation. With ``preserve_indentation`` on, an unindented first
    solution line inherits the indentation of the line it replaces.
    """

    def __init__(self, preserve_indentation: bool = True):
        self.preserve_indentation = preserve_indentation

    def apply(self, document: SourceDocument, line_index: int, solution_text: str) -> SourceDocument:
        """Replace ``document[line_index]`` in place and return the document."""
        self.patch(document, line_index, solution_text)
        return document

    def patch(self, document: SourceDocument, line_index: int, solution_text: str) -> AppliedPatch:
        """Replace ``document[line_index]`` in place and describe the change."""
        if not 0 <= line_index < len(document):
            raise PatchError(f"line {line_index} outside document of {len(document)} lines")

        removed = document.lines[line_index]
        inserted = [line.rstrip("\r") for line in solution_text.split("\n")]

        if self.preserve_indentation and inserted:
            indent = _LEADING_WS.match(removed).group(0)
            if indent and inserted[0] and not _LEADING_WS.match(inserted[0]).group(0):
                inserted[0] = indent + inserted[0]

        document.replace(line_index, inserted)
        logger.debug(
            "Replaced line %d with %d line(s)", line_index + 1, len(inserted)
        )
        return AppliedPatch(line_index=line_index, removed=removed, inserted=tuple(inserted))


def apply_patch(document: SourceDocument, line_index: int, solution_text: str) -> SourceDocument:
    """Apply a patch with default settings."""
    return PatchApplier().apply(document, line_index, solution_text)
