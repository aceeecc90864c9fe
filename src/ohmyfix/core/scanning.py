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
OhMyFix -- Workspace Scanner

Discovers the source files a review should visit. The scanner is a lazy,
finite, single-pass generator: it walks the tree as the caller consumes
paths and cannot be restarted.
"""

import codecs
import logging
import os
from collections.abc import Iterable, Iterator
from pathlib import Path

logger = logging.getLogger("ohmyfix.scanner")

DEFAULT_EXTENSIONS = (".js",)
DEFAULT_EXCLUDE_DIRS = frozenset(
    {"node_modules", ".git", ".hg", ".svn", "dist", "build", "__pycache__", ".venv", "venv"}
)
DEFAULT_MAX_FILE_BYTES = 100_000
# Only the head is sniffed here; the reviewer decodes the whole file when it reads it.
SNIFF_BYTES = 8192


def parse_extensions(value: str | Iterable[str]) -> tuple[str, ...]:
    """Accept ``".js, ts"`` or an iterable; return normalised ``(".js", ".ts")``."""
    items = value.split(",") if isinstance(value, str) else value
    result = []
    for item in items:
        item = item.strip().lower()
        if not item:
            continue
        if not item.startswith("."):
            item = "." + item
        if item not in result:
            result.append(item)
    return tuple(result)


def iter_source_files(
    root: str | Path,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    exclude_dirs: Iterable[str] = DEFAULT_EXCLUDE_DIRS,
    max_file_bytes: int = DEFAULT_MAX_FILE_BYTES,
) -> Iterator[Path]:
    """
    Yield text files under ``root`` whose suffix is in ``extensions``.

    Directories named in ``exclude_dirs`` are pruned. Files larger than
    ``max_file_bytes`` (0 disables the limit) and files that are not valid
    UTF-8 are skipped. Order is deterministic: sorted within each directory.
    """
    root = Path(root)
    wanted = parse_extensions(extensions)
    excluded = set(exclude_dirs)

    if root.is_file():
        if root.suffix.lower() in wanted and _is_reviewable(root, max_file_bytes):
            yield root
        return

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in excluded)
        for name in sorted(filenames):
            path = Path(dirpath) / name
            if path.suffix.lower() not in wanted:
                continue
            if _is_reviewable(path, max_file_bytes):
                yield path


def _is_reviewable(path: Path, max_file_bytes: int) -> bool:
    try:
        size = path.stat().st_size
    except OSError as e:
        logger.debug("Skipping %s: %s", path, e)
        return False

    if max_file_bytes and size > max_file_bytes:
        logger.info("Skipping %s: %d bytes exceeds limit of %d", path, size, max_file_bytes)
        return False

    try:
        with open(path, "rb") as f:
            head = f.read(SNIFF_BYTES)
        codecs.getincrementaldecoder("utf-8")().decode(head, final=False)
    except (UnicodeDecodeError, OSError):
        logger.info("Skipping %s: not a UTF-8 text file", path)
        return False
    return True
