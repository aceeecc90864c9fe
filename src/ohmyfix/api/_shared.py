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
OhMyFix -- Shared API Utilities

Logger access and the Pydantic request models shared across route modules.
"""

import logging
from typing import Optional, List

from pydantic import BaseModel

logger = logging.getLogger("ohmyfix.api.server")


# =============================================================================
# FIX LOGGER
# =============================================================================

_fix_log = None


def _get_fix_log():
    """Lazy-init the FixLogger. Returns None when the log folder is unusable."""
    global _fix_log
    if _fix_log is None:
        try:
            from ohmyfix.core.logging import get_logger
            _fix_log = get_logger()
        except OSError as e:
            logger.debug(f"FixLogger unavailable: {e}")
    return _fix_log


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class ParseRequest(BaseModel):
    response: str


class ApplyRequest(BaseModel):
    code: str
    response: str
    # Indexes of findings to accept; None accepts every finding.
    accept: Optional[List[int]] = None
    preserve_indentation: bool = True


class SnippetRequest(BaseModel):
    code: str
    filename: str = "snippet.js"


class SettingsUpdate(BaseModel):
    # Review
    auto_accept: Optional[bool] = None
    preserve_indentation: Optional[bool] = None
    write_files: Optional[bool] = None
    # Scanning
    extensions: Optional[str] = None
    exclude_dirs: Optional[str] = None
    max_file_size_bytes: Optional[int] = None
    # API Server
    api_host: Optional[str] = None
    api_port: Optional[int] = None
