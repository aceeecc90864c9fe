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
"""OhMyFix -- Settings Routes."""

from typing import Any

from fastapi import APIRouter, HTTPException

from ohmyfix.api._shared import SettingsUpdate, _get_fix_log
from ohmyfix.cli.settings_manager import coerce_setting, load_settings, save_settings

router = APIRouter()


@router.get("/api/settings")
async def get_all_settings() -> dict[str, Any]:
    """Get all current settings, defaults included."""
    return load_settings()


@router.post("/api/settings")
async def update_settings(settings: SettingsUpdate):
    """Update settings. Values are range-checked like ``/settings set``."""
    update_dict = settings.model_dump(exclude_unset=True, exclude_none=True)
    current = load_settings()
    try:
        for key, value in update_dict.items():
            current[key] = coerce_setting(key, value)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    save_settings(current)
    log = _get_fix_log()
    if log:
        log.settings_change(changed_keys=list(update_dict.keys()))
    return {"status": "success", "updated": list(update_dict.keys())}
