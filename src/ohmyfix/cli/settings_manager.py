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
OhMyFix -- /settings CLI Management Module (v1.1.0)

Interactive CLI settings viewer and editor.

Provides:
  - View all current settings grouped by category
  - Change a single setting (/settings set <key> <value>)
  - Reset to defaults
  - Export settings

Usage:
    from ohmyfix.cli.settings_manager import run_settings
    await run_settings(console)
"""

import contextlib
import functools
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ohmyfix.core.scanning import parse_extensions

logger = logging.getLogger("ohmyfix.cli.settings")

SETTINGS_DIR = Path.home() / ".ohmyfix"
SETTINGS_FILE = SETTINGS_DIR / "settings.json"

# Setting definitions with metadata for display
SETTING_CATEGORIES = {
    "Review": {
        "auto_accept": {
            "label": "Auto-accept Fixes",
            "type": "bool",
            "default": False,
            "description": "Apply every suggested fix without asking",
        },
        "preserve_indentation": {
            "label": "Preserve Indentation",
            "type": "bool",
            "default": True,
            "description": "Give an unindented fix the indentation of the line it replaces",
        },
        "write_files": {
            "label": "Write Fixes",
            "type": "bool",
            "default": True,
            "description": "Save fixed files to disk (off = dry run)",
        },
    },
    "Scanning": {
        "extensions": {
            "label": "File Extensions",
            "type": "str",
            "default": ".js",
            "description": "Comma-separated extensions to review",
        },
        "exclude_dirs": {
            "label": "Excluded Directories",
            "type": "str",
            "default": "node_modules,.git,dist,build",
            "description": "Comma-separated directory names to skip",
        },
        "max_file_size_bytes": {
            "label": "Max File Size",
            "type": "int",
            "default": 100000,
            "min": 1000,
            "max": 10000000,
            "description": "Larger files are skipped",
        },
    },
    "API Server": {
        "api_host": {
            "label": "API Host",
            "type": "str",
            "default": "127.0.0.1",
            "description": "Interface `ohmyfix serve` binds to",
        },
        "api_port": {
            "label": "API Port",
            "type": "int",
            "default": 8765,
            "min": 1024,
            "max": 65535,
            "description": "Port `ohmyfix serve` listens on",
        },
    },
}


def _setting_meta(key: str) -> dict[str, Any] | None:
    for _category, settings in SETTING_CATEGORIES.items():
        if key in settings:
            return settings[key]
    return None


def default_settings() -> dict[str, Any]:
    defaults = {}
    for _category, settings in SETTING_CATEGORIES.items():
        for key, meta in settings.items():
            defaults[key] = meta["default"]
    return defaults


def load_settings() -> dict[str, Any]:
    """Load current settings with defaults."""
    user_settings = {}
    if SETTINGS_FILE.exists():
        with contextlib.suppress(OSError, ValueError):
            user_settings = json.loads(SETTINGS_FILE.read_text())

    result = default_settings()
    result.update(user_settings)
    return result


def save_settings(settings: dict[str, Any]):
    """Save settings to file."""
    SETTINGS_DIR.mkdir(parents=True, exist_ok=True)
    SETTINGS_FILE.write_text(json.dumps(settings, indent=2))


def coerce_setting(key: str, raw: Any) -> Any:
    """Convert ``raw`` to the type declared for ``key``. Raises ValueError."""
    meta = _setting_meta(key)
    if meta is None:
        raise ValueError(f"Unknown setting: {key}")

    kind = meta["type"]
    if kind == "bool":
        if isinstance(raw, bool):
            return raw
        text = str(raw).strip().lower()
        if text in ("true", "1", "yes", "on", "enabled"):
            return True
        if text in ("false", "0", "no", "off", "disabled"):
            return False
        raise ValueError(f"{key} expects true/false, got {raw!r}")
    if kind == "int":
        value = int(raw)
        if "min" in meta and value < meta["min"]:
            raise ValueError(f"{key} must be at least {meta['min']}")
        if "max" in meta and value > meta["max"]:
            raise ValueError(f"{key} must be at most {meta['max']}")
        return value
    return str(raw)


def _setting_value(settings: dict[str, Any], key: str) -> Any:
    """Coerced value of ``key``, or its default when the stored value is invalid."""
    default = _setting_meta(key)["default"]
    try:
        return coerce_setting(key, settings.get(key, default))
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid value for %s: %r", key, settings.get(key))
        return default


# =============================================================================
# REVIEW SETTINGS -- the explicit value handed to review code
# =============================================================================


@dataclass(frozen=True)
class ReviewSettings:
    auto_accept: bool = False
    preserve_indentation: bool = True
    write_files: bool = True
    extensions: tuple[str, ...] = (".js",)
    exclude_dirs: tuple[str, ...] = ("node_modules", ".git", "dist", "build")
    max_file_size_bytes: int = 100000

    @classmethod
    def from_settings(cls, settings: dict[str, Any]) -> "ReviewSettings":
        value = functools.partial(_setting_value, settings)
        return cls(
            auto_accept=value("auto_accept"),
            preserve_indentation=value("preserve_indentation"),
            write_files=value("write_files"),
            extensions=parse_extensions(value("extensions")) or (".js",),
            exclude_dirs=tuple(d.strip() for d in value("exclude_dirs").split(",") if d.strip()),
            max_file_size_bytes=value("max_file_size_bytes"),
        )


def get_review_settings() -> ReviewSettings:
    return ReviewSettings.from_settings(load_settings())


# =============================================================================
# /settings
# =============================================================================


async def run_settings(console=None, action: str = "view", args: list[str] | None = None) -> dict[str, Any]:
    """
    Run the settings manager.

    Args:
        console: FixConsole for output
        action: "view", "set", "reset", or "export"
        args: for "set", the key and value

    Returns:
        Current settings dict
    """
    settings = load_settings()

    def _print(text: str):
        if console and hasattr(console, "print_line"):
            console.print_line(text)
        else:
            print(text)

    if action == "reset":
        return await _reset_settings(console)
    elif action == "export":
        return await _export_settings(console)
    elif action == "set":
        return await _set_setting(console, args or [])

    _print("\n  OhMyFix Settings\n")
    _print("  " + "─" * 50)

    for category, category_settings in SETTING_CATEGORIES.items():
        _print(f"\n  [{category}]")
        for key, meta in category_settings.items():
            value = settings.get(key, meta["default"])
            default_marker = " (default)" if value == meta["default"] else ""
            _print(f"    {meta['label']} ({key}): {_format_value(value, meta)}{default_marker}")
            _print(f"      {meta['description']}")

    _print("\n  [API Keys]")
    try:
        from ohmyfix.security.store import get_secure_store

        store = get_secure_store()
        providers = store.list_providers()
        if providers:
            for p in providers:
                _print(f"    {p}: configured ({store.backend_name})")
        else:
            _print("    No API keys stored")
    except Exception:
        for name in ("google", "openai", "anthropic", "groq"):
            if os.environ.get(f"{name.upper()}_API_KEY"):
                _print(f"    {name}: configured (environment)")

    _print("\n  " + "─" * 50)
    _print(f"  Tip: /settings set <key> <value>, or edit {SETTINGS_FILE}\n")

    return settings


async def _set_setting(console, args: list[str]) -> dict[str, Any]:
    settings = load_settings()
    if len(args) < 2:
        if console:
            console.print_error("Usage: /settings set <key> <value>")
        return settings

    key, raw = args[0], " ".join(args[1:])
    try:
        settings[key] = coerce_setting(key, raw)
    except ValueError as e:
        if console:
            console.print_error(str(e))
        return settings

    save_settings(settings)
    if console:
        console.print_success(f"{key} = {settings[key]}")
    try:
        from ohmyfix.core.logging import get_logger

        get_logger().settings_change(changed_keys=[key])
    except OSError:
        pass
    return settings


async def _reset_settings(console=None) -> dict[str, Any]:
    """Reset all settings to defaults."""
    defaults = default_settings()
    save_settings(defaults)
    if console:
        console.print_success("Settings reset to defaults.")
    return defaults


async def _export_settings(console=None) -> dict[str, Any]:
    """Export settings to a portable format."""
    settings = load_settings()
    SETTINGS_DIR.mkdir(parents=True, exist_ok=True)
    export_path = SETTINGS_DIR / "settings_export.json"
    export_path.write_text(json.dumps(settings, indent=2))
    if console:
        console.print_success(f"Settings exported to: {export_path}")
    return settings


def _format_value(value: Any, meta: dict) -> str:
    """Format a setting value for display."""
    if meta["type"] == "bool":
        return "enabled" if value else "disabled"
    if meta["type"] == "int" and "max_file_size" in meta.get("label", "").lower().replace(" ", "_"):
        if value >= 1_000_000:
            return f"{value / 1_000_000:.1f} MB"
        if value >= 1000:
            return f"{value / 1000:.0f} KB"
    return str(value)
