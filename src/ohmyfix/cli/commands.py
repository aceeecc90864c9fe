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
OhMyFix CLI -- Slash command handlers.

Each handler takes the console and current state, prints its result,
and returns "QUIT", or a dict of state changes for the REPL.
"""

import asyncio
import dataclasses
import os
from pathlib import Path

from ohmyfix.cli.settings_manager import ReviewSettings, get_review_settings, run_settings
from ohmyfix.core.llm.config import (
    PRESETS,
    PROVIDERS,
    ModelConfig,
    apply_preset,
    get_model_ids,
    load_model_config,
    requires_api_key,
    save_model_config,
    validate_api_key,
)
from ohmyfix.core.review.parser import Finding
from ohmyfix.core.review.session import Decision, DecisionCallback


def handle_command(user_input: str, console, workspace_path: str | None = None):
    """Dispatch a slash command."""
    parts = user_input.split()
    command = parts[0].lower()

    if command in ["/quit", "/exit"]:
        return "QUIT"

    elif command == "/review":
        target = " ".join(parts[1:]).strip('"').strip("'") or workspace_path or os.getcwd()
        run_review(console, target)
        return {}

    elif command == "/snippet":
        run_snippet(console)
        return {}

    elif command == "/depfix":
        target = " ".join(parts[1:]).strip('"').strip("'") or workspace_path or os.getcwd()
        run_depfix(console, target)
        return {}

    elif command == "/setup":
        args = [p.lower() for p in parts[1:]]
        remove = "--remove" in args
        args = [a for a in args if a != "--remove"]
        run_setup(console, args[0] if args else "google", remove=remove)
        return {}

    elif command == "/model":
        return _handle_model(parts, console)

    elif command == "/settings":
        action = parts[1].lower() if len(parts) > 1 else "view"
        try:
            asyncio.run(run_settings(console, action, parts[2:]))
        except OSError as e:
            console.print_error(f"Settings failed: {e}")
        return {}

    elif command == "/workspace":
        return _handle_workspace(parts, console, workspace_path)

    elif command == "/status":
        cfg = load_model_config()
        console.print_status(workspace_path, _model_label(cfg))
        _print_key_status(console, cfg.provider)
        return {}

    elif command == "/log":
        from ohmyfix.core.logging import get_logger

        stats = get_logger().get_log_stats()
        console.print_info(f"Log file: {stats['log_file']}")
        return {}

    elif command == "/help":
        console.print_help()
        return {}

    else:
        console.print_error(f"Unknown command: {command}")
        return {}


# =============================================================================
# DECISIONS
# =============================================================================


def make_decision_callback(console, settings: ReviewSettings, label: str) -> DecisionCallback:
    """Show each finding for ``label`` and ask, unless auto-accept is on."""

    def decide(finding: Finding) -> Decision:
        console.print_finding(label, finding)
        if settings.auto_accept:
            console.print_info("Auto-accepted")
            return Decision.ACCEPT
        return console.ask_decision()

    return decide


# =============================================================================
# REVIEW
# =============================================================================


def run_review(console, target: str, auto_accept: bool = False) -> list:
    """Scan ``target``, review each file with the model, apply approved fixes."""
    from ohmyfix.core.logging import get_logger
    from ohmyfix.core.reviewer import Reviewer
    from ohmyfix.core.scanning import iter_source_files

    root = Path(target).expanduser()
    if not root.exists():
        console.print_error(f"No such file or directory: {target}")
        return []

    settings = get_review_settings()
    if auto_accept and not settings.auto_accept:
        settings = dataclasses.replace(settings, auto_accept=True)

    model_config = load_model_config()
    if not _check_credentials(console, model_config):
        return []

    files = list(
        iter_source_files(
            root,
            extensions=settings.extensions,
            exclude_dirs=settings.exclude_dirs,
            max_file_bytes=settings.max_file_size_bytes,
        )
    )
    log = get_logger()
    log.scan(str(root), files=len(files))
    if not files:
        console.print_error(f"No {', '.join(settings.extensions)} files found in {root}")
        return []

    console.print_info(f"Reviewing {len(files)} file(s) with {_model_label(model_config)}")
    log.session_start(workspace=str(root))

    reviewer = Reviewer(
        model_config,
        preserve_indentation=settings.preserve_indentation,
        write_files=settings.write_files,
        log=log,
    )

    def on_result(result):
        if result.error:
            console.print_error(f"Error analyzing {result.path}: {result.error}")
            return
        console.print_outcome(result.path, result.outcome)
        if result.written:
            console.print_success(f"Saved {result.path}")
        elif result.outcome.changed:
            console.print_info(f"{result.path}: dry run, file not written")

    base = root if root.is_dir() else root.parent
    results = asyncio.run(
        reviewer.review_files(
            files,
            root,
            lambda label: make_decision_callback(console, settings, label),
            on_result=on_result,
        )
    )

    applied = sum(r.outcome.applied for r in results if r.outcome)
    failed = sum(1 for r in results if r.error)
    console.print_success(
        f"Code review complete: {len(results)} file(s), {applied} fix(es) applied"
        + (f", {failed} failed" if failed else "")
        + f" in {base}"
    )
    log.session_end(applied=applied, failed=failed)
    return results


def run_snippet(console, code: str | None = None, filename: str = "snippet.js") -> str | None:
    """Review pasted code and print the fixed version."""
    from ohmyfix.core.reviewer import Reviewer
    from ohmyfix.core.llm.providers import ProviderError

    code = code if code is not None else console.read_snippet()
    if not code.strip():
        console.print_error("Nothing to review")
        return None

    model_config = load_model_config()
    if not _check_credentials(console, model_config):
        return None

    settings = get_review_settings()
    reviewer = Reviewer(model_config, preserve_indentation=settings.preserve_indentation)
    try:
        final, outcome = asyncio.run(
            reviewer.review_text(code, filename, make_decision_callback(console, settings, filename))
        )
    except ProviderError as e:
        console.print_error(f"Error analyzing snippet: {e}")
        return None

    console.print_outcome(filename, outcome)
    if outcome.changed:
        console.print_note("Fixed snippet", final)
    return final


# =============================================================================
# DEPFIX / SETUP / MODEL / WORKSPACE
# =============================================================================


def run_depfix(console, target: str):
    """Report dependency/devDependency version conflicts in package.json."""
    from ohmyfix.core.depfix import DepfixError, find_conflicts

    try:
        report = find_conflicts(target)
    except DepfixError as e:
        console.print_error(f"Error: {e}")
        return None

    if not report.has_dependencies:
        console.print_info("No dependencies to check")
    elif report.conflicts:
        console.print_warning(f"Found {len(report.conflicts)} conflicts!")
        for conflict in report.conflicts:
            console.print_line(f"    {conflict}")
    else:
        console.print_success("No conflicts found!")
    return report


def run_setup(console, provider: str = "google", key: str | None = None, remove: bool = False) -> bool:
    """Store (or with ``remove``, delete) the API key for ``provider``."""
    if provider not in PROVIDERS:
        console.print_error(f"Unknown provider: {provider}. Supported: {', '.join(PROVIDERS)}")
        return False

    from ohmyfix.security.store import SecureStoreError, get_secure_store

    if remove:
        if get_secure_store().delete_key(provider):
            console.print_success(f"Removed stored {provider} API key")
        else:
            console.print_info(f"No stored {provider} API key")
        return True

    if not requires_api_key(provider):
        console.print_info(f"{PROVIDERS[provider]['name']} needs no API key")
        return True

    key = key if key is not None else console.prompt_text(
        f"Please enter your {PROVIDERS[provider]['name']} API key"
    )
    error = validate_api_key(provider, key)
    if error:
        console.print_error(error)
        return False

    try:
        backend = get_secure_store().set_key(provider, key.strip())
    except SecureStoreError as e:
        console.print_error(str(e))
        return False
    console.print_success(f"Setup complete! Your {provider} API key was saved ({backend})")
    return True


def _handle_model(parts, console):
    """Handle /model [preset | provider [model]]."""
    if len(parts) < 2:
        cfg = load_model_config()
        console.print_info(cfg.summary())
        for name in PROVIDERS:
            console.print_line(f"    {name}: {', '.join(get_model_ids(name))}")
        console.print_line(f"    presets: {', '.join(PRESETS)}")
        return {}

    name = parts[1].lower()
    if name in PRESETS and len(parts) == 2:
        cfg = apply_preset(name)
        console.print_success(f"Review model set to {_model_label(cfg)}")
        return {}

    cfg = ModelConfig(provider=name, model=parts[2]) if len(parts) > 2 else ModelConfig.for_provider(name)
    errors = cfg.validate()
    if errors:
        for error in errors:
            console.print_error(error)
        return {}
    if save_model_config(cfg):
        console.print_success(f"Review model set to {_model_label(cfg)}")
    else:
        console.print_error("Could not save model configuration")
    return {}


def _handle_workspace(parts, console, workspace_path):
    """Handle /workspace command."""
    if len(parts) < 2:
        if workspace_path:
            console.print_info(f"Current workspace: {workspace_path}")
        else:
            console.print_info("No workspace set. Use /workspace <path>")
        return {}

    path = " ".join(parts[1:]).strip('"').strip("'")
    if os.path.isdir(path):
        console.print_success(f"Workspace set to: {path}")
        return {"workspace": os.path.abspath(path)}
    console.print_error(f"Invalid directory: {path}")
    return {}


def _check_credentials(console, model_config: ModelConfig) -> bool:
    if not requires_api_key(model_config.provider):
        return True
    from ohmyfix.core.llm.providers import _get_key

    if _get_key(model_config.provider):
        return True
    console.print_warning(
        f"No {PROVIDERS[model_config.provider]['name']} API key found. "
        f"Please run `ohmyfix setup` to configure it."
    )
    return False


def _model_label(cfg: ModelConfig) -> str:
    return f"{cfg.provider}/{cfg.model}"


def _print_key_status(console, provider: str):
    if not requires_api_key(provider):
        return
    from ohmyfix.security.store import get_secure_store

    store = get_secure_store()
    status = store.get_status()
    stored = "stored" if store.has_key(provider) else "not stored"
    console.print_line(f"  Key store: {status['backend']} ({provider} key {stored})")
