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
OhMyFix -- Dependency Conflict Check

Reports packages that ``package.json`` declares in both ``dependencies``
and ``devDependencies`` with different version specs.
"""

import json
from dataclasses import dataclass
from pathlib import Path

MANIFEST_NAME = "package.json"


class DepfixError(ValueError):
    """The manifest is missing, unreadable, or not a JSON object."""


@dataclass(frozen=True)
class DependencyConflict:
    name: str
    dependency_version: str
    dev_version: str

    def __str__(self) -> str:
        return (
            f'Conflict: "{self.name}" - dependencies: "{self.dependency_version}", '
            f'devDependencies: "{self.dev_version}"'
        )


@dataclass
class DepfixReport:
    manifest: Path
    conflicts: list[DependencyConflict]
    has_dependencies: bool


def find_conflicts(project_dir: str | Path) -> DepfixReport:
    """Read ``<project_dir>/package.json`` and compare its two dependency tables."""
    manifest = Path(project_dir) / MANIFEST_NAME
    try:
        data = json.loads(manifest.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise DepfixError(f"No {MANIFEST_NAME} in {project_dir}") from e
    except (OSError, json.JSONDecodeError) as e:
        raise DepfixError(f"Could not process {MANIFEST_NAME} - {e}") from e

    if not isinstance(data, dict):
        raise DepfixError(f"{MANIFEST_NAME} must contain a JSON object")

    deps = data.get("dependencies") or {}
    dev_deps = data.get("devDependencies") or {}
    if not isinstance(deps, dict) or not isinstance(dev_deps, dict):
        raise DepfixError("dependencies and devDependencies must be JSON objects")

    conflicts = [
        DependencyConflict(name, str(version), str(dev_deps[name]))
        for name, version in deps.items()
        if name in dev_deps and dev_deps[name] != version
    ]
    return DepfixReport(
        manifest=manifest,
        conflicts=conflicts,
        has_dependencies=bool(deps or dev_deps),
    )
