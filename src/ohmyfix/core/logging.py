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
OhMyFix -- Live Logger (v1.1.0)

Every review, model call and patch is written to a rotating log file
that users can tail while OhMyFix works.

LOG LOCATION:
    ~/.ohmyfix/logs/ohmyfix.log          (current)
    ~/.ohmyfix/logs/ohmyfix.log.1        (previous rotation)

RULES:
    - Single log file, max 10 MB before rotation
    - Log folder purges oldest files once it exceeds 1 GB
    - Human-readable format with structured key=value fields
    - WARNING and above are mirrored to stderr

USAGE:
    from ohmyfix.core.logging import get_logger
    log = get_logger()
    log.info("Scanner", "Found files", count=12)
    log.llm("Reviewer", model="gemini-2.5-flash", latency_ms=1500)
    log.review("app.js", found=3, applied=2, skipped=1, unmatched=0)
"""

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

# =============================================================================
# CONSTANTS
# =============================================================================

MAX_LOG_FILE_BYTES = 10 * 1024 * 1024  # 10 MB per file
MAX_LOG_FOLDER_BYTES = 1024 * 1024 * 1024  # 1 GB total
LOG_BACKUP_COUNT = 20
LOG_DIR = Path.home() / ".ohmyfix" / "logs"
LOG_FILE = LOG_DIR / "ohmyfix.log"


# =============================================================================
# CUSTOM FORMATTER -- human-readable + structured
# =============================================================================


class FixLogFormatter(logging.Formatter):
    """
    Format: TIMESTAMP | LEVEL | COMPONENT | MESSAGE | {structured fields}

    Example:
    2026-02-09T17:30:45.123Z | INFO  | Scanner      | Found files | count=12
    2026-02-09T17:30:46.500Z | LLM   | Reviewer     | LLM call | model="gemini-2.5-flash" latency_ms=1377
    2026-02-09T17:30:47.010Z | PATCH | Editor       | Patched app.js:14 | strategy="exact"
    """

    LEVEL_WIDTH = 5
    COMPONENT_WIDTH = 12

    def format(self, record: logging.LogRecord) -> str:
        now = datetime.now(timezone.utc)
        ts = now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"

        level = getattr(record, "fix_level", record.levelname)
        component = getattr(record, "component", "System")
        message = record.getMessage()

        fields = getattr(record, "fields", {})
        field_str = ""
        if fields:
            parts = []
            for k, v in fields.items():
                if isinstance(v, str):
                    parts.append(f'{k}="{v}"')
                elif isinstance(v, float):
                    parts.append(f"{k}={v:.3f}")
                else:
                    parts.append(f"{k}={v}")
            field_str = " | " + " ".join(parts)

        return (
            f"{ts} | {level:<{self.LEVEL_WIDTH}} | "
            f"{component:<{self.COMPONENT_WIDTH}} | {message}{field_str}"
        )


# =============================================================================
# FOLDER PURGE
# =============================================================================


def _purge_old_logs(log_dir: Path, max_bytes: int = MAX_LOG_FOLDER_BYTES):
    """Delete oldest log files if folder exceeds max_bytes."""
    try:
        log_files = sorted(
            [f for f in log_dir.iterdir() if f.is_file() and f.name.startswith("ohmyfix.log")],
            key=lambda f: f.stat().st_mtime,
        )
        total_size = sum(f.stat().st_size for f in log_files)

        while total_size > max_bytes and len(log_files) > 1:
            oldest = log_files.pop(0)
            total_size -= oldest.stat().st_size
            oldest.unlink()
    except OSError:
        pass


# =============================================================================
# FIX LOGGER
# =============================================================================


class FixLogger:
    """
    Session logger for OhMyFix.

    Writes to ~/.ohmyfix/logs/ohmyfix.log with 10 MB rotation and
    component-tagged entries for filtering.
    """

    def __init__(self, log_dir: Path | None = None):
        self._log_dir = log_dir or LOG_DIR
        self._log_dir.mkdir(parents=True, exist_ok=True)
        self._log_file = self._log_dir / LOG_FILE.name

        self._logger = logging.getLogger("ohmyfix.live")
        self._logger.setLevel(logging.DEBUG)
        self._logger.propagate = False
        self._logger.handlers.clear()

        file_handler = logging.handlers.RotatingFileHandler(
            str(self._log_file),
            maxBytes=MAX_LOG_FILE_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(FixLogFormatter())
        self._logger.addHandler(file_handler)

        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setLevel(logging.WARNING)
        stderr_handler.setFormatter(FixLogFormatter())
        self._logger.addHandler(stderr_handler)

        self._session_id = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        self._files_reviewed = 0
        self._request_count = 0

        _purge_old_logs(self._log_dir)

        self.debug("System", "Logger initialized", log_file=str(self._log_file))

    def _log(self, level: int, fix_level: str, component: str, message: str, **fields):
        fields["session"] = self._session_id
        record = self._logger.makeRecord(
            name="ohmyfix.live",
            level=level,
            fn="",
            lno=0,
            msg=message,
            args=(),
            exc_info=None,
        )
        record.component = component
        record.fix_level = fix_level
        record.fields = fields
        self._logger.handle(record)

    # =========================================================================
    # PUBLIC API -- Standard levels
    # =========================================================================

    def info(self, component: str, message: str, **fields):
        self._log(logging.INFO, "INFO", component, message, **fields)

    def warn(self, component: str, message: str, **fields):
        self._log(logging.WARNING, "WARN", component, message, **fields)

    def error(self, component: str, message: str, **fields):
        self._log(logging.ERROR, "ERROR", component, message, **fields)

    def debug(self, component: str, message: str, **fields):
        self._log(logging.DEBUG, "DEBUG", component, message, **fields)

    # =========================================================================
    # PUBLIC API -- Domain-specific log methods
    # =========================================================================

    def llm(self, component: str, model: str = "", latency_ms: int = 0, success: bool = True, **fields):
        """Log an LLM call."""
        fields.update(model=model, latency_ms=latency_ms, success=success)
        level = "LLM" if success else "LLM-ERR"
        self._log(logging.INFO, level, component, "LLM call", **fields)

    def scan(self, root: str, files: int = 0, **fields):
        """Log a workspace scan."""
        fields.update(root=root, files=files)
        self._log(logging.INFO, "SCAN", "Scanner", f"Scanned {root}", **fields)

    def review(
        self,
        file_path: str,
        found: int = 0,
        applied: int = 0,
        skipped: int = 0,
        unmatched: int = 0,
        **fields,
    ):
        """Log the outcome of reviewing one file or snippet."""
        fields.update(found=found, applied=applied, skipped=skipped, unmatched=unmatched)
        level = logging.INFO if unmatched == 0 else logging.WARNING
        self._log(level, "REVW", "Review", f"Reviewed {file_path}", **fields)
        self._files_reviewed += 1

    def patch(self, file_path: str, line: int, strategy: str = "", **fields):
        """Log a single applied fix."""
        fields.update(strategy=strategy)
        self._log(logging.INFO, "PATCH", "Editor", f"Patched {file_path}:{line}", **fields)

    def session_start(self, workspace: str = "", **fields):
        fields.update(workspace=workspace)
        self._log(logging.INFO, "START", "Session", "Session started", **fields)

    def session_end(self, **fields):
        fields.update(files_reviewed=self._files_reviewed)
        self._log(logging.INFO, "END", "Session", "Session ended", **fields)

    def server_start(self, host: str = "", port: int = 0, **fields):
        """Log API server startup."""
        fields.update(host=host, port=port)
        self._log(logging.INFO, "BOOT", "Server", "API server started", **fields)

    def server_stop(self, **fields):
        fields.update(requests_served=self._request_count)
        self._log(logging.INFO, "HALT", "Server", "API server stopped", **fields)

    def http_request(self, method: str, path: str, status: int = 200, latency_ms: int = 0, **fields):
        """Log an HTTP request."""
        fields.update(method=method, path=path, status=status, latency_ms=latency_ms)
        level = logging.INFO if status < 400 else logging.WARNING
        self._log(level, "HTTP", "Server", f"{method} {path} -> {status}", **fields)
        self._request_count += 1

    def settings_change(self, changed_keys: list | None = None, **fields):
        fields.update(changed=str(changed_keys or []))
        self._log(logging.INFO, "CFG", "Settings", "Settings updated", **fields)

    # =========================================================================
    # UTILITY
    # =========================================================================

    @property
    def log_file(self) -> str:
        return str(self._log_file)

    def get_log_stats(self) -> dict[str, Any]:
        """Get statistics about the log folder."""
        try:
            log_files = [f for f in self._log_dir.iterdir() if f.is_file()]
            total_size = sum(f.stat().st_size for f in log_files)
            return {
                "log_file": str(self._log_file),
                "file_count": len(log_files),
                "total_size_mb": round(total_size / (1024 * 1024), 2),
                "session_id": self._session_id,
                "files_reviewed": self._files_reviewed,
            }
        except OSError:
            return {"log_file": str(self._log_file), "error": "could not stat"}


# =============================================================================
# SINGLETON
# =============================================================================

_logger_instance: FixLogger | None = None


def get_logger() -> FixLogger:
    """Get or create the global FixLogger singleton."""
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = FixLogger()
    return _logger_instance
