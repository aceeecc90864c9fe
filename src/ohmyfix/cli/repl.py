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
OhMyFix -- Interactive REPL

    USER INPUT
        |
    SLASH COMMAND  (/review, /snippet, /depfix, /setup, ...)
        |
    SCAN -> MODEL -> FINDINGS
        |
    PER-FINDING APPROVAL  (y / n / q)
        |
    PATCHED FILES + SUMMARY
"""

import os
from typing import Optional

from ohmyfix import __version__
from ohmyfix.core.review.parser import Finding
from ohmyfix.core.review.session import Decision, FindingStatus, SessionOutcome

SNIPPET_TERMINATOR = "EOF"


class FixConsole:
    """Minimal console for the REPL. Provides print and prompt helpers."""

    def print_banner(self):
        print("\n" + "=" * 60)
        print(f"  OHMYFIX v{__version__}")
        print("  Type /help for commands, /quit to exit")
        print("=" * 60 + "\n")

    def get_input(self) -> str:
        try:
            return input("\nohmyfix> ").strip()
        except EOFError:
            return "/quit"

    def print_line(self, text: str = ""):
        print(text)

    def print_info(self, msg: str):
        print(f"  [info] {msg}")

    def print_success(self, msg: str):
        print(f"  [ok] {msg}")

    def print_warning(self, msg: str):
        print(f"  [warn] {msg}")

    def print_error(self, msg: str):
        print(f"  [error] {msg}")

    def print_note(self, title: str, body: str):
        print(f"\n  ┌ {title}")
        for line in body.splitlines() or [""]:
            print(f"  │ {line}")
        print("  └")

    def print_status(self, workspace: Optional[str], model: str):
        print(f"  Workspace: {workspace or '(current directory)'}")
        print(f"  Model: {model}")

    def print_help(self):
        print("""
  Commands:
    /review [path]      Review files for errors and apply fixes
    /snippet            Paste code and get a fixed version back
    /depfix [path]      Check package.json for dependency conflicts
    /setup [provider]   Store an API key (default: google)
    /setup --remove p   Delete the stored key for provider p
    /model [p [model]]  Show or change the review model (or a preset)
    /settings [action]  view | set <key> <value> | reset | export
    /workspace <path>   Set workspace directory
    /status             Show current status
    /log                Show log file location
    /help               Show this help
    /quit               Exit OhMyFix
""")

    def print_finding(self, label: str, finding: Finding):
        body = [f"✗ Error: {finding.erroneous_line}"]
        if finding.description:
            body.append(f"  {finding.description}")
        body.append("")
        body.append("Solution:")
        body.extend(finding.solution_text.splitlines() or [""])
        if finding.partial:
            body.append("")
            body.append("(solution block was not closed; it may be incomplete)")
        self.print_note(f"File: {label}", "\n".join(body))

    def ask_decision(self) -> Decision:
        try:
            resp = input("\n  Apply this fix? [Y/n/q]: ").strip().lower()
        except EOFError:
            return Decision.ABORT
        if resp in ("q", "quit"):
            return Decision.ABORT
        if resp in ("", "y", "yes"):
            return Decision.ACCEPT
        return Decision.SKIP

    def prompt_text(self, message: str) -> str:
        try:
            return input(f"\n  {message}: ").strip()
        except EOFError:
            return ""

    def read_snippet(self) -> str:
        print(f"  Paste your code, then a line containing only {SNIPPET_TERMINATOR}:")
        lines = []
        while True:
            try:
                line = input()
            except EOFError:
                break
            if line.strip() == SNIPPET_TERMINATOR:
                break
            lines.append(line)
        return "\n".join(lines)

    def print_outcome(self, label: str, outcome: SessionOutcome):
        if outcome.clean:
            self.print_success(f"{label}: No errors found")
            return
        if outcome.degraded:
            self.print_warning(f"{label}: the model's reply contained no usable fixes")
            return
        for report in outcome.reports:
            if report.status is FindingStatus.APPLIED:
                line = report.match.line_index + 1
                print(f"    ✓ line {line} ({report.match.strategy.value})")
                print(f"      - {report.patch.removed.strip()}")
                for inserted in report.patch.inserted:
                    print(f"      + {inserted.strip()}")
            elif report.status is FindingStatus.UNMATCHED:
                print(f"    ? not found: {report.finding.erroneous_line}")
        self.print_info(f"{label}: {outcome.summary()}")

    def print_goodbye(self):
        print("\n  Goodbye!\n")

    def print_interrupted(self):
        print("\n  Interrupted.")


def start_repl(workspace_path: Optional[str] = None):
    """Start the interactive OhMyFix REPL."""
    from ohmyfix.cli.commands import handle_command

    console = FixConsole()
    workspace_path = workspace_path or os.environ.get("OHMYFIX_WORKSPACE") or None

    console.print_banner()

    while True:
        try:
            user_input = console.get_input()
            if not user_input:
                continue

            if not user_input.startswith("/"):
                console.print_info("Commands start with /. Try /review or /help.")
                continue

            result = handle_command(user_input, console, workspace_path)
            if result == "QUIT":
                break
            if isinstance(result, dict) and result.get("workspace"):
                workspace_path = result["workspace"]

        except KeyboardInterrupt:
            console.print_interrupted()
        except Exception as e:
            console.print_error(str(e))

    console.print_goodbye()
