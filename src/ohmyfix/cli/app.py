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
OhMyFix CLI -- Main entry point.

Usage:
    ohmyfix                      # Interactive REPL
    ohmyfix ai [path] [--yes]    # Review a file or directory
    ohmyfix setup [--provider] [--remove]  # Store or delete an API key
    ohmyfix depfix [path]        # Check package.json for version conflicts
    ohmyfix serve                # Run the API server
    ohmyfix --version            # Version info
"""

import argparse
import os
import sys

from ohmyfix import __version__


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ohmyfix", description="AI-assisted code review and repair")
    parser.add_argument("--version", action="version", version=f"ohmyfix {__version__}")
    sub = parser.add_subparsers(dest="command")

    ai = sub.add_parser("ai", help="Review source files and apply approved fixes")
    ai.add_argument("path", nargs="?", default=None)
    ai.add_argument("--yes", "-y", action="store_true", help="Accept every fix without asking")

    setup = sub.add_parser("setup", help="Store an API key for a provider")
    setup.add_argument("--provider", default="google")
    setup.add_argument("--remove", action="store_true", help="Delete the stored key instead")

    depfix = sub.add_parser("depfix", help="Find dependency version conflicts")
    depfix.add_argument("path", nargs="?", default=None)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    if args.command is None:
        from ohmyfix.cli.repl import start_repl

        start_repl()
        return 0

    from ohmyfix.cli import commands
    from ohmyfix.cli.repl import FixConsole

    console = FixConsole()

    if args.command == "ai":
        results = commands.run_review(console, args.path or os.getcwd(), auto_accept=args.yes)
        return 0 if results and all(r.ok for r in results) else 1

    if args.command == "setup":
        return 0 if commands.run_setup(console, args.provider.lower(), remove=args.remove) else 1

    if args.command == "depfix":
        report = commands.run_depfix(console, args.path or os.getcwd())
        return 0 if report is not None else 1

    if args.command == "serve":
        from ohmyfix.api.server import run_server
        from ohmyfix.cli.settings_manager import load_settings

        settings = load_settings()
        run_server(args.host or settings["api_host"], args.port or settings["api_port"])
        return 0

    return 1


if __name__ == "__main__":
    sys.exit(main())
