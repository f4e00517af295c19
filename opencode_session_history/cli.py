"""Command-line access to the session history tools.

Usage:
    opencode-history search "rollback migration" --limit-sessions 3
    opencode-history transcript ses_abc123 --order desc --limit 20

Prints the JSON response on stdout. Exits 1 when the response carries an
error (or the transcript session was not found), 0 otherwise.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from .config import HistoryConfig
from .logging_utils import PACKAGE_LOGGER, configure_structured_logging
from .search import run_session_search
from .transcript import run_session_transcript


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="opencode-history",
        description="Read-only search and transcripts over local opencode chat history.",
    )
    parser.add_argument("--db", type=Path, help="History database path (skips resolution)")
    parser.add_argument("--config", type=Path, help="YAML settings file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging on stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    search = subparsers.add_parser("search", help="Find sessions matching a query")
    search.add_argument("query", nargs="+", help="Search terms (all must match)")
    search.add_argument("--limit-sessions", type=int, default=None)

    transcript = subparsers.add_parser("transcript", help="Replay one session")
    transcript.add_argument("session_id")
    transcript.add_argument("--limit", type=int, default=None)
    transcript.add_argument("--order", choices=["asc", "desc"], default="asc")

    return parser


async def run(args: argparse.Namespace) -> dict[str, Any]:
    config = HistoryConfig.load(args.config)
    if args.db:
        config.db_path = args.db

    if args.command == "search":
        response = await run_session_search(
            " ".join(args.query), limit_sessions=args.limit_sessions, config=config
        )
        return response.to_dict()

    response = await run_session_transcript(
        args.session_id, limit=args.limit, order=args.order, config=config
    )
    return response.to_dict()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_structured_logging(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        logger_name=PACKAGE_LOGGER,
    )

    output = asyncio.run(run(args))
    json.dump(output, sys.stdout, indent=2)
    sys.stdout.write("\n")

    if "error" in output or output.get("found") is False:
        return 1
    return 0
