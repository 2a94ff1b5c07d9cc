# src/notion_mirror/cli/main.py

"""
CLI entrypoint.

Initializes logging, then dispatches to one of the commands in
cli/commands.py (default: run).
"""

from __future__ import annotations

import argparse
import logging
import sys

from ..config import get_settings
from ..logging_setup import setup_logging
from .commands import COMMANDS

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="notion-mirror",
        description="Resumable one-way mirror of a Notion task database into SQLite.",
    )
    sub = parser.add_subparsers(dest="command")
    for name, (_, help_text) in COMMANDS.items():
        sub.add_parser(name, help=help_text)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = get_settings()

    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    command = args.command or "run"
    handler, _ = COMMANDS[command]
    logger.debug("Starting %s command=%s", settings.app_name, command)
    return handler(settings, print)


if __name__ == "__main__":
    sys.exit(main())
