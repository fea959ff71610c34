#!/usr/bin/env python3

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Mapping, Sequence

from dotenv import load_dotenv

from labl.cli.commands.labels import (
    EXIT_ERROR,
    EXIT_SUCCESS,
    register_commands as register_label_commands,
)
from labl.cli.parser import USAGE_EXAMPLES, LabelsArgumentParser, join_flag_values
from labl.config import LabelsConfig

logger = logging.getLogger(__name__)

_ENV_FILES = (Path(__file__).parent / ".env", Path.cwd() / ".env")


def _build_command_parser() -> argparse.ArgumentParser:
    parser = LabelsArgumentParser(
        prog="labl",
        description="Manage GitHub issue labels: CRUD, copy, clear, import and export.",
        epilog=USAGE_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True
    register_label_commands(subparsers)
    return parser


def _load_environment() -> Mapping[str, str]:
    # Load environment variables from .env files if they exist
    for env_file in _ENV_FILES:
        if env_file.exists():
            load_dotenv(env_file)
    return os.environ


def _dispatch(args: argparse.Namespace, config: LabelsConfig) -> int:
    handler = getattr(args, "func", None)
    if handler is None:  # pragma: no cover - subparsers are required
        raise ValueError("No handler registered for parsed arguments.")
    return handler(args, config)


def main(argv: Sequence[str] | None = None, environ: Mapping[str, str] | None = None) -> int:
    raw_args = list(sys.argv[1:] if argv is None else argv)
    command_parser = _build_command_parser()

    if not raw_args:
        command_parser.print_help()
        return EXIT_SUCCESS

    try:
        config = LabelsConfig.from_environ(_load_environment() if environ is None else environ)
    except ValueError as err:
        print(f"Error: {err}", file=sys.stderr)
        return EXIT_ERROR

    logging.basicConfig(
        level=config.logging_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        args, ignored = command_parser.parse_known_args(join_flag_values(raw_args))
    except SystemExit as exc:
        # Unknown commands exit 1; --help exits 0.
        return int(exc.code or 0)
    if ignored:
        logger.debug("Ignoring unrecognized arguments: %s", " ".join(ignored))

    try:
        return _dispatch(args, config)
    except Exception as exc:
        logger.debug("Command %r failed", args.command, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
