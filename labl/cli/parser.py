"""Argument parser shared by every label command."""

from __future__ import annotations

import argparse
import sys
from typing import NoReturn, Sequence

# Flags accepted by every command. Each takes an optional value: a flag
# followed by a token that is not itself a flag consumes it, otherwise the
# flag is stored as ``True``.
LABEL_FLAGS: tuple[tuple[str, str, str], ...] = (
    ("--owner", "OWNER", "Repository owner."),
    ("--repo", "REPO", "Repository name."),
    ("--token", "TOKEN", "GitHub token (GITHUB_TOKEN/GH_TOKEN take precedence)."),
    ("--name", "NAME", "Label name."),
    ("--new-name", "NEW_NAME", "New label name (update)."),
    ("--color", "COLOR", "Label color as 6 hex digits, without #."),
    ("--description", "TEXT", "Label description."),
    ("--from-owner", "OWNER", "Source repository owner (copy). Defaults to --owner."),
    ("--from-repo", "REPO", "Source repository name (copy). Defaults to --repo."),
    ("--to-owner", "OWNER", "Destination repository owner (copy)."),
    ("--to-repo", "REPO", "Destination repository name (copy)."),
    ("--file", "FILE", "Import file name, relative to the imports directory."),
)

# "--" ends option parsing and "--help" never takes a value.
_NO_VALUE_FLAGS = frozenset({"--", "--help"})

USAGE_EXAMPLES = """\
Examples:
  labl list --owner myorg --repo myrepo
  labl create --owner myorg --repo myrepo --name "bug" --color "ff0000" --description "Bug reports"
  labl update --owner myorg --repo myrepo --name "bug" --color "00ff00"
  labl delete --owner myorg --repo myrepo --name "old-label"
  labl copy --from-owner myorg --from-repo template --to-owner myorg --to-repo myrepo
  labl export --owner myorg --repo myrepo
  labl import --owner myorg --repo myrepo --file labels.json
  labl clear --owner myorg --repo myrepo
"""


class LabelsArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors with exit status 1."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"Error: {message}\n")


def build_flags_parser() -> argparse.ArgumentParser:
    """Return a parent parser carrying the common label flags."""
    parser = LabelsArgumentParser(add_help=False, allow_abbrev=False)
    for flag, metavar, help_text in LABEL_FLAGS:
        parser.add_argument(
            flag,
            nargs="?",
            const=True,
            default=None,
            metavar=metavar,
            help=help_text,
        )
    return parser


def join_flag_values(raw_args: Sequence[str]) -> list[str]:
    """Rewrite ``--flag value`` pairs as ``--flag=value``.

    Any token that does not start with ``--`` is taken as the value of the
    flag before it, including single-dash tokens such as ``-wip`` that
    argparse would otherwise read as an option.
    """
    joined: list[str] = []
    index = 0
    while index < len(raw_args):
        token = raw_args[index]
        has_value = index + 1 < len(raw_args) and not raw_args[index + 1].startswith("--")
        if (
            token.startswith("--")
            and token not in _NO_VALUE_FLAGS
            and "=" not in token
            and has_value
        ):
            joined.append(f"{token}={raw_args[index + 1]}")
            index += 2
            continue
        joined.append(token)
        index += 1
    return joined


def option_value(args: argparse.Namespace, attr: str) -> str | None:
    """Return a flag's string value; bare flags and absent flags give None."""
    value = getattr(args, attr, None)
    if isinstance(value, str):
        return value
    return None
