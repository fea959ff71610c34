"""CLI commands for managing repository labels."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Callable

from labl.cli.parser import build_flags_parser, option_value
from labl.config import LabelsConfig
from labl.integrations.github.labels import (
    GitHubLabelError,
    GitHubLabelsClient,
    LabelCreate,
    LabelUpdate,
    RepositoryRef,
    resolve_token,
)
from labl.labels.batch import (
    ItemOutcome,
    OutcomeStatus,
    clear_labels,
    copy_labels,
    custom_labels,
    import_labels,
)
from labl.labels.snapshots import (
    LabelFileError,
    LabelSnapshot,
    import_path,
    read_import_file,
    snapshot_path,
    write_snapshot,
)

logger = logging.getLogger(__name__)

# Exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 1

CommandHandler = Callable[[argparse.Namespace, LabelsConfig], int]


class CommandUsageError(ValueError):
    """Raised when a command is invoked without the inputs it needs."""


def register_commands(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    """Register the label commands."""
    flags = build_flags_parser()
    commands: tuple[tuple[str, CommandHandler, str], ...] = (
        ("list", list_cli, "List all labels in the repository."),
        ("create", create_cli, "Create a new label (--name and --color required)."),
        ("get", get_cli, "Show details of a specific label (--name required)."),
        ("update", update_cli, "Update a label (--name plus --new-name, --color or --description)."),
        ("delete", delete_cli, "Delete a label (--name required)."),
        ("copy", copy_cli, "Copy custom labels from one repository to another."),
        ("export", export_cli, "Export all labels of a repository to a JSON file."),
        ("import", import_cli, "Import labels from a JSON file (--file required)."),
        ("clear", clear_cli, "Delete every label in the repository, defaults included."),
    )
    for name, handler, help_text in commands:
        parser = subparsers.add_parser(
            name,
            parents=[flags],
            help=help_text,
            description=help_text,
            allow_abbrev=False,
        )
        parser.set_defaults(func=handler)


# -----------------------------------------------------------------------------
# Validation helpers
# -----------------------------------------------------------------------------


def _require_token(args: argparse.Namespace, config: LabelsConfig) -> str:
    try:
        return resolve_token(option_value(args, "token"), config)
    except GitHubLabelError as err:
        raise CommandUsageError(str(err)) from err


def _require_repository(args: argparse.Namespace, command: str) -> RepositoryRef:
    owner = option_value(args, "owner")
    repo = option_value(args, "repo")
    if not owner or not repo:
        raise CommandUsageError(f"--owner and --repo are required for {command} command.")
    return RepositoryRef(owner, repo)


def _require_name(args: argparse.Namespace, command: str) -> str:
    name = option_value(args, "name")
    if not name:
        raise CommandUsageError(f"--name is required for {command} command.")
    return name


def _usage_failure(err: CommandUsageError) -> int:
    print(f"Error: {err}", file=sys.stderr)
    return EXIT_ERROR


def _build_client(token: str, config: LabelsConfig) -> GitHubLabelsClient:
    return GitHubLabelsClient(token=token, api_url=config.api_url, timeout=config.timeout)


def print_outcome(outcome: ItemOutcome) -> None:
    """Print one batch item result as it completes."""
    if outcome.status is OutcomeStatus.FAILED:
        print(f"✗ {outcome.message}: {outcome.reason}", file=sys.stderr)
    else:
        print(f"✓ {outcome.message}")


# -----------------------------------------------------------------------------
# Single-label commands
# -----------------------------------------------------------------------------


def list_cli(args: argparse.Namespace, config: LabelsConfig) -> int:
    """Handler for the list command."""
    try:
        token = _require_token(args, config)
        repository = _require_repository(args, "list")
    except CommandUsageError as err:
        return _usage_failure(err)

    labels = _build_client(token, config).list_labels(repository.owner, repository.repo)
    print("Labels:")
    for label in labels:
        suffix = f" - {label.description}" if label.description else ""
        print(f"- {label.name} ({label.color}){suffix}")
    return EXIT_SUCCESS


def create_cli(args: argparse.Namespace, config: LabelsConfig) -> int:
    """Handler for the create command."""
    try:
        token = _require_token(args, config)
        repository = _require_repository(args, "create")
        name = option_value(args, "name")
        color = option_value(args, "color")
        if not name or not color:
            raise CommandUsageError("--name and --color are required for create command.")
    except CommandUsageError as err:
        return _usage_failure(err)

    request = LabelCreate(name=name, color=color, description=option_value(args, "description"))
    label = _build_client(token, config).create_label(repository.owner, repository.repo, request)
    print(f"Created label: {label.name} ({label.color})")
    return EXIT_SUCCESS


def get_cli(args: argparse.Namespace, config: LabelsConfig) -> int:
    """Handler for the get command."""
    try:
        token = _require_token(args, config)
        repository = _require_repository(args, "get")
        name = _require_name(args, "get")
    except CommandUsageError as err:
        return _usage_failure(err)

    label = _build_client(token, config).get_label(repository.owner, repository.repo, name)
    print(f"Label: {label.name}")
    print(f"Color: {label.color}")
    print(f"Description: {label.description or 'None'}")
    print(f"Default: {str(label.default).lower()}")
    return EXIT_SUCCESS


def update_cli(args: argparse.Namespace, config: LabelsConfig) -> int:
    """Handler for the update command."""
    try:
        token = _require_token(args, config)
        repository = _require_repository(args, "update")
        name = _require_name(args, "update")
        updates = LabelUpdate(
            new_name=option_value(args, "new_name") or None,
            color=option_value(args, "color") or None,
            description=option_value(args, "description"),
        )
        if updates.is_empty:
            raise CommandUsageError(
                "At least one update option (--new-name, --color, or --description) is required."
            )
    except CommandUsageError as err:
        return _usage_failure(err)

    label = _build_client(token, config).update_label(
        repository.owner, repository.repo, name, updates
    )
    print(f"Updated label: {label.name} ({label.color})")
    return EXIT_SUCCESS


def delete_cli(args: argparse.Namespace, config: LabelsConfig) -> int:
    """Handler for the delete command."""
    try:
        token = _require_token(args, config)
        repository = _require_repository(args, "delete")
        name = _require_name(args, "delete")
    except CommandUsageError as err:
        return _usage_failure(err)

    _build_client(token, config).delete_label(repository.owner, repository.repo, name)
    print(f"Deleted label: {name}")
    return EXIT_SUCCESS


# -----------------------------------------------------------------------------
# Batch commands
# -----------------------------------------------------------------------------


def copy_cli(args: argparse.Namespace, config: LabelsConfig) -> int:
    """Handler for the copy command.

    ``--owner``/``--repo`` name the source when ``--from-owner``/``--from-repo``
    are not given.
    """
    try:
        token = _require_token(args, config)
        from_owner = option_value(args, "from_owner") or option_value(args, "owner")
        from_repo = option_value(args, "from_repo") or option_value(args, "repo")
        if not from_owner or not from_repo:
            raise CommandUsageError(
                "Source repository required. Use --from-owner and --from-repo, "
                "or --owner and --repo for source."
            )
        to_owner = option_value(args, "to_owner")
        to_repo = option_value(args, "to_repo")
        if not to_owner or not to_repo:
            raise CommandUsageError(
                "Destination repository required. Use --to-owner and --to-repo."
            )
    except CommandUsageError as err:
        return _usage_failure(err)

    source = RepositoryRef(from_owner, from_repo)
    destination = RepositoryRef(to_owner, to_repo)
    print(f"Copying labels from {source} to {destination}...")

    client = _build_client(token, config)
    try:
        source_labels = client.list_labels(source.owner, source.repo)
        print(f"Found {len(source_labels)} labels in source repository.")
        print(f"Copying {len(custom_labels(source_labels))} custom labels...")
        result = copy_labels(client, source_labels, destination, report=print_outcome)
    except GitHubLabelError as err:
        print(f"Error copying labels: {err}", file=sys.stderr)
        return EXIT_ERROR

    print(f"\n{result.summary('Copy')}")
    return EXIT_SUCCESS


def clear_cli(args: argparse.Namespace, config: LabelsConfig) -> int:
    """Handler for the clear command."""
    try:
        token = _require_token(args, config)
        repository = _require_repository(args, "clear")
    except CommandUsageError as err:
        return _usage_failure(err)

    print(f"Clearing all labels from {repository}...")

    client = _build_client(token, config)
    try:
        labels = client.list_labels(repository.owner, repository.repo)
        print(f"Found {len(labels)} labels in repository.")
        if not labels:
            print("No labels to delete.")
            return EXIT_SUCCESS
        print(f"Deleting {len(labels)} labels (including default GitHub labels)...")
        result = clear_labels(client, repository, labels, report=print_outcome)
    except GitHubLabelError as err:
        print(f"Error clearing labels: {err}", file=sys.stderr)
        return EXIT_ERROR

    print(f"\n{result.summary('Clear')}")
    return EXIT_SUCCESS


def export_cli(args: argparse.Namespace, config: LabelsConfig) -> int:
    """Handler for the export command."""
    try:
        token = _require_token(args, config)
        repository = _require_repository(args, "export")
    except CommandUsageError as err:
        return _usage_failure(err)

    print(f"Exporting labels from {repository}...")

    try:
        labels = _build_client(token, config).list_labels(repository.owner, repository.repo)
        print(f"Found {len(labels)} labels in repository.")
        snapshot = LabelSnapshot.capture(repository, labels)
        path = write_snapshot(snapshot, snapshot_path(config.exports_dir, repository))
    except (GitHubLabelError, LabelFileError) as err:
        print(f"Error exporting labels: {err}", file=sys.stderr)
        return EXIT_ERROR

    logger.info("Wrote snapshot of %s to %s", repository, path)
    print(f"✓ Exported {len(labels)} labels to {path}")
    print(f"✓ File saved: {path}")
    return EXIT_SUCCESS


def import_cli(args: argparse.Namespace, config: LabelsConfig) -> int:
    """Handler for the import command."""
    try:
        token = _require_token(args, config)
        repository = _require_repository(args, "import")
        filename = option_value(args, "file")
        if not filename:
            raise CommandUsageError("--file is required for import command.")
    except CommandUsageError as err:
        return _usage_failure(err)

    path = import_path(config.imports_dir, filename)
    print(f"Importing labels from {path} to {repository}...")

    try:
        entries = read_import_file(path)
    except LabelFileError as err:
        print(f"Error: {err}", file=sys.stderr)
        return EXIT_ERROR

    print(f"Found {len(entries)} labels to import.")
    result = import_labels(
        _build_client(token, config), repository, entries, report=print_outcome
    )
    print(f"\n{result.summary('Import', include_skipped=True)}")
    return EXIT_SUCCESS
