"""Sequential batch operations over collections of labels.

Copy, clear and import all share one shape: walk an ordered collection,
apply a single action per item, and fold the per-item outcomes into
success/skip/failure tallies. A failing item never stops the batch.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Iterable, Sequence, TypeVar

from labl.integrations.github.labels import (
    GitHubLabelError,
    Label,
    LabelCreate,
    RepositoryRef,
)

if TYPE_CHECKING:
    from labl.integrations.github.labels import GitHubLabelsClient
    from labl.labels.snapshots import ImportedLabel

logger = logging.getLogger(__name__)

T = TypeVar("T")

ALREADY_EXISTS_MARKER = "already_exists"


class OutcomeStatus(enum.Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class ItemOutcome:
    """Result of applying a batch action to one item.

    Attributes:
        name: Name of the item the action ran against.
        status: Whether the item succeeded, was skipped or failed.
        message: Human-readable confirmation or description of the item.
        reason: Why the item was skipped or failed.
    """

    name: str
    status: OutcomeStatus
    message: str
    reason: str | None = None

    @classmethod
    def success(cls, name: str, message: str) -> "ItemOutcome":
        return cls(name=name, status=OutcomeStatus.SUCCESS, message=message)

    @classmethod
    def skipped(cls, name: str, message: str, reason: str) -> "ItemOutcome":
        return cls(name=name, status=OutcomeStatus.SKIPPED, message=message, reason=reason)

    @classmethod
    def failed(cls, name: str, message: str, reason: str) -> "ItemOutcome":
        return cls(name=name, status=OutcomeStatus.FAILED, message=message, reason=reason)


@dataclass
class BatchResult:
    """Tallies for one batch command invocation."""

    outcomes: list[ItemOutcome] = field(default_factory=list)
    success_count: int = 0
    skip_count: int = 0
    error_count: int = 0

    @property
    def total(self) -> int:
        return self.success_count + self.skip_count + self.error_count

    def record(self, outcome: ItemOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.status is OutcomeStatus.SUCCESS:
            self.success_count += 1
        elif outcome.status is OutcomeStatus.SKIPPED:
            self.skip_count += 1
        else:
            self.error_count += 1

    def summary(self, title: str, *, include_skipped: bool = False) -> str:
        """Render the terminal summary line, e.g. ``Copy completed: 2 successful, 0 failed.``"""
        parts = [f"{self.success_count} successful"]
        if include_skipped or self.skip_count:
            parts.append(f"{self.skip_count} skipped")
        parts.append(f"{self.error_count} failed")
        return f"{title} completed: {', '.join(parts)}."


Reporter = Callable[[ItemOutcome], None]


def run_batch(
    items: Iterable[T],
    action: Callable[[T], ItemOutcome],
    *,
    name_of: Callable[[T], str],
    describe_failure: Callable[[T], str] | None = None,
    report: Reporter | None = None,
) -> BatchResult:
    """Apply ``action`` to each item in order and collect the outcomes.

    Args:
        items: Items to process, in the order they were fetched.
        action: Per-item operation returning an ``ItemOutcome``.
        name_of: Returns the display name of an item.
        describe_failure: Builds the failure message used when ``action``
            raises instead of returning an outcome.
        report: Called with every outcome as soon as it is known.

    Returns:
        BatchResult holding each outcome and the aggregate counts.
    """
    result = BatchResult()

    for item in items:
        name = name_of(item)
        try:
            outcome = action(item)
        except Exception as exc:
            logger.debug("Batch action raised for %r", name, exc_info=True)
            message = describe_failure(item) if describe_failure else f"Failed to process {name!r}"
            outcome = ItemOutcome.failed(name, message, str(exc))

        if outcome.status is OutcomeStatus.FAILED:
            logger.debug("Item %r failed: %s", name, outcome.reason)
        result.record(outcome)
        if report is not None:
            report(outcome)

    logger.info(
        "Batch finished: %d successful, %d skipped, %d failed",
        result.success_count,
        result.skip_count,
        result.error_count,
    )
    return result


def custom_labels(labels: Sequence[Label]) -> list[Label]:
    """Drop the labels GitHub seeds on new repositories."""
    return [label for label in labels if not label.default]


def copy_labels(
    client: "GitHubLabelsClient",
    source_labels: Sequence[Label],
    destination: RepositoryRef,
    *,
    report: Reporter | None = None,
) -> BatchResult:
    """Create every non-default label of ``source_labels`` in ``destination``."""

    def _copy(label: Label) -> ItemOutcome:
        try:
            client.create_label(
                destination.owner,
                destination.repo,
                LabelCreate(name=label.name, color=label.color, description=label.description),
            )
        except GitHubLabelError as exc:
            return ItemOutcome.failed(label.name, f'Failed to copy label "{label.name}"', str(exc))
        return ItemOutcome.success(label.name, f"Copied label: {label.name}")

    return run_batch(
        custom_labels(source_labels),
        _copy,
        name_of=lambda label: label.name,
        describe_failure=lambda label: f'Failed to copy label "{label.name}"',
        report=report,
    )


def clear_labels(
    client: "GitHubLabelsClient",
    repository: RepositoryRef,
    labels: Sequence[Label],
    *,
    report: Reporter | None = None,
) -> BatchResult:
    """Delete every label in ``labels`` from ``repository``, defaults included."""

    def _delete(label: Label) -> ItemOutcome:
        try:
            client.delete_label(repository.owner, repository.repo, label.name)
        except GitHubLabelError as exc:
            return ItemOutcome.failed(label.name, f'Failed to delete label "{label.name}"', str(exc))
        return ItemOutcome.success(label.name, f"Deleted label: {label.name}")

    return run_batch(
        labels,
        _delete,
        name_of=lambda label: label.name,
        describe_failure=lambda label: f'Failed to delete label "{label.name}"',
        report=report,
    )


def is_already_exists_error(exc: BaseException) -> bool:
    # GitHub reports duplicate names as a 422 with code "already_exists" in the body.
    return ALREADY_EXISTS_MARKER in str(exc)


def import_labels(
    client: "GitHubLabelsClient",
    repository: RepositoryRef,
    entries: Sequence["ImportedLabel"],
    *,
    report: Reporter | None = None,
) -> BatchResult:
    """Create imported labels in ``repository``, skipping ones already present.

    Default labels are looked up first and skipped when found. Any create
    rejected as a duplicate is counted as skipped rather than failed.
    """

    def _import(entry: "ImportedLabel") -> ItemOutcome:
        if entry.default:
            try:
                client.get_label(repository.owner, repository.repo, entry.name)
            except GitHubLabelError:
                logger.debug("Default label %r not found in %s; creating it", entry.name, repository)
            else:
                return ItemOutcome.skipped(
                    entry.name,
                    f"Skipped default label: {entry.name} (already exists)",
                    "default label already exists",
                )

        try:
            client.create_label(
                repository.owner,
                repository.repo,
                LabelCreate(name=entry.name, color=entry.color, description=entry.description),
            )
        except GitHubLabelError as exc:
            if is_already_exists_error(exc):
                return ItemOutcome.skipped(
                    entry.name,
                    f"Skipped existing label: {entry.name}",
                    "label already exists",
                )
            return ItemOutcome.failed(entry.name, f'Failed to import label "{entry.name}"', str(exc))
        return ItemOutcome.success(entry.name, f"Imported label: {entry.name}")

    return run_batch(
        entries,
        _import,
        name_of=lambda entry: entry.name,
        describe_failure=lambda entry: f'Failed to import label "{entry.name}"',
        report=report,
    )
