"""Export snapshots and import files for repository label sets."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Sequence

from labl.integrations.github.labels import Label, RepositoryRef

INVALID_IMPORT_FORMAT = "Invalid JSON format. Expected { labels: [...] } structure."


class LabelFileError(RuntimeError):
    """Raised when a snapshot or import file cannot be read or written."""


def _format_timestamp(moment: datetime) -> str:
    # 2024-01-31T12:00:00.000Z
    utc = moment.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class SnapshotLabel:
    name: str
    color: str
    description: str | None
    default: bool

    @classmethod
    def from_label(cls, label: Label) -> "SnapshotLabel":
        return cls(
            name=label.name,
            color=label.color,
            description=label.description,
            default=label.default,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "color": self.color,
            "description": self.description,
            "default": self.default,
        }


@dataclass(frozen=True)
class LabelSnapshot:
    """Timestamped copy of a repository's label set."""

    repository: str
    exported_at: datetime
    labels: tuple[SnapshotLabel, ...] = field(default_factory=tuple)

    @classmethod
    def capture(
        cls,
        repository: RepositoryRef,
        labels: Sequence[Label],
        *,
        now: datetime | None = None,
    ) -> "LabelSnapshot":
        return cls(
            repository=repository.full_name,
            exported_at=now or datetime.now(timezone.utc),
            labels=tuple(SnapshotLabel.from_label(label) for label in labels),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "repository": self.repository,
            "exportedAt": _format_timestamp(self.exported_at),
            "labels": [label.to_dict() for label in self.labels],
        }


def snapshot_path(exports_dir: Path, repository: RepositoryRef) -> Path:
    return Path(exports_dir) / f"{repository.repo}.json"


def write_snapshot(snapshot: LabelSnapshot, path: Path) -> Path:
    """Write ``snapshot`` as pretty-printed JSON, creating parent directories."""

    content = json.dumps(snapshot.to_dict(), indent=2, ensure_ascii=False)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        tmp_path.write_text(content, encoding="utf-8")
        tmp_path.replace(path)
    except OSError as exc:
        raise LabelFileError(f"Could not write {path}: {exc}") from exc
    return path


@dataclass(frozen=True)
class ImportedLabel:
    """One entry of an import file."""

    name: str
    color: str
    description: str | None = None
    default: bool = False

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any], index: int) -> "ImportedLabel":
        name = payload.get("name")
        color = payload.get("color")
        if not isinstance(name, str) or not name:
            raise LabelFileError(f"{INVALID_IMPORT_FORMAT} Label #{index} has no name.")
        if not isinstance(color, str) or not color:
            raise LabelFileError(f"{INVALID_IMPORT_FORMAT} Label {name!r} has no color.")
        description = payload.get("description")
        return cls(
            name=name,
            color=color,
            description=description if isinstance(description, str) else None,
            default=bool(payload.get("default", False)),
        )


def import_path(imports_dir: Path, filename: str) -> Path:
    return Path(imports_dir) / filename


def read_import_file(path: Path) -> list[ImportedLabel]:
    """Decode a ``{"labels": [...]}`` import file.

    Raises:
        LabelFileError: The file is missing, is not JSON, or has the wrong shape.
    """
    if not path.exists():
        raise LabelFileError(f"File not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as exc:
        raise LabelFileError(f"Could not read {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise LabelFileError(f"{INVALID_IMPORT_FORMAT} ({exc})") from exc

    if not isinstance(data, Mapping) or not isinstance(data.get("labels"), list):
        raise LabelFileError(INVALID_IMPORT_FORMAT)

    entries: list[ImportedLabel] = []
    for index, item in enumerate(data["labels"]):
        if not isinstance(item, Mapping):
            raise LabelFileError(f"{INVALID_IMPORT_FORMAT} Label #{index} is not an object.")
        entries.append(ImportedLabel.from_dict(item, index))
    return entries
