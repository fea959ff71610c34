"""Runtime configuration for the label CLI."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_EXPORTS_DIR = Path(".json") / "exports"
DEFAULT_IMPORTS_DIR = Path(".json") / "imports"
DEFAULT_TIMEOUT = 30.0
DEFAULT_LOG_LEVEL = "WARNING"

# Checked in order; the first non-empty value wins.
TOKEN_ENV_VARS = ("GITHUB_TOKEN", "GH_TOKEN")


@dataclass(frozen=True)
class LabelsConfig:
    """Settings resolved once at startup from an environment mapping.

    Attributes:
        token: Credential supplied by the environment, if any.
        api_url: Base URL of the GitHub REST API.
        exports_dir: Directory export snapshots are written to.
        imports_dir: Directory import files are read from.
        timeout: Per-request timeout in seconds.
        log_level: Name of the logging level for the CLI run.
    """

    token: str | None = None
    api_url: str = DEFAULT_API_URL
    exports_dir: Path = DEFAULT_EXPORTS_DIR
    imports_dir: Path = DEFAULT_IMPORTS_DIR
    timeout: float = DEFAULT_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_environ(cls, environ: Mapping[str, str]) -> "LabelsConfig":
        token = None
        for key in TOKEN_ENV_VARS:
            if environ.get(key):
                token = environ[key]
                break

        raw_timeout = environ.get("LABL_TIMEOUT")
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
        except ValueError as exc:
            raise ValueError(f"LABL_TIMEOUT must be a number, got {raw_timeout!r}") from exc

        return cls(
            token=token,
            api_url=(environ.get("GITHUB_API_URL") or DEFAULT_API_URL).rstrip("/"),
            exports_dir=Path(environ.get("LABL_EXPORTS_DIR") or DEFAULT_EXPORTS_DIR),
            imports_dir=Path(environ.get("LABL_IMPORTS_DIR") or DEFAULT_IMPORTS_DIR),
            timeout=timeout,
            log_level=(environ.get("LABL_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
        )

    @property
    def logging_level(self) -> int:
        """Numeric logging level, falling back to WARNING for unknown names."""
        level = logging.getLevelName(self.log_level)
        return level if isinstance(level, int) else logging.WARNING
