"""Client for the GitHub repository labels REST API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping
from urllib.parse import quote

import requests

from labl.config import DEFAULT_API_URL, DEFAULT_TIMEOUT, LabelsConfig

logger = logging.getLogger(__name__)

API_VERSION = "2022-11-28"


class GitHubLabelError(RuntimeError):
    """Raised when a label operation cannot be completed."""


class GitHubApiError(GitHubLabelError):
    """Raised when the GitHub API answers with a non-success status.

    The raw response body is kept so callers can inspect the reason, e.g.
    GitHub's ``already_exists`` validation code on a duplicate create.
    """

    def __init__(self, status_code: int, reason: str, body: str):
        super().__init__(f"GitHub API error: {status_code} {reason}\n{body}")
        self.status_code = status_code
        self.reason = reason
        self.body = body


@dataclass(frozen=True)
class RepositoryRef:
    """An ``owner/repo`` pair."""

    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    def __str__(self) -> str:
        return self.full_name


@dataclass(frozen=True)
class Label:
    """A repository label as returned by the API."""

    name: str
    color: str
    default: bool = False
    description: str | None = None
    id: int | None = None
    node_id: str | None = None
    url: str | None = None

    @classmethod
    def from_api_payload(cls, payload: Mapping[str, Any]) -> "Label":
        try:
            name = str(payload["name"])
            color = str(payload.get("color", ""))
        except (KeyError, TypeError) as exc:
            raise GitHubLabelError("Unexpected GitHub label payload") from exc
        raw_id = payload.get("id")
        return cls(
            name=name,
            color=color,
            default=bool(payload.get("default", False)),
            description=payload.get("description"),
            id=int(raw_id) if raw_id is not None else None,
            node_id=payload.get("node_id"),
            url=payload.get("url"),
        )


@dataclass(frozen=True)
class LabelCreate:
    """Fields sent when creating a label."""

    name: str
    color: str
    description: str | None = None

    def to_payload(self) -> dict[str, str]:
        payload = {
            "name": self.name,
            "color": self.color.lstrip("#"),  # GitHub API expects color without #
        }
        if self.description is not None:
            payload["description"] = self.description
        return payload


@dataclass(frozen=True)
class LabelUpdate:
    """Sparse patch for an existing label; only set fields are sent."""

    new_name: str | None = None
    color: str | None = None
    description: str | None = None

    def to_payload(self) -> dict[str, str]:
        payload: dict[str, str] = {}
        if self.new_name is not None:
            payload["new_name"] = self.new_name
        if self.color is not None:
            payload["color"] = self.color.lstrip("#")
        if self.description is not None:
            payload["description"] = self.description
        return payload

    @property
    def is_empty(self) -> bool:
        return not self.to_payload()


def encode_label_name(name: str) -> str:
    """Percent-encode a label name for use as a single path segment."""
    return quote(name, safe="")


def resolve_token(explicit_token: str | None, config: LabelsConfig) -> str:
    """Return the token, preferring the environment over explicit input."""

    if config.token:
        return config.token
    if explicit_token:
        return explicit_token
    raise GitHubLabelError(
        "GitHub token is required. Set GITHUB_TOKEN environment variable or use --token option."
    )


class GitHubLabelsClient:
    """Issues single label operations against one GitHub API endpoint.

    Each method makes exactly one HTTP request. Failures are never retried.
    """

    def __init__(
        self,
        *,
        token: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        if not token:
            raise GitHubLabelError("GitHub token must be provided.")
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    def list_labels(self, owner: str, repo: str) -> list[Label]:
        """Return all labels of a repository in API order.

        Only the first page the API returns is read.
        """
        data = self._request("GET", self._labels_path(owner, repo))
        if not isinstance(data, list):
            raise GitHubLabelError("Unexpected GitHub labels payload type.")
        return [Label.from_api_payload(item) for item in data]

    def create_label(self, owner: str, repo: str, label: LabelCreate) -> Label:
        if not label.name:
            raise GitHubLabelError("Label name must be provided.")
        if not label.color:
            raise GitHubLabelError("Label color must be provided.")
        data = self._request("POST", self._labels_path(owner, repo), label.to_payload())
        return self._as_label(data)

    def get_label(self, owner: str, repo: str, name: str) -> Label:
        data = self._request("GET", self._label_path(owner, repo, name))
        return self._as_label(data)

    def update_label(self, owner: str, repo: str, name: str, updates: LabelUpdate) -> Label:
        if updates.is_empty:
            raise GitHubLabelError(
                "At least one field (new name, color, description) must be provided."
            )
        data = self._request("PATCH", self._label_path(owner, repo, name), updates.to_payload())
        return self._as_label(data)

    def delete_label(self, owner: str, repo: str, name: str) -> None:
        self._request("DELETE", self._label_path(owner, repo, name))

    def _labels_path(self, owner: str, repo: str) -> str:
        if not owner or not repo:
            raise GitHubLabelError("Repository owner and name must be provided.")
        return f"/repos/{owner}/{repo}/labels"

    def _label_path(self, owner: str, repo: str, name: str) -> str:
        if not name:
            raise GitHubLabelError("Label name must be provided.")
        return f"{self._labels_path(owner, repo)}/{encode_label_name(name)}"

    def _headers(self, has_body: bool) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
        }
        if has_body:
            headers["Content-Type"] = "application/json; charset=utf-8"
        return headers

    def _request(
        self,
        method: str,
        path: str,
        payload: Mapping[str, Any] | None = None,
    ) -> Any:
        url = f"{self.api_url}{path}"
        logger.debug("%s %s", method, url)

        try:
            response = requests.request(
                method,
                url,
                headers=self._headers(payload is not None),
                json=dict(payload) if payload is not None else None,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise GitHubLabelError(f"Failed to reach GitHub API: {exc}") from exc

        if not response.ok:
            raise GitHubApiError(response.status_code, response.reason or "", response.text)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise GitHubLabelError(f"Invalid JSON response: {exc}") from exc

    @staticmethod
    def _as_label(data: Any) -> Label:
        if not isinstance(data, Mapping):
            raise GitHubLabelError("Unexpected GitHub label payload type.")
        return Label.from_api_payload(data)
