"""Unit tests for the GitHub labels client."""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from labl.config import LabelsConfig
from labl.integrations.github.labels import (
    API_VERSION,
    GitHubApiError,
    GitHubLabelError,
    GitHubLabelsClient,
    Label,
    LabelCreate,
    LabelUpdate,
    encode_label_name,
    resolve_token,
)


def _mock_response(payload=None, *, status_code=200, reason="OK", text=None):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.reason = reason
    body = text if text is not None else (json.dumps(payload) if payload is not None else "")
    response.text = body
    response.content = body.encode()
    response.json.return_value = payload
    return response


@pytest.fixture
def client() -> GitHubLabelsClient:
    return GitHubLabelsClient(token="test-token")


# =============================================================================
# Tests for payload models
# =============================================================================


class TestLabelModels:
    """Tests for label dataclasses."""

    def test_label_from_api_payload(self):
        """Should read every field GitHub returns."""
        label = Label.from_api_payload({
            "id": 208045946,
            "node_id": "MDU6TGFiZWwyMDgwNDU5NDY=",
            "url": "https://api.github.com/repos/octocat/Hello-World/labels/bug",
            "name": "bug",
            "color": "f29513",
            "default": True,
            "description": "Something isn't working",
        })

        assert label.id == 208045946
        assert label.name == "bug"
        assert label.color == "f29513"
        assert label.default is True
        assert label.description == "Something isn't working"

    def test_label_from_api_payload_requires_name(self):
        """Should reject payloads without a name."""
        with pytest.raises(GitHubLabelError, match="Unexpected"):
            Label.from_api_payload({"color": "ffffff"})

    def test_label_is_frozen(self):
        """Label should be immutable."""
        label = Label(name="bug", color="ff0000")
        with pytest.raises(AttributeError):
            label.name = "changed"

    def test_create_payload_strips_hash_and_omits_missing_description(self):
        """Should strip # from color and leave out an absent description."""
        payload = LabelCreate(name="bug", color="#ff0000").to_payload()
        assert payload == {"name": "bug", "color": "ff0000"}

    def test_update_payload_is_sparse(self):
        """Only fields that were set should be sent."""
        assert LabelUpdate(color="00ff00").to_payload() == {"color": "00ff00"}
        assert LabelUpdate(new_name="defect").to_payload() == {"new_name": "defect"}

    def test_update_allows_clearing_description(self):
        """An empty description is a real change, not an empty patch."""
        updates = LabelUpdate(description="")
        assert updates.to_payload() == {"description": ""}
        assert not updates.is_empty

    def test_empty_update(self):
        assert LabelUpdate().is_empty


# =============================================================================
# Tests for name encoding and token resolution
# =============================================================================


class TestEncodeLabelName:
    """Tests for path-segment encoding of label names."""

    @pytest.mark.parametrize(
        ("name", "encoded"),
        [
            ("bug", "bug"),
            ("good first issue", "good%20first%20issue"),
            ("area/api", "area%2Fapi"),
            ("type: bug?", "type%3A%20bug%3F"),
        ],
    )
    def test_encodes_reserved_characters(self, name, encoded):
        assert encode_label_name(name) == encoded


class TestResolveToken:
    """Tests for resolve_token."""

    def test_environment_token_wins(self):
        """The environment credential takes precedence over --token."""
        config = LabelsConfig(token="env-token")
        assert resolve_token("flag-token", config) == "env-token"

    def test_falls_back_to_explicit_token(self):
        assert resolve_token("flag-token", LabelsConfig()) == "flag-token"

    def test_missing_token_raises(self):
        with pytest.raises(GitHubLabelError, match="GitHub token is required"):
            resolve_token(None, LabelsConfig())


# =============================================================================
# Tests for GitHubLabelsClient
# =============================================================================


class TestGitHubLabelsClient:
    """Tests for the HTTP calls made by GitHubLabelsClient."""

    def test_requires_token(self):
        with pytest.raises(GitHubLabelError, match="token must be provided"):
            GitHubLabelsClient(token="")

    @patch("labl.integrations.github.labels.requests.request")
    def test_list_labels(self, mock_request, client):
        """Should return labels in API order."""
        mock_request.return_value = _mock_response([
            {"name": "bug", "color": "d73a4a", "default": True, "description": "Something isn't working"},
            {"name": "area/api", "color": "0052cc", "default": False, "description": None},
        ])

        labels = client.list_labels("owner", "repo")

        assert [label.name for label in labels] == ["bug", "area/api"]
        assert labels[1].description is None
        method, url = mock_request.call_args[0]
        assert method == "GET"
        assert url == "https://api.github.com/repos/owner/repo/labels"

    @patch("labl.integrations.github.labels.requests.request")
    def test_list_labels_empty(self, mock_request, client):
        mock_request.return_value = _mock_response([])
        assert client.list_labels("owner", "repo") == []

    @patch("labl.integrations.github.labels.requests.request")
    def test_sends_auth_and_version_headers(self, mock_request, client):
        """Every request should carry bearer auth and the API version."""
        mock_request.return_value = _mock_response([])

        client.list_labels("owner", "repo")

        headers = mock_request.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer test-token"
        assert headers["Accept"] == "application/vnd.github+json"
        assert headers["X-GitHub-Api-Version"] == API_VERSION
        assert "Content-Type" not in headers
        assert mock_request.call_args.kwargs["json"] is None

    @patch("labl.integrations.github.labels.requests.request")
    def test_create_label(self, mock_request, client):
        """Should POST the label and return the created label."""
        mock_request.return_value = _mock_response(
            {"name": "bug", "color": "ff0000", "default": False, "description": "Bug reports"},
            status_code=201,
            reason="Created",
        )

        label = client.create_label(
            "owner", "repo", LabelCreate(name="bug", color="#ff0000", description="Bug reports")
        )

        assert label.name == "bug"
        method, url = mock_request.call_args[0]
        assert method == "POST"
        assert url.endswith("/repos/owner/repo/labels")
        assert mock_request.call_args.kwargs["json"] == {
            "name": "bug",
            "color": "ff0000",
            "description": "Bug reports",
        }
        assert mock_request.call_args.kwargs["headers"]["Content-Type"].startswith("application/json")

    def test_create_requires_name_and_color(self, client):
        with pytest.raises(GitHubLabelError, match="name must be provided"):
            client.create_label("owner", "repo", LabelCreate(name="", color="ff0000"))
        with pytest.raises(GitHubLabelError, match="color must be provided"):
            client.create_label("owner", "repo", LabelCreate(name="bug", color=""))

    @patch("labl.integrations.github.labels.requests.request")
    def test_get_label_encodes_name(self, mock_request, client):
        """Names with slashes and spaces must stay a single path segment."""
        mock_request.return_value = _mock_response(
            {"name": "area/good first issue", "color": "7057ff", "default": False}
        )

        label = client.get_label("owner", "repo", "area/good first issue")

        assert label.name == "area/good first issue"
        url = mock_request.call_args[0][1]
        assert url.endswith("/repos/owner/repo/labels/area%2Fgood%20first%20issue")

    @patch("labl.integrations.github.labels.requests.request")
    def test_update_label_sends_patch(self, mock_request, client):
        mock_request.return_value = _mock_response(
            {"name": "defect", "color": "00ff00", "default": False}
        )

        label = client.update_label(
            "owner", "repo", "bug fix", LabelUpdate(new_name="defect", color="00ff00")
        )

        assert label.name == "defect"
        method, url = mock_request.call_args[0]
        assert method == "PATCH"
        assert url.endswith("/labels/bug%20fix")
        assert mock_request.call_args.kwargs["json"] == {"new_name": "defect", "color": "00ff00"}

    @patch("labl.integrations.github.labels.requests.request")
    def test_update_label_rejects_empty_patch(self, mock_request, client):
        with pytest.raises(GitHubLabelError, match="At least one field"):
            client.update_label("owner", "repo", "bug", LabelUpdate())
        mock_request.assert_not_called()

    @patch("labl.integrations.github.labels.requests.request")
    def test_delete_label_handles_no_content(self, mock_request, client):
        mock_request.return_value = _mock_response(status_code=204, reason="No Content")

        assert client.delete_label("owner", "repo", "wontfix") is None
        method, url = mock_request.call_args[0]
        assert method == "DELETE"
        assert url.endswith("/labels/wontfix")

    @patch("labl.integrations.github.labels.requests.request")
    def test_error_response_carries_status_and_body(self, mock_request, client):
        """Non-2xx responses should raise GitHubApiError with the raw body."""
        body = '{"message":"Validation Failed","errors":[{"resource":"Label","code":"already_exists","field":"name"}]}'
        mock_request.return_value = _mock_response(
            status_code=422, reason="Unprocessable Entity", text=body
        )

        with pytest.raises(GitHubApiError) as excinfo:
            client.create_label("owner", "repo", LabelCreate(name="bug", color="ff0000"))

        err = excinfo.value
        assert err.status_code == 422
        assert err.reason == "Unprocessable Entity"
        assert err.body == body
        assert "already_exists" in str(err)
        assert str(err).startswith("GitHub API error: 422 Unprocessable Entity")

    @patch("labl.integrations.github.labels.requests.request")
    def test_not_found_is_api_error(self, mock_request, client):
        mock_request.return_value = _mock_response(
            status_code=404, reason="Not Found", text='{"message":"Not Found"}'
        )

        with pytest.raises(GitHubApiError, match="404 Not Found"):
            client.get_label("owner", "repo", "missing")

    @patch("labl.integrations.github.labels.requests.request")
    def test_transport_error_is_wrapped(self, mock_request, client):
        mock_request.side_effect = requests.ConnectionError("connection refused")

        with pytest.raises(GitHubLabelError, match="Failed to reach GitHub API"):
            client.list_labels("owner", "repo")

    @patch("labl.integrations.github.labels.requests.request")
    def test_uses_custom_api_url(self, mock_request):
        mock_request.return_value = _mock_response([])
        client = GitHubLabelsClient(token="t", api_url="https://ghe.example.com/api/v3/")

        client.list_labels("owner", "repo")

        assert mock_request.call_args[0][1] == "https://ghe.example.com/api/v3/repos/owner/repo/labels"
