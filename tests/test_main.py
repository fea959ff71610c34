"""Tests for the command-line entry point."""

from __future__ import annotations

from unittest.mock import patch

from main import main


def test_no_arguments_prints_usage(capsys):
    assert main([], environ={}) == 0

    out = capsys.readouterr().out
    assert "usage: labl" in out
    assert "Examples:" in out


def test_unknown_command_exits_one(capsys):
    with patch("labl.cli.commands.labels.GitHubLabelsClient") as client_class:
        assert main(["frobnicate", "--owner", "o"], environ={"GITHUB_TOKEN": "t"}) == 1

    client_class.assert_not_called()
    err = capsys.readouterr().err
    assert "usage: labl" in err
    assert "invalid choice" in err


def test_help_exits_zero(capsys):
    assert main(["list", "--help"], environ={}) == 0
    assert "--from-owner" in capsys.readouterr().out


def test_invalid_configuration_exits_one(capsys):
    assert main(["list"], environ={"LABL_TIMEOUT": "soon"}) == 1
    assert "LABL_TIMEOUT" in capsys.readouterr().err


def test_unexpected_error_is_reported(capsys):
    with patch("labl.cli.commands.labels.GitHubLabelsClient") as client_class:
        client_class.return_value.list_labels.side_effect = RuntimeError("boom")
        assert main(["list", "--owner", "o", "--repo", "r"], environ={"GITHUB_TOKEN": "t"}) == 1

    assert "Error: boom" in capsys.readouterr().err
