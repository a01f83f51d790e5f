"""Tests for the command line interface."""

import io
import json
import sys
import zipfile
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from staxchange.ai.clients import ConfigurationError
from staxchange.cli.__main__ import main, parse_global_args
from staxchange.conversion.models import ConversionResult, ConvertedFile
from staxchange.sources.github import GitHubError


CONVERT_ARGS = [
    "staxchange", "convert",
    "--token", "t", "--owner", "octo", "--repo", "demo", "--branch", "main",
    "--language", "python", "--framework", "fastapi", "--database", "postgresql",
]


@pytest.fixture
def mock_manager():
    manager = MagicMock()
    manager.convert = AsyncMock()
    with patch("staxchange.api.globals.conversion_manager", manager):
        yield manager


@pytest.fixture
def mock_github():
    github = MagicMock()
    github.aclose = AsyncMock()
    with patch("staxchange.api.globals.github_client", github):
        yield github


class TestCli:
    """Tests for CLI argument handling and exit codes."""

    def test_parse_convert(self):
        ns = parse_global_args().parse_args(CONVERT_ARGS[1:] + ["--zip", "out.zip"])

        assert ns.command == "convert"
        assert ns.language == "python"
        assert ns.zip_path == "out.zip"
        assert ns.create_repo is None

    def test_configuration_error_exit_code(self, mock_manager, mock_github, monkeypatch):
        mock_manager.convert.side_effect = ConfigurationError("Missing OPENROUTER_API_KEY environment variable")
        monkeypatch.setattr(sys, "argv", CONVERT_ARGS)

        assert main() == 2
        mock_github.aclose.assert_awaited_once()

    def test_convert_writes_zip_and_json(self, mock_manager, mock_github, monkeypatch, tmp_path, capsys):
        mock_manager.convert.return_value = ConversionResult(
            files=[ConvertedFile(path="src/app.py", content="x = 1", original_path="src/app.ts")]
        )
        archive_path = tmp_path / "out" / "converted.zip"
        monkeypatch.setattr(sys, "argv", CONVERT_ARGS + ["--zip", str(archive_path), "--json"])

        assert main() == 0
        mock_github.aclose.assert_awaited_once()

        output = json.loads(capsys.readouterr().out)
        assert output["files"][0]["path"] == "src/app.py"
        with zipfile.ZipFile(io.BytesIO(archive_path.read_bytes())) as archive:
            assert archive.read("src/app.py") == b"x = 1"

    def test_github_error_exit_code(self, mock_manager, mock_github, monkeypatch):
        mock_manager.convert.side_effect = GitHubError("Could not find SHA for branch main")
        monkeypatch.setattr(sys, "argv", CONVERT_ARGS)

        assert main() == 2
        mock_github.aclose.assert_awaited_once()
