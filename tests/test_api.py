"""Tests for API endpoints."""

import io
import zipfile
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from staxchange.ai.clients import ConfigurationError
from staxchange.conversion.manager import ConversionRunError
from staxchange.conversion.models import (
    BatchOutcome,
    BatchStatus,
    ConversionResult,
    ConversionSummary,
    ConvertedFile,
    TargetSpec,
)
from staxchange.export.repository import ExportResult, UploadResult
from staxchange.sources.github import GitHubError


CONVERT_BODY = {
    "token": "t",
    "owner": "octo",
    "repo": "demo",
    "branch": "main",
    "target": {"language": "python", "framework": "fastapi", "database": "postgresql"},
}


@pytest.fixture
def client():
    """Create test client."""
    from staxchange.api.app import app

    return TestClient(app)


@pytest.fixture
def mock_manager():
    manager = MagicMock()
    manager.convert = AsyncMock()
    with patch("staxchange.api.routes.conversion.conversion_manager", manager):
        yield manager


@pytest.fixture
def mock_github():
    github = MagicMock()
    with patch("staxchange.api.routes.github.github_client", github):
        yield github


@pytest.fixture
def mock_exporter():
    exporter = MagicMock()
    exporter.export = AsyncMock()
    with patch("staxchange.api.routes.export.repository_exporter", exporter):
        yield exporter


class TestSystemEndpoints:
    """Tests for health and metadata endpoints."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["llm_configured"] is True

    def test_targets(self, client):
        response = client.get("/api/targets")

        assert response.status_code == 200
        assert response.json()["languages"]["python"] == ".py"

    def test_root(self, client):
        assert "StaxChange" in client.get("/").json()["message"]

    def test_host_introspection_not_exposed(self, client):
        assert client.get("/system/info").status_code == 404


class TestConvertEndpoint:
    """Tests for POST /api/convert."""

    def test_missing_fields(self, client, mock_manager):
        response = client.post("/api/convert", json={"token": "t", "owner": "octo"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Missing required fields: token, owner, repo, branch"
        mock_manager.convert.assert_not_awaited()

    def test_incomplete_target(self, client, mock_manager):
        body = dict(CONVERT_BODY, target={"language": "python"})

        response = client.post("/api/convert", json=body)

        assert response.status_code == 400
        assert "target specification" in response.json()["detail"]

    def test_success(self, client, mock_manager):
        target = TargetSpec("python", "fastapi", "postgresql")
        mock_manager.convert.return_value = ConversionResult(
            files=[ConvertedFile(path="src/app.py", content="x", original_path="src/app.ts")],
            summary=ConversionSummary(
                original_files=1,
                converted_files=1,
                fallback_files=0,
                batches=1,
                successful_batches=1,
                target=target,
                outcomes=[BatchOutcome(batch_index=1, status=BatchStatus.SUCCESS, file_count=1)],
            ),
        )

        response = client.post("/api/convert", json=CONVERT_BODY)

        assert response.status_code == 200
        data = response.json()
        assert data["files"] == [{"path": "src/app.py", "content": "x", "originalPath": "src/app.ts", "isFallback": False}]
        assert data["stats"]["convertedFiles"] == 1
        assert "warnings" not in data
        args = mock_manager.convert.await_args.args
        assert args[:4] == ("t", "octo", "demo", "main")
        assert args[4] == target

    def test_no_files(self, client, mock_manager):
        mock_manager.convert.return_value = ConversionResult(files=[], message="No code files found in repository")

        response = client.post("/api/convert", json=CONVERT_BODY)

        assert response.status_code == 200
        assert response.json() == {"files": [], "message": "No code files found in repository"}

    def test_configuration_error(self, client, mock_manager):
        mock_manager.convert.side_effect = ConfigurationError("Missing OPENROUTER_API_KEY environment variable")

        response = client.post("/api/convert", json=CONVERT_BODY)

        assert response.status_code == 500
        assert "OPENROUTER_API_KEY" in response.json()["detail"]

    def test_run_failure(self, client, mock_manager):
        outcome = BatchOutcome(batch_index=1, status=BatchStatus.FALLBACK, file_count=2, error="timeout")
        mock_manager.convert.side_effect = ConversionRunError("Conversion failed for all batches", [outcome])

        response = client.post("/api/convert", json=CONVERT_BODY)

        assert response.status_code == 500
        detail = response.json()["detail"]
        assert detail["error"] == "Conversion failed for all batches"
        assert detail["details"] == [{"batch": 1, "status": "fallback", "fileCount": 2, "error": "timeout"}]

    def test_github_failure(self, client, mock_manager):
        mock_manager.convert.side_effect = GitHubError("Could not find SHA for branch main")

        response = client.post("/api/convert", json=CONVERT_BODY)

        assert response.status_code == 502

    def test_events(self, client):
        response = client.get("/api/events", params={"limit": 5})

        assert response.status_code == 200
        assert isinstance(response.json()["entries"], list)


class TestGitHubEndpoint:
    """Tests for POST /api/github."""

    def test_missing_token(self, client, mock_github):
        response = client.post("/api/github", json={})

        assert response.status_code == 400
        assert response.json()["detail"] == "Missing token"

    def test_branches_need_owner_and_repo(self, client, mock_github):
        response = client.post("/api/github", json={"token": "t", "action": "branches", "owner": "octo"})

        assert response.status_code == 400

    def test_list_repositories(self, client, mock_github):
        mock_github.list_repositories = AsyncMock(return_value=[{"full_name": "octo/demo"}])

        response = client.post("/api/github", json={"token": "t"})

        assert response.status_code == 200
        assert response.json() == {"repos": [{"full_name": "octo/demo"}]}

    def test_list_branches(self, client, mock_github):
        mock_github.list_branches = AsyncMock(return_value=([{"name": "main"}], "main"))

        response = client.post("/api/github", json={"token": "t", "action": "branches", "owner": "octo", "repo": "demo"})

        assert response.json() == {"branches": [{"name": "main"}], "default": "main"}

    def test_github_error_status_forwarded(self, client, mock_github):
        mock_github.list_repositories = AsyncMock(side_effect=GitHubError("GitHub API error 401", status_code=401))

        response = client.post("/api/github", json={"token": "bad"})

        assert response.status_code == 401


class TestExportEndpoints:
    """Tests for download and repository creation."""

    def test_download_zip(self, client):
        response = client.post("/api/download", json={"files": [{"path": "src/app.py", "content": "x = 1"}]})

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/zip"
        assert 'filename="converted.zip"' in response.headers["content-disposition"]
        with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
            assert archive.read("src/app.py") == b"x = 1"

    def test_download_without_files(self, client):
        assert client.post("/api/download", json={}).json()["detail"] == "No files provided"
        assert client.post("/api/download", json={"files": []}).json()["detail"] == "Files array is empty"

    def test_create_repository_missing_fields(self, client, mock_exporter):
        response = client.post("/api/github-create", json={"token": "t"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Missing required fields: token, repoName, files"

    def test_create_repository_empty_files(self, client, mock_exporter):
        response = client.post("/api/github-create", json={"token": "t", "repoName": "out", "files": []})

        assert response.status_code == 400
        assert response.json()["detail"] == "Files must be a non-empty array"

    def test_create_repository(self, client, mock_exporter):
        mock_exporter.export.return_value = ExportResult(
            html_url="https://github.com/octo/out",
            clone_url="https://github.com/octo/out.git",
            repository={"name": "out", "full_name": "octo/out", "owner": "octo", "private": True},
            uploads=[UploadResult(path="src/app.py", success=True)],
        )
        files = [{"path": "src/app.py", "content": "x"}]

        response = client.post(
            "/api/github-create",
            json={"token": "t", "repoName": "out", "files": files, "isPrivate": True},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["html_url"] == "https://github.com/octo/out"
        assert data["upload_stats"]["successful"] == 1
        mock_exporter.export.assert_awaited_once_with("t", "out", files, description=None, private=True)
