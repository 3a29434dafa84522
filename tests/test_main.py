"""Tests for the repostate CLI entry point."""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from repostate.exceptions import CommandTimeoutError
from repostate.git.models import BranchInfo, CommitInfo, GitUserConfig, RepoStatus
from repostate.main import main, run


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.get_status = AsyncMock(
        return_value=RepoStatus(is_repo=True, untracked=["new.txt"])
    )
    client.get_branches = AsyncMock(
        return_value=[BranchInfo(name="main", is_current=True)]
    )
    client.get_commit_log = AsyncMock(return_value=[])
    client.get_remotes = AsyncMock(return_value=[])
    client.get_user_config = AsyncMock(return_value=GitUserConfig(name="Jane"))
    return client


@pytest.fixture
def patched(mock_client):
    with patch("repostate.main.build_client", return_value=mock_client):
        yield mock_client


class TestMain:
    async def test_config_error_exits(self, capsys):
        with patch("repostate.main.RepoStateConfig", side_effect=ValueError("bad config")):
            assert await main(["status"]) == 1
        assert "Configuration error" in capsys.readouterr().err

    async def test_status_json(self, patched, capsys):
        assert await main(["status", "/srv/repo"]) == 0
        patched.get_status.assert_awaited_once_with("/srv/repo")
        data = json.loads(capsys.readouterr().out)
        assert data["is_repo"] is True
        assert data["is_clean"] is False
        assert data["untracked"] == ["new.txt"]

    async def test_default_path(self, patched):
        await main(["branches"])
        patched.get_branches.assert_awaited_once_with(".")

    async def test_branches_json(self, patched, capsys):
        await main(["branches"])
        data = json.loads(capsys.readouterr().out)
        assert data[0]["name"] == "main"
        assert data[0]["is_current"] is True

    async def test_log_options(self, patched, capsys):
        patched.get_commit_log.return_value = [
            CommitInfo(
                hash="a" * 40,
                short_hash="aaaaaaa",
                subject="Initial",
                author_name="Jane",
                author_email="jane@x.com",
                author_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
                committer_name="Jane",
                committer_email="jane@x.com",
                commit_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
            )
        ]
        assert await main(["log", ".", "-n", "5", "--current-only"]) == 0
        patched.get_commit_log.assert_awaited_once_with(".", 5, all_branches=False)
        data = json.loads(capsys.readouterr().out)
        assert data[0]["author_date"] == "2024-01-01T00:00:00Z"

    async def test_remotes(self, patched, capsys):
        await main(["remotes"])
        assert json.loads(capsys.readouterr().out) == []

    async def test_config(self, patched, capsys):
        await main(["config"])
        assert json.loads(capsys.readouterr().out) == {"name": "Jane", "email": None}

    async def test_error_is_reported_as_json(self, patched, capsys):
        patched.get_status.side_effect = CommandTimeoutError("git status", 30)
        assert await main(["status"]) == 1
        data = json.loads(capsys.readouterr().out)
        assert "timed out" in data["error"]

    async def test_invalid_limit_is_reported_as_json(self, patched, capsys):
        patched.get_commit_log.side_effect = ValueError("limit must be positive, got 0")
        assert await main(["log", "-n", "0"]) == 1
        assert json.loads(capsys.readouterr().out) == {
            "error": "limit must be positive, got 0"
        }

    async def test_unknown_command(self):
        with pytest.raises(SystemExit) as exc_info:
            await main(["frobnicate"])
        assert exc_info.value.code == 2


class TestRun:
    def test_run_exits_with_main_code(self):
        with (
            patch("repostate.main.main", new=MagicMock(return_value="coro")),
            patch("repostate.main.asyncio.run", return_value=0) as mock_run,
        ):
            with pytest.raises(SystemExit) as exc_info:
                run()
        mock_run.assert_called_once_with("coro")
        assert exc_info.value.code == 0
