"""Tests for the build_client() bootstrap function."""

from __future__ import annotations

import json
import logging
from unittest.mock import patch

import pytest
import structlog

from repostate.app import _configure_logging, build_client
from repostate.core.config import RepoStateConfig
from repostate.exceptions import ConfigError
from repostate.git.client import GitClient


def _patched_build_client(**kwargs):
    """Call build_client with logging setup patched to avoid side effects."""
    with patch("repostate.app._configure_logging") as configure:
        return build_client(**kwargs), configure


class TestBuildClient:
    def test_returns_client(self):
        client, _ = _patched_build_client(config=RepoStateConfig())
        assert isinstance(client, GitClient)

    def test_default_config(self):
        client, configure = _patched_build_client()
        assert isinstance(client, GitClient)
        configure.assert_called_once()

    def test_runner_settings_from_config(self):
        config = RepoStateConfig(
            git_binary="/opt/git/bin/git",
            command_timeout_seconds=7.5,
            max_output_bytes=1024,
        )
        client, _ = _patched_build_client(config=config)
        assert client.runner._binary == "/opt/git/bin/git"
        assert client.runner.timeout == 7.5
        assert client.runner._max_output_bytes == 1024

    def test_remote_concurrency_from_config(self):
        client, _ = _patched_build_client(config=RepoStateConfig(remote_concurrency=2))
        assert client.remotes._concurrency == 2

    def test_logging_gets_log_dir(self, tmp_path):
        config = RepoStateConfig(log_dir=tmp_path)
        _, configure = _patched_build_client(config=config)
        configure.assert_called_once_with(config, log_dir=tmp_path)

    def test_invalid_env_raises_config_error(self, monkeypatch):
        monkeypatch.setenv("REPOSTATE_COMMAND_TIMEOUT_SECONDS", "0")
        with pytest.raises(ConfigError, match="must be positive"):
            _patched_build_client()


class TestConfigureLogging:
    def teardown_method(self):
        logging.getLogger().handlers.clear()
        structlog.reset_defaults()

    def test_console_only(self):
        _configure_logging(RepoStateConfig(log_level="WARNING"))
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1

    def test_rotating_json_file(self, tmp_path):
        log_dir = tmp_path / "logs"
        _configure_logging(RepoStateConfig(), log_dir=log_dir)
        root = logging.getLogger()
        assert len(root.handlers) == 2

        structlog.get_logger().info("git_exec", command="git status")
        for handler in root.handlers:
            handler.flush()

        lines = (log_dir / "repostate.log").read_text().splitlines()
        record = json.loads(lines[-1])
        assert record["event"] == "git_exec"
        assert record["command"] == "git status"
        assert record["level"] == "info"
