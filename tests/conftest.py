"""Shared fixtures and a scripted git runner for testing."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from repostate.core.config import RepoStateConfig
from repostate.exceptions import CommandFailedError
from repostate.git.models import CommandOutput


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Prevent .env file and shell env from leaking into tests."""
    monkeypatch.setitem(RepoStateConfig.model_config, "env_file", None)
    for key in list(os.environ):
        if key.startswith("REPOSTATE_"):
            monkeypatch.delenv(key, raising=False)


class ScriptedRunner:
    """Stands in for GitRunner, answering each git call from a script.

    A scripted response matches a call when every token registered with
    ``on()`` appears among the call's arguments; the first match wins.
    Unscripted calls succeed with empty output.
    """

    def __init__(self) -> None:
        self._script: list[tuple[tuple[str, ...], CommandOutput | Exception]] = []
        self.calls: list[tuple[str, ...]] = []

    def on(
        self,
        *tokens: str,
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
        raises: Exception | None = None,
    ) -> ScriptedRunner:
        response = raises or CommandOutput(
            returncode=returncode, stdout=stdout, stderr=stderr
        )
        self._script.append((tokens, response))
        return self

    async def run(
        self,
        cwd: Path,
        *args: str,
        timeout: float | None = None,
        check: bool = False,
    ) -> CommandOutput:
        self.calls.append(args)
        for tokens, response in self._script:
            if all(token in args for token in tokens):
                if isinstance(response, Exception):
                    raise response
                if check and not response.ok:
                    raise CommandFailedError(
                        " ".join(("git", *args)),
                        response.stderr.strip() or response.stdout.strip() or "failed",
                        response.returncode,
                    )
                return response
        return CommandOutput()

    def called(self, *tokens: str) -> bool:
        return any(all(token in call for token in tokens) for call in self.calls)


@pytest.fixture
def runner():
    return ScriptedRunner()


@pytest.fixture
def cwd(tmp_path):
    return tmp_path
