"""Repository detection, root discovery and user identity config."""

from pathlib import Path

import structlog

from repostate.exceptions import CommandFailedError
from repostate.git.models import GitUserConfig
from repostate.git.runner import GitRunner

logger = structlog.get_logger()


class RepoService:
    def __init__(self, runner: GitRunner) -> None:
        self._runner = runner

    async def is_repo(self, cwd: Path) -> bool:
        """Check if cwd is inside a git repository."""
        try:
            result = await self._runner.run(cwd, "rev-parse", "--git-dir")
        except CommandFailedError:
            return False
        return result.ok

    async def root(self, cwd: Path) -> str:
        """Absolute path of the working tree's top level."""
        result = await self._runner.run(cwd, "rev-parse", "--show-toplevel")
        return result.stdout.strip() if result.ok else ""

    async def user_config(self, cwd: Path) -> GitUserConfig:
        return GitUserConfig(
            name=await self._read_config(cwd, "user.name"),
            email=await self._read_config(cwd, "user.email"),
        )

    async def set_user_config(
        self,
        cwd: Path,
        name: str | None = None,
        email: str | None = None,
        *,
        global_scope: bool = False,
    ) -> None:
        """Set, unset or leave alone user.name and user.email.

        A non-empty value sets the key, ``""`` unsets it and ``None`` leaves
        it untouched.
        """
        scope = "--global" if global_scope else "--local"
        for key, value in (("user.name", name), ("user.email", email)):
            if value is None:
                continue
            if value:
                await self._runner.run(cwd, "config", scope, key, value, check=True)
                logger.info("git_config_set", key=key, scope=scope)
            else:
                await self._unset_config(cwd, scope, key)

    async def _read_config(self, cwd: Path, key: str) -> str | None:
        try:
            result = await self._runner.run(cwd, "config", "--get", key)
        except CommandFailedError:
            return None
        if not result.ok:
            return None
        return result.stdout.strip() or None

    async def _unset_config(self, cwd: Path, scope: str, key: str) -> None:
        # Exit code 5 means the key was not set, which is the requested state.
        try:
            await self._runner.run(cwd, "config", scope, "--unset", key, check=True)
        except CommandFailedError as e:
            if e.returncode != 5:
                raise
        logger.info("git_config_unset", key=key, scope=scope)
