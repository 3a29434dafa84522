"""Remote enumeration and push/pull/fetch."""

import asyncio
import re
from pathlib import Path

import structlog

from repostate.git.models import RemoteInfo
from repostate.git.refs import validate_ref_name
from repostate.git.runner import GitRunner

logger = structlog.get_logger()

DEFAULT_REMOTE = "origin"
DEFAULT_CONCURRENCY = 4

_REMOTE_LINE_RE = re.compile(r"^(\S+)\s+(\S+)\s+\((fetch|push)\)$")
_HEAD_REF_RE = re.compile(r"refs/heads/(.+)$")


def parse_remote_verbose(output: str) -> dict[str, RemoteInfo]:
    """Parse ``git remote -v`` into remotes keyed by name, in listing order."""
    urls: dict[str, dict[str, str]] = {}
    for line in output.splitlines():
        match = _REMOTE_LINE_RE.match(line.strip())
        if not match:
            continue
        name, url, direction = match.groups()
        urls.setdefault(name, {})[f"{direction}_url"] = url
    return {name: RemoteInfo(name=name, **fields) for name, fields in urls.items()}


def parse_ls_remote_heads(output: str) -> list[str]:
    branches: list[str] = []
    for line in output.splitlines():
        match = _HEAD_REF_RE.search(line.strip())
        if match:
            branches.append(match.group(1))
    return branches


class RemoteService:
    def __init__(self, runner: GitRunner, *, concurrency: int = DEFAULT_CONCURRENCY) -> None:
        self._runner = runner
        self._concurrency = concurrency

    async def remotes(self, cwd: Path) -> list[RemoteInfo]:
        """Configured remotes with fetch/push URLs and their advertised branches."""
        result = await self._runner.run(cwd, "remote", "-v")
        if not result.ok:
            return []
        remotes = parse_remote_verbose(result.stdout)
        if not remotes:
            return []

        logger.debug("listing_remote_heads", cwd=str(cwd), remotes=list(remotes))
        semaphore = asyncio.Semaphore(self._concurrency)

        async def with_branches(remote: RemoteInfo) -> RemoteInfo:
            async with semaphore:
                branches = await self._remote_heads(cwd, remote.name)
            return remote.model_copy(update={"branches": branches})

        return list(await asyncio.gather(*(with_branches(r) for r in remotes.values())))

    async def push(
        self, cwd: Path, remote: str = DEFAULT_REMOTE, branch: str | None = None
    ) -> None:
        args = ["push", *self._target(remote, branch)]
        logger.info("git_push", remote=remote, branch=branch, cwd=str(cwd))
        await self._runner.run(cwd, *args, check=True)

    async def pull(
        self, cwd: Path, remote: str = DEFAULT_REMOTE, branch: str | None = None
    ) -> None:
        args = ["pull", *self._target(remote, branch)]
        logger.info("git_pull", remote=remote, branch=branch, cwd=str(cwd))
        await self._runner.run(cwd, *args, check=True)

    async def fetch(self, cwd: Path, remote: str | None = None) -> None:
        """Fetch *remote*, or every remote when none is given."""
        if remote:
            validate_ref_name(remote, "remote name")
        logger.info("git_fetch", remote=remote or "--all", cwd=str(cwd))
        await self._runner.run(cwd, "fetch", remote or "--all", check=True)

    async def _remote_heads(self, cwd: Path, name: str) -> list[str]:
        result = await self._runner.run(cwd, "ls-remote", "--heads", name)
        if not result.ok:
            logger.debug("ls_remote_failed", remote=name, stderr=result.stderr.strip())
            return []
        return parse_ls_remote_heads(result.stdout)

    @staticmethod
    def _target(remote: str, branch: str | None) -> list[str]:
        validate_ref_name(remote, "remote name")
        if branch:
            validate_ref_name(branch)
            return [remote, branch]
        return [remote]
