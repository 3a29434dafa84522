"""Working-tree status reconstructed from porcelain v2 output."""

from collections.abc import Awaitable
from pathlib import Path
from typing import TypeVar

import structlog

from repostate.exceptions import RepoStateError
from repostate.git.branches import BranchService
from repostate.git.models import BranchInfo, FileChange, FileStatus, RepoStatus
from repostate.git.repo import RepoService
from repostate.git.runner import GitRunner

logger = structlog.get_logger()

T = TypeVar("T")

_STATUS_CODES: dict[str, FileStatus] = {
    "M": "modified",
    "A": "added",
    "D": "deleted",
    "R": "renamed",
    "C": "copied",
    "U": "conflicted",
}

_REBASE_MARKERS = ("rebase-merge", "rebase-apply")
_MERGE_MARKER = "MERGE_HEAD"


def porcelain_to_status(code: str) -> FileStatus:
    """Convert one half of a porcelain v2 XY code; unknown codes read as modified."""
    return _STATUS_CODES.get(code, "modified")


class PorcelainStatus:
    """Fields collected from one ``git status --porcelain=v2 --branch`` run."""

    __slots__ = ("ahead", "behind", "conflicted", "staged", "unstaged", "untracked", "upstream")

    def __init__(self) -> None:
        self.ahead: int | None = None
        self.behind: int | None = None
        self.upstream: str | None = None
        self.staged: list[FileChange] = []
        self.unstaged: list[FileChange] = []
        self.untracked: list[str] = []
        self.conflicted: list[str] = []


def parse_porcelain_v2(output: str) -> PorcelainStatus:
    parsed = PorcelainStatus()

    for line in output.splitlines():
        if not line:
            continue

        if line.startswith("# branch.ab "):
            for part in line.split(" ")[2:]:
                if part.startswith("+") and part[1:].isdigit():
                    parsed.ahead = int(part[1:])
                elif part.startswith("-") and part[1:].isdigit():
                    parsed.behind = int(part[1:])
        elif line.startswith("# branch.upstream "):
            parts = line.split(" ", 2)
            if len(parts) == 3 and parts[2].strip():
                parsed.upstream = parts[2].strip()
        elif line.startswith("1 ") or line.startswith("2 "):
            # Type 1: "1 XY sub mH mI mW hH hI path"
            # Type 2: "2 XY sub mH mI mW hH hI Xscore path\torigPath"
            is_rename = line.startswith("2 ")
            max_split = 9 if is_rename else 8
            parts = line.split(" ", max_split)
            if len(parts) < max_split + 1 or len(parts[1]) != 2:
                continue

            x_status, y_status = parts[1][0], parts[1][1]
            path = parts[max_split]
            old_path = None
            if is_rename:
                path, _, old_path = path.partition("\t")
                old_path = old_path or None

            if x_status != ".":
                status = porcelain_to_status(x_status)
                parsed.staged.append(
                    FileChange(
                        path=path,
                        old_path=old_path if status in ("renamed", "copied") else None,
                        status=status,
                        staged=True,
                    )
                )
            if y_status != ".":
                parsed.unstaged.append(
                    FileChange(
                        path=path, status=porcelain_to_status(y_status), staged=False
                    )
                )
        elif line.startswith("u "):
            # "u XY sub m1 m2 m3 mW h1 h2 h3 path"
            parts = line.split(" ", 10)
            if len(parts) == 11:
                parsed.conflicted.append(parts[10])
        elif line.startswith("? "):
            parsed.untracked.append(line[2:])

    return parsed


class StatusService:
    """Assembles a RepoStatus from several sequential git calls."""

    def __init__(
        self, runner: GitRunner, repo: RepoService, branches: BranchService
    ) -> None:
        self._runner = runner
        self._repo = repo
        self._branches = branches

    async def status(self, cwd: Path) -> RepoStatus:
        if not await self._repo.is_repo(cwd):
            return RepoStatus(is_repo=False)

        root_path = await self._repo.root(cwd)
        branch_name = await self._branches.current_branch(cwd)

        result = await self._runner.run(
            cwd, "status", "--porcelain=v2", "--branch", "--untracked-files=all"
        )
        parsed = parse_porcelain_v2(result.stdout if result.ok else "")
        if not result.ok:
            logger.warning("git_status_failed", cwd=str(cwd), stderr=result.stderr.strip())

        is_rebasing = await _probe(self._rebase_in_progress(cwd), False, "rebase")
        is_merging = await _probe(self._merge_in_progress(cwd), False, "merge")
        stash_count = await _probe(self._stash_count(cwd), 0, "stash")

        current = BranchInfo(
            name=branch_name,
            is_current=True,
            upstream=parsed.upstream,
            remote=parsed.upstream.split("/", 1)[0] if parsed.upstream else None,
            ahead=parsed.ahead,
            behind=parsed.behind,
        )

        return RepoStatus(
            is_repo=True,
            current_branch=current,
            root_path=root_path or None,
            staged=parsed.staged,
            unstaged=parsed.unstaged,
            untracked=parsed.untracked,
            conflicted_files=parsed.conflicted or None,
            is_rebasing=is_rebasing,
            is_merging=is_merging,
            stash_count=stash_count,
        )

    async def uncommitted_count(self, cwd: Path) -> int:
        """Number of entries in short porcelain status."""
        result = await self._runner.run(cwd, "status", "--porcelain")
        if not result.ok:
            return 0
        return sum(1 for line in result.stdout.splitlines() if line.strip())

    async def _rebase_in_progress(self, cwd: Path) -> bool:
        for marker in _REBASE_MARKERS:
            if await self._git_path_exists(cwd, marker):
                return True
        return False

    async def _merge_in_progress(self, cwd: Path) -> bool:
        return await self._git_path_exists(cwd, _MERGE_MARKER)

    async def _stash_count(self, cwd: Path) -> int:
        result = await self._runner.run(cwd, "stash", "list")
        if not result.ok:
            return 0
        return sum(1 for line in result.stdout.splitlines() if line.strip())

    async def _git_path_exists(self, cwd: Path, name: str) -> bool:
        result = await self._runner.run(cwd, "rev-parse", "--git-path", name)
        if not result.ok or not result.stdout.strip():
            return False
        # --git-path answers relative to cwd unless the git dir lives elsewhere.
        return (cwd / result.stdout.strip()).exists()


async def _probe(check: Awaitable[T], default: T, name: str) -> T:
    """Await an auxiliary probe, falling back to *default* on any failure."""
    try:
        return await check
    except (RepoStateError, OSError) as e:
        logger.debug("status_probe_failed", probe=name, error=str(e))
        return default
