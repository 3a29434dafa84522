"""Single API surface over the git services."""

from pathlib import Path

from repostate.git.branches import BranchService
from repostate.git.commits import DEFAULT_LOG_LIMIT, CommitService
from repostate.git.models import (
    BranchInfo,
    CommitInfo,
    GitUserConfig,
    RemoteInfo,
    RepoStatus,
)
from repostate.git.remotes import DEFAULT_CONCURRENCY, DEFAULT_REMOTE, RemoteService
from repostate.git.repo import RepoService
from repostate.git.runner import GitRunner
from repostate.git.status import StatusService

PathLike = str | Path


class GitClient:
    """Composes the git services; every call reflects live on-disk state."""

    def __init__(
        self,
        runner: GitRunner,
        repo: RepoService,
        branches: BranchService,
        status: StatusService,
        commits: CommitService,
        remotes: RemoteService,
    ) -> None:
        self.runner = runner
        self.repo = repo
        self.branches = branches
        self.status = status
        self.commits = commits
        self.remotes = remotes

    @classmethod
    def create(
        cls,
        runner: GitRunner | None = None,
        *,
        remote_concurrency: int = DEFAULT_CONCURRENCY,
    ) -> "GitClient":
        """Wire the default service graph around *runner*."""
        runner = runner or GitRunner()
        repo = RepoService(runner)
        branches = BranchService(runner)
        return cls(
            runner=runner,
            repo=repo,
            branches=branches,
            status=StatusService(runner, repo, branches),
            commits=CommitService(runner),
            remotes=RemoteService(runner, concurrency=remote_concurrency),
        )

    # Repository identity

    async def is_repo(self, path: PathLike) -> bool:
        return await self.repo.is_repo(Path(path))

    async def get_root(self, path: PathLike) -> str:
        return await self.repo.root(Path(path))

    async def get_user_config(self, path: PathLike) -> GitUserConfig:
        return await self.repo.user_config(Path(path))

    async def set_user_config(
        self,
        path: PathLike,
        name: str | None = None,
        email: str | None = None,
        *,
        global_scope: bool = False,
    ) -> None:
        await self.repo.set_user_config(
            Path(path), name, email, global_scope=global_scope
        )

    # Branches

    async def get_branches(self, path: PathLike) -> list[BranchInfo]:
        return await self.branches.branches(Path(path))

    async def get_current_branch(self, path: PathLike) -> str:
        return await self.branches.current_branch(Path(path))

    async def checkout(self, path: PathLike, branch: str) -> None:
        await self.branches.checkout(Path(path), branch)

    async def create_branch(
        self, path: PathLike, name: str, start_point: str | None = None
    ) -> None:
        await self.branches.create_branch(Path(path), name, start_point)

    # Working tree

    async def get_status(self, path: PathLike) -> RepoStatus:
        return await self.status.status(Path(path))

    async def get_uncommitted_count(self, path: PathLike) -> int:
        return await self.status.uncommitted_count(Path(path))

    # History

    async def get_commit_log(
        self,
        path: PathLike,
        limit: int = DEFAULT_LOG_LIMIT,
        all_branches: bool = True,
    ) -> list[CommitInfo]:
        return await self.commits.log(Path(path), limit, all_branches)

    async def stage(self, path: PathLike, files: list[str]) -> None:
        await self.commits.stage(Path(path), files)

    async def unstage(self, path: PathLike, files: list[str]) -> None:
        await self.commits.unstage(Path(path), files)

    async def commit(self, path: PathLike, message: str) -> str:
        return await self.commits.commit(Path(path), message)

    async def diff(self, path: PathLike, file: str | None = None) -> str:
        return await self.commits.diff(Path(path), file)

    # Remotes

    async def get_remotes(self, path: PathLike) -> list[RemoteInfo]:
        return await self.remotes.remotes(Path(path))

    async def push(
        self, path: PathLike, remote: str = DEFAULT_REMOTE, branch: str | None = None
    ) -> None:
        await self.remotes.push(Path(path), remote, branch)

    async def pull(
        self, path: PathLike, remote: str = DEFAULT_REMOTE, branch: str | None = None
    ) -> None:
        await self.remotes.pull(Path(path), remote, branch)

    async def fetch(self, path: PathLike, remote: str | None = None) -> None:
        await self.remotes.fetch(Path(path), remote)
