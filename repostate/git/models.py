"""Data models for git repository state."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, computed_field

FileStatus = Literal["modified", "added", "deleted", "renamed", "copied", "conflicted"]


class CommandOutput(BaseModel):
    """Captured result of one git invocation."""

    model_config = ConfigDict(frozen=True)

    returncode: int = 0
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class FileChange(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    old_path: str | None = None
    status: FileStatus
    staged: bool


class BranchInfo(BaseModel):
    """A local or remote-tracking branch.

    Remote branches never carry upstream/ahead/behind.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    is_current: bool = False
    is_remote: bool = False
    remote: str | None = None
    upstream: str | None = None
    ahead: int | None = None
    behind: int | None = None
    last_commit_hash: str | None = None
    last_commit_message: str | None = None


class RepoStatus(BaseModel):
    """Snapshot of a working tree.

    A non-repository is represented as ``is_repo=False`` with everything
    empty, which makes it trivially clean.
    """

    model_config = ConfigDict(frozen=True)

    is_repo: bool
    current_branch: BranchInfo | None = None
    root_path: str | None = None
    staged: list[FileChange] = []
    unstaged: list[FileChange] = []
    untracked: list[str] = []
    conflicted_files: list[str] | None = None
    is_rebasing: bool = False
    is_merging: bool = False
    stash_count: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_clean(self) -> bool:
        return not self.staged and not self.unstaged and not self.untracked

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicted_files)


class CommitInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    hash: str
    short_hash: str
    subject: str
    body: str | None = None
    author_name: str
    author_email: str
    author_date: datetime
    committer_name: str
    committer_email: str
    commit_date: datetime
    parents: list[str] = []
    refs: list[str] | None = None

    @property
    def is_merge(self) -> bool:
        return len(self.parents) >= 2

    @property
    def is_root(self) -> bool:
        return not self.parents


class RemoteInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    fetch_url: str = ""
    push_url: str = ""
    branches: list[str] | None = None


class GitUserConfig(BaseModel):
    """user.name / user.email; ``None`` means unset at the queried scope."""

    model_config = ConfigDict(frozen=True)

    name: str | None = None
    email: str | None = None
