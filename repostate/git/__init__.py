from repostate.git.client import GitClient
from repostate.git.models import (
    BranchInfo,
    CommandOutput,
    CommitInfo,
    FileChange,
    GitUserConfig,
    RemoteInfo,
    RepoStatus,
)

__all__ = [
    "BranchInfo",
    "CommandOutput",
    "CommitInfo",
    "FileChange",
    "GitClient",
    "GitUserConfig",
    "RemoteInfo",
    "RepoStatus",
]
