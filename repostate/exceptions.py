"""Shared exception types for repostate."""


class RepoStateError(Exception):
    """Base exception for all repostate errors."""


class ConfigError(RepoStateError):
    """Configuration is invalid or missing."""


class CommandTimeoutError(RepoStateError):
    """A git process was killed after exceeding its time budget."""

    def __init__(self, command: str, timeout: float) -> None:
        self.command = command
        self.timeout = timeout
        super().__init__(f"Git command timed out after {timeout}s: {command}")


class CommandFailedError(RepoStateError):
    """A git process failed without producing output worth parsing."""

    def __init__(self, command: str, message: str, returncode: int | None = None) -> None:
        self.command = command
        self.returncode = returncode
        self.message = message
        super().__init__(f"Git command failed: {command}: {message}")


class InvalidRefNameError(RepoStateError):
    """A branch, remote or start-point name failed ref-format validation."""

    def __init__(self, name: str, kind: str = "branch name") -> None:
        self.name = name
        self.kind = kind
        super().__init__(f"Invalid {kind}: {name!r}")
