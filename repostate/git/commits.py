"""Commit log decoding plus staging, committing and diffs."""

from pathlib import Path

import structlog
from pydantic import ValidationError

from repostate.git.branches import strip_quotes
from repostate.git.models import CommitInfo
from repostate.git.runner import GitRunner

logger = structlog.get_logger()

DEFAULT_LOG_LIMIT = 50

_LOG_FIELDS = (
    "%H",  # hash
    "%h",  # short hash
    "%s",  # subject
    "%b",  # body
    "%an",  # author name
    "%ae",  # author email
    "%aI",  # author date, strict ISO 8601
    "%cn",  # committer name
    "%ce",  # committer email
    "%cI",  # commit date, strict ISO 8601
    "%P",  # parent hashes, space separated
    "%D",  # decorations
)
_FIELD_COUNT = len(_LOG_FIELDS)
# Commit text never contains NUL, so it delimits fields; RS ends each record
# so bodies spanning several lines stay in one piece.
_FIELD_SEP = "\x00"
_RECORD_SEP = "\x1e"
_LOG_FORMAT = "%x00".join(_LOG_FIELDS) + "%x1e"


def parse_commit_log(output: str) -> list[CommitInfo]:
    """Decode ``git log --format=<_LOG_FORMAT>`` output.

    Records with fewer than the expected number of fields, or with dates that
    do not parse, are dropped individually.
    """
    commits: list[CommitInfo] = []
    for record in output.split(_RECORD_SEP):
        clean = strip_quotes(record)
        if not clean:
            continue

        parts = clean.split(_FIELD_SEP)
        if len(parts) < _FIELD_COUNT:
            logger.debug("commit_record_skipped", fields=len(parts))
            continue

        (
            commit_hash,
            short_hash,
            subject,
            body,
            author_name,
            author_email,
            author_date,
            committer_name,
            committer_email,
            commit_date,
            parents,
            refs,
        ) = parts[:_FIELD_COUNT]

        body = body.rstrip()
        ref_list = [r for r in refs.strip().split(", ") if r]
        try:
            commits.append(
                CommitInfo(
                    hash=commit_hash.strip(),
                    short_hash=short_hash,
                    subject=subject,
                    body=body or None,
                    author_name=author_name,
                    author_email=author_email,
                    author_date=author_date,
                    committer_name=committer_name,
                    committer_email=committer_email,
                    commit_date=commit_date,
                    parents=[p for p in parents.split(" ") if p],
                    refs=ref_list or None,
                )
            )
        except ValidationError as e:
            logger.debug("commit_record_invalid", hash=commit_hash, error=str(e))
    return commits


class CommitService:
    def __init__(self, runner: GitRunner) -> None:
        self._runner = runner

    async def log(
        self,
        cwd: Path,
        limit: int = DEFAULT_LOG_LIMIT,
        all_branches: bool = True,
    ) -> list[CommitInfo]:
        """Most recent *limit* commits, across all refs unless told otherwise."""
        if limit < 1:
            raise ValueError(f"limit must be positive, got {limit}")

        args = ["log", f"--format={_LOG_FORMAT}", f"-n{limit}", "--date=iso-strict"]
        if all_branches:
            args.append("--all")

        result = await self._runner.run(cwd, *args)
        if not result.ok:
            # Unborn branches and non-repositories both land here.
            logger.debug("git_log_empty", cwd=str(cwd), stderr=result.stderr.strip())
            return []
        return parse_commit_log(result.stdout)

    async def stage(self, cwd: Path, files: list[str]) -> None:
        if not files:
            return
        await self._runner.run(cwd, "add", "--", *files, check=True)

    async def unstage(self, cwd: Path, files: list[str]) -> None:
        if not files:
            return
        await self._runner.run(cwd, "restore", "--staged", "--", *files, check=True)

    async def commit(self, cwd: Path, message: str) -> str:
        """Commit staged changes and return the new HEAD hash."""
        await self._runner.run(cwd, "commit", "-m", message, check=True)
        result = await self._runner.run(cwd, "rev-parse", "HEAD", check=True)
        commit_hash = result.stdout.strip()
        logger.info("git_commit_created", hash=commit_hash)
        return commit_hash

    async def diff(self, cwd: Path, file: str | None = None) -> str:
        args = ["diff"]
        if file:
            args.extend(["--", file])
        result = await self._runner.run(cwd, *args)
        return result.stdout
