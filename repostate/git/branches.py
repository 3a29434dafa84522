"""Branch enumeration with tracking info, plus checkout and branch creation."""

import re
from pathlib import Path
from typing import NamedTuple

import structlog

from repostate.exceptions import CommandFailedError
from repostate.git.models import BranchInfo
from repostate.git.refs import validate_ref_name
from repostate.git.runner import GitRunner

logger = structlog.get_logger()

# head marker | short name | "refs/heads" or "refs/remotes"
_BRANCH_FORMAT = "%(HEAD)|%(refname:short)|%(refname:rstrip=-2)"
_LOCAL_REF_FORMAT = (
    "%(refname:short)|%(objectname:short)|%(subject)"
    "|%(upstream:short)|%(upstream:track)"
)
_REMOTE_REF_FORMAT = "%(refname:short)|%(objectname:short)|%(subject)"

_AHEAD_RE = re.compile(r"ahead (\d+)")
_BEHIND_RE = re.compile(r"behind (\d+)")
_QUOTES = "\"'"


class _RefDetail(NamedTuple):
    short_hash: str | None
    subject: str | None
    upstream: str | None = None
    track: str = ""


def strip_quotes(text: str) -> str:
    """Remove one matching pair of quotes wrapping the whole of *text*.

    Unpaired quotes are content (a subject like ``Revert "x"`` ends in one)
    and are kept.
    """
    text = text.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in _QUOTES:
        return text[1:-1]
    return text


def parse_tracking(track: str) -> tuple[int | None, int | None]:
    """Extract (ahead, behind) from text like ``[ahead 2, behind 1]``."""
    ahead = _AHEAD_RE.search(track)
    behind = _BEHIND_RE.search(track)
    return (
        int(ahead.group(1)) if ahead else None,
        int(behind.group(1)) if behind else None,
    )


def _remote_of(ref: str) -> str:
    return ref.split("/", 1)[0]


def _is_pointer(name: str) -> bool:
    return name == "HEAD" or name.endswith("/HEAD") or name.startswith("(")


def parse_branch_listing(output: str, current: str) -> list[BranchInfo]:
    """Parse ``git branch -a --format=<_BRANCH_FORMAT>`` output."""
    branches: list[BranchInfo] = []
    for line in output.splitlines():
        clean = strip_quotes(line)
        if not clean:
            continue
        parts = clean.split("|")
        if len(parts) < 2:
            continue

        marker = parts[0].strip()
        name = strip_quotes(parts[1])
        ref_type = strip_quotes(parts[2]) if len(parts) > 2 else ""
        is_remote = "remotes" in ref_type

        if not name or _is_pointer(name):
            continue
        # refs/remotes/origin/HEAD shortens to just "origin"
        if is_remote and "/" not in name:
            continue

        branches.append(
            BranchInfo(
                name=name,
                is_current=marker == "*" or (not is_remote and name == current),
                is_remote=is_remote,
                remote=_remote_of(name) if is_remote else None,
            )
        )
    return branches


def parse_local_refs(output: str) -> dict[str, _RefDetail]:
    """Parse ``for-each-ref refs/heads/`` output keyed by short name."""
    details: dict[str, _RefDetail] = {}
    for line in output.splitlines():
        clean = strip_quotes(line)
        head = clean.split("|", 2)
        if len(head) < 3 or not head[0].strip():
            continue
        name, short_hash, rest = head
        # The subject may itself contain "|"; upstream and track are peeled off the right.
        tail = rest.rsplit("|", 2)
        if len(tail) < 3:
            continue
        subject, upstream, track = tail
        details[name.strip()] = _RefDetail(
            short_hash=short_hash or None,
            subject=subject or None,
            upstream=upstream.strip() or None,
            track=track.strip(),
        )
    return details


def parse_remote_refs(output: str) -> dict[str, _RefDetail]:
    """Parse ``for-each-ref refs/remotes/`` output keyed by short name."""
    details: dict[str, _RefDetail] = {}
    for line in output.splitlines():
        clean = strip_quotes(line)
        parts = clean.split("|", 2)
        if len(parts) < 3:
            continue
        name = parts[0].strip()
        if not name or _is_pointer(name) or "/" not in name:
            continue
        details[name] = _RefDetail(
            short_hash=parts[1] or None,
            subject=parts[2] or None,
        )
    return details


def _with_local_detail(branch: BranchInfo, detail: _RefDetail) -> BranchInfo:
    update: dict[str, object] = {
        "last_commit_hash": detail.short_hash,
        "last_commit_message": detail.subject,
    }
    if detail.upstream:
        ahead, behind = parse_tracking(detail.track)
        update.update(
            upstream=detail.upstream,
            remote=_remote_of(detail.upstream),
            ahead=ahead,
            behind=behind,
        )
    return branch.model_copy(update=update)


def _with_remote_detail(branch: BranchInfo, detail: _RefDetail) -> BranchInfo:
    return branch.model_copy(
        update={
            "last_commit_hash": detail.short_hash,
            "last_commit_message": detail.subject,
        }
    )


class BranchService:
    """Builds the branch list and performs branch mutations."""

    def __init__(self, runner: GitRunner) -> None:
        self._runner = runner

    async def current_branch(self, cwd: Path) -> str:
        """Name of the checked-out branch.

        Returns ``"HEAD"`` when detached and ``""`` outside a repository.
        """
        return await self._symbolic_head(cwd) or await self._abbrev_head(cwd)

    async def branches(self, cwd: Path) -> list[BranchInfo]:
        """All local and remote-tracking branches."""
        current = await self.current_branch(cwd)

        skeleton = parse_branch_listing(await self._branch_listing(cwd), current)
        if skeleton:
            return await self._enrich(cwd, skeleton)

        logger.debug("branch_listing_empty_falling_back", cwd=str(cwd))
        return await self._branches_from_refs(cwd, current) or _unborn(current)

    async def checkout(self, cwd: Path, branch: str) -> None:
        validate_ref_name(branch)
        logger.info("git_checkout", branch=branch, cwd=str(cwd))
        await self._runner.run(cwd, "checkout", branch, check=True)

    async def create_branch(
        self, cwd: Path, name: str, start_point: str | None = None
    ) -> None:
        """Create *name* (optionally from *start_point*) and switch to it."""
        validate_ref_name(name)
        if start_point:
            validate_ref_name(start_point, "start point")

        args = ["checkout", "-b", name]
        if start_point:
            args.append(start_point)
        logger.info("git_create_branch", branch=name, start_point=start_point)
        await self._runner.run(cwd, *args, check=True)

    async def _symbolic_head(self, cwd: Path) -> str | None:
        # Works on an unborn branch; fails quietly when HEAD is detached.
        try:
            result = await self._runner.run(
                cwd, "symbolic-ref", "--quiet", "--short", "HEAD"
            )
        except CommandFailedError:
            return None
        if not result.ok:
            return None
        return result.stdout.strip() or None

    async def _abbrev_head(self, cwd: Path) -> str:
        try:
            result = await self._runner.run(cwd, "rev-parse", "--abbrev-ref", "HEAD")
        except CommandFailedError:
            return ""
        return result.stdout.strip() if result.ok else ""

    async def _branch_listing(self, cwd: Path) -> str:
        try:
            result = await self._runner.run(
                cwd, "branch", "-a", "--no-color", f"--format={_BRANCH_FORMAT}"
            )
        except CommandFailedError:
            return ""
        return result.stdout if result.ok else ""

    async def _ref_details(
        self, cwd: Path
    ) -> tuple[dict[str, _RefDetail], dict[str, _RefDetail]]:
        local = await self._runner.run(
            cwd, "for-each-ref", f"--format={_LOCAL_REF_FORMAT}", "refs/heads/"
        )
        remote = await self._runner.run(
            cwd, "for-each-ref", f"--format={_REMOTE_REF_FORMAT}", "refs/remotes/"
        )
        return (
            parse_local_refs(local.stdout) if local.ok else {},
            parse_remote_refs(remote.stdout) if remote.ok else {},
        )

    async def _enrich(
        self, cwd: Path, skeleton: list[BranchInfo]
    ) -> list[BranchInfo]:
        try:
            local, remote = await self._ref_details(cwd)
        except CommandFailedError as e:
            logger.debug("branch_enrichment_failed", error=str(e))
            return skeleton

        enriched: list[BranchInfo] = []
        for branch in skeleton:
            if branch.is_remote and branch.name in remote:
                branch = _with_remote_detail(branch, remote[branch.name])
            elif not branch.is_remote and branch.name in local:
                branch = _with_local_detail(branch, local[branch.name])
            enriched.append(branch)
        return enriched

    async def _branches_from_refs(self, cwd: Path, current: str) -> list[BranchInfo]:
        try:
            local, remote = await self._ref_details(cwd)
        except CommandFailedError as e:
            logger.debug("ref_listing_failed", error=str(e))
            return []

        branches = [
            _with_local_detail(
                BranchInfo(name=name, is_current=name == current), detail
            )
            for name, detail in local.items()
        ]
        branches.extend(
            _with_remote_detail(
                BranchInfo(name=name, is_remote=True, remote=_remote_of(name)),
                detail,
            )
            for name, detail in remote.items()
        )
        return branches


def _unborn(current: str) -> list[BranchInfo]:
    """A freshly initialised repository has a current branch but no refs yet."""
    if not current or current == "HEAD":
        return []
    return [BranchInfo(name=current, is_current=True)]
