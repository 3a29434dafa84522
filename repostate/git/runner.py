"""Async executor for git CLI invocations."""

import asyncio
import contextlib
import os
from pathlib import Path

import structlog

from repostate.exceptions import CommandFailedError, CommandTimeoutError
from repostate.git.models import CommandOutput

logger = structlog.get_logger()

DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_OUTPUT_BYTES = 10 * 1024 * 1024
_READ_CHUNK = 65536

# No credential prompts; fixed locale so dates and messages parse the same everywhere.
GIT_ENV = {
    "GIT_TERMINAL_PROMPT": "0",
    "LC_ALL": "C",
}


class _OutputLimitExceeded(Exception):
    pass


async def _read_capped(stream: asyncio.StreamReader, limit: int) -> bytes:
    """Read *stream* to EOF, giving up as soon as it passes *limit* bytes."""
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await stream.read(_READ_CHUNK)
        if not chunk:
            break
        total += len(chunk)
        if total > limit:
            raise _OutputLimitExceeded
        chunks.append(chunk)
    return b"".join(chunks)


async def _kill(proc: asyncio.subprocess.Process) -> None:
    with contextlib.suppress(ProcessLookupError):
        proc.kill()
        await proc.wait()


class GitRunner:
    """Runs one git subcommand at a time with timeout and output limits."""

    def __init__(
        self,
        *,
        binary: str = "git",
        timeout: float = DEFAULT_TIMEOUT,
        max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
    ) -> None:
        self._binary = binary
        self._timeout = timeout
        self._max_output_bytes = max_output_bytes

    @property
    def timeout(self) -> float:
        return self._timeout

    async def run(
        self,
        cwd: Path,
        *args: str,
        timeout: float | None = None,
        check: bool = False,
    ) -> CommandOutput:
        """Execute ``git *args`` in *cwd*.

        A non-zero exit that still printed something is returned as-is so the
        caller can parse it; plumbing probes report "not found" that way.
        With ``check=True`` any non-zero exit raises CommandFailedError.
        The process is killed whenever the call does not complete normally,
        including when the awaiting task is cancelled.

        Raises:
            CommandTimeoutError: the process outlived its budget and was killed.
            CommandFailedError: git could not be started, its output exceeded
                the cap, or it failed without printing anything.
        """
        budget = self._timeout if timeout is None else timeout
        command = " ".join(("git", *args))

        if not cwd.is_dir():
            result = CommandOutput(
                returncode=1, stderr=f"Directory does not exist: {cwd}"
            )
            if check:
                raise CommandFailedError(command, result.stderr, result.returncode)
            return result

        logger.debug("git_exec", command=command, cwd=str(cwd))

        try:
            proc = await asyncio.create_subprocess_exec(
                self._binary,
                *args,
                cwd=cwd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env={**os.environ, **GIT_ENV},
            )
        except FileNotFoundError:
            raise CommandFailedError(
                command, f"{self._binary} is not installed or not in PATH"
            ) from None
        except OSError as e:
            logger.error("git_exec_error", command=command, error=str(e))
            raise CommandFailedError(command, str(e)) from e

        completed = False
        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                self._collect(proc), timeout=budget
            )
            completed = True
        except TimeoutError:
            logger.warning("git_exec_timeout", command=command, timeout=budget)
            raise CommandTimeoutError(command, budget) from None
        except _OutputLimitExceeded:
            logger.warning(
                "git_exec_output_limit", command=command, limit=self._max_output_bytes
            )
            raise CommandFailedError(
                command, f"output exceeded {self._max_output_bytes} bytes"
            ) from None
        finally:
            if not completed:
                await _kill(proc)

        returncode = proc.returncode or 0
        stdout = stdout_bytes.decode("utf-8", errors="replace")
        stderr = stderr_bytes.decode("utf-8", errors="replace")

        if returncode != 0:
            if check:
                message = stderr.strip() or stdout.strip() or f"exit code {returncode}"
                raise CommandFailedError(command, message, returncode)
            if not stdout and not stderr:
                raise CommandFailedError(command, f"exit code {returncode}", returncode)
            logger.debug("git_exec_nonzero", command=command, returncode=returncode)

        return CommandOutput(returncode=returncode, stdout=stdout, stderr=stderr)

    async def _collect(self, proc: asyncio.subprocess.Process) -> tuple[bytes, bytes]:
        # Both pipes are drained together so a full stderr cannot stall stdout.
        stdout, stderr = await asyncio.gather(
            _read_capped(proc.stdout, self._max_output_bytes),
            _read_capped(proc.stderr, self._max_output_bytes),
        )
        await proc.wait()
        return stdout, stderr
