"""External command execution.

Every git and docker invocation goes through ``CommandRunner`` so the
outcome is a typed ``CommandResult`` rather than a truthy/falsy shell
status. The runner never raises for a failed command; callers decide
whether a failure is fatal via ``CommandResult.check()``.
"""

from __future__ import annotations

import asyncio
import shlex
import time
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from hub_updater.errors import CommandFailedError
from hub_updater.logging import get_logger

log = get_logger("hub_updater.runner")

# Characters of stderr kept in logs and error messages
STDERR_TAIL_CHARS = 500


class ErrorKind(StrEnum):
    """Why a command did not succeed."""

    NONE = "none"
    EXIT_STATUS = "exit_status"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    OS_ERROR = "os_error"


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one external command."""

    args: tuple[str, ...]
    returncode: int | None
    stdout: str = ""
    stderr: str = ""
    error_kind: ErrorKind = ErrorKind.NONE
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error_kind is ErrorKind.NONE and self.returncode == 0

    @property
    def command_line(self) -> str:
        return shlex.join(self.args)

    @property
    def stderr_tail(self) -> str:
        return self.stderr.strip()[-STDERR_TAIL_CHARS:]

    def describe_failure(self) -> str:
        """Short human-readable reason, e.g. ``exit status 2``."""
        if self.error_kind is ErrorKind.EXIT_STATUS:
            return f"exit status {self.returncode}"
        if self.error_kind is ErrorKind.NOT_FOUND:
            return "executable not found"
        if self.error_kind is ErrorKind.TIMEOUT:
            return f"timed out after {self.duration_seconds:.0f}s"
        if self.error_kind is ErrorKind.OS_ERROR:
            return f"could not start: {self.stderr_tail}"
        return "ok"

    def check(self) -> CommandResult:
        """Return self if the command succeeded, else raise ``CommandFailedError``."""
        if not self.ok:
            raise CommandFailedError(self)
        return self


class CommandRunner:
    """Runs argv-style commands (never through a shell) on the event loop."""

    def __init__(self, timeout: float = 300) -> None:
        self._timeout = timeout

    async def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
        capture: bool = True,
    ) -> CommandResult:
        """Run a command and classify its outcome.

        With ``capture=False`` the child writes directly to the terminal,
        which is what long-running build and pull output wants; the result
        then carries empty stdout/stderr.

        On cancellation the child process is killed before the
        cancellation propagates.
        """
        argv = tuple(str(arg) for arg in args)
        limit = self._timeout if timeout is None else timeout
        pipe = asyncio.subprocess.PIPE if capture else None
        log.debug("command_start", cmd=shlex.join(argv), cwd=str(cwd) if cwd else None)

        start = time.monotonic()
        if cwd is not None and not Path(cwd).is_dir():
            message = f"working directory does not exist: {cwd}"
            return self._finish(argv, None, "", message, ErrorKind.OS_ERROR, start)

        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdout=pipe,
                stderr=pipe,
                cwd=cwd,
            )
        except FileNotFoundError as exc:
            return self._finish(argv, None, "", str(exc), ErrorKind.NOT_FOUND, start)
        except OSError as exc:
            return self._finish(argv, None, "", str(exc), ErrorKind.OS_ERROR, start)

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=limit)
        except TimeoutError:
            await self._kill(proc)
            return self._finish(argv, proc.returncode, "", "", ErrorKind.TIMEOUT, start)
        except asyncio.CancelledError:
            await self._kill(proc)
            raise

        kind = ErrorKind.NONE if proc.returncode == 0 else ErrorKind.EXIT_STATUS
        return self._finish(
            argv,
            proc.returncode,
            (stdout or b"").decode(errors="replace"),
            (stderr or b"").decode(errors="replace"),
            kind,
            start,
        )

    @staticmethod
    async def _kill(proc: asyncio.subprocess.Process) -> None:
        if proc.returncode is None:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
            await proc.wait()

    @staticmethod
    def _finish(
        argv: tuple[str, ...],
        returncode: int | None,
        stdout: str,
        stderr: str,
        kind: ErrorKind,
        start: float,
    ) -> CommandResult:
        result = CommandResult(
            args=argv,
            returncode=returncode,
            stdout=stdout,
            stderr=stderr,
            error_kind=kind,
            duration_seconds=round(time.monotonic() - start, 2),
        )
        if result.ok:
            log.debug("command_ok", cmd=result.command_line, duration=result.duration_seconds)
        else:
            log.debug(
                "command_failed",
                cmd=result.command_line,
                error_kind=str(kind),
                returncode=returncode,
                stderr=result.stderr_tail,
            )
        return result
