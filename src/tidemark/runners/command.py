"""Async subprocess execution for backend CLIs.

:class:`CommandRunner` runs ``git`` and ``darcs`` with an argument vector (no
shell), a per-command timeout, and a merged environment. It never raises for
a failed or missing command; those become a :class:`CommandResult` so that
callers can decide whether a failure is fatal or just "no answer".
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import time
from pathlib import Path
from typing import TYPE_CHECKING

from tidemark.exceptions import WorkingDirectoryError
from tidemark.logging import get_logger
from tidemark.runners.models import (
    COMMAND_NOT_FOUND,
    PERMISSION_DENIED,
    TIMED_OUT,
    CommandResult,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = ["CommandRunner"]

logger = get_logger(__name__)

TERMINATION_GRACE_PERIOD: float = 2.0
PARTIAL_OUTPUT_READ_TIMEOUT: float = 0.1


class CommandRunner:
    """Execute commands with timeout and environment control.

    - Timeout handling with graceful termination (SIGTERM, grace period, SIGKILL)
    - Working directory validation
    - Environment variable inheritance and override

    Each call runs the command exactly once.

    Attributes:
        cwd: Working directory for command execution.
        timeout: Default timeout in seconds (None for no timeout).

    Example:
        ```python
        runner = CommandRunner(cwd=Path("/project"), timeout=5.0)
        result = await runner.run(["git", "rev-parse", "HEAD"])
        if result.success:
            print(result.stdout.strip())
        ```
    """

    def __init__(
        self,
        cwd: Path | None = None,
        timeout: float | None = 120.0,
        env: dict[str, str] | None = None,
    ) -> None:
        """Initialize the CommandRunner.

        Args:
            cwd: Working directory for commands. If None, uses current directory.
            timeout: Default timeout in seconds. Use None for no timeout.
            env: Additional environment variables to merge with os.environ.
        """
        self._cwd = cwd
        self._timeout = timeout
        self._extra_env = env or {}

    @property
    def cwd(self) -> Path | None:
        """Working directory for command execution."""
        return self._cwd

    @property
    def timeout(self) -> float | None:
        """Default timeout in seconds."""
        return self._timeout

    def _validate_cwd(self, cwd: Path | None) -> None:
        if cwd is not None and not cwd.is_dir():
            raise WorkingDirectoryError(
                f"Working directory does not exist: {cwd}",
                path=cwd,
            )

    def _build_env(self, extra_env: dict[str, str] | None = None) -> dict[str, str]:
        env = os.environ.copy()
        env.update(self._extra_env)
        if extra_env:
            env.update(extra_env)
        return env

    async def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        """Execute a command and return the result.

        Args:
            command: Command and arguments as a sequence (no shell expansion).
            cwd: Override working directory for this command.
            timeout: Override timeout. Use 0 or negative for no timeout.
            env: Additional environment variables for this command.

        Returns:
            CommandResult with returncode, stdout, stderr, duration_ms, timed_out.

        Raises:
            WorkingDirectoryError: If working directory does not exist.
        """
        effective_cwd = cwd if cwd is not None else self._cwd
        self._validate_cwd(effective_cwd)

        effective_timeout = timeout if timeout is not None else self._timeout
        if effective_timeout is not None and effective_timeout <= 0:
            effective_timeout = None

        effective_env = self._build_env(env)

        return await self._execute_once(
            command, effective_cwd, effective_timeout, effective_env
        )

    async def _execute_once(
        self,
        command: Sequence[str],
        cwd: Path | None,
        timeout: float | None,
        env: dict[str, str],
    ) -> CommandResult:
        start_time = time.monotonic()
        timed_out = False
        spawn_failed = False
        returncode = 0
        stdout_str = ""
        stderr_str = ""

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                env=env,
            )

            try:
                stdout_bytes, stderr_bytes = await asyncio.wait_for(
                    process.communicate(),
                    timeout=timeout,
                )
                returncode = process.returncode or 0
                stdout_str = stdout_bytes.decode("utf-8", errors="replace")
                stderr_str = stderr_bytes.decode("utf-8", errors="replace")

            except TimeoutError:
                timed_out = True
                process.terminate()
                try:
                    await asyncio.wait_for(
                        process.wait(), timeout=TERMINATION_GRACE_PERIOD
                    )
                except TimeoutError:
                    process.kill()
                    await process.wait()

                returncode = TIMED_OUT
                stdout_str = await _read_partial(process.stdout)
                stderr_str = await _read_partial(process.stderr)
                logger.debug(
                    "command_timed_out",
                    command=list(command),
                    timeout=timeout,
                )

        except FileNotFoundError:
            spawn_failed = True
            returncode = COMMAND_NOT_FOUND
            stderr_str = f"Command not found: {command[0]}"
        except PermissionError:
            spawn_failed = True
            returncode = PERMISSION_DENIED
            stderr_str = f"Permission denied: {command[0]}"

        duration_ms = int((time.monotonic() - start_time) * 1000)

        return CommandResult(
            returncode=returncode,
            stdout=stdout_str,
            stderr=stderr_str,
            duration_ms=duration_ms,
            timed_out=timed_out,
            spawn_failed=spawn_failed,
        )


async def _read_partial(stream: asyncio.StreamReader | None) -> str:
    """Best-effort read of whatever a killed process left in its pipe."""
    if stream is None:
        return ""
    with contextlib.suppress(TimeoutError, OSError, ValueError):
        data = await asyncio.wait_for(
            stream.read(), timeout=PARTIAL_OUTPUT_READ_TIMEOUT
        )
        return data.decode("utf-8", errors="replace")
    return ""
