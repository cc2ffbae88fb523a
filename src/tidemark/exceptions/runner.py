"""Exceptions raised around backend subprocesses.

:class:`~tidemark.runners.command.CommandRunner` itself only raises
:class:`WorkingDirectoryError`; a command that fails, times out, or cannot be
spawned comes back as a ``CommandResult``. Callers that need a hard failure
(snapshot steps, the working-tree diff) raise :class:`CommandTimeoutError`
from that result.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from tidemark.exceptions.base import TidemarkError


class RunnerError(TidemarkError):
    """Base exception for subprocess execution problems."""


class WorkingDirectoryError(RunnerError):
    """The directory a command should run in is missing.

    Attributes:
        path: Directory that was requested.
    """

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        self.path = path
        super().__init__(message)


class CommandTimeoutError(RunnerError):
    """A backend command a snapshot or diff depends on ran out of time.

    Attributes:
        timeout_seconds: Budget that was exceeded.
        command: Argument vector of the killed command.
    """

    def __init__(
        self,
        message: str,
        timeout_seconds: float | None = None,
        command: Sequence[str] | None = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.command = list(command) if command is not None else None
        super().__init__(message)
