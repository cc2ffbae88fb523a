"""Data models for subprocess execution."""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "COMMAND_NOT_FOUND",
    "PERMISSION_DENIED",
    "TIMED_OUT",
    "CommandResult",
]

#: Synthetic exit status when the executable does not exist
COMMAND_NOT_FOUND: int = 127

#: Synthetic exit status when the executable cannot be run
PERMISSION_DENIED: int = 126

#: Exit status reported for a process killed after its timeout
TIMED_OUT: int = -1


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of executing a single command.

    Attributes:
        returncode: Exit code from the command (0 = success).
        stdout: Standard output captured from the command.
        stderr: Standard error captured from the command.
        duration_ms: Execution time in milliseconds.
        timed_out: True if the command exceeded its timeout limit.
        spawn_failed: True if the executable could not be started at all.
            ``returncode`` then holds a synthetic 127 or 126.
    """

    returncode: int
    stdout: str
    stderr: str
    duration_ms: int
    timed_out: bool = False
    spawn_failed: bool = False

    @property
    def success(self) -> bool:
        """True if command completed successfully (returncode 0, no timeout)."""
        return self.returncode == 0 and not self.timed_out

    @property
    def launched(self) -> bool:
        """True if the process ran to completion and reported a status.

        False for timeouts and for executables that could not be spawned.
        Callers treat a result that was not launched as "no answer".
        """
        return not (self.timed_out or self.spawn_failed)

    def succeeded_with(self, *codes: int) -> bool:
        """True if the process ran and exited with one of ``codes``.

        Diff-producing commands report differences with status 1, so they
        call ``result.succeeded_with(0, 1)``.
        """
        return self.launched and self.returncode in codes

    @property
    def output(self) -> str:
        """Combined stdout and stderr for convenience."""
        if self.stderr:
            return f"{self.stdout}\n{self.stderr}" if self.stdout else self.stderr
        return self.stdout
