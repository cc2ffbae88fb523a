"""Mock fixtures for the command runner.

Provides:
- make_result: CommandResult factory with convenient defaults
- mock_runner: AsyncMock CommandRunner that succeeds by default
- ScriptedRunner: answers by command prefix, for multi-step algorithms
"""

from __future__ import annotations

from collections.abc import Sequence
from unittest.mock import AsyncMock

import pytest

from tidemark.runners.command import CommandRunner
from tidemark.runners.models import COMMAND_NOT_FOUND, TIMED_OUT, CommandResult


def make_result(
    *,
    returncode: int = 0,
    stdout: str = "",
    stderr: str = "",
    duration_ms: int = 50,
    timed_out: bool = False,
    spawn_failed: bool = False,
) -> CommandResult:
    """Create a CommandResult with convenient defaults."""
    return CommandResult(
        returncode=returncode,
        stdout=stdout,
        stderr=stderr,
        duration_ms=duration_ms,
        timed_out=timed_out,
        spawn_failed=spawn_failed,
    )


def timed_out_result() -> CommandResult:
    """Result of a command killed after its timeout."""
    return make_result(returncode=TIMED_OUT, timed_out=True)


def not_found_result() -> CommandResult:
    """Result of a command whose executable could not be spawned."""
    return make_result(
        returncode=COMMAND_NOT_FOUND, stderr="Command not found", spawn_failed=True
    )


class ScriptedRunner:
    """Fake runner that answers by matching the command's leading arguments.

    Responses are keyed by the argument tuple after the executable. The
    longest matching prefix wins; unmatched commands get ``default``.

    Example:
        >>> runner = ScriptedRunner({("remote",): make_result(stdout="origin\\n")})
        >>> client = GitClient(path, runner=runner.mock)
    """

    def __init__(
        self,
        responses: dict[tuple[str, ...], CommandResult] | None = None,
        default: CommandResult | None = None,
    ) -> None:
        self.responses = dict(responses or {})
        self.default = default or make_result(returncode=1, stderr="unscripted")
        self.calls: list[list[str]] = []
        self.mock = AsyncMock(spec=CommandRunner)
        self.mock.run.side_effect = self._run

    async def _run(self, command: Sequence[str], **kwargs: object) -> CommandResult:
        self.calls.append(list(command))
        args = tuple(command[1:])
        best: tuple[str, ...] | None = None
        for key in self.responses:
            if args[: len(key)] == key and (best is None or len(key) > len(best)):
                best = key
        if best is None:
            return self.default
        return self.responses[best]

    def called(self, *prefix: str) -> list[list[str]]:
        """Recorded calls whose arguments start with ``prefix``."""
        return [call for call in self.calls if tuple(call[1:])[: len(prefix)] == prefix]


@pytest.fixture
def mock_runner() -> AsyncMock:
    """Create a mock CommandRunner that returns success by default."""
    runner = AsyncMock(spec=CommandRunner)
    runner.run.return_value = make_result()
    return runner
