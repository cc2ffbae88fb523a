"""Async client for read-only ``git`` queries.

Wraps ``git`` invocations in :class:`~tidemark.runners.command.CommandRunner`
with a short per-command timeout. Query helpers never raise for a failing
command: a timeout, spawn failure, or non-zero exit becomes ``None`` so that
metadata collection and remote-diff resolution degrade to "no answer".
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from tidemark.constants import COMMAND_TIMEOUT_SECONDS
from tidemark.logging import get_logger
from tidemark.runners.command import CommandRunner

if TYPE_CHECKING:
    from tidemark.runners.models import CommandResult

__all__ = ["GitClient"]

logger = get_logger(__name__)


class GitClient:
    """Thin async wrapper around the ``git`` CLI.

    Args:
        cwd: Working directory for ``git`` commands.
        runner: Optional pre-configured CommandRunner. Created if not provided.
        timeout: Budget per command in seconds.

    Example:
        ```python
        client = GitClient(Path("/project"))
        head = await client.stdout("rev-parse", "HEAD")
        ```
    """

    def __init__(
        self,
        cwd: Path,
        runner: CommandRunner | None = None,
        *,
        timeout: float = COMMAND_TIMEOUT_SECONDS,
    ) -> None:
        self._cwd = cwd
        self._timeout = timeout
        self._runner = runner or CommandRunner(cwd=cwd, timeout=timeout)

    @property
    def cwd(self) -> Path:
        """Working directory for git commands."""
        return self._cwd

    async def run(self, *args: str) -> CommandResult:
        """Run ``git <args>`` and return the raw result.

        Check ``result.launched`` to tell "no answer" (timeout, git missing)
        apart from a command that ran and failed.
        """
        result = await self._runner.run(
            ["git", *args],
            cwd=self._cwd,
            timeout=self._timeout,
        )
        if not result.launched:
            logger.debug(
                "git_command_no_answer",
                args=list(args),
                timed_out=result.timed_out,
                returncode=result.returncode,
            )
        return result

    async def stdout(self, *args: str) -> str | None:
        """Run ``git <args>`` and return stdout when it exits 0, else None."""
        result = await self.run(*args)
        if not result.success:
            return None
        return result.stdout

    async def stdout_lines(self, *args: str) -> list[str] | None:
        """Like :meth:`stdout`, split into stripped non-empty lines."""
        text = await self.stdout(*args)
        if text is None:
            return None
        return [line.strip() for line in text.splitlines() if line.strip()]

    async def is_repository(self) -> bool:
        """True if ``git rev-parse --git-dir`` succeeds here."""
        result = await self.run("rev-parse", "--git-dir")
        return result.success
