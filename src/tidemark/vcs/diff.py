"""Working-tree diff for whichever backend manages a directory."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

from tidemark.constants import COMMAND_TIMEOUT_SECONDS
from tidemark.darcs.client import DarcsClient
from tidemark.exceptions import CommandFailedError, CommandTimeoutError
from tidemark.git.client import GitClient
from tidemark.logging import get_logger
from tidemark.runners.models import CommandResult
from tidemark.vcs.detection import detect_revision_control
from tidemark.vcs.models import RevisionControlKind

__all__ = ["get_git_workspace_diff", "get_repo_diff"]

logger = get_logger(__name__)

_DIFF_OK_CODES: tuple[int, ...] = (0, 1)

# NUL-separated so non-ASCII names come back unquoted
_UNTRACKED_LISTING: tuple[str, ...] = (
    "ls-files",
    "-z",
    "--others",
    "--exclude-standard",
)


async def get_repo_diff(
    cwd: Path,
    *,
    color: bool = False,
    timeout: float = COMMAND_TIMEOUT_SECONDS,
) -> tuple[RevisionControlKind | None, str]:
    """Diff of uncommitted work for the backend governing ``cwd``.

    ``timeout`` is the budget for each backend command.

    Returns:
        ``(kind, diff)``. ``(None, "")`` when no backend is detected.

    Raises:
        CommandFailedError: If the backend diff command fails.
        CommandTimeoutError: If it does not finish within its budget.
    """
    detected = detect_revision_control(cwd)
    if detected is None:
        return None, ""

    match detected.kind:
        case RevisionControlKind.GIT:
            client = GitClient(cwd, timeout=timeout)
            diff = await get_git_workspace_diff(cwd, color=color, client=client)
        case RevisionControlKind.DARCS:
            darcs = DarcsClient(detected.root, timeout=timeout)
            diff = await darcs.whatsnew(color=color)

    return detected.kind, diff


async def get_git_workspace_diff(
    cwd: Path,
    *,
    color: bool = False,
    client: GitClient | None = None,
) -> str:
    """Tracked changes against the index plus every untracked file as an add.

    The tracked diff and the untracked listing run concurrently, then one
    ``git diff --no-index`` per untracked file. Output keeps listing order.
    """
    client = client or GitClient(cwd)
    if not await client.is_repository():
        return ""

    color_flags = ["--color"] if color else []
    tracked, untracked = await asyncio.gather(
        client.run("diff", *color_flags),
        client.run(*_UNTRACKED_LISTING),
    )
    _check(tracked, ["git", "diff", *color_flags], ok_codes=_DIFF_OK_CODES)
    _check(untracked, ["git", *_UNTRACKED_LISTING])

    files = [name for name in untracked.stdout.split("\0") if name]
    results = await asyncio.gather(
        *(
            client.run("diff", *color_flags, "--no-index", "--", os.devnull, file)
            for file in files
        )
    )

    parts = [tracked.stdout]
    for file, result in zip(files, results, strict=True):
        if not result.succeeded_with(*_DIFF_OK_CODES):
            # Files that vanished between listing and diffing are skipped
            logger.debug("git_untracked_diff_skipped", file=file, stderr=result.stderr)
            continue
        parts.append(result.stdout)
    return "".join(parts)


def _check(
    result: CommandResult,
    command: list[str],
    *,
    ok_codes: tuple[int, ...] = (0,),
) -> None:
    if result.timed_out:
        raise CommandTimeoutError(
            f"{' '.join(command)} timed out",
            command=command,
        )
    if not result.succeeded_with(*ok_codes):
        raise CommandFailedError(command, result.returncode, result.stderr)
