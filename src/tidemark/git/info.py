"""Repository metadata collected with short, independent git queries."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path

from tidemark.git.ancestry import get_default_branch_local
from tidemark.git.client import GitClient
from tidemark.logging import get_logger

__all__ = [
    "CommitLogEntry",
    "GitInfo",
    "collect_git_info",
    "current_branch_name",
    "local_git_branches",
    "recent_commits",
]

logger = get_logger(__name__)

# <sha> US <committer time> US <subject>
_LOG_FIELD_SEPARATOR = "\x1f"
_LOG_FORMAT = "%H%x1f%ct%x1f%s"


@dataclass(frozen=True, slots=True)
class GitInfo:
    """Snapshot of basic repository identity.

    Attributes:
        commit_hash: Full sha of HEAD, None on an unborn branch.
        branch: Current branch, None when HEAD is detached.
        repository_url: URL of the ``origin`` remote, if configured.
    """

    commit_hash: str | None = None
    branch: str | None = None
    repository_url: str | None = None


@dataclass(frozen=True, slots=True)
class CommitLogEntry:
    """One line of history for pickers.

    Attributes:
        sha: Full commit sha.
        timestamp: Committer time in seconds since the epoch.
        subject: First line of the commit message.
    """

    sha: str
    timestamp: int
    subject: str


async def collect_git_info(
    cwd: Path,
    *,
    client: GitClient | None = None,
) -> GitInfo | None:
    """Collect HEAD sha, branch, and origin URL.

    The three queries run concurrently once ``cwd`` is known to be inside a
    repository. A query that fails leaves its field None.

    Returns:
        :class:`GitInfo`, or None if ``cwd`` is not a git repository.
    """
    client = client or GitClient(cwd)
    if not await client.is_repository():
        return None

    commit_hash, branch, url = await asyncio.gather(
        client.stdout("rev-parse", "HEAD"),
        client.stdout("rev-parse", "--abbrev-ref", "HEAD"),
        client.stdout("remote", "get-url", "origin"),
    )

    branch_name = branch.strip() if branch is not None else None
    if branch_name == "HEAD":
        branch_name = None

    return GitInfo(
        commit_hash=commit_hash.strip() if commit_hash is not None else None,
        branch=branch_name or None,
        repository_url=url.strip() if url is not None else None,
    )


async def recent_commits(
    cwd: Path,
    limit: int,
    *,
    client: GitClient | None = None,
) -> list[CommitLogEntry]:
    """Last ``limit`` commits reachable from HEAD, newest first.

    Returns an empty list outside a repository or on any git failure.
    """
    client = client or GitClient(cwd)
    if not await client.is_repository():
        return []

    text = await client.stdout(
        "log", "-n", str(max(limit, 1)), f"--pretty=format:{_LOG_FORMAT}"
    )
    if text is None:
        return []

    entries: list[CommitLogEntry] = []
    for line in text.splitlines():
        sha, _, rest = line.partition(_LOG_FIELD_SEPARATOR)
        timestamp_text, _, subject = rest.partition(_LOG_FIELD_SEPARATOR)
        sha = sha.strip()
        timestamp_text = timestamp_text.strip()
        if not sha or not timestamp_text:
            continue
        try:
            timestamp = int(timestamp_text)
        except ValueError:
            timestamp = 0
        entries.append(
            CommitLogEntry(sha=sha, timestamp=timestamp, subject=subject.strip())
        )
    return entries


async def local_git_branches(
    cwd: Path,
    *,
    client: GitClient | None = None,
) -> list[str]:
    """Local branch names, sorted, with ``main``/``master`` moved first."""
    client = client or GitClient(cwd)
    branches = sorted(
        await client.stdout_lines("branch", "--format=%(refname:short)") or []
    )

    default_branch = await get_default_branch_local(client)
    if default_branch is not None and default_branch in branches:
        branches.remove(default_branch)
        branches.insert(0, default_branch)
    return branches


async def current_branch_name(
    cwd: Path,
    *,
    client: GitClient | None = None,
) -> str | None:
    """Checked-out branch, or None when detached or on failure."""
    client = client or GitClient(cwd)
    name = await client.stdout("branch", "--show-current")
    if name is None:
        return None
    return name.strip() or None
