"""Diff the working tree against the closest commit shared with a remote.

Resolution runs in three strictly ordered steps:

1. :func:`~tidemark.git.ancestry.branch_ancestry` lists candidate branches.
2. :func:`find_closest_commit` picks the candidate whose remote copy HEAD is
   fewest commits ahead of.
3. :func:`diff_against_commit` diffs the working tree against that commit and
   appends a synthesized diff for every untracked file.

Per-candidate failures are absorbed (the candidate is skipped). The one
exception is a ref lookup that gets no answer at all (timeout or spawn
failure): the remote status of that branch is unknown, so the whole
resolution yields None rather than risk picking a farther commit.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from tidemark.git.ancestry import branch_ancestry, get_git_remotes
from tidemark.git.client import GitClient
from tidemark.logging import get_logger
from tidemark.vcs.detection import get_git_repo_root

__all__ = [
    "GitDiffToRemote",
    "branch_remote_and_distance",
    "diff_against_commit",
    "diff_to_remote",
    "find_closest_commit",
    "untracked_file_diffs",
]

logger = get_logger(__name__)

# Exit statuses of `git diff` that mean "ran fine": no changes, changes
_DIFF_OK_CODES: tuple[int, ...] = (0, 1)

_DIFF_FLAGS: tuple[str, ...] = ("--no-textconv", "--no-ext-diff")


@dataclass(frozen=True, slots=True)
class GitDiffToRemote:
    """Closest remote commit and the working-tree diff against it.

    Attributes:
        sha: Object id of the remote ref that was chosen.
        diff: Tracked-file diff followed by one block per untracked file.
    """

    sha: str
    diff: str


class _ResolutionAborted(Exception):
    """A remote ref lookup got no answer; the search cannot be trusted."""


async def branch_remote_and_distance(
    client: GitClient,
    branch: str,
    remotes: Sequence[str],
) -> tuple[str | None, int] | None:
    """Remote commit for ``branch`` and how far HEAD is ahead of it.

    Returns:
        ``(remote_sha, distance)``; ``remote_sha`` is None when no remote has
        the branch. None when the distance could not be computed.

    Raises:
        _ResolutionAborted: A ref lookup timed out or could not be spawned.
    """
    remote_sha: str | None = None
    remote_ref: str | None = None
    for remote in remotes:
        candidate_ref = f"refs/remotes/{remote}/{branch}"
        verify = await client.run("rev-parse", "--verify", "--quiet", candidate_ref)
        if not verify.launched:
            raise _ResolutionAborted(candidate_ref)
        if not verify.success:
            continue
        remote_sha = verify.stdout.strip()
        remote_ref = candidate_ref
        break

    # Prefer the local branch of the same name; fall back to the remote ref
    # when the local count could not run or failed.
    count = await client.run("rev-list", "--count", f"{branch}..HEAD")
    if not count.success:
        if remote_ref is None:
            return None
        count = await client.run("rev-list", "--count", f"{remote_ref}..HEAD")

    if not count.success:
        return None
    try:
        distance = int(count.stdout.strip())
    except ValueError:
        logger.debug("git_distance_unparseable", branch=branch, output=count.stdout)
        return None
    if distance < 0:
        return None
    return remote_sha, distance


async def find_closest_commit(
    client: GitClient,
    branches: Sequence[str],
    remotes: Sequence[str],
) -> str | None:
    """Remote commit of the candidate branch with the smallest distance.

    Branches with no remote counterpart, or whose distance cannot be
    computed, are skipped. Equal distances keep the earlier candidate.
    """
    closest: tuple[str, int] | None = None
    for branch in branches:
        try:
            found = await branch_remote_and_distance(client, branch, remotes)
        except _ResolutionAborted as e:
            logger.debug("git_closest_commit_aborted", branch=branch, ref=str(e))
            return None
        if found is None:
            logger.debug("git_branch_distance_unavailable", branch=branch)
            continue
        remote_sha, distance = found
        if remote_sha is None:
            continue
        if closest is None or distance < closest[1]:
            closest = (remote_sha, distance)

    if closest is None:
        return None
    logger.debug("git_closest_commit_found", sha=closest[0], distance=closest[1])
    return closest[0]


async def untracked_file_diffs(client: GitClient) -> list[str]:
    """Diffs of every untracked, non-ignored file against the null device.

    One ``git diff --no-index`` per file, run concurrently. Results keep the
    ``ls-files`` order; files whose diff cannot be produced are left out.
    """
    untracked = await client.stdout("ls-files", "-z", "--others", "--exclude-standard")
    if untracked is None:
        return []
    # -z keeps non-ASCII names unquoted
    files = [name for name in untracked.split("\0") if name]
    if not files:
        return []

    results = await asyncio.gather(
        *(
            client.run(
                "diff",
                *_DIFF_FLAGS,
                "--binary",
                "--no-index",
                "--",
                os.devnull,
                file,
            )
            for file in files
        )
    )
    return [
        result.stdout for result in results if result.succeeded_with(*_DIFF_OK_CODES)
    ]


async def diff_against_commit(client: GitClient, sha: str) -> str | None:
    """Working-tree diff against ``sha`` plus synthesized untracked diffs.

    Returns:
        The concatenated diff text, or None if the tracked diff failed.
    """
    result = await client.run("diff", *_DIFF_FLAGS, sha)
    if not result.succeeded_with(*_DIFF_OK_CODES):
        logger.debug(
            "git_diff_failed",
            sha=sha,
            returncode=result.returncode,
            stderr=result.stderr.strip(),
        )
        return None
    return result.stdout + "".join(await untracked_file_diffs(client))


async def diff_to_remote(
    cwd: Path,
    *,
    client: GitClient | None = None,
) -> GitDiffToRemote | None:
    """Closest remote commit to HEAD and the diff against it.

    Args:
        cwd: Any directory inside the working tree.
        client: Optional pre-configured GitClient. Created if not provided.

    Returns:
        :class:`GitDiffToRemote`, or None if ``cwd`` is not in a git
        repository or no shared commit could be found.
    """
    if get_git_repo_root(cwd) is None:
        return None
    client = client or GitClient(cwd)

    remotes = await get_git_remotes(client)
    if remotes is None:
        return None
    branches = await branch_ancestry(client)
    sha = await find_closest_commit(client, branches, remotes)
    if sha is None:
        return None
    diff = await diff_against_commit(client, sha)
    if diff is None:
        return None

    logger.info("git_diff_to_remote_computed", sha=sha, diff_bytes=len(diff))
    return GitDiffToRemote(sha=sha, diff=diff)
