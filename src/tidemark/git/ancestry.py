"""Candidate-branch discovery for the remote diff.

The remote diff needs a commit that exists both locally and on a remote.
This module builds the ordered list of branches to search for one: the
current branch, the repository default branch, and every remote branch that
already contains HEAD. Order matters only for tie-breaking; see
:func:`tidemark.git.remote_diff.find_closest_commit`.
"""

from __future__ import annotations

from tidemark.constants import FALLBACK_DEFAULT_BRANCHES, PREFERRED_REMOTE
from tidemark.git.client import GitClient
from tidemark.logging import get_logger

__all__ = [
    "branch_ancestry",
    "get_default_branch",
    "get_default_branch_local",
    "get_git_remotes",
]

logger = get_logger(__name__)

_HEAD_BRANCH_PREFIX = "HEAD branch:"


async def get_git_remotes(client: GitClient) -> list[str] | None:
    """Configured remotes, with ``origin`` moved to the front.

    Returns:
        Remote names in priority order, or None if ``git remote`` failed.
    """
    remotes = await client.stdout_lines("remote")
    if remotes is None:
        return None
    if PREFERRED_REMOTE in remotes:
        remotes.remove(PREFERRED_REMOTE)
        remotes.insert(0, PREFERRED_REMOTE)
    return remotes


async def get_default_branch(client: GitClient) -> str | None:
    """Best guess at the repository's default branch.

    Tried in order, per remote (origin first):

    1. ``refs/remotes/<remote>/HEAD`` symbolic ref
    2. ``HEAD branch:`` line of ``git remote show <remote>``

    and finally a local ``main`` or ``master`` branch if one exists.
    """
    for remote in await get_git_remotes(client) or []:
        symref = await client.stdout(
            "symbolic-ref", "--quiet", f"refs/remotes/{remote}/HEAD"
        )
        if symref is not None:
            _, sep, name = symref.strip().rpartition("/")
            if sep:
                return name

        shown = await client.stdout("remote", "show", remote)
        if shown is not None:
            for line in shown.splitlines():
                line = line.strip()
                if line.startswith(_HEAD_BRANCH_PREFIX):
                    name = line.removeprefix(_HEAD_BRANCH_PREFIX).strip()
                    if name:
                        return name

    return await get_default_branch_local(client)


async def get_default_branch_local(client: GitClient) -> str | None:
    """First of ``main``/``master`` that exists as a local branch."""
    for candidate in FALLBACK_DEFAULT_BRANCHES:
        result = await client.run(
            "rev-parse", "--verify", "--quiet", f"refs/heads/{candidate}"
        )
        if result.success:
            return candidate
    return None


async def branch_ancestry(client: GitClient) -> list[str]:
    """Ordered, de-duplicated branches to search for a shared remote commit.

    1. The current branch (nothing when HEAD is detached).
    2. The default branch.
    3. For each remote in priority order, its branches that contain HEAD.

    An empty list means no candidate could be found; callers treat that as
    "no shared commit", not as an error.
    """
    ancestry: list[str] = []
    seen: set[str] = set()

    def add(branch: str) -> None:
        if branch and branch not in seen:
            seen.add(branch)
            ancestry.append(branch)

    current = await client.stdout("rev-parse", "--abbrev-ref", "HEAD")
    if current is not None and current.strip() != "HEAD":
        add(current.strip())

    default_branch = await get_default_branch(client)
    if default_branch is not None:
        add(default_branch)

    # Remote branches already containing HEAD cover local-only branches forked
    # from something other than the default branch.
    for remote in await get_git_remotes(client) or []:
        containing = await client.stdout_lines(
            "for-each-ref",
            "--format=%(refname:short)",
            "--contains=HEAD",
            f"refs/remotes/{remote}",
        )
        for short_name in containing or []:
            prefix = f"{remote}/"
            if short_name.startswith(prefix):
                add(short_name.removeprefix(prefix))

    logger.debug("git_branch_ancestry", candidates=ancestry)
    return ancestry
