"""Ghost-commit snapshots for git working trees.

A ghost commit is a commit object that captures the whole working tree
(tracked and untracked files, ignore rules respected) with the previous HEAD
as its parent. No ref points at it, the user's index is never touched while
it is built, and HEAD stays where it was. Restoring checks the ghost tree out
over the working tree and index and then removes files that did not exist
when the snapshot was taken. A scoped ghost commit records its sub-path in a
``Tidemark-Scope`` trailer so that restoring by id stays inside that path.

The git work runs through GitPython in a worker thread; the
:class:`AsyncGitSnapshotter` wrapper exposes it to async callers.

Example:
    ```python
    snapshotter = AsyncGitSnapshotter(Path("/project"))
    ghost = await snapshotter.create()
    # ... risky edits ...
    await snapshotter.restore(ghost)
    ```
"""

from __future__ import annotations

import asyncio
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo
from git.exc import BadName, BadObject, GitCommandNotFound

from tidemark.constants import (
    DEFAULT_GHOST_COMMIT_MESSAGE,
    GHOST_COMMIT_AUTHOR_EMAIL,
    GHOST_COMMIT_AUTHOR_NAME,
    GHOST_SCOPE_TRAILER,
    SNAPSHOT_COMMAND_TIMEOUT_SECONDS,
)
from tidemark.exceptions import (
    CommandFailedError,
    CommandTimeoutError,
    MissingToolError,
    NotARepositoryError,
)
from tidemark.logging import get_logger
from tidemark.vcs.models import RevisionControlKind
from tidemark.vcs.paths import resolve_scope

__all__ = [
    "AsyncGitSnapshotter",
    "GhostCommit",
    "GitSnapshotter",
]

logger = get_logger(__name__)

_GHOST_IDENTITY_ENV: dict[str, str] = {
    "GIT_AUTHOR_NAME": GHOST_COMMIT_AUTHOR_NAME,
    "GIT_AUTHOR_EMAIL": GHOST_COMMIT_AUTHOR_EMAIL,
    "GIT_COMMITTER_NAME": GHOST_COMMIT_AUTHOR_NAME,
    "GIT_COMMITTER_EMAIL": GHOST_COMMIT_AUTHOR_EMAIL,
}

# GitPython reports kill_after_timeout expiry through stderr
_TIMEOUT_MARKER = "did not complete in"


@dataclass(frozen=True, slots=True)
class GhostCommit:
    """Handle for a ghost-commit snapshot.

    Attributes:
        id: Object id of the ghost commit.
        parent: HEAD at creation time, None on an unborn branch.
        scope: Path relative to the repository root that the snapshot
            covers, None for the whole repository.
    """

    id: str
    parent: str | None = None
    scope: Path | None = None

    @property
    def kind(self) -> RevisionControlKind:
        return RevisionControlKind.GIT

    def __str__(self) -> str:
        return self.id


def _convert_git_error(
    exc: GitCommandError,
    command: list[str],
    timeout: float | None,
) -> CommandFailedError | CommandTimeoutError:
    """Map a GitPython failure onto the tidemark exception tree."""
    stderr = str(exc.stderr or exc.stdout or exc).strip()
    if _TIMEOUT_MARKER in stderr:
        return CommandTimeoutError(
            f"git {' '.join(command[1:])} timed out after {timeout}s",
            timeout_seconds=timeout,
            command=command,
        )
    status = exc.status if isinstance(exc.status, int) else -1
    return CommandFailedError(command, status, stderr)


class GitSnapshotter:
    """Create and restore ghost commits in one repository.

    Args:
        path: Any directory inside the working tree.
        message: Commit message for ghost commits.
        timeout: Per-command budget in seconds.

    Raises:
        NotARepositoryError: If ``path`` is not inside a git working tree.
    """

    def __init__(
        self,
        path: Path | str,
        *,
        message: str = DEFAULT_GHOST_COMMIT_MESSAGE,
        timeout: float | None = SNAPSHOT_COMMAND_TIMEOUT_SECONDS,
    ) -> None:
        try:
            self._repo = Repo(path, search_parent_directories=True)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise NotARepositoryError(path=path, backend="git") from e
        if self._repo.bare or self._repo.working_tree_dir is None:
            raise NotARepositoryError(
                f"{path} is a bare git repository", path=path, backend="git"
            )
        self._root = Path(self._repo.working_tree_dir)
        self._message = message
        self._timeout = timeout

    @property
    def root(self) -> Path:
        """Root of the working tree."""
        return self._root

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _git(self, *args: str, env: dict[str, str] | None = None) -> str:
        command = ["git", *args]
        try:
            output = self._repo.git.execute(
                command,
                env=env,
                kill_after_timeout=self._timeout,
            )
        except GitCommandNotFound as e:
            raise MissingToolError("git") from e
        except GitCommandError as e:
            raise _convert_git_error(e, command, self._timeout) from e
        return str(output).strip()

    def _head(self) -> str | None:
        if not self._repo.head.is_valid():
            return None
        return self._repo.head.commit.hexsha

    # =========================================================================
    # Operations
    # =========================================================================

    def create(self, scope: Path | str | None = None) -> GhostCommit:
        """Capture the working tree as a ghost commit.

        Files are staged into a throwaway index seeded from HEAD, so the
        user's index, HEAD, and branch refs are left exactly as they were.

        Args:
            scope: Optional sub-path (absolute or relative to the root). Only
                changes under it are captured; the rest of the tree comes
                from HEAD.

        Raises:
            PathOutsideRepositoryError: If ``scope`` escapes the root.
            CommandFailedError: If any git step fails.
        """
        relative = resolve_scope(self._root, scope, backend="git")
        parent = self._head()
        pathspec = str(relative) if relative is not None else "."

        # A private index keeps the user's staging area untouched
        with tempfile.TemporaryDirectory(prefix="tidemark-index-") as index_dir:
            index_env = {"GIT_INDEX_FILE": os.path.join(index_dir, "index")}
            if parent is not None:
                self._git("read-tree", parent, env=index_env)
            self._git("add", "--all", "--", pathspec, env=index_env)
            tree = self._git("write-tree", env=index_env)

            commit_args = ["commit-tree", tree]
            if parent is not None:
                commit_args += ["-p", parent]
            commit_args += ["-m", self._message]
            if relative is not None:
                commit_args += ["-m", f"{GHOST_SCOPE_TRAILER}: {relative.as_posix()}"]
            commit_id = self._git(*commit_args, env=_GHOST_IDENTITY_ENV)

        logger.info(
            "ghost_commit_created",
            id=commit_id,
            parent=parent,
            scope=pathspec,
            root=str(self._root),
        )
        return GhostCommit(id=commit_id, parent=parent, scope=relative)

    def restore(self, ghost: GhostCommit) -> None:
        """Make the working tree and index match ``ghost`` within its scope."""
        self._restore(ghost.id, ghost.scope)

    def recorded_scope(self, commit_id: str) -> Path | None:
        """Sub-path a ghost commit was limited to, from its scope trailer.

        Returns None for whole-tree snapshots, for commits tidemark did not
        create, and for ids git cannot resolve.
        """
        try:
            trailers = self._repo.commit(commit_id).trailers_dict
        except (BadName, BadObject, ValueError, GitCommandError) as e:
            logger.debug("ghost_scope_unreadable", id=commit_id, error=str(e))
            return None
        values = trailers.get(GHOST_SCOPE_TRAILER)
        if not values:
            return None
        return Path(values[-1])

    def restore_to_commit(
        self,
        commit_id: str,
        scope: Path | str | None = None,
    ) -> None:
        """Make the working tree and index match ``commit_id``.

        Only ``scope`` is touched when given. Otherwise the scope recorded in
        the commit is used, and a commit without one restores the whole tree.
        The identifier is passed to git unchecked; an unknown id surfaces as
        the :class:`CommandFailedError` git produces.

        Raises:
            PathOutsideRepositoryError: If ``scope`` escapes the root.
        """
        if scope is None:
            scope = self.recorded_scope(commit_id)
        self._restore(commit_id, resolve_scope(self._root, scope, backend="git"))

    def _restore(self, commit_id: str, scope: Path | None) -> None:
        pathspec = str(scope) if scope is not None else "."
        self._git(
            "restore",
            f"--source={commit_id}",
            "--worktree",
            "--staged",
            "--",
            pathspec,
        )
        # Files created after the snapshot are untracked now; ignored files
        # were never captured so they are kept.
        self._git("clean", "-f", "-d", "--", pathspec)
        logger.info(
            "ghost_commit_restored",
            id=commit_id,
            scope=pathspec,
            root=str(self._root),
        )


class AsyncGitSnapshotter:
    """Async wrapper for :class:`GitSnapshotter`.

    Every call runs the synchronous implementation in a worker thread.
    """

    def __init__(
        self,
        path: Path | str,
        *,
        message: str = DEFAULT_GHOST_COMMIT_MESSAGE,
        timeout: float | None = SNAPSHOT_COMMAND_TIMEOUT_SECONDS,
    ) -> None:
        self._sync = GitSnapshotter(path, message=message, timeout=timeout)

    @property
    def root(self) -> Path:
        """Root of the working tree."""
        return self._sync.root

    async def create(self, scope: Path | str | None = None) -> GhostCommit:
        """Capture the working tree as a ghost commit."""
        return await asyncio.to_thread(self._sync.create, scope)

    async def restore(self, ghost: GhostCommit) -> None:
        """Restore the working tree to a ghost commit."""
        await asyncio.to_thread(self._sync.restore, ghost)

    async def restore_to_commit(
        self,
        commit_id: str,
        scope: Path | str | None = None,
    ) -> None:
        """Restore the working tree to an arbitrary commit."""
        await asyncio.to_thread(self._sync.restore_to_commit, commit_id, scope)
