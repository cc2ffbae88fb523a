"""Tidemark constants.

Single source of truth for command timeouts, backend metadata markers, and
the default snapshot parameters shared by the git and darcs integrations.
"""

from __future__ import annotations

# =============================================================================
# Commands
# =============================================================================

#: Upper bound on any single backend metadata command, in seconds
COMMAND_TIMEOUT_SECONDS: float = 5.0

#: Upper bound on commands that mutate or walk the whole tree during snapshots
SNAPSHOT_COMMAND_TIMEOUT_SECONDS: float = 120.0

# =============================================================================
# Repository Markers
# =============================================================================

#: Directory or file marking a git checkout (a file in worktrees)
GIT_MARKER: str = ".git"

#: Directory marking a darcs repository root
DARCS_MARKER: str = "_darcs"

#: Remote that is always probed first when it exists
PREFERRED_REMOTE: str = "origin"

#: Local branch names tried when no remote advertises a default branch
FALLBACK_DEFAULT_BRANCHES: tuple[str, ...] = ("main", "master")

# =============================================================================
# Snapshots
# =============================================================================

#: Message attached to ghost commits
DEFAULT_GHOST_COMMIT_MESSAGE: str = "tidemark snapshot"

#: Identity recorded on ghost commits so that creation never depends on user config
GHOST_COMMIT_AUTHOR_NAME: str = "Tidemark Snapshot"
GHOST_COMMIT_AUTHOR_EMAIL: str = "snapshot@tidemark.local"

#: Trailer in the ghost commit message naming the captured sub-path
GHOST_SCOPE_TRAILER: str = "Tidemark-Scope"

#: Patch name passed to ``darcs record --dry-run`` during snapshot creation
DEFAULT_DARCS_PATCH_NAME: str = "tidemark snapshot"

#: Author passed to ``darcs record --dry-run`` during snapshot creation
DEFAULT_DARCS_AUTHOR: str = "Tidemark <tidemark@localhost>"

#: Prefix for temporary darcs snapshot storage directories
DARCS_SNAPSHOT_PREFIX: str = "tidemark-darcs-snapshot-"

# =============================================================================
# Messages
# =============================================================================

#: Warning surfaced when a darcs repository is found without the darcs CLI
DARCS_MISSING_MESSAGE: str = (
    "Darcs repository detected but the `darcs` CLI is not installed. "
    "Install it to enable Darcs integration."
)

#: Warning surfaced when a git repository is found without the git CLI
GIT_MISSING_MESSAGE: str = (
    "Git repository detected but the `git` CLI is not installed. "
    "Install it to enable Git integration."
)
