"""Git integration: metadata, remote diff, and ghost-commit snapshots.

Example:
    ```python
    from tidemark.git import diff_to_remote

    result = await diff_to_remote(Path.cwd())
    if result is not None:
        print(result.sha)
    ```
"""

from __future__ import annotations

from tidemark.git.ancestry import (
    branch_ancestry,
    get_default_branch,
    get_default_branch_local,
    get_git_remotes,
)
from tidemark.git.client import GitClient
from tidemark.git.info import (
    CommitLogEntry,
    GitInfo,
    collect_git_info,
    current_branch_name,
    local_git_branches,
    recent_commits,
)
from tidemark.git.remote_diff import (
    GitDiffToRemote,
    branch_remote_and_distance,
    diff_against_commit,
    diff_to_remote,
    find_closest_commit,
    untracked_file_diffs,
)
from tidemark.git.snapshots import AsyncGitSnapshotter, GhostCommit, GitSnapshotter

__all__ = [
    "AsyncGitSnapshotter",
    "CommitLogEntry",
    "GhostCommit",
    "GitClient",
    "GitDiffToRemote",
    "GitInfo",
    "GitSnapshotter",
    "branch_ancestry",
    "branch_remote_and_distance",
    "collect_git_info",
    "current_branch_name",
    "diff_against_commit",
    "diff_to_remote",
    "find_closest_commit",
    "get_default_branch",
    "get_default_branch_local",
    "get_git_remotes",
    "local_git_branches",
    "recent_commits",
    "untracked_file_diffs",
]
