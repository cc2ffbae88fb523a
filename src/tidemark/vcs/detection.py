"""Backend detection for a working directory.

Detection walks up from a directory looking for a backend marker (``.git``
file or directory, ``_darcs`` directory) and needs no CLI. Git wins when a
directory is nested in both.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path

from tidemark.constants import (
    COMMAND_TIMEOUT_SECONDS,
    DARCS_MISSING_MESSAGE,
    GIT_MISSING_MESSAGE,
)
from tidemark.logging import get_logger
from tidemark.vcs.models import DetectedRevisionControl, RevisionControlKind

__all__ = [
    "MissingToolNotifier",
    "cli_available",
    "detect_revision_control",
    "get_darcs_repo_root",
    "get_git_repo_root",
    "missing_tool_message",
    "resolve_project_root_for_trust",
]

logger = get_logger(__name__)


def _find_marker_root(base_dir: Path, marker: str, *, dir_only: bool) -> Path | None:
    start = base_dir.absolute()
    for directory in (start, *start.parents):
        candidate = directory / marker
        if candidate.is_dir() if dir_only else candidate.exists():
            return directory
    return None


def get_git_repo_root(base_dir: Path) -> Path | None:
    """Nearest ancestor of ``base_dir`` (inclusive) that contains ``.git``.

    ``.git`` may be a file (worktrees, submodules). Worktrees checked out
    outside the main repository are found through their ``.git`` file; use
    :func:`resolve_project_root_for_trust` to get the main repository root.
    """
    return _find_marker_root(base_dir, RevisionControlKind.GIT.marker, dir_only=False)


def get_darcs_repo_root(base_dir: Path) -> Path | None:
    """Nearest ancestor of ``base_dir`` (inclusive) with a ``_darcs`` directory."""
    return _find_marker_root(base_dir, RevisionControlKind.DARCS.marker, dir_only=True)


def detect_revision_control(base_dir: Path) -> DetectedRevisionControl | None:
    """Detect the backend governing ``base_dir``, or None outside any repository."""
    if (root := get_git_repo_root(base_dir)) is not None:
        return DetectedRevisionControl(kind=RevisionControlKind.GIT, root=root)
    if (root := get_darcs_repo_root(base_dir)) is not None:
        return DetectedRevisionControl(kind=RevisionControlKind.DARCS, root=root)
    return None


def cli_available(tool: str) -> bool:
    """True if ``tool`` resolves on ``PATH``."""
    return shutil.which(tool) is not None


def missing_tool_message(kind: RevisionControlKind) -> str:
    """User-facing warning for a repository whose CLI is not installed."""
    match kind:
        case RevisionControlKind.GIT:
            return GIT_MISSING_MESSAGE
        case RevisionControlKind.DARCS:
            return DARCS_MISSING_MESSAGE


@dataclass
class MissingToolNotifier:
    """Warn once per session about a missing backend CLI.

    The caller owns the instance, typically one per user-facing session.
    :meth:`check` returns the message every time the tool is missing so it
    can be shown in a UI; the log warning is only emitted the first time
    for each backend.

    Example:
        ```python
        notifier = MissingToolNotifier()
        if (message := notifier.check(detected)) is not None:
            console.print(message)
        ```
    """

    warned: set[RevisionControlKind] = field(default_factory=set)

    def check(self, detected: DetectedRevisionControl | None) -> str | None:
        if detected is None or cli_available(detected.kind.executable):
            return None
        message = missing_tool_message(detected.kind)
        if detected.kind not in self.warned:
            self.warned.add(detected.kind)
            logger.warning(
                "revision_control_cli_missing",
                backend=detected.kind.value,
                root=str(detected.root),
                message=message,
            )
        return message


async def resolve_project_root_for_trust(
    base_dir: Path,
    detected: DetectedRevisionControl | None = None,
    *,
    timeout: float = COMMAND_TIMEOUT_SECONDS,
) -> Path | None:
    """Root directory that should be used for per-project trust decisions.

    For git this is the main repository even when ``base_dir`` is inside a
    linked worktree (resolved with ``git rev-parse --git-common-dir``). For
    darcs it is the detected repository root.

    Args:
        base_dir: Directory (or file) inside the workspace.
        detected: Detection result to reuse. Detected afresh when None.
        timeout: Budget for the git query.

    Returns:
        The project root, or None outside any repository or when git could
        not answer.
    """
    if detected is None:
        detected = detect_revision_control(base_dir)
        if detected is None:
            return None

    match detected.kind:
        case RevisionControlKind.GIT:
            return await _resolve_git_common_root(base_dir, timeout)
        case RevisionControlKind.DARCS:
            return detected.root


async def _resolve_git_common_root(base_dir: Path, timeout: float) -> Path | None:
    from tidemark.git.client import GitClient

    base = base_dir if base_dir.is_dir() else base_dir.parent
    common_dir = await GitClient(base, timeout=timeout).stdout(
        "rev-parse", "--git-common-dir"
    )
    if common_dir is None or not common_dir.strip():
        return None

    git_dir = Path(common_dir.strip())
    if not git_dir.is_absolute():
        git_dir = base / git_dir
    # resolve() normalizes ".." and symlinked temp roots such as /private/var
    return git_dir.resolve().parent
