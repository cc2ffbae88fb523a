"""Backend-agnostic revision-control types and detection.

Import the working-tree diff from :mod:`tidemark.vcs.diff`; it is kept out of
this namespace because it depends on the git and darcs packages.
"""

from __future__ import annotations

from tidemark.vcs.detection import (
    MissingToolNotifier,
    cli_available,
    detect_revision_control,
    get_darcs_repo_root,
    get_git_repo_root,
    missing_tool_message,
    resolve_project_root_for_trust,
)
from tidemark.vcs.models import (
    DetectedRevisionControl,
    RevisionControlCapabilities,
    RevisionControlKind,
)

__all__ = [
    "DetectedRevisionControl",
    "MissingToolNotifier",
    "RevisionControlCapabilities",
    "RevisionControlKind",
    "cli_available",
    "detect_revision_control",
    "get_darcs_repo_root",
    "get_git_repo_root",
    "missing_tool_message",
    "resolve_project_root_for_trust",
]
