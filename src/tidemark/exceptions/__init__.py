"""Tidemark exception hierarchy.

All exceptions can be imported from this package:
    from tidemark.exceptions import CommandFailedError, TidemarkError
"""

from __future__ import annotations

# Base exception
from tidemark.exceptions.base import TidemarkError

# Configuration exceptions
from tidemark.exceptions.config import ConfigError

# Runner-related exceptions
from tidemark.exceptions.runner import (
    CommandTimeoutError,
    RunnerError,
    WorkingDirectoryError,
)

# Revision-control exceptions
from tidemark.exceptions.vcs import (
    CommandFailedError,
    MissingToolError,
    NotARepositoryError,
    PathOutsideRepositoryError,
    RevisionControlError,
    SnapshotIOError,
    SnapshotMismatchError,
    UnsupportedCapabilityError,
)

__all__ = [
    # Base
    "TidemarkError",
    # Config
    "ConfigError",
    # Runner
    "CommandTimeoutError",
    "RunnerError",
    "WorkingDirectoryError",
    # Revision control
    "CommandFailedError",
    "MissingToolError",
    "NotARepositoryError",
    "PathOutsideRepositoryError",
    "RevisionControlError",
    "SnapshotIOError",
    "SnapshotMismatchError",
    "UnsupportedCapabilityError",
]
