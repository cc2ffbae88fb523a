"""Revision-control exceptions.

Exceptions for backend detection, remote-diff resolution, and the snapshot
engine. Each class maps onto one failure category surfaced to callers:
missing tooling, paths outside a repository, failed backend commands,
snapshot/backend mismatches, and local filesystem errors.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from tidemark.exceptions.base import TidemarkError

if TYPE_CHECKING:
    from tidemark.vcs.models import RevisionControlKind


class RevisionControlError(TidemarkError):
    """Base exception for revision-control operations.

    Attributes:
        message: Human-readable error message.
        backend: Name of the backend CLI involved (``"git"``, ``"darcs"``).
    """

    def __init__(self, message: str, *, backend: str | None = None) -> None:
        self.backend = backend
        super().__init__(message)


class MissingToolError(RevisionControlError):
    """A required backend CLI is not installed or not on ``PATH``.

    Attributes:
        tool: Executable name that could not be found.
    """

    def __init__(self, tool: str, message: str | None = None) -> None:
        self.tool = tool
        super().__init__(
            message or f"missing required tooling: {tool}",
            backend=tool,
        )


class NotARepositoryError(RevisionControlError):
    """Operation attempted outside any detected workspace.

    Attributes:
        path: Directory that is not managed by a supported backend.
    """

    def __init__(
        self,
        message: str | None = None,
        *,
        path: Path | str | None = None,
        backend: str | None = None,
    ) -> None:
        self.path = path
        super().__init__(
            message
            or f"{path} is not managed by a supported revision control system",
            backend=backend,
        )


class PathOutsideRepositoryError(NotARepositoryError):
    """A snapshot scope escapes the repository root.

    Attributes:
        path: The offending scope path.
        root: The repository root it was checked against.
    """

    def __init__(
        self,
        path: Path | str,
        root: Path | str,
        *,
        backend: str | None = None,
    ) -> None:
        self.root = root
        super().__init__(
            f"{path} is outside the repository rooted at {root}",
            path=path,
            backend=backend,
        )


class CommandFailedError(RevisionControlError):
    """A backend command exited with a non-success status.

    Attributes:
        command: The full command line that failed.
        returncode: Exit status reported by the process.
        stderr: Captured standard error text.
    """

    def __init__(
        self,
        command: Sequence[str],
        returncode: int,
        stderr: str,
        *,
        message: str | None = None,
    ) -> None:
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        command_line = " ".join(self.command)
        super().__init__(
            message
            or (
                f"command `{command_line}` failed with status {returncode}: "
                f"{stderr.strip()}"
            ),
            backend=self.command[0] if self.command else None,
        )

    @property
    def command_line(self) -> str:
        """The failing command joined into a single string."""
        return " ".join(self.command)


class SnapshotMismatchError(RevisionControlError):
    """A snapshot was taken on a different backend than the restore target.

    Attributes:
        expected: Backend kind of the repository being restored into.
        actual: Backend kind recorded on the snapshot.
    """

    def __init__(
        self,
        expected: RevisionControlKind,
        actual: RevisionControlKind,
    ) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"snapshot of a {actual.display_name} repository cannot be restored "
            f"in a {expected.display_name} repository"
        )


class UnsupportedCapabilityError(RevisionControlError):
    """The detected backend lacks the capability an operation needs.

    Attributes:
        kind: Backend kind that was asked to perform the operation.
        capability: Name of the missing capability (e.g. ``"snapshots"``).
    """

    def __init__(
        self,
        kind: RevisionControlKind,
        capability: str,
        message: str | None = None,
    ) -> None:
        self.kind = kind
        self.capability = capability
        super().__init__(
            message
            or f"{kind.display_name} repositories do not support {capability}"
        )


class SnapshotIOError(RevisionControlError):
    """Local filesystem failure while copying or removing snapshot files.

    Attributes:
        path: Path that the failing operation touched.
        operation: Short description of the operation (``"copy"``, ``"remove"``).
    """

    def __init__(
        self,
        path: Path | str,
        operation: str,
        message: str | None = None,
    ) -> None:
        self.path = path
        self.operation = operation
        super().__init__(message or f"failed to {operation} {path}")


__all__ = [
    "CommandFailedError",
    "MissingToolError",
    "NotARepositoryError",
    "PathOutsideRepositoryError",
    "RevisionControlError",
    "SnapshotIOError",
    "SnapshotMismatchError",
    "UnsupportedCapabilityError",
]
