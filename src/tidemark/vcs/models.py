"""Revision-control backend descriptors."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from tidemark.constants import DARCS_MARKER, GIT_MARKER

__all__ = [
    "DetectedRevisionControl",
    "RevisionControlCapabilities",
    "RevisionControlKind",
]


class RevisionControlKind(str, Enum):
    """Supported backends.

    The set is closed: every dispatch site matches on all members and ends
    in ``assert_never`` so that adding a backend is a type error until each
    site handles it.
    """

    GIT = "git"
    DARCS = "darcs"

    @property
    def display_name(self) -> str:
        """Human readable backend name."""
        match self:
            case RevisionControlKind.GIT:
                return "Git"
            case RevisionControlKind.DARCS:
                return "Darcs"

    @property
    def executable(self) -> str:
        """Name of the backend CLI on ``PATH``."""
        return self.value

    @property
    def marker(self) -> str:
        """Entry that marks a repository root for this backend."""
        match self:
            case RevisionControlKind.GIT:
                return GIT_MARKER
            case RevisionControlKind.DARCS:
                return DARCS_MARKER


@dataclass(frozen=True, slots=True)
class RevisionControlCapabilities:
    """Operations a backend supports.

    Attributes:
        supports_diffs: Working-tree and remote diffs are available.
        supports_snapshots: Snapshot create/restore is available.
    """

    supports_diffs: bool = False
    supports_snapshots: bool = False

    @classmethod
    def for_kind(cls, kind: RevisionControlKind) -> RevisionControlCapabilities:
        """Static capabilities for ``kind``."""
        match kind:
            case RevisionControlKind.GIT:
                return cls(supports_diffs=True, supports_snapshots=True)
            case RevisionControlKind.DARCS:
                return cls(supports_diffs=True, supports_snapshots=True)


@dataclass(frozen=True, slots=True)
class DetectedRevisionControl:
    """The backend governing a directory.

    Attributes:
        kind: Backend kind.
        root: Repository root containing the backend marker.
        capabilities: Derived from ``kind``.
    """

    kind: RevisionControlKind
    root: Path
    capabilities: RevisionControlCapabilities = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "capabilities", RevisionControlCapabilities.for_kind(self.kind)
        )

    @property
    def display_name(self) -> str:
        return self.kind.display_name
