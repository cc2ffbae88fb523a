"""Snapshot dispatch across git and darcs."""

from __future__ import annotations

from tidemark.snapshots.manager import RepoSnapshotManager, Snapshot

__all__ = ["RepoSnapshotManager", "Snapshot"]
