"""Darcs integration: metadata, working-tree diff, and file-copy snapshots."""

from __future__ import annotations

from tidemark.darcs.client import DarcsClient
from tidemark.darcs.info import DarcsInfo, collect_darcs_info
from tidemark.darcs.snapshots import DarcsSnapshot, create_snapshot, restore_snapshot

__all__ = [
    "DarcsClient",
    "DarcsInfo",
    "DarcsSnapshot",
    "collect_darcs_info",
    "create_snapshot",
    "restore_snapshot",
]
