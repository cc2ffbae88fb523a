"""Tidemark: revision-control integration for git and darcs workspaces.

Detects which backend manages a directory, gathers repository metadata,
computes diffs against the nearest remote commit, and takes and restores
working-tree snapshots.
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
