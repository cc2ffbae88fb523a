"""Backend-polymorphic snapshot create/restore.

:class:`RepoSnapshotManager` is the single entry point for checkpoints. It
checks the detected backend's capabilities and the snapshot's own backend
before doing any work, then routes to ghost commits (git) or file-copy
snapshots (darcs).

Example:
    ```python
    detected = detect_revision_control(Path.cwd())
    manager = RepoSnapshotManager(detected)
    snapshot = await manager.create_snapshot()
    try:
        await apply_risky_edit()
    except EditFailed:
        await manager.restore_snapshot(snapshot)
        raise
    ```

Concurrent modification of the workspace by other processes while a
restore runs is the caller's problem; nothing here locks the tree.
"""

from __future__ import annotations

from pathlib import Path
from typing import TypeAlias, assert_never

from tidemark.config import TidemarkConfig
from tidemark.darcs import snapshots as darcs_snapshots
from tidemark.darcs.client import DarcsClient
from tidemark.darcs.snapshots import DarcsSnapshot
from tidemark.exceptions import SnapshotMismatchError, UnsupportedCapabilityError
from tidemark.git.snapshots import AsyncGitSnapshotter, GhostCommit
from tidemark.logging import get_logger
from tidemark.vcs.models import DetectedRevisionControl, RevisionControlKind

__all__ = ["RepoSnapshotManager", "Snapshot"]

logger = get_logger(__name__)

#: A snapshot from either backend; ``snapshot.kind`` tells which.
Snapshot: TypeAlias = GhostCommit | DarcsSnapshot


class RepoSnapshotManager:
    """Create and restore snapshots for one detected repository.

    Args:
        backend: Detection result for the repository.
        config: Settings for snapshot storage, labels and timeouts. Defaults
            are used when None.
    """

    def __init__(
        self,
        backend: DetectedRevisionControl,
        config: TidemarkConfig | None = None,
    ) -> None:
        self._backend = backend
        self._config = config or TidemarkConfig()

    @property
    def backend(self) -> DetectedRevisionControl:
        """The repository this manager operates on."""
        return self._backend

    @property
    def root(self) -> Path:
        """Repository root."""
        return self._backend.root

    def _require_snapshots(self) -> None:
        if not self._backend.capabilities.supports_snapshots:
            raise UnsupportedCapabilityError(self._backend.kind, "snapshots")

    def _require_kind(self, snapshot: Snapshot) -> None:
        if snapshot.kind is not self._backend.kind:
            raise SnapshotMismatchError(
                expected=self._backend.kind,
                actual=snapshot.kind,
            )

    def _git(self) -> AsyncGitSnapshotter:
        return AsyncGitSnapshotter(
            self.root,
            message=self._config.snapshots.ghost_commit_message,
            timeout=self._config.commands.snapshot_timeout_seconds,
        )

    def _darcs_client(self) -> DarcsClient:
        commands = self._config.commands
        return DarcsClient(
            self.root,
            timeout=commands.timeout_seconds,
            snapshot_timeout=commands.snapshot_timeout_seconds,
        )

    async def create_snapshot(self, scope: Path | str | None = None) -> Snapshot:
        """Snapshot the working tree, or only ``scope`` within it.

        Raises:
            UnsupportedCapabilityError: If the backend has no snapshots.
            MissingToolError: If the backend CLI is not installed.
            PathOutsideRepositoryError: If ``scope`` escapes the root.
            CommandFailedError: If a backend command fails.
            SnapshotIOError: If copying files fails (darcs).
        """
        self._require_snapshots()
        kind = self._backend.kind
        logger.debug(
            "snapshot_create_requested",
            backend=kind.value,
            root=str(self.root),
            scope=str(scope) if scope is not None else None,
        )

        match kind:
            case RevisionControlKind.GIT:
                return await self._git().create(scope)
            case RevisionControlKind.DARCS:
                snapshots = self._config.snapshots
                return await darcs_snapshots.create_snapshot(
                    self.root,
                    scope,
                    snapshots.storage_root,
                    client=self._darcs_client(),
                    patch_name=snapshots.darcs_patch_name,
                    author=snapshots.darcs_author,
                )
            case _:
                assert_never(kind)

    async def restore_snapshot(
        self,
        snapshot: Snapshot,
        repo_path: Path | None = None,
    ) -> None:
        """Restore ``snapshot`` into this repository.

        Args:
            snapshot: Snapshot created by :meth:`create_snapshot`.
            repo_path: Caller's working directory, checked to be inside the
                repository (darcs).

        Raises:
            UnsupportedCapabilityError: If the backend has no snapshots.
            SnapshotMismatchError: If ``snapshot`` came from another backend.
                Nothing is touched in that case.
        """
        self._require_snapshots()
        self._require_kind(snapshot)

        match snapshot:
            case GhostCommit():
                await self._git().restore(snapshot)
            case DarcsSnapshot():
                await darcs_snapshots.restore_snapshot(
                    self.root,
                    snapshot,
                    repo_path,
                    client=self._darcs_client(),
                )
            case _:
                assert_never(snapshot)

    async def restore_to_commit(
        self,
        commit_id: str,
        scope: Path | str | None = None,
    ) -> None:
        """Reset the working tree and index to ``commit_id`` (git only).

        Only ``scope`` is reset when given; otherwise the scope recorded in a
        scoped ghost commit applies.

        Raises:
            UnsupportedCapabilityError: If the backend is not git.
            CommandFailedError: If git rejects ``commit_id``.
        """
        self._require_snapshots()
        kind = self._backend.kind
        match kind:
            case RevisionControlKind.GIT:
                await self._git().restore_to_commit(commit_id, scope)
            case RevisionControlKind.DARCS:
                raise UnsupportedCapabilityError(kind, "restoring to a commit id")
            case _:
                assert_never(kind)
