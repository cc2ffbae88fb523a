"""File-copy snapshots for darcs working trees.

Darcs has no cheap way to store an unrecorded tree, so a snapshot is a
physical copy of the scoped files in a private temporary directory. The
:class:`DarcsSnapshot` owns that directory: it is removed when the last
reference to its storage goes away, or earlier through
:meth:`DarcsSnapshot.cleanup`.

Copies never follow symlinks. Links are recreated with the same target and
regular files keep their permission bits. The ``_darcs`` metadata directory
is never copied or cleared.
"""

from __future__ import annotations

import asyncio
import os
import shutil
import tempfile
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

from tidemark.constants import (
    DARCS_MARKER,
    DARCS_SNAPSHOT_PREFIX,
    DEFAULT_DARCS_AUTHOR,
    DEFAULT_DARCS_PATCH_NAME,
)
from tidemark.darcs.client import DarcsClient
from tidemark.exceptions import MissingToolError, SnapshotIOError
from tidemark.logging import get_logger
from tidemark.vcs.detection import cli_available
from tidemark.vcs.models import RevisionControlKind
from tidemark.vcs.paths import resolve_scope, within_scope

__all__ = [
    "DarcsSnapshot",
    "create_snapshot",
    "restore_snapshot",
]

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class DarcsSnapshot:
    """Handle for a file-copy snapshot.

    Copies of the handle (``dataclasses.replace``, plain assignment) share
    the same storage; it is deleted once none of them reference it.

    Attributes:
        id: Name of the storage directory.
        scope: Path relative to the repository root that was copied, None
            for the whole repository.
        storage: Temporary directory holding the copied files.
    """

    id: str
    scope: Path | None
    storage: tempfile.TemporaryDirectory[str] = field(compare=False, repr=False)

    @property
    def kind(self) -> RevisionControlKind:
        return RevisionControlKind.DARCS

    @property
    def storage_path(self) -> Path:
        """Directory the snapshot files live in."""
        return Path(self.storage.name)

    def cleanup(self) -> None:
        """Delete the storage now instead of waiting for garbage collection."""
        self.storage.cleanup()

    def __str__(self) -> str:
        return self.id


def _require_darcs() -> None:
    if not cli_available("darcs"):
        raise MissingToolError("darcs")


async def create_snapshot(
    repo_root: Path,
    scope: Path | str | None = None,
    storage_root: Path | None = None,
    *,
    client: DarcsClient | None = None,
    patch_name: str = DEFAULT_DARCS_PATCH_NAME,
    author: str = DEFAULT_DARCS_AUTHOR,
) -> DarcsSnapshot:
    """Copy ``scope`` (default: the whole repository) into fresh storage.

    Steps run strictly in order: tool check, scope check, a dry-run record
    to surface conflicts, then the copy.

    Args:
        repo_root: Darcs repository root.
        scope: Sub-path to capture, absolute or relative to ``repo_root``.
        storage_root: Parent for the storage directory. None uses the
            system temporary directory.
        client: Optional pre-configured DarcsClient.
        patch_name: Patch name for the dry-run record.
        author: Author for the dry-run record.

    Raises:
        MissingToolError: If darcs is not installed. Nothing is touched.
        PathOutsideRepositoryError: If ``scope`` escapes ``repo_root``.
        CommandFailedError: If the dry-run record fails.
        SnapshotIOError: If the copy fails.
    """
    _require_darcs()
    relative = resolve_scope(repo_root, scope, backend="darcs")
    client = client or DarcsClient(repo_root)
    await client.record_dry_run(patch_name, author)

    return await asyncio.to_thread(
        _copy_into_storage, repo_root, relative, storage_root
    )


async def restore_snapshot(
    repo_root: Path,
    snapshot: DarcsSnapshot,
    repo_path: Path | None = None,
    *,
    client: DarcsClient | None = None,
) -> None:
    """Put the files captured in ``snapshot`` back into the working tree.

    Unrecorded changes are reverted first so darcs metadata is consistent,
    then the snapshot scope is cleared and refilled from storage. Restoring
    the same snapshot again yields the same files.

    Args:
        repo_root: Darcs repository root.
        snapshot: Snapshot created for this repository.
        repo_path: Caller's working path; must lie inside ``repo_root``.
        client: Optional pre-configured DarcsClient.

    Raises:
        MissingToolError: If darcs is not installed.
        PathOutsideRepositoryError: If ``repo_path`` escapes ``repo_root``.
        CommandFailedError: If ``darcs revert`` fails.
        SnapshotIOError: If clearing or copying fails.
    """
    _require_darcs()
    resolve_scope(repo_root, repo_path, backend="darcs")
    client = client or DarcsClient(repo_root)
    await client.revert_all()

    await asyncio.to_thread(_restore_from_storage, repo_root, snapshot)
    logger.info(
        "darcs_snapshot_restored",
        id=snapshot.id,
        scope=str(snapshot.scope) if snapshot.scope else None,
        root=str(repo_root),
    )


# =============================================================================
# Filesystem helpers
# =============================================================================


def _copy_into_storage(
    repo_root: Path,
    scope: Path | None,
    storage_root: Path | None,
) -> DarcsSnapshot:
    if storage_root is not None:
        try:
            storage_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SnapshotIOError(storage_root, "create storage root") from e

    try:
        storage = tempfile.TemporaryDirectory(
            prefix=DARCS_SNAPSHOT_PREFIX,
            dir=storage_root,
            ignore_cleanup_errors=True,
        )
    except OSError as e:
        raise SnapshotIOError(storage_root or tempfile.gettempdir(), "create") from e

    snapshot = DarcsSnapshot(
        id=Path(storage.name).name,
        scope=scope,
        storage=storage,
    )
    try:
        for source, relative in _walk(repo_root, scope):
            _copy_entry(source, snapshot.storage_path / relative)
    except SnapshotIOError:
        snapshot.cleanup()
        raise

    logger.info(
        "darcs_snapshot_created",
        id=snapshot.id,
        scope=str(scope) if scope else None,
        root=str(repo_root),
    )
    return snapshot


def _restore_from_storage(repo_root: Path, snapshot: DarcsSnapshot) -> None:
    if snapshot.scope is None:
        for entry in _scandir(repo_root):
            if entry.name != DARCS_MARKER:
                _remove(Path(entry.path))
    else:
        target = repo_root / snapshot.scope
        if target.exists() or target.is_symlink():
            _remove(target)

    for source, relative in _walk(snapshot.storage_path, None, skip_metadata=False):
        _copy_entry(source, repo_root / relative)


def _walk(
    root: Path,
    scope: Path | None,
    *,
    skip_metadata: bool = True,
) -> Iterator[tuple[Path, Path]]:
    """Yield ``(path, path relative to root)`` parents first.

    Symlinks are yielded but never descended into. Directories outside
    ``scope`` are pruned unless they lead to it.
    """
    stack: list[Path] = [root]
    while stack:
        directory = stack.pop()
        for entry in sorted(_scandir(directory), key=lambda e: e.name):
            path = Path(entry.path)
            relative = path.relative_to(root)
            is_dir = entry.is_dir(follow_symlinks=False)
            if skip_metadata and is_dir and relative == Path(DARCS_MARKER):
                continue
            if within_scope(relative, scope):
                yield path, relative
                if is_dir:
                    stack.append(path)
            elif is_dir and scope is not None and scope.is_relative_to(relative):
                stack.append(path)


def _scandir(directory: Path) -> list[os.DirEntry[str]]:
    try:
        with os.scandir(directory) as entries:
            return list(entries)
    except OSError as e:
        raise SnapshotIOError(directory, "read directory") from e


def _copy_entry(source: Path, destination: Path) -> None:
    try:
        if source.is_symlink():
            destination.parent.mkdir(parents=True, exist_ok=True)
            target = os.readlink(source)
            try:
                os.symlink(target, destination, target_is_directory=source.is_dir())
            except OSError as e:
                raise SnapshotIOError(
                    destination,
                    "create symlink",
                    f"failed to create symlink {destination} -> {target}",
                ) from e
        elif source.is_dir():
            destination.mkdir(parents=True, exist_ok=True)
        else:
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, destination, follow_symlinks=False)
            shutil.copymode(source, destination, follow_symlinks=False)
    except SnapshotIOError:
        raise
    except OSError as e:
        raise SnapshotIOError(
            source, "copy", f"failed to copy {source} to {destination}"
        ) from e


def _remove(path: Path) -> None:
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
    except OSError as e:
        raise SnapshotIOError(path, "remove") from e
