"""Tests for backend dispatch in RepoSnapshotManager."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from tests.conftest import requires_git
from tidemark.config import CommandsConfig, SnapshotsConfig, TidemarkConfig
from tidemark.darcs import snapshots as darcs_snapshots
from tidemark.darcs.snapshots import DarcsSnapshot
from tidemark.exceptions import SnapshotMismatchError, UnsupportedCapabilityError
from tidemark.git.snapshots import GhostCommit
from tidemark.snapshots import manager as manager_module
from tidemark.snapshots.manager import RepoSnapshotManager
from tidemark.vcs.models import (
    DetectedRevisionControl,
    RevisionControlCapabilities,
    RevisionControlKind,
)


class FakeGitSnapshotter:
    """Stand-in for AsyncGitSnapshotter that records calls."""

    instances: list[FakeGitSnapshotter] = []

    def __init__(self, path: Path, *, message: str, timeout: float) -> None:
        self.path = path
        self.message = message
        self.timeout = timeout
        self.calls: list[tuple[str, Any]] = []
        FakeGitSnapshotter.instances.append(self)

    async def create(self, scope: Any = None) -> GhostCommit:
        self.calls.append(("create", scope))
        return GhostCommit(id="ghost", parent="head")

    async def restore(self, ghost: GhostCommit) -> None:
        self.calls.append(("restore", ghost))

    async def restore_to_commit(self, commit_id: str, scope: Any = None) -> None:
        self.calls.append(("restore_to_commit", commit_id, scope))


@pytest.fixture
def fake_git(monkeypatch: pytest.MonkeyPatch) -> type[FakeGitSnapshotter]:
    FakeGitSnapshotter.instances = []
    monkeypatch.setattr(manager_module, "AsyncGitSnapshotter", FakeGitSnapshotter)
    return FakeGitSnapshotter


@pytest.fixture
def git_backend(temp_dir: Path) -> DetectedRevisionControl:
    return DetectedRevisionControl(kind=RevisionControlKind.GIT, root=temp_dir)


@pytest.fixture
def darcs_backend(temp_dir: Path) -> DetectedRevisionControl:
    return DetectedRevisionControl(kind=RevisionControlKind.DARCS, root=temp_dir)


@pytest.fixture
def darcs_snapshot(tmp_path: Path) -> DarcsSnapshot:
    storage = tempfile.TemporaryDirectory(dir=tmp_path)
    return DarcsSnapshot(id=Path(storage.name).name, scope=None, storage=storage)


def _without_snapshots(backend: DetectedRevisionControl) -> DetectedRevisionControl:
    object.__setattr__(
        backend,
        "capabilities",
        RevisionControlCapabilities(supports_diffs=True, supports_snapshots=False),
    )
    return backend


class TestMismatch:
    @pytest.mark.asyncio
    async def test_darcs_snapshot_into_git_repository(
        self,
        git_backend: DetectedRevisionControl,
        darcs_snapshot: DarcsSnapshot,
        fake_git: type[FakeGitSnapshotter],
    ) -> None:
        manager = RepoSnapshotManager(git_backend)

        with pytest.raises(SnapshotMismatchError) as exc_info:
            await manager.restore_snapshot(darcs_snapshot)

        assert exc_info.value.expected is RevisionControlKind.GIT
        assert exc_info.value.actual is RevisionControlKind.DARCS
        assert "Darcs" in exc_info.value.message
        assert fake_git.instances == []

    @pytest.mark.asyncio
    async def test_ghost_commit_into_darcs_repository(
        self,
        darcs_backend: DetectedRevisionControl,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        restore = AsyncMock()
        monkeypatch.setattr(darcs_snapshots, "restore_snapshot", restore)
        manager = RepoSnapshotManager(darcs_backend)

        with pytest.raises(SnapshotMismatchError):
            await manager.restore_snapshot(GhostCommit(id="abc"))

        restore.assert_not_awaited()


class TestCapabilities:
    @pytest.mark.asyncio
    async def test_create_without_snapshot_support(
        self,
        git_backend: DetectedRevisionControl,
        fake_git: type[FakeGitSnapshotter],
    ) -> None:
        manager = RepoSnapshotManager(_without_snapshots(git_backend))

        with pytest.raises(UnsupportedCapabilityError) as exc_info:
            await manager.create_snapshot()

        assert exc_info.value.capability == "snapshots"
        assert fake_git.instances == []

    @pytest.mark.asyncio
    async def test_restore_without_snapshot_support(
        self,
        git_backend: DetectedRevisionControl,
        fake_git: type[FakeGitSnapshotter],
    ) -> None:
        manager = RepoSnapshotManager(_without_snapshots(git_backend))

        with pytest.raises(UnsupportedCapabilityError):
            await manager.restore_snapshot(GhostCommit(id="abc"))
        assert fake_git.instances == []

    @pytest.mark.asyncio
    async def test_restore_to_commit_is_git_only(
        self, darcs_backend: DetectedRevisionControl
    ) -> None:
        manager = RepoSnapshotManager(darcs_backend)

        with pytest.raises(UnsupportedCapabilityError) as exc_info:
            await manager.restore_to_commit("0000000123-abcdef")

        assert exc_info.value.kind is RevisionControlKind.DARCS


class TestGitDispatch:
    @pytest.mark.asyncio
    async def test_create_and_restore(
        self,
        git_backend: DetectedRevisionControl,
        fake_git: type[FakeGitSnapshotter],
    ) -> None:
        config = TidemarkConfig(
            snapshots=SnapshotsConfig(ghost_commit_message="checkpoint")
        )
        manager = RepoSnapshotManager(git_backend, config)

        ghost = await manager.create_snapshot("src")
        await manager.restore_snapshot(ghost)
        await manager.restore_to_commit("abc123")

        calls = [call for inst in fake_git.instances for call in inst.calls]
        assert calls == [
            ("create", "src"),
            ("restore", ghost),
            ("restore_to_commit", "abc123", None),
        ]
        assert {inst.message for inst in fake_git.instances} == {"checkpoint"}
        assert {inst.path for inst in fake_git.instances} == {git_backend.root}

    @pytest.mark.asyncio
    async def test_restore_to_commit_forwards_scope(
        self,
        git_backend: DetectedRevisionControl,
        fake_git: type[FakeGitSnapshotter],
    ) -> None:
        await RepoSnapshotManager(git_backend).restore_to_commit("abc123", "src")

        (instance,) = fake_git.instances
        assert instance.calls == [("restore_to_commit", "abc123", "src")]

    @pytest.mark.asyncio
    async def test_configured_snapshot_timeout(
        self,
        git_backend: DetectedRevisionControl,
        fake_git: type[FakeGitSnapshotter],
    ) -> None:
        config = TidemarkConfig(commands=CommandsConfig(snapshot_timeout_seconds=30.0))

        await RepoSnapshotManager(git_backend, config).create_snapshot()

        assert [inst.timeout for inst in fake_git.instances] == [30.0]


class TestDarcsDispatch:
    @pytest.mark.asyncio
    async def test_create_passes_configuration(
        self,
        darcs_backend: DetectedRevisionControl,
        darcs_snapshot: DarcsSnapshot,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        create = AsyncMock(return_value=darcs_snapshot)
        monkeypatch.setattr(darcs_snapshots, "create_snapshot", create)
        config = TidemarkConfig(
            snapshots=SnapshotsConfig(
                storage_root=tmp_path,
                darcs_patch_name="checkpoint",
                darcs_author="Bot <bot@example.com>",
            )
        )

        result = await RepoSnapshotManager(darcs_backend, config).create_snapshot(
            "src"
        )

        assert result is darcs_snapshot
        args, kwargs = create.await_args
        assert args == (darcs_backend.root, "src", tmp_path)
        assert kwargs["patch_name"] == "checkpoint"
        assert kwargs["author"] == "Bot <bot@example.com>"
        assert kwargs["client"].cwd == darcs_backend.root

    @pytest.mark.asyncio
    async def test_client_uses_configured_timeouts(
        self,
        darcs_backend: DetectedRevisionControl,
        darcs_snapshot: DarcsSnapshot,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        client_cls = MagicMock()
        monkeypatch.setattr(manager_module, "DarcsClient", client_cls)
        create = AsyncMock(return_value=darcs_snapshot)
        monkeypatch.setattr(darcs_snapshots, "create_snapshot", create)
        config = TidemarkConfig(
            commands=CommandsConfig(timeout_seconds=2.0, snapshot_timeout_seconds=30.0)
        )

        await RepoSnapshotManager(darcs_backend, config).create_snapshot()

        client_cls.assert_called_once_with(
            darcs_backend.root, timeout=2.0, snapshot_timeout=30.0
        )
        assert create.await_args.kwargs["client"] is client_cls.return_value

    @pytest.mark.asyncio
    async def test_restore_forwards_repo_path(
        self,
        darcs_backend: DetectedRevisionControl,
        darcs_snapshot: DarcsSnapshot,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        restore = AsyncMock()
        monkeypatch.setattr(darcs_snapshots, "restore_snapshot", restore)
        repo_path = darcs_backend.root / "sub"

        await RepoSnapshotManager(darcs_backend).restore_snapshot(
            darcs_snapshot, repo_path
        )

        args, _ = restore.await_args
        assert args == (darcs_backend.root, darcs_snapshot, repo_path)


@requires_git
class TestRealGitRepository:
    @pytest.mark.asyncio
    async def test_round_trip(self, git_repo: Path) -> None:
        manager = RepoSnapshotManager(
            DetectedRevisionControl(kind=RevisionControlKind.GIT, root=git_repo)
        )
        (git_repo / "draft.txt").write_text("draft\n")

        snapshot = await manager.create_snapshot()
        (git_repo / "draft.txt").write_text("overwritten\n")
        (git_repo / "README.md").unlink()
        await manager.restore_snapshot(snapshot)

        assert snapshot.kind is RevisionControlKind.GIT
        assert (git_repo / "draft.txt").read_text() == "draft\n"
        assert (git_repo / "README.md").read_text() == "# Test Repo\n"
