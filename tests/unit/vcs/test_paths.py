"""Tests for snapshot scope resolution."""

from __future__ import annotations

import os
from pathlib import Path, PurePath

import pytest

from tidemark.exceptions import NotARepositoryError, PathOutsideRepositoryError
from tidemark.vcs.paths import resolve_scope, within_scope


@pytest.fixture
def repo_root(temp_dir: Path) -> Path:
    root = temp_dir / "R"
    (root / "src" / "pkg").mkdir(parents=True)
    (temp_dir / "outside").mkdir()
    return root


class TestResolveScope:
    def test_none_is_whole_repository(self, repo_root: Path) -> None:
        assert resolve_scope(repo_root, None) is None

    def test_root_itself_is_whole_repository(self, repo_root: Path) -> None:
        assert resolve_scope(repo_root, repo_root) is None
        assert resolve_scope(repo_root, ".") is None

    def test_relative_scope(self, repo_root: Path) -> None:
        assert resolve_scope(repo_root, "src/pkg") == Path("src/pkg")

    def test_absolute_scope(self, repo_root: Path) -> None:
        assert resolve_scope(repo_root, repo_root / "src") == Path("src")

    def test_scope_need_not_exist(self, repo_root: Path) -> None:
        assert resolve_scope(repo_root, "new/dir") == Path("new/dir")

    def test_dotdot_that_stays_inside(self, repo_root: Path) -> None:
        assert resolve_scope(repo_root, "src/pkg/../pkg") == Path("src/pkg")

    def test_parent_escape_names_both_paths(self, repo_root: Path) -> None:
        scope = repo_root / ".." / "outside"
        with pytest.raises(PathOutsideRepositoryError) as exc_info:
            resolve_scope(repo_root, scope, backend="darcs")

        error = exc_info.value
        assert error.path == scope
        assert error.root == repo_root
        assert str(scope) in error.message
        assert str(repo_root) in error.message
        assert error.backend == "darcs"

    def test_outside_error_is_not_a_repository_error(self, repo_root: Path) -> None:
        with pytest.raises(NotARepositoryError):
            resolve_scope(repo_root, "/")

    def test_symlinked_root_is_tolerated(self, repo_root: Path, temp_dir: Path) -> None:
        alias = temp_dir / "alias"
        os.symlink(repo_root, alias, target_is_directory=True)
        assert resolve_scope(alias, repo_root / "src") == Path("src")
        assert resolve_scope(repo_root, alias / "src" / "pkg") == Path("src/pkg")


class TestWithinScope:
    def test_everything_is_within_whole_repository(self) -> None:
        assert within_scope(PurePath("any/file"), None)

    def test_scope_itself_and_children(self) -> None:
        scope = PurePath("src")
        assert within_scope(PurePath("src"), scope)
        assert within_scope(PurePath("src/a.py"), scope)

    def test_siblings_with_common_prefix_are_outside(self) -> None:
        assert not within_scope(PurePath("src2/a.py"), PurePath("src"))
        assert not within_scope(PurePath("docs"), PurePath("src"))
