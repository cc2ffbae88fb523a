"""Shared fixtures for CLI command tests.

Common fixtures available from parent conftest.py:
- cli_runner: Click CLI test runner (from tests/conftest.py)
- temp_dir: Temporary directory for test files (from tests/conftest.py)
- clean_env: Clean environment without TIDEMARK_ vars (from tests/conftest.py)
- git_repo: Initialized repository with one commit (from tests/fixtures)
"""

from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture
def repo_cwd(
    git_repo: Path,
    clean_env: None,
    isolated_home: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> Path:
    """Run the command from inside ``git_repo`` with no user config."""
    monkeypatch.chdir(git_repo)
    return git_repo


@pytest.fixture
def outside_cwd(
    temp_dir: Path,
    clean_env: None,
    isolated_home: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> Path:
    """Run the command from a directory that is not a repository."""
    work = temp_dir / "plain"
    work.mkdir()
    monkeypatch.chdir(work)
    return work


@pytest.fixture
def git_repo_with_remote(git_repo_with_remote: tuple[Path, Path]) -> Path:
    """Narrow the shared ``(repo, remote)`` fixture to the local repo path."""
    repo_path, _ = git_repo_with_remote
    return repo_path
