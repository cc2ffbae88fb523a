"""Shared fixtures for darcs tests."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from tidemark.darcs.client import DarcsClient


@pytest.fixture
def darcs_client(mock_runner: AsyncMock, temp_dir: Path) -> DarcsClient:
    """Create a DarcsClient with a mocked runner."""
    return DarcsClient(temp_dir, runner=mock_runner, timeout=5.0, snapshot_timeout=60.0)


@pytest.fixture
def mock_darcs_client() -> AsyncMock:
    """A DarcsClient double whose snapshot commands succeed."""
    client = AsyncMock(spec=DarcsClient)
    client.record_dry_run.return_value = None
    client.revert_all.return_value = None
    return client
