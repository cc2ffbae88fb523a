from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest


@pytest.fixture
def mock_process() -> MagicMock:
    """Create a mock subprocess that exits 0 with some stdout."""
    process = MagicMock()
    process.returncode = 0
    process.pid = 12345
    process.stdout = None
    process.stderr = None
    process.communicate = AsyncMock(return_value=(b"stdout output", b""))
    process.wait = AsyncMock()
    process.terminate = MagicMock()
    process.kill = MagicMock()
    return process
