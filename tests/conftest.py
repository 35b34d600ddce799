# tests/conftest.py

"""Shared pytest fixtures for all pricescout tests."""

from collections.abc import Generator
from unittest.mock import AsyncMock, patch

import pytest


@pytest.fixture(autouse=True)
def mock_sleep() -> Generator[AsyncMock, None, None]:
    """Patch asyncio.sleep globally so back-offs and batch pauses run instantly."""
    with patch("asyncio.sleep", new_callable=AsyncMock) as sleep:
        yield sleep
