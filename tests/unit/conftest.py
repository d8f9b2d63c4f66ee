import pytest
from unittest.mock import AsyncMock

from packages.vice.models.domain.admission import OverageList


@pytest.fixture
def mock_message_queue():
    """Create a mock message queue instance for testing."""
    queue = AsyncMock()
    queue.connect = AsyncMock(return_value=True)
    queue.disconnect = AsyncMock(return_value=None)
    queue.request = AsyncMock(return_value={"overages": []})
    return queue


@pytest.fixture
def mock_lock_provider():
    """Create a mock lock provider instance for testing."""
    lock = AsyncMock()
    lock.acquire_lock = AsyncMock(return_value="test-lock-token")
    lock.acquire_lock_with_retry = AsyncMock(return_value="test-lock-token")
    lock.release_lock = AsyncMock(return_value=True)
    return lock


@pytest.fixture
def mock_quota_client():
    """Quota client reporting no overages."""
    quota = AsyncMock()
    quota.get_user_overages = AsyncMock(return_value=OverageList(overages=[]))
    return quota
