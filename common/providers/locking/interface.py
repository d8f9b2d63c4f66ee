import asyncio
from abc import ABC, abstractmethod
from typing import Optional


class DistributedLockInterface(ABC):
    """Interface for distributed lock providers."""

    @abstractmethod
    async def acquire_lock(
        self, resource_key: str, timeout_seconds: int = 30
    ) -> Optional[str]:
        """
        Acquire a distributed lock for a resource.

        Args:
            resource_key: The resource to lock (e.g., "vice_admission:ipcdev")
            timeout_seconds: Lock expiration time in seconds

        Returns:
            Lock token if acquired, None if somebody else holds it
        """
        pass

    @abstractmethod
    async def release_lock(self, resource_key: str, lock_token: str) -> bool:
        """
        Release a distributed lock.

        Returns:
            True if released, False if token doesn't match or lock doesn't exist
        """
        pass

    async def disconnect(self) -> None:
        """Close the connection to the lock backend, if any."""
        pass

    async def acquire_lock_with_retry(
        self,
        resource_key: str,
        lock_ttl_seconds: int = 30,
        acquire_timeout_seconds: float = 5.0,
        retry_interval_ms: int = 50,
    ) -> Optional[str]:
        """
        Acquire a distributed lock, retrying until ``acquire_timeout_seconds``.

        Returns:
            Lock token if acquired, None if timeout exceeded
        """
        loop = asyncio.get_running_loop()
        end_time = loop.time() + acquire_timeout_seconds
        while True:
            token = await self.acquire_lock(resource_key, lock_ttl_seconds)
            if token:
                return token
            if loop.time() >= end_time:
                return None
            await asyncio.sleep(retry_interval_ms / 1000)
