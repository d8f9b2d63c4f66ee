import uuid
from typing import Optional
import redis.asyncio as redis
from redis.exceptions import RedisError

from common.core.config import settings
from common.core.exceptions import AppException
from common.core.telemetry import get_logger
from .interface import DistributedLockInterface

logger = get_logger(__name__)

# Atomic check-and-delete so only the holder can release
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class LockProviderError(AppException):
    """The lock backend could not be reached."""


class RedisLock(DistributedLockInterface):
    """Redis-based distributed lock implementation."""

    def __init__(self):
        self.host = settings.redis_host
        self.port = settings.redis_port
        self.password = settings.redis_password
        self.db = settings.redis_db
        self._client: Optional[redis.Redis] = None
        self._lock_prefix = "lock:"

    def _get_client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.Redis(
                host=self.host,
                port=self.port,
                password=self.password,
                db=self.db,
                decode_responses=True,
            )
        return self._client

    async def disconnect(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Redis lock provider disconnected")

    async def acquire_lock(
        self, resource_key: str, timeout_seconds: int = 30
    ) -> Optional[str]:
        lock_key = f"{self._lock_prefix}{resource_key}"
        lock_token = str(uuid.uuid4())

        try:
            acquired = await self._get_client().set(
                lock_key,
                lock_token,
                nx=True,  # Only set if not exists
                ex=timeout_seconds,
            )
        except RedisError as e:
            raise LockProviderError(
                f"unable to acquire lock for {resource_key}: {e}"
            ) from e

        if acquired:
            logger.info(f"Acquired lock for {resource_key} with token {lock_token}")
            return lock_token

        logger.debug(f"Failed to acquire lock for {resource_key} - already locked")
        return None

    async def release_lock(self, resource_key: str, lock_token: str) -> bool:
        lock_key = f"{self._lock_prefix}{resource_key}"

        try:
            result = await self._get_client().eval(
                _RELEASE_SCRIPT, 1, lock_key, lock_token
            )
        except RedisError as e:
            # The TTL frees the lock eventually
            logger.error(f"Error releasing lock for {resource_key}: {e}")
            return False

        if result:
            logger.info(f"Released lock for {resource_key}")
            return True

        logger.warning(
            f"Cannot release lock for {resource_key} - token mismatch or lock expired"
        )
        return False
