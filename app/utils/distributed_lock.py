"""
Distributed lock.

Keeps two workers from running the same batch at once. Correctness of the
batches never depends on this lock (every unit is idempotent in the
database); it only avoids wasted work and lock contention.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import redis.asyncio as redis
from loguru import logger
from redis.exceptions import LockError


class DistributedLock:
    """Redis lock wrapper with a non-blocking default."""

    def __init__(self, redis_client: redis.Redis, prefix: str = "staking:lock:") -> None:
        self.redis_client = redis_client
        self.prefix = prefix

    @asynccontextmanager
    async def lock(
        self,
        key: str,
        timeout: int = 60,
        blocking: bool = False,
        blocking_timeout: float | None = None,
    ) -> AsyncIterator[bool]:
        """
        Acquire a named lock.

        Args:
            key: Lock name
            timeout: Seconds before the lock expires on its own
            blocking: Wait for the lock instead of giving up
            blocking_timeout: Maximum wait when blocking

        Yields:
            True if this caller holds the lock
        """
        redis_lock = self.redis_client.lock(
            f"{self.prefix}{key}",
            timeout=timeout,
            blocking=blocking,
            blocking_timeout=blocking_timeout,
        )
        acquired = await redis_lock.acquire()
        if not acquired:
            logger.info(f"Lock {key} is held by another worker")

        try:
            yield acquired
        finally:
            if acquired:
                try:
                    await redis_lock.release()
                except LockError as e:
                    # Expired before release; the batch outlived the timeout
                    logger.warning(f"Lock {key} was lost before release: {e}")
