"""
Async runner for dramatiq tasks.

Runs the async staking operations inside synchronous dramatiq actors.
Each worker thread keeps its own event loop, and each task gets its own
NullPool engine so connections never cross event loops.
"""

import asyncio
import threading
from collections.abc import AsyncIterator, Awaitable, Callable, Coroutine
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.config.settings import settings
from app.services.staking_operations import StakingOperations
from app.utils.distributed_lock import DistributedLock
from app.utils.redis_utils import get_redis_client

T = TypeVar("T")

_thread_local = threading.local()


def get_event_loop() -> asyncio.AbstractEventLoop:
    """
    Get or create the event loop of the current thread.

    Reusing one loop per thread prevents "Future attached to a different
    loop" errors.
    """
    loop = getattr(_thread_local, "loop", None)
    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        _thread_local.loop = loop
        logger.debug(f"Created new event loop for thread {threading.current_thread().name}")
    return loop


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """
    Run a coroutine in the thread's event loop.

    Args:
        coro: Async coroutine to run

    Returns:
        Result of the coroutine
    """
    loop = get_event_loop()
    try:
        return loop.run_until_complete(coro)
    except Exception as e:
        logger.exception(f"Error running async coroutine: {e}")
        raise


@asynccontextmanager
async def local_operations() -> AsyncIterator[StakingOperations]:
    """
    Staking operations bound to an engine owned by the current task.

    Yields:
        StakingOperations using a NullPool session factory
    """
    local_engine = create_async_engine(
        settings.database_url,
        echo=False,
        poolclass=NullPool,
    )
    local_session_maker = async_sessionmaker(
        local_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    try:
        yield StakingOperations(local_session_maker)
    finally:
        await local_engine.dispose()


async def run_locked(
    lock_key: str,
    operation: Callable[[StakingOperations], Awaitable[dict[str, Any]]],
    timeout: int = 600,
) -> dict[str, Any]:
    """
    Run a staking operation unless another worker is already running it.

    Args:
        lock_key: Distributed lock name
        operation: Callable receiving the task's StakingOperations
        timeout: Lock expiry in seconds

    Returns:
        Operation result, or a skipped marker when the lock is held
    """
    redis_client = get_redis_client()
    lock = DistributedLock(redis_client)

    try:
        async with lock.lock(lock_key, timeout=timeout) as acquired:
            if not acquired:
                return {"success": True, "skipped": True, "reason": "already_running"}

            async with local_operations() as operations:
                return await operation(operations)
    finally:
        await redis_client.aclose()
