"""
Dramatiq broker configuration.

Redis-based message broker for the staking task queue.
"""

import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.middleware import CurrentMessage, Retries, ShutdownNotifications
from loguru import logger

from app.config.settings import settings
from app.utils.exceptions import is_transient
from app.utils.redis_utils import get_redis_url_masked

MAX_RETRIES = 3


def should_retry(retries_so_far: int, exception: Exception) -> bool:
    """
    Retry only store outages; every financial step is idempotent per day.

    Args:
        retries_so_far: Attempts already made
        exception: Error raised by the actor

    Returns:
        True if the message should be redelivered
    """
    return retries_so_far < MAX_RETRIES and is_transient(exception)


redis_broker = RedisBroker(
    host=settings.redis_host,
    port=settings.redis_port,
    password=settings.redis_password if settings.redis_password else None,
    db=settings.redis_db,
)

# ShutdownNotifications lets long batches stop between units
redis_broker.add_middleware(ShutdownNotifications())
redis_broker.add_middleware(CurrentMessage())
redis_broker.add_middleware(
    Retries(
        max_retries=MAX_RETRIES,
        min_backoff=1000,  # 1 second
        max_backoff=60000,  # 1 minute
        retry_when=should_retry,
    )
)

dramatiq.set_broker(redis_broker)

broker = redis_broker

logger.info(f"Dramatiq broker initialized: {get_redis_url_masked()}")
