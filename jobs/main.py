"""
Scheduler entry point.

Starts the staking scheduler and its health check server, and runs until
SIGINT or SIGTERM.

Usage:
    python -m jobs.main
"""

import asyncio
import signal

from loguru import logger

from app.config.logging import setup_logging
from app.config.settings import settings
from jobs.health import set_scheduler, start_health_server, stop_health_server
from jobs.scheduler import create_scheduler


async def main() -> None:
    """Run the scheduler until a shutdown signal arrives."""
    setup_logging()

    scheduler = create_scheduler()
    scheduler.start()
    set_scheduler(scheduler)

    runner, _ = await start_health_server(port=settings.health_check_port)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    logger.info("Staking scheduler running")
    try:
        await stop_event.wait()
    finally:
        logger.info("Shutting down staking scheduler...")
        scheduler.shutdown(wait=False)
        set_scheduler(None)
        await stop_health_server(runner)


if __name__ == "__main__":
    asyncio.run(main())
