"""
Worker entry points.

Run under arq with ``arq tidings_worker.main.WorkerSettings``, or in-process
with refresh triggers through ``tidings-worker``.
"""

import asyncio

from arq import cron
from arq.connections import RedisSettings

from tidings_core import get_logger, init_logging
from tidings_core.config import Settings

from .container import build_container
from .tasks.feed_fetcher import refresh_feed_task, scheduled_refresh
from .triggers import select_refresh_trigger

logger = get_logger(__name__)

settings = Settings()


async def startup(ctx: dict) -> None:
    """Build the service container for the worker process."""
    init_logging(settings.log_level)
    ctx["container"] = await build_container(settings)
    logger.info("Worker started")


async def shutdown(ctx: dict) -> None:
    container = ctx.get("container")
    if container is not None:
        await container.close()
    logger.info("Worker stopped")


def refresh_cron_jobs(interval_minutes: int) -> list:
    """
    Cron jobs for the periodic refresh.

    Intervals under an hour run on matching minutes; longer intervals run
    on the hour every ``interval_minutes // 60`` hours. Zero disables the
    periodic refresh.
    """
    if interval_minutes <= 0:
        return []
    if interval_minutes < 60:
        minutes = set(range(0, 60, interval_minutes))
        return [cron(scheduled_refresh, minute=minutes)]
    hours = set(range(0, 24, interval_minutes // 60))
    return [cron(scheduled_refresh, hour=hours, minute={0})]


class WorkerSettings:
    """arq worker configuration."""

    functions = [refresh_feed_task, scheduled_refresh]
    cron_jobs = refresh_cron_jobs(settings.refresh_interval_minutes)
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = RedisSettings.from_dsn(settings.redis_url)


async def serve(platform: str | None = None) -> None:
    """Refresh in-process on a trigger chosen for the platform, without Redis."""
    init_logging(settings.log_level)
    container = await build_container(settings)
    trigger = select_refresh_trigger(
        container.background.perform_background_refresh,
        settings.refresh_interval_minutes,
        platform,
    )
    trigger.start()
    try:
        await trigger.trigger_now()
        await asyncio.Event().wait()
    finally:
        await trigger.wait_stopped()
        await container.close()


def main() -> None:
    asyncio.run(serve())


if __name__ == "__main__":
    main()
