"""
Feed refresh tasks.

arq tasks for refreshing a single feed on demand and for the periodic
background refresh. The service container is expected in ``ctx``.
"""

from tidings_core.errors import FeedNotFound, FeedServiceError
from tidings_core.logging_config import get_logger

logger = get_logger(__name__)


async def refresh_feed_task(ctx: dict, feed_id: str) -> dict[str, str | int]:
    """
    Refresh a single feed.

    Args:
        ctx: Worker context.
        feed_id: Feed identifier to refresh.

    Returns:
        Dictionary with refresh results.
    """
    container = ctx["container"]
    try:
        new_entries = await container.background.refresh_feed(feed_id)
    except FeedNotFound:
        return {"status": "error", "message": "Feed not found"}
    except FeedServiceError as e:
        logger.warning("Feed refresh failed", extra={"feed_id": feed_id, "error": str(e)})
        return {"status": "error", "feed_id": feed_id, "message": str(e)}

    return {"status": "success", "feed_id": feed_id, "new_entries": new_entries}


async def scheduled_refresh(ctx: dict) -> dict[str, int]:
    """
    Periodic background refresh of due feeds.

    Args:
        ctx: Worker context.

    Returns:
        Dictionary with refresh statistics.
    """
    container = ctx["container"]
    new_articles = await container.background.perform_background_refresh()
    return {"new_articles": new_articles}


# Export task functions
refresh_feed = refresh_feed_task
