"""
New-article notifications.

Groups new-article events by feed and hands the resulting notifications
to a presenter. Presentation itself lives outside the core.
"""

from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Protocol

from tidings_core.config import Settings
from tidings_core.logging_config import get_logger
from tidings_core.schemas import ArticleNotification, AuthorizationStatus, NewArticleEvent

logger = get_logger(__name__)


class NotificationPresenter(Protocol):
    """Delivers notifications to the user."""

    async def authorization_status(self) -> AuthorizationStatus: ...

    async def request_authorization(self) -> bool: ...

    async def deliver(self, notification: ArticleNotification) -> None: ...


class LoggingNotificationPresenter:
    """Presenter that writes notifications to the log."""

    def __init__(self, status: AuthorizationStatus = AuthorizationStatus.AUTHORIZED):
        self.status = status

    async def authorization_status(self) -> AuthorizationStatus:
        return self.status

    async def request_authorization(self) -> bool:
        if self.status == AuthorizationStatus.NOT_DETERMINED:
            self.status = AuthorizationStatus.AUTHORIZED
        return self.status == AuthorizationStatus.AUTHORIZED

    async def deliver(self, notification: ArticleNotification) -> None:
        logger.info(
            "New articles",
            extra={
                "notification_title": notification.title,
                "body": notification.body,
                "feed_id": notification.feed_id,
                "article_count": notification.article_count,
            },
        )


def build_notifications(
    events: Sequence[NewArticleEvent], now: datetime | None = None
) -> list[ArticleNotification]:
    """
    Group events by feed into notifications.

    A feed with one new article gets a notification for that article; a
    feed with more gets a single summary. Feeds keep first-seen order.

    Args:
        events: New-article events from a refresh.
        now: Timestamp used in summary identifiers.
    """
    grouped: dict[str, list[NewArticleEvent]] = {}
    for event in events:
        grouped.setdefault(event.feed_id, []).append(event)

    timestamp = (now or datetime.now(timezone.utc)).timestamp()

    notifications = []
    for feed_id, feed_events in grouped.items():
        first = feed_events[0]
        if len(feed_events) == 1:
            notifications.append(
                ArticleNotification(
                    identifier=f"article-{first.article_id}",
                    title=first.feed_title,
                    body=first.article_title,
                    thread_id=feed_id,
                    feed_id=feed_id,
                    article_id=first.article_id,
                )
            )
        else:
            notifications.append(
                ArticleNotification(
                    identifier=f"feed-{feed_id}-{timestamp}",
                    title=first.feed_title,
                    body=f"{len(feed_events)} new articles",
                    thread_id=feed_id,
                    feed_id=feed_id,
                    article_id=first.article_id,
                    article_count=len(feed_events),
                )
            )
    return notifications


class NotificationDispatcher:
    """Sends new-article notifications through a presenter."""

    def __init__(self, presenter: NotificationPresenter, settings: Settings | None = None):
        """
        Initialize the dispatcher.

        Args:
            presenter: Presentation collaborator.
            settings: Application settings, for the enabled flag.
        """
        self.presenter = presenter
        self.settings = settings or Settings()

    async def request_authorization(self) -> bool:
        return await self.presenter.request_authorization()

    async def dispatch(self, events: Sequence[NewArticleEvent]) -> list[ArticleNotification]:
        """
        Deliver notifications for new articles.

        Nothing is sent when notifications are disabled or not authorized.
        A failed delivery is logged and does not stop the others.

        Returns:
            Notifications that were delivered.
        """
        if not events or not self.settings.notifications_enabled:
            return []

        status = await self.presenter.authorization_status()
        if status != AuthorizationStatus.AUTHORIZED:
            logger.debug("Notifications not authorized", extra={"status": status.value})
            return []

        delivered = []
        for notification in build_notifications(events):
            try:
                await self.presenter.deliver(notification)
            except Exception:
                logger.exception(
                    "Failed to deliver notification",
                    extra={"identifier": notification.identifier},
                )
                continue
            delivered.append(notification)
        return delivered
