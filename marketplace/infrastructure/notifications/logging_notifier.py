"""
Logging-only notifier for tests and local development.
"""
from uuid import UUID

import structlog

from marketplace.application.interfaces.notifier import Notifier

logger = structlog.get_logger(__name__)


class LoggingNotifier(Notifier):
    """Logs the notification instead of delivering it."""

    async def notify(
        self, listing_id: UUID, from_user_id: UUID, to_user_id: UUID, text: str
    ) -> None:
        logger.info(
            "notification_logged",
            listing_id=str(listing_id),
            from_user_id=str(from_user_id),
            to_user_id=str(to_user_id),
            text=text,
        )
