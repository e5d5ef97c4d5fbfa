"""
Notifier that drops a system message into the recipient's inbox.

Runs in its own session, after the lifecycle transition has committed, so a
failed insert can never roll the transition back.
"""
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from marketplace.application.interfaces.notifier import Notifier
from marketplace.infrastructure.database.models import MessageModel

logger = structlog.get_logger(__name__)


class SystemMessageNotifier(Notifier):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def notify(
        self, listing_id: UUID, from_user_id: UUID, to_user_id: UUID, text: str
    ) -> None:
        async with self._session_factory() as session:
            message = MessageModel(
                listing_id=listing_id,
                from_user_id=from_user_id,
                to_user_id=to_user_id,
                content=text,
                is_system=True,
            )
            session.add(message)
            await session.commit()

        logger.info(
            "system_message_sent",
            message_id=str(message.id),
            listing_id=str(listing_id),
            to_user_id=str(to_user_id),
        )
