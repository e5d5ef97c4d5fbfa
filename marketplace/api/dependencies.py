"""
FastAPI dependency injection wiring.

Each dependency function returns a fully-constructed object with its
collaborators injected, so route handlers stay thin.
"""
from collections.abc import AsyncGenerator, Callable
from functools import partial

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.application.coordinators.lifecycle_coordinator import LifecycleCoordinator
from marketplace.application.interfaces.event_publisher import EventPublisher
from marketplace.application.interfaces.listing_repository import ListingRepository
from marketplace.application.interfaces.notifier import Notifier
from marketplace.application.interfaces.transaction_repository import (
    TransactionRepository,
)
from marketplace.application.interfaces.unit_of_work import UnitOfWork
from marketplace.application.interfaces.user_repository import UserRepository
from marketplace.application.use_cases.change_listing_status import ChangeListingStatus
from marketplace.application.use_cases.create_listing import CreateListing
from marketplace.application.use_cases.get_listing_transactions import (
    GetListingTransactions,
)
from marketplace.config import NotifierBackend, settings
from marketplace.infrastructure.database.connection import AsyncSessionLocal, get_db_session
from marketplace.infrastructure.database.repositories.listing_repository import (
    SqlAlchemyListingRepository,
)
from marketplace.infrastructure.database.repositories.transaction_repository import (
    SqlAlchemyTransactionRepository,
)
from marketplace.infrastructure.database.repositories.user_repository import (
    SqlAlchemyUserRepository,
)
from marketplace.infrastructure.database.unit_of_work import SqlAlchemyUnitOfWork
from marketplace.infrastructure.messaging.noop_publisher import NoOpEventPublisher
from marketplace.infrastructure.messaging.rabbitmq_publisher import RabbitMQPublisher
from marketplace.infrastructure.notifications.logging_notifier import LoggingNotifier
from marketplace.infrastructure.notifications.system_message_notifier import (
    SystemMessageNotifier,
)


# ---- Low-level dependencies ------------------------------------------------

async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_db_session():
        yield session


def get_listing_repo(session: AsyncSession = Depends(get_session)) -> ListingRepository:
    return SqlAlchemyListingRepository(session)


def get_transaction_repo(
    session: AsyncSession = Depends(get_session),
) -> TransactionRepository:
    return SqlAlchemyTransactionRepository(session)


def get_user_repo(session: AsyncSession = Depends(get_session)) -> UserRepository:
    return SqlAlchemyUserRepository(session)


def get_uow_factory() -> Callable[[], UnitOfWork]:
    # The coordinator opens its own session per operation
    return partial(SqlAlchemyUnitOfWork, AsyncSessionLocal)


def get_event_publisher() -> EventPublisher:
    if settings.event_publishing_enabled:
        return RabbitMQPublisher()
    return NoOpEventPublisher()


def get_notifier() -> Notifier:
    if settings.notifier_backend is NotifierBackend.SYSTEM_MESSAGE:
        return SystemMessageNotifier(AsyncSessionLocal)
    return LoggingNotifier()


# ---- Coordinator / use-case dependencies -----------------------------------

def get_lifecycle_coordinator(
    uow_factory: Callable[[], UnitOfWork] = Depends(get_uow_factory),
    notifier: Notifier = Depends(get_notifier),
    event_publisher: EventPublisher = Depends(get_event_publisher),
) -> LifecycleCoordinator:
    return LifecycleCoordinator(
        uow_factory,
        notifier,
        event_publisher,
        uniqueness=settings.transaction_uniqueness,
    )


def get_create_listing_use_case(
    listing_repo: ListingRepository = Depends(get_listing_repo),
    user_repo: UserRepository = Depends(get_user_repo),
) -> CreateListing:
    return CreateListing(listing_repo, user_repo)


def get_listing_transactions_use_case(
    listing_repo: ListingRepository = Depends(get_listing_repo),
    transaction_repo: TransactionRepository = Depends(get_transaction_repo),
) -> GetListingTransactions:
    return GetListingTransactions(listing_repo, transaction_repo)


def get_change_listing_status_use_case(
    listing_repo: ListingRepository = Depends(get_listing_repo),
) -> ChangeListingStatus:
    return ChangeListingStatus(listing_repo)
