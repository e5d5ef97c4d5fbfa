"""
Integration tests for the SQLAlchemy stores, run against in-memory SQLite.

SQLite honours the partial unique index and reports UPDATE row counts, which
is all the compare-and-set and uniqueness guarantees rely on.
"""
from collections.abc import AsyncGenerator
from decimal import Decimal
from functools import partial
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from marketplace.application.coordinators.lifecycle_coordinator import LifecycleCoordinator
from marketplace.domain.entities.listing import Listing
from marketplace.domain.entities.transaction import Transaction
from marketplace.domain.enums.listing_status import ListingStatus
from marketplace.domain.enums.transaction_status import TransactionStatus
from marketplace.domain.errors import DuplicateTransactionError, NotAvailableError
from marketplace.infrastructure.database.connection import Base, build_session_factory
from marketplace.infrastructure.database.models import MessageModel, UserModel
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
from marketplace.infrastructure.notifications.system_message_notifier import (
    SystemMessageNotifier,
)


@pytest_asyncio.fixture()
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(engine)


@pytest_asyncio.fixture()
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
        await session.rollback()


async def _add_user(session: AsyncSession) -> UUID:
    user_id = uuid4()
    session.add(
        UserModel(id=user_id, username=f"u{user_id.hex[:8]}", email=f"{user_id.hex}@campus.edu")
    )
    await session.flush()
    return user_id


async def _add_listing(
    session: AsyncSession, seller_id: UUID, status: ListingStatus = ListingStatus.ACTIVE
) -> Listing:
    listing = Listing(
        seller_id=seller_id, title="Mini fridge", price=Decimal("80.00"), status=status
    )
    await SqlAlchemyListingRepository(session).add(listing)
    return listing


class TestListingRepository:
    @pytest.mark.asyncio
    async def test_add_and_get(self, session: AsyncSession) -> None:
        seller_id = await _add_user(session)
        listing = await _add_listing(session, seller_id)

        loaded = await SqlAlchemyListingRepository(session).get_by_id(listing.id)

        assert loaded is not None
        assert loaded.title == "Mini fridge"
        assert loaded.price == Decimal("80.00")
        assert loaded.status == ListingStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, session: AsyncSession) -> None:
        assert await SqlAlchemyListingRepository(session).get_by_id(uuid4()) is None

    @pytest.mark.asyncio
    async def test_compare_and_set_succeeds_on_expected_status(
        self, session: AsyncSession
    ) -> None:
        repo = SqlAlchemyListingRepository(session)
        listing = await _add_listing(session, await _add_user(session))

        swapped = await repo.compare_and_set_status(
            listing.id, ListingStatus.ACTIVE, ListingStatus.PENDING
        )

        assert swapped is True
        loaded = await repo.get_by_id(listing.id)
        assert loaded is not None and loaded.status == ListingStatus.PENDING

    @pytest.mark.asyncio
    async def test_compare_and_set_fails_on_stale_status(self, session: AsyncSession) -> None:
        repo = SqlAlchemyListingRepository(session)
        listing = await _add_listing(session, await _add_user(session), ListingStatus.SOLD)

        swapped = await repo.compare_and_set_status(
            listing.id, ListingStatus.ACTIVE, ListingStatus.PENDING
        )

        assert swapped is False
        loaded = await repo.get_by_id(listing.id)
        assert loaded is not None and loaded.status == ListingStatus.SOLD

    @pytest.mark.asyncio
    async def test_list_filters_by_seller_and_status(self, session: AsyncSession) -> None:
        repo = SqlAlchemyListingRepository(session)
        seller_id = await _add_user(session)
        other_seller = await _add_user(session)
        await _add_listing(session, seller_id)
        await _add_listing(session, seller_id, ListingStatus.DRAFT)
        await _add_listing(session, other_seller)

        listings, total = await repo.list_all(seller_id=seller_id, status=ListingStatus.ACTIVE)

        assert total == 1
        assert [l.seller_id for l in listings] == [seller_id]


class TestTransactionRepository:
    @pytest.mark.asyncio
    async def test_second_pending_transaction_is_a_duplicate(
        self, session: AsyncSession
    ) -> None:
        repo = SqlAlchemyTransactionRepository(session)
        listing = await _add_listing(session, await _add_user(session))
        await repo.add(Transaction.open(listing, await _add_user(session)))

        with pytest.raises(DuplicateTransactionError):
            await repo.add(Transaction.open(listing, await _add_user(session)))

    @pytest.mark.asyncio
    async def test_finished_transactions_do_not_block(self, session: AsyncSession) -> None:
        repo = SqlAlchemyTransactionRepository(session)
        listing = await _add_listing(session, await _add_user(session))
        first = Transaction.open(listing, await _add_user(session))
        await repo.add(first)
        await repo.compare_and_set_status(
            first.id, TransactionStatus.PENDING, TransactionStatus.CANCELLED
        )

        second = Transaction.open(listing, await _add_user(session))
        await repo.add(second)

        active = await repo.find_active_by_listing(listing.id)
        assert active is not None and active.id == second.id
        assert len(await repo.find_by_listing(listing.id)) == 2

    @pytest.mark.asyncio
    async def test_compare_and_set_only_moves_expected_status(
        self, session: AsyncSession
    ) -> None:
        repo = SqlAlchemyTransactionRepository(session)
        listing = await _add_listing(session, await _add_user(session))
        transaction = Transaction.open(listing, await _add_user(session))
        await repo.add(transaction)

        first = await repo.compare_and_set_status(
            transaction.id, TransactionStatus.PENDING, TransactionStatus.COMPLETED
        )
        second = await repo.compare_and_set_status(
            transaction.id, TransactionStatus.PENDING, TransactionStatus.CANCELLED
        )

        assert (first, second) == (True, False)
        loaded = await repo.get_by_id(transaction.id)
        assert loaded is not None and loaded.status == TransactionStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_list_filters_by_buyer(self, session: AsyncSession) -> None:
        repo = SqlAlchemyTransactionRepository(session)
        seller_id = await _add_user(session)
        buyer_id = await _add_user(session)
        for _ in range(2):
            listing = await _add_listing(session, seller_id)
            await repo.add(Transaction.open(listing, buyer_id))
        other = await _add_listing(session, seller_id)
        await repo.add(Transaction.open(other, await _add_user(session)))

        transactions, total = await repo.list_all(buyer_id=buyer_id)

        assert total == 2
        assert {t.buyer_id for t in transactions} == {buyer_id}


class TestUserRepository:
    @pytest.mark.asyncio
    async def test_exists(self, session: AsyncSession) -> None:
        repo = SqlAlchemyUserRepository(session)
        user_id = await _add_user(session)

        assert await repo.exists(user_id) is True
        assert await repo.exists(uuid4()) is False


class TestSqlAlchemyUnitOfWork:
    @pytest.mark.asyncio
    async def test_uncommitted_work_is_rolled_back(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        async with session_factory() as setup:
            listing = await _add_listing(setup, await _add_user(setup))
            await setup.commit()

        async with SqlAlchemyUnitOfWork(session_factory) as uow:
            await uow.listings.compare_and_set_status(
                listing.id, ListingStatus.ACTIVE, ListingStatus.PENDING
            )

        async with SqlAlchemyUnitOfWork(session_factory) as uow:
            loaded = await uow.listings.get_by_id(listing.id)

        assert loaded is not None and loaded.status == ListingStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_committed_work_persists(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        async with session_factory() as setup:
            listing = await _add_listing(setup, await _add_user(setup))
            await setup.commit()

        async with SqlAlchemyUnitOfWork(session_factory) as uow:
            await uow.listings.compare_and_set_status(
                listing.id, ListingStatus.ACTIVE, ListingStatus.PENDING
            )
            await uow.commit()

        async with SqlAlchemyUnitOfWork(session_factory) as uow:
            loaded = await uow.listings.get_by_id(listing.id)

        assert loaded is not None and loaded.status == ListingStatus.PENDING


class TestCoordinatorOverSql:
    @pytest.mark.asyncio
    async def test_request_then_accept_and_system_messages(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        async with session_factory() as setup:
            seller_id = await _add_user(setup)
            buyer_id = await _add_user(setup)
            listing = await _add_listing(setup, seller_id)
            await setup.commit()

        coordinator = LifecycleCoordinator(
            partial(SqlAlchemyUnitOfWork, session_factory),
            SystemMessageNotifier(session_factory),
            NoOpEventPublisher(),
        )

        pending = await coordinator.request_to_buy(listing.id, buyer_id)
        with pytest.raises(NotAvailableError):
            await coordinator.request_to_buy(listing.id, buyer_id)
        await coordinator.accept_transaction(pending.id, seller_id)

        async with SqlAlchemyUnitOfWork(session_factory) as uow:
            stored_listing = await uow.listings.get_by_id(listing.id)
            stored_transaction = await uow.transactions.get_by_id(pending.id)
        assert stored_listing is not None and stored_listing.status == ListingStatus.SOLD
        assert stored_transaction is not None
        assert stored_transaction.status == TransactionStatus.COMPLETED

        async with session_factory() as check:
            result = await check.execute(
                select(MessageModel).order_by(MessageModel.created_at)
            )
            messages = result.scalars().all()
        assert [(m.from_user_id, m.to_user_id) for m in messages] == [
            (buyer_id, seller_id),
            (seller_id, buyer_id),
        ]
        assert all(m.is_system for m in messages)
