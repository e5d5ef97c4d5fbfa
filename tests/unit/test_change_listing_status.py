"""Unit tests for the seller-side listing status use case."""
import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest

from marketplace.application.coordinators.lifecycle_coordinator import LifecycleCoordinator
from marketplace.application.use_cases.change_listing_status import (
    ChangeListingStatus,
    ChangeListingStatusInput,
)
from marketplace.domain.entities.listing import Listing
from marketplace.domain.enums.listing_status import ListingStatus
from marketplace.domain.errors import (
    ForbiddenError,
    InvalidStateError,
    NotAvailableError,
    NotFoundError,
)
from marketplace.infrastructure.memory.store import InMemoryListingRepository, InMemoryStore
from marketplace.infrastructure.memory.unit_of_work import InMemoryUnitOfWork
from marketplace.infrastructure.messaging.noop_publisher import NoOpEventPublisher
from marketplace.infrastructure.notifications.logging_notifier import LoggingNotifier


@pytest.fixture()
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture()
def seller_id(store: InMemoryStore) -> UUID:
    return store.add_user(uuid4())


@pytest.fixture()
def repo(store: InMemoryStore) -> InMemoryListingRepository:
    return InMemoryListingRepository(store, [])


@pytest.fixture()
def coordinator(store: InMemoryStore) -> LifecycleCoordinator:
    return LifecycleCoordinator(
        lambda: InMemoryUnitOfWork(store), LoggingNotifier(), NoOpEventPublisher()
    )


def _put(store: InMemoryStore, seller_id: UUID, status: ListingStatus) -> Listing:
    return store.put_listing(
        Listing(seller_id=seller_id, title="Bookshelf", price=Decimal("35.00"), status=status)
    )


def _change(
    listing: Listing, seller_id: UUID, status: ListingStatus
) -> ChangeListingStatusInput:
    return ChangeListingStatusInput(listing_id=listing.id, seller_id=seller_id, status=status)


class TestSellerStatusChanges:
    @pytest.mark.asyncio
    async def test_publishing_a_draft_makes_it_purchasable(
        self,
        store: InMemoryStore,
        seller_id: UUID,
        repo: InMemoryListingRepository,
        coordinator: LifecycleCoordinator,
    ) -> None:
        listing = _put(store, seller_id, ListingStatus.DRAFT)
        buyer_id = store.add_user(uuid4())

        result = await ChangeListingStatus(repo).execute(
            _change(listing, seller_id, ListingStatus.ACTIVE)
        )
        transaction = await coordinator.request_to_buy(listing.id, buyer_id)

        assert result.status == ListingStatus.ACTIVE
        assert transaction.listing_id == listing.id
        assert store.listings[listing.id].status == ListingStatus.PENDING

    @pytest.mark.asyncio
    async def test_disable_and_reactivate(
        self, store: InMemoryStore, seller_id: UUID, repo: InMemoryListingRepository
    ) -> None:
        listing = _put(store, seller_id, ListingStatus.ACTIVE)
        use_case = ChangeListingStatus(repo)

        await use_case.execute(_change(listing, seller_id, ListingStatus.DISABLED))
        assert store.listings[listing.id].status == ListingStatus.DISABLED

        await use_case.execute(_change(listing, seller_id, ListingStatus.ACTIVE))
        assert store.listings[listing.id].status == ListingStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_same_status_is_a_no_op(
        self, store: InMemoryStore, seller_id: UUID, repo: InMemoryListingRepository
    ) -> None:
        listing = _put(store, seller_id, ListingStatus.DRAFT)

        result = await ChangeListingStatus(repo).execute(
            _change(listing, seller_id, ListingStatus.DRAFT)
        )

        assert result.status == ListingStatus.DRAFT

    @pytest.mark.asyncio
    async def test_unknown_listing(self, repo: InMemoryListingRepository) -> None:
        with pytest.raises(NotFoundError):
            await ChangeListingStatus(repo).execute(
                ChangeListingStatusInput(
                    listing_id=uuid4(), seller_id=uuid4(), status=ListingStatus.ACTIVE
                )
            )

    @pytest.mark.asyncio
    async def test_other_user_is_forbidden(
        self, store: InMemoryStore, seller_id: UUID, repo: InMemoryListingRepository
    ) -> None:
        listing = _put(store, seller_id, ListingStatus.DRAFT)

        with pytest.raises(ForbiddenError):
            await ChangeListingStatus(repo).execute(
                _change(listing, uuid4(), ListingStatus.ACTIVE)
            )

        assert store.listings[listing.id].status == ListingStatus.DRAFT

    @pytest.mark.asyncio
    @pytest.mark.parametrize("target", [ListingStatus.PENDING, ListingStatus.SOLD])
    async def test_seller_cannot_set_purchase_flow_statuses(
        self,
        store: InMemoryStore,
        seller_id: UUID,
        repo: InMemoryListingRepository,
        target: ListingStatus,
    ) -> None:
        listing = _put(store, seller_id, ListingStatus.ACTIVE)

        with pytest.raises(InvalidStateError):
            await ChangeListingStatus(repo).execute(_change(listing, seller_id, target))

        assert store.listings[listing.id].status == ListingStatus.ACTIVE

    @pytest.mark.asyncio
    @pytest.mark.parametrize("current", [ListingStatus.PENDING, ListingStatus.SOLD])
    async def test_listing_in_purchase_flow_is_locked(
        self,
        store: InMemoryStore,
        seller_id: UUID,
        repo: InMemoryListingRepository,
        current: ListingStatus,
    ) -> None:
        listing = _put(store, seller_id, current)

        with pytest.raises(InvalidStateError):
            await ChangeListingStatus(repo).execute(
                _change(listing, seller_id, ListingStatus.DISABLED)
            )

        assert store.listings[listing.id].status == current


class TestRacesWithPurchaseRequests:
    @pytest.mark.asyncio
    async def test_edit_based_on_stale_read_loses_to_request(
        self,
        store: InMemoryStore,
        seller_id: UUID,
        repo: InMemoryListingRepository,
        coordinator: LifecycleCoordinator,
    ) -> None:
        listing = _put(store, seller_id, ListingStatus.ACTIVE)
        stale = await repo.get_by_id(listing.id)
        await coordinator.request_to_buy(listing.id, store.add_user(uuid4()))
        repo.get_by_id = AsyncMock(return_value=stale)  # type: ignore[method-assign]

        with pytest.raises(InvalidStateError):
            await ChangeListingStatus(repo).execute(
                _change(listing, seller_id, ListingStatus.DISABLED)
            )

        assert store.listings[listing.id].status == ListingStatus.PENDING
        assert len(store.transactions) == 1

    @pytest.mark.asyncio
    async def test_concurrent_edit_and_request_have_one_winner(
        self,
        store: InMemoryStore,
        seller_id: UUID,
        repo: InMemoryListingRepository,
        coordinator: LifecycleCoordinator,
    ) -> None:
        listing = _put(store, seller_id, ListingStatus.ACTIVE)
        buyer_id = store.add_user(uuid4())

        edit, request = await asyncio.gather(
            ChangeListingStatus(repo).execute(
                _change(listing, seller_id, ListingStatus.DISABLED)
            ),
            coordinator.request_to_buy(listing.id, buyer_id),
            return_exceptions=True,
        )

        final = store.listings[listing.id].status
        if isinstance(edit, BaseException):
            assert isinstance(edit, InvalidStateError)
            assert not isinstance(request, BaseException)
            assert final == ListingStatus.PENDING
            assert len(store.transactions) == 1
        else:
            assert isinstance(request, NotAvailableError)
            assert final == ListingStatus.DISABLED
            assert store.transactions == {}
