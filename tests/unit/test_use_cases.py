"""Unit tests for application use cases with mocked dependencies."""
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from marketplace.application.use_cases.create_listing import CreateListing, CreateListingInput
from marketplace.application.use_cases.get_listing_transactions import (
    GetListingTransactions,
)
from marketplace.domain.entities.listing import Listing
from marketplace.domain.entities.transaction import Transaction
from marketplace.domain.enums.listing_status import ListingStatus
from marketplace.domain.errors import NotFoundError


def _make_listing_repo(listing: Listing | None = None) -> MagicMock:
    repo = MagicMock()
    repo.add = AsyncMock()
    repo.get_by_id = AsyncMock(return_value=listing)
    return repo


def _make_user_repo(exists: bool = True) -> MagicMock:
    repo = MagicMock()
    repo.exists = AsyncMock(return_value=exists)
    return repo


def _make_transaction_repo(transactions: list[Transaction] | None = None) -> MagicMock:
    repo = MagicMock()
    repo.find_by_listing = AsyncMock(return_value=transactions or [])
    return repo


def _make_listing() -> Listing:
    return Listing.create(seller_id=uuid4(), title="Graphing calculator", price=Decimal("40"))


class TestCreateListing:
    @pytest.mark.asyncio
    async def test_creates_active_listing(self) -> None:
        listing_repo = _make_listing_repo()
        use_case = CreateListing(listing_repo, _make_user_repo())
        seller_id = uuid4()

        listing = await use_case.execute(
            CreateListingInput(seller_id=seller_id, title="Desk", price=Decimal("30.00"))
        )

        assert listing.status == ListingStatus.ACTIVE
        assert listing.seller_id == seller_id
        listing_repo.add.assert_awaited_once_with(listing)

    @pytest.mark.asyncio
    async def test_creates_draft(self) -> None:
        use_case = CreateListing(_make_listing_repo(), _make_user_repo())

        listing = await use_case.execute(
            CreateListingInput(
                seller_id=uuid4(), title="Desk", price=Decimal("30.00"), draft=True
            )
        )

        assert listing.status == ListingStatus.DRAFT

    @pytest.mark.asyncio
    async def test_unknown_seller(self) -> None:
        listing_repo = _make_listing_repo()
        use_case = CreateListing(listing_repo, _make_user_repo(exists=False))

        with pytest.raises(NotFoundError):
            await use_case.execute(
                CreateListingInput(seller_id=uuid4(), title="Desk", price=Decimal("30.00"))
            )
        listing_repo.add.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_price_is_not_saved(self) -> None:
        listing_repo = _make_listing_repo()
        use_case = CreateListing(listing_repo, _make_user_repo())

        with pytest.raises(ValueError):
            await use_case.execute(
                CreateListingInput(seller_id=uuid4(), title="Desk", price=Decimal("-5"))
            )
        listing_repo.add.assert_not_awaited()


class TestGetListingTransactions:
    @pytest.mark.asyncio
    async def test_returns_listing_and_transactions(self) -> None:
        listing = _make_listing()
        transactions = [Transaction.open(listing, uuid4())]
        transaction_repo = _make_transaction_repo(transactions)
        use_case = GetListingTransactions(_make_listing_repo(listing), transaction_repo)

        result = await use_case.execute(listing.id)

        assert result.listing is listing
        assert result.transactions == transactions
        transaction_repo.find_by_listing.assert_awaited_once_with(listing.id)

    @pytest.mark.asyncio
    async def test_raises_listing_not_found(self) -> None:
        use_case = GetListingTransactions(_make_listing_repo(None), _make_transaction_repo())

        with pytest.raises(NotFoundError):
            await use_case.execute(uuid4())
