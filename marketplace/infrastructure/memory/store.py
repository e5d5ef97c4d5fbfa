"""
In-memory listing/transaction stores.

Backs the coordinator and API tests in place of the database. Every
operation yields to the event loop once, the way a real driver would, so that
concurrent coordinator calls interleave. Compare-and-set and inserts are
applied immediately under a lock and recorded in the caller's undo log; a
unit of work that does not commit replays that log backwards.
"""
import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from uuid import UUID

from marketplace.application.interfaces.listing_repository import ListingRepository
from marketplace.application.interfaces.transaction_repository import (
    TransactionRepository,
)
from marketplace.application.interfaces.user_repository import UserRepository
from marketplace.domain.entities.listing import Listing
from marketplace.domain.entities.transaction import Transaction
from marketplace.domain.enums.listing_status import ListingStatus
from marketplace.domain.enums.transaction_status import TransactionStatus
from marketplace.domain.errors import DuplicateTransactionError

UndoLog = list[Callable[[], None]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _copy_transaction(transaction: Transaction) -> Transaction:
    return replace(transaction, _events=[])


@dataclass
class InMemoryStore:
    """Shared state standing in for the database."""

    users: set[UUID] = field(default_factory=set)
    listings: dict[UUID, Listing] = field(default_factory=dict)
    transactions: dict[UUID, Transaction] = field(default_factory=dict)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def add_user(self, user_id: UUID) -> UUID:
        self.users.add(user_id)
        return user_id

    def put_listing(self, listing: Listing) -> Listing:
        self.listings[listing.id] = replace(listing)
        return listing


async def _io() -> None:
    await asyncio.sleep(0)


class InMemoryUserRepository(UserRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def exists(self, user_id: UUID) -> bool:
        await _io()
        return user_id in self._store.users


class InMemoryListingRepository(ListingRepository):
    def __init__(self, store: InMemoryStore, undo: UndoLog) -> None:
        self._store = store
        self._undo = undo

    async def add(self, listing: Listing) -> None:
        await _io()
        async with self._store.lock:
            self._store.listings[listing.id] = replace(listing)
            self._undo.append(lambda: self._store.listings.pop(listing.id, None))

    async def get_by_id(self, listing_id: UUID) -> Listing | None:
        await _io()
        listing = self._store.listings.get(listing_id)
        return replace(listing) if listing is not None else None

    async def list_all(
        self,
        *,
        seller_id: UUID | None = None,
        status: ListingStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Listing], int]:
        await _io()
        matches = [
            l
            for l in self._store.listings.values()
            if (seller_id is None or l.seller_id == seller_id)
            and (status is None or l.status == status)
        ]
        matches.sort(key=lambda l: l.created_at, reverse=True)
        return [replace(l) for l in matches[offset : offset + limit]], len(matches)

    async def compare_and_set_status(
        self, listing_id: UUID, expected: ListingStatus, new: ListingStatus
    ) -> bool:
        await _io()
        async with self._store.lock:
            listing = self._store.listings.get(listing_id)
            if listing is None or listing.status != expected:
                return False
            previous = (listing.status, listing.updated_at)
            listing.status = new
            listing.updated_at = _utcnow()

            def _undo() -> None:
                listing.status, listing.updated_at = previous

            self._undo.append(_undo)
            return True


class InMemoryTransactionRepository(TransactionRepository):
    def __init__(self, store: InMemoryStore, undo: UndoLog) -> None:
        self._store = store
        self._undo = undo

    async def add(self, transaction: Transaction) -> None:
        await _io()
        async with self._store.lock:
            if transaction.status.is_active and any(
                t.listing_id == transaction.listing_id and t.status.is_active
                for t in self._store.transactions.values()
            ):
                raise DuplicateTransactionError(transaction.listing_id)
            self._store.transactions[transaction.id] = _copy_transaction(transaction)
            self._undo.append(lambda: self._store.transactions.pop(transaction.id, None))

    async def get_by_id(self, transaction_id: UUID) -> Transaction | None:
        await _io()
        transaction = self._store.transactions.get(transaction_id)
        return _copy_transaction(transaction) if transaction is not None else None

    async def find_by_listing(self, listing_id: UUID) -> list[Transaction]:
        await _io()
        matches = [t for t in self._store.transactions.values() if t.listing_id == listing_id]
        matches.sort(key=lambda t: t.created_at, reverse=True)
        return [_copy_transaction(t) for t in matches]

    async def find_active_by_listing(self, listing_id: UUID) -> Transaction | None:
        for transaction in await self.find_by_listing(listing_id):
            if transaction.status.is_active:
                return transaction
        return None

    async def list_all(
        self,
        *,
        buyer_id: UUID | None = None,
        seller_id: UUID | None = None,
        status: TransactionStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Transaction], int]:
        await _io()
        matches = [
            t
            for t in self._store.transactions.values()
            if (buyer_id is None or t.buyer_id == buyer_id)
            and (seller_id is None or t.seller_id == seller_id)
            and (status is None or t.status == status)
        ]
        matches.sort(key=lambda t: t.created_at, reverse=True)
        return [_copy_transaction(t) for t in matches[offset : offset + limit]], len(matches)

    async def compare_and_set_status(
        self, transaction_id: UUID, expected: TransactionStatus, new: TransactionStatus
    ) -> bool:
        await _io()
        async with self._store.lock:
            transaction = self._store.transactions.get(transaction_id)
            if transaction is None or transaction.status != expected:
                return False
            previous = (transaction.status, transaction.updated_at)
            transaction.status = new
            transaction.updated_at = _utcnow()

            def _undo() -> None:
                transaction.status, transaction.updated_at = previous

            self._undo.append(_undo)
            return True
