from abc import ABC, abstractmethod
from uuid import UUID

from marketplace.domain.entities.transaction import Transaction
from marketplace.domain.enums.transaction_status import TransactionStatus


class TransactionRepository(ABC):
    """Port for persisting and querying Transaction records."""

    @abstractmethod
    async def add(self, transaction: Transaction) -> None:
        """
        Persist a new transaction.

        Raises DuplicateTransactionError if the listing already holds an
        active transaction.
        """
        ...

    @abstractmethod
    async def get_by_id(self, transaction_id: UUID) -> Transaction | None:
        ...

    @abstractmethod
    async def find_by_listing(self, listing_id: UUID) -> list[Transaction]:
        """All transactions ever opened for a listing, newest first."""
        ...

    @abstractmethod
    async def find_active_by_listing(self, listing_id: UUID) -> Transaction | None:
        ...

    @abstractmethod
    async def list_all(
        self,
        *,
        buyer_id: UUID | None = None,
        seller_id: UUID | None = None,
        status: TransactionStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Transaction], int]:
        """Return (transactions, total_count), newest first."""
        ...

    @abstractmethod
    async def compare_and_set_status(
        self, transaction_id: UUID, expected: TransactionStatus, new: TransactionStatus
    ) -> bool:
        ...
