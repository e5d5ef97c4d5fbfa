from abc import ABC, abstractmethod
from types import TracebackType

from marketplace.application.interfaces.listing_repository import ListingRepository
from marketplace.application.interfaces.transaction_repository import (
    TransactionRepository,
)
from marketplace.application.interfaces.user_repository import UserRepository


class UnitOfWork(ABC):
    """
    One atomic unit against the listing and transaction stores.

    Usage::

        async with uow:
            ...
            await uow.commit()

    Leaving the block without committing rolls everything back.
    """

    listings: ListingRepository
    transactions: TransactionRepository
    users: UserRepository

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.rollback()

    @abstractmethod
    async def commit(self) -> None:
        ...

    @abstractmethod
    async def rollback(self) -> None:
        ...
