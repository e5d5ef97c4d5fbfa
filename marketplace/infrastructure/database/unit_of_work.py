from types import TracebackType

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from marketplace.application.interfaces.unit_of_work import UnitOfWork
from marketplace.infrastructure.database.repositories.listing_repository import (
    SqlAlchemyListingRepository,
)
from marketplace.infrastructure.database.repositories.transaction_repository import (
    SqlAlchemyTransactionRepository,
)
from marketplace.infrastructure.database.repositories.user_repository import (
    SqlAlchemyUserRepository,
)


class SqlAlchemyUnitOfWork(UnitOfWork):
    """One database transaction spanning the listing and transaction stores."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._session: AsyncSession | None = None

    async def __aenter__(self) -> "SqlAlchemyUnitOfWork":
        self._session = self._session_factory()
        self.listings = SqlAlchemyListingRepository(self._session)
        self.transactions = SqlAlchemyTransactionRepository(self._session)
        self.users = SqlAlchemyUserRepository(self._session)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        try:
            await self.rollback()
        finally:
            if self._session is not None:
                await self._session.close()
                self._session = None

    async def commit(self) -> None:
        if self._session is not None:
            await self._session.commit()

    async def rollback(self) -> None:
        if self._session is not None:
            await self._session.rollback()
