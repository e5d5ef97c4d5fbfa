from marketplace.application.interfaces.unit_of_work import UnitOfWork
from marketplace.infrastructure.memory.store import (
    InMemoryListingRepository,
    InMemoryStore,
    InMemoryTransactionRepository,
    InMemoryUserRepository,
    UndoLog,
)


class InMemoryUnitOfWork(UnitOfWork):
    """Unit of work over an InMemoryStore; uncommitted writes are undone on exit."""

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store
        self._undo: UndoLog = []
        self.committed = False
        self.listings = InMemoryListingRepository(store, self._undo)
        self.transactions = InMemoryTransactionRepository(store, self._undo)
        self.users = InMemoryUserRepository(store)

    async def commit(self) -> None:
        self._undo.clear()
        self.committed = True

    async def rollback(self) -> None:
        async with self._store.lock:
            while self._undo:
                self._undo.pop()()
