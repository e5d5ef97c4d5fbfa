from abc import ABC, abstractmethod
from uuid import UUID


class UserRepository(ABC):
    """Read-only port onto the user directory, which is managed elsewhere."""

    @abstractmethod
    async def exists(self, user_id: UUID) -> bool:
        ...
