from abc import ABC, abstractmethod
from uuid import UUID


class Notifier(ABC):
    """
    Port for sending a one-way system message to a user on lifecycle events.

    Delivery is best-effort: callers log and discard failures.
    """

    @abstractmethod
    async def notify(
        self, listing_id: UUID, from_user_id: UUID, to_user_id: UUID, text: str
    ) -> None:
        ...
