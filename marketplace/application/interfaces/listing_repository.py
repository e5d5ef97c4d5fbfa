from abc import ABC, abstractmethod
from uuid import UUID

from marketplace.domain.entities.listing import Listing
from marketplace.domain.enums.listing_status import ListingStatus


class ListingRepository(ABC):
    """Port for persisting and querying Listing records."""

    @abstractmethod
    async def add(self, listing: Listing) -> None:
        ...

    @abstractmethod
    async def get_by_id(self, listing_id: UUID) -> Listing | None:
        ...

    @abstractmethod
    async def list_all(
        self,
        *,
        seller_id: UUID | None = None,
        status: ListingStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Listing], int]:
        """Return (listings, total_count)."""
        ...

    @abstractmethod
    async def compare_and_set_status(
        self, listing_id: UUID, expected: ListingStatus, new: ListingStatus
    ) -> bool:
        """
        Set the status only if it still equals ``expected``.

        Returns False when no row was changed: either the listing is gone or
        another operation moved it first.
        """
        ...
