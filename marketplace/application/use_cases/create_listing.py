from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

import structlog

from marketplace.application.interfaces.listing_repository import ListingRepository
from marketplace.application.interfaces.user_repository import UserRepository
from marketplace.domain.entities.listing import Listing
from marketplace.domain.errors import NotFoundError

logger = structlog.get_logger(__name__)


@dataclass
class CreateListingInput:
    seller_id: UUID
    title: str
    price: Decimal
    description: str | None = None
    draft: bool = False


class CreateListing:
    """Use case: a seller puts an item up for sale, ACTIVE or as a DRAFT."""

    def __init__(self, listing_repo: ListingRepository, user_repo: UserRepository) -> None:
        self._listing_repo = listing_repo
        self._user_repo = user_repo

    async def execute(self, input_data: CreateListingInput) -> Listing:
        if not await self._user_repo.exists(input_data.seller_id):
            raise NotFoundError("user", input_data.seller_id)

        listing = Listing.create(
            seller_id=input_data.seller_id,
            title=input_data.title,
            price=input_data.price,
            description=input_data.description,
            draft=input_data.draft,
        )
        await self._listing_repo.add(listing)

        logger.info(
            "listing_created",
            listing_id=str(listing.id),
            seller_id=str(listing.seller_id),
            status=listing.status.value,
        )
        return listing
