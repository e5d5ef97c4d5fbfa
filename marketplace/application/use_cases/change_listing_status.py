from dataclasses import dataclass
from uuid import UUID

import structlog

from marketplace.application.interfaces.listing_repository import ListingRepository
from marketplace.domain.entities.listing import Listing
from marketplace.domain.enums.listing_status import ListingStatus
from marketplace.domain.errors import ForbiddenError, InvalidStateError, NotFoundError
from marketplace.domain.state_machine.transaction_state_machine import (
    TransactionStateMachine,
)

logger = structlog.get_logger(__name__)

_COORDINATOR_OWNED = (ListingStatus.PENDING, ListingStatus.SOLD)


@dataclass
class ChangeListingStatusInput:
    listing_id: UUID
    seller_id: UUID
    status: ListingStatus


class ChangeListingStatus:
    """
    Use case: a seller publishes, unpublishes or disables their own listing.

    Only DRAFT, ACTIVE and DISABLED are in the seller's hands. Once a purchase
    request has moved the listing to PENDING (or SOLD) the lifecycle
    coordinator owns its status and this use case refuses to touch it.
    """

    def __init__(self, listing_repo: ListingRepository) -> None:
        self._listing_repo = listing_repo
        self._state_machine = TransactionStateMachine()

    async def execute(self, input_data: ChangeListingStatusInput) -> Listing:
        listing = await self._listing_repo.get_by_id(input_data.listing_id)
        if listing is None:
            raise NotFoundError("listing", input_data.listing_id)
        if listing.seller_id != input_data.seller_id:
            raise ForbiddenError(
                f"Only the seller of listing {listing.id} can change its status."
            )
        if listing.status in _COORDINATOR_OWNED:
            raise InvalidStateError(
                f"Listing {listing.id} is {listing.status.value}; "
                "its status is managed by the purchase flow."
            )
        if listing.status == input_data.status:
            return listing

        self._state_machine.validate_seller_listing_move(listing.status, input_data.status)

        # A concurrent purchase request may have claimed the listing since we read it
        swapped = await self._listing_repo.compare_and_set_status(
            listing.id, listing.status, input_data.status
        )
        if not swapped:
            logger.info("listing_status_change_lost_race", listing_id=str(listing.id))
            raise InvalidStateError(
                f"Listing {listing.id} is no longer {listing.status.value}."
            )

        from_status = listing.status
        listing.status = input_data.status
        logger.info(
            "listing_status_changed",
            listing_id=str(listing.id),
            from_status=from_status.value,
            to_status=listing.status.value,
        )
        return listing
