from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

from marketplace.domain.enums.listing_status import ListingStatus
from marketplace.domain.errors import InvalidListingError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Listing:
    """
    An item offered for sale by a seller.

    ``status`` is owned by the lifecycle coordinator once a purchase is in
    flight; DRAFT and DISABLED listings sit outside the purchase flow.
    """

    # Identity
    id: UUID = field(default_factory=uuid4)
    seller_id: UUID = field(default_factory=uuid4)

    # Item data
    title: str = ""
    description: str | None = None
    price: Decimal = Decimal("0")

    # State
    status: ListingStatus = ListingStatus.ACTIVE

    # Timestamps
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def create(
        cls,
        *,
        seller_id: UUID,
        title: str,
        price: Decimal,
        description: str | None = None,
        draft: bool = False,
    ) -> "Listing":
        if not title or not title.strip():
            raise InvalidListingError("Listing title is required.")
        if price < 0:
            raise InvalidListingError("Listing price must be non-negative.")
        return cls(
            seller_id=seller_id,
            title=title.strip(),
            description=description,
            price=price,
            status=ListingStatus.DRAFT if draft else ListingStatus.ACTIVE,
        )
