from enum import Enum


class ListingStatus(str, Enum):
    """Availability of a listing in the marketplace."""

    ACTIVE = "ACTIVE"
    PENDING = "PENDING"
    SOLD = "SOLD"
    DRAFT = "DRAFT"
    DISABLED = "DISABLED"

    @property
    def is_purchasable(self) -> bool:
        """Only ACTIVE listings accept purchase requests."""
        return self is ListingStatus.ACTIVE
