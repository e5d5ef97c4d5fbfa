"""
Error taxonomy for the listing/transaction lifecycle.

Every error carries a stable ``code`` so the API layer can map each kind to a
distinct caller-visible failure.
"""
from uuid import UUID


class MarketplaceError(Exception):
    """Base class for all lifecycle errors."""

    code = "MARKETPLACE_ERROR"


class NotFoundError(MarketplaceError):
    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: UUID) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity.capitalize()} {entity_id} not found.")


class SelfPurchaseError(MarketplaceError):
    code = "SELF_PURCHASE"

    def __init__(self, listing_id: UUID) -> None:
        self.listing_id = listing_id
        super().__init__(f"Cannot request to buy your own listing {listing_id}.")


class NotAvailableError(MarketplaceError):
    code = "NOT_AVAILABLE"

    def __init__(self, listing_id: UUID, status: str | None = None) -> None:
        self.listing_id = listing_id
        self.status = status
        detail = f" (status {status})" if status else ""
        super().__init__(f"Listing {listing_id} is not available for purchase{detail}.")


class DuplicateTransactionError(MarketplaceError):
    code = "DUPLICATE_TRANSACTION"

    def __init__(self, listing_id: UUID) -> None:
        self.listing_id = listing_id
        super().__init__(f"Listing {listing_id} already has a transaction.")


class ForbiddenError(MarketplaceError):
    code = "FORBIDDEN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class InvalidStateError(MarketplaceError):
    code = "INVALID_STATE"


class InvalidListingError(MarketplaceError, ValueError):
    """Listing data rejected by the domain, e.g. a blank title or negative price."""

    code = "INVALID_LISTING"
