from enum import Enum

from marketplace.domain.enums.listing_status import ListingStatus
from marketplace.domain.enums.transaction_status import TransactionStatus
from marketplace.domain.errors import InvalidStateError


# Mapping of valid transitions: from_status -> set of allowed to_statuses
VALID_TRANSITIONS: dict[TransactionStatus, frozenset[TransactionStatus]] = {
    TransactionStatus.PENDING: frozenset(
        {TransactionStatus.COMPLETED, TransactionStatus.CANCELLED}
    ),
    # Refunds are administrative only
    TransactionStatus.COMPLETED: frozenset({TransactionStatus.REFUNDED}),
    # Terminal states
    TransactionStatus.CANCELLED: frozenset(),
    TransactionStatus.REFUNDED: frozenset(),
}

# Listing moves the coordinator is allowed to make
LISTING_TRANSITIONS: dict[ListingStatus, frozenset[ListingStatus]] = {
    ListingStatus.ACTIVE: frozenset({ListingStatus.PENDING}),
    ListingStatus.PENDING: frozenset({ListingStatus.SOLD, ListingStatus.ACTIVE}),
    ListingStatus.SOLD: frozenset(),
    ListingStatus.DRAFT: frozenset(),
    ListingStatus.DISABLED: frozenset(),
}

# Moves a seller may make on their own listing. PENDING and SOLD belong to the
# lifecycle coordinator and are neither a source nor a target here.
SELLER_LISTING_TRANSITIONS: dict[ListingStatus, frozenset[ListingStatus]] = {
    ListingStatus.DRAFT: frozenset({ListingStatus.ACTIVE, ListingStatus.DISABLED}),
    ListingStatus.ACTIVE: frozenset({ListingStatus.DRAFT, ListingStatus.DISABLED}),
    ListingStatus.DISABLED: frozenset({ListingStatus.ACTIVE, ListingStatus.DRAFT}),
}

# Listing status implied by a transaction reaching a given status.
# PENDING and REFUNDED have no listing projection.
LISTING_PROJECTION: dict[TransactionStatus, ListingStatus] = {
    TransactionStatus.COMPLETED: ListingStatus.SOLD,
    TransactionStatus.CANCELLED: ListingStatus.ACTIVE,
}


class InvalidStateTransitionError(InvalidStateError):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: Enum, to_status: Enum, allowed: frozenset) -> None:  # type: ignore[type-arg]
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Invalid transition from {from_status.value} to {to_status.value}. "
            f"Allowed transitions: {sorted(s.value for s in allowed)}"
        )


class TransactionStateMachine:
    """
    Validates transaction and listing status changes against the closed
    transition tables.

    Stateless; call with explicit statuses.
    """

    def can_transition(self, from_status: TransactionStatus, to_status: TransactionStatus) -> bool:
        """Return True if transitioning from_status → to_status is permitted."""
        if from_status.is_terminal:
            return False
        return to_status in VALID_TRANSITIONS.get(from_status, frozenset())

    def validate_transition(
        self, from_status: TransactionStatus, to_status: TransactionStatus
    ) -> None:
        """Raise InvalidStateTransitionError if the transition is not permitted."""
        if not self.can_transition(from_status, to_status):
            raise InvalidStateTransitionError(
                from_status, to_status, self.get_allowed_transitions(from_status)
            )

    def get_allowed_transitions(
        self, from_status: TransactionStatus
    ) -> frozenset[TransactionStatus]:
        """Return the set of statuses reachable from from_status."""
        return VALID_TRANSITIONS.get(from_status, frozenset())

    def can_move_listing(self, from_status: ListingStatus, to_status: ListingStatus) -> bool:
        return to_status in LISTING_TRANSITIONS.get(from_status, frozenset())

    def validate_listing_move(self, from_status: ListingStatus, to_status: ListingStatus) -> None:
        if not self.can_move_listing(from_status, to_status):
            raise InvalidStateTransitionError(
                from_status, to_status, LISTING_TRANSITIONS.get(from_status, frozenset())
            )

    def listing_status_for(self, status: TransactionStatus) -> ListingStatus | None:
        """Return the listing status implied by a transaction status, if any."""
        return LISTING_PROJECTION.get(status)

    def can_seller_move_listing(
        self, from_status: ListingStatus, to_status: ListingStatus
    ) -> bool:
        return to_status in SELLER_LISTING_TRANSITIONS.get(from_status, frozenset())

    def validate_seller_listing_move(
        self, from_status: ListingStatus, to_status: ListingStatus
    ) -> None:
        if not self.can_seller_move_listing(from_status, to_status):
            raise InvalidStateTransitionError(
                from_status,
                to_status,
                SELLER_LISTING_TRANSITIONS.get(from_status, frozenset()),
            )
