from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

from marketplace.domain.entities.listing import Listing
from marketplace.domain.enums.transaction_status import TransactionStatus
from marketplace.domain.events.domain_events import (
    DomainEvent,
    TransactionRequestedEvent,
    TransactionStatusChangedEvent,
)
from marketplace.domain.state_machine.transaction_state_machine import (
    TransactionStateMachine,
)

_state_machine = TransactionStateMachine()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Transaction:
    """
    A single purchase attempt linking one buyer to one listing at the price
    the listing carried when the request was made.

    Emits domain events on creation and status changes; callers are
    responsible for collecting and publishing them.
    """

    # Identity
    id: UUID = field(default_factory=uuid4)
    listing_id: UUID = field(default_factory=uuid4)
    buyer_id: UUID = field(default_factory=uuid4)
    seller_id: UUID = field(default_factory=uuid4)

    final_price: Decimal = Decimal("0")
    status: TransactionStatus = TransactionStatus.PENDING

    # Timestamps
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    # Pending domain events (collected and cleared by the application layer)
    _events: list[DomainEvent] = field(default_factory=list, repr=False, compare=False)

    # -------------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------------

    @classmethod
    def open(cls, listing: Listing, buyer_id: UUID) -> "Transaction":
        """Open a PENDING transaction snapshotting the listing's current price."""
        if listing.price < 0:
            raise ValueError("Final price must be non-negative.")
        transaction = cls(
            listing_id=listing.id,
            buyer_id=buyer_id,
            seller_id=listing.seller_id,
            final_price=listing.price,
        )
        transaction._events.append(
            TransactionRequestedEvent(
                transaction_id=transaction.id,
                listing_id=listing.id,
                buyer_id=buyer_id,
                seller_id=listing.seller_id,
                final_price=listing.price,
            )
        )
        return transaction

    # -------------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------------

    def transition_to(self, new_status: TransactionStatus, triggered_by: str) -> None:
        """Validate and apply a status transition, recording the domain event."""
        _state_machine.validate_transition(self.status, new_status)

        old_status = self.status
        self.status = new_status
        self.updated_at = _utcnow()

        self._events.append(
            TransactionStatusChangedEvent(
                transaction_id=self.id,
                listing_id=self.listing_id,
                from_status=old_status,
                to_status=new_status,
                triggered_by=triggered_by,
            )
        )

    # -------------------------------------------------------------------------
    # Event collection
    # -------------------------------------------------------------------------

    def collect_events(self) -> list[DomainEvent]:
        """Return pending events and clear the internal buffer."""
        events = list(self._events)
        self._events.clear()
        return events
