from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

from marketplace.domain.enums.transaction_status import TransactionStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DomainEvent:
    """Base class for all domain events."""

    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class TransactionRequestedEvent(DomainEvent):
    """Published when a buyer's purchase request opens a transaction."""

    transaction_id: UUID = field(default_factory=uuid4)
    listing_id: UUID = field(default_factory=uuid4)
    buyer_id: UUID = field(default_factory=uuid4)
    seller_id: UUID = field(default_factory=uuid4)
    final_price: Decimal = Decimal("0")


@dataclass(frozen=True)
class TransactionStatusChangedEvent(DomainEvent):
    """Published whenever a transaction moves between statuses."""

    transaction_id: UUID = field(default_factory=uuid4)
    listing_id: UUID = field(default_factory=uuid4)
    from_status: TransactionStatus = TransactionStatus.PENDING
    to_status: TransactionStatus = TransactionStatus.PENDING
    triggered_by: str = ""
