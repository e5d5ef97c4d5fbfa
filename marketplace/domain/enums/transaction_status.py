from enum import Enum


class TransactionStatus(str, Enum):
    """All possible states of a purchase attempt."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"

    @property
    def is_active(self) -> bool:
        """A PENDING transaction holds its listing."""
        return self is TransactionStatus.PENDING

    @property
    def is_terminal(self) -> bool:
        """Terminal states cannot be transitioned out of."""
        return self in (TransactionStatus.CANCELLED, TransactionStatus.REFUNDED)
