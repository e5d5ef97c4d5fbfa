from uuid import UUID

import structlog
from fastapi import APIRouter, Depends

from marketplace.api.dependencies import get_lifecycle_coordinator
from marketplace.api.schemas.transaction_schemas import (
    SetTransactionStatusRequest,
    TransactionResponse,
)
from marketplace.application.coordinators.lifecycle_coordinator import LifecycleCoordinator

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/transactions/{transaction_id}/status", response_model=TransactionResponse)
async def set_transaction_status(
    transaction_id: UUID,
    body: SetTransactionStatusRequest,
    coordinator: LifecycleCoordinator = Depends(get_lifecycle_coordinator),
) -> TransactionResponse:
    """
    Administrative override of a transaction's status.

    Only moves allowed by the transition table are accepted; the listing
    follows for COMPLETED and CANCELLED.
    """
    if body.reason:
        logger.info(
            "admin_status_override_requested",
            transaction_id=str(transaction_id),
            status=body.status.value,
            reason=body.reason,
        )
    transaction = await coordinator.set_transaction_status(
        transaction_id, body.status, triggered_by="admin_api"
    )
    return TransactionResponse.model_validate(transaction)
