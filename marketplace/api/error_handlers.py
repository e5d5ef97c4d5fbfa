"""Translate lifecycle errors into HTTP responses, one status per error kind."""
import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from marketplace.api.schemas.errors import ErrorDetail, ErrorResponse
from marketplace.domain.errors import (
    DuplicateTransactionError,
    ForbiddenError,
    InvalidListingError,
    InvalidStateError,
    MarketplaceError,
    NotAvailableError,
    NotFoundError,
    SelfPurchaseError,
)

logger = structlog.get_logger(__name__)

STATUS_BY_ERROR: dict[type[MarketplaceError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    SelfPurchaseError: status.HTTP_400_BAD_REQUEST,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    NotAvailableError: status.HTTP_409_CONFLICT,
    DuplicateTransactionError: status.HTTP_409_CONFLICT,
    InvalidStateError: status.HTTP_422_UNPROCESSABLE_CONTENT,
    InvalidListingError: status.HTTP_422_UNPROCESSABLE_CONTENT,
}


def status_for(exc: MarketplaceError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[error_type]
    return status.HTTP_400_BAD_REQUEST


async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    status_code = status_for(exc)
    logger.info(
        "request_rejected",
        path=request.url.path,
        code=exc.code,
        status_code=status_code,
        reason=str(exc),
    )
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            detail=ErrorDetail(code=exc.code, message=str(exc))
        ).model_dump(),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)  # type: ignore[arg-type]
