"""Domain error to JSON error-envelope mapping shared by API routers."""

from __future__ import annotations

from fastapi import status
from fastapi.responses import JSONResponse

from brokerbook.domain.errors import (
    ConcurrencyConflictError,
    DuplicateRecordError,
    InvalidInputError,
    InvalidTradeTypeError,
    PersistenceError,
    PositionOrderingError,
    RecordNotFoundError,
    ValidationError,
)


API_HANDLED_ERRORS = (
    ValidationError,
    InvalidTradeTypeError,
    InvalidInputError,
    RecordNotFoundError,
    DuplicateRecordError,
    ConcurrencyConflictError,
    PersistenceError,
)


def api_error_response(error: Exception) -> JSONResponse:
    """Render one domain error as `{"status": "error", "code", "message"}`.

    Args:
        error: Domain error raised by a service or repository.

    Returns:
        JSONResponse: Error envelope with 422, 404, 409 or 503 status.

    Raises:
        TypeError: Raised when the error is not a handled domain error.
    """

    payload: dict[str, object] = {"status": "error", "message": str(error)}

    if isinstance(error, PositionOrderingError):
        payload["code"] = "POSITION_ORDERING"
        status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif isinstance(error, ValidationError):
        payload["code"] = "VALIDATION_ERROR"
        if error.row_indices:
            payload["row_indices"] = list(error.row_indices)
            payload["row_errors"] = {str(index): reasons for index, reasons in sorted(error.row_errors.items())}
        status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif isinstance(error, InvalidTradeTypeError):
        payload["code"] = "INVALID_TRADE_TYPE"
        status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif isinstance(error, InvalidInputError):
        payload["code"] = "INVALID_INPUT"
        status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif isinstance(error, RecordNotFoundError):
        payload["code"] = "NOT_FOUND"
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, DuplicateRecordError):
        payload["code"] = "DUPLICATE_RECORD"
        status_code = status.HTTP_409_CONFLICT
    elif isinstance(error, ConcurrencyConflictError):
        payload["code"] = "CONCURRENCY_CONFLICT"
        status_code = status.HTTP_409_CONFLICT
    elif isinstance(error, PersistenceError):
        payload["code"] = "PERSISTENCE_ERROR"
        payload["message"] = "storage is unavailable"
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        raise TypeError(f"unhandled error type {type(error).__name__}")

    return JSONResponse(content=payload, status_code=status_code)


def api_not_found_response(message: str) -> JSONResponse:
    """Render a 404 envelope for a missing path resource."""

    return JSONResponse(
        content={"status": "error", "code": "NOT_FOUND", "message": message},
        status_code=status.HTTP_404_NOT_FOUND,
    )


__all__ = ["API_HANDLED_ERRORS", "api_error_response", "api_not_found_response"]
