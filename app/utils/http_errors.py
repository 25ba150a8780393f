"""
Translation of service-layer exceptions into HTTP errors.

Executor failures are logged where they happen; only generic messages reach
the client.
"""

from fastapi import HTTPException, status

from app.errors import (
    DatabaseUnavailableError,
    ParameterValidationError,
    QueryExecutionError,
    ResourceNotFoundError,
)
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

DATABASE_UNAVAILABLE_DETAIL = "Database connection failed"


def to_http_exception(exc: Exception, failure_detail: str) -> HTTPException:
    """Map a known exception to an HTTPException; failure_detail is the 500 message."""
    if isinstance(exc, ParameterValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)

    if isinstance(exc, ResourceNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))

    if isinstance(exc, DatabaseUnavailableError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=DATABASE_UNAVAILABLE_DETAIL
        )

    if isinstance(exc, QueryExecutionError):
        logger.error(failure_detail, operation=exc.operation, error_type=type(exc).__name__)
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=failure_detail
        )

    logger.error(failure_detail, error=str(exc), error_type=type(exc).__name__)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=failure_detail)


def database_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=DATABASE_UNAVAILABLE_DETAIL
    )
