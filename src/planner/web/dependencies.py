"""Shared request dependencies and error mapping for route handlers."""

from fastapi import HTTPException, Request, status

from planner.core.coverage_service import CoverageService
from planner.core.errors import (
    CorruptDataError,
    CoverageError,
    InvalidCoverageDataError,
    InvalidIdentityError,
    NotFoundError,
    SerializationError,
    UnknownClassError,
)


def get_coverage_service(request: Request) -> CoverageService:
    """Service instance created by the app factory."""
    return request.app.state.coverage_service


def to_http_error(error: CoverageError) -> HTTPException:
    """Map a domain error to an HTTP error with a useful detail."""
    if isinstance(error, (InvalidIdentityError, UnknownClassError, InvalidCoverageDataError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, (CorruptDataError, SerializationError)):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error)
        )
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))
