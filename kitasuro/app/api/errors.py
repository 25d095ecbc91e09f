"""Translate domain errors into HTTP responses."""

from typing import Any

from fastapi import HTTPException, status

from kitasuro.app.errors import (
    CommentClosedError,
    DomainError,
    FeatureNotAvailableError,
    FormValidationError,
    InvalidTransitionError,
    NotFoundError,
    UnauthorizedError,
    VersionConflictError,
)

_STATUS_BY_ERROR: list[tuple[type[DomainError], int]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (UnauthorizedError, status.HTTP_403_FORBIDDEN),
    (FeatureNotAvailableError, status.HTTP_403_FORBIDDEN),
    (CommentClosedError, status.HTTP_409_CONFLICT),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (VersionConflictError, status.HTTP_409_CONFLICT),
    (FormValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
]


def to_http_exception(error: DomainError | ValueError) -> HTTPException:
    """Map an expected service failure to the HTTPException a route raises."""
    if isinstance(error, FormValidationError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": str(error), "field_errors": error.field_errors},
        )

    if isinstance(error, VersionConflictError):
        detail: Any = {
            "message": str(error),
            "expected_version": error.expected,
            "current_version": error.actual,
        }
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)

    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))

    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
