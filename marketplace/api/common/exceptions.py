import logging
from typing import Any

from fastapi import HTTPException, status

from marketplace.services.exceptions import (
    BusinessRuleError,
    ConflictError,
    ContractNotFoundError,
    ContractValidationError,
    ConversationNotFoundError,
    DatabaseError,
    InvalidInputError,
    MissionNotFoundError,
    NotAuthorizedError,
    ServiceError,
    UserNotFoundError,
)

logger = logging.getLogger(__name__)


class APIException(HTTPException):
    """Base class for API specific exceptions."""

    def __init__(
        self, status_code: int, detail: Any = None, headers: dict | None = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class NotFoundError(APIException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class BadRequestError(APIException):
    def __init__(self, detail: Any = "Bad request"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class ForbiddenError(APIException):
    def __init__(self, detail: str = "Forbidden"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class InternalServerError(APIException):
    def __init__(self, detail: str = "Internal server error"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail
        )


def to_http_exception(e: ServiceError) -> APIException:
    """Maps a ServiceError subclass to the APIException the client should see."""
    message = getattr(e, "message", str(e))

    if isinstance(
        e,
        (
            ConversationNotFoundError,
            UserNotFoundError,
            MissionNotFoundError,
            ContractNotFoundError,
        ),
    ):
        return NotFoundError(detail=message)
    if isinstance(e, NotAuthorizedError):
        return ForbiddenError(detail=message)
    if isinstance(e, ContractValidationError):
        return BadRequestError(
            detail={
                "message": message,
                "missing_fields": e.missing_fields,
                "field_errors": e.field_errors,
            }
        )
    if isinstance(e, (BusinessRuleError, InvalidInputError)):
        return BadRequestError(detail=message)
    if isinstance(e, ConflictError):
        return APIException(status_code=status.HTTP_409_CONFLICT, detail=message)
    if isinstance(e, DatabaseError):
        return InternalServerError(detail="A database error occurred.")
    return APIException(
        status_code=getattr(e, "status_code", status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail=message or "A service error occurred.",
    )


def handle_service_error(e: ServiceError):
    """
    Raises the HTTP counterpart of a service layer error.
    Called by the @handle_route_errors decorator.
    """
    logger.warning(
        f"Handling service error: {e.__class__.__name__} - {getattr(e, 'message', str(e))}"
    )
    if isinstance(e, DatabaseError):
        logger.error(f"Database error: {e}", exc_info=True)
    raise to_http_exception(e) from e
