from http import HTTPStatus
from typing import Any, Dict, Optional, Union

from ojclient.config import logger


GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again."


# Custom exceptions
class AppException(Exception):
    """Base exception for client-side errors."""

    def __init__(self, status_code: int, detail: Union[str, Dict[str, Any]]):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


class PreconditionException(AppException):
    """Raised before any network call when an operation cannot start."""

    def __init__(self, detail: str = "Precondition failed"):
        super().__init__(status_code=HTTPStatus.BAD_REQUEST, detail=detail)


class AuthenticationException(AppException):
    """Exception for authentication-related errors."""

    def __init__(self, detail: str = "Authentication failed"):
        super().__init__(status_code=HTTPStatus.UNAUTHORIZED, detail=detail)


class ResourceNotFoundException(AppException):
    """Exception for resource not found errors."""

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=HTTPStatus.NOT_FOUND, detail=detail)


class ValidationException(AppException):
    """Exception for responses that could not be parsed."""

    def __init__(self, detail: Union[str, Dict[str, Any]] = "Validation error"):
        super().__init__(status_code=HTTPStatus.UNPROCESSABLE_ENTITY, detail=detail)


class TransportException(AppException):
    """The execution or persistence service is unreachable or refused the call."""

    def __init__(
        self,
        detail: str = "Service unavailable",
        upstream_status: Optional[int] = None,
    ):
        super().__init__(status_code=HTTPStatus.BAD_GATEWAY, detail=detail)
        self.upstream_status = upstream_status


def format_error_message(exc: Exception, fallback: str = GENERIC_ERROR_MESSAGE) -> str:
    """
    Turn an exception into a message that can be shown to the user as is.

    Args:
        exc: The exception raised by a client operation
        fallback: Message used when the exception carries nothing displayable

    Returns:
        A user-visible error string
    """
    if isinstance(exc, AppException):
        if isinstance(exc.detail, str) and exc.detail:
            return exc.detail
        logger.error(f"Application error without displayable detail: {exc.detail}")
        return fallback

    logger.error(f"Unexpected error: {str(exc)}", exc_info=exc)
    return fallback
