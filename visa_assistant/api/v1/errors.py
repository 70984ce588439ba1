"""Translation of service exceptions into HTTP problem responses."""

from typing import Optional

from fastapi import HTTPException, Request, status

from visa_assistant.core.exceptions import (
    APIClientError,
    AppError,
    ConfigurationError,
    NotFoundError,
    TemplateValidationError,
    UnauthenticatedError,
    UnauthorizedError,
    ValidationError,
)
from visa_assistant.utils.logging import get_logger
from visa_assistant.utils.responses import create_error_detail

LOGGER = get_logger(__name__)

UPSTREAM_FAILURE_MESSAGE = "An external service failed to process the request. Please try again later."


def http_error(error: AppError, request: Optional[Request] = None) -> HTTPException:
    """Map an ``AppError`` to an ``HTTPException`` carrying an RFC 7807 body.

    Owner details are never exposed for 403s, and upstream failures are
    reduced to a generic message after being logged in full.
    """
    extra = {}
    if isinstance(error, UnauthenticatedError):
        code, title, detail = status.HTTP_401_UNAUTHORIZED, "Not Authenticated", "Not authenticated"
    elif isinstance(error, UnauthorizedError):
        code, title, detail = status.HTTP_403_FORBIDDEN, "Unauthorized", "Unauthorized"
    elif isinstance(error, NotFoundError):
        code, title, detail = status.HTTP_404_NOT_FOUND, f"{error.resource} Not Found", f"{error.resource} not found"
    elif isinstance(error, TemplateValidationError):
        code, title, detail = status.HTTP_422_UNPROCESSABLE_ENTITY, "Letter Validation Failed", error.message
        extra = {"errors": error.errors, "warnings": error.warnings}
    elif isinstance(error, ValidationError):
        code, title, detail = status.HTTP_400_BAD_REQUEST, "Invalid Request", error.message
    elif isinstance(error, APIClientError):
        LOGGER.error(
            f"Upstream failure: {error.message}",
            extra={
                "service": getattr(error, "service", None),
                "upstream_message": getattr(error, "upstream_message", None),
            },
        )
        code, title, detail = status.HTTP_502_BAD_GATEWAY, "Upstream Service Error", UPSTREAM_FAILURE_MESSAGE
    elif isinstance(error, ConfigurationError):
        code, title, detail = status.HTTP_503_SERVICE_UNAVAILABLE, "Service Not Configured", error.message
    else:
        LOGGER.error(f"Unhandled application error: {error.message}", exc_info=error)
        code, title, detail = status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Error", error.message

    body = create_error_detail(title=title, status=code, detail=detail, request=request).model_dump(mode="json")
    body.update(extra)
    headers = {"WWW-Authenticate": "Bearer"} if code == status.HTTP_401_UNAUTHORIZED else None
    return HTTPException(status_code=code, detail=body, headers=headers)
