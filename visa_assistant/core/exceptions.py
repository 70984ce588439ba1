"""Custom exception hierarchy."""

from typing import List, Optional


class AppError(Exception):
    """Base exception for application errors."""
    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class APIClientError(AppError):
    """Raised when an external API call fails."""
    pass


class APITimeoutError(APIClientError):
    """Raised when an external API call times out."""
    pass


class UpstreamServiceError(APIClientError):
    """Raised when an OCR, LLM or conversion service fails.

    ``upstream_message`` keeps the provider's own error text when it sent one,
    so callers can log it while showing users a generic message.
    """
    def __init__(
        self,
        message: str,
        service: str = "upstream",
        upstream_message: Optional[str] = None,
        original_error: Exception = None,
    ):
        super().__init__(message, original_error=original_error)
        self.service = service
        self.upstream_message = upstream_message


class DatabaseError(AppError):
    """Raised when a database operation fails."""
    pass


class ValidationError(AppError):
    """Raised when input validation fails."""
    pass


class TemplateValidationError(ValidationError):
    """Raised when letter context fails validation; lists every failing field."""
    def __init__(self, errors: List[str], warnings: Optional[List[str]] = None):
        super().__init__("Letter data failed validation: " + "; ".join(errors))
        self.errors = list(errors)
        self.warnings = list(warnings or [])


class ConfigurationError(AppError):
    """Raised when configuration is invalid or missing."""
    pass


class UnauthenticatedError(AppError):
    """Raised when no identity is attached to the request."""
    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class UnauthorizedError(AppError):
    """Raised when the identity does not own the requested resource."""
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotFoundError(AppError):
    """Raised when a resource id does not resolve."""
    resource = "Resource"

    def __init__(self, message: Optional[str] = None, resource: Optional[str] = None):
        if resource:
            self.resource = resource
        super().__init__(message or f"{self.resource} not found")


class ApplicationNotFoundError(NotFoundError):
    """Raised when an application is not found."""
    resource = "Application"


class DocumentNotFoundError(NotFoundError):
    """Raised when a document is not found."""
    resource = "Document"


class TemplateLoadError(AppError):
    """Raised when a letter template cannot be read."""
    pass
