"""Error taxonomy for the contact relay.

Every error carries the HTTP status it maps to and a client-safe message.
They are converted to a uniform ``{"success": false, "message": ...}`` body by
the exception handler registered in ``src.app``.
"""

from typing import Optional
from fastapi import status


class ContactServiceError(Exception):
    """Base class for all errors raised along the contact pipeline."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Something went wrong. Please try again later."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ContactServiceError):
    """Missing or malformed submission field."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid submission."


class MissingRequiredField(ValidationError):
    default_message = "Please provide name, email, and message."


class InvalidEmailFormat(ValidationError):
    default_message = "Please provide a valid email address."


class CsrfError(ContactServiceError):
    """Missing, unknown or expired anti-forgery token."""
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Invalid security token. Please refresh the page and try again."


class MissingToken(CsrfError):
    default_message = "Security token missing. Please refresh the page and try again."


class UnknownToken(CsrfError):
    pass


class ExpiredToken(CsrfError):
    default_message = "Security token expired. Please refresh the page and try again."


class RateLimitError(ContactServiceError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Too many contact requests from this IP, please try again later."

    def __init__(self, message: Optional[str] = None, retry_after: int = 0):
        super().__init__(message)
        self.retry_after = retry_after


class ConfigurationError(ContactServiceError):
    """Mail transport is not configured; the contact endpoint is disabled."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Contact form is temporarily unavailable. Please try again later."


class DispatchFailure(ContactServiceError):
    """The mail transport failed to deliver one of the two emails."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Failed to send message. Please try again later."
