"""Custom application exceptions for the voice extraction service.

Each exception class carries the HTTP status code it maps to, so the API
boundary can translate errors by kind instead of by message text.
"""

from typing import Any, Optional


class VoiceAgentException(Exception):
    """Base exception for all application errors."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        details: Optional[list[Any]] = None,
        original_error: Optional[BaseException] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details
        self.original_error = original_error


# Request errors (400)
class ValidationError(VoiceAgentException):
    """Request payload failed validation."""
    status_code = 400


class MissingSchemaError(ValidationError):
    """Custom extraction requested without a usable field schema."""
    pass


class UnsupportedMediaError(ValidationError):
    """Uploaded audio has a disallowed type or size."""
    pass


class DuplicateUserError(ValidationError):
    """A user with this email already exists."""
    pass


# Authentication errors (401)
class AuthError(VoiceAgentException):
    """Caller could not be authenticated."""
    status_code = 401


class InvalidCredentialsError(AuthError):
    """Email or password did not match."""
    pass


class InvalidTokenError(AuthError):
    """Bearer token is malformed or its signature does not verify."""
    pass


class ExpiredTokenError(AuthError):
    """Bearer token signature is valid but it is past its expiry."""
    pass


class RateLimitError(VoiceAgentException):
    """Client exceeded the request budget for the current window."""
    status_code = 429

    def __init__(self, message: str, retry_after: Optional[float] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


# Remote provider errors (never retried)
class ProviderError(VoiceAgentException):
    """A remote speech-to-text or extraction call failed."""
    status_code = 500


class TranscriptionFailedError(ProviderError):
    """Speech-to-text provider failed."""
    pass


class ExtractionFailedError(ProviderError):
    """Extraction provider failed or returned unparseable output."""
    pass


class ProviderRateLimitError(ProviderError):
    """Remote provider rejected the call because of its own rate limits."""
    status_code = 429


class NotFoundError(VoiceAgentException):
    """Requested resource does not exist."""
    status_code = 404


class InternalError(VoiceAgentException):
    """Unexpected failure."""
    pass


class InvalidConfigurationError(VoiceAgentException):
    """Application configuration is invalid (startup only)."""
    pass


def http_status_for(error: BaseException) -> int:
    """Map an exception to its HTTP status code (500 for unknown errors)."""
    if isinstance(error, VoiceAgentException):
        return error.status_code
    return 500
