from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "Document not found") -> None:
        super().__init__(message)


class AuthenticationError(UserError):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)


class ValidationError(UserError):
    """Raised when user input fails validation."""


class QuotaExceededError(UserError):
    """Raised when the daily usage limit has been reached."""

    def __init__(self, message: str = "Daily usage limit reached") -> None:
        super().__init__(message)


class UpstreamError(UserError):
    """Raised when the realtime provider answers with a non-success response.

    The message carries the provider's raw body for diagnostics.
    """


class ConfigurationError(UserError):
    """Raised when a required external integration is not configured."""


class TransportFailure(UserError):
    """Raised on the client when the media transport or event channel breaks down."""

    def __init__(self, message: str = "Connection failed") -> None:
        super().__init__(message)
