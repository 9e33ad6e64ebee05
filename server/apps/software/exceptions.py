"""Exceptions for software app.

Every error a request can end with derives from ``SoftwareError``.
Each class knows the HTTP status it maps to and the level it is logged
at; ``SoftwareErrorMiddleware`` turns them into JSON responses.
"""

import logging
from typing import ClassVar, Final

_DEFAULT_STORAGE_MESSAGE: Final = 'Internal storage error.'


class SoftwareError(Exception):
    """Base class for errors reported back to the API caller."""

    status_code: ClassVar[int] = 500
    log_level: ClassVar[int] = logging.ERROR
    default_message: ClassVar[str] = 'Internal server error.'

    def __init__(self, message: str | None = None) -> None:
        """Initialize SoftwareError.

        Args:
            message: Text safe to show to the caller.
                Falls back to the class default message.
        """
        self.message = message or self.default_message
        super().__init__(self.message)


class ConfigurationError(SoftwareError):
    """Raised when the server is missing required configuration."""

    log_level = logging.CRITICAL
    default_message = 'Server configuration error regarding upload token.'


class AuthorizationError(SoftwareError):
    """Raised when the upload token is missing or wrong."""

    status_code = 401
    log_level = logging.WARNING
    default_message = 'Unauthorized: Invalid or missing upload token.'


class UploadValidationError(SoftwareError):
    """Raised when the request carries invalid input."""

    status_code = 400
    log_level = logging.INFO
    default_message = 'Invalid request.'


class UploadSizeLimitError(SoftwareError):
    """Raised when an upload grows past the configured size ceiling."""

    status_code = 400
    log_level = logging.WARNING

    def __init__(self, limit_bytes: int, received_bytes: int) -> None:
        """Initialize UploadSizeLimitError.

        Args:
            limit_bytes: Maximum accepted file size in bytes.
            received_bytes: Bytes received when the limit was hit.
        """
        self.limit_bytes = limit_bytes
        self.received_bytes = received_bytes
        super().__init__(
            f'File upload error: File too large (limit: {limit_bytes} bytes)',
        )


class SoftwareNotFoundError(SoftwareError):
    """Raised when a requested file does not exist."""

    status_code = 404
    log_level = logging.INFO
    default_message = 'File not found.'


class StorageError(SoftwareError):
    """Raised on unexpected filesystem or metadata failures.

    The message shown to the caller is always generic. Details travel
    in the chained exception and end up in the logs only.
    """

    default_message = _DEFAULT_STORAGE_MESSAGE
