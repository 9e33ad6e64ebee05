"""Middleware turning software errors into JSON responses."""

import logging
from collections.abc import Callable
from typing import final

from django.http import HttpRequest, HttpResponse, JsonResponse

from server.apps.software.exceptions import SoftwareError, StorageError

logger = logging.getLogger(__name__)


@final
class SoftwareErrorMiddleware:
    """Maps ``SoftwareError`` subclasses to ``{"message": ...}`` responses.

    Every error is logged at the level its class asks for. Storage
    errors are logged with the full traceback, while the caller only
    sees the generic message.
    """

    def __init__(
        self,
        get_response: Callable[[HttpRequest], HttpResponse],
    ) -> None:
        """Initialize middleware.

        Args:
            get_response: Next handler in the chain.
        """
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        """Pass the request through unchanged."""
        return self.get_response(request)

    def process_exception(
        self,
        request: HttpRequest,
        exception: Exception,
    ) -> HttpResponse | None:
        """Convert a SoftwareError raised by a view.

        Args:
            request: Current request.
            exception: Exception raised by the view.

        Returns:
            JSON error response, or None to let Django handle
            any other exception.
        """
        if not isinstance(exception, SoftwareError):
            return None

        logger.log(
            exception.log_level,
            '%s %s failed with %d: %s',
            request.method,
            request.path,
            exception.status_code,
            exception.message,
            exc_info=isinstance(exception, StorageError),
        )
        return JsonResponse(
            {'message': exception.message},
            status=exception.status_code,
        )
