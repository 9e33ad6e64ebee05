"""Catch-all view serving the pre-built single-page frontend.

Registered after every API route. Existing build files are served as
they are, any other path gets the entry HTML so the frontend router can
take over.
"""

import logging

from django.http import (
    FileResponse,
    Http404,
    HttpRequest,
    HttpResponse,
    HttpResponseNotFound,
)
from django.views.decorators.http import require_safe
from django.views.static import serve

from server.apps.software.conf import get_software_settings

logger = logging.getLogger(__name__)


@require_safe
def spa_fallback(request: HttpRequest, path: str = '') -> HttpResponse:
    """Serve a frontend asset, or the entry HTML file.

    Args:
        request: Current request.
        path: Requested path relative to the build directory.

    Returns:
        The asset, the entry HTML, or a plain-text 404 when the
        frontend has not been built.
    """
    software_settings = get_software_settings()
    build_dir = software_settings.frontend_build_dir

    if path:
        try:
            return serve(request, path, document_root=build_dir)
        except Http404:
            logger.debug('No frontend asset at %s, serving entry file', path)

    index = software_settings.frontend_index
    if not index.is_file():
        logger.error('Frontend index.html not found at %s', index)
        return HttpResponseNotFound(
            'Frontend app not found. Please ensure the frontend is built '
            f'and the path is correct. Expected at: {build_dir}',
            content_type='text/plain; charset=utf-8',
        )

    return FileResponse(index.open('rb'), content_type='text/html')
