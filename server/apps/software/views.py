"""HTTP views for software uploads, listing and downloads.

Errors are raised as ``SoftwareError`` subclasses and turned into JSON
responses by ``SoftwareErrorMiddleware``.
"""

import logging
from typing import Final

from django.core.exceptions import RequestDataTooBig
from django.http import FileResponse, HttpRequest, JsonResponse
from django.http.multipartparser import MultiPartParserError
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from server.apps.software.conf import get_software_settings
from server.apps.software.exceptions import (
    SoftwareNotFoundError,
    UploadValidationError,
)
from server.apps.software.infrastructure.upload_handler import (
    SOFTWARE_FILE_FIELD,
)
from server.apps.software.logic import software_operations

logger = logging.getLogger(__name__)

UPLOAD_TOKEN_HEADER: Final = 'X-Upload-Token'

_HTTP_CREATED: Final = 201


@csrf_exempt  # API context, authenticated by the upload token
@require_POST
def upload_software(request: HttpRequest) -> JsonResponse:
    """Accept one ``.exe`` package and record its metadata.

    The token is checked before the body is touched. The body is then
    decoded by ExecutableUploadHandler, which streams the file to disk.
    """
    software_settings = get_software_settings()
    software_operations.authorize_upload(
        request.headers.get(UPLOAD_TOKEN_HEADER),
        software_settings,
    )

    handler = software_operations.create_upload_handler(
        request,
        software_settings,
    )
    request.upload_handlers = [handler]

    try:
        stored_upload = request.FILES.get(SOFTWARE_FILE_FIELD)
    except (MultiPartParserError, RequestDataTooBig) as error:
        handler.abort()
        raise UploadValidationError(f'File upload error: {error}') from error
    except Exception:
        handler.abort()
        raise

    record = software_operations.register_upload(
        stored_upload,
        request.POST,
        software_settings,
    )
    return JsonResponse(
        {
            'message': 'Software uploaded successfully!',
            'software': record.to_json(),
        },
        status=_HTTP_CREATED,
    )


@require_GET
def list_software(request: HttpRequest) -> JsonResponse:
    """Return every record, newest first."""
    records = software_operations.list_software(get_software_settings())
    return JsonResponse(
        [record.to_json() for record in records],
        safe=False,
    )


@require_GET
def download_software(
    request: HttpRequest,
    server_filename: str,
) -> FileResponse:
    """Stream a stored package under its original filename."""
    file_path, download_name = software_operations.resolve_download(
        server_filename,
        get_software_settings(),
    )

    try:
        file_handle = file_path.open('rb')
    except OSError as error:
        logger.warning('Stored file became unreadable: %s', file_path)
        raise SoftwareNotFoundError() from error

    logger.info('Serving download: %s as %s', server_filename, download_name)
    return FileResponse(
        file_handle,
        as_attachment=True,
        filename=download_name,
    )
