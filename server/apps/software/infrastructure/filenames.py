"""Filename utilities for stored software packages."""

import uuid
from pathlib import Path
from typing import Final

from server.apps.software.exceptions import UploadValidationError

ALLOWED_EXTENSION: Final = '.exe'

# Anything that could make a stored name point outside the upload dir
_FORBIDDEN_FRAGMENTS: Final = ('/', '\\', '..', '\x00')


def get_file_extension(filename: str) -> str:
    """Get file extension from filename, case preserved.

    Args:
        filename: Filename (e.g., 'Setup.EXE').

    Returns:
        Extension with the leading dot (e.g., '.EXE').
        Returns empty string if no extension.
    """
    return Path(filename).suffix


def is_allowed_extension(filename: str) -> bool:
    """Check whether filename ends with ``.exe`` (any case).

    Args:
        filename: Filename supplied by the uploader.

    Returns:
        True if the file may be uploaded.
    """
    return get_file_extension(filename).lower() == ALLOWED_EXTENSION


def generate_server_filename(original_filename: str) -> str:
    """Generate the on-disk name for an upload.

    The name is a random UUID plus the original extension, so nothing
    the uploader controls ends up in a path except the extension.

    Args:
        original_filename: Filename supplied by the uploader.

    Returns:
        Generated filename (e.g., '0f8b...c2.exe').
    """
    return f'{uuid.uuid4()}{get_file_extension(original_filename)}'


def validate_server_filename(server_filename: str) -> None:
    """Validate a stored filename taken from a download URL.

    Must run before the filesystem is touched.

    Args:
        server_filename: Name requested by the client.

    Raises:
        UploadValidationError: If the name is empty or could escape
            the upload directory.
    """
    if not server_filename:
        raise UploadValidationError('Invalid filename.')

    if any(fragment in server_filename for fragment in _FORBIDDEN_FRAGMENTS):
        raise UploadValidationError('Invalid filename.')
