"""Shared fixtures for app tests."""

from collections.abc import Callable
from pathlib import Path
from typing import Final

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from server.apps.software.conf import (
    DEFAULT_MAX_UPLOAD_SIZE,
    SoftwareSettings,
    get_software_settings,
)
from server.apps.software.logic.software_operations import prepare_storage

UPLOAD_TOKEN: Final = 'test-upload-token'

# Smallest thing that still looks like a Windows executable
EXE_CONTENT: Final = b'MZ' + bytes(62) + b'software payload'


@pytest.fixture
def software_settings(settings, tmp_path: Path) -> SoftwareSettings:
    """Point the software app at temporary directories.

    Returns:
        SoftwareSettings with prepared upload dir and metadata file.
    """
    settings.SOFTWARE_DATA_DIR = str(tmp_path / 'data')
    settings.FRONTEND_BUILD_DIR = str(tmp_path / 'build')
    settings.UPLOAD_TOKEN = UPLOAD_TOKEN
    settings.UPLOAD_TOKEN_REQUIRED = False
    settings.SOFTWARE_MAX_UPLOAD_SIZE = DEFAULT_MAX_UPLOAD_SIZE

    current = get_software_settings()
    prepare_storage(current)
    return current


@pytest.fixture
def make_exe() -> Callable[..., SimpleUploadedFile]:
    """Factory for uploadable files.

    Returns:
        Callable building a fresh SimpleUploadedFile on every call.
    """
    def factory(  # noqa: WPS430
        name: str = 'installer.exe',
        content: bytes = EXE_CONTENT,
    ) -> SimpleUploadedFile:
        return SimpleUploadedFile(
            name,
            content,
            content_type='application/x-msdownload',
        )

    return factory


@pytest.fixture
def upload_headers() -> dict[str, str]:
    """Headers carrying the configured upload token."""
    return {'X-Upload-Token': UPLOAD_TOKEN}
