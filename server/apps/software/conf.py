"""Runtime configuration for software app.

All settings the upload, listing, download and frontend code needs are
collected into one ``SoftwareSettings`` object. It is built once, when
the app registry is ready, and handed to the logic functions explicitly.
"""

import functools
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Final, final

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

logger = logging.getLogger(__name__)

_MEBIBYTE: Final = 1024 * 1024
DEFAULT_MAX_UPLOAD_SIZE: Final = 200 * _MEBIBYTE

_UPLOADS_DIRNAME: Final = 'uploads'
_METADATA_FILENAME: Final = 'metadata.json'
_FRONTEND_INDEX: Final = 'index.html'

# Django settings that feed SoftwareSettings
WATCHED_SETTINGS: Final = frozenset((
    'UPLOAD_TOKEN',
    'UPLOAD_TOKEN_REQUIRED',
    'SOFTWARE_DATA_DIR',
    'SOFTWARE_MAX_UPLOAD_SIZE',
    'FRONTEND_BUILD_DIR',
))


@final
@dataclass(frozen=True, slots=True)
class SoftwareSettings:
    """Validated, process-wide configuration."""

    upload_token: str | None
    upload_token_required: bool
    data_dir: Path
    max_upload_size: int
    frontend_build_dir: Path

    @property
    def upload_dir(self) -> Path:
        """Directory holding the stored packages."""
        return self.data_dir / _UPLOADS_DIRNAME

    @property
    def metadata_file(self) -> Path:
        """JSON file holding every software record."""
        return self.data_dir / _METADATA_FILENAME

    @property
    def frontend_index(self) -> Path:
        """Entry HTML file of the single-page frontend."""
        return self.frontend_build_dir / _FRONTEND_INDEX


def build_software_settings() -> SoftwareSettings:
    """Read Django settings into a SoftwareSettings instance.

    Returns:
        Fresh SoftwareSettings.

    Raises:
        ImproperlyConfigured: If a value is unusable.
    """
    max_upload_size = int(
        getattr(settings, 'SOFTWARE_MAX_UPLOAD_SIZE', DEFAULT_MAX_UPLOAD_SIZE),
    )
    if max_upload_size <= 0:
        raise ImproperlyConfigured(
            'SOFTWARE_MAX_UPLOAD_SIZE must be a positive number of bytes',
        )

    data_dir = getattr(settings, 'SOFTWARE_DATA_DIR', None)
    if not data_dir:
        raise ImproperlyConfigured('SOFTWARE_DATA_DIR must be set')

    return SoftwareSettings(
        upload_token=getattr(settings, 'UPLOAD_TOKEN', None) or None,
        upload_token_required=bool(
            getattr(settings, 'UPLOAD_TOKEN_REQUIRED', False),
        ),
        data_dir=Path(data_dir),
        max_upload_size=max_upload_size,
        frontend_build_dir=Path(getattr(settings, 'FRONTEND_BUILD_DIR', '')),
    )


@functools.cache
def get_software_settings() -> SoftwareSettings:
    """Return the process-wide SoftwareSettings.

    Cached after the first call; the cache is dropped whenever one of
    the underlying Django settings changes (see signals.py).
    """
    return build_software_settings()


def reset_software_settings() -> None:
    """Forget the cached SoftwareSettings."""
    get_software_settings.cache_clear()


def validate_upload_token(software_settings: SoftwareSettings) -> None:
    """Check the upload token at startup.

    A missing token does not stop the server unless
    ``UPLOAD_TOKEN_REQUIRED`` is set: uploads are refused with a
    configuration error instead, and that is logged loudly here.

    Args:
        software_settings: Settings to check.

    Raises:
        ImproperlyConfigured: If the token is required but not set.
    """
    if software_settings.upload_token:
        logger.info('Upload endpoint is protected by a token')
        return

    if software_settings.upload_token_required:
        raise ImproperlyConfigured(
            'UPLOAD_TOKEN is not set. Set it in the environment '
            'or in config/.env before starting the server.',
        )

    logger.critical(
        'UPLOAD_TOKEN is NOT SET. Every upload will be rejected '
        'with a server configuration error until it is configured.',
    )
