"""System checks for software app, run by ``manage.py check``."""

import os
from collections.abc import Sequence
from typing import Any

from django.apps import AppConfig
from django.core.checks import (  # noqa: WPS458
    CheckMessage,
    Error,
    Warning,
    register,
)
from django.core.exceptions import ImproperlyConfigured

from server.apps.software.conf import build_software_settings


@register('software')
def check_upload_token_configured(
    app_configs: Sequence[AppConfig] | None,
    **kwargs: Any,
) -> list[CheckMessage]:
    """Warn when uploads are bound to fail for lack of a token.

    Also reports settings that cannot be read at all.

    Args:
        app_configs: App configs to check, None for all.
        kwargs: Additional check arguments.

    Returns:
        List of check messages.
    """
    try:
        software_settings = build_software_settings()
    except ImproperlyConfigured as error:
        return [Error(str(error), id='software.E002')]

    if software_settings.upload_token:
        return []

    return [Warning(
        'UPLOAD_TOKEN is not set; every upload will be rejected.',
        hint='Set UPLOAD_TOKEN in the environment or in config/.env.',
        id='software.W001',
    )]


@register('software')
def check_data_dir_writable(
    app_configs: Sequence[AppConfig] | None,
    **kwargs: Any,
) -> list[CheckMessage]:
    """Check that uploads and metadata can be written.

    Args:
        app_configs: App configs to check, None for all.
        kwargs: Additional check arguments.

    Returns:
        List of check messages.
    """
    try:
        software_settings = build_software_settings()
    except ImproperlyConfigured:
        # Reported by check_upload_token_configured
        return []

    data_dir = software_settings.data_dir
    if data_dir.is_dir() and os.access(data_dir, os.W_OK | os.X_OK):
        return []

    return [Error(
        f'SOFTWARE_DATA_DIR {data_dir} is not a writable directory.',
        id='software.E001',
    )]


@register('software')
def check_frontend_built(
    app_configs: Sequence[AppConfig] | None,
    **kwargs: Any,
) -> list[CheckMessage]:
    """Warn when the frontend entry file is missing."""
    try:
        index = build_software_settings().frontend_index
    except ImproperlyConfigured:
        return []

    if index.is_file():
        return []

    return [Warning(
        f'Frontend entry file not found at {index}.',
        hint='Build the frontend or point FRONTEND_BUILD_DIR at the build.',
        id='software.W002',
    )]
