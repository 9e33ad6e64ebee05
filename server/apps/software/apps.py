"""Django app configuration for software app."""

from typing import override

from django.apps import AppConfig


class SoftwareConfig(AppConfig):
    """Configuration for software app."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'server.apps.software'
    verbose_name = 'Software'

    @override
    def ready(self) -> None:
        """Validate configuration and prepare storage once at startup.

        Also registers system checks and signal handlers.
        """
        from server.apps.software import checks, signals  # noqa: F401
        from server.apps.software.conf import (  # noqa: PLC0415
            get_software_settings,
            validate_upload_token,
        )
        from server.apps.software.logic.software_operations import (  # noqa: PLC0415
            prepare_storage,
        )

        software_settings = get_software_settings()
        validate_upload_token(software_settings)
        prepare_storage(software_settings)
