"""Django app configuration for frontend app."""

from django.apps import AppConfig


class FrontendConfig(AppConfig):
    """Serves the pre-built single-page frontend."""

    name = 'server.apps.frontend'
    verbose_name = 'Frontend'
