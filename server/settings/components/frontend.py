"""Pre-built single-page frontend settings."""

from server.settings.components import BASE_DIR, config

FRONTEND_BUILD_DIR = config(
    'FRONTEND_BUILD_DIR',
    default='',
) or str(BASE_DIR.joinpath('frontend', 'build'))
