"""HTTP server settings used by the ``run_server`` command."""

from server.settings.components import config

SERVER_HOST = config('HOST', default='0.0.0.0')  # noqa: S104
SERVER_PORT = config('PORT', cast=int, default=5000)
