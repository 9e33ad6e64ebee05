"""Logging configuration.

Starts from Django's own defaults and adds a console handler for
everything logged under the ``server`` package.
"""

from copy import deepcopy

from django.utils.log import DEFAULT_LOGGING

from server.settings.components import config

LOGGING = deepcopy(DEFAULT_LOGGING)

LOGGING['formatters']['verbose'] = {
    'format': '{asctime} {levelname:8} {name} - {message}',
    'style': '{',
}

LOGGING['handlers']['server_console'] = {
    'level': 'DEBUG',
    'class': 'logging.StreamHandler',
    'formatter': 'verbose',
}

LOGGING['loggers']['server'] = {
    'level': config('DJANGO_LOG_LEVEL', default='INFO'),
    'handlers': ['server_console'],
}

# cheroot reports broken client connections here
LOGGING['loggers']['cheroot'] = {
    'level': 'WARNING',
    'handlers': ['server_console'],
}
