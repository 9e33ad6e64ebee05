"""Cross-origin settings for a frontend served from another origin."""

from corsheaders.defaults import default_headers
from decouple import Csv

from server.settings.components import config

# Any origin may call the API unless restricted below
CORS_ALLOW_ALL_ORIGINS = config(
    'CORS_ALLOW_ALL_ORIGINS',
    cast=bool,
    default=True,
)

# Used when CORS_ALLOW_ALL_ORIGINS is off, e.g. `https://hub.example.com`
CORS_ALLOWED_ORIGINS = config(
    'CORS_ALLOWED_ORIGINS',
    cast=Csv(),
    default='',
)

CORS_ALLOW_HEADERS = (
    *default_headers,
    'x-upload-token',
)
