"""Software upload and storage settings."""

from typing import Final

from server.settings.components import BASE_DIR, config

_MEBIBYTE: Final = 1024 * 1024

# Shared secret expected in the X-Upload-Token header.
# Empty means "not configured": uploads are refused with a server error.
UPLOAD_TOKEN = config('UPLOAD_TOKEN', default='')

# Refuse to start at all when UPLOAD_TOKEN is empty
UPLOAD_TOKEN_REQUIRED = config(
    'UPLOAD_TOKEN_REQUIRED',
    cast=bool,
    default=False,
)

# Holds metadata.json and the uploads/ directory
SOFTWARE_DATA_DIR = config(
    'SOFTWARE_DATA_DIR',
    default='',
) or str(BASE_DIR.joinpath('data'))

SOFTWARE_MAX_UPLOAD_SIZE = config(
    'SOFTWARE_MAX_UPLOAD_SIZE',
    cast=int,
    default=200 * _MEBIBYTE,
)
