"""Business logic for software uploads, listing and downloads."""

import hmac
import logging
from collections.abc import Mapping
from pathlib import Path

from django.core.exceptions import ImproperlyConfigured
from django.http import HttpRequest

from server.apps.software.conf import SoftwareSettings
from server.apps.software.exceptions import (
    AuthorizationError,
    ConfigurationError,
    SoftwareNotFoundError,
    StorageError,
    UploadValidationError,
)
from server.apps.software.infrastructure.filenames import (
    validate_server_filename,
)
from server.apps.software.infrastructure.metadata_store import MetadataStore
from server.apps.software.infrastructure.storage import UploadStorage
from server.apps.software.infrastructure.upload_handler import (
    ExecutableUploadHandler,
    StoredUpload,
)
from server.apps.software.models import SoftwareRecord

logger = logging.getLogger(__name__)

# Form fields sent along with the file
NAME_FIELD = 'softwareName'
VERSION_FIELD = 'softwareVersion'
DESCRIPTION_FIELD = 'softwareDescription'


def get_upload_storage(software_settings: SoftwareSettings) -> UploadStorage:
    """Get storage rooted at the configured upload directory.

    Args:
        software_settings: Current settings.

    Returns:
        UploadStorage instance.
    """
    return UploadStorage(software_settings.upload_dir)


def get_metadata_store(software_settings: SoftwareSettings) -> MetadataStore:
    """Get store for the configured metadata file.

    Args:
        software_settings: Current settings.

    Returns:
        MetadataStore instance.
    """
    return MetadataStore(software_settings.metadata_file)


def prepare_storage(software_settings: SoftwareSettings) -> None:
    """Create the upload directory and an empty metadata file.

    Args:
        software_settings: Current settings.

    Raises:
        ImproperlyConfigured: If the data directory is not usable.
    """
    try:
        software_settings.upload_dir.mkdir(parents=True, exist_ok=True)
        get_metadata_store(software_settings).ensure_exists()
    except (OSError, StorageError) as error:
        raise ImproperlyConfigured(
            f'Cannot prepare data directory {software_settings.data_dir}',
        ) from error

    logger.info('Storing uploads in: %s', software_settings.upload_dir)
    logger.info('Storing metadata in: %s', software_settings.metadata_file)


def authorize_upload(
    provided_token: str | None,
    software_settings: SoftwareSettings,
) -> None:
    """Check the caller's upload token.

    Runs before any part of the request body is read.

    Args:
        provided_token: Value of the X-Upload-Token header.
        software_settings: Current settings.

    Raises:
        ConfigurationError: If no server token is configured.
        AuthorizationError: If the token is missing or wrong.
    """
    expected_token = software_settings.upload_token
    if not expected_token:
        raise ConfigurationError()

    if not provided_token or not hmac.compare_digest(
        provided_token.encode(),
        expected_token.encode(),
    ):
        raise AuthorizationError()


def create_upload_handler(
    request: HttpRequest,
    software_settings: SoftwareSettings,
) -> ExecutableUploadHandler:
    """Build the streaming handler that decodes the upload body.

    Args:
        request: Upload request, body not read yet.
        software_settings: Current settings.

    Returns:
        Handler writing into the upload directory.
    """
    return ExecutableUploadHandler(
        request,
        storage=get_upload_storage(software_settings),
        max_upload_size=software_settings.max_upload_size,
    )


def register_upload(
    stored_upload: StoredUpload | None,
    form_data: Mapping[str, str],
    software_settings: SoftwareSettings,
) -> SoftwareRecord:
    """Create the metadata record for a stored upload.

    Transaction safety: the file is already on disk. If the name is
    missing or the metadata cannot be saved, the file is deleted again
    (rollback) so no file is left without a record.

    Args:
        stored_upload: File written by the upload handler, if any.
        form_data: Decoded form fields.
        software_settings: Current settings.

    Returns:
        Created SoftwareRecord.

    Raises:
        UploadValidationError: If the file or name is missing.
        StorageError: If the metadata cannot be saved.
    """
    if stored_upload is None:
        raise UploadValidationError('No file uploaded.')

    storage = get_upload_storage(software_settings)
    server_filename = stored_upload.server_filename

    name = form_data.get(NAME_FIELD, '')
    if not name:
        storage.rollback_upload(server_filename)
        raise UploadValidationError('Software name is required.')

    try:
        record = SoftwareRecord.create(
            name=name,
            version=form_data.get(VERSION_FIELD, ''),
            description=form_data.get(DESCRIPTION_FIELD, ''),
            original_filename=stored_upload.name or server_filename,
            server_filename=server_filename,
            size=storage.size(server_filename),
        )
        get_metadata_store(software_settings).append(record)
    except (OSError, StorageError) as error:
        logger.error(
            'Saving metadata failed, rolling back upload: %s',
            server_filename,
        )
        storage.rollback_upload(server_filename)
        raise StorageError('Error saving software metadata.') from error

    logger.info(
        'Software registered: %s %s (ID: %s, file: %s)',
        record.name,
        record.version,
        record.id,
        record.server_filename,
    )
    return record


def list_software(software_settings: SoftwareSettings) -> list[SoftwareRecord]:
    """List every record, most recently uploaded first.

    Args:
        software_settings: Current settings.

    Returns:
        Records sorted by upload time, descending.

    Raises:
        StorageError: If the metadata cannot be read.
    """
    try:
        records = get_metadata_store(software_settings).read_all()
    except StorageError as error:
        raise StorageError('Error fetching software list.') from error

    return sorted(
        records,
        key=lambda record: record.uploaded_at_datetime(),
        reverse=True,
    )


def resolve_download(
    server_filename: str,
    software_settings: SoftwareSettings,
) -> tuple[Path, str]:
    """Find the stored file and the name to download it under.

    Args:
        server_filename: Stored filename from the URL.
        software_settings: Current settings.

    Returns:
        Tuple of file path and download filename. The download filename
        is the record's original filename, or server_filename itself
        when no record describes the file.

    Raises:
        UploadValidationError: If server_filename is unsafe.
        SoftwareNotFoundError: If no such file is stored.
    """
    validate_server_filename(server_filename)

    storage = get_upload_storage(software_settings)
    if not storage.is_stored(server_filename):
        logger.info('Download of missing file requested: %s', server_filename)
        raise SoftwareNotFoundError()

    return Path(storage.path(server_filename)), _download_name(
        server_filename,
        software_settings,
    )


def _download_name(
    server_filename: str,
    software_settings: SoftwareSettings,
) -> str:
    try:
        record = get_metadata_store(software_settings).find_by_server_filename(
            server_filename,
        )
    except StorageError:
        logger.warning(
            'Metadata unavailable, using stored name for download: %s',
            server_filename,
        )
        return server_filename

    if record is None or not record.original_filename:
        return server_filename
    return record.original_filename
