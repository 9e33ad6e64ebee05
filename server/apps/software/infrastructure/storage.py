"""Filesystem storage backend for uploaded software packages."""

import logging
from pathlib import Path
from typing import BinaryIO, final, override

from django.core.files.storage import FileSystemStorage

from server.apps.software.infrastructure.filenames import (
    generate_server_filename,
)

logger = logging.getLogger(__name__)

_FILE_PERMISSIONS = 0o644


@final
class UploadStorage(FileSystemStorage):
    """Storage backend for the flat upload directory.

    Extends Django's FileSystemStorage with:
    - Generated, collision-free filenames
    - Streaming writes from the upload handler
    - Best-effort rollback of uploads that never got a record
    - Enhanced error logging
    """

    def __init__(self, location: Path) -> None:
        """Initialize storage rooted at the upload directory.

        Args:
            location: Upload directory.
        """
        super().__init__(
            location=str(location),
            file_permissions_mode=_FILE_PERMISSIONS,
        )

    def generate_name(self, original_filename: str) -> str:
        """Pick an unused name for a new upload.

        Args:
            original_filename: Filename supplied by the uploader.

        Returns:
            Generated filename that does not exist yet.
        """
        server_filename = generate_server_filename(original_filename)
        while self.exists(server_filename):
            server_filename = generate_server_filename(original_filename)
        return server_filename

    def open_for_upload(self, name: str) -> BinaryIO:
        """Create a new file for streaming upload data into.

        Args:
            name: Generated filename.

        Returns:
            Binary file opened for writing.

        Raises:
            FileExistsError: If the name is already taken.
            OSError: If the file cannot be created.
        """
        Path(self.location).mkdir(parents=True, exist_ok=True)
        logger.info('Writing upload to storage: %s', name)
        return Path(self.path(name)).open('xb')

    def is_stored(self, name: str) -> bool:
        """Check that name refers to a regular file in storage.

        Args:
            name: Stored filename.

        Returns:
            True if the file exists and is a regular file.
        """
        return Path(self.path(name)).is_file()

    def stored_names(self) -> list[str]:
        """List every file in the upload directory.

        Returns:
            Sorted filenames. Empty if the directory is missing.
        """
        if not Path(self.location).is_dir():
            return []
        _, files = self.listdir('')
        return sorted(files)

    @override
    def delete(self, name: str) -> None:
        """Delete file from storage with error handling and logging.

        Args:
            name: Stored filename.

        Raises:
            OSError: If the file exists but cannot be removed.
        """
        try:
            logger.info('Deleting file from storage: %s', name)
            super().delete(name)
        except Exception:
            logger.exception('Failed to delete file from storage: %s', name)
            raise
        logger.info('Successfully deleted file: %s', name)

    def rollback_upload(self, name: str) -> None:
        """Delete a stored upload that will never get a metadata record.

        Called when validation fails after the file was written, or
        when writing the metadata failed. This is a best-effort
        operation: failures are logged, never raised.

        Args:
            name: Stored filename.
        """
        try:
            logger.warning('Rolling back upload, deleting file: %s', name)
            self.delete(name)
        except Exception:
            # The file stays behind without a record;
            # `manage.py check_uploads --delete-orphans` removes it later
            logger.exception(
                'Failed to rollback upload, orphaned file: %s',
                name,
            )
