"""Streaming upload handler for software packages.

Django calls the handler while it decodes the multipart body, so the
extension and size checks happen as the bytes arrive and a rejected
upload never lands on disk as a complete file.
"""

import logging
from typing import Any, BinaryIO, Final, final, override

from django.core.files.uploadedfile import UploadedFile
from django.core.files.uploadhandler import FileUploadHandler
from django.http import HttpRequest

from server.apps.software.exceptions import (
    StorageError,
    UploadSizeLimitError,
    UploadValidationError,
)
from server.apps.software.infrastructure.filenames import is_allowed_extension
from server.apps.software.infrastructure.storage import UploadStorage

logger = logging.getLogger(__name__)

# Multipart field carrying the package
SOFTWARE_FILE_FIELD: Final = 'softwareFile'


@final
class StoredUpload(UploadedFile):
    """A package that has already been written to the upload directory."""

    def __init__(  # noqa: WPS211
        self,
        file: BinaryIO,  # noqa: WPS110
        name: str,
        size: int,
        server_filename: str,
        content_type: str | None = None,
    ) -> None:
        """Initialize StoredUpload.

        Args:
            file: Handle of the stored file (already closed).
            name: Original filename as sent by the uploader.
            size: Number of bytes received.
            server_filename: Generated name inside the upload directory.
            content_type: Content type claimed by the uploader.
        """
        super().__init__(
            file=file,
            name=name,
            content_type=content_type,
            size=size,
        )
        self.server_filename = server_filename


@final
class ExecutableUploadHandler(FileUploadHandler):
    """Writes the ``softwareFile`` part straight into UploadStorage.

    Rejects:
    - file parts in any other field, or a second file
    - files without the ``.exe`` extension, before anything is written
    - files larger than ``max_upload_size``, deleting the partial file
    """

    def __init__(
        self,
        request: HttpRequest | None,
        storage: UploadStorage,
        max_upload_size: int,
    ) -> None:
        """Initialize the handler.

        Args:
            request: Request being parsed.
            storage: Storage the file is written to.
            max_upload_size: Size ceiling in bytes.
        """
        super().__init__(request)
        self._storage = storage
        self._max_upload_size = max_upload_size
        # Django closes `handler.file` itself when parsing fails
        self.file: BinaryIO | None = None
        self.server_filename: str | None = None
        self._aborted = False

    @override
    def new_file(
        self,
        field_name: str,
        file_name: str,
        *args: Any,
        **kwargs: Any,
    ) -> None:
        """Validate the part header and open the destination file.

        Args:
            field_name: Multipart field name.
            file_name: Sanitized filename sent by the uploader.
            args: Remaining positional arguments from Django.
            kwargs: Remaining keyword arguments from Django.

        Raises:
            UploadValidationError: If the field or extension is not accepted.
            UploadSizeLimitError: If the declared length is already too big.
            StorageError: If the destination file cannot be created.
        """
        super().new_file(field_name, file_name, *args, **kwargs)

        if field_name != SOFTWARE_FILE_FIELD or self.server_filename:
            raise UploadValidationError(
                f'File upload error: Unexpected field {field_name}',
            )

        if not is_allowed_extension(file_name):
            logger.info('Rejected upload with disallowed name: %s', file_name)
            raise UploadValidationError('Only .exe files are allowed!')

        if self.content_length and self.content_length > self._max_upload_size:
            raise UploadSizeLimitError(
                self._max_upload_size,
                self.content_length,
            )

        server_filename = self._storage.generate_name(file_name)
        try:
            self.file = self._storage.open_for_upload(server_filename)
        except OSError as error:
            logger.error('Cannot create upload file: %s', server_filename)
            raise StorageError() from error
        self.server_filename = server_filename

    @override
    def receive_data_chunk(self, raw_data: bytes, start: int) -> None:
        """Append a chunk to the destination file.

        Args:
            raw_data: Chunk of file data.
            start: Offset of the chunk in the file.

        Raises:
            UploadSizeLimitError: If the file grows past the limit.
            StorageError: If the chunk cannot be written.
        """
        received_bytes = start + len(raw_data)
        if received_bytes > self._max_upload_size:
            logger.warning(
                'Upload exceeded %d bytes, discarding: %s',
                self._max_upload_size,
                self.server_filename,
            )
            self.abort()
            raise UploadSizeLimitError(self._max_upload_size, received_bytes)

        try:
            self.file.write(raw_data)  # type: ignore[union-attr]
        except OSError as error:
            logger.error('Cannot write upload file: %s', self.server_filename)
            self.abort()
            raise StorageError() from error

    @override
    def file_complete(self, file_size: int) -> StoredUpload:
        """Close the destination file and describe it.

        Args:
            file_size: Total bytes received.

        Returns:
            StoredUpload for request.FILES.
        """
        self.file.close()  # type: ignore[union-attr]
        logger.info(
            'Upload stored: %s (%d bytes)',
            self.server_filename,
            file_size,
        )
        return StoredUpload(
            file=self.file,  # type: ignore[arg-type]
            name=self.file_name,
            size=file_size,
            server_filename=self.server_filename,  # type: ignore[arg-type]
            content_type=self.content_type,
        )

    @override
    def upload_interrupted(self) -> None:
        """Remove the partial file when parsing stopped midway."""
        self.abort()

    def abort(self) -> None:
        """Close and delete whatever this handler has written.

        Safe to call more than once.
        """
        if self.file is not None:
            self.file.close()
        if self.server_filename and not self._aborted:
            self._aborted = True
            self._storage.rollback_upload(self.server_filename)
