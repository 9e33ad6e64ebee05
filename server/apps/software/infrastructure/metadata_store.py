"""Flat JSON file holding every software record.

The file is a JSON array in insertion order. There is no partial update:
every change reads the whole array, modifies it in memory and writes the
whole array back.
"""

import json
import logging
import os
import tempfile
import threading
from collections.abc import Sequence
from pathlib import Path
from typing import Final, final

from server.apps.software.exceptions import StorageError
from server.apps.software.models import SoftwareRecord

logger = logging.getLogger(__name__)

_JSON_INDENT: Final = 2
_ENCODING: Final = 'utf-8'

# One lock per metadata file, shared by every store instance in the process
_locks: dict[Path, threading.Lock] = {}
_locks_guard: Final = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    key = path.resolve()
    with _locks_guard:
        return _locks.setdefault(key, threading.Lock())


@final
class MetadataStore:
    """Reads and writes the metadata file.

    Nothing is cached: every call round-trips to the filesystem.
    """

    def __init__(self, path: Path) -> None:
        """Initialize store for the given metadata file.

        Args:
            path: Location of the JSON metadata file.
        """
        self._path = path

    @property
    def path(self) -> Path:
        """Location of the metadata file."""
        return self._path

    def ensure_exists(self) -> None:
        """Create the metadata file with an empty array if it is missing.

        Raises:
            StorageError: If the directory or file cannot be created.
        """
        with _lock_for(self._path):
            if self._path.exists():
                return
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as error:
                logger.exception(
                    'Failed to create metadata directory: %s',
                    self._path.parent,
                )
                raise StorageError() from error
            self._write(())
            logger.info('Created empty metadata file: %s', self._path)

    def read_all(self) -> list[SoftwareRecord]:
        """Read every record, in insertion order.

        Returns:
            List of records. Empty if the file does not exist.

        Raises:
            StorageError: If the file cannot be read or parsed.
        """
        try:
            raw_data = self._path.read_bytes()
        except FileNotFoundError:
            return []
        except OSError as error:
            logger.exception('Failed to read metadata file: %s', self._path)
            raise StorageError() from error

        try:
            # UnicodeDecodeError is a ValueError too
            payload = json.loads(raw_data.decode(_ENCODING))
            if not isinstance(payload, list):
                raise ValueError('Metadata file must contain a JSON array')
            return [SoftwareRecord.from_json(entry) for entry in payload]
        except ValueError as error:
            logger.exception('Failed to parse metadata file: %s', self._path)
            raise StorageError() from error

    def write_all(self, records: Sequence[SoftwareRecord]) -> None:
        """Replace the whole file with the given records.

        Args:
            records: Every record to keep, in order.

        Raises:
            StorageError: If the file cannot be written.
        """
        with _lock_for(self._path):
            self._write(records)

    def append(self, record: SoftwareRecord) -> None:
        """Add one record at the end of the file.

        The read-modify-write cycle holds the per-file lock, so
        concurrent appends within this process cannot lose records.

        Args:
            record: Record to add.

        Raises:
            StorageError: If reading or writing the file fails.
        """
        with _lock_for(self._path):
            records = self.read_all()
            records.append(record)
            self._write(records)
        logger.info(
            'Appended record %s to metadata (%d total)',
            record.id,
            len(records),
        )

    def find_by_server_filename(
        self,
        server_filename: str,
    ) -> SoftwareRecord | None:
        """Find the record describing a stored file.

        Args:
            server_filename: Stored filename.

        Returns:
            First matching record, or None.

        Raises:
            StorageError: If the file cannot be read or parsed.
        """
        for record in self.read_all():
            if record.server_filename == server_filename:
                return record
        return None

    def _write(self, records: Sequence[SoftwareRecord]) -> None:
        payload = json.dumps(
            [record.to_json() for record in records],
            indent=_JSON_INDENT,
            ensure_ascii=False,
        )

        try:
            fd, temp_name = tempfile.mkstemp(
                dir=self._path.parent,
                prefix=f'.{self._path.name}.',
                suffix='.tmp',
            )
        except OSError as error:
            logger.exception('Failed to write metadata file: %s', self._path)
            raise StorageError() from error

        try:
            with os.fdopen(fd, 'w', encoding=_ENCODING) as temp_file:
                temp_file.write(payload)
                temp_file.flush()
                os.fsync(temp_file.fileno())
            os.replace(temp_name, self._path)
        except OSError as error:
            logger.exception('Failed to write metadata file: %s', self._path)
            self._discard_temp(temp_name)
            raise StorageError() from error

    def _discard_temp(self, temp_name: str) -> None:
        try:
            Path(temp_name).unlink(missing_ok=True)
        except OSError:
            logger.exception('Failed to remove temporary file: %s', temp_name)
