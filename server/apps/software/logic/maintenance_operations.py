"""Consistency checks between the upload directory and the metadata file.

Uploads that were interrupted, or whose rollback failed, can leave files
without a record behind. Records can also point at files that were
removed by hand. Nothing here ever touches the metadata file.
"""

import logging
from dataclasses import dataclass, field
from typing import final

from server.apps.software.conf import SoftwareSettings
from server.apps.software.logic.software_operations import (
    get_metadata_store,
    get_upload_storage,
)
from server.apps.software.models import SoftwareRecord

logger = logging.getLogger(__name__)


@final
@dataclass(frozen=True, slots=True)
class UploadsReport:
    """Result of comparing stored files with metadata records."""

    orphan_files: list[str] = field(default_factory=list)
    missing_files: list[SoftwareRecord] = field(default_factory=list)

    @property
    def is_consistent(self) -> bool:
        """True when every file has a record and vice versa."""
        return not self.orphan_files and not self.missing_files


def inspect_uploads(software_settings: SoftwareSettings) -> UploadsReport:
    """Compare the upload directory against the metadata records.

    Hidden files (names starting with a dot) are ignored.

    Args:
        software_settings: Current settings.

    Returns:
        UploadsReport listing orphans and records without a file.

    Raises:
        StorageError: If the metadata cannot be read.
    """
    records = get_metadata_store(software_settings).read_all()
    stored_names = [
        name
        for name in get_upload_storage(software_settings).stored_names()
        if not name.startswith('.')
    ]

    known_names = {record.server_filename for record in records}
    stored_set = set(stored_names)

    return UploadsReport(
        orphan_files=[name for name in stored_names if name not in known_names],
        missing_files=[
            record
            for record in records
            if record.server_filename not in stored_set
        ],
    )


def delete_orphan_files(
    orphan_files: list[str],
    software_settings: SoftwareSettings,
) -> int:
    """Delete stored files that have no metadata record.

    Args:
        orphan_files: Filenames reported by inspect_uploads.
        software_settings: Current settings.

    Returns:
        Number of files deleted.
    """
    storage = get_upload_storage(software_settings)
    deleted_count = 0
    for name in orphan_files:
        try:
            storage.delete(name)
        except OSError:
            # Already logged by the storage backend
            continue
        deleted_count += 1

    logger.info('Deleted %d orphaned upload(s)', deleted_count)
    return deleted_count
