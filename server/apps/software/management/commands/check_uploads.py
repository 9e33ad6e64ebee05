"""Management command to find uploads and records that do not match."""

import logging
from typing import Any, final, override

from django.core.management.base import BaseCommand, CommandError

from server.apps.software.conf import get_software_settings
from server.apps.software.exceptions import StorageError
from server.apps.software.logic.maintenance_operations import (
    delete_orphan_files,
    inspect_uploads,
)

logger = logging.getLogger(__name__)


@final
class Command(BaseCommand):
    """Report stored files without records and records without files."""

    help = (
        'Compare the upload directory with the metadata file. '
        'Run while no uploads are in progress when deleting orphans.'
    )

    @override
    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--delete-orphans',
            action='store_true',
            help='Delete stored files that have no metadata record',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without deleting',
        )

    @override
    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the check.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        software_settings = get_software_settings()

        try:
            report = inspect_uploads(software_settings)
        except StorageError as exc:
            raise CommandError(
                f'Cannot read metadata file {software_settings.metadata_file}',
            ) from exc

        for name in report.orphan_files:
            self.stdout.write(f'Orphaned file (no record): {name}')
        for record in report.missing_files:
            self.stdout.write(
                f'Missing file for record {record.id}: '
                f'{record.server_filename} ({record.name})',
            )

        if report.is_consistent:
            self.stdout.write(
                self.style.SUCCESS('Uploads and metadata are consistent'),
            )
            return

        if not options['delete_orphans']:
            self.stdout.write(
                self.style.WARNING(
                    f'Found {len(report.orphan_files)} orphaned file(s) '
                    f'and {len(report.missing_files)} record(s) without a file',
                ),
            )
            return

        if options['dry_run']:
            self.stdout.write(
                self.style.SUCCESS(
                    f'Would delete {len(report.orphan_files)} orphaned file(s)',
                ),
            )
            return

        deleted = delete_orphan_files(report.orphan_files, software_settings)
        failed = len(report.orphan_files) - deleted
        self.stdout.write(
            self.style.SUCCESS(
                f'Deleted {deleted} orphaned file(s), {failed} failed',
            ),
        )
