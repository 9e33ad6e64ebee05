"""Data models for software app.

Records are not stored in a database. They live in a single JSON array
managed by ``MetadataStore``, so the model here is a plain dataclass
that knows how to convert itself to and from that JSON shape.
"""

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Final, Self, final

from django.utils import timezone

# Oldest possible timestamp, used to sort broken entries last
_UNKNOWN_TIMESTAMP: Final = datetime.min.replace(tzinfo=UTC)


def format_timestamp(moment: datetime) -> str:
    """Format a moment as ISO 8601 UTC with millisecond precision.

    Example: 2024-05-01T10:15:30.123Z

    Args:
        moment: Timezone-aware datetime.

    Returns:
        ISO 8601 string with a ``Z`` suffix.
    """
    utc_moment = moment.astimezone(UTC)
    return utc_moment.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def parse_timestamp(raw_value: str) -> datetime:
    """Parse a stored ``uploadedAt`` value.

    Args:
        raw_value: ISO 8601 string.

    Returns:
        Timezone-aware datetime. Unparseable values become the
        oldest possible moment instead of failing.
    """
    try:
        parsed = datetime.fromisoformat(raw_value)
    except (TypeError, ValueError):
        return _UNKNOWN_TIMESTAMP
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed


@final
@dataclass(frozen=True, slots=True)
class SoftwareRecord:
    """One uploaded software package.

    ``server_filename`` is the on-disk key inside the upload directory,
    ``original_filename`` is only used to name downloads.
    """

    id: str  # noqa: WPS125
    name: str
    version: str
    description: str
    original_filename: str
    server_filename: str
    uploaded_at: str
    size: int

    @classmethod
    def create(  # noqa: WPS211
        cls,
        *,
        name: str,
        original_filename: str,
        server_filename: str,
        size: int,
        version: str = '',
        description: str = '',
    ) -> Self:
        """Build a brand new record with a fresh id and timestamp.

        Args:
            name: Software name.
            original_filename: Filename as sent by the uploader.
            server_filename: Generated name of the stored file.
            size: Stored file size in bytes.
            version: Optional version string.
            description: Optional description.

        Returns:
            New SoftwareRecord.
        """
        return cls(
            id=str(uuid.uuid4()),
            name=name,
            version=version,
            description=description,
            original_filename=original_filename,
            server_filename=server_filename,
            uploaded_at=format_timestamp(timezone.now()),
            size=size,
        )

    @classmethod
    def from_json(cls, payload: Any) -> Self:
        """Build a record from one element of the metadata array.

        Unknown keys are ignored, optional keys default to empty values.

        Args:
            payload: Decoded JSON object.

        Returns:
            SoftwareRecord instance.

        Raises:
            ValueError: If payload is not an object or lacks required keys.
        """
        if not isinstance(payload, dict):
            raise ValueError(f'Expected a JSON object, got {type(payload).__name__}')

        try:
            return cls(
                id=str(payload['id']),
                name=str(payload['name']),
                version=str(payload.get('version') or ''),
                description=str(payload.get('description') or ''),
                original_filename=str(payload.get('originalFilename') or ''),
                server_filename=str(payload['serverFilename']),
                uploaded_at=str(payload.get('uploadedAt') or ''),
                size=int(payload.get('size') or 0),
            )
        except KeyError as error:
            raise ValueError(f'Missing required key: {error}') from error
        except TypeError as error:
            raise ValueError(f'Malformed software record: {error}') from error

    def to_json(self) -> dict[str, Any]:
        """Convert to the JSON object stored on disk and sent to clients."""
        return {
            'id': self.id,
            'name': self.name,
            'version': self.version,
            'description': self.description,
            'originalFilename': self.original_filename,
            'serverFilename': self.server_filename,
            'uploadedAt': self.uploaded_at,
            'size': self.size,
        }

    def uploaded_at_datetime(self) -> datetime:
        """Upload time as a datetime, for ordering."""
        return parse_timestamp(self.uploaded_at)
