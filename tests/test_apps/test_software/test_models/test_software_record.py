"""Tests for SoftwareRecord data model."""

import re
import uuid
from datetime import UTC, datetime

import pytest

from server.apps.software.models import (
    SoftwareRecord,
    format_timestamp,
    parse_timestamp,
)

_ISO_MILLIS = re.compile(r'^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$')


def _payload(**overrides):
    payload = {
        'id': 'b1f4c0de-0000-4000-8000-000000000001',
        'name': 'App',
        'version': '1.0',
        'description': 'Installer',
        'originalFilename': 'setup.exe',
        'serverFilename': 'b2e7.exe',
        'uploadedAt': '2024-05-01T10:15:30.123Z',
        'size': 42,
    }
    payload.update(overrides)
    return payload


def test_create_generates_id_and_timestamp():
    """Test new records get a UUID and a millisecond UTC timestamp."""
    record = SoftwareRecord.create(
        name='App',
        original_filename='setup.exe',
        server_filename='abc.exe',
        size=10,
    )

    assert uuid.UUID(record.id).version == 4
    assert _ISO_MILLIS.match(record.uploaded_at)
    assert record.version == ''
    assert record.description == ''


def test_create_ids_are_unique():
    """Test two records never share an id."""
    first = SoftwareRecord.create(
        name='App',
        original_filename='a.exe',
        server_filename='a.exe',
        size=1,
    )
    second = SoftwareRecord.create(
        name='App',
        original_filename='a.exe',
        server_filename='b.exe',
        size=1,
    )

    assert first.id != second.id


def test_to_json_uses_camel_case_keys():
    """Test JSON shape matches the stored metadata format."""
    record = SoftwareRecord.from_json(_payload())

    assert record.to_json() == _payload()


def test_from_json_defaults_optional_fields():
    """Test missing optional keys become empty values."""
    payload = {'id': '1', 'name': 'App', 'serverFilename': 'x.exe'}

    record = SoftwareRecord.from_json(payload)

    assert record.version == ''
    assert record.description == ''
    assert record.original_filename == ''
    assert record.size == 0


def test_from_json_ignores_unknown_keys():
    """Test extra keys in stored entries are dropped."""
    record = SoftwareRecord.from_json(_payload(downloads=5))

    assert 'downloads' not in record.to_json()


def test_from_json_missing_required_key():
    """Test entries without serverFilename are rejected."""
    payload = _payload()
    del payload['serverFilename']

    with pytest.raises(ValueError, match='Missing required key'):
        SoftwareRecord.from_json(payload)


def test_from_json_not_an_object():
    """Test non-object entries are rejected."""
    with pytest.raises(ValueError, match='Expected a JSON object'):
        SoftwareRecord.from_json(['not', 'a', 'record'])


def test_from_json_bad_size():
    """Test a non-numeric size is rejected."""
    with pytest.raises(ValueError):
        SoftwareRecord.from_json(_payload(size='big'))


def test_format_timestamp():
    """Test timestamps are rendered like JavaScript's toISOString."""
    moment = datetime(2024, 5, 1, 10, 15, 30, 123456, tzinfo=UTC)

    assert format_timestamp(moment) == '2024-05-01T10:15:30.123Z'


def test_parse_timestamp_round_trip():
    """Test formatted timestamps parse back to the same moment."""
    moment = datetime(2024, 5, 1, 10, 15, 30, 123000, tzinfo=UTC)

    assert parse_timestamp(format_timestamp(moment)) == moment


def test_parse_timestamp_invalid_sorts_oldest():
    """Test unparseable timestamps become the oldest moment."""
    assert parse_timestamp('yesterday') == datetime.min.replace(tzinfo=UTC)
    assert parse_timestamp('') == datetime.min.replace(tzinfo=UTC)
