"""Tests for the upload endpoint."""

import pytest

from server.apps.software.infrastructure.metadata_store import MetadataStore
from server.apps.software.infrastructure.storage import UploadStorage
from server.apps.software.logic.software_operations import get_metadata_store

UPLOAD_URL = '/api/software/upload'


def _stored_files(software_settings):
    return sorted(path.name for path in software_settings.upload_dir.iterdir())


class TestUploadSuccess:
    """Tests for accepted uploads."""

    def test_creates_record(
        self,
        client,
        software_settings,
        make_exe,
        upload_headers,
    ):
        """Test a valid upload stores the file and returns its record."""
        response = client.post(
            UPLOAD_URL,
            {
                'softwareFile': make_exe(),
                'softwareName': 'Installer',
                'softwareVersion': '2.1',
                'softwareDescription': 'Setup program',
            },
            headers=upload_headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body['message'] == 'Software uploaded successfully!'
        software = body['software']
        assert software['name'] == 'Installer'
        assert software['version'] == '2.1'
        assert software['description'] == 'Setup program'
        assert software['originalFilename'] == 'installer.exe'
        assert software['serverFilename'].endswith('.exe')
        assert software['uploadedAt'].endswith('Z')

        stored_path = software_settings.upload_dir / software['serverFilename']
        assert stored_path.read_bytes() == make_exe().read()
        assert software['size'] == stored_path.stat().st_size

        records = get_metadata_store(software_settings).read_all()
        assert [record.id for record in records] == [software['id']]

    def test_same_file_twice_gets_distinct_names(
        self,
        client,
        software_settings,
        make_exe,
        upload_headers,
    ):
        """Test repeated uploads never overwrite each other."""
        server_filenames = [
            client.post(
                UPLOAD_URL,
                {'softwareFile': make_exe(), 'softwareName': 'Installer'},
                headers=upload_headers,
            ).json()['software']['serverFilename']
            for _ in range(2)
        ]

        assert server_filenames[0] != server_filenames[1]
        assert _stored_files(software_settings) == sorted(server_filenames)

    def test_upper_case_extension(
        self,
        client,
        software_settings,
        make_exe,
        upload_headers,
    ):
        """Test the extension check ignores case."""
        response = client.post(
            UPLOAD_URL,
            {'softwareFile': make_exe('SETUP.EXE'), 'softwareName': 'Setup'},
            headers=upload_headers,
        )

        assert response.status_code == 201
        assert response.json()['software']['originalFilename'] == 'SETUP.EXE'


class TestUploadAuthorization:
    """Tests for the upload token check."""

    @pytest.mark.parametrize('headers', [{}, {'X-Upload-Token': 'wrong'}])
    def test_rejects_bad_token(
        self,
        client,
        software_settings,
        make_exe,
        headers,
    ):
        """Test missing or wrong tokens get a 401 and store nothing."""
        response = client.post(
            UPLOAD_URL,
            {'softwareFile': make_exe(), 'softwareName': 'Installer'},
            headers=headers,
        )

        assert response.status_code == 401
        assert response.json() == {
            'message': 'Unauthorized: Invalid or missing upload token.',
        }
        assert _stored_files(software_settings) == []

    def test_token_not_configured(
        self,
        client,
        settings,
        software_settings,
        make_exe,
        upload_headers,
    ):
        """Test uploads fail with a 500 when the server has no token."""
        settings.UPLOAD_TOKEN = ''

        response = client.post(
            UPLOAD_URL,
            {'softwareFile': make_exe(), 'softwareName': 'Installer'},
            headers=upload_headers,
        )

        assert response.status_code == 500
        assert response.json() == {
            'message': 'Server configuration error regarding upload token.',
        }

    def test_get_not_allowed(self, client, software_settings):
        """Test the upload route only accepts POST."""
        assert client.get(UPLOAD_URL).status_code == 405


class TestUploadValidation:
    """Tests for rejected uploads."""

    def test_rejects_other_extensions(
        self,
        client,
        software_settings,
        make_exe,
        upload_headers,
    ):
        """Test non-.exe files are refused before being stored."""
        response = client.post(
            UPLOAD_URL,
            {'softwareFile': make_exe('archive.zip'), 'softwareName': 'Zip'},
            headers=upload_headers,
        )

        assert response.status_code == 400
        assert response.json() == {'message': 'Only .exe files are allowed!'}
        assert _stored_files(software_settings) == []

    def test_missing_file(self, client, software_settings, upload_headers):
        """Test a request without a file part is refused."""
        response = client.post(
            UPLOAD_URL,
            {'softwareName': 'Installer'},
            headers=upload_headers,
        )

        assert response.status_code == 400
        assert response.json() == {'message': 'No file uploaded.'}

    def test_missing_name_removes_file(
        self,
        client,
        software_settings,
        make_exe,
        upload_headers,
    ):
        """Test the stored file is deleted when the name is missing."""
        response = client.post(
            UPLOAD_URL,
            {'softwareFile': make_exe()},
            headers=upload_headers,
        )

        assert response.status_code == 400
        assert response.json() == {'message': 'Software name is required.'}
        assert _stored_files(software_settings) == []
        assert get_metadata_store(software_settings).read_all() == []

    def test_unexpected_file_field(
        self,
        client,
        software_settings,
        make_exe,
        upload_headers,
    ):
        """Test files sent under another field name are refused."""
        response = client.post(
            UPLOAD_URL,
            {'attachment': make_exe(), 'softwareName': 'Installer'},
            headers=upload_headers,
        )

        assert response.status_code == 400
        assert response.json() == {
            'message': 'File upload error: Unexpected field attachment',
        }
        assert _stored_files(software_settings) == []

    def test_file_too_large(
        self,
        client,
        settings,
        software_settings,
        make_exe,
        upload_headers,
    ):
        """Test oversized uploads are refused and the partial file removed."""
        settings.SOFTWARE_MAX_UPLOAD_SIZE = 10

        response = client.post(
            UPLOAD_URL,
            {'softwareFile': make_exe(), 'softwareName': 'Installer'},
            headers=upload_headers,
        )

        assert response.status_code == 400
        assert response.json() == {
            'message': 'File upload error: File too large (limit: 10 bytes)',
        }
        assert _stored_files(software_settings) == []


def test_metadata_failure_rolls_back(
    client,
    software_settings,
    make_exe,
    upload_headers,
    monkeypatch,
):
    """Test a failed metadata write returns 500 and leaves no file."""
    def failing_write(self, records):  # noqa: WPS430
        raise OSError('disk full')

    monkeypatch.setattr(MetadataStore, '_write', failing_write)

    response = client.post(
        UPLOAD_URL,
        {'softwareFile': make_exe(), 'softwareName': 'Installer'},
        headers=upload_headers,
    )

    assert response.status_code == 500
    assert response.json() == {'message': 'Error saving software metadata.'}
    assert _stored_files(software_settings) == []


def test_undecodable_metadata_rolls_back(
    client,
    software_settings,
    make_exe,
    upload_headers,
):
    """Test a metadata file with invalid UTF-8 leaves no stored file."""
    software_settings.metadata_file.write_bytes(b'[\xff\xfe]')

    response = client.post(
        UPLOAD_URL,
        {'softwareFile': make_exe(), 'softwareName': 'Installer'},
        headers=upload_headers,
    )

    assert response.status_code == 500
    assert response.json() == {'message': 'Error saving software metadata.'}
    assert _stored_files(software_settings) == []


def test_unwritable_upload_dir(
    client,
    software_settings,
    make_exe,
    upload_headers,
    monkeypatch,
):
    """Test filesystem errors while storing give a generic JSON 500."""
    def failing_open(self, name):  # noqa: WPS430
        raise PermissionError(f'Permission denied: {name}')

    monkeypatch.setattr(UploadStorage, 'open_for_upload', failing_open)

    response = client.post(
        UPLOAD_URL,
        {'softwareFile': make_exe(), 'softwareName': 'Installer'},
        headers=upload_headers,
    )

    assert response.status_code == 500
    assert response['Content-Type'] == 'application/json'
    assert response.json() == {'message': 'Internal storage error.'}
    assert _stored_files(software_settings) == []
