"""Tests for the upload registry."""

from unittest import mock

import pytest
from django.core.files.base import ContentFile

from server.apps.library.infrastructure.storage import ObjectStorage
from server.apps.library.logic.upload_operations import (
    add_link,
    get_file,
    get_upload_stats,
    list_files,
    upload_file,
    upload_files,
)
from server.apps.library.models import File
from server.common.exceptions import (
    AuthorizationError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)


@pytest.mark.django_db
class TestUploadFile:
    """Tests for upload_file function."""

    def test_upload_registers_file(self, member, mock_s3, sample_upload, bucket_keys):
        """Test a payload is stored and categorized."""
        file_instance = upload_file(member, sample_upload)

        assert file_instance.name == 'slides.pdf'
        assert file_instance.type == File.Type.PDF
        assert file_instance.resource_type == File.ResourceType.RAW
        assert file_instance.public_id.startswith('resource-hub/uploads/')
        assert file_instance.uploaded_by_id == member.id
        assert bucket_keys() == [file_instance.public_id]

    def test_image_delivery_type(self, member, mock_s3):
        """Test images are categorized as images for delivery."""
        file_instance = upload_file(member, ContentFile(b'png', name='logo.png'))

        assert file_instance.type == File.Type.IMAGE
        assert file_instance.resource_type == File.ResourceType.IMAGE

    def test_missing_payload(self, member):
        """Test no payload is a validation error."""
        with pytest.raises(ValidationError, match='No file uploaded'):
            upload_file(member, None)

    def test_visitor_cannot_upload(self, visitor, sample_upload):
        """Test visitors cannot upload."""
        with pytest.raises(AuthorizationError):
            upload_file(visitor, sample_upload)

    def test_db_failure_rolls_back(self, member, mock_s3, sample_upload, bucket_keys):
        """Test the stored object is removed when registration fails."""
        with mock.patch.object(File, 'save', side_effect=RuntimeError('db down')):
            with pytest.raises(RuntimeError):
                upload_file(member, sample_upload)

        assert bucket_keys() == []
        assert not File.objects.exists()


@pytest.mark.django_db
class TestUploadFiles:
    """Tests for upload_files function."""

    def test_batch_registers_in_order(self, member, mock_s3):
        """Test every payload is registered in input order."""
        uploads = [
            ContentFile(b'a', name='a.csv'),
            ContentFile(b'b', name='b.zip'),
        ]

        files = upload_files(member, uploads)

        assert [item.name for item in files] == ['a.csv', 'b.zip']
        assert [item.type for item in files] == [
            File.Type.SPREADSHEET,
            File.Type.ARCHIVE,
        ]

    def test_batch_failure_registers_nothing(self, member, mock_s3, bucket_keys):
        """Test a failed upload leaves neither rows nor objects."""
        original_upload = ObjectStorage.upload

        def flaky_upload(storage, content, folder):
            if content.name == 'bad.txt':
                raise ExternalServiceError('upload failed')
            return original_upload(storage, content, folder)

        uploads = [
            ContentFile(b'a', name='a.txt'),
            ContentFile(b'b', name='bad.txt'),
        ]
        with mock.patch.object(ObjectStorage, 'upload', flaky_upload):
            with pytest.raises(ExternalServiceError):
                upload_files(member, uploads)

        assert not File.objects.exists()
        assert bucket_keys() == []

    def test_empty_batch(self, member):
        """Test an empty batch is rejected."""
        with pytest.raises(ValidationError):
            upload_files(member, [])


@pytest.mark.django_db
class TestLinksAndReads:
    """Tests for links, lookup, listing and stats."""

    def test_add_link(self, member):
        """Test links are registered without touching storage."""
        with mock.patch.object(ObjectStorage, 'upload') as upload:
            link = add_link(member, 'https://example.com/board', name='Board')

        upload.assert_not_called()
        assert link.type == File.Type.LINK
        assert link.resource_type == File.ResourceType.LINK
        assert link.public_id == ''
        assert link.name == 'Board'

    def test_add_link_defaults_name(self, member):
        """Test the URL doubles as the name."""
        link = add_link(member, 'https://example.com/board')

        assert link.name == 'https://example.com/board'

    def test_add_link_invalid(self, member):
        """Test a malformed URL is rejected."""
        with pytest.raises(ValidationError):
            add_link(member, 'ftp://example.com/file')

    def test_get_file_missing(self, db):
        """Test unknown entries are not found."""
        with pytest.raises(NotFoundError, match='File not found'):
            get_file(None, 999)

    def test_list_filters_by_type(self, member):
        """Test listing filters by category."""
        add_link(member, 'https://example.com/one')
        add_link(member, 'https://example.com/two')

        assert list_files(None, file_type=File.Type.LINK).total == 2
        assert list_files(None, file_type=File.Type.PDF).total == 0

    def test_stats_for_co_manager(self, member, co_manager):
        """Test stats summarize count, size and categories."""
        add_link(member, 'https://example.com/one')
        File.objects.create(
            name='a.pdf',
            url='https://cdn.example.com/a.pdf',
            public_id='resource-hub/uploads/a.pdf',
            format='pdf',
            size=100,
            type=File.Type.PDF,
            resource_type=File.ResourceType.RAW,
        )

        stats = get_upload_stats(co_manager)

        assert stats.total_files == 2
        assert stats.total_size == 100
        assert stats.by_type == {'link': 1, 'pdf': 1}

    def test_stats_forbidden_for_member(self, member):
        """Test members cannot read registry stats."""
        with pytest.raises(AuthorizationError):
            get_upload_stats(member)
