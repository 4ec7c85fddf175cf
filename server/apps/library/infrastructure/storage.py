"""Custom storage backend for S3-compatible object storage."""

import logging
import uuid
from collections.abc import Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Final, final, override

from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    ReadTimeoutError,
)
from django.conf import settings
from django.core.files.base import File as DjangoFile
from storages.backends.s3 import S3Storage

from server.apps.library.infrastructure.metadata import (
    get_file_extension,
    get_file_size,
)
from server.common.exceptions import (
    ExternalServiceError,
    ExternalServiceTimeoutError,
)

logger = logging.getLogger(__name__)

_MAX_UPLOAD_WORKERS: Final = 5


@dataclass(frozen=True)
class StoredObject:
    """Result of an upload: where the object lives and what it is."""

    url: str
    public_id: str
    format: str
    size: int


@contextmanager
def _translate_errors(action: str, name: str) -> Iterator[None]:
    """Map botocore failures to the service error kinds.

    Args:
        action: Verb used in the error message.
        name: Storage key involved.

    Raises:
        ExternalServiceTimeoutError: If the call exceeded its timeout.
        ExternalServiceError: On any other storage failure.
    """
    try:
        yield
    except (ConnectTimeoutError, ReadTimeoutError) as error:
        logger.exception('Storage timed out while trying to %s: %s', action, name)
        raise ExternalServiceTimeoutError(
            f'Storage timed out while trying to {action} {name}',
        ) from error
    except (BotoCoreError, ClientError, S3UploadFailedError) as error:
        logger.exception('Failed to %s in storage: %s', action, name)
        raise ExternalServiceError(f'Failed to {action} {name}') from error


@final
class ObjectStorage(S3Storage):
    """S3 storage backend for resource files.

    Extends django-storages S3Storage with:
    - upload helpers returning the metadata resources persist
    - translation of botocore failures into ExternalServiceError
    - rollback support for failed DB operations
    """

    @override
    def save(
        self,
        name: str,
        content: Any,
        max_length: int | None = None,
    ) -> str:
        """Save object to S3 with error translation and logging.

        Args:
            name: Storage key for the object.
            content: File content (file-like object).
            max_length: Optional maximum length for the key.

        Returns:
            Actual key used (may differ from name if conflicts).
        """
        logger.info('Uploading object to storage: %s', name)
        with _translate_errors('upload', name):
            saved_name = super().save(name, content, max_length)
        logger.info('Successfully uploaded object: %s', saved_name)
        return saved_name

    @override
    def delete(self, name: str) -> None:
        """Delete object from S3 with error translation and logging.

        Args:
            name: Storage key of the object to delete.
        """
        logger.info('Deleting object from storage: %s', name)
        with _translate_errors('delete', name):
            super().delete(name)
        logger.info('Successfully deleted object: %s', name)

    def upload(self, content: DjangoFile, folder: str) -> StoredObject:
        """Upload a payload under ``<prefix>/<folder>/``.

        Args:
            content: Named file-like payload.
            folder: Logical folder inside the bucket.

        Returns:
            StoredObject describing the stored payload.

        Raises:
            ExternalServiceError: If the upload fails.
        """
        original_name = content.name or 'upload'
        extension = get_file_extension(original_name)
        key = '{prefix}/{folder}/{token}{suffix}'.format(
            prefix=settings.RESOURCE_STORAGE_PREFIX,
            folder=folder.strip('/'),
            token=uuid.uuid4().hex,
            suffix=f'.{extension}' if extension else '',
        )
        size = get_file_size(content)
        saved_name = self.save(key, content)
        return StoredObject(
            url=self.url(saved_name),
            public_id=saved_name,
            format=extension,
            size=size,
        )

    def upload_many(
        self,
        contents: Sequence[DjangoFile],
        folder: str,
    ) -> list[StoredObject]:
        """Upload payloads concurrently, all or nothing.

        If any upload fails, objects already stored by this batch are
        rolled back and the first failure is raised.

        Args:
            contents: Payloads to upload.
            folder: Logical folder inside the bucket.

        Returns:
            StoredObjects in the order of ``contents``.
        """
        workers = min(_MAX_UPLOAD_WORKERS, len(contents)) or 1
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(self.upload, content, folder)
                for content in contents
            ]
        # Executor exit waits for every future
        stored = [
            future.result() for future in futures if future.exception() is None
        ]
        failures = [
            future.exception() for future in futures
            if future.exception() is not None
        ]
        if failures:
            logger.warning(
                'Batch upload failed (%d of %d), rolling back %d objects',
                len(failures),
                len(contents),
                len(stored),
            )
            for stored_object in stored:
                self.rollback_upload(stored_object.public_id)
            raise failures[0]
        return stored

    def destroy(self, public_id: str) -> None:
        """Delete an object by its public identifier.

        Args:
            public_id: Key returned by ``upload``.
        """
        self.delete(public_id)

    def rollback_upload(self, name: str) -> None:
        """Delete uploaded object for DB transaction rollback.

        This is a best-effort operation: if deletion fails, the error
        is logged but not raised, as the DB rollback has already occurred.

        Args:
            name: Storage key of the object to delete.
        """
        try:
            logger.warning('Rolling back upload, deleting object: %s', name)
            self.delete(name)
        except ExternalServiceError:
            # The object stays in the bucket without a DB row
            logger.exception(
                'Failed to rollback upload, orphaned object: %s',
                name,
            )
