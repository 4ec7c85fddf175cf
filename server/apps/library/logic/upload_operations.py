"""Business logic for the upload registry (standalone files and links)."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from django.conf import settings
from django.core.files.base import File as DjangoFile
from django.core.files.storage import default_storage
from django.db import transaction
from django.db.models import Count, Sum

from server.apps.accounts.logic.permissions import (
    Actor,
    Operation,
    require_actor,
    require_permission,
)
from server.apps.library.infrastructure.metadata import (
    categorize_file,
    delivery_type,
    is_valid_url,
)
from server.apps.library.models import File
from server.common.exceptions import NotFoundError, ValidationError
from server.common.pagination import DEFAULT_LIMIT, Page, paginate

if TYPE_CHECKING:
    from server.apps.library.infrastructure.storage import (
        ObjectStorage,
        StoredObject,
    )

logger = logging.getLogger(__name__)

_UPLOAD_FOLDER: Final = 'uploads'


@dataclass(frozen=True)
class UploadStats:
    """Registry totals."""

    total_files: int
    total_size: int
    by_type: dict[str, int]


def _get_storage() -> 'ObjectStorage':
    """Get the configured default storage backend.

    Returns:
        ObjectStorage instance with proper S3 configuration.
    """
    return default_storage  # type: ignore[return-value]


def _build_file(
    upload: DjangoFile,
    stored: 'StoredObject',
    uploader: Actor,
) -> File:
    name = upload.name or stored.public_id
    return File(
        name=name,
        url=stored.url,
        public_id=stored.public_id,
        format=stored.format,
        size=stored.size,
        type=categorize_file(name),
        resource_type=delivery_type(name),
        uploaded_by_id=uploader.id,
    )


def upload_file(actor: Actor | None, upload: DjangoFile | None) -> File:
    """Upload a single payload and register it.

    Args:
        actor: Acting identity (member or above).
        upload: Named payload.

    Returns:
        Created File instance.

    Raises:
        ValidationError: If no payload is given.
        ExternalServiceError: If the upload fails.
    """
    uploader = require_actor(actor, Operation.FILE_UPLOAD)
    if upload is None:
        raise ValidationError('No file uploaded')

    storage = _get_storage()
    stored = storage.upload(upload, _UPLOAD_FOLDER)
    try:
        with transaction.atomic():
            file_instance = _build_file(upload, stored, uploader)
            file_instance.save()
    except Exception:
        logger.exception(
            'Database transaction failed, rolling back storage upload: %s',
            stored.public_id,
        )
        storage.rollback_upload(stored.public_id)
        raise

    logger.info(
        'File registered: %s (ID: %d)',
        file_instance.public_id,
        file_instance.pk,
    )
    return file_instance


def upload_files(
    actor: Actor | None,
    uploads: Sequence[DjangoFile],
) -> list[File]:
    """Upload several payloads concurrently and register all or none.

    Args:
        actor: Acting identity (member or above).
        uploads: 1..RESOURCE_BATCH_UPLOAD_LIMIT payloads.

    Returns:
        Created File instances in the order of ``uploads``.

    Raises:
        ValidationError: If the batch is empty or too large.
        ExternalServiceError: If any upload fails; nothing is registered.
    """
    uploader = require_actor(actor, Operation.FILE_UPLOAD)
    batch_limit = settings.RESOURCE_BATCH_UPLOAD_LIMIT
    if not uploads:
        raise ValidationError('No files uploaded')
    if len(uploads) > batch_limit:
        raise ValidationError(
            'Too many files',
            [f'at most {batch_limit} files per request'],
        )

    storage = _get_storage()
    stored_objects = storage.upload_many(uploads, _UPLOAD_FOLDER)
    try:
        with transaction.atomic():
            files = [
                _build_file(upload, stored, uploader)
                for upload, stored in zip(uploads, stored_objects, strict=True)
            ]
            for file_instance in files:
                file_instance.save()
    except Exception:
        logger.exception('Database transaction failed, rolling back batch upload')
        for stored in stored_objects:
            storage.rollback_upload(stored.public_id)
        raise

    logger.info('%d files registered by %d', len(files), uploader.id)
    return files


def add_link(
    actor: Actor | None,
    url: str,
    name: str | None = None,
) -> File:
    """Register an external link. Nothing goes to storage.

    Args:
        actor: Acting identity (member or above).
        url: Absolute http(s) URL.
        name: Display name, the URL itself when omitted.

    Returns:
        Created File instance.

    Raises:
        ValidationError: If the URL is missing or malformed.
    """
    uploader = require_actor(actor, Operation.FILE_UPLOAD)
    if not url or not is_valid_url(url.strip()):
        raise ValidationError('URL is required', ['a valid url is required'])

    clean_url = url.strip()
    file_instance = File.objects.create(
        name=(name or '').strip() or clean_url,
        url=clean_url,
        type=File.Type.LINK,
        resource_type=File.ResourceType.LINK,
        uploaded_by_id=uploader.id,
    )
    logger.info('Link registered: %s (ID: %d)', clean_url, file_instance.pk)
    return file_instance


def get_file(actor: Actor | None, file_id: int) -> File:
    """Fetch a registry entry.

    Args:
        actor: Acting identity (may be anonymous).
        file_id: ID of the entry.

    Returns:
        File instance.

    Raises:
        NotFoundError: If absent.
    """
    require_permission(actor, Operation.FILE_READ)
    try:
        return File.objects.get(pk=file_id)
    except File.DoesNotExist as error:
        raise NotFoundError('File not found') from error


def list_files(  # noqa: WPS211
    actor: Actor | None,
    file_type: str | None = None,
    resource_type: str | None = None,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
) -> Page[File]:
    """List registry entries, newest first.

    Args:
        actor: Acting identity (may be anonymous).
        file_type: Only this category.
        resource_type: Only this delivery type.
        page: 1-based page.
        limit: Page size.

    Returns:
        Page of files.
    """
    require_permission(actor, Operation.FILE_READ)
    files = File.objects.all()
    if file_type:
        files = files.filter(type=file_type)
    if resource_type:
        files = files.filter(resource_type=resource_type)
    return paginate(files.order_by('-created_at', '-id'), page, limit)


def get_upload_stats(actor: Actor | None) -> UploadStats:
    """Summarize the registry.

    Args:
        actor: Acting identity (co-manager).

    Returns:
        UploadStats.
    """
    require_permission(actor, Operation.FILE_STATS)
    totals = File.objects.aggregate(
        count=Count('id'),
        size=Sum('size', default=0),
    )
    by_type = {
        row['type']: row['count']
        for row in File.objects.values('type').annotate(
            count=Count('id'),
        ).order_by('type')
    }
    return UploadStats(
        total_files=totals['count'],
        total_size=totals['size'],
        by_type=by_type,
    )
