"""Business logic for resource operations.

Transaction safety follows one rule everywhere: upload to storage
first, then write the database. If the write fails, the upload is
rolled back. Deleting superseded objects is best-effort.
"""

import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any, Final

from django.conf import settings
from django.core.files.base import File as DjangoFile
from django.core.files.storage import default_storage
from django.db import transaction
from django.db.models import Q, QuerySet

from server.apps.accounts.logic.permissions import (
    Actor,
    Operation,
    require_actor,
    require_permission,
)
from server.apps.library.infrastructure.metadata import (
    is_valid_url,
    normalize_list,
    normalize_tags,
)
from server.apps.library.logic.tracking_operations import increment_views
from server.apps.library.models import (
    Department,
    Folder,
    Resource,
    ResourceFile,
    Tag,
)
from server.common.exceptions import (
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)
from server.common.pagination import DEFAULT_LIMIT, Page, paginate

if TYPE_CHECKING:
    from server.apps.library.infrastructure.storage import ObjectStorage

logger = logging.getLogger(__name__)

# Distinguishes "leave folder alone" from "clear folder" (None)
_UNSET: Final[Any] = object()

_SORT_FIELDS: Final = {
    'created': 'uploaded_at',
    'title': 'title',
    'views': 'views',
    'downloads': 'downloads',
}


def _get_storage() -> 'ObjectStorage':
    """Get the configured default storage backend.

    Returns:
        ObjectStorage instance with proper S3 configuration.
    """
    return default_storage  # type: ignore[return-value]


def _storage_folder(department: Department) -> str:
    return f'resources/{department.slug}'


def _get_active_resource(resource_id: int) -> Resource:
    try:
        return Resource.objects.select_related('department', 'folder').get(
            pk=resource_id,
        )
    except Resource.DoesNotExist as error:
        raise NotFoundError('Resource not found') from error


def _get_department(department_id: int) -> Department:
    try:
        return Department.objects.get(pk=department_id)
    except Department.DoesNotExist as error:
        raise NotFoundError('Department not found') from error


def _get_folder(folder_id: int) -> Folder:
    try:
        return Folder.objects.get(pk=folder_id)
    except Folder.DoesNotExist as error:
        raise NotFoundError('Folder not found') from error


def _set_tags(resource: Resource, names: Iterable[str]) -> None:
    tags = [Tag.objects.get_or_create(name=name)[0] for name in names]
    resource.tags.set(tags)


def _validate_new_resource(  # noqa: WPS211
    title: str | None,
    resource_type: str | None,
    department_id: int | None,
    url: str | None,
    upload: DjangoFile | None,
    link_type: str | None,
) -> None:
    errors = []
    if not title or not title.strip():
        errors.append('title is required')
    if resource_type not in Resource.Type.values:
        errors.append('type must be one of: file, link')
    if department_id is None:
        errors.append('department is required')
    if resource_type == Resource.Type.FILE and upload is None:
        errors.append('a file upload is required for file resources')
    if resource_type == Resource.Type.LINK:
        if not url or not is_valid_url(url.strip()):
            errors.append('a valid url is required for link resources')
        if link_type and link_type not in Resource.LinkType.values:
            errors.append('invalid link type')
    if errors:
        raise ValidationError('Validation error', errors)


def create_resource(  # noqa: WPS211
    actor: Actor | None,
    title: str,
    resource_type: str,
    department_id: int | None,
    description: str = '',
    url: str | None = None,
    upload: DjangoFile | None = None,
    link_type: str | None = None,
    folder_id: int | None = None,
    tags: str | Iterable[str] | None = None,
    contributors: str | Iterable[str] | None = None,
) -> Resource:
    """Create a file or link resource.

    Input is validated before any storage I/O. Department and folder
    counters are not touched. The folder may belong to another
    department, as after a cross-department folder reassignment.

    Args:
        actor: Acting identity (member or above), becomes the uploader.
        title: Title.
        resource_type: 'file' or 'link', fixed for the resource lifetime.
        department_id: ID of an active department.
        description: Free text.
        url: Target of a link resource.
        upload: Payload of a file resource.
        link_type: Kind of link, 'other' when omitted.
        folder_id: Optional active folder.
        tags: List or comma-separated string.
        contributors: List or comma-separated string.

    Returns:
        Created Resource instance.

    Raises:
        ValidationError: If required input is missing or malformed.
        NotFoundError: If the department or folder is absent or inactive.
        ExternalServiceError: If the upload fails.
    """
    uploader = require_actor(actor, Operation.RESOURCE_CREATE)
    _validate_new_resource(
        title,
        resource_type,
        department_id,
        url,
        upload,
        link_type,
    )
    department = _get_department(department_id)  # type: ignore[arg-type]
    folder = _get_folder(folder_id) if folder_id is not None else None

    fields: dict[str, Any] = {
        'title': title.strip(),
        'description': (description or '').strip(),
        'type': resource_type,
        'department': department,
        'folder': folder,
        'uploaded_by_id': uploader.id,
        'contributors': normalize_list(contributors),
    }

    storage = _get_storage()
    stored = None
    if resource_type == Resource.Type.FILE:
        stored = storage.upload(upload, _storage_folder(department))  # type: ignore[arg-type]
        fields.update(
            url=stored.url,
            public_id=stored.public_id,
            format=stored.format,
            size=stored.size,
        )
    else:
        fields.update(
            url=url.strip(),  # type: ignore[union-attr]
            link_type=link_type or Resource.LinkType.OTHER,
        )

    try:
        with transaction.atomic():
            resource = Resource.objects.create(**fields)
            _set_tags(resource, normalize_tags(tags))
    except Exception:
        if stored is not None:
            logger.exception(
                'Database transaction failed, rolling back storage upload: %s',
                stored.public_id,
            )
            storage.rollback_upload(stored.public_id)
        raise

    logger.info(
        'Resource created: %s (%s, ID: %d) by %d',
        resource.title,
        resource.type,
        resource.pk,
        uploader.id,
    )
    return resource


def list_resources(  # noqa: WPS211
    actor: Actor | None,
    department_id: int | None = None,
    folder_id: int | None = None,
    resource_type: str | None = None,
    tags: str | Iterable[str] | None = None,
    uploaded_by_id: int | None = None,
    search: str | None = None,
    sort_by: str = 'created',
    order: str = 'desc',
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
) -> Page[Resource]:
    """List active resources.

    Args:
        actor: Acting identity (may be anonymous).
        department_id: Only this department.
        folder_id: Only this folder.
        resource_type: 'file' or 'link'.
        tags: Resources carrying any of these tags.
        uploaded_by_id: Only this uploader.
        search: Case-insensitive match on title or description.
        sort_by: created, title, views or downloads.
        order: asc or desc.
        page: 1-based page.
        limit: Page size.

    Returns:
        Page of resources.

    Raises:
        ValidationError: If the sort field or order is unknown.
    """
    require_permission(actor, Operation.RESOURCE_READ)
    if sort_by not in _SORT_FIELDS or order not in {'asc', 'desc'}:
        raise ValidationError(
            'Invalid sort',
            [f'sort_by must be one of: {", ".join(_SORT_FIELDS)}'],
        )

    resources: QuerySet[Resource] = Resource.objects.select_related(
        'department',
        'folder',
        'uploaded_by',
    ).prefetch_related('tags')
    if department_id is not None:
        resources = resources.filter(department_id=department_id)
    if folder_id is not None:
        resources = resources.filter(folder_id=folder_id)
    if resource_type:
        resources = resources.filter(type=resource_type)
    if uploaded_by_id is not None:
        resources = resources.filter(uploaded_by_id=uploaded_by_id)
    tag_names = normalize_tags(tags)
    if tag_names:
        resources = resources.filter(tags__name__in=tag_names).distinct()
    if search:
        resources = resources.filter(
            Q(title__icontains=search) | Q(description__icontains=search),
        )

    field = _SORT_FIELDS[sort_by]
    prefix = '-' if order == 'desc' else ''
    return paginate(
        resources.order_by(f'{prefix}{field}', f'{prefix}id'),
        page,
        limit,
    )


def get_resource(actor: Actor | None, resource_id: int) -> Resource:
    """Fetch an active resource, counting the view.

    Args:
        actor: Acting identity (may be anonymous).
        resource_id: ID of the resource.

    Returns:
        Resource instance with the incremented view count.

    Raises:
        NotFoundError: If absent or inactive.
    """
    require_permission(actor, Operation.RESOURCE_READ)
    increment_views(actor, resource_id)
    return _get_active_resource(resource_id)


def update_resource(  # noqa: C901, WPS231
    actor: Actor | None,
    resource_id: int,
    upload: DjangoFile | None = None,
    folder_id: Any = _UNSET,
    **changes: Any,
) -> Resource:
    """Update a resource owned by the actor (co-managers: any resource).

    ``type`` and ``files`` are never changed here. A new upload on a
    file resource replaces the stored object; the old object is
    deleted afterwards, best-effort.
    Department and folder change independently of each other.

    Args:
        actor: Acting identity.
        resource_id: ID of the resource.
        upload: Replacement payload (file resources only).
        folder_id: New folder, None to clear.
        changes: Any of title, description, department_id, url,
            link_type, tags, contributors.

    Returns:
        Updated Resource instance.

    Raises:
        NotFoundError: If the resource, department or folder is absent.
        ValidationError: If a new value is malformed.
        ExternalServiceError: If the replacement upload fails.
    """
    resource = _get_active_resource(resource_id)
    require_permission(actor, Operation.RESOURCE_UPDATE, resource)

    if changes.pop('type', None) not in {None, resource.type}:
        logger.debug('Ignoring type change on resource %d', resource.pk)

    title = changes.get('title')
    if title is not None:
        if not title.strip():
            raise ValidationError('Validation error', ['title cannot be empty'])
        resource.title = title.strip()
    if changes.get('description') is not None:
        resource.description = changes['description'].strip()
    if changes.get('department_id') is not None:
        resource.department = _get_department(changes['department_id'])
    if folder_id is not _UNSET:
        resource.folder = _get_folder(folder_id) if folder_id is not None else None

    if resource.type == Resource.Type.LINK:
        url = changes.get('url')
        if url:
            if not is_valid_url(url.strip()):
                raise ValidationError('Validation error', ['invalid url'])
            resource.url = url.strip()
        link_type = changes.get('link_type')
        if link_type:
            if link_type not in Resource.LinkType.values:
                raise ValidationError('Validation error', ['invalid link type'])
            resource.link_type = link_type
        if upload is not None:
            logger.debug('Ignoring upload on link resource %d', resource.pk)

    if 'contributors' in changes:
        resource.contributors = normalize_list(changes['contributors'])

    storage = _get_storage()
    stored = None
    old_public_id = resource.public_id
    if upload is not None and resource.type == Resource.Type.FILE:
        stored = storage.upload(upload, _storage_folder(resource.department))
        resource.url = stored.url
        resource.public_id = stored.public_id
        resource.format = stored.format
        resource.size = stored.size

    try:
        with transaction.atomic():
            resource.save()
            if 'tags' in changes:
                _set_tags(resource, normalize_tags(changes['tags']))
    except Exception:
        if stored is not None:
            logger.exception('DB update failed, rolling back')
            storage.rollback_upload(stored.public_id)
        raise

    if stored is not None and old_public_id:
        try:
            storage.destroy(old_public_id)
        except ExternalServiceError:
            logger.exception('Failed to delete old content: %s', old_public_id)

    logger.info('Resource updated: ID=%d', resource.pk)
    return resource


def delete_resource(actor: Actor | None, resource_id: int) -> None:
    """Soft-delete a resource. Stored objects are kept.

    Args:
        actor: Acting identity.
        resource_id: ID of the resource.

    Raises:
        NotFoundError: If absent or already inactive.
    """
    resource = _get_active_resource(resource_id)
    require_permission(actor, Operation.RESOURCE_DELETE, resource)
    Resource.all_objects.filter(pk=resource.pk).update(is_active=False)
    logger.info('Resource deactivated: ID=%d', resource.pk)


def add_files_to_resource(
    actor: Actor | None,
    resource_id: int,
    uploads: Sequence[DjangoFile],
) -> list[ResourceFile]:
    """Attach a batch of uploaded files to a resource, all or nothing.

    Args:
        actor: Acting identity.
        resource_id: ID of the resource.
        uploads: 1..RESOURCE_BATCH_UPLOAD_LIMIT payloads.

    Returns:
        Every sub-file of the resource after the attach.

    Raises:
        ValidationError: If the batch is empty or too large.
        ExternalServiceError: If any upload fails; nothing is attached.
    """
    resource = _get_active_resource(resource_id)
    require_permission(actor, Operation.RESOURCE_ATTACH_FILES, resource)

    batch_limit = settings.RESOURCE_BATCH_UPLOAD_LIMIT
    if not uploads:
        raise ValidationError('No files uploaded')
    if len(uploads) > batch_limit:
        raise ValidationError(
            'Too many files',
            [f'at most {batch_limit} files per request'],
        )

    storage = _get_storage()
    stored_objects = storage.upload_many(
        uploads,
        _storage_folder(resource.department),
    )

    try:
        with transaction.atomic():
            ResourceFile.objects.bulk_create([
                ResourceFile(
                    resource=resource,
                    url=stored.url,
                    public_id=stored.public_id,
                    format=stored.format,
                    size=stored.size,
                )
                for stored in stored_objects
            ])
    except Exception:
        logger.exception('Database transaction failed, rolling back batch upload')
        for stored in stored_objects:
            storage.rollback_upload(stored.public_id)
        raise

    logger.info(
        '%d file(s) added to resource %d',
        len(stored_objects),
        resource.pk,
    )
    return list(resource.files.all())


def remove_file_from_resource(
    actor: Actor | None,
    resource_id: int,
    file_id: int,
) -> None:
    """Detach a sub-file and delete its stored object best-effort.

    Args:
        actor: Acting identity.
        resource_id: ID of the resource.
        file_id: ID of the sub-file.

    Raises:
        NotFoundError: If the resource or the sub-file does not exist,
            including a second detach of the same sub-file.
    """
    resource = _get_active_resource(resource_id)
    require_permission(actor, Operation.RESOURCE_DETACH_FILE, resource)

    try:
        sub_file = resource.files.get(pk=file_id)
    except ResourceFile.DoesNotExist as error:
        raise NotFoundError('File not found in resource') from error

    public_id = sub_file.public_id
    sub_file.delete()
    logger.info('File %d removed from resource %d', file_id, resource.pk)

    # External links have nothing in storage
    if public_id:
        try:
            _get_storage().destroy(public_id)
        except ExternalServiceError:
            logger.exception('Failed to delete detached file: %s', public_id)
