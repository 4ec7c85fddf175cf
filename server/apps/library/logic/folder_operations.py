"""Business logic for folder operations."""

import logging
from typing import Any

from django.db import IntegrityError, transaction
from django.db.models import F, Q, QuerySet

from server.apps.accounts.logic.permissions import (
    Actor,
    Operation,
    require_actor,
    require_permission,
)
from server.apps.library.infrastructure.metadata import make_slug
from server.apps.library.models import Department, Folder, Resource
from server.common.exceptions import ConflictError, NotFoundError, ValidationError
from server.common.pagination import DEFAULT_LIMIT, Page, paginate

logger = logging.getLogger(__name__)

_DUPLICATE_NAME_MESSAGE = 'Folder with this name already exists in this department'


def _get_active_department(department_id: int | None) -> Department:
    if department_id is None:
        raise ValidationError('Department is required', ['department is required'])
    try:
        return Department.objects.get(pk=department_id)
    except Department.DoesNotExist as error:
        raise NotFoundError('Department not found') from error


def _get_active_folder(folder_id: int) -> Folder:
    try:
        return Folder.objects.select_related('department', 'created_by').get(
            pk=folder_id,
        )
    except Folder.DoesNotExist as error:
        raise NotFoundError('Folder not found') from error


def _ensure_name_free(
    name: str,
    department_id: int,
    exclude_id: int | None = None,
) -> None:
    # Only active folders reserve a name
    clashes = Folder.objects.filter(name=name, department_id=department_id)
    if exclude_id is not None:
        clashes = clashes.exclude(pk=exclude_id)
    if clashes.exists():
        raise ConflictError(_DUPLICATE_NAME_MESSAGE)


def create_folder(  # noqa: WPS211
    actor: Actor | None,
    name: str,
    department_id: int | None,
    description: str = '',
    slug: str | None = None,
    color: str | None = None,
    icon: str | None = None,
    order: int = 0,
) -> Folder:
    """Create a folder and bump the department's folder count.

    Args:
        actor: Acting identity (member or above), becomes the creator.
        name: Name, unique among the department's active folders.
        department_id: ID of an active department.
        description: Free text.
        slug: Slug, derived from name when omitted.
        color: Hex color.
        icon: Emoji icon.
        order: Position in listings.

    Returns:
        Created Folder instance.

    Raises:
        ValidationError: If name or department is missing.
        NotFoundError: If the department is absent or inactive.
        ConflictError: If an active folder already has this name.
    """
    creator = require_actor(actor, Operation.FOLDER_CREATE)
    if not name or not name.strip():
        raise ValidationError('Folder name is required', ['name is required'])
    department = _get_active_department(department_id)

    clean_name = name.strip()
    _ensure_name_free(clean_name, department.pk)

    fields: dict[str, Any] = {
        'name': clean_name,
        'slug': make_slug(slug or clean_name),
        'description': (description or '').strip(),
        'department': department,
        'created_by_id': creator.id,
        'order': order or 0,
    }
    if color:
        fields['color'] = color
    if icon:
        fields['icon'] = icon

    try:
        with transaction.atomic():
            folder = Folder.objects.create(**fields)
            Department.all_objects.filter(pk=department.pk).update(
                folder_count=F('folder_count') + 1,
            )
    except IntegrityError as error:
        # Partial unique constraint caught a concurrent create
        raise ConflictError(_DUPLICATE_NAME_MESSAGE) from error

    logger.info(
        'Folder created: %s in department %d (ID: %d)',
        folder.name,
        department.pk,
        folder.pk,
    )
    return folder


def list_folders(
    actor: Actor | None,
    department_id: int | None = None,
    search: str | None = None,
) -> QuerySet[Folder]:
    """List active folders by order, newest first within the same order.

    Args:
        actor: Acting identity (may be anonymous).
        department_id: Only folders of this department.
        search: Case-insensitive match on name or description.

    Returns:
        QuerySet of folders.
    """
    require_permission(actor, Operation.FOLDER_READ)
    folders = Folder.objects.select_related('department', 'created_by')
    if department_id is not None:
        folders = folders.filter(department_id=department_id)
    if search:
        folders = folders.filter(
            Q(name__icontains=search) | Q(description__icontains=search),
        )
    return folders.order_by('order', '-created_at', '-id')


def list_department_folders(
    actor: Actor | None,
    department_id: int,
) -> QuerySet[Folder]:
    """List active folders of an active department by order, then name.

    Args:
        actor: Acting identity (may be anonymous).
        department_id: ID of the department.

    Returns:
        QuerySet of folders.

    Raises:
        NotFoundError: If the department is absent or inactive.
    """
    require_permission(actor, Operation.FOLDER_READ)
    department = _get_active_department(department_id)
    return Folder.objects.filter(department=department).select_related(
        'created_by',
    ).order_by('order', 'name')


def get_folder(actor: Actor | None, folder_id: int) -> Folder:
    """Fetch an active folder.

    Args:
        actor: Acting identity (may be anonymous).
        folder_id: ID of the folder.

    Returns:
        Folder instance.

    Raises:
        NotFoundError: If absent or inactive.
    """
    require_permission(actor, Operation.FOLDER_READ)
    return _get_active_folder(folder_id)


def list_folder_resources(
    actor: Actor | None,
    folder_id: int,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
) -> Page[Resource]:
    """List active resources of an active folder, newest first.

    Args:
        actor: Acting identity (may be anonymous).
        folder_id: ID of the folder.
        page: 1-based page.
        limit: Page size.

    Returns:
        Page of resources.
    """
    folder = get_folder(actor, folder_id)
    resources = Resource.objects.filter(folder=folder).select_related(
        'uploaded_by',
    ).prefetch_related('tags')
    return paginate(resources.order_by('-uploaded_at', '-id'), page, limit)


def update_folder(actor: Actor | None, folder_id: int, **changes: Any) -> Folder:
    """Update a folder owned by the actor (co-managers: any folder).

    Args:
        actor: Acting identity.
        folder_id: ID of the folder.
        changes: Any of name, slug, description, color, icon, order.

    Returns:
        Updated Folder instance.

    Raises:
        NotFoundError: If absent or inactive.
        ConflictError: If the new name is taken in the department.
    """
    folder = _get_active_folder(folder_id)
    require_permission(actor, Operation.FOLDER_UPDATE, folder)

    name = (changes.get('name') or '').strip()
    if name and name != folder.name:
        _ensure_name_free(name, folder.department_id, exclude_id=folder.pk)
        folder.name = name
    if changes.get('slug'):
        folder.slug = make_slug(changes['slug'])
    if changes.get('description') is not None:
        folder.description = changes['description'].strip()
    if changes.get('color'):
        folder.color = changes['color']
    if changes.get('icon'):
        folder.icon = changes['icon']
    if changes.get('order') is not None:
        folder.order = changes['order']

    try:
        with transaction.atomic():
            folder.save()
    except IntegrityError as error:
        raise ConflictError(_DUPLICATE_NAME_MESSAGE) from error

    logger.info('Folder updated: ID=%d', folder.pk)
    return folder


def delete_folder(
    actor: Actor | None,
    folder_id: int,
    move_to_folder_id: int | None = None,
) -> int:
    """Soft-delete a folder, optionally moving its resources elsewhere.

    Without a target the folder must hold no active resources. With a
    target (any active folder but the source, any department) every
    active resource moves there and the target's count grows by the
    moved amount, all in one transaction.

    Args:
        actor: Acting identity.
        folder_id: ID of the folder.
        move_to_folder_id: Reassignment target.

    Returns:
        Number of resources moved.

    Raises:
        NotFoundError: If the folder or the target is absent or inactive.
        ValidationError: If the target is the folder itself.
        ConflictError: If resources remain and no target is given, with
            the count in ``blocking_count``.
    """
    folder = _get_active_folder(folder_id)
    require_permission(actor, Operation.FOLDER_DELETE, folder)

    resources = Resource.objects.filter(folder=folder)
    resource_count = resources.count()

    target = None
    if resource_count > 0:
        if move_to_folder_id is None:
            logger.warning(
                'Refusing to delete folder %d: %d resources',
                folder.pk,
                resource_count,
            )
            raise ConflictError(
                f'Folder contains {resource_count} resources. '
                'Please move them first or specify a target folder.',
                blocking_count=resource_count,
            )
        if move_to_folder_id == folder.pk:
            raise ValidationError('Cannot move resources into the deleted folder')
        try:
            target = Folder.objects.get(pk=move_to_folder_id)
        except Folder.DoesNotExist as error:
            raise NotFoundError('Target folder not found') from error

    with transaction.atomic():
        moved = 0
        if target is not None:
            moved = resources.update(folder=target)
            Folder.all_objects.filter(pk=target.pk).update(
                resource_count=F('resource_count') + moved,
            )
        Folder.all_objects.filter(pk=folder.pk).update(is_active=False)
        Department.all_objects.filter(pk=folder.department_id).update(
            folder_count=F('folder_count') - 1,
        )

    logger.info(
        'Folder deactivated: ID=%d, %d resources moved to %s',
        folder.pk,
        moved,
        target.pk if target else None,
    )
    return moved
