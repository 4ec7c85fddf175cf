"""Business logic for department operations."""

import logging
from typing import Any

from django.db import IntegrityError, transaction
from django.db.models import Q, QuerySet

from server.apps.accounts.logic.permissions import (
    Actor,
    Operation,
    require_permission,
)
from server.apps.library.infrastructure.metadata import make_slug
from server.apps.library.models import Department, Resource
from server.common.exceptions import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def _ensure_unique(name: str, slug: str, exclude_id: int | None = None) -> None:
    # Inactive departments still hold their name and slug
    clashes = Department.all_objects.filter(Q(name=name) | Q(slug=slug))
    if exclude_id is not None:
        clashes = clashes.exclude(pk=exclude_id)
    if clashes.exists():
        raise ConflictError('Department with this name already exists')


def create_department(  # noqa: WPS211
    actor: Actor | None,
    name: str,
    slug: str | None = None,
    description: str = '',
    icon: str | None = None,
    color: str | None = None,
) -> Department:
    """Create a department.

    Args:
        actor: Acting identity (co-manager).
        name: Unique display name.
        slug: Unique slug, derived from name when omitted.
        description: Free text.
        icon: Emoji icon.
        color: Hex color.

    Returns:
        Created Department instance.

    Raises:
        ValidationError: If the name is empty.
        ConflictError: If the name or slug is taken.
    """
    require_permission(actor, Operation.DEPARTMENT_CREATE)
    if not name or not name.strip():
        raise ValidationError('Department name is required', ['name is required'])

    clean_name = name.strip()
    clean_slug = make_slug(slug.strip()) if slug else make_slug(clean_name)
    _ensure_unique(clean_name, clean_slug)

    fields: dict[str, Any] = {
        'name': clean_name,
        'slug': clean_slug,
        'description': (description or '').strip(),
    }
    if icon:
        fields['icon'] = icon
    if color:
        fields['color'] = color

    try:
        with transaction.atomic():
            department = Department.objects.create(**fields)
    except IntegrityError as error:
        raise ConflictError('Department with this name already exists') from error

    logger.info('Department created: %s (ID: %d)', department.slug, department.pk)
    return department


def list_departments(
    actor: Actor | None,
    search: str | None = None,
) -> QuerySet[Department]:
    """List active departments by name.

    Args:
        actor: Acting identity (may be anonymous).
        search: Case-insensitive match on name or description.

    Returns:
        QuerySet of departments.
    """
    require_permission(actor, Operation.DEPARTMENT_READ)
    departments = Department.objects.all()
    if search:
        departments = departments.filter(
            Q(name__icontains=search) | Q(description__icontains=search),
        )
    return departments.order_by('name')


def get_department(actor: Actor | None, id_or_slug: int | str) -> Department:
    """Fetch an active department by ID or slug.

    Reading never touches the counters; see
    ``counter_operations.refresh_department_counters``.

    Args:
        actor: Acting identity (may be anonymous).
        id_or_slug: Integer ID, or a slug. A digit-only string is tried
            as a slug first and then as an ID.

    Returns:
        Department instance.

    Raises:
        NotFoundError: If absent or inactive.
    """
    require_permission(actor, Operation.DEPARTMENT_READ)
    if isinstance(id_or_slug, int):
        department = Department.objects.filter(pk=id_or_slug).first()
    else:
        # Slugs like "2024" win over a primary key with the same digits
        department = Department.objects.filter(slug=id_or_slug).first()
        if department is None and id_or_slug.isdigit():
            department = Department.objects.filter(pk=int(id_or_slug)).first()
    if department is None:
        raise NotFoundError('Department not found')
    return department


def update_department(
    actor: Actor | None,
    department_id: int,
    **changes: Any,
) -> Department:
    """Update a department.

    Args:
        actor: Acting identity (co-manager).
        department_id: ID of the department.
        changes: Any of name, slug, description, icon, color.

    Returns:
        Updated Department instance.

    Raises:
        NotFoundError: If absent or inactive.
        ConflictError: If the new name or slug is taken.
    """
    require_permission(actor, Operation.DEPARTMENT_UPDATE)
    department = get_department(actor, department_id)

    if changes.get('name'):
        department.name = changes['name'].strip()
    if changes.get('slug'):
        department.slug = make_slug(changes['slug'].strip())
    if changes.get('description') is not None:
        department.description = changes['description'].strip()
    if changes.get('icon'):
        department.icon = changes['icon']
    if changes.get('color'):
        department.color = changes['color']

    _ensure_unique(department.name, department.slug, exclude_id=department.pk)
    try:
        with transaction.atomic():
            department.save()
    except IntegrityError as error:
        raise ConflictError('Department with this name already exists') from error

    logger.info('Department updated: ID=%d', department.pk)
    return department


def delete_department(actor: Actor | None, department_id: int) -> None:
    """Soft-delete a department that no resource references.

    Inactive resources count too; there is no reassignment option.

    Args:
        actor: Acting identity (co-manager).
        department_id: ID of the department.

    Raises:
        NotFoundError: If absent or already inactive.
        ConflictError: If any resource references the department,
            with the count in ``blocking_count``.
    """
    require_permission(actor, Operation.DEPARTMENT_DELETE)
    department = get_department(actor, department_id)

    resource_count = Resource.all_objects.filter(department=department).count()
    if resource_count > 0:
        logger.warning(
            'Refusing to delete department %d: %d resources',
            department.pk,
            resource_count,
        )
        raise ConflictError(
            f'Cannot delete department with {resource_count} resources.',
            blocking_count=resource_count,
        )

    department.is_active = False
    department.save(update_fields=['is_active', 'modified_at'])
    logger.info('Department deactivated: ID=%d', department.pk)
