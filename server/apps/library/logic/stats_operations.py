"""Read-only statistics over active resources.

Nothing here writes to the database.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Final

from django.db.models import Count, Q, QuerySet, Sum

from server.apps.accounts.logic.permissions import (
    Actor,
    Operation,
    require_permission,
)
from server.apps.accounts.models import User
from server.apps.library.models import Department, Folder, Resource
from server.common.exceptions import NotFoundError

logger = logging.getLogger(__name__)

TOP_LIMIT: Final = 5


@dataclass(frozen=True)
class ResourceStats:
    """Aggregates for one scope."""

    total_resources: int
    total_files: int
    total_links: int
    total_views: int
    total_downloads: int
    total_size: int
    popular: list[Resource]
    recent: list[Resource]
    by_department: list[dict[str, Any]] = field(default_factory=list)
    by_type: dict[str, int] = field(default_factory=dict)


def _summarize(
    resources: QuerySet[Resource],
    with_departments: bool = False,
    with_types: bool = False,
) -> ResourceStats:
    totals = resources.aggregate(
        total=Count('id'),
        files=Count('id', filter=Q(type=Resource.Type.FILE)),
        links=Count('id', filter=Q(type=Resource.Type.LINK)),
        views=Sum('views', default=0),
        downloads=Sum('downloads', default=0),
        size=Sum('size', default=0),
    )
    logger.debug('Computing stats over %d resources', totals['total'])
    listed = resources.select_related('department')
    # Independently sorted and limited
    popular = list(listed.order_by('-views', '-uploaded_at', '-id')[:TOP_LIMIT])
    recent = list(listed.order_by('-uploaded_at', '-id')[:TOP_LIMIT])

    by_department = []
    if with_departments:
        by_department = list(
            resources.values(
                'department_id',
                'department__name',
                'department__slug',
            ).annotate(
                count=Count('id'),
            ).order_by('-count', 'department__name'),
        )

    by_type = {}
    if with_types:
        by_type = {
            row['type']: row['count']
            for row in resources.values('type').annotate(
                count=Count('id'),
            ).order_by('type')
        }

    return ResourceStats(
        total_resources=totals['total'],
        total_files=totals['files'],
        total_links=totals['links'],
        total_views=totals['views'],
        total_downloads=totals['downloads'],
        total_size=totals['size'],
        popular=popular,
        recent=recent,
        by_department=by_department,
        by_type=by_type,
    )


def get_global_stats(actor: Actor | None) -> ResourceStats:
    """Statistics over every active resource.

    Args:
        actor: Acting identity (visitor or above).

    Returns:
        ResourceStats with per-department and per-type counts.
    """
    require_permission(actor, Operation.STATS_READ)
    return _summarize(
        Resource.objects.all(),
        with_departments=True,
        with_types=True,
    )


def get_user_stats(actor: Actor | None, user_id: int) -> ResourceStats:
    """Statistics over a user's active uploads.

    Args:
        actor: Acting identity (visitor or above).
        user_id: ID of the uploader.

    Returns:
        ResourceStats with per-department counts.

    Raises:
        NotFoundError: If the user does not exist.
    """
    require_permission(actor, Operation.STATS_READ)
    if not User.objects.filter(pk=user_id).exists():
        raise NotFoundError('User not found')
    return _summarize(
        Resource.objects.filter(uploaded_by_id=user_id),
        with_departments=True,
    )


def get_department_stats(
    actor: Actor | None,
    department_id: int,
) -> ResourceStats:
    """Statistics over a department's active resources.

    Args:
        actor: Acting identity (visitor or above).
        department_id: ID of an active department.

    Returns:
        ResourceStats.

    Raises:
        NotFoundError: If the department is absent or inactive.
    """
    require_permission(actor, Operation.STATS_READ)
    if not Department.objects.filter(pk=department_id).exists():
        raise NotFoundError('Department not found')
    return _summarize(Resource.objects.filter(department_id=department_id))


def get_folder_stats(actor: Actor | None, folder_id: int) -> ResourceStats:
    """Statistics over a folder's active resources.

    Args:
        actor: Acting identity (visitor or above).
        folder_id: ID of an active folder.

    Returns:
        ResourceStats.

    Raises:
        NotFoundError: If the folder is absent or inactive.
    """
    require_permission(actor, Operation.STATS_READ)
    if not Folder.objects.filter(pk=folder_id).exists():
        raise NotFoundError('Folder not found')
    return _summarize(Resource.objects.filter(folder_id=folder_id))
