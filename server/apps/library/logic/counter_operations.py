"""Recompute denormalized counters from the source of truth.

Reads never refresh counters; these operations do it explicitly and
are run by the ``refresh_counters`` management command.
"""

import logging
from dataclasses import dataclass

from django.db import transaction
from django.db.models import (
    Count,
    IntegerField,
    OuterRef,
    Q,
    QuerySet,
    Subquery,
    Sum,
)
from django.db.models.functions import Coalesce

from server.apps.accounts.models import User
from server.apps.library.models import Department, Folder, Resource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefreshReport:
    """How many rows had drifted and were corrected."""

    departments: int = 0
    folders: int = 0
    users: int = 0

    @property
    def total(self) -> int:
        """Corrected rows across all models."""
        return self.departments + self.folders + self.users


def _count_subquery(queryset: QuerySet, field: str) -> Coalesce:
    """Correlated COUNT over ``queryset`` grouped by ``field``."""
    counted = queryset.filter(**{field: OuterRef('pk')}).order_by().values(
        field,
    ).annotate(total=Count('id')).values('total')
    return Coalesce(Subquery(counted, output_field=IntegerField()), 0)


def refresh_department_counters(dry_run: bool = False) -> int:
    """Recompute resource and folder counts of every department.

    ``resource_count`` counts every resource referencing the
    department, active or not, matching the deletion guard.
    ``folder_count`` counts active folders.

    Args:
        dry_run: Only report drift, do not write.

    Returns:
        Number of departments whose counters drifted.
    """
    departments = Department.all_objects.annotate(
        actual_resources=_count_subquery(Resource.all_objects.all(), 'department'),
        actual_folders=_count_subquery(Folder.objects.all(), 'department'),
    )
    drifted = [
        department for department in departments
        if department.resource_count != department.actual_resources
        or department.folder_count != department.actual_folders
    ]
    if dry_run:
        return len(drifted)

    with transaction.atomic():
        for department in drifted:
            logger.info(
                'Department %d counters: resources %d -> %d, folders %d -> %d',
                department.pk,
                department.resource_count,
                department.actual_resources,
                department.folder_count,
                department.actual_folders,
            )
            Department.all_objects.filter(pk=department.pk).update(
                resource_count=department.actual_resources,
                folder_count=department.actual_folders,
            )
    return len(drifted)


def refresh_folder_counters(dry_run: bool = False) -> int:
    """Recompute the active resource count of every folder.

    Args:
        dry_run: Only report drift, do not write.

    Returns:
        Number of folders whose counter drifted.
    """
    folders = Folder.all_objects.annotate(
        actual_resources=_count_subquery(Resource.objects.all(), 'folder'),
    )
    drifted = [
        folder for folder in folders
        if folder.resource_count != folder.actual_resources
    ]
    if dry_run:
        return len(drifted)

    with transaction.atomic():
        for folder in drifted:
            logger.info(
                'Folder %d resource count: %d -> %d',
                folder.pk,
                folder.resource_count,
                folder.actual_resources,
            )
            Folder.all_objects.filter(pk=folder.pk).update(
                resource_count=folder.actual_resources,
            )
    return len(drifted)


def refresh_user_counters(dry_run: bool = False) -> int:
    """Recompute upload, view and download totals of every user.

    Only active resources contribute.

    Args:
        dry_run: Only report drift, do not write.

    Returns:
        Number of users whose counters drifted.
    """
    active = Q(resources__is_active=True)
    users = User.objects.annotate(
        actual_uploaded=Count('resources', filter=active),
        actual_views=Sum('resources__views', filter=active, default=0),
        actual_downloads=Sum('resources__downloads', filter=active, default=0),
    )
    drifted = [
        user for user in users
        if (user.resources_uploaded, user.total_views, user.total_downloads)
        != (user.actual_uploaded, user.actual_views, user.actual_downloads)
    ]
    if dry_run:
        return len(drifted)

    with transaction.atomic():
        for user in drifted:
            logger.info('User %d counters refreshed', user.pk)
            User.objects.filter(pk=user.pk).update(
                resources_uploaded=user.actual_uploaded,
                total_views=user.actual_views,
                total_downloads=user.actual_downloads,
            )
    return len(drifted)


def refresh_all_counters(dry_run: bool = False) -> RefreshReport:
    """Refresh department, folder and user counters.

    Args:
        dry_run: Only report drift, do not write.

    Returns:
        RefreshReport with the drift found per model.
    """
    report = RefreshReport(
        departments=refresh_department_counters(dry_run=dry_run),
        folders=refresh_folder_counters(dry_run=dry_run),
        users=refresh_user_counters(dry_run=dry_run),
    )
    logger.info(
        'Counter refresh%s: %d departments, %d folders, %d users drifted',
        ' (dry run)' if dry_run else '',
        report.departments,
        report.folders,
        report.users,
    )
    return report
