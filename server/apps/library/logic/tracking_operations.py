"""Favorites and monotonic view/download counters."""

import logging
from dataclasses import dataclass

from django.db import transaction
from django.db.models import F

from server.apps.accounts.logic.permissions import (
    Actor,
    Operation,
    require_actor,
    require_permission,
)
from server.apps.library.models import Favorite, Resource
from server.common.exceptions import NotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FavoriteState:
    """Membership after a toggle."""

    is_favorited: bool
    favorite_count: int


@dataclass(frozen=True)
class DownloadReceipt:
    """Download counter after tracking, plus where to fetch from."""

    downloads: int
    url: str


def toggle_favorite(actor: Actor | None, resource_id: int) -> FavoriteState:
    """Add the resource to the actor's favorites, or remove it.

    The toggle is a conditional delete followed, when nothing was
    deleted, by an insert guarded by the unique (resource, user)
    constraint. Duplicates cannot appear under concurrent toggles.

    Args:
        actor: Acting identity (visitor or above).
        resource_id: ID of an active resource.

    Returns:
        FavoriteState with the new membership and cardinality.

    Raises:
        NotFoundError: If the resource is absent or inactive.
    """
    user = require_actor(actor, Operation.RESOURCE_FAVORITE)
    if not Resource.objects.filter(pk=resource_id).exists():
        raise NotFoundError('Resource not found')

    with transaction.atomic():
        removed, _ = Favorite.objects.filter(
            resource_id=resource_id,
            user_id=user.id,
        ).delete()
        if not removed:
            Favorite.objects.get_or_create(
                resource_id=resource_id,
                user_id=user.id,
            )

    state = FavoriteState(
        is_favorited=not removed,
        favorite_count=Favorite.objects.filter(resource_id=resource_id).count(),
    )
    logger.info(
        'User %d %s resource %d',
        user.id,
        'favorited' if state.is_favorited else 'unfavorited',
        resource_id,
    )
    return state


def list_favorites(actor: Actor | None) -> list[Resource]:
    """List the actor's active favorite resources, newest favorite first.

    Args:
        actor: Acting identity (visitor or above).

    Returns:
        Resources.
    """
    user = require_actor(actor, Operation.RESOURCE_FAVORITE)
    return list(
        Resource.objects.filter(
            favorites__user_id=user.id,
        ).order_by('-favorites__created_at'),
    )


def track_download(actor: Actor | None, resource_id: int) -> DownloadReceipt:
    """Count a download of an active resource.

    Args:
        actor: Acting identity (may be anonymous).
        resource_id: ID of the resource.

    Returns:
        DownloadReceipt with the new count and the resource URL.

    Raises:
        NotFoundError: If absent or inactive.
    """
    require_permission(actor, Operation.RESOURCE_DOWNLOAD)
    updated = Resource.objects.filter(pk=resource_id).update(
        downloads=F('downloads') + 1,
    )
    if not updated:
        raise NotFoundError('Resource not found')

    downloads, url = Resource.all_objects.filter(pk=resource_id).values_list(
        'downloads',
        'url',
    ).get()
    logger.debug('Download tracked for resource %d', resource_id)
    return DownloadReceipt(downloads=downloads, url=url)


def increment_views(actor: Actor | None, resource_id: int) -> int:
    """Count a view of an active resource.

    Args:
        actor: Acting identity (may be anonymous).
        resource_id: ID of the resource.

    Returns:
        New view count.

    Raises:
        NotFoundError: If absent or inactive.
    """
    require_permission(actor, Operation.RESOURCE_VIEW)
    updated = Resource.objects.filter(pk=resource_id).update(
        views=F('views') + 1,
    )
    if not updated:
        raise NotFoundError('Resource not found')
    return Resource.all_objects.values_list('views', flat=True).get(
        pk=resource_id,
    )
