"""Pagination shared by every list operation."""

import math
from dataclasses import dataclass
from typing import Any, Final, Generic, TypeVar

from django.db.models import QuerySet

from server.common.exceptions import ValidationError

_T = TypeVar('_T')

DEFAULT_LIMIT: Final = 20
MAX_LIMIT: Final = 100


@dataclass(frozen=True)
class Page(Generic[_T]):
    """One page of results."""

    items: list[_T]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        """Number of pages for ``total`` items."""
        return math.ceil(self.total / self.limit) if self.total else 0

    def as_dict(self) -> dict[str, Any]:
        """Render the pagination contract.

        Returns:
            ``{items, page, limit, total, pages}``.
        """
        return {
            'items': self.items,
            'page': self.page,
            'limit': self.limit,
            'total': self.total,
            'pages': self.pages,
        }


def paginate(
    queryset: QuerySet[_T],
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
) -> Page[_T]:
    """Slice a queryset into a page.

    Args:
        queryset: Ordered queryset to paginate.
        page: 1-based page number.
        limit: Items per page (1..MAX_LIMIT).

    Returns:
        Page with the sliced items and totals.

    Raises:
        ValidationError: If page or limit is out of range.
    """
    errors = []
    if page < 1:
        errors.append('page must be a positive integer')
    if not 1 <= limit <= MAX_LIMIT:
        errors.append(f'limit must be between 1 and {MAX_LIMIT}')
    if errors:
        raise ValidationError('Invalid pagination parameters', errors)

    offset = (page - 1) * limit
    return Page(
        items=list(queryset[offset:offset + limit]),
        page=page,
        limit=limit,
        total=queryset.count(),
    )
