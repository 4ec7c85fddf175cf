"""Tests for statistics operations."""

import pytest

from server.apps.library.logic.stats_operations import (
    TOP_LIMIT,
    get_department_stats,
    get_folder_stats,
    get_global_stats,
    get_user_stats,
)
from server.apps.library.models import Resource
from server.common.exceptions import AuthenticationError, NotFoundError


@pytest.fixture
def populated(department, other_department, member_user, make_link_resource):
    """Mix of file and link resources across two departments.

    Returns:
        Dict of the created resources by title.
    """
    created = {
        'popular': make_link_resource(title='Popular', views=50, downloads=4),
        'quiet': make_link_resource(title='Quiet', views=1),
        'deck': make_link_resource(
            title='Deck',
            type=Resource.Type.FILE,
            url='https://cdn.example.com/deck.pdf',
            link_type='',
            public_id='resource-hub/resources/design/deck.pdf',
            format='pdf',
            size=2048,
            views=10,
            downloads=2,
            department=other_department,
        ),
    }
    make_link_resource(title='Deleted', views=1000, is_active=False)
    return created


@pytest.mark.django_db
class TestGlobalStats:
    """Tests for get_global_stats function."""

    def test_totals_cover_active_resources(self, visitor, populated):
        """Test totals ignore inactive resources."""
        stats = get_global_stats(visitor)

        assert stats.total_resources == 3
        assert stats.total_files == 1
        assert stats.total_links == 2
        assert stats.total_views == 61
        assert stats.total_downloads == 6
        assert stats.total_size == 2048

    def test_popular_and_recent(self, visitor, populated):
        """Test popular sorts by views and recent by upload time."""
        stats = get_global_stats(visitor)

        assert [item.title for item in stats.popular] == ['Popular', 'Deck', 'Quiet']
        assert [item.title for item in stats.recent] == ['Deck', 'Quiet', 'Popular']

    def test_groupings(self, visitor, populated):
        """Test per-department and per-type counts."""
        stats = get_global_stats(visitor)

        assert [
            (row['department__slug'], row['count'])
            for row in stats.by_department
        ] == [('engineering', 2), ('design', 1)]
        assert stats.by_type == {'file': 1, 'link': 2}

    def test_top_lists_are_limited(self, visitor, make_link_resource):
        """Test popular and recent hold at most TOP_LIMIT items."""
        for index in range(TOP_LIMIT + 2):
            make_link_resource(title=f'Doc {index}')

        stats = get_global_stats(visitor)

        assert len(stats.popular) == TOP_LIMIT
        assert len(stats.recent) == TOP_LIMIT

    def test_empty(self, visitor):
        """Test stats over nothing are zeros."""
        stats = get_global_stats(visitor)

        assert stats.total_resources == 0
        assert stats.total_size == 0
        assert stats.popular == []

    def test_anonymous_rejected(self, db):
        """Test stats need an identity."""
        with pytest.raises(AuthenticationError):
            get_global_stats(None)


@pytest.mark.django_db
class TestScopedStats:
    """Tests for user, department and folder stats."""

    def test_user_stats(self, visitor, member_user, populated):
        """Test user stats cover that user's active uploads."""
        stats = get_user_stats(visitor, member_user.pk)

        assert stats.total_resources == 3
        assert len(stats.by_department) == 2
        assert stats.by_type == {}

    def test_user_stats_unknown_user(self, visitor):
        """Test an unknown user is not found."""
        with pytest.raises(NotFoundError):
            get_user_stats(visitor, 999)

    def test_department_stats(self, visitor, department, populated):
        """Test department stats only count that department."""
        stats = get_department_stats(visitor, department.pk)

        assert stats.total_resources == 2
        assert stats.total_views == 51
        assert stats.by_department == []

    def test_folder_stats(self, visitor, folder, make_link_resource):
        """Test folder stats only count the folder's resources."""
        make_link_resource(folder=folder, downloads=3)
        make_link_resource()

        stats = get_folder_stats(visitor, folder.pk)

        assert stats.total_resources == 1
        assert stats.total_downloads == 3

    def test_inactive_folder_not_found(self, visitor, folder):
        """Test stats of an inactive folder are not found."""
        folder.is_active = False
        folder.save()

        with pytest.raises(NotFoundError):
            get_folder_stats(visitor, folder.pk)
