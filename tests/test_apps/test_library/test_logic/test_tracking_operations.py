"""Tests for favorites and view/download tracking."""

import pytest

from server.apps.library.logic.tracking_operations import (
    increment_views,
    list_favorites,
    toggle_favorite,
    track_download,
)
from server.apps.library.models import Favorite
from server.common.exceptions import AuthenticationError, NotFoundError


@pytest.mark.django_db
class TestToggleFavorite:
    """Tests for toggle_favorite function."""

    def test_toggle_twice_restores_state(self, visitor, make_link_resource):
        """Test two toggles leave the membership unchanged."""
        resource = make_link_resource()

        first = toggle_favorite(visitor, resource.pk)
        second = toggle_favorite(visitor, resource.pk)

        assert first.is_favorited is True
        assert first.favorite_count == 1
        assert second.is_favorited is False
        assert second.favorite_count == 0
        assert not Favorite.objects.exists()

    def test_count_reflects_every_user(
        self,
        visitor,
        member,
        make_link_resource,
    ):
        """Test the returned count covers all users."""
        resource = make_link_resource()
        toggle_favorite(member, resource.pk)

        state = toggle_favorite(visitor, resource.pk)

        assert state.favorite_count == 2

    def test_toggle_inactive_resource(self, visitor, make_link_resource):
        """Test an inactive resource cannot be favorited."""
        resource = make_link_resource(is_active=False)

        with pytest.raises(NotFoundError):
            toggle_favorite(visitor, resource.pk)

    def test_anonymous_cannot_toggle(self, make_link_resource):
        """Test favorites need an identity."""
        resource = make_link_resource()

        with pytest.raises(AuthenticationError):
            toggle_favorite(None, resource.pk)

    def test_list_favorites_skips_inactive(self, visitor, make_link_resource):
        """Test favorites list only active resources."""
        kept = make_link_resource(title='Kept')
        dropped = make_link_resource(title='Dropped')
        toggle_favorite(visitor, kept.pk)
        toggle_favorite(visitor, dropped.pk)
        dropped.is_active = False
        dropped.save()

        assert list_favorites(visitor) == [kept]


@pytest.mark.django_db
class TestCounters:
    """Tests for view and download counters."""

    def test_track_download_counts(self, make_link_resource):
        """Test each download increments the counter by one."""
        resource = make_link_resource()

        track_download(None, resource.pk)
        receipt = track_download(None, resource.pk)

        assert receipt.downloads == 2
        assert receipt.url == 'https://example.com/handbook'

    def test_track_download_inactive(self, make_link_resource):
        """Test inactive resources cannot be downloaded."""
        resource = make_link_resource(is_active=False)

        with pytest.raises(NotFoundError):
            track_download(None, resource.pk)

    def test_increment_views(self, make_link_resource):
        """Test views count up from zero."""
        resource = make_link_resource()

        assert increment_views(None, resource.pk) == 1
        assert increment_views(None, resource.pk) == 2

    def test_increment_views_missing(self, db):
        """Test unknown resources are not found."""
        with pytest.raises(NotFoundError):
            increment_views(None, 999)
