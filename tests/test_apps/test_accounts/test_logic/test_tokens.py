"""Tests for bearer tokens."""

from datetime import UTC, datetime, timedelta

import jwt
import pytest
from django.conf import settings

from server.apps.accounts.logic.tokens import (
    actor_from_authorization,
    decode_token,
    issue_token,
)
from server.apps.accounts.models import Role
from server.common.exceptions import AuthenticationError


def _signing_key():
    return settings.JWT_SECRET or settings.SECRET_KEY


@pytest.mark.django_db
class TestTokens:
    """Tests for issue_token and decode_token."""

    def test_round_trip_identity(self, member_user):
        """Test a fresh token yields the user's id and role."""
        actor = decode_token(issue_token(member_user))

        assert actor.id == member_user.pk
        assert actor.role is Role.MEMBER

    def test_expired_token(self, member_user):
        """Test an expired token is rejected as expired."""
        issued = datetime.now(tz=UTC) - timedelta(
            seconds=settings.JWT_EXPIRATION_SECONDS + 60,
        )

        with pytest.raises(AuthenticationError, match='token expired'):
            decode_token(issue_token(member_user, now=issued))

    def test_tampered_token(self, member_user):
        """Test a token signed with another key fails."""
        token = jwt.encode(
            {
                'id': member_user.pk,
                'role': 'co-manager',
                'iat': datetime.now(tz=UTC),
                'exp': datetime.now(tz=UTC) + timedelta(hours=1),
            },
            'not-the-key',
            algorithm='HS256',
        )

        with pytest.raises(AuthenticationError, match='token failed'):
            decode_token(token)

    def test_missing_claim(self):
        """Test a token without a role claim fails."""
        token = jwt.encode(
            {
                'id': 1,
                'iat': datetime.now(tz=UTC),
                'exp': datetime.now(tz=UTC) + timedelta(hours=1),
            },
            _signing_key(),
            algorithm=settings.JWT_ALGORITHM,
        )

        with pytest.raises(AuthenticationError):
            decode_token(token)

    def test_unknown_role(self):
        """Test a token carrying an unknown role fails."""
        token = jwt.encode(
            {
                'id': 1,
                'role': 'owner',
                'iat': datetime.now(tz=UTC),
                'exp': datetime.now(tz=UTC) + timedelta(hours=1),
            },
            _signing_key(),
            algorithm=settings.JWT_ALGORITHM,
        )

        with pytest.raises(AuthenticationError):
            decode_token(token)

    def test_role_is_taken_from_token(self, member_user):
        """Test the claim is trusted without re-reading the account."""
        token = issue_token(member_user)
        member_user.role = Role.VISITOR
        member_user.save()

        assert decode_token(token).role is Role.MEMBER


@pytest.mark.django_db
class TestAuthorizationHeader:
    """Tests for actor_from_authorization."""

    def test_bearer_header(self, member_user):
        """Test a bearer header resolves to the actor."""
        header = f'Bearer {issue_token(member_user)}'

        assert actor_from_authorization(header).id == member_user.pk

    @pytest.mark.parametrize('header', [None, '', 'Basic abc', 'Bearer '])
    def test_no_bearer_token(self, header):
        """Test headers without a bearer token mean anonymous."""
        assert actor_from_authorization(header) is None

    def test_bad_bearer_token(self):
        """Test a malformed bearer token is an authentication error."""
        with pytest.raises(AuthenticationError):
            actor_from_authorization('Bearer garbage')
