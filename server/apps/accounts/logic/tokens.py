"""Bearer tokens carrying identity and role."""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any, Final

import jwt
from django.conf import settings

from server.apps.accounts.logic.permissions import Actor
from server.apps.accounts.models import Role, User
from server.common.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

_BEARER_PREFIX: Final = 'Bearer '


def _signing_key() -> str:
    return settings.JWT_SECRET or settings.SECRET_KEY


def issue_token(user: User, now: datetime | None = None) -> str:
    """Issue a signed token for ``user``.

    Args:
        user: Authenticated user.
        now: Issue time, defaults to the current time.

    Returns:
        Encoded token with ``id``, ``role``, ``iat`` and ``exp`` claims.
    """
    issued_at = now or datetime.now(tz=UTC)
    payload = {
        'id': user.pk,
        'role': user.role,
        'iat': issued_at,
        'exp': issued_at + timedelta(seconds=settings.JWT_EXPIRATION_SECONDS),
    }
    return jwt.encode(payload, _signing_key(), algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Actor:
    """Validate a token and return the identity it carries.

    The role claim is trusted as issued; the live account is not
    re-read.

    Args:
        token: Encoded token.

    Returns:
        Actor built from the claims.

    Raises:
        AuthenticationError: If the token is expired, tampered with
            or missing claims.
    """
    try:
        claims: dict[str, Any] = jwt.decode(
            token,
            _signing_key(),
            algorithms=[settings.JWT_ALGORITHM],
            options={'require': ['id', 'role', 'iat', 'exp']},
        )
    except jwt.ExpiredSignatureError as error:
        logger.info('Rejected expired token')
        raise AuthenticationError('Not authorized, token expired') from error
    except jwt.InvalidTokenError as error:
        logger.warning('Rejected invalid token: %s', error)
        raise AuthenticationError('Not authorized, token failed') from error

    try:
        return Actor(id=int(claims['id']), role=Role(claims['role']))
    except (TypeError, ValueError) as error:
        logger.warning('Rejected token with malformed claims')
        raise AuthenticationError('Not authorized, token failed') from error


def actor_from_authorization(header: str | None) -> Actor | None:
    """Resolve the ``Authorization`` header to an actor.

    Args:
        header: Raw header value, may be None.

    Returns:
        Actor, or None when no bearer token is present.

    Raises:
        AuthenticationError: If a bearer token is present but invalid.
    """
    if not header or not header.startswith(_BEARER_PREFIX):
        return None
    token = header.removeprefix(_BEARER_PREFIX).strip()
    if not token:
        return None
    return decode_token(token)
