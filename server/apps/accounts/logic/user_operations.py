"""Business logic for registration, login and user administration."""

import logging
from dataclasses import dataclass
from typing import Any, Final

from django.db import IntegrityError, transaction
from django.db.models import Q, QuerySet, Sum
from django.utils import timezone

from server.apps.accounts.logic.permissions import (
    Actor,
    Operation,
    require_actor,
    require_permission,
)
from server.apps.accounts.logic.tokens import issue_token
from server.apps.accounts.models import Role, User
from server.apps.library.models import Department, Resource
from server.common.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from server.common.pagination import DEFAULT_LIMIT, Page, paginate

logger = logging.getLogger(__name__)

_NAME_MIN_LENGTH: Final = 2
_NAME_MAX_LENGTH: Final = 50
_PASSWORD_MIN_LENGTH: Final = 6

# Profile fields a user may edit on their own account
_PROFILE_FIELDS: Final = ('phone', 'bio', 'avatar', 'social')


@dataclass(frozen=True)
class AuthResult:
    """Signed-in user with a fresh bearer token."""

    user: User
    token: str


def _validate_credentials(
    name: str | None,
    email: str | None,
    password: str | None,
) -> None:
    errors = []
    if not name or not _NAME_MIN_LENGTH <= len(name.strip()) <= _NAME_MAX_LENGTH:
        errors.append(
            f'name must be {_NAME_MIN_LENGTH}-{_NAME_MAX_LENGTH} characters',
        )
    if not email or '@' not in email:
        errors.append('a valid email is required')
    if not password or len(password) < _PASSWORD_MIN_LENGTH:
        errors.append(
            f'password must be at least {_PASSWORD_MIN_LENGTH} characters',
        )
    if errors:
        raise ValidationError('Name, email, and password are required', errors)


def _ensure_email_free(email: str, exclude_id: int | None = None) -> None:
    taken = User.objects.filter(email=email)
    if exclude_id is not None:
        taken = taken.exclude(pk=exclude_id)
    if taken.exists():
        raise ConflictError('User with this email already exists')


def _resolve_department(department_id: int | None) -> Department | None:
    if department_id is None:
        return None
    try:
        return Department.objects.get(pk=department_id)
    except Department.DoesNotExist as error:
        raise NotFoundError('Department not found') from error


def _create_account(  # noqa: WPS211
    name: str,
    email: str,
    password: str,
    role: Role,
    department_id: int | None,
    **extra_fields: Any,
) -> User:
    _validate_credentials(name, email, password)
    normalized_email = email.strip().lower()
    _ensure_email_free(normalized_email)
    department = _resolve_department(department_id)
    try:
        with transaction.atomic():
            return User.objects.create_user(
                email=normalized_email,
                password=password,
                name=name.strip(),
                role=role,
                department=department,
                **extra_fields,
            )
    except IntegrityError as error:
        # Lost a race against a concurrent registration
        raise ConflictError('User with this email already exists') from error


def register(
    name: str,
    email: str,
    password: str,
    department_id: int | None = None,
) -> AuthResult:
    """Register a new account with the visitor role.

    Args:
        name: Display name (2-50 characters).
        email: Login email, stored lowercased.
        password: Raw password (at least 6 characters).
        department_id: Optional department of the user.

    Returns:
        AuthResult with the created user and a token.

    Raises:
        ValidationError: If a field is missing or malformed.
        ConflictError: If the email is taken.
    """
    user = _create_account(
        name,
        email,
        password,
        role=Role.VISITOR,
        department_id=department_id,
    )
    user.last_login = timezone.now()
    user.save(update_fields=['last_login'])
    logger.info('User registered: %s (ID: %d)', user.email, user.pk)
    return AuthResult(user=user, token=issue_token(user))


def login(email: str, password: str) -> AuthResult:
    """Verify credentials and issue a token.

    Args:
        email: Login email (case-insensitive).
        password: Raw password.

    Returns:
        AuthResult with the user and a token.

    Raises:
        ValidationError: If email or password is missing.
        AuthenticationError: If the credentials do not match an
            active account.
    """
    if not email or not password:
        raise ValidationError('Email and password are required')

    user = User.objects.filter(email=email.strip().lower()).first()
    if user is None or not user.check_password(password):
        logger.warning('Failed login attempt for %s', email)
        raise AuthenticationError('Invalid credentials')
    if not user.is_active:
        logger.warning('Login attempt on deactivated account %d', user.pk)
        raise AuthenticationError('Account is deactivated')

    user.last_login = timezone.now()
    user.save(update_fields=['last_login'])
    logger.info('User logged in: ID=%d', user.pk)
    return AuthResult(user=user, token=issue_token(user))


def create_user(  # noqa: WPS211
    actor: Actor | None,
    name: str,
    email: str,
    password: str,
    role: Role | str = Role.MEMBER,
    department_id: int | None = None,
    **profile: Any,
) -> User:
    """Create an account on behalf of a co-manager.

    Args:
        actor: Acting identity.
        name: Display name.
        email: Login email.
        password: Initial raw password.
        role: Role of the new account, member by default.
        department_id: Optional department.
        profile: Optional phone/bio.

    Returns:
        Created User instance.
    """
    require_permission(actor, Operation.USER_CREATE)
    user = _create_account(
        name,
        email,
        password,
        role=_parse_role(role),
        department_id=department_id,
        phone=profile.get('phone') or '',
        bio=profile.get('bio') or '',
    )
    logger.info('User %d created by %d', user.pk, actor.id if actor else 0)
    return user


def _parse_role(role: Role | str) -> Role:
    try:
        return Role(role)
    except ValueError as error:
        raise ValidationError(
            'Invalid role',
            [f'role must be one of: {", ".join(Role.values)}'],
        ) from error


def list_users(  # noqa: WPS211
    actor: Actor | None,
    role: str | None = None,
    department_id: int | None = None,
    search: str | None = None,
    is_active: bool = True,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
) -> Page[User]:
    """List accounts, newest first.

    Args:
        actor: Acting identity (co-manager).
        role: Only users with this role.
        department_id: Only users of this department.
        search: Case-insensitive match on name or email.
        is_active: Active or deactivated accounts.
        page: 1-based page.
        limit: Page size.

    Returns:
        Page of users.
    """
    require_permission(actor, Operation.USER_LIST)
    users: QuerySet[User] = User.objects.filter(
        is_active=is_active,
    ).select_related('department')
    if role:
        users = users.filter(role=role)
    if department_id is not None:
        users = users.filter(department_id=department_id)
    if search:
        users = users.filter(
            Q(name__icontains=search) | Q(email__icontains=search),
        )
    return paginate(users.order_by('-date_joined', '-id'), page, limit)


def _get_active_user(user_id: int) -> User:
    try:
        return User.objects.select_related('department').get(
            pk=user_id,
            is_active=True,
        )
    except User.DoesNotExist as error:
        raise NotFoundError('User not found') from error


def get_user(actor: Actor | None, user_id: int) -> User:
    """Fetch an active user with counters computed from their resources.

    Computed values replace the stored counters on the returned
    instance only; nothing is saved.

    Args:
        actor: Acting identity.
        user_id: ID of the user.

    Returns:
        User instance.

    Raises:
        NotFoundError: If the user is absent or deactivated.
    """
    require_permission(actor, Operation.USER_READ)
    user = _get_active_user(user_id)
    resources = Resource.objects.filter(uploaded_by=user)
    totals = resources.aggregate(
        views=Sum('views', default=0),
        downloads=Sum('downloads', default=0),
    )
    user.resources_uploaded = resources.count()
    user.total_views = totals['views']
    user.total_downloads = totals['downloads']
    return user


def update_user(
    actor: Actor | None,
    user_id: int,
    **changes: Any,
) -> User:
    """Update profile fields of an account.

    Users edit their own account; co-managers edit any. Only
    co-managers may move a user to another department.

    Args:
        actor: Acting identity.
        user_id: ID of the user to update.
        changes: Any of name, email, department_id, phone, bio,
            avatar, social.

    Returns:
        Updated User instance.

    Raises:
        ConflictError: If the new email is taken.
    """
    user = _get_active_user(user_id)
    require_permission(actor, Operation.USER_UPDATE, user)

    name = changes.get('name')
    if name is not None:
        if not _NAME_MIN_LENGTH <= len(name.strip()) <= _NAME_MAX_LENGTH:
            raise ValidationError(
                'Invalid name',
                [f'name must be {_NAME_MIN_LENGTH}-{_NAME_MAX_LENGTH} characters'],
            )
        user.name = name.strip()

    email = changes.get('email')
    if email and email.strip().lower() != user.email:
        normalized_email = email.strip().lower()
        _ensure_email_free(normalized_email, exclude_id=user.pk)
        user.email = normalized_email

    if 'department_id' in changes and actor is not None and actor.is_co_manager:
        user.department = _resolve_department(changes['department_id'])

    for field in _PROFILE_FIELDS:
        if field in changes:
            setattr(user, field, changes[field] or _empty_value(field))

    user.save()
    logger.info('User %d updated', user.pk)
    return user


def _empty_value(field: str) -> Any:
    return {} if field == 'social' else ''


def change_role(actor: Actor | None, user_id: int, role: Role | str) -> User:
    """Change the role of an account.

    The new role shows up in tokens issued afterwards.

    Args:
        actor: Acting identity (co-manager).
        user_id: ID of the user.
        role: New role.

    Returns:
        Updated User instance.
    """
    require_permission(actor, Operation.USER_CHANGE_ROLE)
    new_role = _parse_role(role)
    user = _get_active_user(user_id)
    user.role = new_role
    user.save(update_fields=['role'])
    logger.info('User %d is now %s', user.pk, new_role)
    return user


def change_password(
    actor: Actor | None,
    user_id: int,
    current_password: str,
    new_password: str,
) -> None:
    """Replace the password after verifying the current one.

    Args:
        actor: Acting identity, must be the account holder.
        user_id: ID of the user.
        current_password: Password in use.
        new_password: Replacement (at least 6 characters).

    Raises:
        ValidationError: If a password is missing or too short.
        AuthenticationError: If the current password is wrong.
    """
    if not current_password or not new_password:
        raise ValidationError('Current password and new password are required')
    if len(new_password) < _PASSWORD_MIN_LENGTH:
        raise ValidationError(
            'New password must be at least '
            f'{_PASSWORD_MIN_LENGTH} characters',
        )

    user = _get_active_user(user_id)
    require_permission(actor, Operation.USER_CHANGE_PASSWORD, user)
    # Co-managers bypass ownership, but not here
    if actor is None or actor.id != user.pk:
        raise AuthorizationError('Only the account holder can change the password')
    if not user.check_password(current_password):
        raise AuthenticationError('Current password is incorrect')

    user.set_password(new_password)
    user.save(update_fields=['password'])
    logger.info('Password changed for user %d', user.pk)


def deactivate_user(actor: Actor | None, user_id: int) -> None:
    """Deactivate an account. Users are never hard-deleted.

    Args:
        actor: Acting identity (co-manager).
        user_id: ID of the user.
    """
    require_permission(actor, Operation.USER_DEACTIVATE)
    updated = User.objects.filter(pk=user_id, is_active=True).update(
        is_active=False,
    )
    if not updated:
        raise NotFoundError('User not found')
    logger.info('User %d deactivated by %d', user_id, actor.id if actor else 0)


def get_me(actor: Actor | None) -> User:
    """Fetch the account behind the token.

    Args:
        actor: Acting identity.

    Returns:
        User instance.
    """
    signed_in = require_actor(actor, Operation.USER_READ)
    return _get_active_user(signed_in.id)


def list_user_resources(
    actor: Actor | None,
    user_id: int,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
) -> Page[Resource]:
    """List active resources uploaded by a user, newest first.

    Args:
        actor: Acting identity (may be anonymous).
        user_id: ID of the uploader.
        page: 1-based page.
        limit: Page size.

    Returns:
        Page of resources.
    """
    require_permission(actor, Operation.RESOURCE_READ)
    resources = Resource.objects.filter(
        uploaded_by_id=user_id,
    ).select_related('department', 'folder').prefetch_related('tags')
    return paginate(resources.order_by('-uploaded_at', '-id'), page, limit)
