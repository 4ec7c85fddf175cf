"""Shared fixtures for accounts app tests."""

import pytest

from server.apps.accounts.logic.permissions import Actor
from server.apps.accounts.models import Role, User
from server.apps.library.models import Department


@pytest.fixture
def department(db):
    """Create an active department.

    Returns:
        Department instance.
    """
    return Department.objects.create(name='Engineering', slug='engineering')


@pytest.fixture
def member_user(db):
    """Create a member.

    Returns:
        User with the member role.
    """
    return User.objects.create_user(
        email='member@example.com',
        password='testpass123',
        name='Member',
        role=Role.MEMBER,
    )


@pytest.fixture
def co_manager_user(db):
    """Create a co-manager.

    Returns:
        User with the co-manager role.
    """
    return User.objects.create_user(
        email='manager@example.com',
        password='testpass123',
        name='Manager',
        role=Role.CO_MANAGER,
    )


@pytest.fixture
def member(member_user):
    """Returns: Actor for member_user."""
    return Actor.from_user(member_user)


@pytest.fixture
def co_manager(co_manager_user):
    """Returns: Actor for co_manager_user."""
    return Actor.from_user(co_manager_user)
