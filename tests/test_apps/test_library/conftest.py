"""Shared fixtures for library app tests."""

import boto3
import pytest
from django.core.files.base import ContentFile
from moto import mock_aws

from server.apps.accounts.logic.permissions import Actor
from server.apps.accounts.models import Role, User
from server.apps.library.models import Department, Folder, Resource


@pytest.fixture
def member_user(db):
    """Create a member who owns test content.

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
def other_member_user(db):
    """Create a second member for ownership tests.

    Returns:
        User with the member role.
    """
    return User.objects.create_user(
        email='other@example.com',
        password='testpass123',
        name='Other Member',
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
def visitor_user(db):
    """Create a visitor.

    Returns:
        User with the visitor role.
    """
    return User.objects.create_user(
        email='visitor@example.com',
        password='testpass123',
        name='Visitor',
        role=Role.VISITOR,
    )


@pytest.fixture
def member(member_user):
    """Returns: Actor for member_user."""
    return Actor.from_user(member_user)


@pytest.fixture
def other_member(other_member_user):
    """Returns: Actor for other_member_user."""
    return Actor.from_user(other_member_user)


@pytest.fixture
def co_manager(co_manager_user):
    """Returns: Actor for co_manager_user."""
    return Actor.from_user(co_manager_user)


@pytest.fixture
def visitor(visitor_user):
    """Returns: Actor for visitor_user."""
    return Actor.from_user(visitor_user)


@pytest.fixture
def department(db):
    """Create an active department.

    Returns:
        Department instance.
    """
    return Department.objects.create(name='Engineering', slug='engineering')


@pytest.fixture
def other_department(db):
    """Create a second active department.

    Returns:
        Department instance.
    """
    return Department.objects.create(name='Design', slug='design')


@pytest.fixture
def folder(department, member_user):
    """Create an active folder owned by member_user.

    Returns:
        Folder instance.
    """
    return Folder.objects.create(
        name='Guides',
        slug='guides',
        department=department,
        created_by=member_user,
    )


@pytest.fixture
def make_link_resource(department, member_user):
    """Factory for active link resources.

    Returns:
        Callable creating a Resource; keyword arguments override fields.
    """
    def factory(**fields):
        defaults = {
            'title': 'Handbook',
            'type': Resource.Type.LINK,
            'url': 'https://example.com/handbook',
            'link_type': Resource.LinkType.OTHER,
            'department': department,
            'uploaded_by': member_user,
        }
        defaults.update(fields)
        return Resource.objects.create(**defaults)
    return factory


@pytest.fixture
def mock_s3():
    """Mock S3 service with resource-hub bucket.

    Yields:
        boto3 S3 resource with resource-hub bucket created.
    """
    with mock_aws():
        conn = boto3.resource('s3', region_name='us-east-1')
        conn.create_bucket(Bucket='resource-hub')
        yield conn


@pytest.fixture
def sample_upload():
    """Sample PDF payload.

    Returns:
        ContentFile named like an uploaded file.
    """
    return ContentFile(b'%PDF-1.4 test content', name='slides.pdf')


@pytest.fixture
def bucket_keys(mock_s3):
    """Lister of the keys stored in the test bucket.

    Returns:
        Callable returning the sorted keys.
    """
    def list_keys():
        bucket = mock_s3.Bucket('resource-hub')
        return sorted(obj.key for obj in bucket.objects.all())
    return list_keys
