"""Tests for folder operations business logic."""

import pytest

from server.apps.library.logic.folder_operations import (
    create_folder,
    delete_folder,
    get_folder,
    list_department_folders,
    list_folder_resources,
    list_folders,
    update_folder,
)
from server.apps.library.models import Folder, Resource
from server.common.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)


@pytest.mark.django_db
class TestCreateFolder:
    """Tests for create_folder function."""

    def test_create_bumps_department_count(self, member, department):
        """Test creating a folder increments the department folder count."""
        folder = create_folder(member, name=' Handbooks ', department_id=department.pk)

        department.refresh_from_db()
        assert folder.name == 'Handbooks'
        assert folder.slug == 'handbooks'
        assert folder.created_by_id == member.id
        assert department.folder_count == 1

    def test_duplicate_name_in_department_conflicts(self, member, department):
        """Test two active folders cannot share a name in one department."""
        create_folder(member, name='Guides', department_id=department.pk)

        with pytest.raises(ConflictError):
            create_folder(member, name='Guides', department_id=department.pk)

        department.refresh_from_db()
        assert department.folder_count == 1

    def test_same_name_in_other_department(
        self,
        member,
        department,
        other_department,
    ):
        """Test the name only has to be unique within a department."""
        create_folder(member, name='Guides', department_id=department.pk)

        folder = create_folder(member, name='Guides', department_id=other_department.pk)

        assert folder.department_id == other_department.pk

    def test_name_reusable_after_delete(self, member, department):
        """Test a deactivated folder frees its name."""
        first = create_folder(member, name='Guides', department_id=department.pk)
        delete_folder(member, first.pk)

        second = create_folder(member, name='Guides', department_id=department.pk)

        assert second.pk != first.pk
        assert Folder.all_objects.filter(name='Guides').count() == 2

    def test_requires_name(self, member, department):
        """Test a blank name is rejected."""
        with pytest.raises(ValidationError):
            create_folder(member, name='   ', department_id=department.pk)

    def test_requires_active_department(self, member, department):
        """Test an inactive department is reported as not found."""
        department.is_active = False
        department.save()

        with pytest.raises(NotFoundError):
            create_folder(member, name='Guides', department_id=department.pk)

    def test_visitor_cannot_create(self, visitor, department):
        """Test visitors are forbidden from creating folders."""
        with pytest.raises(AuthorizationError):
            create_folder(visitor, name='Guides', department_id=department.pk)


@pytest.mark.django_db
class TestReadFolders:
    """Tests for folder listing and lookup."""

    def test_list_orders_by_order_then_newest(self, member, department):
        """Test folders list by order, newest first within an order."""
        create_folder(member, name='Old', department_id=department.pk, order=1)
        create_folder(member, name='New', department_id=department.pk, order=1)
        create_folder(member, name='First', department_id=department.pk, order=0)

        names = [folder.name for folder in list_folders(None)]

        assert names == ['First', 'New', 'Old']

    def test_department_listing_orders_by_name(self, member, department):
        """Test department listing breaks order ties by name."""
        create_folder(member, name='Zeta', department_id=department.pk)
        create_folder(member, name='Alpha', department_id=department.pk)

        names = [
            folder.name
            for folder in list_department_folders(None, department.pk)
        ]

        assert names == ['Alpha', 'Zeta']

    def test_list_search(self, member, department):
        """Test search matches name or description."""
        create_folder(
            member,
            name='Guides',
            department_id=department.pk,
            description='Onboarding material',
        )
        create_folder(member, name='Specs', department_id=department.pk)

        assert [f.name for f in list_folders(None, search='onboarding')] == ['Guides']

    def test_get_inactive_is_not_found(self, folder):
        """Test an inactive folder cannot be fetched."""
        Folder.all_objects.filter(pk=folder.pk).update(is_active=False)

        with pytest.raises(NotFoundError, match='Folder not found'):
            get_folder(None, folder.pk)

    def test_folder_resources_exclude_inactive(self, folder, make_link_resource):
        """Test folder resources list only active resources."""
        make_link_resource(title='Live', folder=folder)
        make_link_resource(title='Gone', folder=folder, is_active=False)

        page = list_folder_resources(None, folder.pk)

        assert [item.title for item in page.items] == ['Live']


@pytest.mark.django_db
class TestUpdateFolder:
    """Tests for update_folder function."""

    def test_owner_can_rename(self, member, folder):
        """Test the creator can rename the folder."""
        updated = update_folder(member, folder.pk, name='Manuals', order=3)

        assert updated.name == 'Manuals'
        assert updated.order == 3

    def test_non_owner_member_forbidden(self, other_member, folder):
        """Test another member cannot update the folder."""
        with pytest.raises(AuthorizationError):
            update_folder(other_member, folder.pk, name='Mine')

    def test_co_manager_can_update(self, co_manager, folder):
        """Test a co-manager can update any folder."""
        updated = update_folder(co_manager, folder.pk, description='Curated')

        assert updated.description == 'Curated'

    def test_rename_to_taken_name_conflicts(self, member, department, folder):
        """Test renaming onto another active folder's name fails."""
        create_folder(member, name='Specs', department_id=department.pk)

        with pytest.raises(ConflictError):
            update_folder(member, folder.pk, name='Specs')

    def test_rename_to_own_name_is_allowed(self, member, folder):
        """Test keeping the same name does not clash with itself."""
        updated = update_folder(member, folder.pk, name='Guides')

        assert updated.name == 'Guides'


@pytest.mark.django_db
class TestDeleteFolder:
    """Tests for delete_folder function."""

    def test_delete_empty_folder(self, member, department):
        """Test an empty folder is deactivated and the count drops."""
        folder = create_folder(member, name='Guides', department_id=department.pk)

        moved = delete_folder(member, folder.pk)

        department.refresh_from_db()
        folder.refresh_from_db()
        assert moved == 0
        assert folder.is_active is False
        assert department.folder_count == 0

    def test_delete_with_resources_requires_target(
        self,
        member,
        folder,
        make_link_resource,
    ):
        """Test resources block deletion and the count is reported."""
        make_link_resource(folder=folder)
        make_link_resource(folder=folder)

        with pytest.raises(ConflictError) as exc_info:
            delete_folder(member, folder.pk)

        assert exc_info.value.blocking_count == 2
        folder.refresh_from_db()
        assert folder.is_active is True

    def test_inactive_resources_do_not_block(
        self,
        member,
        folder,
        make_link_resource,
    ):
        """Test only active resources block deletion."""
        make_link_resource(folder=folder, is_active=False)

        assert delete_folder(member, folder.pk) == 0

    def test_reassign_moves_resources(
        self,
        member,
        department,
        make_link_resource,
    ):
        """Test deletion with a target moves every resource in one step."""
        source = create_folder(member, name='Source', department_id=department.pk)
        target = create_folder(member, name='Target', department_id=department.pk)
        resources = [
            make_link_resource(title=f'Doc {index}', folder=source)
            for index in range(3)
        ]

        moved = delete_folder(member, source.pk, move_to_folder_id=target.pk)

        source.refresh_from_db()
        target.refresh_from_db()
        department.refresh_from_db()
        assert moved == 3
        assert source.is_active is False
        assert target.resource_count == 3
        assert department.folder_count == 1
        assert set(
            Resource.objects.filter(folder=target).values_list('pk', flat=True),
        ) == {resource.pk for resource in resources}

    def test_reassign_across_departments(
        self,
        member,
        folder,
        other_department,
        make_link_resource,
    ):
        """Test the target may live in another department."""
        make_link_resource(folder=folder)
        target = create_folder(
            member,
            name='Elsewhere',
            department_id=other_department.pk,
        )

        assert delete_folder(member, folder.pk, move_to_folder_id=target.pk) == 1

    def test_reassign_to_self_rejected(self, member, folder, make_link_resource):
        """Test the target cannot be the folder being deleted."""
        make_link_resource(folder=folder)

        with pytest.raises(ValidationError):
            delete_folder(member, folder.pk, move_to_folder_id=folder.pk)

    def test_reassign_to_inactive_target(
        self,
        member,
        department,
        folder,
        make_link_resource,
    ):
        """Test an inactive target is reported as not found."""
        make_link_resource(folder=folder)
        target = create_folder(member, name='Target', department_id=department.pk)
        delete_folder(member, target.pk)

        with pytest.raises(NotFoundError, match='Target folder not found'):
            delete_folder(member, folder.pk, move_to_folder_id=target.pk)

    def test_non_owner_cannot_delete(self, other_member, folder):
        """Test another member cannot delete the folder."""
        with pytest.raises(AuthorizationError):
            delete_folder(other_member, folder.pk)
