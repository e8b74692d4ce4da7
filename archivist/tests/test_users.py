"""
Tests for user account operations.
"""

import pytest

from archivist.archive import Users
from archivist.archive.service import ArchiveService
from archivist.auth import compare_password
from archivist.database import DBResource
from archivist.exceptions import AlreadyExists, InvalidArgument, PermissionDenied
from archivist.schemas import (
    CreateUserRequest,
    DeleteUserRequest,
    Empty,
    GetUserRequest,
    ListUsersRequest,
    UpdateUserRequest,
    User,
)
from archivist.tests.conftest import PASSWORD, USERNAME


@pytest.fixture
def users(test_db):
    return Users(ArchiveService(), test_db)


class TestCreateUser:
    @pytest.mark.asyncio
    async def test_create(self, users, test_db, as_user):
        user = await users.create_user(CreateUserRequest(id="new_reader", password="hunter22"))

        assert user == User(path="users/new_reader", id="new_reader")
        stored = test_db.get_user_by_name("new_reader")
        assert stored.id != 0
        assert compare_password("hunter22", stored.password_hash)

    @pytest.mark.asyncio
    async def test_duplicate_name(self, users, as_user):
        with pytest.raises(AlreadyExists):
            await users.create_user(CreateUserRequest(id=USERNAME, password="whatever"))

    @pytest.mark.asyncio
    async def test_password_too_long(self, users, as_user):
        with pytest.raises(InvalidArgument):
            await users.create_user(CreateUserRequest(id="new_reader", password="x" * 73))

    @pytest.mark.asyncio
    async def test_invalid_username_reaching_store(self, users, as_user):
        req = CreateUserRequest.model_construct(id="no spaces allowed", password="hunter22")

        with pytest.raises(InvalidArgument):
            await users.create_user(req)


class TestOwnAccountOnly:
    @pytest.mark.asyncio
    async def test_list_users_denied(self, users, as_user):
        with pytest.raises(PermissionDenied):
            await users.list_users(ListUsersRequest())

    @pytest.mark.asyncio
    async def test_get_self(self, users, as_user):
        user = await users.get_user(GetUserRequest(path=f"users/{USERNAME}"))

        assert user == User(path=f"users/{USERNAME}", id=USERNAME)

    @pytest.mark.asyncio
    async def test_get_other(self, users, as_user):
        with pytest.raises(PermissionDenied):
            await users.get_user(GetUserRequest(path="users/someone_else"))

    @pytest.mark.asyncio
    async def test_unauthenticated_caller_denied(self, users):
        with pytest.raises(PermissionDenied):
            await users.get_user(GetUserRequest(path=f"users/{USERNAME}"))


class TestUpdateUser:
    @pytest.mark.asyncio
    async def test_change_password(self, users, test_db, as_user):
        path = f"users/{USERNAME}"

        user = await users.update_user(UpdateUserRequest(
            path=path,
            user=User(path=path, id=USERNAME, password="new password"),
            update_mask=["password"],
        ))

        assert user.id == USERNAME
        stored = test_db.get_user_by_name(USERNAME)
        assert stored.id == as_user.id
        assert compare_password("new password", stored.password_hash)
        assert not compare_password(PASSWORD, stored.password_hash)

    @pytest.mark.asyncio
    async def test_empty_mask(self, users, as_user):
        path = f"users/{USERNAME}"

        with pytest.raises(InvalidArgument):
            await users.update_user(UpdateUserRequest(path=path, user=User(path=path, id=USERNAME)))

    @pytest.mark.asyncio
    async def test_id_not_updatable(self, users, as_user):
        path = f"users/{USERNAME}"

        with pytest.raises(InvalidArgument):
            await users.update_user(UpdateUserRequest(
                path=path, user=User(path=path, id=USERNAME), update_mask=["id"],
            ))

    @pytest.mark.asyncio
    async def test_mask_paths_are_case_sensitive(self, users, test_db, as_user):
        path = f"users/{USERNAME}"

        with pytest.raises(InvalidArgument):
            await users.update_user(UpdateUserRequest(
                path=path,
                user=User(path=path, id=USERNAME, password="new password"),
                update_mask=["PASSWORD"],
            ))

        assert compare_password(PASSWORD, test_db.get_user_by_name(USERNAME).password_hash)

    @pytest.mark.asyncio
    async def test_other_user(self, users, as_user):
        path = "users/someone_else"

        with pytest.raises(PermissionDenied):
            await users.update_user(UpdateUserRequest(
                path=path, user=User(path=path, id="someone_else", password="x"), update_mask=["password"],
            ))


class TestDeleteUser:
    @pytest.mark.asyncio
    async def test_delete_self_cascades(self, users, test_db, as_user):
        test_db.upsert_resource(DBResource(user_id=as_user.id, path="categories/fiction", hidden=True))

        result = await users.delete_user(DeleteUserRequest(path=f"users/{USERNAME}"))

        assert result == Empty()
        assert test_db.list_users() == []
        assert test_db.list_resources(as_user.id, ["categories/fiction"]) == []

    @pytest.mark.asyncio
    async def test_delete_twice_is_fine(self, users, as_user):
        await users.delete_user(DeleteUserRequest(path=f"users/{USERNAME}"))
        await users.delete_user(DeleteUserRequest(path=f"users/{USERNAME}"))

    @pytest.mark.asyncio
    async def test_delete_other(self, users, test_db, as_user):
        with pytest.raises(PermissionDenied):
            await users.delete_user(DeleteUserRequest(path="users/someone_else"))

        assert len(test_db.list_users()) == 1
