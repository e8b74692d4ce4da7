"""
Tests for the SQLite user and interaction store.
"""

import sqlite3
from datetime import datetime, timezone

import pytest

from archivist.database import (
    AlreadyExistsError,
    Database,
    DBResource,
    DBUser,
    InvalidUsernameError,
    NotFoundError,
    Resources,
    Store,
    Users,
)

VIEWED = datetime(2025, 5, 1, 9, 0, tzinfo=timezone.utc)


class TestProtocols:
    def test_database_satisfies_store(self, test_db):
        assert isinstance(test_db, Store)
        assert isinstance(test_db, Resources)
        assert isinstance(test_db, Users)


class TestUsers:
    def test_upsert_assigns_id(self, test_db):
        user = test_db.upsert_user(DBUser(name="reader", password_hash=b"hash"))

        assert user.id > 0
        assert test_db.get_user(user.id) == user

    def test_ids_are_unique(self, test_db):
        first = test_db.upsert_user(DBUser(name="first", password_hash=b"x"))
        second = test_db.upsert_user(DBUser(name="second", password_hash=b"x"))

        assert first.id != second.id

    def test_get_by_name(self, test_db):
        user = test_db.upsert_user(DBUser(name="reader", password_hash=b"hash"))

        assert test_db.get_user_by_name("reader") == user

    def test_missing_user(self, test_db):
        with pytest.raises(NotFoundError):
            test_db.get_user(12345)
        with pytest.raises(NotFoundError):
            test_db.get_user_by_name("nobody")

    def test_upsert_replaces_existing(self, test_db):
        user = test_db.upsert_user(DBUser(name="reader", password_hash=b"old"))

        test_db.upsert_user(DBUser(id=user.id, name="reader", password_hash=b"new"))

        assert test_db.get_user(user.id).password_hash == b"new"

    def test_duplicate_name(self, test_db):
        test_db.upsert_user(DBUser(name="reader", password_hash=b"x"))

        with pytest.raises(AlreadyExistsError):
            test_db.upsert_user(DBUser(name="reader", password_hash=b"y"))

    @pytest.mark.parametrize("name", ["ab", "a" * 65, "has space", "dash-ed", ""])
    def test_invalid_username(self, test_db, name):
        with pytest.raises(InvalidUsernameError):
            test_db.upsert_user(DBUser(name=name, password_hash=b"x"))

    def test_list_users_after_name(self, test_db):
        for name in ("carol", "alice", "bob"):
            test_db.upsert_user(DBUser(name=name, password_hash=b"x"))

        assert [u.name for u in test_db.list_users()] == ["alice", "bob", "carol"]
        assert [u.name for u in test_db.list_users(after_name="alice", limit=1)] == ["bob"]

    def test_delete(self, test_db):
        user = test_db.upsert_user(DBUser(name="reader", password_hash=b"x"))

        test_db.delete_user(user.id)

        with pytest.raises(NotFoundError):
            test_db.get_user(user.id)

    def test_delete_missing(self, test_db):
        with pytest.raises(NotFoundError):
            test_db.delete_user(12345)


class TestResources:
    def test_round_trip(self, test_db, user):
        record = DBResource(
            user_id=user.id, path="categories/foo/entries/bar", starred=True, view_time=VIEWED,
        )

        test_db.upsert_resource(record)

        assert test_db.get_resource(user.id, record.path) == record

    def test_missing_record(self, test_db, user):
        with pytest.raises(NotFoundError):
            test_db.get_resource(user.id, "categories/foo")

    def test_upsert_replaces_all_fields(self, test_db, user):
        path = "categories/foo/entries/bar"
        test_db.upsert_resource(DBResource(user_id=user.id, path=path, starred=True, view_time=VIEWED))

        test_db.upsert_resource(DBResource(user_id=user.id, path=path, hidden=True))

        stored = test_db.get_resource(user.id, path)
        assert stored.hidden
        assert not stored.starred
        assert stored.view_time is None

    def test_naive_times_stored_as_utc(self, test_db, user):
        path = "categories/foo"
        test_db.upsert_resource(DBResource(user_id=user.id, path=path, read_time=datetime(2025, 1, 1, 8, 0)))

        assert test_db.get_resource(user.id, path).read_time == datetime(2025, 1, 1, 8, 0, tzinfo=timezone.utc)

    def test_list_returns_existing_only(self, test_db, user):
        test_db.upsert_resource(DBResource(user_id=user.id, path="categories/a", hidden=True))
        test_db.upsert_resource(DBResource(user_id=user.id, path="categories/c", hidden=True))

        records = test_db.list_resources(user.id, ["categories/a", "categories/b", "categories/c"])

        assert sorted(r.path for r in records) == ["categories/a", "categories/c"]

    def test_list_many_paths(self, test_db, user):
        paths = [f"categories/c{i}" for i in range(1200)]
        test_db.upsert_resource(DBResource(user_id=user.id, path=paths[-1], starred=True))

        records = test_db.list_resources(user.id, paths)

        assert [r.path for r in records] == [paths[-1]]

    def test_list_empty_paths(self, test_db, user):
        assert test_db.list_resources(user.id, []) == []

    def test_records_require_user(self, test_db):
        with pytest.raises(sqlite3.IntegrityError):
            test_db.upsert_resource(DBResource(user_id=999, path="categories/foo"))

    def test_deleting_user_removes_records(self, test_db, user):
        test_db.upsert_resource(DBResource(user_id=user.id, path="categories/foo", hidden=True))

        test_db.delete_user(user.id)

        with pytest.raises(NotFoundError):
            test_db.get_resource(user.id, "categories/foo")


class TestPersistence:
    def test_reopen(self, temp_db_path):
        db = Database(temp_db_path)
        user = db.upsert_user(DBUser(name="reader", password_hash=b"x"))

        reopened = Database(temp_db_path)

        assert reopened.get_user_by_name("reader").id == user.id
