"""
Database facade - satisfies the Resources and Users store protocols.

Delegates to the repositories and translates missing rows into
NotFoundError, validates usernames and assigns snowflake IDs to new users.
"""

import logging
import random
import re
import threading
from dataclasses import replace
from pathlib import Path

from snowflake import SnowflakeGenerator

from .connection import DatabaseConnection
from .errors import InvalidUsernameError, NotFoundError
from .models import DBResource, DBUser
from .resource_repository import ResourceRepository
from .user_repository import UserRepository

logger = logging.getLogger(__name__)

MIN_USERNAME_LEN = 3
MAX_USERNAME_LEN = 64
USERNAME_RE = re.compile(r"^[a-zA-Z0-9_]+$")


def validate_username(name: str) -> bool:
    return MIN_USERNAME_LEN <= len(name) <= MAX_USERNAME_LEN and bool(USERNAME_RE.match(name))


class Database:
    """
    Unified database access facade.

    Every method is synchronous; async callers run them with
    ``asyncio.to_thread``.
    """

    def __init__(self, db_path: Path, instance: int | None = None):
        self._connection = DatabaseConnection(db_path)
        self._ids = SnowflakeGenerator(instance if instance is not None else random.randint(0, 1023))
        self._ids_lock = threading.Lock()

        # Initialize repositories
        self.resources = ResourceRepository(self._connection)
        self.users = UserRepository(self._connection)

    def close(self) -> None:
        # Connections are opened per operation
        pass

    # ─────────────────────────────────────────────────────────────
    # Interaction records (delegated to ResourceRepository)
    # ─────────────────────────────────────────────────────────────

    def list_resources(self, user_id: int, paths: list[str]) -> list[DBResource]:
        return self.resources.get_many(user_id, list(paths))

    def get_resource(self, user_id: int, path: str) -> DBResource:
        resource = self.resources.get(user_id, path)
        if resource is None:
            raise NotFoundError(f"no record for {path!r}")
        return resource

    def upsert_resource(self, resource: DBResource) -> None:
        self.resources.upsert(resource)

    # ─────────────────────────────────────────────────────────────
    # Users (delegated to UserRepository)
    # ─────────────────────────────────────────────────────────────

    def list_users(self, after_name: str = "", limit: int = 100) -> list[DBUser]:
        return self.users.list_after(after_name, limit)

    def get_user(self, user_id: int) -> DBUser:
        user = self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError(f"no user with id {user_id}")
        return user

    def get_user_by_name(self, name: str) -> DBUser:
        user = self.users.get_by_name(name)
        if user is None:
            raise NotFoundError(f"no user named {name!r}")
        return user

    def upsert_user(self, user: DBUser) -> DBUser:
        if not validate_username(user.name):
            raise InvalidUsernameError(user.name)
        if not user.id:
            with self._ids_lock:
                user = replace(user, id=next(self._ids))
        stored = self.users.upsert(user)
        logger.debug(f"Upserted user {stored.name} ({stored.id})")
        return stored

    def delete_user(self, user_id: int) -> None:
        if not self.users.delete(user_id):
            raise NotFoundError(f"no user with id {user_id}")
