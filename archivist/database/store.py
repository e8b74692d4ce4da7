"""Protocols for the interaction and user stores used by the archive service."""

from typing import Protocol, runtime_checkable

from .models import DBResource, DBUser


@runtime_checkable
class Resources(Protocol):
    """Per-user interaction records keyed by archive path."""

    def list_resources(self, user_id: int, paths: list[str]) -> list[DBResource]:
        """Records for whichever of ``paths`` the user has interacted with."""
        ...

    def get_resource(self, user_id: int, path: str) -> DBResource:
        """The record for ``path``; raises NotFoundError if there is none."""
        ...

    def upsert_resource(self, resource: DBResource) -> None:
        """Create or fully replace a record."""
        ...


@runtime_checkable
class Users(Protocol):
    """User accounts."""

    def list_users(self, after_name: str = "", limit: int = 100) -> list[DBUser]:
        ...

    def get_user(self, user_id: int) -> DBUser:
        """Raises NotFoundError if the id does not exist."""
        ...

    def get_user_by_name(self, name: str) -> DBUser:
        """Raises NotFoundError if the name does not exist."""
        ...

    def upsert_user(self, user: DBUser) -> DBUser:
        """Create or fully replace a user; raises AlreadyExistsError on a taken name."""
        ...

    def delete_user(self, user_id: int) -> None:
        """Hard delete a user and all of their interaction records."""
        ...


@runtime_checkable
class Store(Resources, Users, Protocol):
    def close(self) -> None:
        ...
