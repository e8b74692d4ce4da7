"""
Users - account operations.

Callers may only read, update or delete their own account. Listing other
users is not permitted for anyone.
"""

import asyncio
import logging
from dataclasses import replace

from ..auth import PasswordTooLongError, get_authenticated_user, hash_password
from ..database import (
    AlreadyExistsError,
    DBUser,
    InvalidUsernameError,
    NotFoundError,
    Users as UserStore,
)
from ..exceptions import AlreadyExists, Internal, InvalidArgument, PermissionDenied
from ..schemas import (
    CreateUserRequest,
    DeleteUserRequest,
    Empty,
    GetUserRequest,
    ListUsersRequest,
    ListUsersResponse,
    UpdateUserRequest,
    User,
)
from .interactivity import validate_mask
from .service import ArchiveDecorator, ArchiveService

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"password"})


def to_user(user: DBUser) -> User:
    return User(path=user.path, id=user.name)


class Users(ArchiveDecorator):
    """User CRUD. Sits inside the paginator so list_users is paginated."""

    def __init__(self, inner: ArchiveService, store: UserStore):
        super().__init__(inner)
        self.store = store

    async def create_user(self, req: CreateUserRequest) -> User:
        password_hash = await self._hash(req.password)
        user = await self._upsert(DBUser(name=req.id, password_hash=password_hash))
        logger.info(f"Created user {user.name}")
        return to_user(user)

    async def list_users(self, req: ListUsersRequest) -> ListUsersResponse:
        raise PermissionDenied("listing users is not permitted")

    async def get_user(self, req: GetUserRequest) -> User:
        return to_user(self._authorize(req.path))

    async def update_user(self, req: UpdateUserRequest) -> User:
        authd = self._authorize(req.path)
        validate_mask(req.update_mask, req.user)

        password_hash = authd.password_hash
        for path in req.update_mask:
            if path not in UPDATABLE_FIELDS:
                raise InvalidArgument(f"field {path!r} cannot be updated on User")
            password_hash = await self._hash(req.user.password or "")

        await self._upsert(replace(authd, password_hash=password_hash))
        logger.info(f"Updated {', '.join(req.update_mask)} for user {authd.name}")
        return to_user(authd)

    async def delete_user(self, req: DeleteUserRequest) -> Empty:
        authd = self._authorize(req.path)
        try:
            await asyncio.to_thread(self.store.delete_user, authd.id)
        except NotFoundError:
            pass
        except Exception as e:
            raise Internal(f"failed to delete user {authd.name}: {e}") from e

        logger.info(f"Deleted user {authd.name}")
        return Empty()

    # ─────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────

    @staticmethod
    def _authorize(path: str) -> DBUser:
        """The authenticated user, if ``path`` names them."""
        authd = get_authenticated_user()
        if path != authd.path:
            raise PermissionDenied(f"not permitted to access {path}")
        return authd

    @staticmethod
    async def _hash(password: str) -> bytes:
        try:
            return await asyncio.to_thread(hash_password, password)
        except PasswordTooLongError as e:
            raise InvalidArgument(str(e)) from e

    async def _upsert(self, user: DBUser) -> DBUser:
        try:
            return await asyncio.to_thread(self.store.upsert_user, user)
        except AlreadyExistsError as e:
            raise AlreadyExists(f"user {user.name} already exists") from e
        except InvalidUsernameError as e:
            raise InvalidArgument(str(e)) from e
        except Exception as e:
            raise Internal(f"failed to store user {user.name}: {e}") from e
