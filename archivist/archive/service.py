"""
Archive service interface.

Each layer of the archive implements the full operation set. Layers
subclass ArchiveDecorator, override the operations they handle and
forward everything else to the wrapped service unchanged.
"""

from ..exceptions import Unimplemented
from ..schemas import (
    Category,
    Chapter,
    CreateUserRequest,
    DeleteUserRequest,
    Empty,
    Entry,
    GetCategoryRequest,
    GetChapterRequest,
    GetEntryRequest,
    GetUserRequest,
    ListCategoriesRequest,
    ListCategoriesResponse,
    ListChaptersRequest,
    ListChaptersResponse,
    ListEntriesRequest,
    ListEntriesResponse,
    ListUsersRequest,
    ListUsersResponse,
    ReadChapterRequest,
    ReadChapterResponse,
    ReadEntryRequest,
    ReadEntryResponse,
    UpdateCategoryRequest,
    UpdateChapterRequest,
    UpdateEntryRequest,
    UpdateUserRequest,
    User,
)

OPERATIONS = (
    "list_categories",
    "get_category",
    "update_category",
    "list_entries",
    "get_entry",
    "update_entry",
    "read_entry",
    "list_chapters",
    "get_chapter",
    "update_chapter",
    "read_chapter",
    "create_user",
    "list_users",
    "get_user",
    "update_user",
    "delete_user",
)


class ArchiveService:
    """The archive operation set. Every operation is unimplemented here."""

    def _unimplemented(self, operation: str):
        raise Unimplemented(f"{operation} is not implemented")

    # ─────────────────────────────────────────────────────────────
    # Categories
    # ─────────────────────────────────────────────────────────────

    async def list_categories(self, req: ListCategoriesRequest) -> ListCategoriesResponse:
        self._unimplemented("list_categories")

    async def get_category(self, req: GetCategoryRequest) -> Category:
        self._unimplemented("get_category")

    async def update_category(self, req: UpdateCategoryRequest) -> Category:
        self._unimplemented("update_category")

    # ─────────────────────────────────────────────────────────────
    # Entries
    # ─────────────────────────────────────────────────────────────

    async def list_entries(self, req: ListEntriesRequest) -> ListEntriesResponse:
        self._unimplemented("list_entries")

    async def get_entry(self, req: GetEntryRequest) -> Entry:
        self._unimplemented("get_entry")

    async def update_entry(self, req: UpdateEntryRequest) -> Entry:
        self._unimplemented("update_entry")

    async def read_entry(self, req: ReadEntryRequest) -> ReadEntryResponse:
        self._unimplemented("read_entry")

    # ─────────────────────────────────────────────────────────────
    # Chapters
    # ─────────────────────────────────────────────────────────────

    async def list_chapters(self, req: ListChaptersRequest) -> ListChaptersResponse:
        self._unimplemented("list_chapters")

    async def get_chapter(self, req: GetChapterRequest) -> Chapter:
        self._unimplemented("get_chapter")

    async def update_chapter(self, req: UpdateChapterRequest) -> Chapter:
        self._unimplemented("update_chapter")

    async def read_chapter(self, req: ReadChapterRequest) -> ReadChapterResponse:
        self._unimplemented("read_chapter")

    # ─────────────────────────────────────────────────────────────
    # Users
    # ─────────────────────────────────────────────────────────────

    async def create_user(self, req: CreateUserRequest) -> User:
        self._unimplemented("create_user")

    async def list_users(self, req: ListUsersRequest) -> ListUsersResponse:
        self._unimplemented("list_users")

    async def get_user(self, req: GetUserRequest) -> User:
        self._unimplemented("get_user")

    async def update_user(self, req: UpdateUserRequest) -> User:
        self._unimplemented("update_user")

    async def delete_user(self, req: DeleteUserRequest) -> Empty:
        self._unimplemented("delete_user")


class ArchiveDecorator(ArchiveService):
    """An ArchiveService that forwards every operation to ``inner``."""

    def __init__(self, inner: ArchiveService):
        self.inner = inner

    async def list_categories(self, req: ListCategoriesRequest) -> ListCategoriesResponse:
        return await self.inner.list_categories(req)

    async def get_category(self, req: GetCategoryRequest) -> Category:
        return await self.inner.get_category(req)

    async def update_category(self, req: UpdateCategoryRequest) -> Category:
        return await self.inner.update_category(req)

    async def list_entries(self, req: ListEntriesRequest) -> ListEntriesResponse:
        return await self.inner.list_entries(req)

    async def get_entry(self, req: GetEntryRequest) -> Entry:
        return await self.inner.get_entry(req)

    async def update_entry(self, req: UpdateEntryRequest) -> Entry:
        return await self.inner.update_entry(req)

    async def read_entry(self, req: ReadEntryRequest) -> ReadEntryResponse:
        return await self.inner.read_entry(req)

    async def list_chapters(self, req: ListChaptersRequest) -> ListChaptersResponse:
        return await self.inner.list_chapters(req)

    async def get_chapter(self, req: GetChapterRequest) -> Chapter:
        return await self.inner.get_chapter(req)

    async def update_chapter(self, req: UpdateChapterRequest) -> Chapter:
        return await self.inner.update_chapter(req)

    async def read_chapter(self, req: ReadChapterRequest) -> ReadChapterResponse:
        return await self.inner.read_chapter(req)

    async def create_user(self, req: CreateUserRequest) -> User:
        return await self.inner.create_user(req)

    async def list_users(self, req: ListUsersRequest) -> ListUsersResponse:
        return await self.inner.list_users(req)

    async def get_user(self, req: GetUserRequest) -> User:
        return await self.inner.get_user(req)

    async def update_user(self, req: UpdateUserRequest) -> User:
        return await self.inner.update_user(req)

    async def delete_user(self, req: DeleteUserRequest) -> Empty:
        return await self.inner.delete_user(req)
