"""
Validator - schema checks on the way in and on the way out.

Requests that fail their model's constraints are rejected with
InvalidArgument before reaching any other layer. Responses that fail are
logged and returned anyway.
"""

import logging
from typing import Awaitable, Callable, TypeVar

from pydantic import BaseModel, ValidationError

from ..exceptions import InvalidArgument
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
from .service import ArchiveDecorator

logger = logging.getLogger(__name__)

Req = TypeVar("Req", bound=BaseModel)
Res = TypeVar("Res", bound=BaseModel)


def check(msg: BaseModel) -> None:
    """
    Re-validate ``msg`` against its own model.

    Models are only validated when constructed, so this catches instances
    built with ``model_construct`` or mutated afterwards.

    Raises:
        ValidationError: a field violates its constraints
    """
    type(msg).model_validate(msg.model_dump())


class Validator(ArchiveDecorator):
    """Outermost layer: rejects malformed requests, flags malformed responses."""

    async def list_categories(self, req: ListCategoriesRequest) -> ListCategoriesResponse:
        return await self._validate("list_categories", req, self.inner.list_categories)

    async def get_category(self, req: GetCategoryRequest) -> Category:
        return await self._validate("get_category", req, self.inner.get_category)

    async def update_category(self, req: UpdateCategoryRequest) -> Category:
        return await self._validate("update_category", req, self.inner.update_category)

    async def list_entries(self, req: ListEntriesRequest) -> ListEntriesResponse:
        return await self._validate("list_entries", req, self.inner.list_entries)

    async def get_entry(self, req: GetEntryRequest) -> Entry:
        return await self._validate("get_entry", req, self.inner.get_entry)

    async def update_entry(self, req: UpdateEntryRequest) -> Entry:
        return await self._validate("update_entry", req, self.inner.update_entry)

    async def read_entry(self, req: ReadEntryRequest) -> ReadEntryResponse:
        return await self._validate("read_entry", req, self.inner.read_entry)

    async def list_chapters(self, req: ListChaptersRequest) -> ListChaptersResponse:
        return await self._validate("list_chapters", req, self.inner.list_chapters)

    async def get_chapter(self, req: GetChapterRequest) -> Chapter:
        return await self._validate("get_chapter", req, self.inner.get_chapter)

    async def update_chapter(self, req: UpdateChapterRequest) -> Chapter:
        return await self._validate("update_chapter", req, self.inner.update_chapter)

    async def read_chapter(self, req: ReadChapterRequest) -> ReadChapterResponse:
        return await self._validate("read_chapter", req, self.inner.read_chapter)

    async def create_user(self, req: CreateUserRequest) -> User:
        return await self._validate("create_user", req, self.inner.create_user)

    async def list_users(self, req: ListUsersRequest) -> ListUsersResponse:
        return await self._validate("list_users", req, self.inner.list_users)

    async def get_user(self, req: GetUserRequest) -> User:
        return await self._validate("get_user", req, self.inner.get_user)

    async def update_user(self, req: UpdateUserRequest) -> User:
        return await self._validate("update_user", req, self.inner.update_user)

    async def delete_user(self, req: DeleteUserRequest) -> Empty:
        return await self._validate("delete_user", req, self.inner.delete_user)

    @staticmethod
    async def _validate(name: str, req: Req, handle: Callable[[Req], Awaitable[Res]]) -> Res:
        try:
            check(req)
        except ValidationError as e:
            raise InvalidArgument(str(e)) from e

        resp = await handle(req)

        try:
            check(resp)
        except ValidationError as e:
            logger.warning(f"Response validation failed in {name}: {e}")
        return resp
