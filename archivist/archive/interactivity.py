"""
Interactivity - update operations for per-user interaction state.

Updates load the caller's record for the path (or start a blank one),
apply the fields named by the update mask, store the record and then
re-read the resource through the chain so the response is fully hydrated.
"""

import asyncio
import logging
from typing import Callable

from pydantic import BaseModel

from ..auth import get_authenticated_user
from ..database import DBResource, NotFoundError, Resources
from ..exceptions import Internal, InvalidArgument
from ..schemas import (
    Category,
    Chapter,
    Entry,
    GetCategoryRequest,
    GetChapterRequest,
    GetEntryRequest,
    UpdateCategoryRequest,
    UpdateChapterRequest,
    UpdateEntryRequest,
)
from .service import ArchiveDecorator, ArchiveService

logger = logging.getLogger(__name__)

# Interaction fields each resource type may update
CATEGORY_FIELDS = frozenset({"hidden"})
ENTRY_FIELDS = frozenset({"hidden", "starred", "view_time", "read_time"})
CHAPTER_FIELDS = frozenset({"view_time", "read_time"})


def validate_mask(mask: list[str], resource: BaseModel):
    """Reject an empty mask or one naming fields the resource does not have."""
    if not mask:
        raise InvalidArgument("update_mask must name at least one field")
    unknown = [path for path in mask if path not in type(resource).model_fields]
    if unknown:
        raise InvalidArgument(f"update_mask has unknown fields: {', '.join(unknown)}")


def apply_mask(record: DBResource, resource: BaseModel, mask: list[str], fields: frozenset[str]):
    """Copy each masked field from ``resource`` onto ``record``."""
    for path in mask:
        if path not in fields:
            raise InvalidArgument(f"field {path!r} cannot be updated on {type(resource).__name__}")
        setattr(record, path, getattr(resource, path))


class Interactivity(ArchiveDecorator):
    """Star, hide and mark resources viewed or read."""

    def __init__(self, inner: ArchiveService, store: Resources):
        super().__init__(inner)
        self.store = store

    async def update_category(self, req: UpdateCategoryRequest) -> Category:
        await self._update(req.path, req.category, req.update_mask, CATEGORY_FIELDS)
        return await self.get_category(GetCategoryRequest(path=req.path))

    async def update_entry(self, req: UpdateEntryRequest) -> Entry:
        await self._update(req.path, req.entry, req.update_mask, ENTRY_FIELDS)
        return await self.get_entry(GetEntryRequest(path=req.path))

    async def update_chapter(self, req: UpdateChapterRequest) -> Chapter:
        await self._update(req.path, req.chapter, req.update_mask, CHAPTER_FIELDS)
        return await self.get_chapter(GetChapterRequest(path=req.path))

    async def _update(self, path: str, resource: BaseModel, mask: list[str], fields: frozenset[str]):
        user = get_authenticated_user()
        record = await self._call(self._load, user.id, path)

        validate_mask(mask, resource)
        apply_mask(record, resource, mask, fields)

        await self._call(self.store.upsert_resource, record)
        logger.debug(f"Updated {', '.join(mask)} on {path} for user {user.id}")

    def _load(self, user_id: int, path: str) -> DBResource:
        try:
            return self.store.get_resource(user_id, path)
        except NotFoundError:
            return DBResource(user_id=user_id, path=path)

    @staticmethod
    async def _call(fn: Callable, *args):
        try:
            return await asyncio.to_thread(fn, *args)
        except Exception as e:
            raise Internal(f"interaction store failure: {e}") from e
