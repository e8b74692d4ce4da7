"""
Hydrator - joins per-user interaction records onto scraped resources.

Single-resource reads run the scrape and the record lookup concurrently.
List reads scrape first, then fetch every record for the returned paths
in one batch. A missing record is not an error; the resource keeps its
default (unstarred, unhidden, never viewed or read) state.
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from ..auth import get_authenticated_user
from ..database import DBResource, NotFoundError, Resources
from ..exceptions import ArchiveError, Internal
from ..schemas import (
    Category,
    Chapter,
    Entry,
    GetCategoryRequest,
    GetChapterRequest,
    GetEntryRequest,
    ListCategoriesRequest,
    ListCategoriesResponse,
    ListChaptersRequest,
    ListChaptersResponse,
    ListEntriesRequest,
    ListEntriesResponse,
)
from .service import ArchiveDecorator, ArchiveService

logger = logging.getLogger(__name__)

T = TypeVar("T", Category, Entry, Chapter)


def hydrate_category(category: Category, record: DBResource):
    category.hidden = record.hidden


def hydrate_entry(entry: Entry, record: DBResource):
    entry.starred = record.starred
    entry.hidden = record.hidden
    entry.view_time = record.view_time
    entry.read_time = record.read_time


def hydrate_chapter(chapter: Chapter, record: DBResource):
    chapter.view_time = record.view_time
    chapter.read_time = record.read_time


class Hydrator(ArchiveDecorator):
    """Layers the authenticated user's interaction state onto resources."""

    def __init__(self, inner: ArchiveService, store: Resources):
        super().__init__(inner)
        self.store = store

    async def list_categories(self, req: ListCategoriesRequest) -> ListCategoriesResponse:
        resp = await self.inner.list_categories(req)
        await self._hydrate_list(resp.results, hydrate_category)
        return resp

    async def get_category(self, req: GetCategoryRequest) -> Category:
        return await self._hydrate_one(self.inner.get_category(req), req.path, hydrate_category)

    async def list_entries(self, req: ListEntriesRequest) -> ListEntriesResponse:
        resp = await self.inner.list_entries(req)
        await self._hydrate_list(resp.results, hydrate_entry)
        return resp

    async def get_entry(self, req: GetEntryRequest) -> Entry:
        return await self._hydrate_one(self.inner.get_entry(req), req.path, hydrate_entry)

    async def list_chapters(self, req: ListChaptersRequest) -> ListChaptersResponse:
        resp = await self.inner.list_chapters(req)
        await self._hydrate_list(resp.results, hydrate_chapter)
        return resp

    async def get_chapter(self, req: GetChapterRequest) -> Chapter:
        return await self._hydrate_one(self.inner.get_chapter(req), req.path, hydrate_chapter)

    # ─────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────

    async def _hydrate_one(
        self,
        fetch: Awaitable[T],
        path: str,
        hydrate: Callable[[T, DBResource], None],
    ) -> T:
        """Run the scrape and the record lookup together; the first failure cancels the other."""
        scrape = asyncio.ensure_future(fetch)
        lookup = asyncio.ensure_future(self._lookup(path))
        try:
            resource, record = await asyncio.gather(scrape, lookup)
        except BaseException:
            scrape.cancel()
            lookup.cancel()
            raise

        hydrate(resource, record)
        return resource

    async def _lookup(self, path: str) -> DBResource:
        user = get_authenticated_user()
        try:
            return await asyncio.to_thread(self.store.get_resource, user.id, path)
        except NotFoundError:
            return DBResource(user_id=user.id, path=path)
        except ArchiveError:
            raise
        except Exception as e:
            raise Internal(f"failed to load interaction record for {path}: {e}") from e

    async def _hydrate_list(self, results: list[T], hydrate: Callable[[T, DBResource], None]):
        if not results:
            return

        user = get_authenticated_user()
        paths = [result.path for result in results]
        try:
            records = await asyncio.to_thread(self.store.list_resources, user.id, paths)
        except Exception as e:
            raise Internal(f"failed to load interaction records: {e}") from e

        by_path = {record.path: record for record in records}
        for result in results:
            record = by_path.get(result.path)
            if record is not None:
                hydrate(result, record)
