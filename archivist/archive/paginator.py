"""
Paginator - page tokens, filtering and page size limits for list results.

Every list result passes through three steps, in order:
1. The request's page token drops everything up to and including its cursor
2. The request's filter drops non-matching elements
3. Results past max_page_size are cut and a token for the next page issued

Cursors are positional hints into a freshly scraped list, not snapshots.
When the cursor element has moved or gone, listing resumes from the
nearest element that sorts after it, so elements can be skipped or
repeated if the upstream reorders between calls.
"""

import logging
from typing import Callable, Sequence, TypeVar

from pydantic import BaseModel

from ..exceptions import Internal, InvalidArgument
from ..pagination import TokenError, from_token, to_token
from ..schemas import (
    Category,
    Chapter,
    Entry,
    ListCategoriesPageToken,
    ListCategoriesRequest,
    ListCategoriesResponse,
    ListChaptersPageToken,
    ListChaptersRequest,
    ListChaptersResponse,
    ListEntriesPageToken,
    ListEntriesRequest,
    ListEntriesResponse,
    ListRequest,
    ListUsersPageToken,
    ListUsersRequest,
    ListUsersResponse,
    User,
)
from .filtering import FilterEnvironment, FilterError
from .service import ArchiveDecorator, ArchiveService

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)
Tkn = TypeVar("Tkn", bound=BaseModel)


# ─────────────────────────────────────────────────────────────
# Cursor positioning
# ─────────────────────────────────────────────────────────────

def _index(results: Sequence[T], predicate: Callable[[T], bool]) -> int:
    return next((i for i, result in enumerate(results) if predicate(result)), -1)


def after_category(results: list[Category], token: ListCategoriesPageToken) -> list[Category]:
    """Categories after the cursor. Categories are listed alphabetically."""
    idx = _index(results, lambda c: c.path == token.after_category)
    if idx != -1:
        return results[idx + 1:]
    # Cursor category is gone; resume at the next one alphabetically
    idx = _index(results, lambda c: c.path > token.after_category)
    if idx != -1:
        return results[idx:]
    return []


def after_entry(results: list[Entry], token: ListEntriesPageToken) -> list[Entry]:
    """
    Entries after the cursor.

    An entry can move when it is updated, so the cursor only matches if
    both path and update time are unchanged. Otherwise listing resumes at
    the first entry updated no earlier than the cursor. If there is none,
    the cursor belongs to a previous upstream page and the whole page is new.
    """
    idx = _index(
        results,
        lambda e: e.path == token.after_entry and e.update_time == token.start_update_time,
    )
    if idx != -1:
        return results[idx + 1:]
    idx = _index(
        results,
        lambda e: e.update_time is not None and e.update_time >= token.start_update_time,
    )
    if idx != -1:
        return results[idx:]
    return results


def after_chapter(results: list[Chapter], token: ListChaptersPageToken) -> list[Chapter]:
    idx = _index(results, lambda c: c.path == token.after_chapter)
    return results[idx + 1:] if idx != -1 else results


def after_user(results: list[User], token: ListUsersPageToken) -> list[User]:
    idx = _index(results, lambda u: u.path == token.after_user)
    return results[idx + 1:] if idx != -1 else results


# ─────────────────────────────────────────────────────────────
# Paginator
# ─────────────────────────────────────────────────────────────

class Paginator(ArchiveDecorator):
    """Applies page tokens, filters and page sizes to hydrated list results."""

    def __init__(self, inner: ArchiveService):
        super().__init__(inner)
        self.categories = FilterEnvironment(Category)
        self.entries = FilterEnvironment(Entry)
        self.chapters = FilterEnvironment(Chapter)
        self.users = FilterEnvironment(User)

    async def list_categories(self, req: ListCategoriesRequest) -> ListCategoriesResponse:
        resp = await self.inner.list_categories(req)

        results = resp.results
        if token := _decode(req.page_token, ListCategoriesPageToken):
            results = after_category(results, token)
        results = _filter(self.categories, req, results)

        if _exceeds(req, results):
            results = results[:req.max_page_size]
            resp.next_page_token = _encode(ListCategoriesPageToken(after_category=results[-1].path))

        resp.results = results
        return resp

    async def list_entries(self, req: ListEntriesRequest) -> ListEntriesResponse:
        resp = await self.inner.list_entries(req)

        # The scraper only issues a token when the category spans several
        # upstream pages; it records which upstream page was just read.
        upstream = _decode(resp.next_page_token, ListEntriesPageToken)
        cursor = _decode(req.page_token, ListEntriesPageToken)

        results = resp.results
        if cursor:
            results = after_entry(results, cursor)
        results = _filter(self.entries, req, results)

        page = upstream.page if upstream else cursor.page if cursor else 1
        if _exceeds(req, results):
            # More left on this upstream page; stay on it
            results = results[:req.max_page_size]
            last = results[-1]
            if last.update_time is None:
                raise Internal(f"entry {last.path} has no update time to resume from")
            resp.next_page_token = _encode(ListEntriesPageToken(
                page=page,
                after_entry=last.path,
                start_update_time=last.update_time,
            ))
        elif upstream:
            # Upstream page fully served; continue with the next one
            resp.next_page_token = _encode(upstream.model_copy(update={"page": upstream.page + 1}))
        else:
            resp.next_page_token = ""

        resp.results = results
        return resp

    async def list_chapters(self, req: ListChaptersRequest) -> ListChaptersResponse:
        resp = await self.inner.list_chapters(req)

        results = resp.results
        if token := _decode(req.page_token, ListChaptersPageToken):
            results = after_chapter(results, token)
        results = _filter(self.chapters, req, results)

        if _exceeds(req, results):
            results = results[:req.max_page_size]
            resp.next_page_token = _encode(ListChaptersPageToken(after_chapter=results[-1].path))

        resp.results = results
        return resp

    async def list_users(self, req: ListUsersRequest) -> ListUsersResponse:
        resp = await self.inner.list_users(req)

        results = resp.results
        if token := _decode(req.page_token, ListUsersPageToken):
            results = after_user(results, token)
        results = _filter(self.users, req, results)

        if _exceeds(req, results):
            results = results[:req.max_page_size]
            resp.next_page_token = _encode(ListUsersPageToken(after_user=results[-1].path))

        resp.results = results
        return resp


# ─────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────

def _decode(token: str, model: type[Tkn]) -> Tkn | None:
    if not token:
        return None
    try:
        return from_token(token, model)
    except TokenError as e:
        raise InvalidArgument(str(e)) from e


def _encode(token: BaseModel) -> str:
    try:
        return to_token(token)
    except TokenError as e:
        raise Internal(f"failed to construct pagination token: {e}") from e


def _filter(env: FilterEnvironment[T], req: ListRequest, results: list[T]) -> list[T]:
    if not req.filter or not results:
        return results
    try:
        return env.apply(req.filter, results)
    except FilterError as e:
        raise InvalidArgument(str(e)) from e


def _exceeds(req: ListRequest, results: list) -> bool:
    return 0 < req.max_page_size < len(results)
