"""
Scraper - reads archive structure and content from the upstream HTML site.

Handles:
- Category listing from the root page's list group
- Entry and chapter listings from directory-style tables
- Year inference for listing timestamps that omit the year
- Content reads, transformed to HTML or Markdown

Only read operations are implemented; updates and users are handled by
the layers wrapped around this one. Pagination here only mirrors the
upstream's own paging of large categories.
"""

import logging
import posixpath
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Callable
from zoneinfo import ZoneInfo

from bs4 import BeautifulSoup, Comment, Tag

from .. import content
from ..exceptions import Internal, InvalidArgument, NotFound
from ..pagination import TokenError, from_token, to_token
from ..schemas import (
    Category,
    Chapter,
    Entry,
    EntryKind,
    GetCategoryRequest,
    GetChapterRequest,
    GetEntryRequest,
    ListCategoriesRequest,
    ListCategoriesResponse,
    ListChaptersRequest,
    ListChaptersResponse,
    ListEntriesPageToken,
    ListEntriesRequest,
    ListEntriesResponse,
    MimeType,
    ReadChapterRequest,
    ReadChapterResponse,
    ReadEntryRequest,
    ReadEntryResponse,
)
from ..slugconv import (
    SlugError,
    from_category_path,
    from_chapter_path,
    from_entry_path,
    to_category_path,
    to_chapter_path,
    to_entry_path,
    to_title,
)
from ..upstream import UpstreamClient, UpstreamError, UpstreamResponse
from .service import ArchiveDecorator, ArchiveService

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "America/New_York"

ROW_SELECTOR = "div.ftr,tr:not(:first-child)"
CATEGORY_SELECTOR = ".list-group-item"
# Only categories the upstream splits over several pages carry this element
PAGINATION_MARKER = "#scroll"

DIRECTORY_MARKER = "Dir"

MONTHS = {
    name: number
    for number, name in enumerate(
        ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"],
        start=1,
    )
}

# Recent rows leave off the year (roughly the last twelve months)
RECENT_ROW_TIMESTAMP = re.compile(r"^([A-Z][a-z]{2}) {1,2}(\d{1,2}) (\d{1,2}):(\d{2})$")
# Older rows leave off the time
OLDER_ROW_TIMESTAMP = re.compile(r"^([A-Z][a-z]{2}) {1,2}(\d{1,2}) (\d{4})$")


class RowError(ValueError):
    """A listing row that cannot be parsed."""


class Scraper(ArchiveDecorator):
    """Reads archive resources from the upstream site."""

    def __init__(
        self,
        client: UpstreamClient,
        inner: ArchiveService | None = None,
        locale: str = DEFAULT_LOCALE,
        now: Callable[[], datetime] | None = None,
    ):
        super().__init__(inner if inner is not None else ArchiveService())
        self.client = client
        self.locale = ZoneInfo(locale)
        self._now = now or (lambda: datetime.now(self.locale))

    # ─────────────────────────────────────────────────────────────
    # Categories
    # ─────────────────────────────────────────────────────────────

    async def list_categories(self, req: ListCategoriesRequest) -> ListCategoriesResponse:
        url = self.client.url()
        resp = await self._fetch(url)
        if not resp.ok:
            raise Internal(f"failed to scrape categories from {url}: HTTP {resp.status}")

        results = []
        for item in self._soup(resp).select(CATEGORY_SELECTOR):
            link = item.find("a")
            href = link.get("href", "") if link else ""
            slug = href.removeprefix(self.client.base_path).lstrip("/")
            try:
                path = to_category_path(slug)
            except SlugError as e:
                logger.warning(f"Failed to resolve category path for {slug!r}: {e}")
                continue

            results.append(Category(
                path=path,
                display_name=link.get_text(strip=True),
                description=_first_text(item),
            ))

        return ListCategoriesResponse(results=results)

    async def get_category(self, req: GetCategoryRequest) -> Category:
        resp = await self.list_categories(ListCategoriesRequest())
        for category in resp.results:
            if category.path == req.path:
                return category
        raise NotFound(f"category {req.path} not found")

    # ─────────────────────────────────────────────────────────────
    # Entries
    # ─────────────────────────────────────────────────────────────

    async def list_entries(self, req: ListEntriesRequest) -> ListEntriesResponse:
        category_slug = _slug(from_category_path, req.parent)

        page = 1
        paginated = False
        if req.page_token:
            try:
                page = from_token(req.page_token, ListEntriesPageToken).page
            except TokenError as e:
                raise InvalidArgument(f"malformed pagination token: {e}") from e
            paginated = page > 1

        slug = category_slug if page == 1 else f"{category_slug}/index{page - 1}.html"
        url = self.client.url(slug)
        resp = await self._fetch(url)
        if resp.status == 404 and page > 1:
            logger.info(f"Upstream pages for {req.parent} exhausted at page {page}")
            return ListEntriesResponse()
        self._raise_for_status(resp, req.parent)

        soup = self._soup(resp)
        paginated = paginated or soup.select_one(PAGINATION_MARKER) is not None

        results = [
            Entry(path=path, display_name=title, kind=kind, update_time=updated)
            for kind, updated, path, title in self._scrape_rows(
                soup, category_slug, self._last_modified(resp), to_entry_path
            )
        ]

        next_page_token = ""
        if paginated and results:
            # The current page, not the next one: the paginator advances it
            # once every entry on this upstream page has been served.
            last = results[-1]
            next_page_token = self._token(ListEntriesPageToken(
                page=page,
                after_entry=last.path,
                start_update_time=last.update_time,
            ))

        return ListEntriesResponse(results=results, next_page_token=next_page_token)

    async def get_entry(self, req: GetEntryRequest) -> Entry:
        slug = _slug(from_entry_path, req.path)
        resp = await self._fetch(self.client.url(slug))
        self._raise_for_status(resp, req.path)

        kind = EntryKind.STORY
        if self._soup(resp).select_one(ROW_SELECTOR) is not None:
            kind = EntryKind.ANTHOLOGY

        return Entry(
            path=req.path,
            display_name=to_title(slug),
            kind=kind,
            update_time=self._last_modified(resp),
        )

    async def read_entry(self, req: ReadEntryRequest) -> ReadEntryResponse:
        body = await self._read(from_entry_path, req.path, req.mime_type)
        return ReadEntryResponse(content=body)

    # ─────────────────────────────────────────────────────────────
    # Chapters
    # ─────────────────────────────────────────────────────────────

    async def list_chapters(self, req: ListChaptersRequest) -> ListChaptersResponse:
        entry_slug = _slug(from_entry_path, req.parent)
        resp = await self._fetch(self.client.url(entry_slug))
        self._raise_for_status(resp, req.parent)

        results = [
            Chapter(path=path, display_name=title, update_time=updated)
            for _, updated, path, title in self._scrape_rows(
                self._soup(resp), entry_slug, self._last_modified(resp), to_chapter_path
            )
        ]
        return ListChaptersResponse(results=results)

    async def get_chapter(self, req: GetChapterRequest) -> Chapter:
        slug = _slug(from_chapter_path, req.path)
        resp = await self._fetch(self.client.url(slug))
        self._raise_for_status(resp, req.path)

        return Chapter(
            path=req.path,
            display_name=to_title(slug),
            update_time=self._last_modified(resp),
        )

    async def read_chapter(self, req: ReadChapterRequest) -> ReadChapterResponse:
        body = await self._read(from_chapter_path, req.path, req.mime_type)
        return ReadChapterResponse(content=body)

    # ─────────────────────────────────────────────────────────────
    # Parsing
    # ─────────────────────────────────────────────────────────────

    def _scrape_rows(
        self,
        soup: BeautifulSoup,
        parent_slug: str,
        parent_last_modified: datetime | None,
        to_path: Callable[[str], str],
    ) -> list[tuple[EntryKind, datetime, str, str]]:
        """Parse every listing row, skipping (and logging) the ones that fail."""
        if parent_last_modified is None:
            parent_last_modified = self._now()

        rows = []
        for row in soup.select(ROW_SELECTOR):
            try:
                kind, updated, slug, title = self.parse_row(row, parent_last_modified, parent_slug)
            except RowError as e:
                logger.warning(f"Failed to parse row {row.get_text(' ', strip=True)!r}: {e}")
                continue

            try:
                path = to_path(slug)
            except SlugError as e:
                logger.warning(f"Failed to resolve path for {slug!r}: {e}")
                continue

            rows.append((kind, updated, path, title))
        return rows

    def parse_row(
        self,
        row: Tag,
        parent_last_modified: datetime,
        parent_slug: str,
    ) -> tuple[EntryKind, datetime, str, str]:
        """
        Parse one listing row into (kind, update time, child slug, title).

        The first cell marks directories, the second holds the timestamp
        and the third links to the child.
        """
        cells = row.find_all(True, recursive=False)
        if len(cells) < 3:
            raise RowError(f"expected at least 3 cells, found {len(cells)}")

        kind = EntryKind.ANTHOLOGY if cells[0].get_text(strip=True) == DIRECTORY_MARKER else EntryKind.STORY

        timestamp = cells[1].get_text(strip=True)
        try:
            updated = self.parse_row_timestamp(timestamp, parent_last_modified)
        except ValueError as e:
            raise RowError(f"bad row timestamp {timestamp!r}: {e}") from e

        link = cells[2].find("a")
        href = link.get("href", "") if link else ""
        if not href:
            raise RowError(f"bad row slug {cells[2].get_text(strip=True)!r}")

        title = to_title(href)
        slug = posixpath.normpath(f"{parent_slug}/{href}")
        return kind, updated, slug, title

    def parse_row_timestamp(self, value: str, parent_last_modified: datetime) -> datetime:
        """
        Parse a listing timestamp, inferring the year when it is omitted.

        Recent rows ("Jan _2 15:04") carry no year. It is worked out from the
        parent page's Last-Modified time, which may lag behind the current
        date, and from the current date itself.
        """
        match = OLDER_ROW_TIMESTAMP.match(value)
        if match:
            month, day, year = _month(match.group(1)), int(match.group(2)), int(match.group(3))
            return datetime(year, month, day, tzinfo=self.locale)

        match = RECENT_ROW_TIMESTAMP.match(value)
        if not match:
            raise ValueError(f"timestamp {value!r} matches neither 'Jan _2 15:04' nor 'Jan _2 2006'")

        month, day = _month(match.group(1)), int(match.group(2))
        hour, minute = int(match.group(3)), int(match.group(4))

        parent = parent_last_modified.astimezone(self.locale)
        now = self._now().astimezone(self.locale)
        if parent.year < now.year:
            # The page predates this year; a row month after the page's
            # month must be from the year before the page.
            year = parent.year - 1 if parent.month < month else parent.year
        elif now.month < month:
            # Same year, but the row is from late last year
            year = now.year - 1
        else:
            year = now.year

        return datetime(year, month, day, hour, minute, tzinfo=self.locale)

    def _last_modified(self, resp: UpstreamResponse) -> datetime | None:
        header = resp.last_modified
        if not header:
            logger.debug(f"No Last-Modified header from {resp.url}")
            return None
        try:
            parsed = parsedate_to_datetime(header)
        except (TypeError, ValueError) as e:
            logger.warning(f"Failed to parse Last-Modified header {header!r} from {resp.url}: {e}")
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    # ─────────────────────────────────────────────────────────────
    # Fetching
    # ─────────────────────────────────────────────────────────────

    async def _fetch(self, url: str) -> UpstreamResponse:
        try:
            return await self.client.get(url)
        except UpstreamError as e:
            raise Internal(str(e)) from e

    @staticmethod
    def _raise_for_status(resp: UpstreamResponse, path: str):
        if resp.status == 404:
            raise NotFound(f"{path} not found")
        if not resp.ok:
            raise Internal(f"failed to scrape {resp.url}: HTTP {resp.status}")

    @staticmethod
    def _soup(resp: UpstreamResponse) -> BeautifulSoup:
        return BeautifulSoup(resp.body, "html.parser", from_encoding=resp.charset)

    @staticmethod
    def _token(token: ListEntriesPageToken) -> str:
        try:
            return to_token(token)
        except TokenError as e:
            raise Internal(f"failed to construct pagination token: {e}") from e

    async def _read(self, to_slug: Callable[[str], str], path: str, mime_type: MimeType) -> str:
        slug = _slug(to_slug, path)
        resp = await self._fetch(self.client.url(slug))
        self._raise_for_status(resp, path)

        try:
            return content.transform(resp.content_type, mime_type, resp.body)
        except content.ContentError as e:
            raise Internal(f"failed to transform {path}: {e}") from e


def _slug(convert: Callable[[str], str], path: str) -> str:
    try:
        return convert(path)
    except SlugError as e:
        raise InvalidArgument(str(e)) from e


def _month(name: str) -> int:
    try:
        return MONTHS[name]
    except KeyError:
        raise ValueError(f"unknown month {name!r}") from None


def _first_text(item: Tag) -> str:
    """The first non-blank text directly inside ``item``, without its leading dash."""
    for child in item.children:
        if isinstance(child, (Tag, Comment)):
            continue
        text = str(child).strip()
        if text:
            return text.lstrip(" -")
    return ""
