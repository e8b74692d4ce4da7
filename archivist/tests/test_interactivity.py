"""
Tests for updating per-user interaction state.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from archivist.archive import Hydrator, Interactivity
from archivist.database import DBResource
from archivist.exceptions import Internal, InvalidArgument
from archivist.schemas import (
    Category,
    Chapter,
    Entry,
    UpdateCategoryRequest,
    UpdateChapterRequest,
    UpdateEntryRequest,
)
from archivist.tests.fakes import StaticArchive

READ = datetime(2025, 5, 2, 9, 0, tzinfo=timezone.utc)

CATEGORY = "categories/fiction"
ENTRY = "categories/fiction/entries/one"
CHAPTER = "categories/fiction/entries/one/chapters/ch1"


@pytest.fixture
def interactivity(test_db):
    inner = StaticArchive(
        categories=[Category(path=CATEGORY, display_name="Fiction")],
        entries=[Entry(path=ENTRY, display_name="One")],
        chapters=[Chapter(path=CHAPTER)],
    )
    return Interactivity(Hydrator(inner, test_db), test_db)


class TestUpdateEntry:
    @pytest.mark.asyncio
    async def test_star(self, interactivity, test_db, as_user):
        entry = await interactivity.update_entry(UpdateEntryRequest(
            path=ENTRY,
            entry=Entry(path=ENTRY, starred=True),
            update_mask=["starred"],
        ))

        assert entry.starred
        assert entry.display_name == "One"
        assert test_db.get_resource(as_user.id, ENTRY).starred

    @pytest.mark.asyncio
    async def test_only_masked_fields_change(self, interactivity, test_db, as_user):
        test_db.upsert_resource(DBResource(user_id=as_user.id, path=ENTRY, hidden=True))

        entry = await interactivity.update_entry(UpdateEntryRequest(
            path=ENTRY,
            entry=Entry(path=ENTRY, starred=True, hidden=False, read_time=READ),
            update_mask=["read_time"],
        ))

        assert entry.hidden
        assert not entry.starred
        assert entry.read_time == READ

    @pytest.mark.asyncio
    async def test_unset_time_clears_field(self, interactivity, test_db, as_user):
        test_db.upsert_resource(DBResource(user_id=as_user.id, path=ENTRY, read_time=READ))

        entry = await interactivity.update_entry(UpdateEntryRequest(
            path=ENTRY,
            entry=Entry(path=ENTRY),
            update_mask=["read_time"],
        ))

        assert entry.read_time is None
        assert test_db.get_resource(as_user.id, ENTRY).read_time is None

    @pytest.mark.asyncio
    async def test_empty_mask(self, interactivity, as_user):
        with pytest.raises(InvalidArgument):
            await interactivity.update_entry(UpdateEntryRequest(path=ENTRY, entry=Entry(path=ENTRY)))

    @pytest.mark.asyncio
    async def test_unknown_field(self, interactivity, as_user):
        with pytest.raises(InvalidArgument):
            await interactivity.update_entry(UpdateEntryRequest(
                path=ENTRY, entry=Entry(path=ENTRY), update_mask=["rating"],
            ))

    @pytest.mark.asyncio
    async def test_scraped_field_not_updatable(self, interactivity, as_user):
        with pytest.raises(InvalidArgument):
            await interactivity.update_entry(UpdateEntryRequest(
                path=ENTRY, entry=Entry(path=ENTRY, display_name="Renamed"), update_mask=["display_name"],
            ))


class TestUpdateCategory:
    @pytest.mark.asyncio
    async def test_hide(self, interactivity, as_user):
        category = await interactivity.update_category(UpdateCategoryRequest(
            path=CATEGORY,
            category=Category(path=CATEGORY, hidden=True),
            update_mask=["hidden"],
        ))

        assert category.hidden
        assert category.display_name == "Fiction"

    @pytest.mark.asyncio
    async def test_description_not_updatable(self, interactivity, as_user):
        with pytest.raises(InvalidArgument):
            await interactivity.update_category(UpdateCategoryRequest(
                path=CATEGORY, category=Category(path=CATEGORY), update_mask=["description"],
            ))


class TestUpdateChapter:
    @pytest.mark.asyncio
    async def test_mark_read(self, interactivity, as_user):
        chapter = await interactivity.update_chapter(UpdateChapterRequest(
            path=CHAPTER,
            chapter=Chapter(path=CHAPTER, read_time=READ),
            update_mask=["read_time"],
        ))

        assert chapter.read_time == READ

    @pytest.mark.asyncio
    async def test_update_time_not_updatable(self, interactivity, as_user):
        with pytest.raises(InvalidArgument):
            await interactivity.update_chapter(UpdateChapterRequest(
                path=CHAPTER, chapter=Chapter(path=CHAPTER, update_time=READ), update_mask=["update_time"],
            ))


class TestStoreFailures:
    @pytest.mark.asyncio
    async def test_load_failure_is_internal(self, as_user):
        store = MagicMock()
        store.get_resource.side_effect = RuntimeError("disk on fire")
        interactivity = Interactivity(StaticArchive(), store)

        with pytest.raises(Internal):
            await interactivity.update_entry(UpdateEntryRequest(
                path=ENTRY, entry=Entry(path=ENTRY, starred=True), update_mask=["starred"],
            ))

    @pytest.mark.asyncio
    async def test_upsert_failure_is_internal(self, as_user):
        store = MagicMock()
        store.get_resource.return_value = DBResource(user_id=as_user.id, path=ENTRY)
        store.upsert_resource.side_effect = RuntimeError("disk on fire")
        interactivity = Interactivity(StaticArchive(), store)

        with pytest.raises(Internal):
            await interactivity.update_entry(UpdateEntryRequest(
                path=ENTRY, entry=Entry(path=ENTRY, starred=True), update_mask=["starred"],
            ))
