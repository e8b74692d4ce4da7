"""
Tests for request and response schema validation.
"""

import logging
from unittest.mock import AsyncMock

import pytest

from archivist.archive import OPERATIONS, ArchiveDecorator, ArchiveService, Validator
from archivist.exceptions import InvalidArgument, Unimplemented
from archivist.schemas import (
    Category,
    GetCategoryRequest,
    ListCategoriesRequest,
    ListCategoriesResponse,
    UpdateUserRequest,
    User,
)


class TestCoverage:
    def test_every_operation_is_validated(self):
        for operation in OPERATIONS:
            assert operation in Validator.__dict__, operation

    def test_decorator_forwards_every_operation(self):
        for operation in OPERATIONS:
            assert operation in ArchiveDecorator.__dict__, operation


class TestRequests:
    @pytest.mark.asyncio
    async def test_valid_request_forwarded(self):
        inner = ArchiveService()
        inner.get_category = AsyncMock(return_value=Category(path="categories/foo"))
        validator = Validator(inner)
        req = GetCategoryRequest(path="categories/foo")

        category = await validator.get_category(req)

        assert category.path == "categories/foo"
        inner.get_category.assert_awaited_once_with(req)

    @pytest.mark.asyncio
    async def test_invalid_request_rejected(self):
        inner = ArchiveService()
        inner.get_category = AsyncMock()
        validator = Validator(inner)

        with pytest.raises(InvalidArgument):
            await validator.get_category(GetCategoryRequest.model_construct(path="not/a/category"))

        inner.get_category.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_page_size_limit(self):
        validator = Validator(ArchiveService())

        with pytest.raises(InvalidArgument):
            await validator.list_categories(ListCategoriesRequest.model_construct(
                filter="", max_page_size=5000, page_token="",
            ))

    @pytest.mark.asyncio
    async def test_mutated_request_rejected(self):
        validator = Validator(ArchiveService())
        req = ListCategoriesRequest()
        req.max_page_size = -1

        with pytest.raises(InvalidArgument):
            await validator.list_categories(req)

    @pytest.mark.asyncio
    async def test_write_only_fields_survive(self):
        """Passwords are excluded from dumps but must still reach the inner layer."""
        inner = ArchiveService()
        inner.update_user = AsyncMock(return_value=User(path="users/reader", id="reader"))
        validator = Validator(inner)
        req = UpdateUserRequest(
            path="users/reader",
            user=User(path="users/reader", id="reader", password="secret"),
            update_mask=["password"],
        )

        await validator.update_user(req)

        forwarded = inner.update_user.await_args.args[0]
        assert forwarded.user.password == "secret"

    @pytest.mark.asyncio
    async def test_unimplemented_passes_through(self):
        validator = Validator(ArchiveService())

        with pytest.raises(Unimplemented):
            await validator.get_category(GetCategoryRequest(path="categories/foo"))


class TestResponses:
    @pytest.mark.asyncio
    async def test_invalid_response_logged_and_returned(self, caplog):
        bad = ListCategoriesResponse(results=[Category.model_construct(path="bogus", display_name="", description="", hidden=False)])
        inner = ArchiveService()
        inner.list_categories = AsyncMock(return_value=bad)
        validator = Validator(inner)

        with caplog.at_level(logging.WARNING, logger="archivist.archive.validator"):
            resp = await validator.list_categories(ListCategoriesRequest())

        assert resp is bad
        assert "list_categories" in caplog.text
