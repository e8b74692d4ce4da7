"""
Pydantic models for archive service requests, responses and page tokens.

Field constraints declared here are the schema enforced by the validator
layer, by page token decoding and by filter type-checking.
"""

from datetime import datetime
from enum import Enum
from typing import ClassVar

from pydantic import BaseModel, Field, model_validator

from .slugconv import CATEGORY_PATH_PATTERN, CHAPTER_PATH_PATTERN, ENTRY_PATH_PATTERN

USERNAME_PATTERN = r"[a-zA-Z0-9_]{3,64}"
USER_PATH_PATTERN = rf"users/{USERNAME_PATTERN}"

MAX_PAGE_SIZE = 1000
MAX_FILTER_LENGTH = 1024
MAX_PAGE_TOKEN_LENGTH = 1024


def _anchored(pattern: str) -> str:
    return f"^{pattern}$"


class EntryKind(str, Enum):
    """Whether an entry is a single document or a directory of chapters."""
    STORY = "STORY"
    ANTHOLOGY = "ANTHOLOGY"


class MimeType(str, Enum):
    """Output format for content reads."""
    HTML = "HTML"
    MARKDOWN = "MARKDOWN"


# ─────────────────────────────────────────────────────────────
# Resources
# ─────────────────────────────────────────────────────────────

class Category(BaseModel):
    """Top-level archive directory."""
    path: str = Field(pattern=_anchored(CATEGORY_PATH_PATTERN))
    display_name: str = ""
    description: str = ""
    hidden: bool = False


class Entry(BaseModel):
    """A story or anthology inside a category."""
    path: str = Field(pattern=_anchored(ENTRY_PATH_PATTERN))
    display_name: str = ""
    kind: EntryKind = EntryKind.STORY
    update_time: datetime | None = None
    starred: bool = False
    hidden: bool = False
    view_time: datetime | None = None
    read_time: datetime | None = None


class Chapter(BaseModel):
    """A single document inside an anthology entry."""
    path: str = Field(pattern=_anchored(CHAPTER_PATH_PATTERN))
    display_name: str = ""
    update_time: datetime | None = None
    view_time: datetime | None = None
    read_time: datetime | None = None


class User(BaseModel):
    """An account. ``password`` is input-only and never serialized."""
    path: str = Field(pattern=_anchored(USER_PATH_PATTERN))
    id: str = Field(pattern=_anchored(USERNAME_PATTERN))
    password: str | None = Field(default=None, exclude=True)


class Empty(BaseModel):
    pass


# ─────────────────────────────────────────────────────────────
# List operations
# ─────────────────────────────────────────────────────────────

class ListRequest(BaseModel):
    """Fields shared by every list request."""
    filter: str = Field(default="", max_length=MAX_FILTER_LENGTH)
    max_page_size: int = Field(default=0, ge=0, le=MAX_PAGE_SIZE)
    page_token: str = Field(default="", max_length=MAX_PAGE_TOKEN_LENGTH)


class ListCategoriesRequest(ListRequest):
    pass


class ListCategoriesResponse(BaseModel):
    results: list[Category] = []
    next_page_token: str = ""


class ListEntriesRequest(ListRequest):
    parent: str = Field(pattern=_anchored(CATEGORY_PATH_PATTERN))


class ListEntriesResponse(BaseModel):
    results: list[Entry] = []
    next_page_token: str = ""


class ListChaptersRequest(ListRequest):
    parent: str = Field(pattern=_anchored(ENTRY_PATH_PATTERN))


class ListChaptersResponse(BaseModel):
    results: list[Chapter] = []
    next_page_token: str = ""


class ListUsersRequest(ListRequest):
    pass


class ListUsersResponse(BaseModel):
    results: list[User] = []
    next_page_token: str = ""


# ─────────────────────────────────────────────────────────────
# Get / Read operations
# ─────────────────────────────────────────────────────────────

class GetCategoryRequest(BaseModel):
    path: str = Field(pattern=_anchored(CATEGORY_PATH_PATTERN))


class GetEntryRequest(BaseModel):
    path: str = Field(pattern=_anchored(ENTRY_PATH_PATTERN))


class GetChapterRequest(BaseModel):
    path: str = Field(pattern=_anchored(CHAPTER_PATH_PATTERN))


class GetUserRequest(BaseModel):
    path: str = Field(pattern=_anchored(USER_PATH_PATTERN))


class DeleteUserRequest(BaseModel):
    path: str = Field(pattern=_anchored(USER_PATH_PATTERN))


class ReadEntryRequest(BaseModel):
    path: str = Field(pattern=_anchored(ENTRY_PATH_PATTERN))
    mime_type: MimeType = MimeType.HTML


class ReadEntryResponse(BaseModel):
    content: str = ""


class ReadChapterRequest(BaseModel):
    path: str = Field(pattern=_anchored(CHAPTER_PATH_PATTERN))
    mime_type: MimeType = MimeType.HTML


class ReadChapterResponse(BaseModel):
    content: str = ""


# ─────────────────────────────────────────────────────────────
# Mutations
# ─────────────────────────────────────────────────────────────

class _UpdateRequest(BaseModel):
    """
    A partial resource plus the list of fields to apply from it.

    The resource field is named after the resource type; its path must
    match the request path.
    """
    path: str
    update_mask: list[str] = []

    resource_field: ClassVar[str] = ""

    @model_validator(mode="after")
    def check_resource_path(self):
        resource = getattr(self, self.resource_field)
        if resource.path != self.path:
            raise ValueError(
                f"{self.resource_field}.path {resource.path!r} does not match path {self.path!r}"
            )
        return self

    @property
    def resource(self):
        return getattr(self, self.resource_field)


class UpdateCategoryRequest(_UpdateRequest):
    path: str = Field(pattern=_anchored(CATEGORY_PATH_PATTERN))
    category: Category

    resource_field: ClassVar[str] = "category"


class UpdateEntryRequest(_UpdateRequest):
    path: str = Field(pattern=_anchored(ENTRY_PATH_PATTERN))
    entry: Entry

    resource_field: ClassVar[str] = "entry"


class UpdateChapterRequest(_UpdateRequest):
    path: str = Field(pattern=_anchored(CHAPTER_PATH_PATTERN))
    chapter: Chapter

    resource_field: ClassVar[str] = "chapter"


class UpdateUserRequest(_UpdateRequest):
    path: str = Field(pattern=_anchored(USER_PATH_PATTERN))
    user: User

    resource_field: ClassVar[str] = "user"


class CreateUserRequest(BaseModel):
    id: str = Field(pattern=_anchored(USERNAME_PATTERN))
    password: str = Field(min_length=1)


# ─────────────────────────────────────────────────────────────
# Page tokens
# ─────────────────────────────────────────────────────────────

class ListCategoriesPageToken(BaseModel):
    after_category: str = Field(pattern=_anchored(CATEGORY_PATH_PATTERN))


class ListEntriesPageToken(BaseModel):
    page: int = Field(ge=1)
    after_entry: str = Field(pattern=_anchored(ENTRY_PATH_PATTERN))
    start_update_time: datetime


class ListChaptersPageToken(BaseModel):
    after_chapter: str = Field(pattern=_anchored(CHAPTER_PATH_PATTERN))


class ListUsersPageToken(BaseModel):
    after_user: str = Field(pattern=_anchored(USER_PATH_PATTERN))
