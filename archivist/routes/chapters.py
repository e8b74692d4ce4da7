"""
Chapter routes: list, get, read and update per-user state.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ..archive import ArchiveService
from ..auth import acting_as, require_user
from ..config import get_archive
from ..database import DBUser
from ..schemas import (
    Chapter,
    GetChapterRequest,
    ListChaptersRequest,
    ListChaptersResponse,
    MimeType,
    ReadChapterRequest,
    ReadChapterResponse,
    UpdateChapterRequest,
)

router = APIRouter(prefix="/categories/{category}/entries/{entry}/chapters", tags=["chapters"])


class ChapterPatch(BaseModel):
    chapter: dict[str, Any] = {}
    update_mask: list[str] = []


def _entry_path(category: str, entry: str) -> str:
    return f"categories/{category}/entries/{entry}"


@router.get("")
async def list_chapters(
    category: str,
    entry: str,
    user: Annotated[DBUser, Depends(require_user)],
    archive: Annotated[ArchiveService, Depends(get_archive)],
    filter: str = "",
    max_page_size: int = Query(default=0),
    page_token: str = "",
) -> ListChaptersResponse:
    """List the chapters of an anthology."""
    with acting_as(user):
        return await archive.list_chapters(ListChaptersRequest(
            parent=_entry_path(category, entry),
            filter=filter,
            max_page_size=max_page_size,
            page_token=page_token,
        ))


@router.get("/{chapter}")
async def get_chapter(
    category: str,
    entry: str,
    chapter: str,
    user: Annotated[DBUser, Depends(require_user)],
    archive: Annotated[ArchiveService, Depends(get_archive)],
) -> Chapter:
    with acting_as(user):
        return await archive.get_chapter(GetChapterRequest(
            path=f"{_entry_path(category, entry)}/chapters/{chapter}",
        ))


@router.patch("/{chapter}")
async def update_chapter(
    category: str,
    entry: str,
    chapter: str,
    body: ChapterPatch,
    user: Annotated[DBUser, Depends(require_user)],
    archive: Annotated[ArchiveService, Depends(get_archive)],
) -> Chapter:
    """Update the caller's view and read times for a chapter."""
    path = f"{_entry_path(category, entry)}/chapters/{chapter}"
    with acting_as(user):
        return await archive.update_chapter(UpdateChapterRequest(
            path=path,
            chapter={"path": path, **body.chapter},
            update_mask=body.update_mask,
        ))


@router.get("/{chapter}/content")
async def read_chapter(
    category: str,
    entry: str,
    chapter: str,
    user: Annotated[DBUser, Depends(require_user)],
    archive: Annotated[ArchiveService, Depends(get_archive)],
    mime_type: MimeType = MimeType.HTML,
) -> ReadChapterResponse:
    with acting_as(user):
        return await archive.read_chapter(ReadChapterRequest(
            path=f"{_entry_path(category, entry)}/chapters/{chapter}",
            mime_type=mime_type,
        ))
