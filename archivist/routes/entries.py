"""
Entry routes: list, get, read and update per-user state.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ..archive import ArchiveService
from ..auth import acting_as, require_user
from ..config import get_archive
from ..database import DBUser
from ..schemas import (
    Entry,
    GetEntryRequest,
    ListEntriesRequest,
    ListEntriesResponse,
    MimeType,
    ReadEntryRequest,
    ReadEntryResponse,
    UpdateEntryRequest,
)

router = APIRouter(prefix="/categories/{category}/entries", tags=["entries"])


class EntryPatch(BaseModel):
    entry: dict[str, Any] = {}
    update_mask: list[str] = []


@router.get("")
async def list_entries(
    category: str,
    user: Annotated[DBUser, Depends(require_user)],
    archive: Annotated[ArchiveService, Depends(get_archive)],
    filter: str = "",
    max_page_size: int = Query(default=0),
    page_token: str = "",
) -> ListEntriesResponse:
    """List the entries in a category, most recently updated first."""
    with acting_as(user):
        return await archive.list_entries(ListEntriesRequest(
            parent=f"categories/{category}",
            filter=filter,
            max_page_size=max_page_size,
            page_token=page_token,
        ))


@router.get("/{entry}")
async def get_entry(
    category: str,
    entry: str,
    user: Annotated[DBUser, Depends(require_user)],
    archive: Annotated[ArchiveService, Depends(get_archive)],
) -> Entry:
    with acting_as(user):
        return await archive.get_entry(GetEntryRequest(
            path=f"categories/{category}/entries/{entry}",
        ))


@router.patch("/{entry}")
async def update_entry(
    category: str,
    entry: str,
    body: EntryPatch,
    user: Annotated[DBUser, Depends(require_user)],
    archive: Annotated[ArchiveService, Depends(get_archive)],
) -> Entry:
    """Update the caller's state for an entry (starred, hidden, view and read times)."""
    path = f"categories/{category}/entries/{entry}"
    with acting_as(user):
        return await archive.update_entry(UpdateEntryRequest(
            path=path,
            entry={"path": path, **body.entry},
            update_mask=body.update_mask,
        ))


@router.get("/{entry}/content")
async def read_entry(
    category: str,
    entry: str,
    user: Annotated[DBUser, Depends(require_user)],
    archive: Annotated[ArchiveService, Depends(get_archive)],
    mime_type: MimeType = MimeType.HTML,
) -> ReadEntryResponse:
    """Read a story's content as HTML or Markdown."""
    with acting_as(user):
        return await archive.read_entry(ReadEntryRequest(
            path=f"categories/{category}/entries/{entry}",
            mime_type=mime_type,
        ))
