"""
Category routes: list, get and update per-user state.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ..archive import ArchiveService
from ..auth import acting_as, require_user
from ..config import get_archive
from ..database import DBUser
from ..schemas import (
    Category,
    GetCategoryRequest,
    ListCategoriesRequest,
    ListCategoriesResponse,
    UpdateCategoryRequest,
)

router = APIRouter(prefix="/categories", tags=["categories"])


class CategoryPatch(BaseModel):
    category: dict[str, Any] = {}
    update_mask: list[str] = []


@router.get("")
async def list_categories(
    user: Annotated[DBUser, Depends(require_user)],
    archive: Annotated[ArchiveService, Depends(get_archive)],
    filter: str = "",
    max_page_size: int = Query(default=0),
    page_token: str = "",
) -> ListCategoriesResponse:
    """List top-level categories."""
    with acting_as(user):
        return await archive.list_categories(ListCategoriesRequest(
            filter=filter,
            max_page_size=max_page_size,
            page_token=page_token,
        ))


@router.get("/{category}")
async def get_category(
    category: str,
    user: Annotated[DBUser, Depends(require_user)],
    archive: Annotated[ArchiveService, Depends(get_archive)],
) -> Category:
    with acting_as(user):
        return await archive.get_category(GetCategoryRequest(path=f"categories/{category}"))


@router.patch("/{category}")
async def update_category(
    category: str,
    body: CategoryPatch,
    user: Annotated[DBUser, Depends(require_user)],
    archive: Annotated[ArchiveService, Depends(get_archive)],
) -> Category:
    """Update the caller's state for a category (``hidden``)."""
    path = f"categories/{category}"
    with acting_as(user):
        return await archive.update_category(UpdateCategoryRequest(
            path=path,
            category={"path": path, **body.category},
            update_mask=body.update_mask,
        ))
