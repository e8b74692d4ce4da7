"""
User routes: create, get, update password, delete.

Callers can only see and change their own account.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ..archive import ArchiveService
from ..auth import acting_as, require_user
from ..config import get_archive
from ..database import DBUser
from ..schemas import (
    CreateUserRequest,
    DeleteUserRequest,
    Empty,
    GetUserRequest,
    ListUsersRequest,
    ListUsersResponse,
    UpdateUserRequest,
    User,
)

router = APIRouter(prefix="/users", tags=["users"])


class UserCreate(BaseModel):
    id: str
    password: str


class UserPatch(BaseModel):
    user: dict[str, Any] = {}
    update_mask: list[str] = []


@router.post("")
async def create_user(
    body: UserCreate,
    user: Annotated[DBUser, Depends(require_user)],
    archive: Annotated[ArchiveService, Depends(get_archive)],
) -> User:
    with acting_as(user):
        return await archive.create_user(CreateUserRequest(id=body.id, password=body.password))


@router.get("")
async def list_users(
    user: Annotated[DBUser, Depends(require_user)],
    archive: Annotated[ArchiveService, Depends(get_archive)],
    filter: str = "",
    max_page_size: int = Query(default=0),
    page_token: str = "",
) -> ListUsersResponse:
    with acting_as(user):
        return await archive.list_users(ListUsersRequest(
            filter=filter,
            max_page_size=max_page_size,
            page_token=page_token,
        ))


@router.get("/{name}")
async def get_user(
    name: str,
    user: Annotated[DBUser, Depends(require_user)],
    archive: Annotated[ArchiveService, Depends(get_archive)],
) -> User:
    with acting_as(user):
        return await archive.get_user(GetUserRequest(path=f"users/{name}"))


@router.patch("/{name}")
async def update_user(
    name: str,
    body: UserPatch,
    user: Annotated[DBUser, Depends(require_user)],
    archive: Annotated[ArchiveService, Depends(get_archive)],
) -> User:
    """Change the caller's password (``update_mask: ["password"]``)."""
    path = f"users/{name}"
    with acting_as(user):
        return await archive.update_user(UpdateUserRequest(
            path=path,
            user={"path": path, "id": name, **body.user},
            update_mask=body.update_mask,
        ))


@router.delete("/{name}")
async def delete_user(
    name: str,
    user: Annotated[DBUser, Depends(require_user)],
    archive: Annotated[ArchiveService, Depends(get_archive)],
) -> Empty:
    """Delete the caller's account and all of their interaction state."""
    with acting_as(user):
        return await archive.delete_user(DeleteUserRequest(path=f"users/{name}"))
