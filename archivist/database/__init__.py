"""
Database module - SQLite storage for users and per-user interaction records.

Uses repository pattern for better separation of concerns.
"""

from .connection import DatabaseConnection
from .models import DBResource, DBUser
from .errors import AlreadyExistsError, InvalidUsernameError, NotFoundError, StorageError
from .resource_repository import ResourceRepository
from .user_repository import UserRepository
from .store import Resources, Store, Users
from .database import Database

__all__ = [
    "Database",
    "DatabaseConnection",
    "DBResource",
    "DBUser",
    "ResourceRepository",
    "UserRepository",
    "Resources",
    "Users",
    "Store",
    "StorageError",
    "NotFoundError",
    "AlreadyExistsError",
    "InvalidUsernameError",
]
