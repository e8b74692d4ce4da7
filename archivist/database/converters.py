"""
Database row converters - convert SQLite rows to dataclasses and back.
"""

import sqlite3
from datetime import datetime, timezone

from .models import DBResource, DBUser


def to_timestamp(value: datetime | None) -> str | None:
    """Serialize a datetime for storage, normalizing to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def from_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def row_to_user(row: sqlite3.Row) -> DBUser:
    """Convert a database row to a DBUser."""
    return DBUser(
        id=row["id"],
        name=row["name"],
        password_hash=bytes(row["password_hash"]),
    )


def row_to_resource(row: sqlite3.Row) -> DBResource:
    """Convert a database row to a DBResource."""
    return DBResource(
        user_id=row["user_id"],
        path=row["path"],
        hidden=bool(row["hidden"]),
        starred=bool(row["starred"]),
        view_time=from_timestamp(row["view_time"]),
        read_time=from_timestamp(row["read_time"]),
    )
