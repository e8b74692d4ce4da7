"""
Database models - dataclasses for database entities.
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class DBUser:
    id: int = 0
    name: str = ""
    password_hash: bytes = b""

    @property
    def path(self) -> str:
        return f"users/{self.name}"


@dataclass
class DBResource:
    """Per-user interaction state for one archive path."""
    user_id: int
    path: str
    hidden: bool = False
    starred: bool = False
    view_time: datetime | None = None
    read_time: datetime | None = None
