"""
Repository for user operations.
"""

import sqlite3

from .connection import DatabaseConnection
from .converters import row_to_user
from .errors import AlreadyExistsError
from .models import DBUser


class UserRepository:
    """Repository for user CRUD operations."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def get_by_id(self, user_id: int) -> DBUser | None:
        """Get user by ID."""
        with self._db.conn() as conn:
            cursor = conn.execute(
                "SELECT * FROM users WHERE id = ? LIMIT 1",
                (user_id,)
            )
            row = cursor.fetchone()
            return row_to_user(row) if row else None

    def get_by_name(self, name: str) -> DBUser | None:
        """Get user by name."""
        with self._db.conn() as conn:
            cursor = conn.execute(
                "SELECT * FROM users WHERE name = ? LIMIT 1",
                (name,)
            )
            row = cursor.fetchone()
            return row_to_user(row) if row else None

    def list_after(self, after_name: str, limit: int) -> list[DBUser]:
        """Users ordered by name, starting after ``after_name``."""
        with self._db.conn() as conn:
            cursor = conn.execute(
                "SELECT * FROM users WHERE name > ? ORDER BY name LIMIT ?",
                (after_name, limit)
            )
            return [row_to_user(row) for row in cursor.fetchall()]

    def upsert(self, user: DBUser) -> DBUser:
        """
        Insert or fully replace a user keyed by ID.

        Raises:
            AlreadyExistsError: If another user already has this name
        """
        try:
            with self._db.conn() as conn:
                conn.execute(
                    """
                    INSERT INTO users (id, name, password_hash)
                    VALUES (?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        name = excluded.name,
                        password_hash = excluded.password_hash
                    """,
                    (user.id, user.name, user.password_hash)
                )
        except sqlite3.IntegrityError as e:
            raise AlreadyExistsError(f"user {user.name!r} already exists") from e
        return user

    def delete(self, user_id: int) -> bool:
        """Delete a user; their interaction records cascade. Returns False if absent."""
        with self._db.conn() as conn:
            cursor = conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
            return cursor.rowcount > 0
