"""
Repository for per-user interaction records.
"""

from .connection import DatabaseConnection
from .converters import row_to_resource, to_timestamp
from .models import DBResource


class ResourceRepository:
    """Repository for interaction record operations."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def get(self, user_id: int, path: str) -> DBResource | None:
        with self._db.conn() as conn:
            cursor = conn.execute(
                "SELECT * FROM resources WHERE user_id = ? AND path = ? LIMIT 1",
                (user_id, path)
            )
            row = cursor.fetchone()
            return row_to_resource(row) if row else None

    def get_many(self, user_id: int, paths: list[str]) -> list[DBResource]:
        """Get the records that exist for any of the given paths."""
        if not paths:
            return []

        results = []
        with self._db.conn() as conn:
            # Stay well under SQLite's bound parameter limit
            for start in range(0, len(paths), 500):
                chunk = paths[start:start + 500]
                placeholders = ",".join("?" * len(chunk))
                cursor = conn.execute(
                    f"SELECT * FROM resources WHERE user_id = ? AND path IN ({placeholders})",
                    (user_id, *chunk)
                )
                results.extend(row_to_resource(row) for row in cursor.fetchall())
        return results

    def upsert(self, resource: DBResource) -> DBResource:
        """Insert or fully replace a record."""
        with self._db.conn() as conn:
            conn.execute(
                """
                INSERT INTO resources (user_id, path, hidden, starred, view_time, read_time)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(user_id, path) DO UPDATE SET
                    hidden = excluded.hidden,
                    starred = excluded.starred,
                    view_time = excluded.view_time,
                    read_time = excluded.read_time
                """,
                (
                    resource.user_id,
                    resource.path,
                    resource.hidden,
                    resource.starred,
                    to_timestamp(resource.view_time),
                    to_timestamp(resource.read_time),
                )
            )
        return resource
