"""
Database connection management and schema initialization.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


class DatabaseConnection:
    """Manages database connection and schema."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @contextmanager
    def conn(self) -> Iterator[sqlite3.Connection]:
        """Get database connection with row factory."""
        connection = sqlite3.connect(self.db_path)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON")
        try:
            yield connection
            connection.commit()
        finally:
            connection.close()

    def _init_schema(self):
        """Initialize database schema."""
        with self.conn() as connection:
            connection.executescript("""
                PRAGMA encoding = 'UTF-8';

                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER NOT NULL PRIMARY KEY,
                    name TEXT NOT NULL UNIQUE,
                    password_hash BLOB NOT NULL
                );

                CREATE TABLE IF NOT EXISTS resources (
                    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    path TEXT NOT NULL,
                    hidden BOOLEAN NOT NULL DEFAULT FALSE,
                    starred BOOLEAN NOT NULL DEFAULT FALSE,
                    view_time TIMESTAMP,
                    read_time TIMESTAMP,
                    PRIMARY KEY (user_id, path)
                );
            """)
