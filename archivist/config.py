"""
Configuration and application state management.
"""

import os
from pathlib import Path
from typing import TYPE_CHECKING

from dotenv import load_dotenv
from fastapi import HTTPException

if TYPE_CHECKING:
    from .archive import ArchiveService
    from .database import Database
    from .upstream import UpstreamClient

# Load environment variables
load_dotenv()


class Config:
    """Application configuration from environment."""
    # Absolute URL of the upstream archive's root listing
    ROOT_URI: str = os.getenv("ROOT_URI", "")

    DB_PATH: Path = Path(os.getenv("DB_PATH", "./data/archivist.db"))
    PORT: int = int(os.getenv("PORT", "9998"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Upstream HTTP client
    HTTP_TIMEOUT: float = float(os.getenv("HTTP_TIMEOUT", "10"))
    HTTP_CACHE_SIZE: int = int(os.getenv("HTTP_CACHE_SIZE", "256"))  # entries
    HTTP_CACHE_MAX_BYTES: int = int(os.getenv("HTTP_CACHE_MAX_BYTES", str(256 * 1024 * 1024)))
    USER_AGENT: str = os.getenv("USER_AGENT", "okhttp/4.9.2")

    # Timezone the upstream listing timestamps are written in
    UPSTREAM_TIMEZONE: str = os.getenv("UPSTREAM_TIMEZONE", "America/New_York")

    BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # Optional account created at startup if it does not exist yet
    BOOTSTRAP_USER: str = os.getenv("BOOTSTRAP_USER", "")
    BOOTSTRAP_PASSWORD: str = os.getenv("BOOTSTRAP_PASSWORD", "")


config = Config()


class AppState:
    """Shared application state."""
    db: "Database | None" = None
    upstream: "UpstreamClient | None" = None
    archive: "ArchiveService | None" = None


state = AppState()


def get_db() -> "Database":
    """Dependency to get database instance."""
    if not state.db:
        raise HTTPException(status_code=500, detail="Database not initialized")
    return state.db


def get_archive() -> "ArchiveService":
    """Dependency to get the composed archive service."""
    if not state.archive:
        raise HTTPException(status_code=500, detail="Archive service not initialized")
    return state.archive
