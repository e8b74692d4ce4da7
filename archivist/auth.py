"""
Authentication module for API access control.

Every archive call is made on behalf of a user authenticated with HTTP
Basic credentials checked against bcrypt password hashes in the user store.
The authenticated user is carried in a context variable so it follows the
request through asyncio tasks and worker threads.

IMPORTANT: Basic auth sends credentials base64 encoded, not encrypted.
Serve behind TLS in production.
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

import bcrypt
from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from .config import config, get_db
from .database import Database, DBUser, NotFoundError

logger = logging.getLogger(__name__)

# bcrypt silently ignores input past this length
MAX_PASSWORD_BYTES = 72

BASIC_AUTH = HTTPBasic(auto_error=False)

_authenticated_user: ContextVar[DBUser | None] = ContextVar("authenticated_user", default=None)


class PasswordTooLongError(ValueError):
    def __init__(self):
        super().__init__(f"password must be at most {MAX_PASSWORD_BYTES} bytes")


# ─────────────────────────────────────────────────────────────
# Passwords
# ─────────────────────────────────────────────────────────────

def hash_password(password: str) -> bytes:
    """Hash a password with bcrypt. Raises PasswordTooLongError past 72 bytes."""
    raw = password.encode("utf-8")
    if len(raw) > MAX_PASSWORD_BYTES:
        raise PasswordTooLongError()
    return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=config.BCRYPT_ROUNDS))


def compare_password(password: str, password_hash: bytes) -> bool:
    """Check a password against a stored hash."""
    raw = password.encode("utf-8")
    if len(raw) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(raw, password_hash)
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


# ─────────────────────────────────────────────────────────────
# Authenticated user context
# ─────────────────────────────────────────────────────────────

def get_authenticated_user() -> DBUser:
    """The user the current call is made on behalf of (a blank user if none)."""
    user = _authenticated_user.get()
    return user if user is not None else DBUser()


@contextmanager
def acting_as(user: DBUser) -> Iterator[DBUser]:
    """Run the enclosed block on behalf of ``user``."""
    token = _authenticated_user.set(user)
    try:
        yield user
    finally:
        _authenticated_user.reset(token)


def authenticate(db: Database, username: str, password: str) -> DBUser | None:
    """Resolve credentials to a stored user, or None if they do not match."""
    try:
        user = db.get_user_by_name(username)
    except NotFoundError:
        return None
    if not compare_password(password, user.password_hash):
        return None
    return user


def require_user(
    credentials: HTTPBasicCredentials | None = Security(BASIC_AUTH),
    db: Database = Depends(get_db),
) -> DBUser:
    """
    Verify HTTP Basic credentials against the user store.

    Raises:
        HTTPException: 401 if credentials are missing or invalid
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing credentials. Use HTTP Basic authentication.",
            headers={"WWW-Authenticate": "Basic"},
        )

    user = authenticate(db, credentials.username, credentials.password)
    if user is None:
        logger.info(f"Failed authentication for {credentials.username!r}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return user
