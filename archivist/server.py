"""
Archivist API Server

FastAPI application providing endpoints for:
- Browsing categories, entries and chapters scraped from the upstream archive
- Reading story and chapter content as HTML or Markdown
- Per-user starred/hidden/viewed/read state
- User accounts
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from . import __version__, archive
from .auth import hash_password
from .cache import ResponseCache
from .config import config, state
from .database import AlreadyExistsError, Database, DBUser, NotFoundError
from .exceptions import ArchiveError, Unauthenticated
from .routes import (
    categories_router,
    entries_router,
    chapters_router,
    users_router,
    misc_public_router,
)
from .upstream import UpstreamClient

logger = logging.getLogger(__name__)

API_PREFIX = "/v1"


def bootstrap_user(db: Database, name: str, password: str):
    """Create the initial account if it does not exist yet."""
    try:
        db.get_user_by_name(name)
        return
    except NotFoundError:
        pass

    try:
        db.upsert_user(DBUser(name=name, password_hash=hash_password(password)))
        logger.info(f"Created bootstrap user {name}")
    except AlreadyExistsError:
        logger.info(f"Bootstrap user {name} already exists")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and cleanup application resources."""
    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Startup - skip if already initialized (e.g., by tests)
    if state.archive is None:
        if not config.ROOT_URI:
            raise RuntimeError("ROOT_URI must be set to the upstream archive's root URL")

        config.DB_PATH.parent.mkdir(parents=True, exist_ok=True)
        state.db = Database(config.DB_PATH)
        state.upstream = UpstreamClient(
            config.ROOT_URI,
            timeout=config.HTTP_TIMEOUT,
            user_agent=config.USER_AGENT,
            cache=ResponseCache(
                max_size=config.HTTP_CACHE_SIZE,
                max_bytes=config.HTTP_CACHE_MAX_BYTES,
            ),
        )
        state.archive = archive.default(
            state.upstream,
            state.db,
            locale=config.UPSTREAM_TIMEZONE,
        )

        if config.BOOTSTRAP_USER and config.BOOTSTRAP_PASSWORD:
            bootstrap_user(state.db, config.BOOTSTRAP_USER, config.BOOTSTRAP_PASSWORD)

        logger.info(f"Archive service initialized for {config.ROOT_URI}")

    yield

    # Shutdown
    if state.upstream:
        try:
            await state.upstream.close()
        except Exception as e:
            logger.warning(f"Error closing upstream client: {e}")
    if state.db:
        state.db.close()


# ─────────────────────────────────────────────────────────────
# Error handlers
# ─────────────────────────────────────────────────────────────

def archive_error_handler(request: Request, exc: ArchiveError) -> JSONResponse:
    """Map archive errors onto their HTTP status."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    headers = {"WWW-Authenticate": "Basic"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"code": exc.code, "detail": exc.detail},
        headers=headers,
    )


def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Requests that fail schema validation are invalid arguments."""
    errors = exc.errors() if isinstance(exc, (ValidationError, RequestValidationError)) else []
    return JSONResponse(
        status_code=400,
        content={
            "code": "invalid_argument",
            "detail": [
                {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
                for err in errors
            ],
        },
    )


app = FastAPI(
    title="Archivist API",
    version=__version__,
    lifespan=lifespan
)

app.add_exception_handler(ArchiveError, archive_error_handler)
app.add_exception_handler(ValidationError, validation_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)

# Include routers
app.include_router(misc_public_router)
app.include_router(categories_router, prefix=API_PREFIX)
app.include_router(entries_router, prefix=API_PREFIX)
app.include_router(chapters_router, prefix=API_PREFIX)
app.include_router(users_router, prefix=API_PREFIX)


def main():
    import uvicorn

    uvicorn.run("archivist.server:app", host="0.0.0.0", port=config.PORT)


if __name__ == "__main__":
    main()
