"""
Miscellaneous routes: health check.
"""

from fastapi import APIRouter

from .. import __version__
from ..config import state

public_router = APIRouter(tags=["misc"])


# ─────────────────────────────────────────────────────────────
# Health Check
# ─────────────────────────────────────────────────────────────

@public_router.get("/status")
async def health_check() -> dict:
    """API health check. Does not require authentication."""
    return {
        "status": "ok",
        "version": __version__,
        "upstream": state.upstream.root_uri if state.upstream else None,
    }
