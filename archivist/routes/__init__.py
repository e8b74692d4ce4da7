"""
API route modules.
"""

from .categories import router as categories_router
from .entries import router as entries_router
from .chapters import router as chapters_router
from .users import router as users_router
from .misc import public_router as misc_public_router

__all__ = [
    "categories_router",
    "entries_router",
    "chapters_router",
    "users_router",
    "misc_public_router",
]
