"""
Archive service - the layered implementation of every archive operation.

Calls pass through the layers outermost first:

    Validator -> Paginator -> Users -> Interactivity -> Hydrator -> Scraper
"""

from datetime import datetime
from typing import Callable

from ..database import Store
from ..upstream import UpstreamClient
from .filtering import FilterEnvironment, FilterError
from .hydrator import Hydrator
from .interactivity import Interactivity
from .paginator import Paginator
from .scraper import DEFAULT_LOCALE, Scraper
from .service import OPERATIONS, ArchiveDecorator, ArchiveService
from .users import Users
from .validator import Validator


def default(
    client: UpstreamClient,
    store: Store,
    locale: str = DEFAULT_LOCALE,
    now: Callable[[], datetime] | None = None,
) -> ArchiveService:
    """Compose the full archive service over ``client`` and ``store``."""
    service: ArchiveService = Scraper(client, locale=locale, now=now)
    service = Hydrator(service, store)
    service = Interactivity(service, store)
    service = Users(service, store)
    service = Paginator(service)
    return Validator(service)


__all__ = [
    "ArchiveService",
    "ArchiveDecorator",
    "OPERATIONS",
    "Scraper",
    "Hydrator",
    "Interactivity",
    "Users",
    "Paginator",
    "Validator",
    "FilterEnvironment",
    "FilterError",
    "default",
]
