"""
Upstream HTTP client.

Handles:
- One shared aiohttp session with a pooled connector and request timeouts
- Conditional revalidation of cached responses (ETag / Last-Modified)
- Bounded in-memory response cache
"""

import asyncio
import logging
from dataclasses import dataclass
from email.message import Message
from urllib.parse import urlparse

import aiohttp

from .cache import ResponseCache

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "okhttp/4.9.2"
DEFAULT_TIMEOUT = 10
MAX_CONNECTIONS = 100


class UpstreamError(Exception):
    """The upstream archive could not be reached or read."""


@dataclass
class UpstreamResponse:
    """A fully read upstream response."""
    url: str
    status: int
    body: bytes
    content_type: str = ""
    last_modified: str | None = None
    etag: str | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def charset(self) -> str | None:
        if not self.content_type:
            return None
        msg = Message()
        msg["content-type"] = self.content_type
        return msg.get_param("charset")

    @property
    def text(self) -> str:
        return self.body.decode(self.charset or "utf-8", errors="replace")

    @property
    def cacheable(self) -> bool:
        return self.status == 200 and bool(self.etag or self.last_modified)


class UpstreamClient:
    """Fetches pages from the upstream archive rooted at ``root_uri``."""

    def __init__(
        self,
        root_uri: str,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        cache: ResponseCache | None = None,
        max_connections: int = MAX_CONNECTIONS,
    ):
        parsed = urlparse(root_uri)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError(f"root uri must be absolute: {root_uri!r}")

        self.root_uri = root_uri
        self.base_path = parsed.path or "/"
        self.timeout = timeout
        self.user_agent = user_agent
        self.max_connections = max_connections
        self.cache = cache if cache is not None else ResponseCache()
        self.headers = {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,text/plain;q=0.9,*/*;q=0.8",
        }
        self._session: aiohttp.ClientSession | None = None

    def url(self, slug: str = "") -> str:
        """Absolute URL for a slug relative to the archive root."""
        if not slug:
            return self.root_uri
        return f"{self.root_uri.rstrip('/')}/{slug.lstrip('/')}"

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=self.max_connections,
                limit_per_host=self.max_connections,
            )
            self._session = aiohttp.ClientSession(
                headers=self.headers,
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=self.timeout, connect=self.timeout),
            )
        return self._session

    async def get(self, url: str) -> UpstreamResponse:
        """
        GET ``url``, revalidating any cached copy.

        Non-2xx statuses are returned, not raised; callers decide what they
        mean. Transport failures raise UpstreamError.
        """
        cached: UpstreamResponse | None = self.cache.get(url)
        headers = {}
        if cached is not None:
            if cached.etag:
                headers["If-None-Match"] = cached.etag
            if cached.last_modified:
                headers["If-Modified-Since"] = cached.last_modified

        try:
            async with self._get_session().get(url, headers=headers, allow_redirects=True) as resp:
                body = await resp.read()
                response = UpstreamResponse(
                    url=str(resp.url),
                    status=resp.status,
                    body=body,
                    content_type=resp.headers.get("Content-Type", ""),
                    last_modified=resp.headers.get("Last-Modified"),
                    etag=resp.headers.get("ETag"),
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise UpstreamError(f"failed to fetch {url}: {e}") from e

        if response.status == 304 and cached is not None:
            logger.debug(f"Upstream cache revalidated: {url}")
            return cached

        if response.cacheable:
            self.cache.set(url, response, size=len(response.body))
        else:
            self.cache.delete(url)
        return response

    async def close(self):
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
