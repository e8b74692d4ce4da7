"""
Tests for the upstream HTTP client.
"""

from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from archivist.upstream import UpstreamClient, UpstreamError, UpstreamResponse

ROOT = "https://archive.test/stories/"


def mock_session(status=200, body=b"<html></html>", headers=None):
    """A session whose GETs all answer with the given response."""
    session = MagicMock()
    session.closed = False
    session.close = AsyncMock()
    resp = session.get.return_value.__aenter__.return_value
    resp.status = status
    resp.url = ROOT
    resp.headers = headers or {"Content-Type": "text/html"}
    resp.read = AsyncMock(return_value=body)
    return session


@pytest.fixture
def client():
    return UpstreamClient(ROOT)


class TestUrls:
    def test_root(self, client):
        assert client.url() == ROOT
        assert client.base_path == "/stories/"

    def test_slug(self, client):
        assert client.url("fiction/story.html") == "https://archive.test/stories/fiction/story.html"
        assert client.url("/fiction") == "https://archive.test/stories/fiction"

    def test_relative_root_rejected(self):
        with pytest.raises(ValueError):
            UpstreamClient("archive.test/")


class TestUpstreamResponse:
    def test_charset(self):
        resp = UpstreamResponse(url=ROOT, status=200, body="café".encode("latin-1"),
                                content_type="text/plain; charset=ISO-8859-1")

        assert resp.charset == "ISO-8859-1"
        assert resp.text == "café"

    def test_cacheable_needs_validator(self):
        assert not UpstreamResponse(url=ROOT, status=200, body=b"").cacheable
        assert UpstreamResponse(url=ROOT, status=200, body=b"", etag='"v1"').cacheable
        assert not UpstreamResponse(url=ROOT, status=404, body=b"", etag='"v1"').cacheable


class TestGet:
    @pytest.mark.asyncio
    async def test_returns_error_statuses(self, client):
        client._session = mock_session(status=404, body=b"missing")

        resp = await client.get(ROOT)

        assert resp.status == 404
        assert not resp.ok
        assert resp.body == b"missing"

    @pytest.mark.asyncio
    async def test_revalidates_cached_response(self, client):
        session = mock_session(headers={"Content-Type": "text/html", "ETag": '"v1"'})
        client._session = session
        first = await client.get(ROOT)

        resp = session.get.return_value.__aenter__.return_value
        resp.status = 304
        resp.read = AsyncMock(return_value=b"")
        second = await client.get(ROOT)

        assert second is first
        assert session.get.call_args.kwargs["headers"] == {"If-None-Match": '"v1"'}

    @pytest.mark.asyncio
    async def test_uncacheable_response_not_kept(self, client):
        client._session = mock_session()

        await client.get(ROOT)

        assert ROOT not in client.cache

    @pytest.mark.asyncio
    async def test_transport_error(self, client):
        session = mock_session()
        session.get.side_effect = aiohttp.ClientConnectionError("connection refused")
        client._session = session

        with pytest.raises(UpstreamError):
            await client.get(ROOT)

    @pytest.mark.asyncio
    async def test_close(self, client):
        session = mock_session()
        client._session = session

        await client.close()

        session.close.assert_awaited_once()
        await client.close()
