"""Unit tests for HTTP page fetching."""

import httpx
import pytest

from reciperun.exceptions import FetchError
from reciperun.fetching import PageFetcher


class TestPageFetcher:
    """Tests for PageFetcher.fetch."""

    @pytest.mark.asyncio
    async def test_returns_body(self, make_http_client) -> None:
        """A 200 response returns the page text."""
        async with make_http_client({"https://x.test/r": (200, "<html>ok</html>")}) as client:
            result = await PageFetcher(client).fetch("https://x.test/r")
        assert result.unwrap() == "<html>ok</html>"

    @pytest.mark.asyncio
    async def test_sends_user_agent(self, make_http_client) -> None:
        """Requests carry the configured user agent."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text="ok")

        async with make_http_client(handler=handler) as client:
            await PageFetcher(client, user_agent="TestAgent/1.0").fetch("https://x.test/")
        assert seen[0].headers["User-Agent"] == "TestAgent/1.0"

    @pytest.mark.asyncio
    async def test_follows_redirects(self, make_http_client) -> None:
        """Redirects are followed to the final page."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/old":
                return httpx.Response(301, headers={"Location": "https://x.test/new"})
            return httpx.Response(200, text="moved")

        async with make_http_client(handler=handler) as client:
            result = await PageFetcher(client).fetch("https://x.test/old")
        assert result.unwrap() == "moved"

    @pytest.mark.asyncio
    async def test_http_error_status(self, make_http_client) -> None:
        """Non-success statuses become FetchError with the status."""
        async with make_http_client({"https://x.test/r": (403, "Forbidden")}) as client:
            result = await PageFetcher(client).fetch("https://x.test/r")
        assert isinstance(result.error, FetchError)
        assert result.error.context["status"] == 403
        assert "403" in result.error.message

    @pytest.mark.asyncio
    async def test_timeout(self, make_http_client) -> None:
        """Timeouts become FetchError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with make_http_client(handler=handler) as client:
            result = await PageFetcher(client, timeout=1.0).fetch("https://x.test/r")
        assert isinstance(result.error, FetchError)
        assert result.error.message == "Request timed out"

    @pytest.mark.asyncio
    async def test_network_error(self, make_http_client) -> None:
        """Connection failures become FetchError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with make_http_client(handler=handler) as client:
            result = await PageFetcher(client).fetch("https://x.test/r")
        assert isinstance(result.error, FetchError)
        assert result.error.message == "Network error"
