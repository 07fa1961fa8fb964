"""Unit tests for the extraction strategies."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PWTimeoutError

from reciperun.exceptions import FetchError, ParseError, UpstreamServiceError
from reciperun.extractors import BrowserSource, InstagramCaptionSource, JsonLdSource
from reciperun.extractors.base import host_matches
from reciperun.extractors.browser import html_to_markdown, truncate
from reciperun.extractors.instagram import read_meta
from reciperun.fetching import PageFetcher
from reciperun.models import BasicRecipe
from reciperun.result import failure, success

POST_URL = "https://www.instagram.com/p/abc123/"
POST_HTML = """<html><head>
<meta property="og:title" content="Chef on Instagram: Lemon pasta">
<meta property="og:description" content="Lemon pasta! 200g spaghetti, 1 lemon. Boil, toss. #pasta">
<meta property="og:image" content="https://cdn.test/pasta.jpg">
</head><body></body></html>"""


class TestHostMatches:
    """Tests for domain matching."""

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://instagram.com/p/1", True),
            ("https://www.instagram.com/reel/2/", True),
            ("https://INSTAGRAM.com/p/1", True),
            ("https://notinstagram.com/p/1", False),
            ("https://example.com/?u=instagram.com", False),
        ],
    )
    def test_match(self, url: str, expected: bool) -> None:
        """Exact hosts and subdomains match, lookalikes do not."""
        assert host_matches(url, frozenset({"instagram.com"})) is expected


class TestJsonLdSource:
    """Tests for the structured-data strategy."""

    @pytest.mark.asyncio
    async def test_extracts_recipe(self, make_http_client, recipe_json_ld: str) -> None:
        """A page with a Recipe entity yields a BasicRecipe."""
        async with make_http_client({"https://x.test/r": (200, recipe_json_ld)}) as client:
            result = await JsonLdSource(PageFetcher(client)).extract("https://x.test/r")
        assert result.unwrap().title == "Pancakes"

    @pytest.mark.asyncio
    async def test_fetch_error_propagates(self, make_http_client) -> None:
        """HTTP failures are returned as FetchError."""
        async with make_http_client() as client:
            result = await JsonLdSource(PageFetcher(client)).extract("https://x.test/missing")
        assert isinstance(result.error, FetchError)

    @pytest.mark.asyncio
    async def test_page_without_data(self, make_http_client) -> None:
        """Pages without linked data fail with ParseError."""
        async with make_http_client({"https://x.test/r": (200, "<html></html>")}) as client:
            result = await JsonLdSource(PageFetcher(client)).extract("https://x.test/r")
        assert isinstance(result.error, ParseError)


class TestInstagramCaptionSource:
    """Tests for the Instagram caption strategy."""

    def test_read_meta_prefers_first_key(self) -> None:
        """Meta lookup checks keys in order on property and name."""
        from bs4 import BeautifulSoup

        soup = BeautifulSoup(
            '<meta name="description" content="plain">'
            '<meta property="og:description" content="og">',
            "html.parser",
        )
        assert read_meta(soup, "og:description", "description") == "og"
        assert read_meta(soup, "description") == "plain"
        assert read_meta(soup, "og:title") == ""

    def test_handles_only_instagram(self) -> None:
        """The source claims Instagram URLs only."""
        source = InstagramCaptionSource(MagicMock(), MagicMock())
        assert source.handles(POST_URL)
        assert not source.handles("https://example.com/recipe")

    @pytest.mark.asyncio
    async def test_caption_structured(self, make_http_client, fake_generator) -> None:
        """The caption is sent to the generator and its image kept."""
        fake_generator.add(
            BasicRecipe,
            BasicRecipe(
                title="Lemon pasta",
                ingredients=["200g spaghetti", "1 lemon"],
                instructions=["Boil.", "Toss."],
            ),
        )
        async with make_http_client({POST_URL: (200, POST_HTML)}) as client:
            source = InstagramCaptionSource(PageFetcher(client), fake_generator)
            result = await source.extract(POST_URL)

        recipe = result.unwrap()
        assert recipe.imageUrl == "https://cdn.test/pasta.jpg"
        prompt = fake_generator.calls_for(BasicRecipe)[0]
        assert "200g spaghetti, 1 lemon" in prompt
        assert "Chef on Instagram: Lemon pasta" in prompt

    @pytest.mark.asyncio
    async def test_missing_caption(self, make_http_client, fake_generator) -> None:
        """A post without caption fails before calling the generator."""
        async with make_http_client({POST_URL: (200, "<html></html>")}) as client:
            result = await InstagramCaptionSource(PageFetcher(client), fake_generator).extract(
                POST_URL
            )
        assert isinstance(result.error, ParseError)
        assert fake_generator.calls == []

    @pytest.mark.asyncio
    async def test_caption_without_recipe(self, make_http_client, fake_generator) -> None:
        """A caption that holds no recipe fails with ParseError."""
        fake_generator.add(BasicRecipe, BasicRecipe(title="Sunset"))
        async with make_http_client({POST_URL: (200, POST_HTML)}) as client:
            result = await InstagramCaptionSource(PageFetcher(client), fake_generator).extract(
                POST_URL
            )
        assert isinstance(result.error, ParseError)


class TestBrowserHelpers:
    """Tests for markdown conversion and truncation."""

    def test_html_to_markdown(self) -> None:
        """Rendered HTML is converted to markdown text."""
        html = "<html><body><h1>Soup</h1><ul><li>1 onion</li></ul></body></html>"
        markdown = html_to_markdown(html)
        assert "Soup" in markdown
        assert "1 onion" in markdown

    def test_truncate_short_text(self) -> None:
        """Text within the limit is unchanged."""
        assert truncate("abc", 10) == "abc"

    def test_truncate_prefers_line_boundary(self) -> None:
        """Long text is cut at the last newline before the limit."""
        text = "a" * 8 + "\n" + "b" * 20
        assert truncate(text, 12) == "a" * 8

    def test_truncate_hard_cut(self) -> None:
        """Without a usable newline the text is cut at the limit."""
        assert truncate("x" * 50, 10) == "x" * 10


class TestBrowserSource:
    """Tests for the browser fallback strategy with rendering stubbed."""

    @pytest.mark.asyncio
    async def test_extract_from_rendered_page(self, fake_generator) -> None:
        """Rendered markdown is truncated and sent to the generator."""
        fake_generator.add(
            BasicRecipe, BasicRecipe(title="Soup", ingredients=["1 onion"], instructions=["Cook."])
        )
        source = BrowserSource(fake_generator, max_page_chars=1000)
        html = "<html><body><h1>Soup</h1>" + "<p>filler text</p>" * 500 + "</body></html>"

        with patch.object(source, "render", AsyncMock(return_value=success(html))):
            result = await source.extract("https://x.test/soup")

        assert result.unwrap().title == "Soup"
        prompt = fake_generator.calls_for(BasicRecipe)[0]
        assert '<page url="https://x.test/soup">' in prompt
        assert len(prompt) < 3000

    @pytest.mark.asyncio
    async def test_render_failure_propagates(self, fake_generator) -> None:
        """A failed render is returned without calling the generator."""
        source = BrowserSource(fake_generator)
        error = FetchError("Page load timed out")
        with patch.object(source, "render", AsyncMock(return_value=failure(error))):
            result = await source.extract("https://x.test/soup")
        assert result.error is error
        assert fake_generator.calls == []

    @pytest.mark.asyncio
    async def test_conversion_failure(self, fake_generator) -> None:
        """A page MarkItDown cannot convert is a ParseError, not a raised error."""
        from markitdown import MarkItDownException

        source = BrowserSource(fake_generator)
        with (
            patch.object(source, "render", AsyncMock(return_value=success("<p>x</p>"))),
            patch(
                "reciperun.extractors.browser.html_to_markdown",
                side_effect=MarkItDownException("conversion failed"),
            ),
        ):
            result = await source.extract("https://x.test/soup")

        assert isinstance(result.error, ParseError)
        assert result.error.context["error"] == "conversion failed"
        assert fake_generator.calls == []

    @pytest.mark.asyncio
    async def test_empty_extraction(self, fake_generator) -> None:
        """A page that yields no recipe content is a ParseError."""
        fake_generator.add(BasicRecipe, BasicRecipe(title="About us"))
        source = BrowserSource(fake_generator)
        with patch.object(source, "render", AsyncMock(return_value=success("<p>About</p>"))):
            result = await source.extract("https://x.test/about")
        assert isinstance(result.error, ParseError)

    @pytest.mark.asyncio
    async def test_render_timeout(self, fake_generator) -> None:
        """A Playwright navigation timeout is a FetchError."""
        source = BrowserSource(fake_generator, page_load_timeout=1.0)
        with patch(
            "reciperun.extractors.browser.async_playwright",
            return_value=_playwright_stub(goto_error=PWTimeoutError("Timeout 1000ms exceeded")),
        ):
            result = await source.render("https://x.test/slow")
        assert isinstance(result.error, FetchError)
        assert result.error.context["timeout"] == 1.0

    @pytest.mark.asyncio
    async def test_render_browser_fault(self, fake_generator) -> None:
        """Other browser errors are UpstreamServiceError."""
        source = BrowserSource(fake_generator)
        with patch(
            "reciperun.extractors.browser.async_playwright",
            return_value=_playwright_stub(goto_error=PlaywrightError("Browser closed")),
        ):
            result = await source.render("https://x.test/r")
        assert isinstance(result.error, UpstreamServiceError)

    @pytest.mark.asyncio
    async def test_render_returns_content(self, fake_generator) -> None:
        """A loaded page returns its HTML and closes the browser."""
        stub = _playwright_stub(content="<html>rendered</html>")
        source = BrowserSource(fake_generator, headless=False, user_agent="UA")
        with patch("reciperun.extractors.browser.async_playwright", return_value=stub):
            result = await source.render("https://x.test/r")

        assert result.unwrap() == "<html>rendered</html>"
        playwright = stub.__aenter__.return_value
        playwright.chromium.launch.assert_awaited_once_with(headless=False)
        browser = playwright.chromium.launch.return_value
        browser.new_context.assert_awaited_once_with(user_agent="UA")
        browser.close.assert_awaited_once()


def _playwright_stub(content: str = "", goto_error: Exception | None = None) -> MagicMock:
    page = MagicMock()
    page.goto = AsyncMock(side_effect=goto_error)
    page.content = AsyncMock(return_value=content)

    context = MagicMock()
    context.new_page = AsyncMock(return_value=page)

    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()

    playwright = MagicMock()
    playwright.chromium.launch = AsyncMock(return_value=browser)

    manager = MagicMock()
    manager.__aenter__ = AsyncMock(return_value=playwright)
    manager.__aexit__ = AsyncMock(return_value=False)
    return manager
