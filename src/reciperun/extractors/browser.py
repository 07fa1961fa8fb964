"""Browser fallback strategy.

Renders the page in headless Chromium, converts the rendered HTML to
markdown and asks the generation collaborator to extract a recipe from it.
Most expensive strategy; used when structured data is missing or judged
incomplete.
"""

import asyncio
import logging
from io import BytesIO

from markitdown import MarkItDown, MarkItDownException
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PWTimeoutError
from playwright.async_api import async_playwright

from ..config import DEFAULT_USER_AGENT
from ..exceptions import FetchError, ParseError, UpstreamServiceError
from ..models import BasicRecipe
from ..prompts import build_page_extraction_prompt
from ..protocols import StructuredGenerator
from ..result import Result, failure, success
from .base import require_content

logger = logging.getLogger(__name__)

# Extra seconds allowed for browser startup and teardown on top of the page load
BROWSER_OVERHEAD = 30.0


def html_to_markdown(html: str) -> str:
    """Convert rendered HTML to markdown with MarkItDown."""
    md = MarkItDown()
    result = md.convert_stream(BytesIO(html.encode("utf-8")), file_extension=".html")
    return result.text_content


def truncate(text: str, max_chars: int) -> str:
    """Cut ``text`` to ``max_chars`` characters, preferring a line boundary."""
    if len(text) <= max_chars:
        return text
    cut = text.rfind("\n", 0, max_chars)
    return text[: cut if cut > max_chars // 2 else max_chars]


class BrowserSource:
    """Playwright-rendered page plus schema-guided extraction.

    Every run launches its own browser, so repeated calls for the same URL
    share no state.

    Attributes:
        page_load_timeout: Seconds allowed for navigation
        max_page_chars: Markdown sent to the model is cut to this length
    """

    name = "browser"

    def __init__(
        self,
        generator: StructuredGenerator,
        page_load_timeout: float = 60.0,
        user_agent: str = DEFAULT_USER_AGENT,
        headless: bool = True,
        max_page_chars: int = 60000,
    ) -> None:
        self.generator = generator
        self.page_load_timeout = page_load_timeout
        self.user_agent = user_agent
        self.headless = headless
        self.max_page_chars = max_page_chars

    async def render(self, url: str) -> Result[str]:
        """Load ``url`` in Chromium and return the rendered HTML.

        Returns:
            Result with the page HTML; FetchError on timeout,
            UpstreamServiceError on any other browser failure
        """
        timeout_ms = self.page_load_timeout * 1000
        try:
            async with asyncio.timeout(self.page_load_timeout + BROWSER_OVERHEAD):
                async with async_playwright() as p:
                    browser = await p.chromium.launch(headless=self.headless)
                    try:
                        context = await browser.new_context(user_agent=self.user_agent)
                        page = await context.new_page()
                        page.set_default_timeout(timeout_ms)
                        await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
                        html = await page.content()
                    finally:
                        await browser.close()
        except (PWTimeoutError, TimeoutError):
            logger.warning(f"Browser timed out loading {url} after {self.page_load_timeout}s")
            return failure(
                FetchError("Page load timed out", url=url, timeout=self.page_load_timeout)
            )
        except PlaywrightError as e:
            logger.error(f"Browser failed on {url}: {e}")
            return failure(UpstreamServiceError("Browser automation failed", url=url, error=str(e)))

        logger.debug(f"Rendered {url} ({len(html)} chars)")
        return success(html)

    async def extract(self, url: str) -> Result[BasicRecipe]:
        """Render the page and extract a recipe from its markdown."""
        rendered = await self.render(url)
        if rendered.error is not None:
            return failure(rendered.error)

        try:
            markdown = await asyncio.to_thread(html_to_markdown, rendered.unwrap())
        except (MarkItDownException, ValueError) as e:
            logger.warning(f"Could not convert rendered {url} to markdown: {e}")
            return failure(
                ParseError("Failed to convert the rendered page", url=url, error=str(e))
            )

        content = truncate(markdown, self.max_page_chars)
        logger.info(f"Extracting recipe from rendered {url} ({len(content)} chars)")

        generated = await self.generator.generate(
            BasicRecipe, build_page_extraction_prompt(url, content)
        )
        if generated.error is not None:
            return generated
        return require_content(generated.unwrap(), url, self.name)
