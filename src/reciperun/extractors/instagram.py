"""Caption strategy for Instagram posts.

Instagram pages carry no structured recipe markup; the recipe, when there
is one, lives in the post caption exposed through the page's meta tags.
"""

import logging

from bs4 import BeautifulSoup

from ..exceptions import ParseError
from ..fetching import PageFetcher
from ..models import BasicRecipe
from ..prompts import build_caption_prompt
from ..protocols import StructuredGenerator
from ..result import Result, failure
from .base import host_matches, require_content

logger = logging.getLogger(__name__)

INSTAGRAM_DOMAINS = frozenset({"instagram.com", "instagr.am"})


def read_meta(soup: BeautifulSoup, *keys: str) -> str:
    """Return the first non-empty ``content`` of a meta tag named by ``keys``.

    Each key is matched against both the ``property`` and ``name``
    attributes.
    """
    for key in keys:
        for attribute in ("property", "name"):
            tag = soup.find("meta", attrs={attribute: key})
            if tag is None:
                continue
            content = tag.get("content")
            if isinstance(content, str) and content.strip():
                return content.strip()
    return ""


class InstagramCaptionSource:
    """Structures the caption of an Instagram post into a recipe."""

    name = "instagram"

    def __init__(self, fetcher: PageFetcher, generator: StructuredGenerator) -> None:
        self.fetcher = fetcher
        self.generator = generator

    def handles(self, url: str) -> bool:
        """True for instagram.com URLs."""
        return host_matches(url, INSTAGRAM_DOMAINS)

    async def extract(self, url: str) -> Result[BasicRecipe]:
        """Fetch the post, read its caption and structure it into a recipe."""
        page = await self.fetcher.fetch(url)
        if page.error is not None:
            return failure(page.error)

        soup = BeautifulSoup(page.unwrap(), "html.parser")
        caption = read_meta(soup, "og:description", "description")
        if not caption:
            logger.warning(f"No caption found on {url}")
            return failure(ParseError("No caption found on the post", url=url))

        title = read_meta(soup, "og:title")
        image = read_meta(soup, "og:image")
        logger.debug(f"Caption for {url}: {len(caption)} chars")

        generated = await self.generator.generate(
            BasicRecipe, build_caption_prompt(url, caption, title=title, image=image)
        )
        if generated.error is not None:
            return generated

        recipe = generated.unwrap()
        if recipe.imageUrl is None and image:
            recipe = recipe.model_copy(update={"imageUrl": image})
        return require_content(recipe, url, self.name)
