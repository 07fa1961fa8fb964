"""Structured-data strategy: schema.org JSON-LD embedded in the page."""

import logging

from ..fetching import PageFetcher
from ..json_ld import extract_recipe_from_html
from ..models import BasicRecipe
from ..result import Result, failure

logger = logging.getLogger(__name__)


class JsonLdSource:
    """Fetches a page over HTTP and reads its linked-data Recipe entity.

    Cheapest strategy, tried first for every URL not claimed by a domain
    source.
    """

    name = "json-ld"

    def __init__(self, fetcher: PageFetcher) -> None:
        self.fetcher = fetcher

    async def extract(self, url: str) -> Result[BasicRecipe]:
        """Extract a recipe from the JSON-LD blocks of the page at ``url``."""
        page = await self.fetcher.fetch(url)
        if page.error is not None:
            return failure(page.error)

        result = extract_recipe_from_html(page.unwrap())
        if result.ok and result.data is not None:
            logger.info(
                f"JSON-LD recipe '{result.data.title}' found: "
                f"{len(result.data.ingredients)} ingredients, "
                f"{len(result.data.instructions)} steps"
            )
        return result
