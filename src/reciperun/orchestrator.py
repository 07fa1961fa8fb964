"""Extraction orchestrator.

Runs the fallback chain of extraction strategies for one URL, decides
escalation with the sanity check, and hands the selected recipe to the
annotation stage.

Control flow:

1. A domain source that claims the URL is used on its own; the general
   strategies are skipped.
2. Otherwise the general strategies run in order, one at a time.
3. A successful result that still has a strategy after it goes through the
   sanity check; it is replaced by the next strategy's result only when the
   check flags it as incomplete.
4. The selected recipe is annotated and the annotation result is returned.

When every strategy fails, the last strategy's error is returned. A run in
which no strategy was attempted at all is a wiring defect and is reported as
a :class:`ConfigurationError`.

Example:
    >>> importer = RecipeImporter(
    ...     strategies=[JsonLdSource(fetcher), BrowserSource(generator)],
    ...     annotator=RecipeAnnotator(generator),
    ...     checker=SanityChecker(generator),
    ...     domain_sources=[InstagramCaptionSource(fetcher, generator)],
    ... )
    >>> result = await importer.fetch_recipe("https://example.com/lasagne")
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .exceptions import ConfigurationError, ParseError, ReciperunError
from .models import AnnotatedRecipe, BasicRecipe
from .protocols import CompletenessChecker, DomainRecipeSource, RecipeAnnotator, RecipeSource
from .result import Result, failure

logger = logging.getLogger(__name__)


class RecipeImporter:
    """Turns a recipe page URL into a validated annotated recipe.

    Holds only its collaborators; every call owns its own intermediate
    values, so separate imports may run concurrently on one instance.
    """

    def __init__(
        self,
        strategies: Sequence[RecipeSource],
        annotator: RecipeAnnotator,
        checker: CompletenessChecker | None = None,
        domain_sources: Sequence[DomainRecipeSource] = (),
    ) -> None:
        """Initialize the importer.

        Args:
            strategies: General strategies, cheapest first
            annotator: Annotation stage
            checker: Sanity check gating escalation; None keeps every success
            domain_sources: Strategies dedicated to particular domains
        """
        self.strategies = list(strategies)
        self.annotator = annotator
        self.checker = checker
        self.domain_sources = list(domain_sources)

    def select_strategies(self, url: str) -> list[RecipeSource]:
        """Return the strategy chain for ``url``."""
        dedicated = [source for source in self.domain_sources if source.handles(url)]
        if dedicated:
            logger.info(f"Routing {url} to {dedicated[0].name}")
            return list(dedicated)
        return list(self.strategies)

    async def extract(self, url: str) -> Result[BasicRecipe]:
        """Run the strategy chain and return the selected basic recipe.

        Args:
            url: Absolute recipe page URL

        Returns:
            Result with the selected BasicRecipe, the last strategy's error,
            or a ConfigurationError when no strategy ran
        """
        chain = self.select_strategies(url)
        last_error: ReciperunError | None = None

        for position, source in enumerate(chain):
            logger.info(f"Trying {source.name} for {url}")
            result = await source.extract(url)
            if result.error is not None:
                logger.warning(f"{source.name} failed for {url}: {result.error}")
                last_error = result.error
                continue

            recipe = result.unwrap()
            has_fallback = position + 1 < len(chain)
            if (
                has_fallback
                and self.checker is not None
                and await self.checker.is_incomplete(recipe)
            ):
                logger.info(
                    f"{source.name} result for {url} is incomplete, "
                    f"escalating to {chain[position + 1].name}"
                )
                last_error = ParseError(
                    "Extracted recipe is missing ingredients and instructions",
                    url=url,
                    source=source.name,
                )
                continue

            logger.info(f"Selected {source.name} result '{recipe.title}' for {url}")
            return result

        if last_error is None:
            logger.error(f"No extraction strategy ran for {url}")
            return failure(ConfigurationError("No extraction strategy configured", url=url))

        logger.error(f"All extraction strategies failed for {url}: {last_error}")
        return failure(last_error)

    async def fetch_recipe(self, url: str) -> Result[AnnotatedRecipe]:
        """Extract and annotate the recipe at ``url``.

        Args:
            url: Absolute recipe page URL

        Returns:
            Result with a referentially valid AnnotatedRecipe, or the most
            specific failure of the run
        """
        extracted = await self.extract(url)
        if extracted.error is not None:
            return failure(extracted.error)

        annotated = await self.annotator.annotate(extracted.unwrap())
        if annotated.error is not None:
            logger.error(f"Failed to annotate recipe from {url}: {annotated.error}")
        return annotated
