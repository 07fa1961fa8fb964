"""Completeness sanity check gating escalation to the fallback extractor.

The gate is conjunctive: a recipe counts as incomplete only when it is
missing both its ingredients and its instructions. A recipe missing just one
of the two is kept, so the expensive browser fallback is not triggered for
partially usable results.
"""

import logging

from .models import BasicRecipe, CompletenessAssessment
from .prompts import build_completeness_prompt
from .protocols import StructuredGenerator

logger = logging.getLogger(__name__)


class SanityChecker:
    """AI-backed completeness classifier.

    Failures of the classifier never fail the pipeline; they are logged and
    treated as "not incomplete" so the cheaper result is kept.
    """

    def __init__(self, generator: StructuredGenerator) -> None:
        self.generator = generator

    async def is_incomplete(self, recipe: BasicRecipe) -> bool:
        """Return True only when both ingredients and instructions are missing.

        Args:
            recipe: Freshly extracted recipe

        Returns:
            Whether the orchestrator should escalate to the next strategy
        """
        if not recipe.ingredients and not recipe.instructions:
            logger.info(f"'{recipe.title}' has no ingredients and no instructions")
            return True

        result = await self.generator.generate(
            CompletenessAssessment, build_completeness_prompt(recipe)
        )
        if not result.ok or result.data is None:
            logger.warning(
                f"Completeness check failed for '{recipe.title}', keeping result: {result.error}"
            )
            return False

        assessment = result.data
        logger.debug(
            f"Completeness of '{recipe.title}': "
            f"ingredients missing={assessment.missingIngredients}, "
            f"instructions missing={assessment.missingInstructions} ({assessment.reason})"
        )
        return assessment.missingIngredients and assessment.missingInstructions
