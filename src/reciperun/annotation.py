"""Annotation engine.

Turns a :class:`BasicRecipe` into an :class:`AnnotatedRecipe`: the
generation collaborator structures the ingredients and links each
instruction back to them, then metadata from the extraction stage is merged
on top and the whole recipe goes through :class:`AnnotationValidator`.

Merge precedence: ``title`` and ``description`` always come from the
extraction stage; ``prepTime``, ``cookTime`` and ``imageUrl`` come from the
extraction stage whenever it knew them.
"""

import logging
from typing import Any

from .models import AnnotatedRecipe, BasicRecipe
from .prompts import build_annotation_prompt
from .protocols import StructuredGenerator
from .result import Result
from .validator import AnnotationValidator, normalize_recipe

logger = logging.getLogger(__name__)


def merge_extracted_metadata(annotated: AnnotatedRecipe, basic: BasicRecipe) -> AnnotatedRecipe:
    """Overlay the authored metadata of ``basic`` onto ``annotated``."""
    update: dict[str, Any] = {"title": basic.title, "description": basic.description}
    if basic.prepTime is not None:
        update["prepTime"] = basic.prepTime
    if basic.cookTime is not None:
        update["cookTime"] = basic.cookTime
    if basic.imageUrl is not None:
        update["imageUrl"] = basic.imageUrl
    return annotated.model_copy(update=update)


class RecipeAnnotator:
    """Generates, merges and validates annotated recipes.

    Example:
        >>> annotator = RecipeAnnotator(OpenAIGenerator())
        >>> result = await annotator.annotate(basic_recipe)
    """

    def __init__(
        self,
        generator: StructuredGenerator,
        validator: AnnotationValidator | None = None,
    ) -> None:
        self.generator = generator
        self.validator = validator or AnnotationValidator()

    async def annotate(self, recipe: BasicRecipe) -> Result[AnnotatedRecipe]:
        """Annotate a basic recipe.

        Args:
            recipe: Recipe selected by the extraction stage

        Returns:
            Result with a referentially valid AnnotatedRecipe, or the
            generation or validation failure
        """
        logger.info(
            f"Annotating '{recipe.title}' ({len(recipe.ingredients)} ingredients, "
            f"{len(recipe.instructions)} steps)"
        )
        generated = await self.generator.generate(
            AnnotatedRecipe, build_annotation_prompt(recipe)
        )
        if not generated.ok or generated.data is None:
            logger.error(f"Annotation of '{recipe.title}' failed: {generated.error}")
            return generated

        merged = merge_extracted_metadata(generated.data, recipe)
        validated = self.validator.ensure_valid(normalize_recipe(merged))
        if not validated.ok:
            return validated

        logger.info(f"Annotation complete for '{recipe.title}'")
        return validated
