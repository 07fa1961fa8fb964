"""Recipe repository for persistence operations.

The repository assigns the persisted identity of a recipe and of each of its
ingredients, re-keys instruction annotations from ingredient positions to
ingredient ids, and writes everything as one JSON document. The write is
all-or-nothing: the document is written to a temporary file in the target
directory and moved into place with :func:`os.replace`. Stored recipes can be
loaded by id or listed as summaries ordered by title.

Example:
    >>> repository = FileRecipeRepository(Path("recipes"))
    >>> result = await import_recipe(url, importer, repository)
    >>> print(result.unwrap())
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .exceptions import PersistenceError
from .validator import AnnotationValidator
from .result import Result, failure, success

if TYPE_CHECKING:
    from .models import AnnotatedRecipe, InstructionStep
    from .orchestrator import RecipeImporter
    from .protocols import RecipeRepository

logger = logging.getLogger(__name__)


def slugify(text: str) -> str:
    """Convert text to URL-safe slug.

    Example:
        >>> slugify("Roasted Chicken & Vegetables!")
        'roasted-chicken-vegetables'
    """
    slug = re.sub(r"[^\w\s-]", "", text.lower())
    slug = re.sub(r"[\s_-]+", "-", slug)
    slug = slug.strip("-")
    return slug or "recipe"


class FileRecipeRepository:
    """Stores each recipe as a JSON document named after its id.

    Attributes:
        output_dir: Directory holding the recipe documents
    """

    SUMMARY_FIELDS = ("id", "slug", "title", "description", "prepTime", "cookTime", "imageUrl")

    def __init__(self, output_dir: Path, validator: AnnotationValidator | None = None) -> None:
        self.output_dir = Path(output_dir)
        self.validator = validator or AnnotationValidator()

    def path_for(self, recipe_id: str) -> Path:
        """Location of the document for ``recipe_id``."""
        return self.output_dir / f"{recipe_id}.json"

    def save(self, recipe: AnnotatedRecipe) -> Result[str]:
        """Persist a recipe with its ingredients and instructions.

        A recipe whose annotations do not reference its ingredients is
        rejected before anything is written.

        Args:
            recipe: Annotated recipe

        Returns:
            Result with the new recipe id, a ValidationError, or a
            PersistenceError
        """
        checked = self.validator.ensure_valid(recipe)
        if checked.error is not None:
            return failure(checked.error)

        recipe_id = str(uuid.uuid4())
        document = self.to_document(recipe, recipe_id)
        target = self.path_for(recipe_id)

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            self._write_atomic(target, document)
        except OSError as e:
            logger.error(f"Failed to save '{recipe.title}' to {target}: {e}")
            return failure(
                PersistenceError("Failed to write recipe", path=str(target), error=str(e))
            )

        logger.info(f"Saved recipe '{recipe.title}': {target}")
        return success(recipe_id)

    def get(self, recipe_id: str) -> Result[dict[str, Any]]:
        """Load a stored recipe.

        Ingredients and instructions are returned sorted by their ``order``
        field.

        Returns:
            Result with the stored document, or a PersistenceError when the id
            is unknown or the document cannot be read
        """
        try:
            uuid.UUID(recipe_id)
        except ValueError:
            return failure(PersistenceError("Invalid recipe id", recipe_id=recipe_id))

        path = self.path_for(recipe_id)
        if not path.exists():
            return failure(PersistenceError("Recipe not found", recipe_id=recipe_id))

        try:
            document = self._read(path)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read recipe {recipe_id}: {e}")
            return failure(
                PersistenceError("Failed to read recipe", path=str(path), error=str(e))
            )

        document["ingredients"] = sorted(document.get("ingredients", []), key=_by_order)
        document["instructions"] = sorted(document.get("instructions", []), key=_by_order)
        return success(document)

    def list_recipes(self) -> Result[list[dict[str, Any]]]:
        """Summarise every stored recipe, ordered by title.

        Documents that cannot be read are logged and left out.

        Returns:
            Result with one summary per recipe, or a PersistenceError when
            the directory cannot be listed
        """
        if not self.output_dir.exists():
            return success([])

        try:
            paths = sorted(self.output_dir.glob("*.json"))
        except OSError as e:
            return failure(
                PersistenceError(
                    "Failed to list recipes", path=str(self.output_dir), error=str(e)
                )
            )

        summaries: list[dict[str, Any]] = []
        for path in paths:
            try:
                document = self._read(path)
            except (OSError, ValueError) as e:
                logger.warning(f"Skipping unreadable recipe {path.name}: {e}")
                continue
            summaries.append({field: document.get(field) for field in self.SUMMARY_FIELDS})

        summaries.sort(key=lambda summary: (summary["title"] or "").lower())
        return success(summaries)

    def to_document(self, recipe: AnnotatedRecipe, recipe_id: str) -> dict[str, Any]:
        """Build the stored form of a recipe.

        Ingredients and instructions keep their order through an explicit
        ``order`` field. Each annotation's ``ingredientIndex`` becomes the
        ``ingredientId`` of the ingredient it pointed at.
        """
        ingredient_ids = [str(uuid.uuid4()) for _ in recipe.ingredients]
        ingredients = [
            {
                "id": ingredient_id,
                "order": order,
                "name": ingredient.name,
                "quantity": ingredient.quantity,
                "unit": ingredient.unit,
                "note": ingredient.note,
            }
            for order, (ingredient_id, ingredient) in enumerate(
                zip(ingredient_ids, recipe.ingredients, strict=True)
            )
        ]
        instructions = [
            self._instruction_document(step, order, ingredient_ids)
            for order, step in enumerate(recipe.instructions)
        ]

        return {
            "id": recipe_id,
            "slug": slugify(recipe.title),
            "title": recipe.title,
            "description": recipe.description,
            "prepTime": recipe.prepTime,
            "cookTime": recipe.cookTime,
            "imageUrl": recipe.imageUrl,
            "createdAt": datetime.now(UTC).isoformat(),
            "ingredients": ingredients,
            "instructions": instructions,
        }

    @staticmethod
    def _instruction_document(
        step: InstructionStep, order: int, ingredient_ids: list[str]
    ) -> dict[str, Any]:
        annotations = None
        if step.annotations:
            annotations = [
                {
                    "ingredientId": (
                        ingredient_ids[annotation.ingredientIndex]
                        if annotation.ingredientIndex is not None
                        else None
                    ),
                    "portionUsed": annotation.portionUsed,
                    "note": annotation.note,
                }
                for annotation in step.annotations
            ]
        return {
            "order": order,
            "text": step.text,
            "annotatedText": step.annotatedText,
            "annotations": annotations,
        }

    @staticmethod
    def _read(path: Path) -> dict[str, Any]:
        with open(path, encoding="utf-8") as f:
            document = json.load(f)
        if not isinstance(document, dict):
            raise ValueError("recipe document is not a JSON object")
        return document

    def _write_atomic(self, target: Path, document: dict[str, Any]) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self.output_dir, prefix=".", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, target)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise


def _by_order(item: dict[str, Any]) -> int:
    return item.get("order", 0)


async def import_recipe(
    url: str, importer: RecipeImporter, repository: RecipeRepository
) -> Result[str]:
    """Run the pipeline for ``url`` and persist the result.

    Nothing is written unless the whole pipeline succeeds.

    Returns:
        Result with the persisted recipe id, or the first failure
    """
    recipe = await importer.fetch_recipe(url)
    if recipe.error is not None:
        return failure(recipe.error)
    return repository.save(recipe.unwrap())
