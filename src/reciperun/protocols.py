"""Protocol definitions for reciperun.

This module defines the interfaces between the import pipeline and its
collaborators. The orchestrator only depends on these Protocols, so every
collaborator can be swapped for a test double that returns fixed fixtures.

Example:
    >>> class FixedGenerator:
    ...     async def generate(self, schema, prompt):
    ...         return success(schema(missingIngredients=False, ...))
    ...
    >>> checker = SanityChecker(FixedGenerator())
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel

if TYPE_CHECKING:
    from .models import AnnotatedRecipe, BasicRecipe
    from .result import Result

ModelT = TypeVar("ModelT", bound=BaseModel)


@runtime_checkable
class StructuredGenerator(Protocol):
    """Protocol for the AI generation collaborator.

    Implementations turn a prompt into an instance of a Pydantic schema.
    They must never raise for provider problems; missing credentials, call
    failures and non-conforming output are returned as failed results.
    """

    async def generate(self, schema: type[ModelT], prompt: str) -> Result[ModelT]:
        """Generate an instance of ``schema`` from ``prompt``.

        Args:
            schema: Pydantic model describing the expected output
            prompt: Instructions and content for the model

        Returns:
            Result holding the schema instance or an UpstreamServiceError
        """
        ...


@runtime_checkable
class RecipeSource(Protocol):
    """Protocol for one extraction strategy.

    Strategies are tried in order by the orchestrator until one produces an
    adequate recipe.
    """

    name: str

    async def extract(self, url: str) -> Result[BasicRecipe]:
        """Extract a basic recipe from the page at ``url``.

        Must be safe to call repeatedly with the same URL and must bound
        every network wait, returning timeouts as failed results.
        """
        ...


@runtime_checkable
class DomainRecipeSource(RecipeSource, Protocol):
    """Protocol for a strategy dedicated to particular domains.

    When a domain source claims a URL, the general strategies are skipped:
    pages on such domains are not expected to carry structured recipe data.
    """

    def handles(self, url: str) -> bool:
        """Whether this strategy is dedicated to the URL's domain."""
        ...


@runtime_checkable
class CompletenessChecker(Protocol):
    """Protocol for the sanity check that gates escalation."""

    async def is_incomplete(self, recipe: BasicRecipe) -> bool:
        """True when the recipe is missing both ingredients and instructions.

        Never fails; checker errors count as "not incomplete".
        """
        ...


@runtime_checkable
class RecipeAnnotator(Protocol):
    """Protocol for the annotation stage."""

    async def annotate(self, recipe: BasicRecipe) -> Result[AnnotatedRecipe]:
        """Structure ingredients and link instructions back to them."""
        ...


@runtime_checkable
class RecipeRepository(Protocol):
    """Protocol for the persistence collaborator.

    Implementations write the recipe, its ingredients and its instructions in
    a single all-or-nothing operation and assign the persisted identity.
    """

    def save(self, recipe: AnnotatedRecipe) -> Result[str]:
        """Persist a recipe and return its stable identifier."""
        ...

    def get(self, recipe_id: str) -> Result[dict[str, Any]]:
        """Load a stored recipe with its ingredients and instructions in order."""
        ...

    def list_recipes(self) -> Result[list[dict[str, Any]]]:
        """Summaries of every stored recipe, ordered by title."""
        ...
