"""Pytest configuration and fixtures for reciperun tests.

This module provides shared fixtures for testing the reciperun package.
No fixture touches the network, a browser or the OpenAI API: HTTP goes
through ``httpx.MockTransport`` and generation through ``FakeGenerator``.
"""

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

# Add src directory to Python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from reciperun.exceptions import ReciperunError  # noqa: E402
from reciperun.models import (  # noqa: E402
    AnnotatedRecipe,
    Annotation,
    BasicRecipe,
    Ingredient,
    InstructionStep,
)
from reciperun.result import Result, failure, success  # noqa: E402


# ============================================================================
# Generation Fakes
# ============================================================================


class FakeGenerator:
    """Fixture-backed stand-in for the generation collaborator.

    Responses are registered per schema and returned in order; the last one
    repeats. A response may be a model instance or a ReciperunError.
    """

    def __init__(self, responses: dict[type, Any] | None = None) -> None:
        self.responses: dict[type, list[Any]] = {}
        self.calls: list[tuple[type, str]] = []
        for schema, response in (responses or {}).items():
            self.add(schema, response)

    def add(self, schema: type, *responses: Any) -> None:
        self.responses.setdefault(schema, []).extend(responses)

    def calls_for(self, schema: type) -> list[str]:
        return [prompt for called, prompt in self.calls if called is schema]

    async def generate(self, schema: type, prompt: str) -> Result[Any]:
        self.calls.append((schema, prompt))
        queued = self.responses.get(schema)
        if not queued:
            raise AssertionError(f"No fake response registered for {schema.__name__}")
        response = queued.pop(0) if len(queued) > 1 else queued[0]
        if isinstance(response, ReciperunError):
            return failure(response)
        return success(response)


class FakeSource:
    """Extraction strategy returning fixed results and counting calls."""

    def __init__(self, name: str, *results: Result[BasicRecipe], domains: tuple[str, ...] = ()):
        self.name = name
        self.results = list(results)
        self.domains = domains
        self.calls: list[str] = []

    def handles(self, url: str) -> bool:
        return any(domain in url for domain in self.domains)

    async def extract(self, url: str) -> Result[BasicRecipe]:
        self.calls.append(url)
        return self.results.pop(0) if len(self.results) > 1 else self.results[0]


@pytest.fixture
def fake_generator() -> FakeGenerator:
    """Empty FakeGenerator; register responses with ``add``."""
    return FakeGenerator()


@pytest.fixture
def make_source() -> type[FakeSource]:
    """The FakeSource class, for building strategies with fixed results."""
    return FakeSource


# ============================================================================
# HTTP Fixtures
# ============================================================================


@pytest.fixture
def make_http_client() -> Callable[..., httpx.AsyncClient]:
    """Build an AsyncClient served by a handler or by a url -> (status, body) map."""

    def factory(
        pages: dict[str, tuple[int, str]] | None = None,
        handler: Callable[[httpx.Request], httpx.Response] | None = None,
    ) -> httpx.AsyncClient:
        def serve(request: httpx.Request) -> httpx.Response:
            status, body = (pages or {}).get(str(request.url), (404, "Not Found"))
            return httpx.Response(status, text=body)

        return httpx.AsyncClient(transport=httpx.MockTransport(handler or serve))

    return factory


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove all RECIPERUN_* environment variables."""
    import os

    for key in list(os.environ.keys()):
        if key.startswith("RECIPERUN_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def mock_env(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Provide a helper to set RECIPERUN_* environment variables.

    Example:
        def test_env_loading(mock_env):
            mock_env["MODEL"] = "gpt-4o"
            # RECIPERUN_MODEL is now set
    """

    class EnvSetter(dict[str, str]):
        def __setitem__(self, key: str, value: str) -> None:
            super().__setitem__(key, value)
            monkeypatch.setenv(f"RECIPERUN_{key}", value)

    return EnvSetter()


# ============================================================================
# Recipe Fixtures
# ============================================================================


@pytest.fixture
def basic_recipe() -> BasicRecipe:
    """A complete extraction-stage recipe."""
    return BasicRecipe(
        title="Pancakes",
        description="Fluffy weekend pancakes.",
        ingredients=["2 cups flour", "1 cup milk", "Salt, to taste"],
        instructions=["Preheat the griddle.", "Whisk flour and milk.", "Season with salt."],
        prepTime=10,
        cookTime=15,
        servings=4,
        imageUrl="https://example.com/pancakes.jpg",
    )


@pytest.fixture
def empty_recipe() -> BasicRecipe:
    """An extraction-stage recipe with no ingredients and no instructions."""
    return BasicRecipe(title="Pancakes", description="", ingredients=[], instructions=[])


@pytest.fixture
def annotated_recipe() -> AnnotatedRecipe:
    """A referentially valid annotated recipe matching ``basic_recipe``."""
    return AnnotatedRecipe(
        title="Pancakes",
        description="Fluffy weekend pancakes.",
        ingredients=[
            Ingredient(name="flour", quantity=2, unit="cups"),
            Ingredient(name="milk", quantity=1, unit="cup"),
            Ingredient(name="salt", note="to taste"),
        ],
        instructions=[
            InstructionStep(text="Preheat the griddle."),
            InstructionStep(
                text="Whisk flour and milk.",
                annotatedText="Whisk [flour](#0) and [milk](#1).",
                annotations=[
                    Annotation(ingredientIndex=0),
                    Annotation(ingredientIndex=1, portionUsed=0.5),
                ],
            ),
            InstructionStep(
                text="Season with salt.",
                annotatedText="Season with [salt](#0).",
                annotations=[Annotation(ingredientIndex=2)],
            ),
        ],
        prepTime=10,
        cookTime=15,
        imageUrl="https://example.com/pancakes.jpg",
    )


@pytest.fixture
def recipe_json_ld() -> str:
    """A page embedding a Recipe inside an @graph container."""
    return """<html><head>
<script type="application/ld+json">{"@context": "https://schema.org", "@type": "WebSite"}</script>
<script type="application/ld+json">
{
  "@context": "https://schema.org",
  "@graph": [
    {"@type": "WebPage", "name": "Pancakes page"},
    {
      "@type": ["Recipe", "NewsArticle"],
      "name": "Pancakes",
      "description": "Fluffy weekend pancakes.",
      "image": {"@type": "ImageObject", "url": "https://example.com/pancakes.jpg"},
      "prepTime": "PT10M",
      "cookTime": "PT15M",
      "recipeYield": "4 servings",
      "recipeIngredient": ["2 cups flour", "1 cup milk", "Salt, to taste"],
      "recipeInstructions": [
        {"@type": "HowToStep", "text": "Preheat the griddle."},
        {"@type": "HowToStep", "text": "Whisk flour and milk."},
        "Season with salt."
      ]
    }
  ]
}
</script></head><body><h1>Pancakes</h1></body></html>"""
