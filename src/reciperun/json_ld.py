"""Structured-data (JSON-LD) recipe extraction.

Pure functions that turn raw HTML into a :class:`~reciperun.models.BasicRecipe`:

1. Scan the HTML for ``application/ld+json`` script blocks
2. Parse each block independently, skipping malformed ones
3. Flatten ``@graph`` containers into a single list of typed entities
4. Select the first entity typed ``Recipe``
5. Project its schema.org fields onto a BasicRecipe

Each failure mode is reported as a distinct :class:`ParseError`.

Example:
    >>> result = extract_recipe_from_html(html)
    >>> if result.ok:
    ...     print(result.data.title)
"""

from __future__ import annotations

import html as html_lib
import json
import logging
import re
from typing import Any

from bs4 import BeautifulSoup

from .exceptions import ParseError
from .models import BasicRecipe
from .parsers import parse_duration, parse_yield
from .result import Result, failure, success

logger = logging.getLogger(__name__)

JsonLdEntity = dict[str, Any]

RECIPE_TYPE = "Recipe"
UNTITLED_RECIPE = "Untitled Recipe"
JSON_LD_TYPE = re.compile(r"^\s*application/ld\+json\s*$", re.IGNORECASE)

WHITESPACE_PATTERN = re.compile(r"\s+")


def extract_json_ld_blocks(html: str) -> list[str]:
    """Return the raw contents of every JSON-LD script block in ``html``.

    Scripts inside HTML comments are not part of the document and are skipped.
    """
    soup = BeautifulSoup(html, "html.parser")
    scripts = soup.find_all("script", type=JSON_LD_TYPE)
    blocks = [script.string or script.get_text() for script in scripts]
    return [block for block in blocks if block.strip()]


def parse_json_ld_blocks(blocks: list[str]) -> list[JsonLdEntity]:
    """Parse JSON-LD blocks into entities.

    Each block is parsed independently; a malformed block is logged and
    skipped. A block whose top-level value is an array contributes each of
    its object elements.

    Args:
        blocks: Raw JSON-LD block contents

    Returns:
        Parsed entities in document order
    """
    entities: list[JsonLdEntity] = []
    for index, block in enumerate(blocks):
        try:
            parsed = json.loads(block)
        except json.JSONDecodeError as e:
            logger.warning(f"Skipping malformed JSON-LD block {index}: {e}")
            continue

        if isinstance(parsed, dict):
            entities.append(parsed)
        elif isinstance(parsed, list):
            entities.extend(item for item in parsed if isinstance(item, dict))
        else:
            logger.debug(f"Ignoring JSON-LD block {index} of type {type(parsed).__name__}")
    return entities


def extract_json_ld(html: str) -> Result[list[JsonLdEntity]]:
    """Extract and parse all JSON-LD entities from an HTML page.

    Returns:
        Result with the parsed entities, or a ParseError when the page has
        no JSON-LD blocks or none of them parse
    """
    blocks = extract_json_ld_blocks(html)
    if not blocks:
        logger.info("No JSON-LD data found on the page")
        return failure(ParseError("No JSON-LD data found on the page"))

    logger.debug(f"Found {len(blocks)} JSON-LD blocks")
    entities = parse_json_ld_blocks(blocks)
    if not entities:
        return failure(
            ParseError("Failed to parse any valid JSON-LD data", blocks=len(blocks))
        )
    return success(entities)


def is_recipe_entity(entity: JsonLdEntity) -> bool:
    """Check whether an entity's ``@type`` (string or list) includes Recipe."""
    entity_type = entity.get("@type")
    if isinstance(entity_type, str):
        return entity_type == RECIPE_TYPE
    if isinstance(entity_type, list):
        return RECIPE_TYPE in entity_type
    return False


def flatten_entities(entities: list[JsonLdEntity]) -> list[JsonLdEntity]:
    """Flatten ``@graph`` containers into a single list of typed entities.

    Top-level entities that carry an ``@type`` come first, followed by the
    typed members of every ``@graph``. Graph members inherit the container's
    ``@context`` unless they define their own.

    Args:
        entities: Parsed top-level entities

    Returns:
        Ordered list of typed entities
    """
    top_level = [entity for entity in entities if entity.get("@type") is not None]
    graph_members = [member for entity in entities for member in _graph_members(entity)]
    return top_level + graph_members


def _graph_members(entity: JsonLdEntity) -> list[JsonLdEntity]:
    graph = entity.get("@graph")
    if not isinstance(graph, list):
        return []

    members: list[JsonLdEntity] = []
    for item in graph:
        if not isinstance(item, dict) or item.get("@type") is None:
            continue
        member = dict(item)
        if member.get("@context") is None and "@context" in entity:
            member["@context"] = entity["@context"]
        members.append(member)
    return members


def find_recipe_entity(entities: list[JsonLdEntity]) -> Result[JsonLdEntity]:
    """Find the first Recipe entity after flattening graphs."""
    if not entities:
        return failure(ParseError("No JSON-LD entities provided"))

    for entity in flatten_entities(entities):
        if is_recipe_entity(entity):
            logger.info("Recipe JSON-LD data found")
            return success(entity)

    logger.info("No recipe found in JSON-LD data")
    return failure(ParseError("No recipe found in JSON-LD data", entities=len(entities)))


def to_basic_recipe(entity: JsonLdEntity) -> BasicRecipe:
    """Project a schema.org Recipe entity onto a BasicRecipe.

    Args:
        entity: A JSON-LD entity typed Recipe

    Returns:
        BasicRecipe with title, description, times, servings, image,
        ingredients and instructions filled from the entity
    """
    title = _clean_text(entity.get("name")) or UNTITLED_RECIPE
    description = _clean_text(entity.get("description"))

    cook_time = entity.get("cookTime")
    prep_time = entity.get("prepTime")

    return BasicRecipe(
        title=title,
        description=description,
        ingredients=_ingredient_lines(entity.get("recipeIngredient")),
        instructions=_instruction_lines(entity.get("recipeInstructions")),
        prepTime=parse_duration(prep_time) if isinstance(prep_time, str) else None,
        cookTime=parse_duration(cook_time) if isinstance(cook_time, str) else None,
        servings=parse_yield(entity.get("recipeYield")),
        imageUrl=_image_url(entity.get("image")),
    )


def extract_recipe_from_html(html: str) -> Result[BasicRecipe]:
    """Run the full structured-data extraction over an HTML page."""
    entities = extract_json_ld(html)
    if entities.error is not None:
        return failure(entities.error)

    recipe_entity = find_recipe_entity(entities.unwrap())
    if recipe_entity.error is not None:
        return failure(recipe_entity.error)

    recipe = to_basic_recipe(recipe_entity.unwrap())
    logger.info(
        f"Converted JSON-LD recipe '{recipe.title}': {len(recipe.ingredients)} ingredients, "
        f"{len(recipe.instructions)} instructions"
    )
    return success(recipe)


def _clean_text(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return WHITESPACE_PATTERN.sub(" ", html_lib.unescape(value)).strip()


def _image_url(image: Any) -> str | None:
    if isinstance(image, str):
        return image or None
    if isinstance(image, dict):
        url = image.get("url")
        return url if isinstance(url, str) and url else None
    if isinstance(image, list) and image:
        return _image_url(image[0])
    return None


def _ingredient_lines(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    lines = (_clean_text(item) for item in value if isinstance(item, str))
    return [line for line in lines if line]


def _instruction_lines(value: Any) -> list[str]:
    if isinstance(value, str):
        text = _clean_text(value)
        return [text] if text else []
    if not isinstance(value, list):
        return []

    lines: list[str] = []
    for item in value:
        if isinstance(item, str):
            text = _clean_text(item)
        elif isinstance(item, dict) and isinstance(item.get("itemListElement"), list):
            # HowToSection: steps nested one level down
            lines.extend(_instruction_lines(item["itemListElement"]))
            continue
        elif isinstance(item, dict):
            text = _step_text(item.get("text"))
        else:
            continue
        if text:
            lines.append(text)
    return lines


def _step_text(text: Any) -> str:
    if isinstance(text, str):
        return _clean_text(text)
    if isinstance(text, list):
        return _clean_text(" ".join(part for part in text if isinstance(part, str)))
    return ""
