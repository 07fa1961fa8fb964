"""Quantity scaling and display formatting.

Rounding policy: the scaled quantity is computed in :class:`~decimal.Decimal`
from the decimal string form of each input and rounded to two places with
``ROUND_HALF_UP`` (half away from zero), so 0.125 displays as "0.13" and
0.33 x 3 displays as "0.99". Trailing zeros are stripped ("1.50" -> "1.5",
"2.00" -> "2").

Example:
    >>> format_quantity(Ingredient(name="flour", quantity=2, unit="cups"), 4)
    '8 cups'
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal

from .models import LINK_PATTERN, Annotation, Ingredient, InstructionStep

TWO_PLACES = Decimal("0.01")


def format_quantity(
    ingredient: Ingredient,
    servings_multiplier: float = 1,
    portion_used: float | None = None,
) -> str:
    """Scale and format an ingredient amount for display.

    Rules, first match wins:
    1. ``note`` set: the note verbatim
    2. ``quantity`` unset: empty string
    3. otherwise ``quantity x servings_multiplier x portion_used`` rounded to
       two places, trailing zeros stripped, followed by the unit if any

    Args:
        ingredient: Ingredient to format
        servings_multiplier: Positive scale factor, 1 for the base recipe
        portion_used: Fraction of the ingredient used, None for all of it

    Returns:
        Display string

    Raises:
        ValueError: If servings_multiplier is not positive
    """
    if servings_multiplier <= 0:
        raise ValueError(f"servings_multiplier must be positive, got {servings_multiplier}")

    if ingredient.note:
        return ingredient.note
    if ingredient.quantity is None:
        return ""

    portion = 1.0 if portion_used is None else portion_used
    scaled = _decimal(ingredient.quantity) * _decimal(servings_multiplier) * _decimal(portion)
    number = format_number(scaled)
    return f"{number} {ingredient.unit}" if ingredient.unit else number


def format_number(value: Decimal | float) -> str:
    """Round to two places (half away from zero) and strip trailing zeros."""
    rounded = _decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    if rounded == 0:
        return "0"
    return f"{rounded.normalize():f}"


def format_minutes(minutes: int) -> str:
    """Format a duration: "45 min", "1 hr", "1 hr 30 min"."""
    if minutes < 60:
        return f"{minutes} min"
    hours, remainder = divmod(minutes, 60)
    return f"{hours} hr {remainder} min" if remainder else f"{hours} hr"


def render_annotated_text(
    step: InstructionStep,
    ingredients: list[Ingredient],
    servings_multiplier: float = 1,
) -> str:
    """Render a step for display, expanding ingredient links with amounts.

    ``Mix [flour](#0)`` becomes ``Mix flour (2 cups)`` when annotation 0
    points at an ingredient with a quantity. Links whose index is invalid, or
    whose annotation has no ingredient, render only their label; an
    annotation note follows the amount.

    Args:
        step: Instruction step to render
        ingredients: The recipe's ingredients
        servings_multiplier: Positive scale factor for quantities

    Returns:
        Plain display text
    """
    if not step.annotatedText or not step.annotations:
        return step.text

    annotations = step.annotations

    def replace(match: re.Match[str]) -> str:
        label, index_text = match.group(1), match.group(2)
        if not (index_text.isascii() and index_text.isdigit()):
            return label
        index = int(index_text)
        if index >= len(annotations):
            return label
        return _render_link(label, annotations[index], ingredients, servings_multiplier)

    return LINK_PATTERN.sub(replace, step.annotatedText)


def _render_link(
    label: str,
    annotation: Annotation,
    ingredients: list[Ingredient],
    servings_multiplier: float,
) -> str:
    index = annotation.ingredientIndex
    if index is None or not 0 <= index < len(ingredients):
        return f"{label} ({annotation.note})" if annotation.note else label

    label = label.strip() or ingredients[index].name
    amount = format_quantity(ingredients[index], servings_multiplier, annotation.portionUsed)
    rendered = f"{label} ({amount})" if amount else label
    if annotation.note:
        rendered += f" {annotation.note}"
    return rendered


def _decimal(value: Decimal | float) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))
