"""
Reciperun - Import recipes from web pages as annotated, scalable records.

This package turns a recipe page URL into a structured recipe whose
instructions link back to the ingredients they use, and formats ingredient
quantities at any serving size.
"""

__version__ = "0.1.0"

from .exceptions import (
    ConfigurationError,
    FetchError,
    ParseError,
    PersistenceError,
    ReciperunError,
    UpstreamServiceError,
    ValidationError,
)
from .formatting import format_quantity, render_annotated_text
from .models import AnnotatedRecipe, Annotation, BasicRecipe, Ingredient, InstructionStep
from .orchestrator import RecipeImporter
from .result import Result, failure, success

__all__ = [
    "AnnotatedRecipe",
    "Annotation",
    "BasicRecipe",
    "ConfigurationError",
    "FetchError",
    "Ingredient",
    "InstructionStep",
    "ParseError",
    "PersistenceError",
    "RecipeImporter",
    "ReciperunError",
    "Result",
    "UpstreamServiceError",
    "ValidationError",
    "failure",
    "format_quantity",
    "render_annotated_text",
    "success",
]
