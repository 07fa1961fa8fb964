"""Recipe data models.

Pydantic models for both stages of the import pipeline:

- :class:`BasicRecipe` is the transient extraction-stage record with
  ingredients and instructions as plain strings.
- :class:`AnnotatedRecipe` is the pipeline output with parsed ingredients and
  instruction steps whose ``annotatedText`` links back to ingredients.

The field descriptions are part of the schema sent to the generation
provider, so they are written as instructions to the model.
"""

import re

from pydantic import BaseModel, ConfigDict, Field

# An annotatedText link: [label](#target). Label and target may be empty so that
# validation can report them.
LINK_PATTERN = re.compile(r"\[([^\]]*)\]\(#([^)]*)\)")


class Ingredient(BaseModel):
    """A parsed ingredient line.

    When ``note`` is set it takes display precedence over ``quantity`` and
    ``unit``.
    """

    name: str = Field(description="Name of the ingredient (e.g., 'flour', 'eggs')")
    quantity: float | None = Field(
        None,
        description=(
            "Numerical amount of the ingredient (e.g., 2, 0.5). Only set when the "
            "line states an unambiguous number; leave null otherwise."
        ),
        examples=[2, 0.5, 250],
    )
    unit: str | None = Field(
        None,
        description="Unit of measurement (e.g., 'cups', 'g', 'tbsp'). Null when unitless.",
        examples=["cups", "g", "tbsp"],
    )
    note: str | None = Field(
        None,
        description=(
            "Vague amounts or extra information about the ingredient "
            "(e.g., 'to taste', 'for garnish'). Never force these into quantity."
        ),
        examples=["to taste", "for garnish"],
    )

    model_config = ConfigDict(extra="forbid", frozen=True)


class Annotation(BaseModel):
    """Links one ``[label](#N)`` token of a step to an ingredient."""

    ingredientIndex: int | None = Field(  # noqa: N815
        None,
        description=(
            "Zero-based index of the ingredient in the recipe's ingredients array. "
            "Null for annotations that only carry a note."
        ),
    )
    portionUsed: float | None = Field(  # noqa: N815
        None,
        description=(
            "Fraction of the ingredient used in this step (e.g., 0.5 for half, "
            "0.25 for a quarter). Null means the full quantity."
        ),
    )
    note: str | None = Field(
        None,
        description="Additional information about how this ingredient is used in this step",
    )

    model_config = ConfigDict(extra="forbid", frozen=True)


class InstructionStep(BaseModel):
    """A single instruction step with optional ingredient annotations."""

    text: str = Field(description="Plain text instruction without any annotations")
    annotatedText: str | None = Field(  # noqa: N815
        None,
        description=(
            "Instruction text with markdown-style links that reference positions in "
            "the annotations array. In 'Mix [flour](#0) and [sugar](#1)', #0 refers to "
            "annotations[0] and #1 refers to annotations[1]. Null when the step "
            "mentions no ingredients."
        ),
        examples=["Mix [flour](#0) and [sugar](#1) in a bowl."],
    )
    annotations: list[Annotation] | None = Field(
        None,
        description=(
            "Metadata for every link in annotatedText, in order: #0 is annotations[0], "
            "#1 is annotations[1], and so on. Null when annotatedText is null."
        ),
    )

    model_config = ConfigDict(extra="forbid", frozen=True)


class BasicRecipe(BaseModel):
    """Freshly extracted recipe with string-only ingredients and instructions."""

    title: str = Field(description="Name of the recipe exactly as written on the page")
    description: str = Field(
        "",
        description="Brief summary or introduction to the recipe; empty string if none",
    )
    ingredients: list[str] = Field(
        default_factory=list,
        description="Every ingredient line exactly as written, one entry per line",
        examples=[["200g spaghetti", "2 large eggs", "Salt, to taste"]],
    )
    instructions: list[str] = Field(
        default_factory=list,
        description="Step-by-step cooking instructions, one entry per step, in order",
    )
    prepTime: int | None = Field(  # noqa: N815
        None,
        description="Preparation time in minutes. Leave null if not stated.",
    )
    cookTime: int | None = Field(  # noqa: N815
        None,
        description="Cooking time in minutes. Leave null if not stated.",
    )
    servings: int | None = Field(
        None,
        description="Number of servings the recipe makes. Leave null if not stated.",
    )
    imageUrl: str | None = Field(  # noqa: N815
        None,
        description="Absolute URL of a photo of the finished dish, if present",
    )

    model_config = ConfigDict(extra="forbid")


class AnnotatedRecipe(BaseModel):
    """Fully structured recipe produced by the annotation stage.

    Immutable once produced. Persisted identity is assigned by the
    repository, never here.
    """

    title: str = Field(description="Name of the recipe")
    description: str = Field(description="Brief summary or introduction to the recipe")
    ingredients: list[Ingredient] = Field(
        description="Every ingredient of the recipe, in the order of the raw ingredient list"
    )
    instructions: list[InstructionStep] = Field(
        description="Step-by-step cooking instructions with ingredient annotations"
    )
    prepTime: int = Field(description="Preparation time in minutes")  # noqa: N815
    cookTime: int = Field(description="Cooking time in minutes")  # noqa: N815
    imageUrl: str | None = Field(  # noqa: N815
        None,
        description="URL to an image of the completed dish",
    )

    model_config = ConfigDict(extra="forbid", frozen=True)


class CompletenessAssessment(BaseModel):
    """Classifier verdict on whether an extracted recipe is missing content."""

    missingIngredients: bool = Field(  # noqa: N815
        description=(
            "True if the ingredient list is absent, empty, or clearly not a real "
            "ingredient list (navigation text, ads, a single placeholder line)"
        )
    )
    missingInstructions: bool = Field(  # noqa: N815
        description=(
            "True if the instructions are absent, empty, or clearly not real cooking "
            "steps (e.g., only 'see video', or truncated after the first sentence)"
        )
    )
    reason: str = Field(description="One short sentence explaining the verdict")

    model_config = ConfigDict(extra="forbid")
