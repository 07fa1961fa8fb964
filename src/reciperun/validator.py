"""Referential-integrity validation for annotated recipes.

A dedicated pass over a fully assembled :class:`AnnotatedRecipe`. It never
calls the generation provider, so every rule can be exercised against
hand-built fixtures.

Rules, per instruction step:
- ``annotatedText`` present <=> ``annotations`` non-empty
- ``annotatedText`` contains at least one ``[label](#N)`` link
- every link satisfies ``0 <= N < len(annotations)``
- every ``annotations[i].ingredientIndex`` satisfies
  ``0 <= ingredientIndex < len(ingredients)``

A single violation anywhere rejects the whole recipe.

Example:
    >>> validator = AnnotationValidator()
    >>> report = validator.validate(recipe)
    >>> if not report.is_valid:
    ...     print(report.issues)
"""

import logging
from dataclasses import dataclass

from .exceptions import ValidationError
from .models import LINK_PATTERN, AnnotatedRecipe, InstructionStep
from .result import Result, failure, success

logger = logging.getLogger(__name__)


@dataclass
class ValidationReport:
    """Outcome of validating one annotated recipe.

    Attributes:
        recipe_title: Title of the validated recipe
        step_count: Number of instruction steps checked
        annotation_count: Total annotations across all steps
        issues: Every violation found, prefixed with its location
    """

    recipe_title: str
    step_count: int
    annotation_count: int
    issues: list[str]

    @property
    def is_valid(self) -> bool:
        """True when no violation was found."""
        return not self.issues

    def __str__(self) -> str:
        status = "VALID" if self.is_valid else f"INVALID ({len(self.issues)} issues)"
        return (
            f"{status} - {self.step_count} steps, {self.annotation_count} annotations"
        )


def find_references(annotated_text: str) -> list[str]:
    """Return the raw ``#N`` targets of every link, in order of appearance."""
    return [target for _, target in LINK_PATTERN.findall(annotated_text)]


def normalize_step(step: InstructionStep) -> InstructionStep:
    """Drop empty annotation fields from a step that carries no annotations.

    An empty ``annotations`` list or a blank ``annotatedText`` on its own is
    the same as absent. Steps that carry both are returned unchanged.
    """
    has_text = bool(step.annotatedText and step.annotatedText.strip())
    has_annotations = bool(step.annotations)

    update: dict[str, None] = {}
    if not has_text and step.annotatedText is not None:
        update["annotatedText"] = None
    if not has_annotations and step.annotations is not None:
        update["annotations"] = None
    return step.model_copy(update=update) if update else step


def normalize_recipe(recipe: AnnotatedRecipe) -> AnnotatedRecipe:
    """Apply :func:`normalize_step` to every instruction of a recipe."""
    steps = [normalize_step(step) for step in recipe.instructions]
    return recipe.model_copy(update={"instructions": steps})


class AnnotationValidator:
    """Checks the cross-references of an annotated recipe."""

    def validate(self, recipe: AnnotatedRecipe) -> ValidationReport:
        """Validate every step of a recipe.

        Args:
            recipe: Recipe to validate

        Returns:
            ValidationReport listing every violation
        """
        issues: list[str] = []
        ingredient_count = len(recipe.ingredients)
        for step_index, step in enumerate(recipe.instructions):
            issues.extend(self.check_step(step, step_index, ingredient_count))

        return ValidationReport(
            recipe_title=recipe.title,
            step_count=len(recipe.instructions),
            annotation_count=sum(len(step.annotations or []) for step in recipe.instructions),
            issues=issues,
        )

    def check_step(
        self, step: InstructionStep, step_index: int, ingredient_count: int
    ) -> list[str]:
        """Validate one step against the recipe's ingredient count.

        Args:
            step: Step to check
            step_index: Position of the step, used in issue messages
            ingredient_count: Number of ingredients in the recipe

        Returns:
            Issues found in this step
        """
        where = f"instructions[{step_index}]"
        annotations = step.annotations or []
        issues: list[str] = []

        if step.annotatedText is None:
            if annotations:
                issues.append(f"{where}: annotations present but annotatedText is missing")
            return issues

        if not annotations:
            return [f"{where}: annotatedText present but annotations are empty"]

        references = find_references(step.annotatedText)
        if not references:
            issues.append(f"{where}: annotations present but annotatedText has no references")

        if any(not label.strip() for label, _ in LINK_PATTERN.findall(step.annotatedText)):
            issues.append(f"{where}: annotatedText has a link with an empty label")

        for target in references:
            if not (target.isascii() and target.isdigit()):
                issues.append(f"{where}: malformed annotation reference '#{target}'")
            elif int(target) >= len(annotations):
                issues.append(
                    f"{where}: reference #{target} exceeds annotations length "
                    f"({len(annotations)})"
                )

        for annotation_index, annotation in enumerate(annotations):
            index = annotation.ingredientIndex
            if index is None:
                continue
            if not 0 <= index < ingredient_count:
                issues.append(
                    f"{where}.annotations[{annotation_index}]: ingredient index {index} "
                    f"is out of bounds (0-{ingredient_count - 1})"
                )

        return issues

    def ensure_valid(self, recipe: AnnotatedRecipe) -> Result[AnnotatedRecipe]:
        """Return the recipe if valid, otherwise a ValidationError failure."""
        report = self.validate(recipe)
        if report.is_valid:
            logger.debug(f"Recipe '{recipe.title}' passed validation: {report}")
            return success(recipe)

        logger.error(f"Recipe '{recipe.title}' failed validation: {report}")
        return failure(
            ValidationError(
                "Annotated recipe failed validation",
                issues=report.issues,
                recipe_title=recipe.title,
            )
        )
