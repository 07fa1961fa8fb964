"""Prompt templates for every generation call.

Each prompt wraps its input in XML-style tags so the model can tell
instructions from page content. The output shape itself is enforced by the
Pydantic schema passed alongside the prompt; the prompts only describe the
rules the schema cannot express.
"""

import json

from .models import BasicRecipe

ANNOTATION_PROMPT = """You are an expert at parsing recipe data. The basic recipe information has already been extracted. Your job is limited to:
1. Parsing the ingredients into structured data
2. Annotating the instructions so they link to the ingredients

<recipe>
Title: {title}
Description: {description}
Cook Time: {cook_time} minutes
Prep Time: {prep_time} minutes
</recipe>

<raw_ingredients>
{ingredients}
</raw_ingredients>

<raw_instructions>
{instructions}
</raw_instructions>

<ingredient_rules>
- Produce exactly one ingredient per raw ingredient line, in the same order
- Set "quantity" and "unit" ONLY when the line states an unambiguous number and unit
- Vague amounts ("to taste", "for garnish", "a pinch") go into "note", never into "quantity"
- Keep units verbatim; do NOT convert between unit systems
</ingredient_rules>

<annotation_rules>
1. Every instruction step needs a "text" field with the plain instruction.
2. If the step mentions ingredients, it needs BOTH "annotatedText" and a non-empty "annotations" array.
3. "annotatedText" uses markdown-style links that point at positions in that step's annotations array:
   "Mix [flour](#0) and [sugar](#1)" means #0 is annotations[0] and #1 is annotations[1].
4. For EVERY link [label](#N) there MUST be an entry annotations[N]. Number links from 0 in order of appearance.
5. "ingredientIndex" is the zero-based position of the ingredient in YOUR ingredients array.
6. "portionUsed" is the fraction of the ingredient used in this step (0.5 for half). Leave it null when the whole amount is used.
7. If a step mentions no ingredients, set "annotatedText" and "annotations" to null. NEVER emit an empty string or an empty array.
</annotation_rules>

<example>
Step with ingredients:
{{"text": "Mix flour and sugar in a bowl.", "annotatedText": "Mix [flour](#0) and [sugar](#1) in a bowl.", "annotations": [{{"ingredientIndex": 0, "portionUsed": null, "note": null}}, {{"ingredientIndex": 1, "portionUsed": 0.5, "note": null}}]}}

Step without ingredients:
{{"text": "Preheat the oven to 350°F.", "annotatedText": null, "annotations": null}}
</example>

Convert the raw ingredients into structured data, then annotate every instruction following the rules above."""

COMPLETENESS_PROMPT = """You are checking whether a recipe extracted from a web page is complete.

<recipe>
Title: {title}
</recipe>

<ingredients>
{ingredients}
</ingredients>

<instructions>
{instructions}
</instructions>

<task>
Decide independently:
- missingIngredients: true if the ingredient list is absent, empty, or clearly not a real ingredient list
- missingInstructions: true if the instructions are absent, empty, or clearly not real cooking steps
Judge only what is present. Do NOT judge the quality of the recipe itself.
</task>"""

PAGE_EXTRACTION_PROMPT = """You are extracting a recipe from a rendered web page converted to markdown.

<page url="{url}">
{content}
</page>

<rules>
- Extract the single main recipe on the page; ignore comments, ads and links to other recipes
- Copy ingredient lines EXACTLY as written, one entry per line
- Copy instruction steps in order, one entry per step, without step numbers
- Convert stated times to minutes; leave times and servings null when the page does not state them
- imageUrl must be an absolute URL that appears on the page, or null
- If the page contains no recipe, return empty ingredients and instructions
</rules>"""

CAPTION_EXTRACTION_PROMPT = """You are extracting a recipe from a social media post caption.

<post url="{url}">
Title: {title}
Image: {image}
</post>

<caption>
{caption}
</caption>

<rules>
- Use the dish name as the title; fall back to the post title if the caption names no dish
- Copy ingredient lines as written, one entry per ingredient
- Split the method into ordered steps, one entry per step, without step numbers
- Leave times and servings null when the caption does not state them
- Put a short summary of the caption, without hashtags, in description
- If the caption contains no recipe, return empty ingredients and instructions
</rules>"""


def build_annotation_prompt(recipe: BasicRecipe) -> str:
    """Build the prompt that structures and annotates a basic recipe."""
    return ANNOTATION_PROMPT.format(
        title=recipe.title,
        description=recipe.description,
        cook_time=recipe.cookTime if recipe.cookTime is not None else 0,
        prep_time=recipe.prepTime if recipe.prepTime is not None else 0,
        ingredients=json.dumps(recipe.ingredients, indent=2, ensure_ascii=False),
        instructions=json.dumps(recipe.instructions, indent=2, ensure_ascii=False),
    )


def build_completeness_prompt(recipe: BasicRecipe) -> str:
    """Build the prompt for the completeness classifier."""
    return COMPLETENESS_PROMPT.format(
        title=recipe.title,
        ingredients=_numbered(recipe.ingredients),
        instructions=_numbered(recipe.instructions),
    )


def build_page_extraction_prompt(url: str, content: str) -> str:
    """Build the prompt that extracts a recipe from rendered page markdown."""
    return PAGE_EXTRACTION_PROMPT.format(url=url, content=content)


def build_caption_prompt(url: str, caption: str, title: str = "", image: str = "") -> str:
    """Build the prompt that extracts a recipe from a post caption."""
    return CAPTION_EXTRACTION_PROMPT.format(
        url=url,
        caption=caption,
        title=title or "(none)",
        image=image or "(none)",
    )


def _numbered(lines: list[str]) -> str:
    if not lines:
        return "(none)"
    return "\n".join(f"{i}. {line}" for i, line in enumerate(lines, 1))
