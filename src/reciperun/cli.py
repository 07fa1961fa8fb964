#!/usr/bin/env python3
"""CLI for reciperun: import a recipe web page as an annotated recipe.

The CLI is responsible for:
- Argument parsing
- Progress and recipe display (Rich UI)
- Error presentation
- Calling the import pipeline and the repository

Detailed logs go to a file; the console only shows Rich output.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import time
from collections.abc import Sequence
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .config import VALID_MODELS, ImportConfig
from .exceptions import ConfigurationError, ReciperunError, ValidationError
from .formatting import format_minutes, format_quantity, render_annotated_text
from .models import AnnotatedRecipe
from .services import ServiceFactory

console = Console()

LOG_FILE = "reciperun.log"


def setup_logging(log_file: str = LOG_FILE, debug: bool = False) -> None:
    """Send log records to ``log_file`` only.

    Console output is handled separately via Rich.

    Args:
        log_file: Path to the log file
        debug: Log at DEBUG instead of INFO
    """
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s: %(message)s",
        handlers=[logging.FileHandler(log_file, mode="w")],
        force=True,
    )


def positive_float(value: str) -> float:
    """argparse type for a strictly positive number."""
    try:
        number = float(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"not a number: {value}") from e
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value}")
    return number


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Import a recipe from a web page as an annotated recipe",
        prog="reciperun",
    )
    parser.add_argument("url", type=str, help="Absolute URL of the recipe page")
    parser.add_argument(
        "--model",
        type=str,
        choices=sorted(VALID_MODELS),
        help="OpenAI model to use (default: from configuration, gpt-4o-mini)",
    )
    parser.add_argument("--output-dir", type=str, help="Directory for saved recipes")
    parser.add_argument(
        "--servings",
        type=positive_float,
        default=1.0,
        metavar="N",
        help="Scale ingredient quantities by N (default: 1)",
    )
    parser.add_argument("--no-save", action="store_true", help="Print the recipe without saving")
    parser.add_argument("--config", type=str, help="Path to a configuration file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ImportConfig:
    """Load configuration and apply command-line overrides.

    Raises:
        ConfigurationError: If the configuration is invalid
    """
    config = ImportConfig.load(config_path=args.config)
    overrides: dict[str, object] = {}
    if args.model:
        overrides["model"] = args.model
    if args.output_dir:
        overrides["output_dir"] = Path(args.output_dir)
    if args.debug:
        overrides["debug_mode"] = True
    if overrides:
        config.update(**overrides)
    return config


def display_recipe(recipe: AnnotatedRecipe, servings_multiplier: float = 1) -> None:
    """Print a recipe with scaled quantities and rendered steps."""
    times = [
        f"Prep {format_minutes(recipe.prepTime)}" if recipe.prepTime else "",
        f"Cook {format_minutes(recipe.cookTime)}" if recipe.cookTime else "",
    ]
    subtitle = " | ".join(t for t in times if t)

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]{escape(recipe.title)}[/bold cyan]\n"
            f"[dim]{escape(recipe.description)}[/dim]",
            subtitle=subtitle or None,
            border_style="cyan",
        )
    )

    ingredients = Table(title="Ingredients", show_header=True, header_style="bold cyan")
    ingredients.add_column("Amount", style="green", justify="right")
    ingredients.add_column("Ingredient", style="cyan")
    for ingredient in recipe.ingredients:
        ingredients.add_row(
            escape(format_quantity(ingredient, servings_multiplier)), escape(ingredient.name)
        )
    console.print(ingredients)

    console.print("[bold]Instructions[/bold]")
    for number, step in enumerate(recipe.instructions, 1):
        text = render_annotated_text(step, recipe.ingredients, servings_multiplier)
        console.print(f"  {number}. {text}", markup=False, highlight=False)
    console.print()


def display_error(title: str, message: str) -> None:
    """Display an error panel."""
    console.print()
    console.print(
        Panel(
            message,
            title=f"[bold red]{title}[/bold red]",
            border_style="red",
        )
    )
    console.print()


def describe_error(error: ReciperunError) -> str:
    """Render an error for the error panel, one validation issue per line."""
    if isinstance(error, ValidationError) and error.issues:
        text = error.message + "\n" + "\n".join(f"- {issue}" for issue in error.issues)
    else:
        text = str(error)
    return escape(text)


async def main_async(argv: Sequence[str] | None = None) -> int:
    """Run one import and return the process exit status."""
    args = parse_args(argv)
    setup_logging(debug=args.debug)

    try:
        config = build_config(args)
    except ConfigurationError as e:
        display_error("Configuration Error", escape(str(e)))
        return 1

    if config.debug_mode:
        logging.getLogger().setLevel(logging.DEBUG)

    start_time = time.time()
    logging.info(f"Importing {args.url} with {config.model}")

    async with ServiceFactory(config=config) as factory:
        importer = factory.create_importer()
        with console.status(f"Importing {args.url}..."):
            result = await importer.fetch_recipe(args.url)

    if result.error is not None:
        display_error(type(result.error).__name__, describe_error(result.error))
        return 1

    recipe = result.unwrap()
    display_recipe(recipe, args.servings)

    if not args.no_save:
        repository = factory.create_repository()
        saved = repository.save(recipe)
        if saved.error is not None:
            display_error("Save Failed", escape(str(saved.error)))
            return 1
        console.print(
            f"[green]✓[/green] Saved to [cyan]{repository.path_for(saved.unwrap())}[/cyan]"
        )

    elapsed = time.time() - start_time
    logging.info(f"Imported '{recipe.title}' in {elapsed:.1f}s")
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for the reciperun CLI command."""
    try:
        status = asyncio.run(main_async(argv))
    except KeyboardInterrupt:
        console.print()
        console.print(
            Panel(
                "[yellow]Import interrupted by user[/yellow]",
                title="[bold yellow]Interrupted[/bold yellow]",
                border_style="yellow",
            )
        )
        raise SystemExit(130) from None
    except Exception as e:  # Intentional catch-all for CLI entry point
        display_error(
            "Error",
            f"[bold red]An unexpected error occurred:[/bold red]\n\n{escape(str(e))}\n\n"
            f"[dim]Check {LOG_FILE} for detailed error information.[/dim]",
        )
        logging.exception("Unexpected error during import")
        raise

    if status:
        raise SystemExit(status)


if __name__ == "__main__":
    main()
