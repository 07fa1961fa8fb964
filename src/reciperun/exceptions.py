"""Custom exceptions for reciperun.

This module defines the error taxonomy used throughout the import pipeline.
Pipeline stages never raise these across stage boundaries: they are carried
inside a :class:`~reciperun.result.Result` and only raised by callers that
explicitly ``unwrap()`` a result.

Hierarchy:
- ReciperunError: base for every reciperun error
- FetchError: network failure or non-success HTTP status
- ParseError: malformed linked data, or no recipe found on a page
- ValidationError: referential-integrity violation in an annotated recipe
- UpstreamServiceError: AI or browser provider failure, missing credentials
- ConfigurationError: invalid settings or a miswired pipeline
- PersistenceError: the repository could not write a recipe

Example:
    >>> try:
    ...     raise FetchError("Failed to fetch URL", url="https://x.test", status=404)
    ... except ReciperunError as e:
    ...     print(f"Error in {e.context}: {e}")
"""


class ReciperunError(Exception):
    """Base exception for all reciperun errors.

    Attributes:
        message: Human-readable error description
        context: Additional context about where/when the error occurred
    """

    def __init__(self, message: str, **context: str | int | float | bool | None) -> None:
        """Initialize the exception with a message and optional context.

        Args:
            message: Human-readable error description
            **context: Additional context (e.g., url="https://...", status=404)
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """Format error message with context."""
        if self.context:
            context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class FetchError(ReciperunError):
    """Error while retrieving a page.

    Raised when:
    - The HTTP request fails or times out
    - The server answers with a non-success status
    - The browser cannot load the page within the page-load timeout

    Recoverable: the orchestrator advances to the next strategy.

    Example:
        >>> raise FetchError(
        ...     "Failed to fetch URL: 403 Forbidden",
        ...     url="https://example.com/recipe",
        ...     status=403,
        ... )
    """

    pass


class ParseError(ReciperunError):
    """Error while turning page content into a recipe.

    Raised when:
    - A page has no linked-data blocks
    - No linked-data block parses as JSON
    - No parsed entity carries the Recipe type
    - A caption or rendered page yields no recipe content

    Recoverable: the orchestrator advances to the next strategy.
    """

    pass


class ValidationError(ReciperunError):
    """Referential-integrity violation in an annotated recipe.

    Not recoverable automatically; surfaced as the final pipeline failure.

    Attributes:
        issues: Every violation found, one human-readable line each

    Example:
        >>> raise ValidationError(
        ...     "Annotated recipe failed validation",
        ...     issues=["instructions[2]: reference #3 exceeds annotations length (2)"],
        ... )
    """

    def __init__(
        self,
        message: str,
        issues: list[str] | None = None,
        **context: str | int | float | bool | None,
    ) -> None:
        super().__init__(message, **context)
        self.issues = list(issues or [])

    def __str__(self) -> str:
        base = super().__str__()
        if not self.issues:
            return base
        return base + ": " + "; ".join(self.issues)


class UpstreamServiceError(ReciperunError):
    """Failure of the AI generation or browser-automation provider.

    Raised when:
    - Provider credentials are missing
    - The provider call fails, times out, or returns non-conforming output

    Fatal for the current run; never retried automatically.
    """

    pass


class ConfigurationError(ReciperunError):
    """Error in configuration or pipeline wiring.

    Raised when:
    - Configuration file is invalid
    - Settings have invalid values
    - An orchestrator is asked to run with no extraction strategy

    Example:
        >>> raise ConfigurationError(
        ...     "Invalid model in configuration",
        ...     model="gpt-invalid",
        ... )
    """

    pass


class PersistenceError(ReciperunError):
    """Failure to write a recipe to storage.

    Nothing is left behind on failure; the write is all-or-nothing.
    """

    pass
