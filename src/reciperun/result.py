"""Tagged-union result type for fallible pipeline stages.

Every stage of the import pipeline returns a :class:`Result` instead of
raising across stage boundaries. A result holds either ``data`` or an
``error``, never both.

Example:
    >>> result = success(42)
    >>> result.ok
    True
    >>> failed = failure(ParseError("No recipe found in JSON-LD data"))
    >>> failed.data is None
    True
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from .exceptions import ReciperunError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either ``data`` (success) or ``error`` (failure).

    Attributes:
        data: The produced value, ``None`` on failure
        error: The failure, ``None`` on success
    """

    data: T | None = None
    error: ReciperunError | None = None

    def __post_init__(self) -> None:
        if (self.data is None) == (self.error is None):
            raise ValueError("Result must carry exactly one of data or error")

    @property
    def ok(self) -> bool:
        """True when the result carries data."""
        return self.error is None

    def unwrap(self) -> T:
        """Return the data, or raise the carried error."""
        if self.error is not None:
            raise self.error
        assert self.data is not None
        return self.data


def success(data: T) -> Result[T]:
    """Create a successful result."""
    return Result(data=data)


def failure(error: ReciperunError) -> Result[T]:
    """Create a failed result."""
    return Result(error=error)
