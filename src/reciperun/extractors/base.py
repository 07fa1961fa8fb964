"""Shared helpers for extraction strategies."""

from urllib.parse import urlparse

from ..exceptions import ParseError
from ..models import BasicRecipe
from ..result import Result, failure, success


def host_matches(url: str, domains: frozenset[str]) -> bool:
    """True when the URL's host is one of ``domains`` or a subdomain of one."""
    host = (urlparse(url).hostname or "").lower()
    return any(host == domain or host.endswith(f".{domain}") for domain in domains)


def require_content(recipe: BasicRecipe, url: str, source: str) -> Result[BasicRecipe]:
    """Reject a generated recipe that has neither ingredients nor instructions."""
    if not recipe.ingredients and not recipe.instructions:
        return failure(ParseError("No recipe content found", url=url, source=source))
    return success(recipe)
