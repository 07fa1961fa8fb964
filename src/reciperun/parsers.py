"""Duration and yield parsers for linked-data recipe fields.

Examples:
    >>> parse_duration("PT1H30M")
    90
    >>> parse_yield("4 servings")
    4
"""

import re
from typing import Any

# ISO-8601 time component, e.g. PT1H30M, PT45M, PT2H, PT0H20M0S
DURATION_PATTERN = re.compile(
    r"^P(?:\d+Y)?(?:\d+M)?(?:\d+W)?(?:\d+D)?T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?"
    r"(?:\d+(?:\.\d+)?S)?$",
    re.IGNORECASE,
)
DIGITS_PATTERN = re.compile(r"\d+")

DEFAULT_SERVINGS = 1


def parse_duration(value: Any) -> int:
    """Convert an ISO-8601 duration to whole minutes.

    Only the hour and minute components count. Numbers are taken as minutes
    already. Anything unparsable yields 0.

    Args:
        value: Duration string such as "PT1H30M", or a number of minutes

    Returns:
        Duration in minutes, 0 when unparsable
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return max(int(value), 0)
    if not isinstance(value, str):
        return 0

    match = DURATION_PATTERN.match(value.strip())
    if not match:
        return 0

    hours = int(match.group("hours") or 0)
    minutes = int(match.group("minutes") or 0)
    return hours * 60 + minutes


def parse_yield(value: Any) -> int:
    """Convert a recipeYield value to a number of servings.

    Numbers are used as-is, strings contribute their first digit run
    ("Serves 6" -> 6), and lists use their first parsable element.

    Args:
        value: recipeYield as found in linked data

    Returns:
        Positive number of servings, 1 when unparsable
    """
    if isinstance(value, bool):
        return DEFAULT_SERVINGS
    if isinstance(value, (int, float)):
        servings = int(value)
        return servings if servings > 0 else DEFAULT_SERVINGS
    if isinstance(value, str):
        match = DIGITS_PATTERN.search(value)
        if match and int(match.group()) > 0:
            return int(match.group())
        return DEFAULT_SERVINGS
    if isinstance(value, list):
        for item in value:
            servings = parse_yield(item)
            if servings != DEFAULT_SERVINGS or _has_number(item):
                return servings
    return DEFAULT_SERVINGS


def _has_number(value: Any) -> bool:
    """True when a yield element carries a number of its own."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    return isinstance(value, str) and DIGITS_PATTERN.search(value) is not None
