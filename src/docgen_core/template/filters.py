"""Template filter implementations."""

import json
from collections.abc import Mapping
from typing import Any

from .binder import MISSING, stringify


def filter_upper(value: Any) -> str:
    return stringify(value).upper()


def filter_lower(value: Any) -> str:
    return stringify(value).lower()


def filter_capitalize(value: Any) -> str:
    """Upper-case the first character, leave the rest as is."""
    text = stringify(value)
    return text[:1].upper() + text[1:]


def filter_title(value: Any) -> str:
    return stringify(value).title()


def filter_trim(value: Any) -> str:
    return stringify(value).strip()


def filter_join(value: Any, separator: str = ", ") -> str:
    """Join list items into a string.

    Args:
        value: List to join
        separator: Separator placed between items

    Returns:
        Joined string

    Raises:
        TypeError: If value is not a list
    """
    if not isinstance(value, (list, tuple)):
        raise TypeError(f"join expects a list, got {type(value).__name__}")
    return str(separator).join(stringify(item) for item in value)


def filter_length(value: Any) -> int:
    """Return length of string, list, or mapping.

    Args:
        value: Value to get length of

    Returns:
        Length of value

    Raises:
        TypeError: If value doesn't support len()
    """
    return len(value)


def filter_default(value: Any, default: Any = "") -> Any:
    """Return default if value is missing, None or empty string.

    Args:
        value: Value to check
        default: Replacement value

    Returns:
        value if present and non-empty, else default
    """
    if value is MISSING or value is None or value == "":
        return default
    return value


def filter_replace(value: Any, old: str, new: str) -> str:
    return stringify(value).replace(str(old), str(new))


def filter_json(value: Any) -> str:
    """Serialize value to JSON string with sorted keys.

    Args:
        value: Value to serialize

    Returns:
        JSON string representation
    """
    return json.dumps(value, sort_keys=True, default=str, ensure_ascii=False)


def filter_percent(value: Any) -> str:
    """Format a 0..1 ratio as a whole percentage (0.87 → "87%").

    Raises:
        TypeError: If value is not a number (text and booleans included)
    """
    if isinstance(value, (bool, str)):
        raise TypeError(f"percent expects a number, got {type(value).__name__}")
    return f"{round(float(value) * 100)}%"


def filter_first(value: Any) -> Any:
    """Return the first element of a list or first character of a string."""
    if isinstance(value, Mapping):
        raise TypeError("first expects a list or string, got mapping")
    return value[0] if len(value) else None


def filter_last(value: Any) -> Any:
    """Return the last element of a list or last character of a string."""
    if isinstance(value, Mapping):
        raise TypeError("last expects a list or string, got mapping")
    return value[-1] if len(value) else None


# Registry of available filters
FILTERS: dict[str, Any] = {
    "upper": filter_upper,
    "lower": filter_lower,
    "capitalize": filter_capitalize,
    "title": filter_title,
    "trim": filter_trim,
    "join": filter_join,
    "length": filter_length,
    "default": filter_default,
    "replace": filter_replace,
    "json": filter_json,
    "percent": filter_percent,
    "first": filter_first,
    "last": filter_last,
}

# Filters that receive MISSING instead of being skipped
MISSING_AWARE = frozenset({"default"})
