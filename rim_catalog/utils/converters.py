"""Type conversion utilities for safely handling rows from the database.

Supabase returns NULL for columns the admin form left blank, and older rows
predate some columns entirely. Everything that turns a raw row into a typed
value goes through here.
"""

from typing import Any


def safe_int(val: Any, default: int | None = None) -> int | None:
    """Safely convert a value to int.

    Args:
        val: Value to convert (can be str, int, float, None, etc.)
        default: Value to return if conversion fails

    Returns:
        Converted int or default value

    Examples:
        >>> safe_int("42")
        42
        >>> safe_int("35.0")
        35
        >>> safe_int(None) is None
        True
    """
    if val is None or val == "":
        return default
    try:
        return int(float(val))  # Handle "3.0" -> 3
    except (ValueError, TypeError):
        return default


def as_str(val: Any) -> str:
    """Convert a nullable column to a string ("" for NULL), value untouched."""
    if val is None:
        return ""
    return str(val)


def str_list(val: Any) -> list[str]:
    """Convert a nullable array column to a list of non-empty strings."""
    if val is None or val == "":
        return []
    if isinstance(val, str):
        return [val.strip()] if val.strip() else []
    return [str(item).strip() for item in val if item is not None and str(item).strip()]


def unique_in_order(values: list[str]) -> list[str]:
    """Drop repeated values, keeping the first occurrence of each."""
    seen: set[str] = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result
