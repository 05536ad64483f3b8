"""
Shared scalar parsing utilities for collection-views.

Attribute values arrive as free-form strings, so every numeric or boolean
interpretation goes through these helpers. None of them raise: values that
cannot be interpreted come back as None (or NaN for floats).
"""
import math
import re
from enum import Enum
from typing import Any, Optional, Type

_INT_PREFIX = re.compile(r"^[+-]?\d+", re.ASCII)
_STRICT_FLOAT = re.compile(r"^[+-]?\d*(\.\d+)?$", re.ASCII)

FALSY_STRINGS = frozenset(["n", "no", "f", "false"])


def parse_optional_int(value: Any, min_value: int, max_value: int) -> Optional[int]:
    """
    Parse an integer from a number or string and clamp it (inclusive).

    Strings are read like a base-10 integer prefix: leading whitespace and an
    optional sign are accepted and anything after the leading digits is
    ignored, so "5.9" is 5.

    Args:
        value: Number, string or None
        min_value: Lower bound
        max_value: Upper bound

    Returns:
        The clamped integer, or None if the value is not numeric.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        number = int(value)
    else:
        match = _INT_PREFIX.match(str(value).strip())
        if not match:
            return None
        number = int(match.group(0))

    return clamp(number, min_value, max_value)


def parse_float_strict(value: Any) -> float:
    """
    Parse a float, rejecting strings with anything other than a number.

    Unlike a permissive parse, "2022-01-01" is NaN rather than 2022.

    Returns:
        The parsed float, or NaN.
    """
    if value is None or isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        return float(value)

    text = str(value).strip()
    if not _STRICT_FLOAT.match(text):
        return math.nan

    try:
        return float(text)
    except ValueError:
        # "" and a lone sign pass the pattern but are not numbers
        return math.nan


def clamp(number, min_value, max_value):
    """Return a number clamped between two values (inclusive)."""
    return max(min_value, min(number, max_value))


def is_truthy(value: str) -> bool:
    """
    Return False only if a string reads as an explicit "no".

    Checkbox-style attributes are assumed true unless set to one of
    n, no, f or false (case-insensitive, surrounding whitespace ignored).
    """
    return value.strip().lower() not in FALSY_STRINGS


def is_enum_value(enum_type: Type[Enum], value: str) -> bool:
    """Return True if a string is the value of some member of an enum."""
    return any(member.value == value for member in enum_type)


def format_number(value: float, precision: Optional[int] = None) -> str:
    """
    Format a number with thousands separators.

    Args:
        value: Number to format
        precision: Exact number of fraction digits; when None at most three
            are shown and trailing zeros are dropped

    Returns:
        Formatted string, e.g. "1,234.5"
    """
    if precision is not None:
        return f"{value:,.{precision}f}"

    text = f"{value:,.3f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text == "-0":
        text = "0"
    return text
