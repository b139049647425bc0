"""Cell value helpers shared by the checks, the filter evaluator and the actions.

A cell holds one of: str, int/float, bool, None (absent) or a list of those.
Every conversion between these kinds goes through a function in this module.
"""

from __future__ import annotations

import math
import numbers
import re
from typing import Any

import pandas as pd

# Plain decimal literal: no hex, no "nan"/"inf", no trailing garbage
_NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")

_BOOL_LITERALS = {"true": True, "false": False}


def is_number(value: Any) -> bool:
    """True for int/float (and numpy numbers), never for bool."""
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def is_missing(value: Any) -> bool:
    """Absent-value marker: None, or a float NaN coming out of pandas."""
    if value is None:
        return True
    return isinstance(value, float) and math.isnan(value)


def to_text(value: Any) -> str:
    """Render a cell the way it is displayed: ``1.0`` → ``"1"``, lists comma-joined."""
    if is_missing(value):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if is_sequence(value):
        return ",".join(to_text(v) for v in value)
    return str(value)


def is_blank(value: Any) -> bool:
    """True if the value is absent or reduces to an empty trimmed string."""
    if is_missing(value):
        return True
    if is_sequence(value):
        return all(is_blank(v) for v in value)
    return to_text(value).strip() == ""


def parse_number(text: str) -> float | None:
    """Parse a string that is a clean decimal literal, else None."""
    stripped = text.strip()
    if not _NUMBER_RE.match(stripped):
        return None
    return float(stripped)


def as_number(value: Any) -> float | None:
    """Numeric reading of a cell: numbers as-is, numeric strings parsed."""
    if is_number(value):
        return float(value)
    if isinstance(value, str):
        return parse_number(value)
    return None


def parse_bool_literal(text: str) -> bool | None:
    return _BOOL_LITERALS.get(text.strip().lower())


def harmonize(left: Any, right: Any) -> tuple[Any, Any]:
    """Coerce a (cell, filter value) pair to comparable kinds.

    - numeric string vs number → the string side becomes a number
    - "true"/"false" string vs bool → the string side becomes a bool

    Anything else is returned unchanged.
    """
    if isinstance(left, str) and is_number(right):
        parsed = parse_number(left)
        if parsed is not None:
            return parsed, right
    elif is_number(left) and isinstance(right, str):
        parsed = parse_number(right)
        if parsed is not None:
            return left, parsed
    elif isinstance(left, str) and isinstance(right, bool):
        parsed_bool = parse_bool_literal(left)
        if parsed_bool is not None:
            return parsed_bool, right
    elif isinstance(left, bool) and isinstance(right, str):
        parsed_bool = parse_bool_literal(right)
        if parsed_bool is not None:
            return left, parsed_bool
    return left, right


def _kind(value: Any) -> str:
    if is_missing(value):
        return "none"
    if isinstance(value, bool):
        return "bool"
    if is_number(value):
        return "number"
    if isinstance(value, str):
        return "str"
    if is_sequence(value):
        return "sequence"
    return type(value).__name__


def strictly_equal(left: Any, right: Any) -> bool:
    """Equality without cross-kind coercion: ``True`` never equals ``1``."""
    if _kind(left) != _kind(right):
        return False
    if _kind(left) == "none":
        return True
    if _kind(left) == "sequence":
        return len(left) == len(right) and all(
            strictly_equal(a, b) for a, b in zip(left, right)
        )
    return left == right


def parse_date(value: Any) -> pd.Timestamp | None:
    """Parse a string or an epoch-milliseconds number into a timestamp, else None."""
    try:
        if is_number(value):
            parsed = pd.to_datetime(value, unit="ms", errors="coerce")
        elif isinstance(value, str):
            parsed = pd.to_datetime(value.strip(), errors="coerce")
        else:
            return None
    except (ValueError, TypeError, OverflowError):
        return None
    if parsed is None or pd.isna(parsed):
        return None
    return parsed
