"""Value parsers shared by the filter compiler and the store functions.

Stored attribute values are loosely typed: the same attribute can be a JSON
number in one document and unit-annotated text ("4.70 GHz", "850 W") in the
next. Query parameters arrive as strings. Everything here returns None for
input it cannot interpret instead of raising.
"""

import math
import re
from typing import Any, Iterable


# =============================================================================
# PRE-COMPILED REGEX PATTERNS
# =============================================================================

# First contiguous integer or decimal in a text value
_NUMBER_PATTERN = re.compile(r"\d+(?:\.\d+)?")
# Leading number of a query parameter bound ("750", " 4.5GHz", "-1")
_LEADING_INT_PATTERN = re.compile(r"^\s*([+-]?\d+)")
_LEADING_FLOAT_PATTERN = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+))")

# JSON types (as reported by SQLite's json_type) that hold a usable number
_NUMERIC_JSON_TYPES = frozenset({"integer", "real"})


# =============================================================================
# STORED VALUES
# =============================================================================

def extract_number(value: Any) -> float | None:
    """Coerce a stored attribute value to a number.

    Numbers are used as-is. Text yields its first integer or decimal
    substring ("4.70 GHz" -> 4.7, "DDR5-6000" -> 5.0). Booleans, nulls,
    containers and text without digits yield None.

    Examples:
        extract_number(65) -> 65.0
        extract_number("4.70 GHz") -> 4.7
        extract_number("N/A") -> None
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str) or not value:
        return None
    match = _NUMBER_PATTERN.search(value)
    if not match:
        return None
    return float(match.group(0))


def coerce_number(json_type: str | None, value: Any) -> float | None:
    """Coerce a value read with json_extract, given its json_type.

    SQLite reports JSON booleans as integers through json_extract, so the
    JSON type decides what the raw value means.
    """
    if json_type in _NUMERIC_JSON_TYPES:
        return float(value)
    if json_type == "text":
        return extract_number(value)
    return None


# =============================================================================
# QUERY PARAMETERS
# =============================================================================

def is_blank(value: Any) -> bool:
    """True for parameters that impose no constraint (None, "", [])."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def parse_bound(value: Any, integer: bool = True) -> float | None:
    """Parse one bound of a range parameter from its leading number.

    Integer bounds truncate ("4.9" -> 4), decimal bounds keep the fraction.
    Trailing text is ignored ("850W" -> 850).

    Returns:
        The bound as a float, or None if the value has no leading number or
        is not finite
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        try:
            return float(int(value)) if integer else float(value)
        except OverflowError:
            return None
    if not isinstance(value, str):
        return None
    pattern = _LEADING_INT_PATTERN if integer else _LEADING_FLOAT_PATTERN
    match = pattern.match(value)
    if not match:
        return None
    return float(match.group(1))


def parse_range(value: Any, integer: bool = True) -> tuple[float, float] | None:
    """Parse a [min, max] range parameter.

    Only a two-element list/tuple is a range; anything else (a single value,
    three values) is ignored. Either bound failing to parse drops the range.
    """
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        return None
    low = parse_bound(value[0], integer)
    high = parse_bound(value[1], integer)
    if low is None or high is None:
        return None
    return low, high


def parse_flag(value: Any) -> bool | None:
    """Parse a boolean filter parameter.

    "true" (any case) is True; any other non-blank value is False, so
    "false", "0" and "no" all request the negative branch.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (list, tuple)):
        value = value[-1] if value else None
    if is_blank(value):
        return None
    return str(value).strip().lower() == "true"


def first_text(value: Any) -> str | None:
    """Collapse a text parameter to one stripped string (last repeat wins)."""
    if isinstance(value, (list, tuple)):
        value = value[-1] if value else None
    if is_blank(value):
        return None
    return str(value).strip()


# Array spellings of a query key: "potencia[]" and "potencia[0]"
_ARRAY_KEY_PATTERN = re.compile(r"^(.+?)\[(\d*)\]$")


def fold_query_params(items: Iterable[tuple[str, str]]) -> dict[str, str | list[str]]:
    """Fold raw query-string pairs into filter criteria.

    Repeated keys become lists in order of appearance. Bracketed keys
    ("potencia[]=300&potencia[]=750", "potencia[1]=750&potencia[0]=300")
    fold into the bare key as lists, indexed ones ordered by index.

    Examples:
        [("socket", "AM5")] -> {"socket": "AM5"}
        [("tdp", "65"), ("tdp", "105")] -> {"tdp": ["65", "105"]}
    """
    grouped: dict[str, list[tuple[tuple[int, int], str]]] = {}
    bracketed: set[str] = set()
    for position, (key, value) in enumerate(items):
        match = _ARRAY_KEY_PATTERN.match(key)
        order = (1, position)
        if match:
            key = match.group(1)
            bracketed.add(key)
            if match.group(2):
                order = (0, int(match.group(2)))
        grouped.setdefault(key, []).append((order, value))

    criteria: dict[str, str | list[str]] = {}
    for key, entries in grouped.items():
        values = [value for _, value in sorted(entries, key=lambda e: e[0])]
        if len(values) == 1 and key not in bracketed:
            criteria[key] = values[0]
        else:
            criteria[key] = values
    return criteria
