"""
Input validation functions for API parameters and request bodies.

Query-string parsers are lenient (bad values fall back to defaults);
body validators raise ValidationError on invalid input.
"""

import math
import re
import uuid
from datetime import date, datetime
from typing import Any, Dict, Iterable, Mapping, Optional

from core.exceptions import ValidationError


# Values accepted as "on" / "off" for boolean query flags
TRUE_FLAGS = {"1", "true", "yes"}
FALSE_FLAGS = {"0", "false", "no"}

# Sentinel meaning "no filter" for enumerated filters
ALL = "all"

MAX_SEARCH_LENGTH = 100

_QUOTES_RE = re.compile(r"['\"]")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
# Characters with meaning in PostgREST filter strings
_FILTER_META_RE = re.compile(r"[,()%*\\]")


# ═══════════════════════════════════════════════════════════════════════════════
# QUERY STRING PARSERS
# ═══════════════════════════════════════════════════════════════════════════════

def validate_search_term(value: Optional[str]) -> str:
    """
    Normalize a free-text search term.

    Strips whitespace, drops characters that would break a PostgREST `or`
    expression and caps the length. Returns "" when there is nothing to match.
    """
    if not value or not isinstance(value, str):
        return ""
    term = _FILTER_META_RE.sub(" ", value).strip()
    term = re.sub(r"\s+", " ", term)
    return term[:MAX_SEARCH_LENGTH]


def validate_sort(value: Optional[str], allowed: Iterable[str], default: str = "created_at") -> str:
    """Return value if it is a whitelisted sort key, otherwise the default."""
    if value and value in set(allowed):
        return value
    return default


def is_descending(order: Optional[str]) -> bool:
    """Sort direction is descending unless explicitly "asc"."""
    return (order or "desc").strip().lower() != "asc"


def parse_flag(value: Optional[str]) -> Optional[bool]:
    """
    Parse a boolean query flag.

    Returns:
        True / False for recognised spellings, None when absent or unrecognised
    """
    if value is None:
        return None
    lowered = str(value).strip().lower()
    if lowered in TRUE_FLAGS:
        return True
    if lowered in FALSE_FLAGS:
        return False
    return None


def parse_number(value: Optional[str]) -> Optional[float]:
    """Parse an optional numeric query parameter; unparsable values are ignored."""
    if value is None or str(value).strip() == "":
        return None
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


def parse_filter(value: Optional[str]) -> Optional[str]:
    """Return an equality filter value, or None when absent or the "all" sentinel."""
    if value is None:
        return None
    value = value.strip()
    if not value or value.lower() == ALL:
        return None
    return value


def parse_csv(value: Optional[str]) -> list:
    """Split a comma-separated parameter into non-empty trimmed items."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def validate_date_string(
    value: Optional[str],
    field: str = "date",
    allow_none: bool = True,
) -> Optional[str]:
    """
    Validate an ISO-8601 date or datetime string.

    Args:
        value: Date string to validate (YYYY-MM-DD or full ISO timestamp)
        field: Field name for error messages
        allow_none: Whether None/empty is allowed

    Returns:
        The ISO string as given (trimmed), or None

    Raises:
        ValidationError: If the string is not a valid ISO date
    """
    if value is None or value == "":
        if allow_none:
            return None
        raise ValidationError(field, "Date is required")

    if not isinstance(value, str):
        raise ValidationError(field, "Must be a string", value)

    value = value.strip()
    try:
        if len(value) == 10:
            date.fromisoformat(value)
        else:
            datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(field, "Invalid date format. Expected ISO-8601", value)

    return value


# ═══════════════════════════════════════════════════════════════════════════════
# BODY VALIDATORS
# ═══════════════════════════════════════════════════════════════════════════════

def require_object(payload: Any) -> Dict[str, Any]:
    """Ensure a decoded JSON body is an object."""
    if not isinstance(payload, dict):
        raise ValidationError("body", "Invalid JSON")
    return payload


def require_text(payload: Mapping[str, Any], field: str, message: str = None) -> str:
    """
    Get a required, non-blank text field.

    Raises:
        ValidationError: If the field is missing, not text, or blank
    """
    value = payload.get(field)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(field, message or f"{field.capitalize()} required")
    return value.strip()


def validate_choice(value: Any, allowed: Iterable[str], field: str) -> str:
    """Validate that value is one of the allowed strings."""
    allowed = sorted(set(allowed))
    text = str(value or "").strip()
    if text not in allowed:
        raise ValidationError(field, f"Must be one of: {', '.join(allowed)}", value)
    return text


def coerce_number(value: Any, field: str, allow_none: bool = False) -> Optional[float]:
    """
    Coerce a body value to a number.

    Integral values come back as int so they round-trip cleanly to integer columns.

    Raises:
        ValidationError: If the value does not convert to a finite number
    """
    if value is None or value == "":
        if allow_none:
            return None
        raise ValidationError(field, "Must be a number", value)
    if isinstance(value, bool):
        raise ValidationError(field, "Must be a number", value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(field, "Must be a number", value)
    if not math.isfinite(number):
        raise ValidationError(field, "Must be a finite number", value)
    if number.is_integer():
        return int(number)
    return number


def clamp_stock(value: Any, field: str = "stock_quantity") -> int:
    """Coerce a stock quantity to a non-negative integer."""
    return max(0, int(coerce_number(value, field)))


def is_uuid(value: Any) -> bool:
    """True when value is a canonical UUID string (a valid key for uuid id columns)."""
    if not isinstance(value, str):
        return False
    try:
        return str(uuid.UUID(value)) == value.lower()
    except ValueError:
        return False


def slugify(text: Optional[str]) -> str:
    """
    Derive a URL slug from free text.

    "Men's Shoes!" -> "mens-shoes"
    """
    if not text:
        return ""
    slug = str(text).lower().strip()
    slug = _QUOTES_RE.sub("", slug)
    slug = _NON_ALNUM_RE.sub("-", slug)
    return slug.strip("-")


def pick_fields(payload: Mapping[str, Any], allowed: Iterable[str]) -> Dict[str, Any]:
    """
    Intersect a partial update with a field whitelist.

    Fields outside the whitelist are dropped silently.

    Raises:
        ValidationError: If no whitelisted field is present
    """
    update = {key: payload[key] for key in allowed if key in payload}
    if not update:
        raise ValidationError("body", "No fields to update")
    return update
