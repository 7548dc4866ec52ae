"""
Shared validators for query parameters and search input.
"""

import re
from datetime import datetime, time, timezone
from typing import Optional

from shared.config.constants import Limits
from shared.utils.exceptions import ValidationError


def escape_like_pattern(value: str) -> str:
    """
    Escape special characters in LIKE patterns.

    SQL LIKE uses % and _ as wildcards; a search term must match them
    literally. Use with `.ilike(pattern, escape="\\\\")`.
    """
    if not value:
        return value

    # Escape the escape character first, then the wildcards
    value = value.replace("\\", "\\\\")
    value = value.replace("%", "\\%")
    value = value.replace("_", "\\_")
    return value


def sanitize_search_term(term: str, max_length: int = Limits.MAX_SEARCH_TERM_LENGTH) -> str:
    """Trim, truncate and strip control characters from a search term."""
    if not term:
        return ""

    term = term.strip()[:max_length]
    return re.sub(r"[\x00-\x1f\x7f-\x9f]", "", term)


def contains_pattern(term: str) -> str:
    """Escaped `%term%` pattern for a case-insensitive contains search."""
    return f"%{escape_like_pattern(sanitize_search_term(term))}%"


def parse_status_list(raw: Optional[str], allowed: list[str], field: str = "status") -> list[str]:
    """
    Parse a comma separated filter such as "pending,confirmed".

    Raises:
        ValidationError: If any value is not in `allowed`.
    """
    if not raw:
        return []
    values = [part.strip() for part in raw.split(",") if part.strip()]
    unknown = [v for v in values if v not in allowed]
    if unknown:
        raise ValidationError(f"Invalid {field}: {', '.join(unknown)}", field=field)
    return values


def day_start(value: datetime) -> datetime:
    """UTC midnight of the given moment's date."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return datetime.combine(value.astimezone(timezone.utc).date(), time.min, tzinfo=timezone.utc)


def ensure_aware(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes from query strings as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
