"""Calendar-date normalization.

Dates are timezone-naive calendar days serialized as ``YYYY-MM-DD``. Aware
datetimes are converted to UTC before the day is taken; naive datetimes are
used as-is. Nothing here consults the local timezone.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional, Union

DateLike = Union[date, datetime, str]

DATE_KEY_FORMAT = "%Y-%m-%d"


def to_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if len(text) <= 10:
                return date.fromisoformat(text)
            # Timestamps carry a time and maybe an offset; take the UTC day.
            if text.endswith(("Z", "z")):
                text = text[:-1] + "+00:00"
            return to_date(datetime.fromisoformat(text))
        except ValueError:
            raise ValueError(f"invalid_date: {value!r}") from None
    raise TypeError(f"Unsupported date value: {type(value).__name__}")


def to_date_key(value: DateLike) -> str:
    return to_date(value).strftime(DATE_KEY_FORMAT)


def parse_optional_date(value: Optional[str]) -> Optional[date]:
    """Lenient parse for query parameters: blank or malformed input is None."""
    if not value:
        return None
    try:
        return to_date(value)
    except ValueError:
        return None


def year_bounds(year: int) -> tuple[date, date]:
    return date(year, 1, 1), date(year, 12, 31)
