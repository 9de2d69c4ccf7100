from __future__ import annotations

from datetime import date, datetime, time

from ..core.constants import WEEKDAYS
from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid date (YYYY-MM-DD): {value!r}")


def parse_hhmm(value: str | None) -> time | None:
    v = (value or "").strip()
    if not v:
        return None
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(v, fmt).time()
        except ValueError:
            continue
    raise ValidationError(f"Invalid time (HH:MM): {value!r}")


def weekday_name(value: date) -> str:
    """Lower-case English weekday of a calendar date ('monday' ... 'sunday').

    Note: plain calendar weekday, no school timezone is applied.
    """
    return WEEKDAYS[value.weekday()]
