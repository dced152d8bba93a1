"""
Calendar period keys for the rollup engine.

Monthly ids look like ``2025-08`` and weekly ids like ``2025-W31``. Both are
zero padded so that sorting the id strings sorts the periods chronologically,
including across year boundaries (``"2025-W52" < "2026-W01"``).

ISO weeks start on Monday and belong to the ISO year of their Thursday, so
29-31 December can fall in week 1 of the next year and 1-3 January in week
52/53 of the previous one.
"""

from __future__ import annotations

import math
from datetime import date, datetime, timedelta
from typing import Tuple, Union

from .errors import ValidationError

DateLike = Union[date, datetime, str]


def parse_date(value: DateLike) -> date:
    """Coerce a date, datetime or ``YYYY-MM-DD`` string to a date.

    Strings may carry an ISO time after a ``T`` (``2025-08-04T10:30:00Z``);
    anything else after the date is rejected.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        day = datetime.strptime(text[:10], "%Y-%m-%d").date()
        if len(text) > 10:
            if text[10] != "T":
                raise ValueError(text)
            datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"Invalid date: {value!r}") from None
    return day


def iso_week(day: date) -> Tuple[int, int]:
    """Return ``(iso_year, iso_week)`` for a calendar date."""
    day_num = day.weekday() + 1  # Monday=1 .. Sunday=7
    thursday = day + timedelta(days=4 - day_num)
    year_start = date(thursday.year, 1, 1)
    week = math.ceil(((thursday - year_start).days + 1) / 7)
    return thursday.year, week


def week_id(day: DateLike) -> str:
    """Weekly period id, e.g. ``2026-W01``."""
    year, week = iso_week(parse_date(day))
    return f"{year}-W{week:02d}"


def month_id(day: DateLike) -> str:
    """Monthly period id, e.g. ``2025-08``."""
    d = parse_date(day)
    return f"{d.year}-{d.month:02d}"


def week_label(period_id: str) -> str:
    """Display label for a weekly id: ``2025-W31`` -> ``2025 W31``.

    Cosmetic only; the id stays the identity of the period. Imported ids that
    do not follow the ``YYYY-Wnn`` shape just get a space before the marker.
    """
    if "-W" in period_id:
        return period_id.replace("-W", " W", 1)
    return period_id.replace("W", " W", 1)


def month_label(period_id: str) -> str:
    return period_id
