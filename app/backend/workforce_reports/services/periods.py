"""Calendar bucket keys used by summary and pivot reports."""

from __future__ import annotations

from datetime import date
from enum import Enum


class Period(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


def period_key(value: date, period: Period) -> str:
    """Return a lexicographically sortable bucket key for ``value``.

    Weeks are ISO-8601 (Monday start); the ISO year can differ from the
    calendar year around New Year, e.g. 2024-12-30 is ``2025-W01``.
    """

    if period is Period.DAY:
        return value.isoformat()
    if period is Period.MONTH:
        return f"{value.year:04d}-{value.month:02d}"
    iso_year, iso_week, _ = value.isocalendar()
    return f"{iso_year:04d}-W{iso_week:02d}"


def span_days(start: date, end: date) -> int:
    """Inclusive number of calendar days between ``start`` and ``end``."""

    return (end - start).days + 1
