"""Leave duration in whole calendar days."""

from __future__ import annotations

from calendar import monthrange
from datetime import date

from leave_engine.exceptions import ValidationError


def leave_days(start_date: date, end_date: date) -> int:
    """Return the inclusive number of calendar days covered, never less than one.

    A single-day request (start == end) counts as 1; Mon..Wed counts as 3.
    """
    if end_date < start_date:
        msg = f"end_date {end_date.isoformat()} is before start_date {start_date.isoformat()}"
        raise ValidationError(msg)
    return max(1, (end_date - start_date).days + 1)


def month_bounds(month: str) -> tuple[date, date]:
    """Return the first and last day of a ``YYYY-MM`` month."""
    try:
        year_str, month_str = month.split("-")
        year, month_num = int(year_str), int(month_str)
        last_day = monthrange(year, month_num)[1]
    except ValueError:
        msg = f"Invalid month {month!r}, expected YYYY-MM"
        raise ValidationError(msg) from None
    return date(year, month_num, 1), date(year, month_num, last_day)


def resolve_window(
    date_from: date | None = None,
    date_to: date | None = None,
    month: str | None = None,
) -> tuple[date | None, date | None]:
    """Combine a month and explicit bounds into one [start, end] window.

    The result is the intersection: the later of the starts and the earlier of
    the ends. Either side may be open (None).
    """
    window_start: date | None = None
    window_end: date | None = None
    if month is not None:
        window_start, window_end = month_bounds(month)
    if date_from is not None:
        window_start = max(window_start, date_from) if window_start is not None else date_from
    if date_to is not None:
        window_end = min(window_end, date_to) if window_end is not None else date_to
    return window_start, window_end
