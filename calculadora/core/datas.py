"""Date helpers for DD/MM/YYYY strings and whole-month arithmetic."""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple, Union

MonthKey = Tuple[int, int]

DateLike = Union[date, str]


def parse_date_br(value: DateLike) -> date:
    """
    Parse a Brazilian date into a ``date``.

    Accepted forms:
      - ``DD/MM/YYYY``
      - ``MM/YYYY`` (day assumed to be 1)
      - ``YYYY-MM-DD``
      - a ``date``/``datetime`` instance (returned as a date)
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"data inválida: {value!r}")

    text = value.strip()
    try:
        if "/" in text:
            parts = [int(p) for p in text.split("/")]
            if len(parts) == 3:
                day, month, year = parts
            elif len(parts) == 2:
                day = 1
                month, year = parts
            else:
                raise ValueError(text)
            return date(year, month, day)
        if "-" in text:
            return date.fromisoformat(text[:10])
    except ValueError as exc:
        raise ValueError(f"data inválida: {value!r}. Use o formato DD/MM/AAAA.") from exc

    raise ValueError(f"data inválida: {value!r}. Use o formato DD/MM/AAAA.")


def normalize_date_br(value: Optional[str]) -> Optional[str]:
    """Return ``value`` as DD/MM/YYYY, or None when it is empty or unparseable."""
    if not value:
        return None
    try:
        return format_date_br(parse_date_br(value))
    except ValueError:
        return None


def format_date_br(value: date) -> str:
    return value.strftime("%d/%m/%Y")


def month_key(value: date) -> MonthKey:
    return (value.year, value.month)


def whole_months_between(start: date, end: date) -> int:
    """
    Calendar month boundaries crossed between two dates.

    The day of month is ignored on purpose: 31/01 -> 01/02 counts as one month.
    """
    return (end.year - start.year) * 12 + (end.month - start.month)


def add_months(value: date, months: int) -> date:
    index = value.month - 1 + months
    year = value.year + index // 12
    month = index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def add_years(value: date, years: int) -> date:
    return add_months(value, years * 12)


def split_windows(start: date, end: date, years: int = 10) -> List[Tuple[date, date]]:
    """
    Break [start, end] into consecutive windows of at most ``years`` years.

    Windows are contiguous: each one starts the day after the previous one
    ends, so no monthly point falls between two requests.
    """
    if start > end:
        return []
    if end <= add_years(start, years):
        return [(start, end)]

    windows: List[Tuple[date, date]] = []
    current = start
    while current <= end:
        window_end = min(add_years(current, years), end)
        windows.append((current, window_end))
        if window_end >= end:
            break
        current = window_end + timedelta(days=1)
    return windows
