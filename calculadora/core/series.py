"""Pure arithmetic over index series."""

from __future__ import annotations

from typing import Dict, Iterable, List, Sequence, Tuple

from calculadora.core.datas import MonthKey, month_key
from calculadora.schemas.calculo import MonthlyEntry
from calculadora.schemas.indices import IndexPoint


def rate_factor(value: float) -> float:
    """Convert a percentage (6.5 means 6.5%) into a multiplicative factor."""
    return 1 + value / 100


def accumulation_factor(series: Iterable[IndexPoint]) -> float:
    """Product of (1 + value/100) over the series; 1.0 for an empty series."""
    factor = 1.0
    for point in series:
        factor *= rate_factor(point.value)
    return factor


def compounded_percentage(series: Iterable[IndexPoint]) -> float:
    """Accumulated rate over the series as a fraction (0.12 means 12%)."""
    return accumulation_factor(series) - 1


def monthly_breakdown(
    series: Sequence[IndexPoint],
    principal: float,
    interest: float = 0.0,
) -> List[MonthlyEntry]:
    """
    Walk the correction series keeping a running factor.

    The whole interest amount is attributed to the last period; every other
    row carries zero interest.
    """
    rows: List[MonthlyEntry] = []
    cumulative = 1.0
    last = len(series) - 1
    for index, point in enumerate(series):
        cumulative *= rate_factor(point.value)
        rows.append(
            MonthlyEntry(
                period=point.period,
                index_value=point.value,
                cumulative_factor=cumulative,
                corrected_value=principal * cumulative,
                interest_value=interest if index == last else 0.0,
            )
        )
    return rows


def index_by_month(series: Iterable[IndexPoint]) -> Dict[MonthKey, float]:
    """Map (year, month) to value; later points in the same month win."""
    return {month_key(point.period): point.value for point in series}


def pair_by_month(
    primary: Sequence[IndexPoint],
    secondary: Sequence[IndexPoint],
) -> List[Tuple[MonthKey, float, float]]:
    """
    Pair each primary point with the secondary value of the same month.

    Series from different sources may report different days within a month,
    so matching is by (year, month). Months missing from ``secondary`` pair
    with 0.
    """
    lookup = index_by_month(secondary)
    return [
        (month_key(point.period), point.value, lookup.get(month_key(point.period), 0.0))
        for point in primary
    ]


def merge_series(existing: Iterable[IndexPoint], incoming: Iterable[IndexPoint]) -> List[IndexPoint]:
    """Union by period keeping existing values, sorted ascending."""
    merged: Dict = {point.period: point for point in existing}
    for point in incoming:
        if point.period not in merged:
            merged[point.period] = point
    return [merged[period] for period in sorted(merged)]


def filter_window(series: Iterable[IndexPoint], start, end) -> List[IndexPoint]:
    return [point for point in series if start <= point.period <= end]
