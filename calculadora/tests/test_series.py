from __future__ import annotations

from datetime import date
from math import isclose, prod

from calculadora.core.series import (
    accumulation_factor,
    compounded_percentage,
    filter_window,
    merge_series,
    monthly_breakdown,
    pair_by_month,
)
from calculadora.schemas.indices import IndexPoint


def test_empty_series_factor_is_exactly_one():
    assert accumulation_factor([]) == 1.0
    assert compounded_percentage([]) == 0.0


def test_factor_is_product_of_monthly_rates(series_factory):
    values = [0.5, 0.6, 0.4, -0.2, 1.1]
    series = series_factory(date(2020, 1, 1), values)

    expected = prod(1 + v / 100 for v in values)
    assert isclose(accumulation_factor(series), expected, rel_tol=1e-12)


def test_three_month_scenario(series_factory):
    series = series_factory(date(2020, 10, 1), [0.5, 0.6, 0.4])
    factor = accumulation_factor(series)

    assert isclose(factor, 1.005 * 1.006 * 1.004, rel_tol=1e-12)
    assert isclose(10000 * factor, 10150.74, abs_tol=0.01)


def test_breakdown_tracks_running_factor(series_factory):
    series = series_factory(date(2020, 10, 1), [0.5, 0.6, 0.4])
    rows = monthly_breakdown(series, principal=10000, interest=120.0)

    assert [row.period for row in rows] == [p.period for p in series]
    assert isclose(rows[0].cumulative_factor, 1.005)
    assert isclose(rows[1].corrected_value, 10000 * 1.005 * 1.006)
    assert isclose(rows[-1].cumulative_factor, accumulation_factor(series))
    # interest only on the final period
    assert [row.interest_value for row in rows] == [0.0, 0.0, 120.0]


def test_breakdown_of_empty_series_is_empty():
    assert monthly_breakdown([], principal=1000) == []


def test_pair_by_month_ignores_day_and_fills_missing():
    nominal = [
        IndexPoint(period=date(2021, 1, 1), value=1.0),
        IndexPoint(period=date(2021, 2, 1), value=1.1),
        IndexPoint(period=date(2021, 3, 1), value=1.2),
    ]
    inflation = [
        IndexPoint(period=date(2021, 1, 15), value=0.3),
        IndexPoint(period=date(2021, 3, 31), value=0.5),
    ]

    pairs = pair_by_month(nominal, inflation)

    assert pairs == [((2021, 1), 1.0, 0.3), ((2021, 2), 1.1, 0.0), ((2021, 3), 1.2, 0.5)]


def test_merge_series_keeps_existing_and_sorts():
    existing = [IndexPoint(period=date(2021, 3, 1), value=0.3)]
    incoming = [
        IndexPoint(period=date(2021, 1, 1), value=0.1),
        IndexPoint(period=date(2021, 3, 1), value=9.9),
    ]

    merged = merge_series(existing, incoming)

    assert [p.period for p in merged] == [date(2021, 1, 1), date(2021, 3, 1)]
    assert merged[1].value == 0.3


def test_filter_window_is_inclusive(series_factory):
    series = series_factory(date(2021, 1, 1), [0.1] * 6)
    window = filter_window(series, date(2021, 2, 1), date(2021, 4, 1))
    assert [p.period.month for p in window] == [2, 3, 4]


def test_index_point_parses_and_serializes_br_dates():
    point = IndexPoint.model_validate({"period": "01/02/2021", "value": 0.25})
    assert point.period == date(2021, 2, 1)
    assert point.model_dump(mode="json") == {"period": "01/02/2021", "value": 0.25}
