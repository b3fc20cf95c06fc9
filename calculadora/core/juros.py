"""Moratory interest policies.

Every policy maps (interest start, calculation date) to an accumulated
percentage expressed as a fraction (0.12 means 12%). Policies that need index
data receive the fetch function instead of reaching for the cache directly.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Awaitable, Callable, List, Tuple

from calculadora.core.datas import format_date_br, whole_months_between
from calculadora.core.series import compounded_percentage, pair_by_month, rate_factor
from calculadora.errors import InvalidDateRange
from calculadora.schemas.calculo import (
    FixedMonthlyInterest,
    RealRateInterest,
    ReferenceRateInterest,
)
from calculadora.schemas.indices import IndexPoint, IndexType

logger = logging.getLogger(__name__)

IndexFetcher = Callable[[IndexType, date, date], Awaitable[List[IndexPoint]]]

InterestOutcome = Tuple[float, List[str]]


def _range_warning(start: date, end: date) -> str:
    warning = str(InvalidDateRange(start, end, "juros de mora"))
    logger.warning(
        f"[Juros] Início dos juros {format_date_br(start)} posterior ao cálculo "
        f"{format_date_br(end)}; juros considerados zero"
    )
    return warning


def fixed_monthly_interest(policy: FixedMonthlyInterest, start: date, end: date) -> InterestOutcome:
    """Simple interest over whole calendar months (day of month ignored)."""
    if start > end:
        return 0.0, [_range_warning(start, end)]
    months = whole_months_between(start, end)
    return months * policy.monthly_rate, []


async def reference_rate_interest(
    policy: ReferenceRateInterest,
    start: date,
    end: date,
    fetch: IndexFetcher,
) -> InterestOutcome:
    """Compound the monthly reference rate and keep only the interest portion."""
    if start > end:
        return 0.0, [_range_warning(start, end)]
    rates = await fetch(policy.rate_index, start, end)
    return compounded_percentage(rates), []


async def real_rate_interest(
    policy: RealRateInterest,
    start: date,
    end: date,
    fetch: IndexFetcher,
) -> InterestOutcome:
    """
    Real interest by Fisher's equation, month by month:

        real_factor = (1 + nominal/100) / (1 + inflation/100)

    Months without an inflation figure count as zero inflation. A negative
    accumulated real rate is not awarded, so the result is floored at zero.
    """
    if start > end:
        return 0.0, [_range_warning(start, end)]

    nominal, inflation = await asyncio.gather(
        fetch(policy.nominal_index, start, end),
        fetch(policy.inflation_index, start, end),
    )

    factor = 1.0
    for _, nominal_value, inflation_value in pair_by_month(nominal, inflation):
        factor *= rate_factor(nominal_value) / rate_factor(inflation_value)

    return max(0.0, factor - 1), []


async def interest_percentage(policy, start: date, end: date, fetch: IndexFetcher) -> InterestOutcome:
    """Dispatch to the evaluation function of the given policy variant."""
    if isinstance(policy, FixedMonthlyInterest):
        return fixed_monthly_interest(policy, start, end)
    if isinstance(policy, ReferenceRateInterest):
        return await reference_rate_interest(policy, start, end, fetch)
    if isinstance(policy, RealRateInterest):
        return await real_rate_interest(policy, start, end, fetch)
    raise TypeError(f"unsupported interest policy: {type(policy).__name__}")
