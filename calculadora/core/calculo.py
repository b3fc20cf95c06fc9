"""Monetary correction and moratory interest engine.

    total     = corrected + interest
    corrected = principal x accumulation factor
    factor    = product of (1 + monthly index / 100)
    interest  = corrected x interest percentage
"""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from calculadora.core.datas import format_date_br
from calculadora.core.juros import IndexFetcher, interest_percentage
from calculadora.core.series import accumulation_factor, monthly_breakdown
from calculadora.domain.preparacao import PreparedClaimant, prepare_claimant
from calculadora.errors import ClaimValidationError, InvalidDateRange
from calculadora.schemas.calculo import (
    CaseDates,
    Claimant,
    ClaimantResult,
    SubClaimParameters,
    SubClaimResult,
)
from calculadora.schemas.indices import IndexPoint

logger = logging.getLogger(__name__)


async def calculate_subclaim(params: SubClaimParameters, fetch: IndexFetcher) -> SubClaimResult:
    """Correct one principal and apply its interest policy up to the calculation date."""
    warnings: List[str] = []
    end = params.calculation_date

    series: List[IndexPoint] = []
    if params.correction_start > end:
        warnings.append(str(InvalidDateRange(params.correction_start, end, "correção monetária")))
        logger.warning(
            f"[Calculo] Início da correção {format_date_br(params.correction_start)} posterior ao "
            f"cálculo {format_date_br(end)}; sem correção"
        )
    else:
        series = list(await fetch(params.index_type, params.correction_start, end))

    factor = accumulation_factor(series)
    corrected = params.principal * factor

    percentage, interest_warnings = await interest_percentage(
        params.interest_policy, params.interest_start, end, fetch
    )
    warnings.extend(interest_warnings)

    interest = corrected * percentage
    total = corrected + interest

    return SubClaimResult(
        principal=params.principal,
        corrected=corrected,
        interest=interest,
        total=total,
        accumulation_factor=factor,
        interest_percentage=percentage,
        breakdown=monthly_breakdown(series, params.principal, interest),
        warnings=warnings,
    )


def consolidate(
    claimant: Claimant,
    parts: List[SubClaimResult],
    warnings: Optional[List[str]] = None,
    **named: Optional[SubClaimResult],
) -> ClaimantResult:
    """
    Sum sub-claim results into one claimant result.

    The aggregate factor and percentage are derived from the sums; they do
    not correspond to any single index series.
    """
    principal = sum(part.principal for part in parts)
    corrected = sum(part.corrected for part in parts)
    interest = sum(part.interest for part in parts)
    total = sum(part.total for part in parts)

    all_warnings = list(warnings or [])
    for part in parts:
        all_warnings.extend(part.warnings)

    return ClaimantResult(
        claimant=claimant,
        principal=principal,
        corrected=corrected,
        interest=interest,
        total=total,
        accumulation_factor=corrected / principal if principal > 0 else 1.0,
        interest_percentage=interest / corrected if corrected > 0 else 0.0,
        warnings=all_warnings,
        **named,
    )


async def calculate_prepared(prepared: PreparedClaimant, fetch: IndexFetcher) -> ClaimantResult:
    warnings = prepared.notes
    if prepared.is_split:
        material = (
            await calculate_subclaim(prepared.material, fetch) if prepared.material is not None else None
        )
        moral = await calculate_subclaim(prepared.moral, fetch) if prepared.moral is not None else None
        parts = [part for part in (material, moral) if part is not None]
        return consolidate(prepared.claimant, parts, warnings, material=material, moral=moral)

    unified = await calculate_subclaim(prepared.unified, fetch) if prepared.unified is not None else None
    parts = [unified] if unified is not None else []
    return consolidate(prepared.claimant, parts, warnings, unified=unified)


async def calculate_claimant(
    claimant: Claimant,
    calculation_date: date,
    fetch: IndexFetcher,
    case_dates: Optional[CaseDates] = None,
) -> ClaimantResult:
    """Resolve default dates for one claimant, validate, and run the engine."""
    preparation = prepare_claimant(claimant, calculation_date, case_dates)
    if preparation.errors or preparation.prepared is None:
        raise ClaimValidationError(preparation.errors)
    return await calculate_prepared(preparation.prepared, fetch)
