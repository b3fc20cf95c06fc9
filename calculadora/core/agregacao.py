"""Batch calculation across claimants and case-level totals."""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Iterable, List, Optional, Sequence

from calculadora.core.calculo import calculate_prepared
from calculadora.core.datas import format_date_br
from calculadora.core.juros import IndexFetcher
from calculadora.domain.preparacao import PreparedClaimant, prepare_batch
from calculadora.schemas.calculo import CaseDates, Claimant, ClaimantResult, Totals

logger = logging.getLogger(__name__)


async def calculate_prepared_batch(
    prepared: Sequence[PreparedClaimant],
    fetch: IndexFetcher,
    concurrency: int = 4,
) -> List[ClaimantResult]:
    """
    Run every prepared claimant, at most ``concurrency`` at a time.

    Claimants share no state, so order of completion does not matter; results
    come back in input order. Fail-fast: the first error cancels the
    remaining claimants and propagates.
    """
    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def run(item: PreparedClaimant) -> ClaimantResult:
        async with semaphore:
            return await calculate_prepared(item, fetch)

    tasks = [asyncio.ensure_future(run(item)) for item in prepared]
    try:
        return list(await asyncio.gather(*tasks))
    except Exception:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def calculate_batch(
    claimants: Iterable[Claimant],
    calculation_date: date,
    fetch: IndexFetcher,
    case_dates: Optional[CaseDates] = None,
    concurrency: int = 4,
) -> List[ClaimantResult]:
    """Filter, validate and calculate a set of claimants."""
    prepared = prepare_batch(claimants, calculation_date, case_dates)
    logger.info(
        f"[Calculo] Calculando {len(prepared)} autor(es) até {format_date_br(calculation_date)}"
    )
    results = await calculate_prepared_batch(prepared, fetch, concurrency)
    logger.info(f"[Calculo] Concluído: total geral {sum(r.total for r in results):.2f}")
    return results


def compute_totals(results: Iterable[ClaimantResult]) -> Totals:
    principal = corrected = interest = total = material = moral = 0.0
    for result in results:
        principal += result.principal
        corrected += result.corrected
        interest += result.interest
        total += result.total
        if result.material is not None:
            material += result.material.total
        if result.moral is not None:
            moral += result.moral.total
    return Totals(
        principal=principal,
        corrected=corrected,
        interest=interest,
        total=total,
        material=material,
        moral=moral,
    )
