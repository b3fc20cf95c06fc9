from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional, Union

from calculadora.core.datas import format_date_br
from calculadora.errors import ClaimValidationError
from calculadora.schemas.calculo import (
    CaseDates,
    Claimant,
    InterestStartRule,
    SplitClaim,
    SubClaim,
    SubClaimParameters,
    UnifiedClaim,
)

MATERIAL = "dano material"
MORAL = "dano moral"


@dataclass
class PreparedClaimant:
    claimant: Claimant
    unified: Optional[SubClaimParameters] = None
    material: Optional[SubClaimParameters] = None
    moral: Optional[SubClaimParameters] = None
    notes: List[str] = field(default_factory=list)

    @property
    def is_split(self) -> bool:
        return isinstance(self.claimant.claim, SplitClaim)


@dataclass
class PreparationResult:
    prepared: Optional[PreparedClaimant]
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def is_valid_claimant(claimant: Claimant) -> bool:
    """A claimant takes part in the calculation only if some amount is owed."""
    claim = claimant.claim
    if isinstance(claim, SplitClaim):
        return any(sub is not None and sub.principal > 0 for sub in (claim.material, claim.moral))
    return claim.principal > 0


def filter_valid_claimants(claimants: Iterable[Claimant]) -> List[Claimant]:
    return [claimant for claimant in claimants if is_valid_claimant(claimant)]


def effective_dates(case_dates: Optional[CaseDates], claimant: Claimant) -> CaseDates:
    """Claimant-level dates override case-level dates field by field."""
    base = case_dates or CaseDates()
    own = claimant.dates
    if own is None:
        return base
    return CaseDates(
        filing_date=own.filing_date or base.filing_date,
        judgment_date=own.judgment_date or base.judgment_date,
        citation_date=own.citation_date or base.citation_date,
        event_date=own.event_date or base.event_date,
        interest_start_rule=(
            own.interest_start_rule
            if "interest_start_rule" in own.model_fields_set
            else base.interest_start_rule
        ),
    )


def interest_fallback(dates: CaseDates) -> Optional[date]:
    if dates.interest_start_rule == InterestStartRule.EVENTO_DANOSO:
        return dates.event_date
    return dates.citation_date


def _interest_fallback_label(dates: CaseDates) -> str:
    if dates.interest_start_rule == InterestStartRule.EVENTO_DANOSO:
        return "data do evento danoso"
    return "data da citação"


def _resolve(
    label: str,
    principal: float,
    correction_start: Optional[date],
    correction_fallback: Optional[date],
    correction_fallback_label: str,
    interest_start: Optional[date],
    claim: Union[SubClaim, UnifiedClaim],
    dates: CaseDates,
    calculation_date: date,
    errors: List[str],
    warnings: List[str],
) -> Optional[SubClaimParameters]:
    correction = correction_start or correction_fallback
    interest = interest_start or interest_fallback(dates)

    if correction is None:
        errors.append(f"Informe a {correction_fallback_label} para correção do {label}")
    if interest is None:
        errors.append(f"Informe a {_interest_fallback_label(dates)} para os juros de mora do {label}")
    if correction is None or interest is None:
        return None

    if correction_start is None:
        warnings.append(
            f"Correção do {label} a partir da {correction_fallback_label} ({format_date_br(correction)})"
        )
    if interest_start is None:
        warnings.append(
            f"Juros de mora do {label} a partir da {_interest_fallback_label(dates)} "
            f"({format_date_br(interest)})"
        )

    return SubClaimParameters(
        principal=principal,
        correction_start=correction,
        index_type=claim.index_type,
        interest_start=interest,
        interest_policy=claim.interest_policy,
        calculation_date=calculation_date,
    )


def prepare_claimant(
    claimant: Claimant,
    calculation_date: date,
    case_dates: Optional[CaseDates] = None,
) -> PreparationResult:
    """
    Resolve every active sub-claim into fully dated engine parameters.

    Fallbacks, applied only when the claim does not carry its own date:
      - material damages correction: filing date
      - moral damages correction: judgment date (Súmula 362 STJ)
      - unified claim correction: filing date, then citation date
      - interest: citation date, or the tortious event date under
        ``InterestStartRule.EVENTO_DANOSO`` (Súmula 54 STJ)
    """
    dates = effective_dates(case_dates, claimant)
    errors: List[str] = []
    warnings: List[str] = []
    prepared = PreparedClaimant(claimant=claimant)
    claim = claimant.claim

    if isinstance(claim, SplitClaim):
        if claim.material is not None and claim.material.principal > 0:
            prepared.material = _resolve(
                MATERIAL,
                claim.material.principal,
                claim.material.correction_start,
                dates.filing_date,
                "data de ajuizamento",
                claim.material.interest_start,
                claim.material,
                dates,
                calculation_date,
                errors,
                warnings,
            )
        if claim.moral is not None and claim.moral.principal > 0:
            prepared.moral = _resolve(
                MORAL,
                claim.moral.principal,
                claim.moral.correction_start,
                dates.judgment_date,
                "data da sentença",
                claim.moral.interest_start,
                claim.moral,
                dates,
                calculation_date,
                errors,
                warnings,
            )
    elif isinstance(claim, UnifiedClaim):
        if claim.principal > 0:
            prepared.unified = _resolve(
                "valor principal",
                claim.principal,
                claim.correction_start,
                dates.filing_date or dates.citation_date,
                "data de ajuizamento ou da citação",
                claim.interest_start,
                claim,
                dates,
                calculation_date,
                errors,
                warnings,
            )
    else:
        raise TypeError(f"unsupported claim mode: {type(claim).__name__}")

    if errors:
        return PreparationResult(prepared=None, errors=errors, warnings=warnings)
    prepared.notes = list(warnings)
    return PreparationResult(prepared=prepared, errors=errors, warnings=warnings)


def prepare_batch(
    claimants: Iterable[Claimant],
    calculation_date: date,
    case_dates: Optional[CaseDates] = None,
) -> List[PreparedClaimant]:
    """
    Filter out claimants with nothing owed and validate the rest.

    Raises ``ClaimValidationError`` with every problem found, before any index
    is fetched.
    """
    valid = filter_valid_claimants(claimants)
    if not valid:
        raise ClaimValidationError(["Informe pelo menos um autor com valor"])

    prepared: List[PreparedClaimant] = []
    errors: List[str] = []
    for claimant in valid:
        result = prepare_claimant(claimant, calculation_date, case_dates)
        if result.errors:
            who = claimant.name or claimant.id
            errors.extend(f"{who}: {message}" for message in result.errors)
        elif result.prepared is not None:
            prepared.append(result.prepared)

    if errors:
        raise ClaimValidationError(errors)
    return prepared
