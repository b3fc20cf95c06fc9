"""Data contracts for correction and interest calculations."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from calculadora.schemas.indices import DEFAULT_INDEX, DateBR, IndexType


# -----------------------------
# Interest policies
# -----------------------------


class FixedMonthlyInterest(BaseModel):
    """Simple interest: ``monthly_rate`` per whole calendar month (1% a.m.)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["1_PORCENTO"] = "1_PORCENTO"
    monthly_rate: float = Field(0.01, ge=0)


class ReferenceRateInterest(BaseModel):
    """Compounded reference rate (Selic) between the interest start and the calculation date."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["SELIC"] = "SELIC"
    rate_index: IndexType = IndexType.SELIC


class RealRateInterest(BaseModel):
    """Compounded real rate: nominal rate deflated by inflation (Fisher), floored at zero."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["SELIC_MENOS_IPCA"] = "SELIC_MENOS_IPCA"
    nominal_index: IndexType = IndexType.SELIC
    inflation_index: IndexType = IndexType.IPCA


InterestPolicy = Annotated[
    Union[FixedMonthlyInterest, ReferenceRateInterest, RealRateInterest],
    Field(discriminator="kind"),
]

INTEREST_NAMES = {
    "1_PORCENTO": "1% ao mês",
    "SELIC": "Taxa Selic",
    "SELIC_MENOS_IPCA": "Selic - IPCA",
}


class InterestStartRule(str, Enum):
    CITACAO = "CITACAO"  # Art. 405 CC
    EVENTO_DANOSO = "EVENTO_DANOSO"  # Súmula 54 STJ


# -----------------------------
# Claimants
# -----------------------------


class CaseDates(BaseModel):
    """Procedural dates used as fallbacks when a claim does not carry its own."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    filing_date: Optional[DateBR] = None
    judgment_date: Optional[DateBR] = None
    citation_date: Optional[DateBR] = None
    event_date: Optional[DateBR] = None
    interest_start_rule: InterestStartRule = InterestStartRule.CITACAO


class SubClaim(BaseModel):
    """One independently parameterized portion of a claim (material or moral damages)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    principal: float = Field(..., gt=0)
    correction_start: Optional[DateBR] = None
    index_type: IndexType = DEFAULT_INDEX
    interest_start: Optional[DateBR] = None
    interest_policy: InterestPolicy = Field(default_factory=FixedMonthlyInterest)


class UnifiedClaim(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    mode: Literal["unified"] = "unified"
    principal: float = Field(0.0, ge=0)
    correction_start: Optional[DateBR] = None
    index_type: IndexType = DEFAULT_INDEX
    interest_start: Optional[DateBR] = None
    interest_policy: InterestPolicy = Field(default_factory=FixedMonthlyInterest)


class SplitClaim(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    mode: Literal["split"] = "split"
    material: Optional[SubClaim] = None
    moral: Optional[SubClaim] = None


Claim = Annotated[Union[UnifiedClaim, SplitClaim], Field(discriminator="mode")]


class Claimant(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    name: str = ""
    cpf: Optional[str] = None
    dates: Optional[CaseDates] = None
    claim: Claim = Field(default_factory=UnifiedClaim)


class SubClaimParameters(BaseModel):
    """Fully resolved input for a single sub-claim calculation."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    principal: float = Field(..., ge=0)
    correction_start: DateBR
    index_type: IndexType = DEFAULT_INDEX
    interest_start: DateBR
    interest_policy: InterestPolicy = Field(default_factory=FixedMonthlyInterest)
    calculation_date: DateBR


# -----------------------------
# Results
# -----------------------------


class MonthlyEntry(BaseModel):
    """Single row of the month-by-month correction breakdown."""

    model_config = ConfigDict(frozen=True)

    period: DateBR
    index_value: float
    cumulative_factor: float
    corrected_value: float
    # Interest is attributed to the final period only.
    interest_value: float = 0.0


class SubClaimResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    principal: float
    corrected: float
    interest: float
    total: float
    accumulation_factor: float
    interest_percentage: float
    breakdown: List[MonthlyEntry] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class ClaimantResult(BaseModel):
    """Consolidated figures for one claimant plus the underlying sub-claim results."""

    model_config = ConfigDict(frozen=True)

    claimant: Claimant
    principal: float
    corrected: float
    interest: float
    total: float
    accumulation_factor: float
    interest_percentage: float
    unified: Optional[SubClaimResult] = None
    material: Optional[SubClaimResult] = None
    moral: Optional[SubClaimResult] = None
    warnings: List[str] = Field(default_factory=list)


class Totals(BaseModel):
    model_config = ConfigDict(frozen=True)

    principal: float = 0.0
    corrected: float = 0.0
    interest: float = 0.0
    total: float = 0.0
    material: float = 0.0
    moral: float = 0.0


# -----------------------------
# API payloads
# -----------------------------


class CalculationRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    claimants: List[Claimant] = Field(..., min_length=1)
    case_dates: CaseDates = Field(default_factory=CaseDates)
    calculation_date: DateBR
    concurrency: Optional[int] = Field(default=None, ge=1, le=16)


class BatchResponse(BaseModel):
    results: List[ClaimantResult]
    totals: Totals
    warnings: List[str] = Field(default_factory=list)
