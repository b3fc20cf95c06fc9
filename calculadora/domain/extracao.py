"""
Normalization of the structured record returned by document extraction.

The extraction itself is an external step; this module only turns its JSON
output into typed claimants and case dates. Records may mix the split shape
(``danoMaterial``/``danoMoral``) with the legacy ``valorPrincipal`` field;
when both are present the split shape wins.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from calculadora.core.datas import normalize_date_br
from calculadora.errors import ExtractionFormatError
from calculadora.schemas.calculo import (
    CaseDates,
    Claimant,
    FixedMonthlyInterest,
    InterestPolicy,
    InterestStartRule,
    RealRateInterest,
    ReferenceRateInterest,
    SplitClaim,
    SubClaim,
    UnifiedClaim,
)
from calculadora.schemas.indices import DEFAULT_INDEX, IndexType

logger = logging.getLogger(__name__)

_INDEX_VALUES = {index_type.value for index_type in IndexType}

_POLICIES = {
    "1_PORCENTO": FixedMonthlyInterest,
    "SELIC": ReferenceRateInterest,
    "SELIC_MENOS_IPCA": RealRateInterest,
}


class ExtractedCase(BaseModel):
    claimants: List[Claimant] = Field(default_factory=list)
    case_dates: CaseDates = Field(default_factory=CaseDates)
    court: Optional[str] = None
    case_number: Optional[str] = None
    court_division: Optional[str] = None
    # record-level defaults; None when the record names no known value
    index_type: Optional[IndexType] = None
    interest_policy: Optional[InterestPolicy] = None


def strip_code_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def parse_extraction_response(text: str) -> Dict[str, Any]:
    try:
        parsed = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as exc:
        logger.error(f"[Extracao] Resposta não é JSON: {text[:200]!r}")
        raise ExtractionFormatError("Não foi possível extrair dados do documento") from exc
    if not isinstance(parsed, dict):
        raise ExtractionFormatError("Não foi possível extrair dados do documento")
    return parsed


def parse_amount(value: Any) -> float:
    """Numbers pass through; strings accept pt-BR formatting ("R$ 1.234,56")."""
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        cleaned = value.strip()
        if "," in cleaned:
            cleaned = cleaned.replace(".", "").replace(",", ".")
        cleaned = re.sub(r"[^\d.-]", "", cleaned)
        try:
            return float(cleaned)
        except ValueError:
            return 0.0
    return 0.0


def parse_index(value: Any) -> IndexType:
    try:
        return IndexType(value)
    except ValueError:
        return DEFAULT_INDEX


def _is_known(value: Any, known) -> bool:
    return isinstance(value, str) and value in known


def parse_policy(value: Any):
    policy_cls = _POLICIES[value] if _is_known(value, _POLICIES) else FixedMonthlyInterest
    return policy_cls()


def parse_subclaim(raw: Any) -> Optional[SubClaim]:
    if not isinstance(raw, dict):
        return None
    principal = parse_amount(raw.get("valor"))
    if principal <= 0:
        return None
    return SubClaim(
        principal=principal,
        correction_start=normalize_date_br(raw.get("dataInicioCorrecao")),
        index_type=parse_index(raw.get("indiceCorrecao")),
        interest_start=normalize_date_br(raw.get("dataInicioJuros")),
        interest_policy=parse_policy(raw.get("tipoJuros")),
    )


def parse_claimant(raw: Dict[str, Any], position: int, defaults: Dict[str, Any]) -> Claimant:
    material = parse_subclaim(raw.get("danoMaterial"))
    moral = parse_subclaim(raw.get("danoMoral"))

    if material is not None or moral is not None:
        claim = SplitClaim(material=material, moral=moral)
    else:
        claim = UnifiedClaim(
            principal=max(0.0, parse_amount(raw.get("valorPrincipal"))),
            index_type=parse_index(defaults.get("indiceCorrecao")),
            interest_policy=parse_policy(defaults.get("tipoJuros")),
        )

    return Claimant(
        id=f"autor-{position}",
        name=str(raw.get("nome") or ""),
        cpf=raw.get("cpf") or None,
        claim=claim,
    )


def normalize_extraction(record: Dict[str, Any]) -> ExtractedCase:
    """Typed case from an extraction record; empty or bad values become None."""
    claimants = [
        parse_claimant(raw, position, record)
        for position, raw in enumerate(record.get("autores") or [], start=1)
        if isinstance(raw, dict)
    ]

    index_raw = record.get("indiceCorrecao")
    policy_raw = record.get("tipoJuros")

    case_dates = CaseDates(
        filing_date=normalize_date_br(record.get("dataAjuizamento")),
        judgment_date=normalize_date_br(record.get("dataSentenca")),
        # legacy "dataBase" stands in for a missing citation date
        citation_date=normalize_date_br(record.get("dataCitacao"))
        or normalize_date_br(record.get("dataBase")),
        event_date=normalize_date_br(record.get("dataEventoDanoso")),
        interest_start_rule=InterestStartRule.CITACAO,
    )

    return ExtractedCase(
        claimants=claimants,
        case_dates=case_dates,
        court=record.get("tribunal") or None,
        case_number=record.get("numeroProcesso") or None,
        court_division=record.get("vara") or None,
        index_type=parse_index(index_raw) if _is_known(index_raw, _INDEX_VALUES) else None,
        interest_policy=parse_policy(policy_raw) if _is_known(policy_raw, _POLICIES) else None,
    )
