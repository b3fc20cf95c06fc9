from __future__ import annotations

from datetime import date

import pytest

from calculadora.domain.extracao import (
    normalize_extraction,
    parse_amount,
    parse_extraction_response,
    strip_code_fences,
)
from calculadora.errors import ExtractionFormatError
from calculadora.schemas.calculo import (
    FixedMonthlyInterest,
    InterestStartRule,
    RealRateInterest,
    ReferenceRateInterest,
    SplitClaim,
    UnifiedClaim,
)
from calculadora.schemas.indices import IndexType


def test_code_fences_are_stripped():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('  {"a": 1} ') == '{"a": 1}'


def test_response_must_be_a_json_object():
    assert parse_extraction_response('```json\n{"autores": []}\n```') == {"autores": []}
    with pytest.raises(ExtractionFormatError):
        parse_extraction_response("não encontrei o processo")
    with pytest.raises(ExtractionFormatError):
        parse_extraction_response("[1, 2]")


@pytest.mark.parametrize(
    "raw,expected",
    [
        (1500, 1500.0),
        (1234.5, 1234.5),
        ("R$ 1.234,56", 1234.56),
        ("10000", 10000.0),
        ("abc", 0.0),
        (None, 0.0),
    ],
)
def test_amounts_accept_brazilian_formatting(raw, expected):
    assert parse_amount(raw) == expected


def test_split_record_is_normalized():
    record = {
        "numeroProcesso": "0801234-56.2021.8.12.0001",
        "tribunal": "TJMS",
        "vara": "2ª Vara Cível",
        "dataAjuizamento": "10/02/2021",
        "dataCitacao": "03/2021",
        "dataSentenca": "2022-08-20",
        "autores": [
            {
                "nome": "Maria",
                "cpf": "123.456.789-00",
                "valorPrincipal": 99999,
                "danoMaterial": {
                    "valor": "5.000,00",
                    "indiceCorrecao": "INPC",
                    "tipoJuros": "SELIC_MENOS_IPCA",
                    "dataInicioCorrecao": "01/01/2021",
                },
                "danoMoral": {"valor": 3000},
            }
        ],
    }

    case = normalize_extraction(record)

    assert case.case_number == "0801234-56.2021.8.12.0001"
    assert case.court == "TJMS"
    assert case.case_dates.filing_date == date(2021, 2, 10)
    assert case.case_dates.citation_date == date(2021, 3, 1)
    assert case.case_dates.judgment_date == date(2022, 8, 20)
    assert case.case_dates.interest_start_rule == InterestStartRule.CITACAO
    assert case.index_type is None
    assert case.interest_policy is None

    claimant = case.claimants[0]
    assert claimant.id == "autor-1"
    assert claimant.cpf == "123.456.789-00"
    assert isinstance(claimant.claim, SplitClaim)
    assert claimant.claim.material.principal == 5000.0
    assert claimant.claim.material.index_type == IndexType.INPC
    assert claimant.claim.material.interest_policy == RealRateInterest()
    assert claimant.claim.material.correction_start == date(2021, 1, 1)
    assert claimant.claim.moral.principal == 3000.0
    assert claimant.claim.moral.index_type == IndexType.IPCA
    assert claimant.claim.moral.interest_policy == FixedMonthlyInterest()


def test_legacy_record_uses_record_level_defaults():
    record = {
        "dataBase": "15/04/2021",
        "indiceCorrecao": "IGP-M",
        "tipoJuros": "desconhecido",
        "autores": [{"nome": "Ana", "valorPrincipal": "2.500,50"}, {"nome": "Sem valor"}, "lixo"],
    }

    case = normalize_extraction(record)

    assert case.case_dates.citation_date == date(2021, 4, 15)
    assert [c.id for c in case.claimants] == ["autor-1", "autor-2"]
    first = case.claimants[0].claim
    assert isinstance(first, UnifiedClaim)
    assert first.principal == 2500.5
    assert first.index_type == IndexType.IGPM
    assert first.interest_policy == FixedMonthlyInterest()
    assert case.claimants[1].claim.principal == 0.0
    assert case.index_type == IndexType.IGPM
    assert case.interest_policy is None


def test_zero_valued_subclaims_fall_back_to_unified():
    record = {"autores": [{"nome": "Ana", "valorPrincipal": 100, "danoMoral": {"valor": 0}}]}
    claim = normalize_extraction(record).claimants[0].claim
    assert isinstance(claim, UnifiedClaim)
    assert claim.principal == 100.0


def test_unparseable_dates_become_none():
    case = normalize_extraction({"dataAjuizamento": "ontem", "dataCitacao": "", "autores": []})
    assert case.case_dates.filing_date is None
    assert case.case_dates.citation_date is None
    assert case.claimants == []


def test_record_level_index_and_policy_are_exposed():
    case = normalize_extraction(
        {"indiceCorrecao": "INPC", "tipoJuros": "SELIC", "autores": [{"valorPrincipal": 100}]}
    )

    assert case.index_type == IndexType.INPC
    assert case.interest_policy == ReferenceRateInterest()
    assert case.claimants[0].claim.interest_policy == ReferenceRateInterest()


def test_non_string_index_and_policy_are_ignored():
    case = normalize_extraction({"indiceCorrecao": ["IPCA"], "tipoJuros": {"x": 1}, "autores": []})

    assert case.index_type is None
    assert case.interest_policy is None
