from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from calculadora.domain.preparacao import (
    effective_dates,
    filter_valid_claimants,
    is_valid_claimant,
    prepare_batch,
    prepare_claimant,
)
from calculadora.errors import ClaimValidationError
from calculadora.schemas.calculo import (
    CaseDates,
    Claimant,
    InterestStartRule,
    SplitClaim,
    SubClaim,
    UnifiedClaim,
)

CALC_DATE = date(2024, 1, 1)

CASE_DATES = CaseDates(
    filing_date="10/02/2021",
    judgment_date="20/08/2022",
    citation_date="15/04/2021",
    event_date="05/01/2021",
)


def test_unified_zero_principal_is_filtered_out():
    empty = Claimant(id="autor-1", claim=UnifiedClaim(principal=0))
    owed = Claimant(id="autor-2", claim=UnifiedClaim(principal=100))
    split = Claimant(id="autor-3", claim=SplitClaim(moral=SubClaim(principal=50)))
    empty_split = Claimant(id="autor-4", claim=SplitClaim())

    assert not is_valid_claimant(empty)
    assert not is_valid_claimant(empty_split)
    assert filter_valid_claimants([empty, owed, split, empty_split]) == [owed, split]


def test_subclaim_requires_positive_principal():
    with pytest.raises(ValidationError):
        SubClaim(principal=0)


def test_claim_mode_is_selected_by_tag():
    claimant = Claimant.model_validate(
        {"id": "a", "claim": {"mode": "split", "moral": {"principal": 10}}}
    )
    assert isinstance(claimant.claim, SplitClaim)

    with pytest.raises(ValidationError):
        Claimant.model_validate({"id": "a", "claim": {"mode": "legacy", "principal": 10}})


def test_material_and_moral_defaults():
    claimant = Claimant(
        id="autor-1",
        claim=SplitClaim(material=SubClaim(principal=5000), moral=SubClaim(principal=3000)),
    )

    result = prepare_claimant(claimant, CALC_DATE, CASE_DATES)

    assert result.errors == []
    prepared = result.prepared
    assert prepared.material.correction_start == date(2021, 2, 10)
    assert prepared.moral.correction_start == date(2022, 8, 20)
    assert prepared.material.interest_start == date(2021, 4, 15)
    assert prepared.moral.interest_start == date(2021, 4, 15)
    assert prepared.material.calculation_date == CALC_DATE
    assert len(prepared.notes) == 4


def test_explicit_subclaim_dates_win_over_defaults():
    claimant = Claimant(
        id="autor-1",
        claim=SplitClaim(
            material=SubClaim(principal=5000, correction_start="01/01/2020", interest_start="01/06/2020"),
        ),
    )

    prepared = prepare_claimant(claimant, CALC_DATE, CASE_DATES).prepared

    assert prepared.material.correction_start == date(2020, 1, 1)
    assert prepared.material.interest_start == date(2020, 6, 1)
    assert prepared.moral is None
    assert prepared.notes == []


def test_event_rule_uses_event_date_for_interest():
    dates = CASE_DATES.model_copy(update={"interest_start_rule": InterestStartRule.EVENTO_DANOSO})
    claimant = Claimant(id="autor-1", claim=UnifiedClaim(principal=100))

    prepared = prepare_claimant(claimant, CALC_DATE, dates).prepared

    assert prepared.unified.interest_start == date(2021, 1, 5)
    assert prepared.unified.correction_start == date(2021, 2, 10)


def test_unified_correction_falls_back_to_citation_without_filing_date():
    dates = CaseDates(citation_date="15/04/2021")
    claimant = Claimant(id="autor-1", claim=UnifiedClaim(principal=100))

    prepared = prepare_claimant(claimant, CALC_DATE, dates).prepared

    assert prepared.unified.correction_start == date(2021, 4, 15)


def test_effective_dates_merge_field_by_field():
    claimant = Claimant(id="autor-1", dates=CaseDates(citation_date="01/01/2022"))
    merged = effective_dates(CASE_DATES, claimant)

    assert merged.citation_date == date(2022, 1, 1)
    assert merged.filing_date == CASE_DATES.filing_date


def test_claimant_dates_keep_case_interest_rule_unless_set():
    case_dates = CASE_DATES.model_copy(update={"interest_start_rule": InterestStartRule.EVENTO_DANOSO})

    only_judgment = Claimant(id="autor-1", dates=CaseDates(judgment_date="01/09/2022"))
    assert effective_dates(case_dates, only_judgment).interest_start_rule == InterestStartRule.EVENTO_DANOSO

    explicit = Claimant(id="autor-2", dates=CaseDates(interest_start_rule=InterestStartRule.CITACAO))
    assert effective_dates(case_dates, explicit).interest_start_rule == InterestStartRule.CITACAO

    moral = Claimant(
        id="autor-3",
        dates=CaseDates(judgment_date="01/09/2022"),
        claim=SplitClaim(moral=SubClaim(principal=1000)),
    )
    prepared = prepare_claimant(moral, CALC_DATE, case_dates).prepared
    assert prepared.moral.interest_start == date(2021, 1, 5)
    assert prepared.moral.correction_start == date(2022, 9, 1)


def test_prepare_batch_reports_every_problem_with_claimant_name():
    claimants = [
        Claimant(id="autor-1", name="Ana", claim=SplitClaim(material=SubClaim(principal=10))),
        Claimant(id="autor-2", name="Bruno", claim=SplitClaim(moral=SubClaim(principal=10))),
    ]
    dates = CaseDates(citation_date="01/01/2021")

    with pytest.raises(ClaimValidationError) as excinfo:
        prepare_batch(claimants, CALC_DATE, dates)

    assert excinfo.value.errors == [
        "Ana: Informe a data de ajuizamento para correção do dano material",
        "Bruno: Informe a data da sentença para correção do dano moral",
    ]


def test_prepare_batch_without_owed_amounts_fails():
    with pytest.raises(ClaimValidationError) as excinfo:
        prepare_batch([Claimant(id="autor-1")], CALC_DATE, CASE_DATES)
    assert excinfo.value.errors == ["Informe pelo menos um autor com valor"]


def test_prepare_batch_skips_claimants_with_nothing_owed():
    claimants = [
        Claimant(id="autor-1", claim=UnifiedClaim(principal=0)),
        Claimant(id="autor-2", claim=UnifiedClaim(principal=100)),
    ]
    prepared = prepare_batch(claimants, CALC_DATE, CASE_DATES)
    assert [p.claimant.id for p in prepared] == ["autor-2"]
