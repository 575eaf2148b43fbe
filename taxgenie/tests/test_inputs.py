"""
Input contract and warning tests.
"""
from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from taxgenie.inputs.schemas import TaxInput, parse_money
from taxgenie.inputs.validator import collect_cap_warnings, collect_regime_warnings
from taxgenie.tests.profiles import make_tax_input


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("₹1,50,000", Decimal("150000")),
        ("$ 2,500.50", Decimal("2500.50")),
        ("", Decimal(0)),
        (None, Decimal(0)),
        (0.1, Decimal("0.1")),
        (42, 42),
    ],
)
def test_parse_money(raw, expected) -> None:
    assert parse_money(raw) == expected


def test_unparsable_money_passed_through_for_pydantic() -> None:
    assert parse_money("abc") == "abc"


def test_camel_case_payload_accepted() -> None:
    tax_input = TaxInput.model_validate({
        "assessmentYear": "2024-25",
        "regime": "old",
        "ageGroup": "superSenior",
        "incomes": {"salary": "₹12,00,000", "capitalGains": {"shortTerm": 1000}},
        "deductions": {"section80C": "1,50,000", "section80TTA": 5000},
        "tdsAndTcs": {"advanceTax": 10_000},
    })
    assert tax_input.incomes.salary == Decimal("1200000")
    assert tax_input.incomes.capital_gains.short_term == Decimal("1000")
    assert tax_input.deductions.section_80c == Decimal("150000")
    assert tax_input.tds_and_tcs.advance_tax == Decimal("10000")


def test_negative_amount_rejected() -> None:
    with pytest.raises(ValidationError):
        TaxInput.model_validate({"assessmentYear": "2024-25", "incomes": {"salary": -1}})


def test_non_numeric_amount_rejected() -> None:
    with pytest.raises(ValidationError):
        TaxInput.model_validate({"assessmentYear": "2024-25", "incomes": {"salary": "lots"}})


def test_unknown_field_rejected() -> None:
    with pytest.raises(ValidationError):
        TaxInput.model_validate({"assessmentYear": "2024-25", "bonus": 1})


def test_input_is_frozen() -> None:
    tax_input = make_tax_input("2024-25", salary=100)
    with pytest.raises(ValidationError):
        tax_input.regime = "old"


# ===========================================================================
# Warnings
# ===========================================================================

def test_cap_warnings_for_each_over_cap_claim(rule_book) -> None:
    tax_input = make_tax_input(
        "2024-25", "old", "general",
        salary=1_000_000, section_80c=200_000, section_80d=30_000,
        section_80tta=15_000, section_80ccd=60_000,
    )
    warnings = collect_cap_warnings(tax_input, rule_book.get("2024-25"))
    assert len(warnings) == 4
    assert warnings[0].startswith("deductions.section80C")
    assert "Section 80TTA" in warnings[2]


def test_senior_caps_are_higher(rule_book) -> None:
    tax_input = make_tax_input(
        "2024-25", "old", "senior", salary=1_000_000, section_80d=30_000, section_80tta=15_000,
    )
    assert collect_cap_warnings(tax_input, rule_book.get("2024-25")) == []


def test_claims_within_caps_have_no_warnings(rule_book) -> None:
    tax_input = make_tax_input("2024-25", "old", salary=1_000_000, section_80c=150_000)
    assert collect_cap_warnings(tax_input, rule_book.get("2024-25")) == []


def test_new_regime_warns_that_deductions_are_ignored() -> None:
    assert collect_regime_warnings(make_tax_input("2024-25", "new", salary=1, section_80c=1)) != []
    assert collect_regime_warnings(make_tax_input("2024-25", "new", salary=1)) == []
    assert collect_regime_warnings(make_tax_input("2024-25", "old", section_80c=1)) == []
