"""
Interest summary tests: category view vs bank view, never summed together.
"""
from __future__ import annotations

from taxgenie.calculator.interest import summarize_interest
from taxgenie.inputs.schemas import InterestSummaryInput


def _summary(interest: dict, bank_entries: list[dict]) -> InterestSummaryInput:
    return InterestSummaryInput.model_validate(
        {"fiscalYear": "2024-25", "interest": interest, "bankEntries": bank_entries}
    )


def test_totals_come_from_separate_views() -> None:
    result = summarize_interest(
        _summary(
            {"savings": 20_000, "fd": 50_000},
            [
                {"bankName": "Bank A", "interest": 30_000, "tdsDeducted": 2_000},
                {"bankName": "Bank B", "interest": 40_000, "tdsDeducted": 3_000},
            ],
        )
    )
    assert result.total_interest == 70_000       # categories only
    assert result.total_tds == 5_000             # banks only
    assert result.validation.bank_interest_sum == 70_000
    assert result.validation.interest_mismatch is False


def test_mismatch_flagged_beyond_one_rupee() -> None:
    result = summarize_interest(
        _summary(
            {"savings": 20_000, "fd": 50_000},
            [
                {"bankName": "Bank A", "interest": 30_000, "tdsDeducted": 2_000},
                {"bankName": "Bank B", "interest": 35_000, "tdsDeducted": 3_000},
            ],
        )
    )
    assert result.total_interest == 70_000
    assert result.validation.difference == -5_000
    assert result.validation.interest_mismatch is True


def test_one_rupee_difference_is_tolerated() -> None:
    result = summarize_interest(
        _summary({"fd": 10_000}, [{"bankName": "Bank A", "interest": 10_001, "tdsDeducted": 0}])
    )
    assert result.validation.interest_mismatch is False


def test_no_bank_entries_flags_mismatch() -> None:
    result = summarize_interest(_summary({"savings": 3_000}, []))
    assert result.total_interest == 3_000
    assert result.total_tds == 0
    assert result.validation.bank_interest_sum == 0
    assert result.validation.difference == -3_000
    assert result.validation.interest_mismatch is True
    assert result.breakdown.bank_summary == []


def test_no_entries_and_no_interest_is_consistent() -> None:
    result = summarize_interest(_summary({}, []))
    assert result.total_interest == 0
    assert result.validation.interest_mismatch is False


def test_currency_strings_and_nulls() -> None:
    result = summarize_interest(
        _summary(
            {"savings": "₹1,500", "fd": "₹2,500", "rd": None, "other": ""},
            [{"bankName": "Bank Z", "interest": "₹4,000", "tdsDeducted": None}],
        )
    )
    assert result.total_interest == 4_000
    assert result.total_tds == 0
    assert result.breakdown.category_interest == {
        "savings": 1_500, "fd": 2_500, "rd": 0, "bonds": 0, "other": 0,
    }


def test_json_shape_uses_camel_case() -> None:
    result = summarize_interest(
        _summary({"savings": 1_000}, [{"bankName": "Test Bank", "interest": 1_000, "tdsDeducted": 100}])
    )
    body = result.model_dump(mode="json", by_alias=True)
    assert body["totalTDS"] == 100
    assert body["breakdown"]["bankSummary"] == [
        {"bankName": "Test Bank", "interest": 1_000, "tdsDeducted": 100}
    ]
    assert set(body["validation"]) == {
        "categoryInterestSum", "bankInterestSum", "difference", "interestMismatch",
    }
