"""
schemas.py: input contracts (Pydantic v2) for the tax engine.

Defines:
  - Regime, AgeGroup, AssetType enums
  - Money  (non-negative Decimal rupees; accepts "₹1,50,000"-style strings)
  - TaxInput and its blocks (Incomes, Deductions, TaxesPaid)
  - CapitalGainsInput
  - InterestSummaryInput
  - ErrorDetail, ErrorBody, ErrorResponse  (cross-cutting error envelope)

JSON uses camelCase (assessmentYear, tdsAndTcs, section80C ...). Python code
may use either the snake_case field names or the aliases.

Everything here is frozen: an input is never mutated after validation, so the
same object can be handed to both regime calculations.
"""
from __future__ import annotations

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Regime(str, Enum):
    old = "old"
    new = "new"


class AgeGroup(str, Enum):
    general = "general"            # below 60
    senior = "senior"              # 60 to 80
    super_senior = "superSenior"   # above 80


class AssetType(str, Enum):
    equity = "equity"
    property = "property"
    other = "other"


# ---------------------------------------------------------------------------
# Money parsing
# ---------------------------------------------------------------------------

_CURRENCY_NOISE = re.compile(r"[₹$,\s]")


def parse_money(value: Any) -> Any:
    """
    Normalise a caller-supplied amount before Decimal validation.

    "₹1,50,000" → Decimal("150000"), None / "" → 0. Anything that is still not
    numeric after stripping is passed through so Pydantic reports it.
    Floats go through str() so 0.1 stays 0.1.
    """
    if value is None:
        return Decimal(0)
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, str):
        cleaned = _CURRENCY_NOISE.sub("", value)
        if cleaned == "":
            return Decimal(0)
        try:
            return Decimal(cleaned)
        except InvalidOperation:
            return value
    return value


Money = Annotated[Decimal, BeforeValidator(parse_money), Field(ge=0, allow_inf_nan=False)]


class InputModel(BaseModel):
    """Base for request payloads: camelCase aliases, no unknown keys, immutable."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )


# ---------------------------------------------------------------------------
# TaxInput
# ---------------------------------------------------------------------------

class CapitalGainsIncome(InputModel):
    short_term: Money = Decimal(0)
    long_term: Money = Decimal(0)


class Incomes(InputModel):
    """All annual income heads. `exempt` is subtracted from gross income in both regimes."""
    salary: Money = Decimal(0)
    interest: Money = Decimal(0)
    capital_gains: CapitalGainsIncome = Field(default_factory=CapitalGainsIncome)
    property: Money = Decimal(0)
    crypto: Money = Decimal(0)
    other: Money = Decimal(0)
    exempt: Money = Decimal(0)


class Deductions(InputModel):
    """
    Chapter VI-A claims as entered by the taxpayer (raw, before caps).

    The engine clamps each category to its statutory cap; amounts above a cap
    are truncated, not rejected. hra_exemption / lta_exemption are computed by
    the caller (Section 10 exemptions) and only count under the old regime.
    """
    section_80c: Money = Field(default=Decimal(0), alias="section80C")
    section_80d: Money = Field(default=Decimal(0), alias="section80D")
    section_80tta: Money = Field(default=Decimal(0), alias="section80TTA")
    section_80ccd: Money = Field(default=Decimal(0), alias="section80CCD")
    other: Money = Decimal(0)
    hra_exemption: Money = Decimal(0)
    lta_exemption: Money = Decimal(0)


class TaxesPaid(InputModel):
    """Already-paid taxes. Used only for refund / due, never for liability."""
    tds: Money = Decimal(0)
    tcs: Money = Decimal(0)
    advance_tax: Money = Decimal(0)


class TaxInput(InputModel):
    """
    Normalised input for one tax calculation.

    assessment_year + regime select exactly one rule table. For compare_regimes()
    the regime is only a display hint. Both regimes are always computed.
    """
    assessment_year: str = Field(..., min_length=7, max_length=7, examples=["2024-25"])
    regime: Regime = Regime.new
    age_group: AgeGroup = AgeGroup.general
    incomes: Incomes = Field(default_factory=Incomes)
    deductions: Deductions = Field(default_factory=Deductions)
    tds_and_tcs: TaxesPaid = Field(default_factory=TaxesPaid)


# ---------------------------------------------------------------------------
# CapitalGainsInput
# ---------------------------------------------------------------------------

class CapitalGainsInput(InputModel):
    """
    A single asset disposal.

    assessment_year is optional: when omitted, the rule set is picked from the
    financial year in which sale_date falls (FY 2023-24 sale → AY 2024-25).
    """
    asset_type: AssetType
    purchase_date: date
    sale_date: date
    purchase_price: Money
    sale_price: Money
    indexation_benefit: bool = False
    expenses: Money = Decimal(0)
    assessment_year: Optional[str] = Field(default=None, min_length=7, max_length=7)


# ---------------------------------------------------------------------------
# InterestSummaryInput
# ---------------------------------------------------------------------------

class InterestCategories(InputModel):
    savings: Money = Decimal(0)
    fd: Money = Decimal(0)
    rd: Money = Decimal(0)
    bonds: Money = Decimal(0)
    other: Money = Decimal(0)


class BankInterestEntry(InputModel):
    bank_name: str = ""
    interest: Money = Decimal(0)
    tds_deducted: Money = Decimal(0)


class InterestSummaryInput(InputModel):
    """
    Interest income entered twice: once per category, once per bank.
    The two views describe the same money and are never added together.
    """
    fiscal_year: str
    interest: InterestCategories = Field(default_factory=InterestCategories)
    bank_entries: List[BankInterestEntry] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Error response models: used by main.py exception handlers (cross-cutting)
# ---------------------------------------------------------------------------

class ErrorDetail(BaseModel):
    """Single field-level validation or business-rule error."""
    model_config = ConfigDict(extra="forbid")

    field: Optional[str] = None   # Dot-notation field path, e.g. "deductions.section80C"
    issue: str


class ErrorBody(BaseModel):
    model_config = ConfigDict(extra="forbid")

    code: str                                      # VALIDATION_ERROR, INVALID_INPUT, ...
    message: str
    details: List[ErrorDetail] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """
    Standard error response format for all TaxGenie endpoints.

    Structure: {"error": {"code": "...", "message": "...", "details": [...]}}
    """
    model_config = ConfigDict(extra="forbid")

    error: ErrorBody


__all__ = [
    "Regime",
    "AgeGroup",
    "AssetType",
    "Money",
    "parse_money",
    "InputModel",
    "CapitalGainsIncome",
    "Incomes",
    "Deductions",
    "TaxesPaid",
    "TaxInput",
    "CapitalGainsInput",
    "InterestCategories",
    "BankInterestEntry",
    "InterestSummaryInput",
    "ErrorDetail",
    "ErrorBody",
    "ErrorResponse",
]
