"""
schemas.py: calculator output contracts (Pydantic v2).

Defines:
  - DeductionBreakdown  (capped deductions actually applied in one regime)
  - SlabComputation     (one row of the slab-by-slab working)
  - TaxResult           (full computation for one regime)
  - RegimeComparison    (old vs new, recommendation, rationale, suggestions)
  - CapitalGainsResult
  - InterestSummary     (category view + bank view + cross-check)
  - response envelopes used by routes.py

Rupee amounts are whole integers (see decimal_math.rupees). JSON keys are
camelCase; section fields carry explicit aliases (section80C, rebate87A ...).
Always dump with by_alias=True when producing JSON.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from taxgenie.inputs.schemas import AgeGroup, AssetType, Regime


class OutputModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


# ---------------------------------------------------------------------------
# DeductionBreakdown: itemised deductions applied in one regime
# ---------------------------------------------------------------------------

class DeductionBreakdown(OutputModel):
    """
    All values are the deduction ACTUALLY applied (after caps), not the raw claim.
    section_80c=150000 means ₹1.5L was applied even if ₹2L was entered.

    New regime: only standard_deduction is non-zero.
    """
    standard_deduction: int = 0
    hra_exemption: int = 0                                               # old regime only
    lta_exemption: int = 0                                               # old regime only
    section_80c: int = Field(default=0, alias="section80C")
    section_80d: int = Field(default=0, alias="section80D")              # cap by age group
    section_80tta_ttb: int = Field(default=0, alias="section80TTA_TTB")  # 80TTA below 60, 80TTB 60+
    section_80ccd: int = Field(default=0, alias="section80CCD")          # 80CCD(1B)
    other: int = 0


class SlabComputation(OutputModel):
    lower: int
    upper: Optional[int] = None
    rate: float
    taxable_amount: int
    tax: float          # exact, before the per-step rupee rounding


# ---------------------------------------------------------------------------
# TaxResult: full tax calculation for one regime
# ---------------------------------------------------------------------------

class TaxResult(OutputModel):
    """
    Complete computation for one regime.

    Sequence:
      1. gross_income = all income heads;  total_income = gross - exempt
      2. taxable_income = max(0, total_income - applicable capped deductions)
      3. tax_before_rebate = slab tax
      4. tax_after_rebate = tax_before_rebate - rebate_87a
      5. surcharge (after marginal relief) on tax_after_rebate
      6. tax_payable = tax_after_rebate + surcharge
      7. cess on tax_payable;  total_tax = tax_payable + cess
    """
    assessment_year: str
    regime: Regime
    age_group: AgeGroup

    gross_income: int
    exempt_income: int
    total_income: int
    standard_deduction: int
    deduction_breakdown: DeductionBreakdown
    total_deductions: int
    taxable_income: int

    tax_before_rebate: int
    rebate_87a: int = Field(alias="rebate87A")
    tax_after_rebate: int
    surcharge: int
    marginal_relief: int
    tax_payable: int           # after rebate and surcharge, before cess
    cess: int
    total_tax: int
    effective_rate: float      # total_tax / total_income, 4 places

    total_tax_paid: int        # tds + tcs + advance tax
    refund_or_due: int         # positive = refund, negative = payable

    slab_breakdown: List[SlabComputation] = Field(default_factory=list)
    applied_rules: List[str] = Field(default_factory=list)
    rule_set_version: str
    config_hash: str


# ---------------------------------------------------------------------------
# RegimeComparison: compare_regimes() output
# ---------------------------------------------------------------------------

class RegimeComparison(OutputModel):
    """
    savings is signed (old.total_tax - new.total_tax): positive means the new
    regime is cheaper. savings_amount is the absolute difference.
    """
    old_regime: TaxResult
    new_regime: TaxResult
    recommended_regime: Regime
    savings: int
    savings_amount: int
    rationale: str
    old_regime_suggestions: List[str] = Field(default_factory=list)   # up to 3, by saving desc


# ---------------------------------------------------------------------------
# CapitalGainsResult
# ---------------------------------------------------------------------------

class CapitalGainsResult(OutputModel):
    asset_type: AssetType
    purchase_date: date
    sale_date: date
    purchase_price: int
    sale_price: int
    expenses: int
    indexation_benefit: bool

    assessment_year: str
    holding_period_days: int
    is_long_term: bool
    capital_gain: int              # sale - purchase - expenses, may be negative
    indexed_cost: Optional[int] = None
    indexation_applied: bool = False
    final_capital_gain: int        # after indexation, may be negative
    exemption_applied: int = 0     # LTCG equity exemption actually used
    taxable_gain: int
    tax_rate: float
    tax_liability: int


# ---------------------------------------------------------------------------
# InterestSummary
# ---------------------------------------------------------------------------

class BankSummaryEntry(OutputModel):
    bank_name: str
    interest: int
    tds_deducted: int


class InterestBreakdown(OutputModel):
    category_interest: Dict[str, int]
    bank_summary: List[BankSummaryEntry] = Field(default_factory=list)


class InterestValidation(OutputModel):
    category_interest_sum: int
    bank_interest_sum: int
    difference: int
    interest_mismatch: bool


class InterestSummary(OutputModel):
    fiscal_year: str
    total_interest: int            # category view only
    total_tds: int = Field(alias="totalTDS")   # bank view only
    breakdown: InterestBreakdown
    validation: InterestValidation


# ---------------------------------------------------------------------------
# HTTP response envelopes
# ---------------------------------------------------------------------------

class TaxCalculationResponse(OutputModel):
    calculation_id: Optional[str] = None
    result: TaxResult
    warnings: List[str] = Field(default_factory=list)


class ComparisonResponse(OutputModel):
    calculation_id: Optional[str] = None
    comparison: RegimeComparison
    warnings: List[str] = Field(default_factory=list)


class CapitalGainsResponse(OutputModel):
    calculation_id: Optional[str] = None
    result: CapitalGainsResult


class StoredCalculation(OutputModel):
    id: str
    kind: str
    assessment_year: Optional[str] = None
    raw_input: Dict[str, Any]
    result: Dict[str, Any]
    created_at: Optional[datetime] = None


__all__ = [
    "DeductionBreakdown",
    "SlabComputation",
    "TaxResult",
    "RegimeComparison",
    "CapitalGainsResult",
    "BankSummaryEntry",
    "InterestBreakdown",
    "InterestValidation",
    "InterestSummary",
    "TaxCalculationResponse",
    "ComparisonResponse",
    "CapitalGainsResponse",
    "StoredCalculation",
]
