"""
TaxGenie Tax Engine: old and new regime income tax for every loaded assessment year.
Pure Python, deterministic, no I/O. Same input + same rule set → same output.

All statutory numbers (slabs, rebate, surcharge bands, caps, cess) come from the
versioned rule tables in taxgenie/rules/tables/. Nothing here hard-codes a year.

Computation order (order determines correctness):
  1. gross income → minus exempt income → total income
  2. minus capped deductions (regime-dependent) → taxable income (whole rupees)
  3. slab tax (age-dependent slabs in the old regime only)
  4. rebate 87A
  5. surcharge, capped at the income above the crossed threshold
  6. health & education cess on (tax after rebate + surcharge)
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from taxgenie.calculator.decimal_math import (
    ZERO,
    non_negative,
    rate,
    rupees,
    safe_ratio,
    to_decimal,
)
from taxgenie.calculator.schemas import (
    DeductionBreakdown,
    RegimeComparison,
    SlabComputation,
    TaxResult,
)
from taxgenie.errors import InvalidInput
from taxgenie.inputs.schemas import AgeGroup, Regime, TaxInput
from taxgenie.rules.loader import get_rule_book
from taxgenie.rules.schemas import (
    DeductionCaps,
    RegimeRules,
    RuleBook,
    RuleSet,
    SurchargeBand,
    TaxSlab,
)

logger = logging.getLogger(__name__)


# ===========================================================================
# SLAB TAX
# ===========================================================================

def calculate_slab_tax(
    taxable_income: Decimal,
    slabs: Sequence[TaxSlab],
) -> Tuple[Decimal, List[SlabComputation]]:
    """
    Progressive slab tax: sum over slabs of max(0, min(income, upper) - lower) × rate.

    Returns the exact (unrounded) tax and the per-slab working for every slab
    the income reaches. Non-decreasing in taxable_income for any valid table.
    """
    income = to_decimal(taxable_income)
    if income < ZERO:
        raise InvalidInput("Taxable income cannot be negative", field="taxableIncome")

    tax = ZERO
    breakdown: List[SlabComputation] = []
    for slab in slabs:
        ceiling = income if slab.upper is None else min(income, slab.upper)
        amount = non_negative(ceiling - slab.lower)
        if amount == ZERO:
            break
        slab_tax = amount * slab.rate
        tax += slab_tax
        breakdown.append(
            SlabComputation(
                lower=int(slab.lower),
                upper=None if slab.upper is None else int(slab.upper),
                rate=float(slab.rate),
                taxable_amount=int(rupees(amount)),
                tax=float(slab_tax.quantize(Decimal("0.01"))),
            )
        )
    return tax, breakdown


def slabs_for(rules: RuleSet, regime: Regime, age_group: AgeGroup) -> Tuple[TaxSlab, ...]:
    """Old regime: slabs by age group. New regime: one table for every age."""
    if regime == Regime.old:
        return rules.old_regime.slabs.for_age(age_group)
    return rules.new_regime.slabs


def regime_rules(rules: RuleSet, regime: Regime) -> RegimeRules:
    return rules.old_regime if regime == Regime.old else rules.new_regime


# ===========================================================================
# DEDUCTIONS
# ===========================================================================

def cap_80d(caps: DeductionCaps, age_group: AgeGroup) -> Decimal:
    if age_group == AgeGroup.general:
        return caps.section_80d_general
    return caps.section_80d_senior


def cap_interest_deduction(caps: DeductionCaps, age_group: AgeGroup) -> Decimal:
    """80TTA (savings interest) below 60, 80TTB (all deposit interest) at 60+. Never both."""
    if age_group == AgeGroup.general:
        return caps.section_80tta
    return caps.section_80ttb


def _apply_deductions(
    tax_input: TaxInput,
    regime: Regime,
    rules: RuleSet,
) -> Tuple[Decimal, DeductionBreakdown]:
    """
    Capped deductions for one regime. Over-cap claims are truncated, not rejected.

    New regime: standard deduction only. 80C/80D/80TTA/80CCD, HRA, LTA and
    `other` are zeroed even when supplied.
    """
    std = regime_rules(rules, regime).standard_deduction

    if regime == Regime.new:
        return std, DeductionBreakdown(standard_deduction=int(rupees(std)))

    claimed = tax_input.deductions
    caps = rules.deduction_caps
    age = tax_input.age_group

    hra = claimed.hra_exemption
    lta = claimed.lta_exemption
    ded_80c = min(claimed.section_80c, caps.section_80c)
    ded_80d = min(claimed.section_80d, cap_80d(caps, age))
    ded_80tta = min(claimed.section_80tta, cap_interest_deduction(caps, age))
    ded_80ccd = min(claimed.section_80ccd, caps.section_80ccd_1b)
    other = claimed.other   # uncapped

    total = std + hra + lta + ded_80c + ded_80d + ded_80tta + ded_80ccd + other
    return total, DeductionBreakdown(
        standard_deduction=int(rupees(std)),
        hra_exemption=int(rupees(hra)),
        lta_exemption=int(rupees(lta)),
        section_80c=int(rupees(ded_80c)),
        section_80d=int(rupees(ded_80d)),
        section_80tta_ttb=int(rupees(ded_80tta)),
        section_80ccd=int(rupees(ded_80ccd)),
        other=int(rupees(other)),
    )


def gross_income(tax_input: TaxInput) -> Decimal:
    incomes = tax_input.incomes
    return (
        incomes.salary
        + incomes.interest
        + incomes.capital_gains.short_term
        + incomes.capital_gains.long_term
        + incomes.property
        + incomes.crypto
        + incomes.other
    )


# ===========================================================================
# REBATE / SURCHARGE / CESS
# ===========================================================================

def _rebate_87a(taxable_income: Decimal, slab_tax: Decimal, rules: RegimeRules) -> Decimal:
    """Full slab tax up to the cap, only when taxable income is within the ceiling."""
    if taxable_income <= rules.rebate_87a.max_income:
        return min(slab_tax, rules.rebate_87a.max_rebate)
    return ZERO


def _surcharge_band(
    taxable_income: Decimal,
    bands: Sequence[SurchargeBand],
) -> Optional[SurchargeBand]:
    """Highest band whose threshold is exceeded."""
    chosen: Optional[SurchargeBand] = None
    for band in bands:
        if taxable_income > band.threshold:
            chosen = band
    return chosen


def _surcharge(
    taxable_income: Decimal,
    tax_after_rebate: Decimal,
    rules: RegimeRules,
) -> Tuple[Decimal, Decimal]:
    """
    Returns (surcharge, marginal_relief).

    Marginal relief: the surcharge may not exceed the income above the
    crossed threshold. Relief is the part of the full surcharge above that.
    """
    band = _surcharge_band(taxable_income, rules.surcharge)
    if band is None:
        return ZERO, ZERO

    full = rupees(tax_after_rebate * band.rate)
    relief = non_negative(full - (taxable_income - band.threshold))
    return full - relief, relief


# ===========================================================================
# SINGLE REGIME: public API
# ===========================================================================

def calculate(
    tax_input: TaxInput,
    regime: Optional[Regime] = None,
    rule_book: Optional[RuleBook] = None,
) -> TaxResult:
    """
    Full computation for one regime (defaults to tax_input.regime).

    Raises:
        UnsupportedAssessmentYear: no rule table for tax_input.assessment_year.
    """
    book = rule_book or get_rule_book()
    rules = book.get(tax_input.assessment_year)
    regime = regime or tax_input.regime
    age = tax_input.age_group
    reg_rules = regime_rules(rules, regime)
    slabs = slabs_for(rules, regime, age)
    applied: List[str] = []

    # Step 1: income
    gross = gross_income(tax_input)
    exempt = tax_input.incomes.exempt
    total_income = non_negative(gross - exempt)

    # Step 2: deductions
    total_deductions, breakdown = _apply_deductions(tax_input, regime, rules)
    applied.append("standard-deduction")
    if regime == Regime.old:
        applied.append("chapter-via-deductions")
    else:
        applied.append("chapter-via-deductions-disallowed")
    taxable = rupees(non_negative(total_income - total_deductions))

    # Step 3: slab tax
    exact_slab_tax, slab_breakdown = calculate_slab_tax(taxable, slabs)
    slab_tax = rupees(exact_slab_tax)
    if regime == Regime.old:
        applied.append(f"old-regime-slabs-{age.value}")
    else:
        applied.append("new-regime-slabs")

    # Step 4: rebate 87A
    rebate = _rebate_87a(taxable, slab_tax, reg_rules)
    if rebate > ZERO:
        applied.append("rebate-87A")
    after_rebate = slab_tax - rebate

    # Step 5: surcharge
    surcharge, relief = _surcharge(taxable, after_rebate, reg_rules)
    if surcharge > ZERO or relief > ZERO:
        applied.append("surcharge-applied")
    if relief > ZERO:
        applied.append("marginal-relief")
    payable = after_rebate + surcharge

    # Step 6: cess (on tax after rebate + surcharge)
    cess = rupees(payable * rules.cess_rate)
    applied.append("health-education-cess")
    total_tax = payable + cess

    paid = tax_input.tds_and_tcs
    total_paid = rupees(paid.tds + paid.tcs + paid.advance_tax)

    logger.debug(
        "Calculated AY %s regime=%s age_group=%s rules=%s",
        rules.assessment_year,
        regime.value,
        age.value,
        rules.config_hash,
    )

    return TaxResult(
        assessment_year=rules.assessment_year,
        regime=regime,
        age_group=age,
        gross_income=int(rupees(gross)),
        exempt_income=int(rupees(exempt)),
        total_income=int(rupees(total_income)),
        standard_deduction=breakdown.standard_deduction,
        deduction_breakdown=breakdown,
        total_deductions=int(rupees(total_deductions)),
        taxable_income=int(taxable),
        tax_before_rebate=int(slab_tax),
        rebate_87a=int(rebate),
        tax_after_rebate=int(after_rebate),
        surcharge=int(surcharge),
        marginal_relief=int(relief),
        tax_payable=int(payable),
        cess=int(cess),
        total_tax=int(total_tax),
        effective_rate=float(rate(safe_ratio(total_tax, total_income))),
        total_tax_paid=int(total_paid),
        refund_or_due=int(total_paid - total_tax),
        slab_breakdown=slab_breakdown,
        applied_rules=applied,
        rule_set_version=rules.version,
        config_hash=rules.config_hash,
    )


# ===========================================================================
# COMPARE REGIMES: public API
# ===========================================================================

def _rationale(old: TaxResult, new: TaxResult, recommended: Regime, savings_amount: int) -> str:
    if savings_amount == 0:
        return (
            f"Both regimes result in the same tax (₹{old.total_tax:,}). "
            "New Regime recommended as the simpler option with no investment-linked deductions to track."
        )
    if recommended == Regime.old:
        bd = old.deduction_breakdown
        key_deds: list[str] = []
        if bd.hra_exemption > 0:
            key_deds.append(f"HRA exemption ₹{bd.hra_exemption:,}")
        if bd.section_80c > 0:
            key_deds.append(f"80C ₹{bd.section_80c:,}")
        if bd.section_80d > 0:
            key_deds.append(f"80D ₹{bd.section_80d:,}")
        if bd.section_80ccd > 0:
            key_deds.append(f"80CCD(1B) ₹{bd.section_80ccd:,}")
        top_deds = ", ".join(key_deds[:3]) if key_deds else "available deductions"
        return (
            f"Old Regime saves ₹{savings_amount:,} over the New Regime. "
            f"Old Regime tax: ₹{old.total_tax:,} vs New Regime tax: ₹{new.total_tax:,}. "
            f"Key deductions: {top_deds}."
        )
    return (
        f"New Regime saves ₹{savings_amount:,} over the Old Regime. "
        f"New Regime tax: ₹{new.total_tax:,} vs Old Regime tax: ₹{old.total_tax:,}. "
        f"Your total eligible Old Regime deductions (₹{old.total_deductions:,}) "
        f"are insufficient to overcome the lower New Regime slab rates."
    )


def compare_regimes(tax_input: TaxInput, rule_book: Optional[RuleBook] = None) -> RegimeComparison:
    """
    Compute both regimes and recommend the one with strictly lower total tax.
    Ties go to the New Regime (simpler compliance). tax_input.regime is ignored.

    Uses a local import of optimizer (optimizer.py imports helpers from this module).
    """
    from taxgenie.calculator.optimizer import generate_old_suggestions

    book = rule_book or get_rule_book()
    rules = book.get(tax_input.assessment_year)

    old = calculate(tax_input, Regime.old, book)
    new = calculate(tax_input, Regime.new, book)

    recommended = Regime.old if old.total_tax < new.total_tax else Regime.new
    savings = old.total_tax - new.total_tax
    savings_amount = abs(savings)

    logger.info(
        "Compared regimes AY %s age_group=%s recommended=%s",
        rules.assessment_year,
        tax_input.age_group.value,
        recommended.value,
    )

    return RegimeComparison(
        old_regime=old,
        new_regime=new,
        recommended_regime=recommended,
        savings=savings,
        savings_amount=savings_amount,
        rationale=_rationale(old, new, recommended, savings_amount),
        old_regime_suggestions=generate_old_suggestions(tax_input, old, rules),
    )
