"""
TaxGenie Optimizer: plain-English suggestions for unused old-regime deduction headroom.
Pure functions. No I/O.

Called by compare_regimes() in tax_engine.py via local import to avoid a circular
import (this module imports helpers from tax_engine).
"""
from __future__ import annotations

from decimal import Decimal

from taxgenie.calculator.decimal_math import ZERO, rupees, to_decimal
from taxgenie.calculator.schemas import TaxResult
from taxgenie.calculator.tax_engine import cap_80d, slabs_for
from taxgenie.inputs.schemas import Regime, TaxInput
from taxgenie.rules.schemas import RuleSet

_SUGGESTION_MIN_SAVING = Decimal(1_000)   # Suppress suggestions where tax saving < ₹1,000
_MAX_SUGGESTIONS = 3


def old_marginal_rate(taxable_income: int, tax_input: TaxInput, rules: RuleSet) -> Decimal:
    """
    Effective marginal rate for the old regime = slab rate × (1 + cess).
    Uses the age group's slab table; 0 when already in the zero-rate slab.
    """
    income = to_decimal(taxable_income)
    slab_rate = ZERO
    for slab in slabs_for(rules, Regime.old, tax_input.age_group):
        if income > slab.lower:
            slab_rate = slab.rate
    return slab_rate * (1 + rules.cess_rate)


def generate_old_suggestions(
    tax_input: TaxInput,
    old_result: TaxResult,
    rules: RuleSet,
) -> list[str]:
    """
    Suggestions for unused 80C, 80D and 80CCD(1B) headroom in the old regime.
    Suppresses suggestions with < ₹1,000 tax saving.
    Returns at most 3 suggestions, sorted by rupee saving descending.
    """
    if old_result.total_tax == 0:
        return []   # Nothing left to save

    effective_rate = old_marginal_rate(old_result.taxable_income, tax_input, rules)
    if effective_rate == ZERO:
        return []

    caps = rules.deduction_caps
    bd = old_result.deduction_breakdown

    candidates: list[tuple[Decimal, str]] = []   # (saving, suggestion_text)

    # 1. 80C headroom
    headroom_80c = caps.section_80c - bd.section_80c
    saving_80c = headroom_80c * effective_rate
    if headroom_80c > 0 and saving_80c >= _SUGGESTION_MIN_SAVING:
        candidates.append((
            saving_80c,
            f"Invest ₹{headroom_80c:,.0f} more in 80C instruments (PPF, ELSS, LIC) "
            f"to save ₹{rupees(saving_80c):,.0f} in the Old Regime.",
        ))

    # 2. 80D headroom (cap depends on age group)
    headroom_80d = cap_80d(caps, tax_input.age_group) - bd.section_80d
    saving_80d = headroom_80d * effective_rate
    if headroom_80d > 0 and saving_80d >= _SUGGESTION_MIN_SAVING:
        candidates.append((
            saving_80d,
            f"Pay ₹{headroom_80d:,.0f} more in health insurance premiums under Section 80D "
            f"to save ₹{rupees(saving_80d):,.0f} in the Old Regime.",
        ))

    # 3. 80CCD(1B) employee NPS headroom
    headroom_nps = caps.section_80ccd_1b - bd.section_80ccd
    saving_nps = headroom_nps * effective_rate
    if headroom_nps > 0 and saving_nps >= _SUGGESTION_MIN_SAVING:
        candidates.append((
            saving_nps,
            f"Contribute ₹{headroom_nps:,.0f} more to NPS (Section 80CCD(1B)) "
            f"to save ₹{rupees(saving_nps):,.0f} in the Old Regime.",
        ))

    candidates.sort(key=lambda x: x[0], reverse=True)
    return [text for _, text in candidates[:_MAX_SUGGESTIONS]]
