"""
Capital gains on a single asset disposal.

Holding period decides short vs long term (strictly more than the asset's
threshold). Long-term non-equity assets may use the Cost Inflation Index to
index the purchase cost when the taxpayer opts in. Rates, thresholds and the
equity LTCG exemption come from the rule set of the assessment year: given
explicitly, or derived from the financial year in which the sale happened.
"""
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from taxgenie.calculator.decimal_math import ZERO, non_negative, rupees
from taxgenie.calculator.schemas import CapitalGainsResult
from taxgenie.errors import InvalidDateRange
from taxgenie.inputs.schemas import AssetType, CapitalGainsInput
from taxgenie.rules.loader import get_rule_book
from taxgenie.rules.schemas import CapitalGainsRules, CostInflationIndex, RuleBook

logger = logging.getLogger(__name__)


def financial_year_of(day: date) -> str:
    """Indian FY runs 1 April – 31 March: 2023-10-01 → "2023-24", 2024-02-01 → "2023-24"."""
    start = day.year if day.month >= 4 else day.year - 1
    return f"{start}-{(start + 1) % 100:02d}"


def assessment_year_of(day: date) -> str:
    """The AY following the FY in which `day` falls: sale in FY 2023-24 → AY 2024-25."""
    start = (day.year if day.month >= 4 else day.year - 1) + 1
    return f"{start}-{(start + 1) % 100:02d}"


def indexed_cost(
    purchase_price: Decimal,
    purchase_date: date,
    sale_date: date,
    cii: CostInflationIndex,
) -> Decimal:
    """
    purchase_price × CII(sale FY) / CII(purchase FY), rounded to the rupee.

    Raises:
        MissingIndexData: either financial year has no published index.
    """
    purchase_index = cii.value_for(financial_year_of(purchase_date), field="purchaseDate")
    sale_index = cii.value_for(financial_year_of(sale_date), field="saleDate")
    return rupees(purchase_price * sale_index / purchase_index)


def _tax_rate(
    asset_type: AssetType,
    is_long_term: bool,
    indexation_applied: bool,
    rules: CapitalGainsRules,
) -> Decimal:
    if asset_type == AssetType.equity:
        return rules.long_term_equity_rate if is_long_term else rules.short_term_equity_rate
    if not is_long_term:
        return rules.short_term_other_rate
    if indexation_applied:
        return rules.long_term_indexed_rate
    return rules.long_term_other_rate


def calculate_capital_gains(
    cg_input: CapitalGainsInput,
    rule_book: Optional[RuleBook] = None,
) -> CapitalGainsResult:
    """
    Raises:
        InvalidDateRange: sale date before purchase date.
        UnsupportedAssessmentYear: no rule set for the (explicit or derived) AY.
        MissingIndexData: indexation requested without a CII entry.
    """
    if cg_input.sale_date < cg_input.purchase_date:
        raise InvalidDateRange("Sale date cannot be before purchase date", field="saleDate")

    book = rule_book or get_rule_book()
    assessment_year = cg_input.assessment_year or assessment_year_of(cg_input.sale_date)
    rules = book.get(assessment_year).capital_gains

    holding_days = (cg_input.sale_date - cg_input.purchase_date).days
    threshold = rules.holding_period_days.threshold_for(cg_input.asset_type)
    is_long_term = holding_days > threshold

    capital_gain = cg_input.sale_price - cg_input.purchase_price - cg_input.expenses

    # Indexation: long-term, non-equity, opted in
    indexation_applied = (
        cg_input.indexation_benefit
        and is_long_term
        and cg_input.asset_type != AssetType.equity
    )
    cost: Optional[Decimal] = None
    final_gain = capital_gain
    if indexation_applied:
        cost = indexed_cost(
            cg_input.purchase_price,
            cg_input.purchase_date,
            cg_input.sale_date,
            book.cost_inflation_index,
        )
        final_gain = cg_input.sale_price - cost - cg_input.expenses

    # LTCG on equity is taxed only above the exemption threshold
    exemption = ZERO
    if is_long_term and cg_input.asset_type == AssetType.equity:
        exemption = min(rules.long_term_equity_exemption, non_negative(final_gain))
    taxable_gain = non_negative(final_gain - exemption)

    tax_rate = _tax_rate(cg_input.asset_type, is_long_term, indexation_applied, rules)
    liability = rupees(taxable_gain * tax_rate)

    logger.info(
        "Capital gains AY %s asset=%s long_term=%s indexation=%s",
        assessment_year,
        cg_input.asset_type.value,
        is_long_term,
        indexation_applied,
    )

    return CapitalGainsResult(
        asset_type=cg_input.asset_type,
        purchase_date=cg_input.purchase_date,
        sale_date=cg_input.sale_date,
        purchase_price=int(rupees(cg_input.purchase_price)),
        sale_price=int(rupees(cg_input.sale_price)),
        expenses=int(rupees(cg_input.expenses)),
        indexation_benefit=cg_input.indexation_benefit,
        assessment_year=assessment_year,
        holding_period_days=holding_days,
        is_long_term=is_long_term,
        capital_gain=int(rupees(capital_gain)),
        indexed_cost=None if cost is None else int(cost),
        indexation_applied=indexation_applied,
        final_capital_gain=int(rupees(final_gain)),
        exemption_applied=int(rupees(exemption)),
        taxable_gain=int(rupees(taxable_gain)),
        tax_rate=float(tax_rate),
        tax_liability=int(liability),
    )
