"""
Interest income summary.

The same interest is entered twice: by category (savings, FD, RD, bonds, other)
and per bank. Total interest comes from the category view, total TDS from the
bank view; the two are never summed together. When the bank interest total
differs from the category total by more than ₹1 (an empty bank list counts as
zero), the mismatch is flagged for the user to resolve rather than one view
being picked silently.
"""
from __future__ import annotations

import logging
from decimal import Decimal

from taxgenie.calculator.decimal_math import rupees
from taxgenie.calculator.schemas import (
    BankSummaryEntry,
    InterestBreakdown,
    InterestSummary,
    InterestValidation,
)
from taxgenie.inputs.schemas import InterestSummaryInput

logger = logging.getLogger(__name__)

MISMATCH_TOLERANCE = Decimal(1)   # rupees

_CATEGORIES = ("savings", "fd", "rd", "bonds", "other")


def summarize_interest(summary_input: InterestSummaryInput) -> InterestSummary:
    categories = summary_input.interest
    category_amounts = {name: getattr(categories, name) for name in _CATEGORIES}
    category_total = sum(category_amounts.values(), Decimal(0))

    entries = summary_input.bank_entries
    bank_total = sum((entry.interest for entry in entries), Decimal(0))
    tds_total = sum((entry.tds_deducted for entry in entries), Decimal(0))

    difference = bank_total - category_total
    mismatch = abs(difference) > MISMATCH_TOLERANCE
    if mismatch:
        logger.info("Interest mismatch flagged for FY %s (%d bank entries)", summary_input.fiscal_year, len(entries))

    return InterestSummary(
        fiscal_year=summary_input.fiscal_year,
        total_interest=int(rupees(category_total)),
        total_tds=int(rupees(tds_total)),
        breakdown=InterestBreakdown(
            category_interest={name: int(rupees(amount)) for name, amount in category_amounts.items()},
            bank_summary=[
                BankSummaryEntry(
                    bank_name=entry.bank_name,
                    interest=int(rupees(entry.interest)),
                    tds_deducted=int(rupees(entry.tds_deducted)),
                )
                for entry in entries
            ],
        ),
        validation=InterestValidation(
            category_interest_sum=int(rupees(category_total)),
            bank_interest_sum=int(rupees(bank_total)),
            difference=int(rupees(difference)),
            interest_mismatch=mismatch,
        ),
    )
