"""
Business-rule checks on a TaxInput, run AFTER Pydantic structural validation.

Deduction claims above their statutory cap are not errors: the engine truncates
them. This module reports what was truncated (or ignored under the new regime)
as plain-English warnings so the HTTP layer can return them alongside the
result. Warnings never block a calculation.

Caps are read from the rule set of the input's assessment year, so the
messages always match what the engine actually applied.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, Optional

from taxgenie.inputs.schemas import AgeGroup, Regime, TaxInput
from taxgenie.rules.schemas import RuleSet

logger = logging.getLogger(__name__)


def _over_cap(field: str, label: str, claimed: Decimal, cap: Decimal) -> Optional[str]:
    if claimed <= cap:
        return None
    return (
        f"{field}: ₹{claimed:,.0f} exceeds the {label} maximum of ₹{cap:,.0f}. "
        f"Only ₹{cap:,.0f} is deductible under the Old Regime."
    )


def collect_cap_warnings(tax_input: TaxInput, rules: RuleSet) -> list[str]:
    """
    Non-blocking warnings for over-cap claims.

    Checked against the old-regime caps of rules:
      1. section80C    <= 80C cap
      2. section80D    age-dependent cap (general / senior+)
      3. section80TTA  80TTA cap below 60, 80TTB cap at 60+
      4. section80CCD  80CCD(1B) cap
    """
    caps = rules.deduction_caps
    claimed = tax_input.deductions
    senior = tax_input.age_group != AgeGroup.general

    checks: Iterable[Optional[str]] = (
        _over_cap("deductions.section80C", "Section 80C", claimed.section_80c, caps.section_80c),
        _over_cap(
            "deductions.section80D",
            f"Section 80D ({tax_input.age_group.value})",
            claimed.section_80d,
            caps.section_80d_senior if senior else caps.section_80d_general,
        ),
        _over_cap(
            "deductions.section80TTA",
            "Section 80TTB" if senior else "Section 80TTA",
            claimed.section_80tta,
            caps.section_80ttb if senior else caps.section_80tta,
        ),
        _over_cap(
            "deductions.section80CCD",
            "Section 80CCD(1B)",
            claimed.section_80ccd,
            caps.section_80ccd_1b,
        ),
    )
    warnings = [w for w in checks if w is not None]

    if warnings:
        # Log count only, never amounts
        logger.info(
            "Cap warnings: %d for AY %s",
            len(warnings),
            tax_input.assessment_year,
        )
    return warnings


def collect_regime_warnings(tax_input: TaxInput) -> list[str]:
    """Deductions entered for a new-regime calculation are ignored; say so once."""
    if tax_input.regime != Regime.new:
        return []
    d = tax_input.deductions
    claimed = (
        d.section_80c + d.section_80d + d.section_80tta + d.section_80ccd
        + d.other + d.hra_exemption + d.lta_exemption
    )
    if claimed <= 0:
        return []
    return [
        "New Regime allows only the standard deduction. Section 80C/80D/80TTA/80CCD, "
        "HRA, LTA and other deductions were not applied."
    ]
