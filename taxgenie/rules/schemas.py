"""
schemas.py: frozen Pydantic models for the versioned rule tables.

A RuleSet is everything the engine needs for one assessment year: slabs per
regime (old: per age group, new: a single age-independent table), standard
deduction, 87A rebate, surcharge bands, cess, deduction caps and capital-gains
parameters. The RuleBook holds every RuleSet plus the Cost Inflation Index.

Structural invariants are checked here, once, when the YAML is loaded:
  - slabs start at 0, are contiguous and non-overlapping
  - only the last slab is open-ended (upper = null)
  - surcharge thresholds strictly increase
Models are frozen and use tuples, so a loaded book cannot be mutated.
"""
from __future__ import annotations

import hashlib
from decimal import Decimal
from typing import Any, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from taxgenie.errors import MissingIndexData, UnsupportedAssessmentYear
from taxgenie.inputs.schemas import AgeGroup, AssetType

Rate = Decimal


class RuleModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# ---------------------------------------------------------------------------
# Slabs
# ---------------------------------------------------------------------------

class TaxSlab(RuleModel):
    lower: Decimal = Field(ge=0)
    upper: Optional[Decimal] = None   # None → open-ended top slab
    rate: Rate = Field(ge=0, le=1)


def validate_slab_table(slabs: Tuple[TaxSlab, ...], label: str) -> None:
    """Raise ValueError unless slabs form one contiguous, non-overlapping ladder from 0."""
    if not slabs:
        raise ValueError(f"{label}: slab table is empty")
    if slabs[0].lower != 0:
        raise ValueError(f"{label}: first slab must start at 0, got {slabs[0].lower}")
    for index, slab in enumerate(slabs):
        is_last = index == len(slabs) - 1
        if slab.upper is None:
            if not is_last:
                raise ValueError(f"{label}: only the last slab may be open-ended (slab {index})")
            continue
        if slab.upper <= slab.lower:
            raise ValueError(f"{label}: slab {index} upper {slab.upper} <= lower {slab.lower}")
        if not is_last and slabs[index + 1].lower != slab.upper:
            raise ValueError(
                f"{label}: slab {index + 1} starts at {slabs[index + 1].lower}, "
                f"expected {slab.upper} (gap or overlap)"
            )
    if slabs[-1].upper is not None:
        raise ValueError(f"{label}: last slab must be open-ended")


class AgeSlabTables(RuleModel):
    """Old-regime slabs: the basic exemption rises for senior and super-senior citizens."""
    general: Tuple[TaxSlab, ...]
    senior: Tuple[TaxSlab, ...]
    super_senior: Tuple[TaxSlab, ...]

    @model_validator(mode="after")
    def _check_contiguous(self) -> "AgeSlabTables":
        validate_slab_table(self.general, "old_regime.slabs.general")
        validate_slab_table(self.senior, "old_regime.slabs.senior")
        validate_slab_table(self.super_senior, "old_regime.slabs.super_senior")
        return self

    def for_age(self, age_group: AgeGroup) -> Tuple[TaxSlab, ...]:
        if age_group == AgeGroup.senior:
            return self.senior
        if age_group == AgeGroup.super_senior:
            return self.super_senior
        return self.general


# ---------------------------------------------------------------------------
# Rebate / surcharge
# ---------------------------------------------------------------------------

class Rebate87A(RuleModel):
    max_income: Decimal = Field(ge=0)   # Rebate only if taxable income <= this
    max_rebate: Decimal = Field(ge=0)


class SurchargeBand(RuleModel):
    threshold: Decimal = Field(ge=0)    # Applies when taxable income > threshold
    rate: Rate = Field(ge=0, le=1)


class RegimeRules(RuleModel):
    standard_deduction: Decimal = Field(ge=0)
    rebate_87a: Rebate87A
    surcharge: Tuple[SurchargeBand, ...] = ()

    @model_validator(mode="after")
    def _check_surcharge_order(self) -> "RegimeRules":
        thresholds = [band.threshold for band in self.surcharge]
        if any(b <= a for a, b in zip(thresholds, thresholds[1:])):
            raise ValueError(f"surcharge thresholds must strictly increase, got {thresholds}")
        return self


class OldRegimeRules(RegimeRules):
    slabs: AgeSlabTables


class NewRegimeRules(RegimeRules):
    """New regime (Section 115BAC): one slab table for every age group."""
    slabs: Tuple[TaxSlab, ...]

    @model_validator(mode="after")
    def _check_contiguous(self) -> "NewRegimeRules":
        validate_slab_table(self.slabs, "new_regime.slabs")
        return self


# ---------------------------------------------------------------------------
# Deduction caps
# ---------------------------------------------------------------------------

class DeductionCaps(RuleModel):
    section_80c: Decimal
    section_80d_general: Decimal
    section_80d_senior: Decimal        # self aged 60+
    section_80tta: Decimal             # savings interest, below 60
    section_80ttb: Decimal             # all deposit interest, 60+
    section_80ccd_1b: Decimal          # additional employee NPS


# ---------------------------------------------------------------------------
# Capital gains
# ---------------------------------------------------------------------------

class HoldingPeriods(RuleModel):
    """Days an asset must be held (strictly more than) to be long-term."""
    equity: int = Field(gt=0)
    property: int = Field(gt=0)
    other: int = Field(gt=0)

    def threshold_for(self, asset_type: AssetType) -> int:
        return getattr(self, asset_type.value)


class CapitalGainsRules(RuleModel):
    holding_period_days: HoldingPeriods
    short_term_equity_rate: Rate = Field(ge=0, le=1)
    long_term_equity_rate: Rate = Field(ge=0, le=1)
    long_term_equity_exemption: Decimal = Field(ge=0)
    long_term_other_rate: Rate = Field(ge=0, le=1)
    long_term_indexed_rate: Rate = Field(ge=0, le=1)
    short_term_other_rate: Rate = Field(ge=0, le=1)


# ---------------------------------------------------------------------------
# RuleSet: one assessment year
# ---------------------------------------------------------------------------

class RuleSet(RuleModel):
    assessment_year: str
    financial_year: str
    version: str
    cess_rate: Rate = Field(ge=0, le=1)
    old_regime: OldRegimeRules
    new_regime: NewRegimeRules
    deduction_caps: DeductionCaps
    capital_gains: CapitalGainsRules

    @property
    def config_hash(self) -> str:
        """First 16 hex chars of SHA-256 over the canonical JSON of this rule set."""
        canonical = self.model_dump_json().encode("utf-8")
        return hashlib.sha256(canonical).hexdigest()[:16]


# ---------------------------------------------------------------------------
# Cost Inflation Index
# ---------------------------------------------------------------------------

class CostInflationIndex(RuleModel):
    version: str
    values: Tuple[Tuple[str, int], ...]

    @field_validator("values", mode="before")
    @classmethod
    def _freeze_values(cls, raw: Any) -> Any:
        if isinstance(raw, Mapping):
            return tuple(sorted(raw.items()))
        return raw

    def value_for(self, financial_year: str, field: Optional[str] = None) -> int:
        for year, value in self.values:
            if year == financial_year:
                return value
        raise MissingIndexData(financial_year, field=field)


# ---------------------------------------------------------------------------
# RuleBook: all loaded years
# ---------------------------------------------------------------------------

class RuleBook(RuleModel):
    rule_sets: Tuple[RuleSet, ...]
    cost_inflation_index: CostInflationIndex

    @model_validator(mode="after")
    def _check_unique_years(self) -> "RuleBook":
        years = [rs.assessment_year for rs in self.rule_sets]
        if len(years) != len(set(years)):
            raise ValueError(f"duplicate assessment years in rule book: {sorted(years)}")
        return self

    @property
    def supported_years(self) -> list[str]:
        return sorted(rs.assessment_year for rs in self.rule_sets)

    def get(self, assessment_year: str) -> RuleSet:
        for rule_set in self.rule_sets:
            if rule_set.assessment_year == assessment_year:
                return rule_set
        raise UnsupportedAssessmentYear(assessment_year)


__all__ = [
    "TaxSlab",
    "validate_slab_table",
    "AgeSlabTables",
    "Rebate87A",
    "SurchargeBand",
    "RegimeRules",
    "OldRegimeRules",
    "NewRegimeRules",
    "DeductionCaps",
    "HoldingPeriods",
    "CapitalGainsRules",
    "RuleSet",
    "CostInflationIndex",
    "RuleBook",
]
