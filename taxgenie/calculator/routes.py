"""
Calculator HTTP routes: POST /api/tax/calculate,
                         POST /api/tax/compare,
                         POST /api/capital-gains,
                         POST /api/interest-summary,
                         GET  /api/calculations/{calculation_id},
                         GET  /api/rules,
                         GET  /api/rules/{assessment_year}

Request bodies are validated by the input schemas (422 VALIDATION_ERROR on
failure). Engine errors (unsupported year, bad date range, missing CII) are
raised as TaxEngineError and turned into the error envelope by main.py.
Tax, comparison and capital-gains results are stored in the audit table when
settings.persist_calculations is on; the response carries the calculation id.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from taxgenie.calculator.capital_gains import calculate_capital_gains
from taxgenie.calculator.interest import summarize_interest
from taxgenie.calculator.schemas import (
    CapitalGainsResponse,
    ComparisonResponse,
    TaxCalculationResponse,
)
from taxgenie.calculator.tax_engine import calculate, compare_regimes
from taxgenie.config import settings
from taxgenie.database import get_db
from taxgenie.errors import UnsupportedAssessmentYear
from taxgenie.inputs.schemas import (
    CapitalGainsInput,
    InterestSummaryInput,
    Regime,
    TaxInput,
)
from taxgenie.inputs.validator import collect_cap_warnings, collect_regime_warnings
from taxgenie.rules.loader import get_rule_book
from taxgenie.store import get_calculation, save_calculation

router = APIRouter(prefix="/api", tags=["calculator"])
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _json(model: Any) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)


async def _persist(
    db: AsyncSession,
    kind: str,
    raw_input: Any,
    result: Any,
    assessment_year: Optional[str],
    rule_set_version: Optional[str] = None,
) -> Optional[str]:
    if not settings.persist_calculations:
        return None
    return await save_calculation(
        db,
        kind=kind,
        raw_input=_json(raw_input),
        result=_json(result),
        assessment_year=assessment_year,
        rule_set_version=rule_set_version,
    )


# ---------------------------------------------------------------------------
# Tax
# ---------------------------------------------------------------------------

@router.post("/tax/calculate")
async def calculate_tax(
    tax_input: TaxInput,
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Tax for the regime named in the input. Over-cap claims come back as warnings."""
    result = calculate(tax_input, rule_book=get_rule_book())

    if tax_input.regime == Regime.old:
        warnings = collect_cap_warnings(tax_input, get_rule_book().get(tax_input.assessment_year))
    else:
        warnings = collect_regime_warnings(tax_input)

    calculation_id = await _persist(
        db, "tax", tax_input, result, result.assessment_year, result.rule_set_version
    )
    logger.info(
        "Tax calculated id=%s ay=%s regime=%s",
        calculation_id,
        result.assessment_year,
        result.regime.value,
    )
    body = TaxCalculationResponse(calculation_id=calculation_id, result=result, warnings=warnings)
    return JSONResponse(status_code=200, content=_json(body))


@router.post("/tax/compare")
async def compare_tax(
    tax_input: TaxInput,
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Old vs New regime with recommendation, rationale and old-regime suggestions."""
    book = get_rule_book()
    comparison = compare_regimes(tax_input, rule_book=book)
    warnings = collect_cap_warnings(tax_input, book.get(tax_input.assessment_year))

    calculation_id = await _persist(
        db,
        "comparison",
        tax_input,
        comparison,
        tax_input.assessment_year,
        comparison.old_regime.rule_set_version,
    )
    logger.info(
        "Regimes compared id=%s ay=%s recommended=%s",
        calculation_id,
        tax_input.assessment_year,
        comparison.recommended_regime.value,
    )
    body = ComparisonResponse(calculation_id=calculation_id, comparison=comparison, warnings=warnings)
    return JSONResponse(status_code=200, content=_json(body))


# ---------------------------------------------------------------------------
# Capital gains / interest
# ---------------------------------------------------------------------------

@router.post("/capital-gains")
async def capital_gains(
    cg_input: CapitalGainsInput,
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    result = calculate_capital_gains(cg_input, rule_book=get_rule_book())
    calculation_id = await _persist(db, "capital_gains", cg_input, result, result.assessment_year)
    body = CapitalGainsResponse(calculation_id=calculation_id, result=result)
    return JSONResponse(status_code=200, content=_json(body))


@router.post("/interest-summary")
async def interest_summary(summary_input: InterestSummaryInput) -> JSONResponse:
    """Category totals vs per-bank totals. Not persisted."""
    return JSONResponse(status_code=200, content=_json(summarize_interest(summary_input)))


# ---------------------------------------------------------------------------
# Audit trail
# ---------------------------------------------------------------------------

@router.get("/calculations/{calculation_id}")
async def get_stored_calculation(
    calculation_id: str,
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    stored = await get_calculation(db, calculation_id)
    if stored is None:
        raise HTTPException(
            status_code=404,
            detail=f"Calculation '{calculation_id}' not found",
        )
    return JSONResponse(status_code=200, content=_json(stored))


# ---------------------------------------------------------------------------
# Rule tables (read-only)
# ---------------------------------------------------------------------------

@router.get("/rules")
async def list_rule_sets() -> dict:
    book = get_rule_book()
    return {
        "assessmentYears": book.supported_years,
        "ruleSets": [
            {
                "assessmentYear": rs.assessment_year,
                "financialYear": rs.financial_year,
                "version": rs.version,
                "configHash": rs.config_hash,
            }
            for rs in sorted(book.rule_sets, key=lambda r: r.assessment_year)
        ],
        "costInflationIndexVersion": book.cost_inflation_index.version,
    }


@router.get("/rules/{assessment_year}")
async def get_rule_set(assessment_year: str) -> JSONResponse:
    try:
        rule_set = get_rule_book().get(assessment_year)
    except UnsupportedAssessmentYear as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc
    content = rule_set.model_dump(mode="json")
    content["config_hash"] = rule_set.config_hash
    return JSONResponse(status_code=200, content=content)
