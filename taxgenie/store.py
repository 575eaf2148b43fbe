"""
store.py: Data access facade for the calculation audit trail.

Routes use these functions; no route touches SQLAlchemy directly.

  - All functions are async and accept an AsyncSession parameter
  - No raw SQL: ORM-only queries
  - Logs only calculation ids, kinds and years, never amounts
  - Returns Pydantic objects (not ORM instances) so callers are persistence-agnostic
"""
import logging
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taxgenie.calculator.schemas import StoredCalculation
from taxgenie.models.calculation import CalculationORM

logger = logging.getLogger(__name__)


async def save_calculation(
    db: AsyncSession,
    kind: str,
    raw_input: dict[str, Any],
    result: dict[str, Any],
    assessment_year: Optional[str] = None,
    rule_set_version: Optional[str] = None,
) -> str:
    """
    Persist one calculation and return its id.
    Uses flush() (not commit()). The get_db() dependency handles commit.
    """
    orm = CalculationORM(
        kind=kind,
        assessment_year=assessment_year,
        raw_input=raw_input,
        result_data=result,
        rule_set_version=rule_set_version,
    )
    db.add(orm)
    await db.flush()
    logger.info("Saved calculation id=%s kind=%s ay=%s", orm.id, kind, assessment_year)
    return orm.id


async def get_calculation(
    db: AsyncSession,
    calculation_id: str,
) -> Optional[StoredCalculation]:
    """
    Retrieve a stored calculation by id.
    Returns None if not found (caller raises 404).
    """
    result = await db.execute(
        select(CalculationORM).where(CalculationORM.id == calculation_id)
    )
    orm = result.scalar_one_or_none()
    if orm is None:
        return None
    return StoredCalculation(
        id=orm.id,
        kind=orm.kind,
        assessment_year=orm.assessment_year,
        raw_input=orm.raw_input,
        result=orm.result_data,
        created_at=orm.created_at,
    )
