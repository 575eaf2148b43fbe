"""
models/calculation.py: SQLAlchemy ORM model for the calculation audit trail.

Table: calculations
One row per engine call made over HTTP: the raw request and the full result,
so any past answer can be replayed and explained.
"""
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from taxgenie.database import Base


class CalculationORM(Base):
    """
    raw_input:   request body exactly as validated (camelCase JSON).
    result_data: full engine output (TaxResult, RegimeComparison or CapitalGainsResult).
    kind / assessment_year: denormalized for querying without parsing JSON.
    """
    __tablename__ = "calculations"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    kind: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        index=True,
        comment="'tax', 'comparison' or 'capital_gains'",
    )
    assessment_year: Mapped[Optional[str]] = mapped_column(
        String(7),
        nullable=True,
        comment="e.g. '2024-25'",
    )
    raw_input: Mapped[dict] = mapped_column(JSON, nullable=False)
    result_data: Mapped[dict] = mapped_column(JSON, nullable=False)
    rule_set_version: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
