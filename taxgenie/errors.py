"""
errors.py: typed failures raised by the tax engine and rule book.

Per-request errors (InvalidInput, UnsupportedAssessmentYear, MissingIndexData)
carry a machine-readable `code` and `status_code` that main.py turns into the
standard {error: {code, message, details}} envelope.

ConfigurationError is raised while loading rule tables. It has no status code:
the service refuses to start instead of answering requests with a bad table.
"""
from __future__ import annotations

from typing import Optional


class TaxEngineError(Exception):
    """Base class for every per-request engine failure."""

    code = "TAX_ENGINE_ERROR"
    status_code = 422

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class InvalidInput(TaxEngineError):
    """Negative amounts, malformed values, or otherwise unusable input."""

    code = "INVALID_INPUT"


class InvalidDateRange(InvalidInput):
    """saleDate earlier than purchaseDate."""

    code = "INVALID_DATE_RANGE"


class UnsupportedAssessmentYear(TaxEngineError):
    """No rule table registered for the requested assessment year."""

    code = "UNSUPPORTED_ASSESSMENT_YEAR"

    def __init__(self, assessment_year: str) -> None:
        super().__init__(
            f"Unsupported assessment year: {assessment_year!r}",
            field="assessmentYear",
        )
        self.assessment_year = assessment_year


class MissingIndexData(TaxEngineError):
    """Indexation requested but the Cost Inflation Index has no entry for a year."""

    code = "MISSING_INDEX_DATA"

    def __init__(self, financial_year: str, field: Optional[str] = None) -> None:
        super().__init__(
            f"No Cost Inflation Index value for financial year {financial_year}",
            field=field,
        )
        self.financial_year = financial_year


class ConfigurationError(Exception):
    """A rule table failed validation at load time. Fatal, not per-request."""


__all__ = [
    "TaxEngineError",
    "InvalidInput",
    "InvalidDateRange",
    "UnsupportedAssessmentYear",
    "MissingIndexData",
    "ConfigurationError",
]
