"""
models/__init__.py: imports all ORM models so Base.metadata.create_all sees them.
"""
from taxgenie.models.calculation import CalculationORM

__all__ = ["CalculationORM"]
