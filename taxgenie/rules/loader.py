"""
loader.py: reads the YAML rule tables into a validated, immutable RuleBook.

Usage:
    from taxgenie.rules.loader import get_rule_book
    rules = get_rule_book().get("2024-25")

Tables live in taxgenie/rules/tables/ (one ay_YYYY_YY.yaml per assessment year
plus cost_inflation_index.yaml). settings.rule_tables_dir overrides the
directory. Any unreadable or invalid table raises ConfigurationError. The
FastAPI lifespan calls get_rule_book(), so that happens before serving traffic.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError

from taxgenie.config import settings
from taxgenie.errors import ConfigurationError
from taxgenie.rules.schemas import CostInflationIndex, RuleBook, RuleSet

logger = logging.getLogger(__name__)

TABLES_DIR = Path(__file__).parent / "tables"
RULE_SET_GLOB = "ay_*.yaml"
CII_FILE = "cost_inflation_index.yaml"


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Cannot read rule table {path.name}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Rule table {path.name} must be a mapping at top level")
    return data


def _load_rule_set(path: Path) -> RuleSet:
    try:
        rule_set = RuleSet.model_validate(_read_yaml(path))
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid rule table {path.name}: {exc}") from exc
    logger.info(
        "Loaded rule set AY %s version=%s hash=%s",
        rule_set.assessment_year,
        rule_set.version,
        rule_set.config_hash,
    )
    return rule_set


def _load_cost_inflation_index(path: Path) -> CostInflationIndex:
    if not path.exists():
        raise ConfigurationError(f"Missing {path.name} in {path.parent}")
    raw = _read_yaml(path)
    try:
        return CostInflationIndex(
            version=raw.get("version", ""),
            values=raw.get("cost_inflation_index") or {},
        )
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid {path.name}: {exc}") from exc


def load_rule_book(tables_dir: Optional[Union[str, Path]] = None) -> RuleBook:
    """
    Load every rule table in tables_dir (default: packaged tables).

    Raises:
        ConfigurationError: directory missing, no tables, unreadable YAML,
            slab contiguity / surcharge ordering violations, duplicate years.
    """
    directory = Path(tables_dir) if tables_dir else TABLES_DIR
    if not directory.is_dir():
        raise ConfigurationError(f"Rule table directory not found: {directory}")

    paths = sorted(directory.glob(RULE_SET_GLOB))
    if not paths:
        raise ConfigurationError(f"No {RULE_SET_GLOB} rule tables in {directory}")

    rule_sets = tuple(_load_rule_set(path) for path in paths)
    cii = _load_cost_inflation_index(directory / CII_FILE)

    try:
        book = RuleBook(rule_sets=rule_sets, cost_inflation_index=cii)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid rule book in {directory}: {exc}") from exc

    logger.info("Rule book ready: assessment years %s", ", ".join(book.supported_years))
    return book


@lru_cache(maxsize=1)
def get_rule_book() -> RuleBook:
    """Process-wide rule book, loaded on first use and never mutated afterwards."""
    return load_rule_book(settings.rule_tables_dir or None)
