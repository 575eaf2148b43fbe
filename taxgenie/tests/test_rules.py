"""
Rule book loading and validation tests.

Broken tables are written to tmp_path by copying the packaged YAML and
mutating one value, so every failure mode raises ConfigurationError.
"""
from __future__ import annotations

import re
import shutil
from decimal import Decimal
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from taxgenie.errors import ConfigurationError, MissingIndexData, UnsupportedAssessmentYear
from taxgenie.rules.loader import CII_FILE, TABLES_DIR, load_rule_book


def _copy_tables(tmp_path: Path) -> Path:
    target = tmp_path / "tables"
    shutil.copytree(TABLES_DIR, target)
    return target


def _mutate(tables: Path, filename: str, mutate) -> None:
    path = tables / filename
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    mutate(data)
    path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")


# ===========================================================================
# Packaged tables
# ===========================================================================

def test_packaged_years(rule_book) -> None:
    assert rule_book.supported_years == ["2024-25", "2025-26", "2026-27"]


def test_packaged_values(rule_book) -> None:
    ay24 = rule_book.get("2024-25")
    ay26 = rule_book.get("2026-27")
    assert ay24.financial_year == "2023-24"
    assert ay24.new_regime.standard_deduction == 50_000
    assert ay26.new_regime.standard_deduction == 75_000
    assert ay26.new_regime.rebate_87a.max_income == 1_200_000
    assert ay26.new_regime.rebate_87a.max_rebate == 60_000
    assert ay24.new_regime.surcharge[-1].rate == Decimal("0.25")
    assert ay24.old_regime.surcharge[-1].rate == Decimal("0.37")
    assert ay24.old_regime.slabs.senior[0].upper == 300_000
    assert ay24.old_regime.slabs.super_senior[0].upper == 500_000


def test_config_hash_is_stable(rule_book) -> None:
    reloaded = load_rule_book()
    for year in rule_book.supported_years:
        digest = rule_book.get(year).config_hash
        assert re.fullmatch(r"[0-9a-f]{16}", digest)
        assert reloaded.get(year).config_hash == digest
    assert rule_book.get("2024-25").config_hash != rule_book.get("2025-26").config_hash


def test_unknown_year(rule_book) -> None:
    with pytest.raises(UnsupportedAssessmentYear) as exc_info:
        rule_book.get("2019-20")
    assert exc_info.value.code == "UNSUPPORTED_ASSESSMENT_YEAR"


def test_cost_inflation_index(rule_book) -> None:
    cii = rule_book.cost_inflation_index
    assert cii.value_for("2001-02") == 100
    assert cii.value_for("2025-26") == 376
    with pytest.raises(MissingIndexData):
        cii.value_for("2000-01")


def test_rule_set_is_frozen(rule_book) -> None:
    rules = rule_book.get("2024-25")
    with pytest.raises(ValidationError):
        rules.cess_rate = "0.05"

    cii = rule_book.cost_inflation_index
    with pytest.raises(ValidationError):
        cii.values = {"2001-02": 1}
    with pytest.raises(TypeError):
        cii.values["2001-02"] = 1
    assert cii.value_for("2001-02") == 100


# ===========================================================================
# Broken tables
# ===========================================================================

def test_slab_gap_rejected(tmp_path: Path) -> None:
    tables = _copy_tables(tmp_path)
    _mutate(tables, "ay_2024_25.yaml", lambda d: d["new_regime"]["slabs"][2].update(lower=650_000))
    with pytest.raises(ConfigurationError, match="gap or overlap"):
        load_rule_book(tables)


def test_open_ended_middle_slab_rejected(tmp_path: Path) -> None:
    tables = _copy_tables(tmp_path)
    _mutate(tables, "ay_2025_26.yaml", lambda d: d["old_regime"]["slabs"]["senior"][1].update(upper=None))
    with pytest.raises(ConfigurationError, match="open-ended"):
        load_rule_book(tables)


def test_first_slab_must_start_at_zero(tmp_path: Path) -> None:
    tables = _copy_tables(tmp_path)
    _mutate(tables, "ay_2026_27.yaml", lambda d: d["new_regime"]["slabs"][0].update(lower=1))
    with pytest.raises(ConfigurationError):
        load_rule_book(tables)


def test_rate_above_one_rejected(tmp_path: Path) -> None:
    tables = _copy_tables(tmp_path)
    _mutate(tables, "ay_2024_25.yaml", lambda d: d.update(cess_rate="4"))
    with pytest.raises(ConfigurationError):
        load_rule_book(tables)


def test_surcharge_thresholds_must_increase(tmp_path: Path) -> None:
    tables = _copy_tables(tmp_path)

    def swap(data: dict) -> None:
        bands = data["old_regime"]["surcharge"]
        bands[0], bands[1] = bands[1], bands[0]

    _mutate(tables, "ay_2024_25.yaml", swap)
    with pytest.raises(ConfigurationError, match="strictly increase"):
        load_rule_book(tables)


def test_duplicate_assessment_year_rejected(tmp_path: Path) -> None:
    tables = _copy_tables(tmp_path)
    shutil.copy(tables / "ay_2024_25.yaml", tables / "ay_2024_25_copy.yaml")
    with pytest.raises(ConfigurationError, match="duplicate"):
        load_rule_book(tables)


def test_unknown_key_rejected(tmp_path: Path) -> None:
    tables = _copy_tables(tmp_path)
    _mutate(tables, "ay_2024_25.yaml", lambda d: d.update(education_cess="0.02"))
    with pytest.raises(ConfigurationError):
        load_rule_book(tables)


def test_malformed_yaml_rejected(tmp_path: Path) -> None:
    tables = _copy_tables(tmp_path)
    (tables / "ay_2024_25.yaml").write_text("assessment_year: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_rule_book(tables)


def test_missing_cii_file_rejected(tmp_path: Path) -> None:
    tables = _copy_tables(tmp_path)
    (tables / CII_FILE).unlink()
    with pytest.raises(ConfigurationError):
        load_rule_book(tables)


def test_missing_directory_rejected(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_rule_book(tmp_path / "nope")


def test_empty_directory_rejected(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_rule_book(tmp_path)
