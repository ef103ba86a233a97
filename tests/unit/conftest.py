"""Shared fixtures: isolated config dir, tax rules and employee directory."""

import json

import pytest
import yaml

from hrpayroll.sdk import EmployeeDirectory
from hrpayroll.sdk.taxes import TaxSettingStore

# Taxable 600000 -> 15000 annual tax
SIMPLE_BRACKETS = [
    {"lower_bound": 0, "upper_bound": 300000, "rate": 0},
    {"lower_bound": 300000, "upper_bound": None, "rate": 5},
]

# Taxable 480000 -> 12000 annual tax
PAYROLL_BRACKETS = [
    {"lower_bound": 0, "upper_bound": 240000, "rate": 0},
    {"lower_bound": 240000, "upper_bound": None, "rate": 5},
]

# 60000 + 100000 (capped) + 11000 = 171000 annual deductions; SS 750/month
PAYROLL_SETTINGS = [
    {"key": "PERSONAL_ALLOWANCE", "value": 60000, "kind": "DEDUCTION", "enabled": True},
    {"key": "EMPLOYMENT_DEDUCTION_RATE", "value": 50, "kind": "RATE", "enabled": True},
    {"key": "STANDARD_DEDUCTION_MAX", "value": 100000, "kind": "LIMIT", "enabled": True},
    {"key": "SSF_RATE", "value": 5, "kind": "RATE", "enabled": True},
    {"key": "SSF_MAX_SALARY", "value": 15000, "kind": "LIMIT", "enabled": True},
    {"key": "LIFE_INSURANCE", "value": 11000, "kind": "DEDUCTION", "enabled": True},
]

# Per-employee settings on top of PAYROLL_SETTINGS; saving fund cap binds at 5% of 600000
PROFILE_YEAR = 2022
PROFILE_SETTINGS = PAYROLL_SETTINGS + [
    {"key": "SPOUSE_ALLOWANCE", "value": 60000, "kind": "DEDUCTION", "enabled": True},
    {"key": "CHILD_ALLOWANCE", "value": 30000, "kind": "DEDUCTION", "enabled": True},
    {"key": "CHILD_ALLOWANCE_SUBSEQUENT", "value": 60000, "kind": "DEDUCTION", "enabled": True},
    {"key": "PARENT_ALLOWANCE", "value": 30000, "kind": "DEDUCTION", "enabled": True},
    {"key": "PVD_FUND_RATE", "value": 7.5, "kind": "RATE", "enabled": True},
    {"key": "PVD_FUND_MAX", "value": 500000, "kind": "LIMIT", "enabled": True},
    {"key": "SAVING_FUND_RATE", "value": 5, "kind": "RATE", "enabled": True},
    {"key": "SAVING_FUND_MAX", "value": 20000, "kind": "LIMIT", "enabled": True},
]


def _write_rules(rules_dir, year, brackets=None, settings=None, period="annual"):
    data = {"year": year}
    if brackets is not None:
        data["brackets"] = {"period": period, "table": brackets}
    if settings is not None:
        data["settings"] = settings
    rules_dir.mkdir(parents=True, exist_ok=True)
    path = rules_dir / f"{year}.yaml"
    path.write_text(yaml.safe_dump(data, sort_keys=False))
    return path


@pytest.fixture
def rules_dir(tmp_path):
    return tmp_path / "tax-rules"


@pytest.fixture
def write_rules(rules_dir):
    """Factory writing tax-rules/{year}.yaml: write_rules(year, brackets, settings, period)."""
    def write(year, brackets=None, settings=None, period="annual"):
        return _write_rules(rules_dir, year, brackets, settings, period)
    return write


@pytest.fixture
def payroll_rules(write_rules):
    """2025 with the payroll fixture table, 2024 with the simple table."""
    write_rules(2025, PAYROLL_BRACKETS, PAYROLL_SETTINGS)
    write_rules(2024, SIMPLE_BRACKETS, PAYROLL_SETTINGS)


@pytest.fixture
def store(rules_dir, payroll_rules):
    return TaxSettingStore(rules_dir)


@pytest.fixture
def employees():
    return EmployeeDirectory([1, 2, 3])


@pytest.fixture
def isolated_env(tmp_path, monkeypatch, rules_dir, payroll_rules):
    """Config dir, settings.json, employees file and tax rules under tmp_path."""
    config_dir = tmp_path / "config"
    data_dir = tmp_path / "data"
    config_dir.mkdir()
    data_dir.mkdir()

    employees_file = data_dir / "employees.yaml"
    employees_file.write_text(yaml.safe_dump({"employees": [{"id": 1}, {"id": 2}, {"id": 3}]}))

    monkeypatch.setenv("HR_PAYROLL_CONFIG_PATH", str(config_dir))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg-data"))

    settings = {
        "data_dir": str(data_dir),
        "tax_rules_dir": str(rules_dir),
        "employees_file": str(employees_file),
    }
    (config_dir / "settings.json").write_text(json.dumps(settings))

    yield {
        "config_dir": config_dir,
        "data_dir": data_dir,
        "rules_dir": rules_dir,
        "employees_file": employees_file,
    }


@pytest.fixture
def profile_rules(write_rules):
    """PROFILE_YEAR with the payroll table and per-employee allowances enabled."""
    return write_rules(PROFILE_YEAR, PAYROLL_BRACKETS, PROFILE_SETTINGS)


@pytest.fixture
def write_payroll_year(write_rules):
    """Factory configuring a year with the payroll brackets and settings."""
    def write(year):
        return write_rules(year, PAYROLL_BRACKETS, PAYROLL_SETTINGS)
    return write
