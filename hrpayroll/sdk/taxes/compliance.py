"""Check a year's tax configuration against Thai Revenue Department rules.

Errors are values that make calculations non-compliant (wrong bracket
bounds or rates, social security off 5% / 750 per month, missing
employment deduction or personal allowance). Warnings flag configurations
that work but look unusual.
"""

from decimal import Decimal
from typing import List, Optional

from .deductions import (
    EMPLOYMENT_DEDUCTION_RATE,
    PERSONAL_ALLOWANCE,
    SSF_MAX_MONTHLY,
    SSF_RATE,
    STANDARD_DEDUCTION_MAX,
)
from .schemas import BracketTable, ComplianceReport, TaxSetting

# (lower_bound, upper_bound, rate) of the 2025 personal income tax table
THAI_BRACKETS = [
    (Decimal("0"), Decimal("150000"), Decimal("0")),
    (Decimal("150000"), Decimal("300000"), Decimal("5")),
    (Decimal("300000"), Decimal("500000"), Decimal("10")),
    (Decimal("500000"), Decimal("750000"), Decimal("15")),
    (Decimal("750000"), Decimal("1000000"), Decimal("20")),
    (Decimal("1000000"), Decimal("2000000"), Decimal("25")),
    (Decimal("2000000"), Decimal("5000000"), Decimal("30")),
    (Decimal("5000000"), None, Decimal("35")),
]

SSF_COMPLIANT_RATE = Decimal("5")
SSF_COMPLIANT_MAX_MONTHLY = Decimal("750")
DEPRECATED_SETTINGS = {"PERSONAL_EXPENSE_RATE": EMPLOYMENT_DEDUCTION_RATE}

# Each error costs this many points off a perfect 100
ERROR_PENALTY = 20


def _fmt(amount: Optional[Decimal]) -> str:
    return "unlimited" if amount is None else f"{amount:,}"


def _check_brackets(table: Optional[BracketTable], errors: List[str], warnings: List[str]) -> None:
    if table is None or not table.brackets:
        errors.append("No tax brackets configured")
        return
    if table.period != "annual":
        errors.append(f"Bracket table is {table.period}; Thai brackets are annual")

    if len(table.brackets) != len(THAI_BRACKETS):
        warnings.append(
            f"Expected {len(THAI_BRACKETS)} tax brackets, found {len(table.brackets)}"
        )

    for number, (bracket, expected) in enumerate(zip(table.brackets, THAI_BRACKETS), start=1):
        lower, upper, rate = expected
        if bracket.rate != rate:
            errors.append(f"Bracket {number} rate is {bracket.rate}%, expected {rate}%")
        if bracket.lower_bound != lower:
            errors.append(
                f"Bracket {number} starts at {_fmt(bracket.lower_bound)}, expected {_fmt(lower)}"
            )
        if bracket.upper_bound != upper:
            errors.append(
                f"Bracket {number} ends at {_fmt(bracket.upper_bound)}, expected {_fmt(upper)}"
            )


def _check_settings(settings: List[TaxSetting], errors: List[str], warnings: List[str]) -> None:
    by_key = {s.key: s for s in settings if s.enabled}

    for key, label in (
        (EMPLOYMENT_DEDUCTION_RATE, "Employment deduction rate"),
        (STANDARD_DEDUCTION_MAX, "Employment deduction maximum"),
        (PERSONAL_ALLOWANCE, "Personal allowance"),
    ):
        if key not in by_key:
            errors.append(f"{label} ({key}) is required")

    ssf_rate = by_key.get(SSF_RATE)
    if ssf_rate is None or ssf_rate.value != SSF_COMPLIANT_RATE:
        found = "missing" if ssf_rate is None else f"{ssf_rate.value}%"
        errors.append(f"Social security rate must be exactly {SSF_COMPLIANT_RATE}% ({found})")

    max_monthly = by_key.get(SSF_MAX_MONTHLY)
    if max_monthly is None or max_monthly.value != SSF_COMPLIANT_MAX_MONTHLY:
        found = "missing" if max_monthly is None else _fmt(max_monthly.value)
        errors.append(
            f"Maximum monthly social security contribution must be {SSF_COMPLIANT_MAX_MONTHLY} ({found})"
        )

    for old, new in DEPRECATED_SETTINGS.items():
        if old in by_key:
            warnings.append(f"{old} is deprecated; use {new} instead")


def check_compliance(
    year: int,
    settings: List[TaxSetting],
    brackets: Optional[BracketTable],
) -> ComplianceReport:
    """Check one year's settings and bracket table.

    Never raises for a non-compliant configuration; problems are reported
    in the returned ComplianceReport.
    """
    errors: List[str] = []
    warnings: List[str] = []
    _check_brackets(brackets, errors, warnings)
    _check_settings(settings, errors, warnings)

    return ComplianceReport(
        tax_year=year,
        is_compliant=not errors,
        errors=errors,
        warnings=warnings,
        compliance_score=max(0, 100 - ERROR_PENALTY * len(errors)),
    )
