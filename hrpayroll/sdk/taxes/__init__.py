"""taxes - Tax configuration and progressive tax logic.

Scope:
- Tax brackets and settings per effective year (tax-rules/{year}.yaml)
- Progressive tax over a bracket table, with per-bracket breakdown
- Resolution of enabled settings into a DeductionSet, cached per year
- Compliance of a year's configuration with Thai Revenue Department rules

Constraints:
- Pure calculation in progressive.py - no store access, no rounding
- Store writes invalidate the cached year before returning

Usage:
    from hrpayroll.sdk.taxes import TaxSettingStore, DeductionAssembler

    store = TaxSettingStore()
    assembler = DeductionAssembler(store)
    snapshot = assembler.load_year(2025)
    tax, breakdown = calculate_progressive_tax(taxable, snapshot.brackets, "annual")
"""

from .schemas import (
    BracketContribution,
    BracketTable,
    ComplianceReport,
    DeductionSet,
    SettingKind,
    TaxBracket,
    TaxSetting,
    TaxYearSnapshot,
)

from .progressive import (
    ProgressiveTaxCalculator,
    calculate_progressive_tax,
    get_tax_breakdown,
    round_breakdown,
    validate_brackets,
)

from .settings_store import TaxSettingStore

from .deductions import (
    DeductionAssembler,
    TaxYearCache,
    build_deduction_set,
    REQUIRED_SETTINGS,
    OPTIONAL_SETTINGS,
)

from .compliance import THAI_BRACKETS, check_compliance

__all__ = [
    # Schemas
    "BracketContribution",
    "BracketTable",
    "ComplianceReport",
    "DeductionSet",
    "SettingKind",
    "TaxBracket",
    "TaxSetting",
    "TaxYearSnapshot",
    # Progressive tax
    "ProgressiveTaxCalculator",
    "calculate_progressive_tax",
    "get_tax_breakdown",
    "round_breakdown",
    "validate_brackets",
    # Store and deductions
    "TaxSettingStore",
    "DeductionAssembler",
    "TaxYearCache",
    "build_deduction_set",
    "REQUIRED_SETTINGS",
    "OPTIONAL_SETTINGS",
    # Compliance
    "THAI_BRACKETS",
    "check_compliance",
]
