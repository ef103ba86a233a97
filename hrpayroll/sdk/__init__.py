"""HR Payroll SDK - Payroll, income tax and year-end reconciliation."""

from .config import (
    configure_logging,
    get_config_dir,
    get_settings_path,
    load_settings,
    save_settings,
    get_setting,
    set_setting,
    clear_setting,
    get_data_path,
    get_tax_rules_dir,
    get_employees_path,
)

from .errors import (
    FieldError,
    PayrollError,
    ValidationError,
    ConfigurationError,
    NotFoundError,
    InfrastructureError,
)

from .schemas import (
    EmployeeStatus,
    EmployeeProfile,
    IncomeItem,
    DeductionItem,
    PayrollRequest,
    IncomeTaxRequest,
    MonthlyPayroll,
    AnnualSummaryRequest,
    PayrollDeductions,
    SocialSecurity,
    PayrollResult,
    IncomeTaxResult,
    AnnualSummary,
)

from .employee import EmployeeDirectory
from .payroll import (
    PayrollCalculator,
    calc_personal_allowances,
    calc_provident_fund,
    calc_social_security,
)
from .reconcile import AnnualReconciliationEngine
from .validation import InputValidator

from .service import (
    PayrollService,
    calculate_payroll,
    calculate_income_tax,
    calculate_annual_summary,
    check_tax_compliance,
    validate_calculation_inputs,
)

from . import taxes

__all__ = [
    # Config
    "configure_logging",
    "get_config_dir",
    "get_settings_path",
    "load_settings",
    "save_settings",
    "get_setting",
    "set_setting",
    "clear_setting",
    "get_data_path",
    "get_tax_rules_dir",
    "get_employees_path",
    # Errors
    "FieldError",
    "PayrollError",
    "ValidationError",
    "ConfigurationError",
    "NotFoundError",
    "InfrastructureError",
    # Schemas
    "EmployeeStatus",
    "EmployeeProfile",
    "IncomeItem",
    "DeductionItem",
    "PayrollRequest",
    "IncomeTaxRequest",
    "MonthlyPayroll",
    "AnnualSummaryRequest",
    "PayrollDeductions",
    "SocialSecurity",
    "PayrollResult",
    "IncomeTaxResult",
    "AnnualSummary",
    # Components
    "EmployeeDirectory",
    "PayrollCalculator",
    "calc_personal_allowances",
    "calc_provident_fund",
    "calc_social_security",
    "AnnualReconciliationEngine",
    "InputValidator",
    # Service operations
    "PayrollService",
    "calculate_payroll",
    "calculate_income_tax",
    "calculate_annual_summary",
    "check_tax_compliance",
    "validate_calculation_inputs",
    "taxes",
]
