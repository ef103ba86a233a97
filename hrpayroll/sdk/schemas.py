"""Pydantic schemas for payroll requests and results.

All schemas use extra='forbid' to reject unknown fields, so a misspelled
request key is reported instead of silently ignored.

Request amounts are bounded by MAX_AMOUNT. Result amounts are Decimals
already rounded to cents; they serialize to strings in JSON mode
(model_dump(mode="json")).
"""

from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import FieldError
from .money import MAX_AMOUNT
from .taxes.schemas import BracketContribution

MIN_TAX_YEAR = 2000
MAX_TAX_YEAR = 2100
MONTHS = 12


# =============================================================================
# Request Schemas
# =============================================================================


class EmployeeStatus(str, Enum):
    """Residency status, which decides the retirement fund that applies."""

    LOCAL_ID = "Local ID"          # Thai national: provident (PVD) fund
    LOCAL_NON_ID = "Local non ID"  # non-Thai local staff: saving fund
    EXPAT = "Expats"               # no fund deduction


class EmployeeProfile(BaseModel):
    """Personal circumstances that drive per-employee allowances."""

    model_config = ConfigDict(extra="forbid")

    has_spouse: bool = Field(default=False, description="Spouse without income")
    children: int = Field(default=0, ge=0, le=50)
    eligible_parents: int = Field(default=0, ge=0, le=4, description="Parents (own or spouse's) supported")
    months_working_this_year: int = Field(
        default=MONTHS, ge=1, le=MONTHS, description="Months employed this year (mid-year starters)"
    )
    employee_status: EmployeeStatus = EmployeeStatus.EXPAT


class IncomeItem(BaseModel):
    """Ad-hoc addition to a payroll run (bonus, overtime, allowance)."""

    model_config = ConfigDict(extra="forbid")

    type: str = Field(..., min_length=1, description="Income type (e.g., 'bonus')")
    amount: Decimal = Field(..., ge=0, le=MAX_AMOUNT, description="Monthly amount")
    description: Optional[str] = None


class DeductionItem(BaseModel):
    """Ad-hoc post-tax deduction from a payroll run (loan repayment, advance)."""

    model_config = ConfigDict(extra="forbid")

    type: str = Field(..., min_length=1, description="Deduction type (e.g., 'loan')")
    amount: Decimal = Field(..., ge=0, le=MAX_AMOUNT, description="Monthly amount")
    description: Optional[str] = None


class PayrollRequest(BaseModel):
    """Input to calculate_payroll."""

    model_config = ConfigDict(extra="forbid")

    employee_id: int = Field(..., ge=1)
    gross_salary: Decimal = Field(..., ge=0, le=MAX_AMOUNT, description="Monthly gross salary")
    tax_year: Optional[int] = Field(default=None, ge=MIN_TAX_YEAR, le=MAX_TAX_YEAR)
    additional_income: List[IncomeItem] = Field(default_factory=list)
    additional_deductions: List[DeductionItem] = Field(default_factory=list)
    employee_profile: Optional[EmployeeProfile] = Field(
        default=None, description="Omit for a single employee with no dependants, working all year"
    )


class IncomeTaxRequest(BaseModel):
    """Input to calculate_income_tax."""

    model_config = ConfigDict(extra="forbid")

    taxable_income: Decimal = Field(..., ge=0, le=MAX_AMOUNT, description="Annual taxable income")
    tax_year: Optional[int] = Field(default=None, ge=MIN_TAX_YEAR, le=MAX_TAX_YEAR)


class MonthlyPayroll(BaseModel):
    """One month of an employee's payroll, as reported for reconciliation."""

    model_config = ConfigDict(extra="forbid")

    month: int = Field(..., ge=1, le=MONTHS)
    total_income: Decimal = Field(..., ge=0, le=MAX_AMOUNT)
    total_deductions: Decimal = Field(
        ..., ge=0, le=MAX_AMOUNT, description="Deductions including social security"
    )
    income_tax: Decimal = Field(..., ge=0, le=MAX_AMOUNT, description="Tax withheld that month")

    @classmethod
    def from_payroll_result(cls, month: int, result: "PayrollResult") -> "MonthlyPayroll":
        """Month entry for a calculated payroll.

        PayrollResult keeps social security apart from its deductions; here
        the employee contribution is folded into total_deductions.
        """
        return cls(
            month=month,
            total_income=result.total_income,
            total_deductions=(
                result.deductions.total_deductions + result.social_security.employee_contribution
            ),
            income_tax=result.income_tax,
        )


class AnnualSummaryRequest(BaseModel):
    """Input to calculate_annual_summary."""

    model_config = ConfigDict(extra="forbid")

    employee_id: int = Field(..., ge=1)
    tax_year: Optional[int] = Field(default=None, ge=MIN_TAX_YEAR, le=MAX_TAX_YEAR)
    monthly_payrolls: List[MonthlyPayroll]

    @field_validator("monthly_payrolls")
    @classmethod
    def check_twelve_distinct_months(cls, value: List[MonthlyPayroll]) -> List[MonthlyPayroll]:
        check_monthly_coverage(value)
        return value


def check_monthly_coverage(monthly_payrolls: List[MonthlyPayroll]) -> None:
    """Require exactly one entry for each of the 12 months.

    Raises:
        ValueError: Describing the count or the duplicated/missing months
    """
    if len(monthly_payrolls) != MONTHS:
        raise ValueError(f"expected exactly {MONTHS} monthly payrolls, got {len(monthly_payrolls)}")
    months = [p.month for p in monthly_payrolls]
    duplicates = sorted({m for m in months if months.count(m) > 1})
    if duplicates:
        raise ValueError(f"duplicate months: {duplicates}")


# =============================================================================
# Result Schemas
# =============================================================================


class PayrollDeductions(BaseModel):
    """Monthly shares of the deductions applied before tax."""

    model_config = ConfigDict(extra="forbid")

    personal_allowance: Decimal
    standard_deduction: Decimal
    allowances: Dict[str, Decimal] = Field(
        default_factory=dict, description="Spouse, child and parent allowances that applied"
    )
    provident_fund: Decimal
    provident_fund_type: Optional[str] = Field(default=None, description="PVD_FUND or SAVING_FUND")
    other_deductions: Dict[str, Decimal] = Field(default_factory=dict)
    total_deductions: Decimal
    additional_deductions: Decimal = Field(..., description="Sum of ad-hoc post-tax deductions")


class SocialSecurity(BaseModel):
    """Monthly social security contributions."""

    model_config = ConfigDict(extra="forbid")

    employee_contribution: Decimal
    employer_contribution: Decimal


class PayrollResult(BaseModel):
    """Full payroll breakdown for one month.

    Invariant: net_salary + income_tax + deductions.total_deductions
    + social_security.employee_contribution + deductions.additional_deductions
    == total_income.
    """

    model_config = ConfigDict(extra="forbid")

    employee_id: int
    tax_year: int
    months_worked: int = Field(..., description="Months the annual figures are spread over")
    gross_salary: Decimal
    total_income: Decimal
    taxable_income: Decimal = Field(..., description="Annualized taxable income")
    annual_income_tax: Decimal
    income_tax: Decimal = Field(..., description="Monthly income tax withheld")
    net_salary: Decimal
    deductions: PayrollDeductions
    social_security: SocialSecurity
    tax_breakdown: List[BracketContribution]


class IncomeTaxResult(BaseModel):
    """Progressive tax on an annual taxable income."""

    model_config = ConfigDict(extra="forbid")

    tax_year: int
    taxable_income: Decimal
    annual_tax: Decimal
    monthly_tax: Decimal
    effective_rate: Decimal = Field(..., description="annual_tax / taxable_income as a percentage")
    tax_breakdown: List[BracketContribution]


class AnnualSummary(BaseModel):
    """Year-end reconciliation of withheld tax against annual liability.

    Invariant: tax_paid + additional_tax_due - refund_due == tax_liability.
    """

    model_config = ConfigDict(extra="forbid")

    employee_id: int
    tax_year: int
    total_income: Decimal
    total_deductions: Decimal
    taxable_income: Decimal
    tax_liability: Decimal
    tax_paid: Decimal
    tax_difference: Decimal
    refund_due: Decimal
    additional_tax_due: Decimal

