"""Monthly payroll: gross salary and ad-hoc items to net salary.

Calculation sequence (all amounts monthly unless stated). Annual figures
cover the months worked this year, 12 unless the employee profile says
otherwise:
1. total_income = gross_salary + additional income
2. Annual deductions from settings: standard deduction (percent of
   annualized income, capped), personal allowance, the spouse, child and
   parent allowances the profile qualifies for, provident or saving fund
   by employee status, other configured deductions
3. Social security = min(gross_salary, salary cap) x rate, per side
4. Annual taxable income = months x (total_income - employee SS)
   - annual deductions, floored at 0
5. Annual tax from the annual bracket table; monthly tax = annual / months
6. net_salary = total_income - deductions - employee SS - monthly tax
   - additional deductions

The settings snapshot is read once, at the start of the calculation.
"""

from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, Optional, Tuple

from .employee import EmployeeDirectory
from .money import ZERO, percent_of, round_money, sum_amounts, to_decimal
from .schemas import (
    DeductionItem,
    EmployeeProfile,
    EmployeeStatus,
    IncomeItem,
    PayrollDeductions,
    PayrollResult,
    SocialSecurity,
)
from .taxes import DeductionAssembler, DeductionSet, calculate_progressive_tax, round_breakdown
from .taxes.deductions import (
    CHILD_ALLOWANCE,
    CHILD_ALLOWANCE_SUBSEQUENT,
    PARENT_ALLOWANCE,
    SPOUSE_ALLOWANCE,
)

PVD_FUND = "PVD_FUND"
SAVING_FUND = "SAVING_FUND"


def calc_social_security(gross_salary: Decimal, deductions: DeductionSet) -> SocialSecurity:
    """Employee and employer contributions for one month (unrounded).

    Contributions apply to salary up to the cap; SSF_MAX_MONTHLY, when
    configured, caps each side's contribution.
    """
    insured_salary = min(gross_salary, deductions.social_security_cap)
    employee = percent_of(insured_salary, deductions.social_security_rate)
    employer = percent_of(insured_salary, deductions.employer_social_security_rate)

    max_contribution = deductions.social_security_max_contribution
    if max_contribution is not None:
        employee = min(employee, max_contribution)
        employer = min(employer, max_contribution)

    return SocialSecurity(employee_contribution=employee, employer_contribution=employer)


def calc_personal_allowances(deductions: DeductionSet, profile: EmployeeProfile) -> Dict[str, Decimal]:
    """Annual spouse, child and parent allowances the employee qualifies for.

    Each applies only when its setting is enabled for the year. The first
    child earns CHILD_ALLOWANCE; every later child earns
    CHILD_ALLOWANCE_SUBSEQUENT, or nothing when that setting is disabled.
    """
    allowances = {}
    if profile.has_spouse and deductions.spouse_allowance is not None:
        allowances[SPOUSE_ALLOWANCE] = deductions.spouse_allowance
    if profile.children > 0 and deductions.child_allowance is not None:
        allowances[CHILD_ALLOWANCE] = deductions.child_allowance
    if profile.children > 1 and deductions.child_allowance_subsequent is not None:
        allowances[CHILD_ALLOWANCE_SUBSEQUENT] = (
            deductions.child_allowance_subsequent * (profile.children - 1)
        )
    if profile.eligible_parents > 0 and deductions.parent_allowance is not None:
        allowances[PARENT_ALLOWANCE] = deductions.parent_allowance * profile.eligible_parents
    return allowances


def calc_provident_fund(
    annual_salary: Decimal,
    deductions: DeductionSet,
    status: EmployeeStatus,
) -> Tuple[Decimal, Optional[str]]:
    """Annual retirement fund deduction and the fund it goes to.

    Thai nationals contribute to the provident (PVD) fund, other local
    staff to the saving fund, at a percentage of annual salary up to the
    fund maximum. Expats, or a fund whose rate is not enabled, deduct
    nothing.
    """
    if status is EmployeeStatus.LOCAL_ID:
        rate, cap, fund = deductions.provident_fund_rate, deductions.provident_fund_max, PVD_FUND
    elif status is EmployeeStatus.LOCAL_NON_ID:
        rate, cap, fund = deductions.saving_fund_rate, deductions.saving_fund_max, SAVING_FUND
    else:
        return ZERO, None

    if rate is None:
        return ZERO, None
    amount = percent_of(annual_salary, rate)
    if cap is not None:
        amount = min(amount, cap)
    return amount, fund


class PayrollCalculator:
    """Turns a monthly gross salary plus ad-hoc items into a PayrollResult.

    Args:
        assembler: Source of the per-year deduction set and bracket table
        employees: Directory used to reject unknown employee ids
    """

    def __init__(self, assembler: DeductionAssembler, employees: EmployeeDirectory):
        self.assembler = assembler
        self.employees = employees

    def calculate_payroll(
        self,
        employee_id: int,
        gross_salary,
        additional_income: Iterable[IncomeItem] = (),
        additional_deductions: Iterable[DeductionItem] = (),
        tax_year: Optional[int] = None,
        profile: Optional[EmployeeProfile] = None,
    ) -> PayrollResult:
        """Calculate one month's payroll.

        Args:
            employee_id: Employee the payroll is for
            gross_salary: Monthly gross salary
            additional_income: Bonuses, overtime and other monthly additions
            additional_deductions: Post-tax deductions (loans, advances)
            tax_year: Year whose settings and brackets apply
            profile: Dependants, months worked and status (default: none,
                12 months, expat)

        Returns:
            PayrollResult with amounts rounded to cents

        Raises:
            NotFoundError: Unknown employee
            ConfigurationError: Missing settings or malformed brackets for the year
            InfrastructureError: Settings store or employee directory unreachable
            ValidationError: An amount too large to carry cents
        """
        self.employees.require(employee_id)
        if tax_year is None:
            tax_year = date.today().year
        if profile is None:
            profile = EmployeeProfile()

        gross = to_decimal(gross_salary)
        if gross < 0:
            raise ValueError(f"gross_salary must be >= 0, got {gross}")
        income_items = list(additional_income)
        deduction_items = list(additional_deductions)
        months = Decimal(profile.months_working_this_year)

        snapshot = self.assembler.load_year(tax_year)
        settings = snapshot.deductions

        total_income = gross + sum_amounts(income_items)
        annual_income = total_income * months

        standard_deduction = settings.standard_deduction(annual_income)
        allowances = calc_personal_allowances(settings, profile)
        provident_fund, fund_type = calc_provident_fund(gross * months, settings, profile.employee_status)
        annual_deductions = (
            standard_deduction
            + settings.personal_allowance
            + sum(allowances.values(), ZERO)
            + provident_fund
            + settings.other_deductions_total
        )

        social_security = calc_social_security(gross, settings)
        employee_ss = social_security.employee_contribution

        annual_taxable = max(ZERO, annual_income - annual_deductions - employee_ss * months)
        annual_tax, breakdown = calculate_progressive_tax(annual_taxable, snapshot.brackets, "annual")

        # Published figures are rounded once; net salary is derived from the
        # rounded figures so the accounting identity holds on what is returned.
        total_income_out = round_money(total_income)
        total_deductions_out = round_money(annual_deductions / months)
        employee_ss_out = round_money(employee_ss)
        income_tax_out = round_money(annual_tax / months)
        additional_out = round_money(sum_amounts(deduction_items))
        net_salary = (
            total_income_out - total_deductions_out - employee_ss_out - income_tax_out - additional_out
        )

        return PayrollResult(
            employee_id=employee_id,
            tax_year=tax_year,
            months_worked=profile.months_working_this_year,
            gross_salary=round_money(gross),
            total_income=total_income_out,
            taxable_income=round_money(annual_taxable),
            annual_income_tax=round_money(annual_tax),
            income_tax=income_tax_out,
            net_salary=net_salary,
            deductions=PayrollDeductions(
                personal_allowance=round_money(settings.personal_allowance / months),
                standard_deduction=round_money(standard_deduction / months),
                allowances={key: round_money(value / months) for key, value in allowances.items()},
                provident_fund=round_money(provident_fund / months),
                provident_fund_type=fund_type,
                other_deductions={
                    key: round_money(value / months)
                    for key, value in settings.other_deductions.items()
                },
                total_deductions=total_deductions_out,
                additional_deductions=additional_out,
            ),
            social_security=SocialSecurity(
                employee_contribution=employee_ss_out,
                employer_contribution=round_money(social_security.employer_contribution),
            ),
            tax_breakdown=round_breakdown(breakdown),
        )
