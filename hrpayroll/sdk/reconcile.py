"""Year-end reconciliation of withheld tax against annual liability.

Liability is recomputed with a single progressive tax calculation over the
full year's taxable income, never by summing monthly taxes, so income that
moves between brackets across months is taxed the same as if it had been
earned evenly.
"""

from datetime import date
from typing import Iterable, Optional

from pydantic import ValidationError as PydanticValidationError

from .employee import EmployeeDirectory
from .errors import ValidationError
from .money import ZERO, round_money
from .schemas import AnnualSummary, FieldError, MonthlyPayroll, check_monthly_coverage
from .taxes import DeductionAssembler, calculate_progressive_tax


def _coerce_months(monthly_payrolls: Iterable) -> list:
    payrolls = []
    errors = []
    for index, entry in enumerate(monthly_payrolls):
        if isinstance(entry, MonthlyPayroll):
            payrolls.append(entry)
            continue
        try:
            payrolls.append(MonthlyPayroll.model_validate(entry))
        except PydanticValidationError as e:
            for err in e.errors():
                loc = ".".join(str(p) for p in err["loc"])
                errors.append(FieldError(
                    field=f"monthly_payrolls.{index}.{loc}" if loc else f"monthly_payrolls.{index}",
                    message=err["msg"],
                    code=err["type"],
                ))
    if errors:
        raise ValidationError(errors)
    return payrolls


class AnnualReconciliationEngine:
    """Reconciles twelve monthly payrolls against recomputed annual liability.

    Args:
        assembler: Source of the annual bracket table for the year
        employees: Directory used to reject unknown employee ids
    """

    def __init__(self, assembler: DeductionAssembler, employees: EmployeeDirectory):
        self.assembler = assembler
        self.employees = employees

    def calculate_annual_tax(
        self,
        employee_id: int,
        monthly_payrolls: Iterable,
        tax_year: Optional[int] = None,
    ) -> AnnualSummary:
        """Reconcile a year of payrolls.

        Args:
            employee_id: Employee being reconciled
            monthly_payrolls: Exactly 12 MonthlyPayroll entries (or dicts), one per month.
                Each total_deductions already includes social security.
            tax_year: Year whose bracket table applies

        Returns:
            AnnualSummary where tax_paid + additional_tax_due - refund_due == tax_liability

        Raises:
            ValidationError: Not exactly 12 distinct months, or malformed entries
            NotFoundError: Unknown employee
            ConfigurationError: Missing or malformed configuration for the year
        """
        payrolls = _coerce_months(monthly_payrolls)
        try:
            check_monthly_coverage(payrolls)
        except ValueError as e:
            raise ValidationError([FieldError(
                field="monthly_payrolls", message=str(e), code="month_coverage",
            )]) from e

        self.employees.require(employee_id)
        if tax_year is None:
            tax_year = date.today().year

        total_income = sum((p.total_income for p in payrolls), ZERO)
        total_deductions = sum((p.total_deductions for p in payrolls), ZERO)
        tax_paid = sum((p.income_tax for p in payrolls), ZERO)
        taxable_income = max(ZERO, total_income - total_deductions)

        brackets = self.assembler.load_year(tax_year).brackets
        tax_liability, _ = calculate_progressive_tax(taxable_income, brackets, "annual")

        # Difference comes from the rounded figures so the identity is exact
        liability_out = round_money(tax_liability)
        paid_out = round_money(tax_paid)
        difference = liability_out - paid_out

        return AnnualSummary(
            employee_id=employee_id,
            tax_year=tax_year,
            total_income=round_money(total_income),
            total_deductions=round_money(total_deductions),
            taxable_income=round_money(taxable_income),
            tax_liability=liability_out,
            tax_paid=paid_out,
            tax_difference=difference,
            refund_due=-difference if difference < 0 else round_money(ZERO),
            additional_tax_due=difference if difference > 0 else round_money(ZERO),
        )
