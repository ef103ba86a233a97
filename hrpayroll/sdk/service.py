"""Dict-in, dict-out calculation operations.

These are the functions the CLI and MCP server call. Each validates the
request (raising ValidationError with every violation), runs the
calculation and returns a JSON-compatible dict with amounts as 2-place
decimal strings.

The module-level functions take an optional PayrollService. Without one
they build a service from the configured paths for that call only, so
edits to the tax rules are always picked up. Hold a PayrollService to
reuse its per-year cache across calls.

Usage:
    from hrpayroll.sdk import service

    result = service.calculate_payroll({"employee_id": 1, "gross_salary": "50000"})

    with service.PayrollService() as payroll:
        for payload in payloads:
            payroll.calculate_payroll(payload)
"""

from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Any, Iterator, List, Optional

from .employee import EmployeeDirectory
from .money import HUNDRED, MONTHS_PER_YEAR, ZERO, round_money
from .payroll import PayrollCalculator
from .reconcile import AnnualReconciliationEngine
from .schemas import (
    AnnualSummaryRequest,
    IncomeTaxRequest,
    IncomeTaxResult,
    PayrollRequest,
)
from .taxes import (
    DeductionAssembler,
    TaxSettingStore,
    calculate_progressive_tax,
    check_compliance,
    round_breakdown,
)
from .validation import InputValidator
from .validation import validate_calculation_inputs as _validate


class PayrollService:
    """Wires the store, assembler and directory behind the calculation operations.

    Usable as a context manager; close() detaches the service's cache from
    the store.

    Args:
        store: Tax settings store (default: configured tax_rules_dir)
        employees: Employee directory (default: configured employees_file)
    """

    def __init__(
        self,
        store: Optional[TaxSettingStore] = None,
        employees: Optional[EmployeeDirectory] = None,
    ):
        self.store = store or TaxSettingStore()
        self.employees = employees if employees is not None else EmployeeDirectory.from_file()
        self.assembler = DeductionAssembler(self.store)
        self.payroll = PayrollCalculator(self.assembler, self.employees)
        self.reconciliation = AnnualReconciliationEngine(self.assembler, self.employees)

    @classmethod
    def from_paths(cls, rules_dir: Optional[Path] = None, employees_file: Optional[Path] = None):
        return cls(TaxSettingStore(rules_dir), EmployeeDirectory.from_file(employees_file))

    def close(self) -> None:
        self.assembler.close()

    def __enter__(self) -> "PayrollService":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def calculate_payroll(self, payload: Any) -> dict:
        request = InputValidator(PayrollRequest).parse(payload)
        result = self.payroll.calculate_payroll(
            request.employee_id,
            request.gross_salary,
            additional_income=request.additional_income,
            additional_deductions=request.additional_deductions,
            tax_year=request.tax_year,
            profile=request.employee_profile,
        )
        return result.model_dump(mode="json")

    def calculate_income_tax(self, payload: Any) -> dict:
        request = InputValidator(IncomeTaxRequest).parse(payload)
        tax_year = request.tax_year or date.today().year
        taxable = request.taxable_income

        brackets = self.assembler.load_year(tax_year).brackets
        annual_tax, breakdown = calculate_progressive_tax(taxable, brackets, "annual")
        effective_rate = annual_tax / taxable * HUNDRED if taxable > 0 else ZERO

        result = IncomeTaxResult(
            tax_year=tax_year,
            taxable_income=round_money(taxable),
            annual_tax=round_money(annual_tax),
            monthly_tax=round_money(annual_tax / MONTHS_PER_YEAR),
            effective_rate=round_money(effective_rate),
            tax_breakdown=round_breakdown(breakdown),
        )
        return result.model_dump(mode="json")

    def calculate_annual_summary(self, payload: Any) -> dict:
        request = InputValidator(AnnualSummaryRequest).parse(payload)
        summary = self.reconciliation.calculate_annual_tax(
            request.employee_id,
            request.monthly_payrolls,
            tax_year=request.tax_year,
        )
        return summary.model_dump(mode="json")

    def check_compliance(self, tax_year: Optional[int] = None) -> dict:
        """Compliance report for a year's tax configuration (default: current year)."""
        tax_year = tax_year or date.today().year
        settings, brackets = self.store.read_year(tax_year)
        return check_compliance(tax_year, settings, brackets).model_dump(mode="json")

    def validate_calculation_inputs(self, payload: Any, kind: str = "payroll") -> List[dict]:
        return [e.model_dump() for e in _validate(payload, kind)]


@contextmanager
def _using(service: Optional[PayrollService], with_employees: bool = True) -> Iterator[PayrollService]:
    """Yield the caller's service, or one built for this call and closed after it."""
    if service is not None:
        yield service
        return
    employees = None if with_employees else EmployeeDirectory()
    with PayrollService(employees=employees) as owned:
        yield owned


def calculate_payroll(payload: Any, service: Optional[PayrollService] = None) -> dict:
    """Calculate one month's payroll for an employee.

    Raises:
        ValidationError, NotFoundError, ConfigurationError, InfrastructureError
    """
    with _using(service) as svc:
        return svc.calculate_payroll(payload)


def calculate_income_tax(payload: Any, service: Optional[PayrollService] = None) -> dict:
    """Progressive tax, monthly share and effective rate for an annual taxable income."""
    # No employee is involved, so the directory is not loaded
    with _using(service, with_employees=False) as svc:
        return svc.calculate_income_tax(payload)


def calculate_annual_summary(payload: Any, service: Optional[PayrollService] = None) -> dict:
    """Reconcile twelve months of withheld tax against annual liability."""
    with _using(service) as svc:
        return svc.calculate_annual_summary(payload)


def check_tax_compliance(tax_year: Optional[int] = None, service: Optional[PayrollService] = None) -> dict:
    """Check a year's brackets and settings against Thai Revenue Department rules."""
    with _using(service, with_employees=False) as svc:
        return svc.check_compliance(tax_year)


def validate_calculation_inputs(payload: Any, kind: str = "payroll") -> List[dict]:
    """Field errors for a request payload, as dicts; empty when valid. Never raises
    for malformed payloads."""
    return [e.model_dump() for e in _validate(payload, kind)]
