"""Payroll CLI commands for HR Payroll."""

from typing import Optional

import click
from rich.console import Console

from hrpayroll.sdk import EmployeeStatus, PayrollService

from .common import echo_json, parse_items, sdk_errors
from .renderers.payroll_renderer import render_payroll


@click.group()
def payroll():
    """Calculate monthly payroll for an employee."""
    pass


@payroll.command("calc")
@click.argument("employee_id", type=int)
@click.argument("gross")
@click.option("--year", "tax_year", type=int, help="Tax year (default: current year)")
@click.option("--income", "incomes", multiple=True, metavar="TYPE=AMOUNT",
              help="Additional income, e.g. --income bonus=5000 (repeatable)")
@click.option("--deduction", "deductions", multiple=True, metavar="TYPE=AMOUNT",
              help="Post-tax deduction, e.g. --deduction loan=2000 (repeatable)")
@click.option("--spouse", is_flag=True, help="Claim the spouse allowance")
@click.option("--children", type=click.IntRange(min=0), help="Number of children")
@click.option("--parents", type=click.IntRange(0, 4), help="Number of eligible parents")
@click.option("--months", type=click.IntRange(1, 12), help="Months worked this year (mid-year starters)")
@click.option("--status", type=click.Choice([s.value for s in EmployeeStatus]),
              help="Employee status; decides provident or saving fund")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def payroll_calc(
    employee_id: int,
    gross: str,
    tax_year: Optional[int],
    incomes,
    deductions,
    spouse: bool,
    children: Optional[int],
    parents: Optional[int],
    months: Optional[int],
    status: Optional[str],
    output_json: bool,
):
    """Calculate one month's payroll.

    EMPLOYEE_ID is the employee's id; GROSS is the monthly gross salary.

    \b
    Examples:
      hr-payroll payroll calc 1 50000
      hr-payroll payroll calc 1 50000 --income bonus=5000 --deduction loan=2000
      hr-payroll payroll calc 1 50000 --year 2025 --json
      hr-payroll payroll calc 1 50000 --spouse --children 2 --status "Local ID"
      hr-payroll payroll calc 1 50000 --months 6
    """
    payload = {
        "employee_id": employee_id,
        "gross_salary": gross,
        "additional_income": parse_items(incomes, "--income"),
        "additional_deductions": parse_items(deductions, "--deduction"),
    }
    if tax_year is not None:
        payload["tax_year"] = tax_year

    profile = {
        "has_spouse": spouse or None,
        "children": children,
        "eligible_parents": parents,
        "months_working_this_year": months,
        "employee_status": status,
    }
    profile = {key: value for key, value in profile.items() if value is not None}
    if profile:
        payload["employee_profile"] = profile

    with sdk_errors(), PayrollService() as service:
        result = service.calculate_payroll(payload)

    if output_json:
        echo_json(result)
    else:
        render_payroll(Console(), result)
