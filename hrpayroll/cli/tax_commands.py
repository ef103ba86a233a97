"""Income tax, year-end reconciliation and compliance CLI commands for HR Payroll."""

import sys
from typing import Optional

import click
from rich.console import Console

from hrpayroll.sdk import EmployeeDirectory, PayrollService, validate_calculation_inputs
from hrpayroll.sdk.validation import REQUEST_SCHEMAS

from .common import echo_json, load_data_file, sdk_errors
from .renderers.payroll_renderer import render_annual_summary, render_compliance, render_income_tax


@click.group()
def tax():
    """Income tax, annual reconciliation, compliance and request validation."""
    pass


@tax.command("income")
@click.argument("taxable")
@click.option("--year", "tax_year", type=int, help="Tax year (default: current year)")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def tax_income(taxable: str, tax_year: Optional[int], output_json: bool):
    """Progressive tax on an annual TAXABLE income.

    \b
    Examples:
      hr-payroll tax income 600000
      hr-payroll tax income 600000 --year 2025 --json
    """
    payload = {"taxable_income": taxable}
    if tax_year is not None:
        payload["tax_year"] = tax_year

    # No employee is involved, so the directory is not loaded
    with sdk_errors(), PayrollService(employees=EmployeeDirectory()) as service:
        result = service.calculate_income_tax(payload)

    if output_json:
        echo_json(result)
    else:
        render_income_tax(Console(), result)


@tax.command("annual")
@click.argument("employee_id", type=int)
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--year", "tax_year", type=int, help="Tax year (default: current year)")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def tax_annual(employee_id: int, file: str, tax_year: Optional[int], output_json: bool):
    """Reconcile a year of withheld tax against annual liability.

    FILE is YAML or JSON: either a list of 12 monthly entries or an object
    with a 'monthly_payrolls' list. Each entry has month, total_income,
    total_deductions and income_tax.
    """
    data = load_data_file(file)
    months = data.get("monthly_payrolls") if isinstance(data, dict) else data

    payload = {"employee_id": employee_id, "monthly_payrolls": months}
    if tax_year is not None:
        payload["tax_year"] = tax_year
    elif isinstance(data, dict) and data.get("tax_year") is not None:
        payload["tax_year"] = data["tax_year"]

    with sdk_errors(), PayrollService() as service:
        result = service.calculate_annual_summary(payload)

    if output_json:
        echo_json(result)
    else:
        render_annual_summary(Console(), result)


@tax.command("validate")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--kind", type=click.Choice(sorted(REQUEST_SCHEMAS)), default="payroll",
              show_default=True, help="Request type FILE holds")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def tax_validate(file: str, kind: str, output_json: bool):
    """Check a request FILE without calculating anything.

    Exits with status 1 when the request has errors.
    """
    errors = validate_calculation_inputs(load_data_file(file), kind)

    if output_json:
        echo_json({"valid": not errors, "errors": errors})
    elif not errors:
        click.echo(click.style("Valid.", fg="green"))
    else:
        click.echo(click.style(f"{len(errors)} error(s):", fg="red"))
        for error in errors:
            click.echo(f"  {error['field']}: {error['message']}")

    if errors:
        sys.exit(1)



@tax.command("compliance")
@click.option("--year", "tax_year", type=int, help="Tax year (default: current year)")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def tax_compliance(tax_year: Optional[int], output_json: bool):
    """Check a year's brackets and settings against Thai Revenue Department rules.

    Exits with status 1 when the configuration is not compliant.

    \b
    Examples:
      hr-payroll tax compliance --year 2025
    """
    with sdk_errors(), PayrollService(employees=EmployeeDirectory()) as service:
        report = service.check_compliance(tax_year)

    if output_json:
        echo_json(report)
    else:
        render_compliance(Console(), report)

    if not report["is_compliant"]:
        sys.exit(1)
