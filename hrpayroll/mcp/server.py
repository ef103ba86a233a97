"""HR Payroll MCP Server - FastMCP implementation for payroll tools."""

import logging
from typing import Any

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from hrpayroll.sdk import EmployeeDirectory, PayrollError, ValidationError
from hrpayroll.sdk import service as sdk_service

logger = logging.getLogger(__name__)

# Initialize FastMCP server
mcp = FastMCP("hr-payroll")


def _error(e: Exception) -> dict[str, Any]:
    result: dict[str, Any] = {"error": str(e), "error_type": type(e).__name__}
    if isinstance(e, ValidationError):
        result["errors"] = [err.model_dump() for err in e.errors]
    return result


def _service(with_employees: bool = True) -> sdk_service.PayrollService:
    # Fresh per call: tax-rules files may be edited by the CLI between calls.
    # Callers use it as a context manager so it detaches from the store.
    employees = None if with_employees else EmployeeDirectory()
    return sdk_service.PayrollService(employees=employees)


# --- Tools ---

@mcp.tool()
async def calculate_payroll(
    employee_id: int = Field(description="Employee id"),
    gross_salary: str = Field(description="Monthly gross salary (decimal string, e.g. '50000')"),
    tax_year: int | None = Field(default=None, description="Tax year (default: current year)"),
    additional_income: list[dict] | None = Field(
        default=None, description="Extra income items: [{type, amount, description?}]"
    ),
    additional_deductions: list[dict] | None = Field(
        default=None, description="Post-tax deduction items: [{type, amount, description?}]"
    ),
    employee_profile: dict | None = Field(
        default=None,
        description=(
            "Optional {has_spouse, children, eligible_parents, months_working_this_year, "
            "employee_status: 'Local ID' | 'Local non ID' | 'Expats'}"
        ),
    ),
) -> dict[str, Any]:
    """Calculate one month's payroll: deductions, social security, income tax and net salary."""
    payload = {
        "employee_id": employee_id,
        "gross_salary": gross_salary,
        "additional_income": additional_income or [],
        "additional_deductions": additional_deductions or [],
    }
    if tax_year is not None:
        payload["tax_year"] = tax_year
    if employee_profile is not None:
        payload["employee_profile"] = employee_profile
    try:
        with _service() as service:
            return service.calculate_payroll(payload)
    except PayrollError as e:
        logger.error(f"Error calculating payroll: {e}")
        return _error(e)


@mcp.tool()
async def calculate_income_tax(
    taxable_income: str = Field(description="Annual taxable income (decimal string)"),
    tax_year: int | None = Field(default=None, description="Tax year (default: current year)"),
) -> dict[str, Any]:
    """Progressive income tax with per-bracket breakdown and effective rate."""
    payload = {"taxable_income": taxable_income}
    if tax_year is not None:
        payload["tax_year"] = tax_year
    try:
        with _service(with_employees=False) as service:
            return service.calculate_income_tax(payload)
    except PayrollError as e:
        logger.error(f"Error calculating income tax: {e}")
        return _error(e)


@mcp.tool()
async def calculate_annual_summary(
    employee_id: int = Field(description="Employee id"),
    monthly_payrolls: list[dict] = Field(
        description="Exactly 12 entries: [{month, total_income, total_deductions, income_tax}]"
    ),
    tax_year: int | None = Field(default=None, description="Tax year (default: current year)"),
) -> dict[str, Any]:
    """Reconcile a year of withheld tax against the annual liability (refund or additional tax)."""
    payload = {"employee_id": employee_id, "monthly_payrolls": monthly_payrolls}
    if tax_year is not None:
        payload["tax_year"] = tax_year
    try:
        with _service() as service:
            return service.calculate_annual_summary(payload)
    except PayrollError as e:
        logger.error(f"Error calculating annual summary: {e}")
        return _error(e)


@mcp.tool()
async def check_tax_compliance(
    tax_year: int | None = Field(default=None, description="Tax year (default: current year)"),
) -> dict[str, Any]:
    """Check a year's tax brackets and settings against Thai Revenue Department rules."""
    try:
        with _service(with_employees=False) as service:
            return service.check_compliance(tax_year)
    except PayrollError as e:
        logger.error(f"Error checking tax compliance: {e}")
        return _error(e)


@mcp.tool()
async def validate_calculation_inputs(
    payload: dict = Field(description="Request to check"),
    kind: str = Field(default="payroll", description="'payroll', 'income_tax' or 'annual_summary'"),
) -> dict[str, Any]:
    """Check a calculation request without running it. Returns every field error found."""
    try:
        errors = sdk_service.validate_calculation_inputs(payload, kind)
    except ValueError as e:
        return _error(e)
    return {"valid": not errors, "errors": errors}


def run_server():
    """Run the MCP server in stdio mode."""
    mcp.run(transport="stdio")


if __name__ == "__main__":
    run_server()
