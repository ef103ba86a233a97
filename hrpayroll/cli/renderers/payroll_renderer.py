"""Rich renderers for payroll, income tax and reconciliation results.

Transforms SDK JSON output (amounts as decimal strings) into Rich tables.
"""

from decimal import Decimal

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table


def _money(value) -> str:
    if value is None:
        return "-"
    return f"{Decimal(str(value)):,.2f}"


def _bracket_label(bracket: dict) -> str:
    lower = _money(bracket["lower_bound"])
    if bracket.get("upper_bound") is None:
        return f"{lower} +"
    return f"{lower} - {_money(bracket['upper_bound'])}"


def render_breakdown(console: Console, breakdown: list, title: str = "Tax Breakdown") -> None:
    """Render per-bracket tax contributions."""
    if not breakdown:
        console.print("[dim]No taxable income - no bracket applies.[/dim]")
        return

    table = Table(title=title, box=box.SIMPLE, header_style="bold")
    table.add_column("Bracket")
    table.add_column("Rate", justify="right")
    table.add_column("Income in Bracket", justify="right")
    table.add_column("Tax", justify="right")

    for entry in breakdown:
        bracket = entry["bracket"]
        tax = _money(entry["tax_for_bracket"])
        style = "dim" if Decimal(str(entry["income_in_bracket"])) == 0 else None
        table.add_row(
            _bracket_label(bracket),
            f"{Decimal(str(bracket['rate'])):g}%",
            _money(entry["income_in_bracket"]),
            tax,
            style=style,
        )
    console.print(table)


def render_payroll(console: Console, data: dict) -> None:
    """Render calculate_payroll output.

    Args:
        console: Rich Console instance
        data: SDK output from calculate_payroll()
    """
    deductions = data["deductions"]
    ss = data["social_security"]

    months = data.get("months_worked", 12)
    worked = "" if months == 12 else f", {months} months worked"
    console.print(f"\n[bold]Payroll: employee {data['employee_id']} ({data['tax_year']}{worked})[/bold]")

    table = Table(show_header=True, header_style="bold")
    table.add_column("Item")
    table.add_column("Monthly", justify="right")

    table.add_row("Gross Salary", _money(data["gross_salary"]))
    table.add_row("Total Income", _money(data["total_income"]))
    table.add_row("Personal Allowance", _money(deductions["personal_allowance"]), style="dim")
    table.add_row("Standard Deduction", _money(deductions["standard_deduction"]), style="dim")
    for key, amount in sorted(deductions.get("allowances", {}).items()):
        table.add_row(key.replace("_", " ").title(), _money(amount), style="dim")
    if deductions.get("provident_fund_type"):
        label = "Provident Fund" if deductions["provident_fund_type"] == "PVD_FUND" else "Saving Fund"
        table.add_row(label, _money(deductions["provident_fund"]), style="dim")
    for key, amount in sorted(deductions.get("other_deductions", {}).items()):
        table.add_row(key.replace("_", " ").title(), _money(amount), style="dim")
    table.add_row("Total Deductions", _money(deductions["total_deductions"]))
    table.add_row("Social Security", _money(ss["employee_contribution"]))
    table.add_row("Income Tax", _money(data["income_tax"]))
    table.add_row("Other Deductions (post-tax)", _money(deductions["additional_deductions"]))
    table.add_row("Net Salary", f"[green]{_money(data['net_salary'])}[/green]")
    console.print(table)

    console.print(
        f"Annual taxable income {_money(data['taxable_income'])}, "
        f"annual tax {_money(data['annual_income_tax'])}, "
        f"employer social security {_money(ss['employer_contribution'])}"
    )
    render_breakdown(console, data.get("tax_breakdown", []))


def render_income_tax(console: Console, data: dict) -> None:
    """Render calculate_income_tax output."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("key", style="dim")
    table.add_column("value", justify="right")
    table.add_row("Taxable Income", _money(data["taxable_income"]))
    table.add_row("Annual Tax", _money(data["annual_tax"]))
    table.add_row("Monthly Tax", _money(data["monthly_tax"]))
    table.add_row("Effective Rate", f"{Decimal(str(data['effective_rate'])):.2f}%")
    console.print(Panel(table, title=f"Income Tax {data['tax_year']}", border_style="dim"))
    render_breakdown(console, data.get("tax_breakdown", []))


def render_annual_summary(console: Console, data: dict) -> None:
    """Render calculate_annual_summary output."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("key", style="dim")
    table.add_column("value", justify="right")
    table.add_row("Total Income", _money(data["total_income"]))
    table.add_row("Total Deductions", _money(data["total_deductions"]))
    table.add_row("Taxable Income", _money(data["taxable_income"]))
    table.add_row("Tax Liability", _money(data["tax_liability"]))
    table.add_row("Tax Paid", _money(data["tax_paid"]))
    console.print(Panel(
        table,
        title=f"Annual Summary: employee {data['employee_id']} ({data['tax_year']})",
        border_style="dim",
    ))

    if Decimal(str(data["refund_due"])) > 0:
        console.print(f"[green]Refund due: {_money(data['refund_due'])}[/green]")
    elif Decimal(str(data["additional_tax_due"])) > 0:
        console.print(f"[yellow]Additional tax due: {_money(data['additional_tax_due'])}[/yellow]")
    else:
        console.print("Withholding matches liability.")


def render_settings(console: Console, year: int, settings: list) -> None:
    """Render the tax settings configured for a year."""
    if not settings:
        console.print(f"[dim]No tax settings configured for {year}.[/dim]")
        return

    table = Table(title=f"Tax Settings {year}", header_style="bold")
    table.add_column("Key")
    table.add_column("Kind")
    table.add_column("Value", justify="right")
    table.add_column("Enabled")
    table.add_column("Description")
    for setting in settings:
        enabled = setting["enabled"]
        table.add_row(
            setting["key"],
            setting["kind"],
            f"{Decimal(str(setting['value'])):,}",
            "[green]yes[/green]" if enabled else "[red]no[/red]",
            setting.get("description") or "",
            style=None if enabled else "dim",
        )
    console.print(table)


def render_brackets(console: Console, table: dict) -> None:
    """Render a bracket table (BracketTable JSON dump)."""
    out = Table(title=f"Tax Brackets {table['year']} ({table['period']})", header_style="bold")
    out.add_column("Bracket")
    out.add_column("Rate", justify="right")
    for bracket in table["brackets"]:
        out.add_row(_bracket_label(bracket), f"{Decimal(str(bracket['rate'])):g}%")
    console.print(out)


def render_compliance(console: Console, report: dict) -> None:
    """Render a tax configuration compliance report."""
    if report["is_compliant"]:
        status = "[green]Compliant[/green]"
    else:
        status = "[red]Not compliant[/red]"
    console.print(
        f"\n[bold]Tax configuration {report['tax_year']}:[/bold] {status} "
        f"(score {report['compliance_score']}/100)"
    )
    for error in report["errors"]:
        console.print(f"  [red]✗[/red] {error}")
    for warning in report["warnings"]:
        console.print(f"  [yellow]![/yellow] {warning}")
