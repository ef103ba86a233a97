"""Tax settings CLI commands for HR Payroll.

Manages tax-rules/{year}.yaml - deduction settings and bracket tables.
Every write invalidates cached values for the year it touches.
"""

from typing import Optional

import click
from rich.console import Console

from hrpayroll.sdk import ConfigurationError
from hrpayroll.sdk.taxes import BracketTable, SettingKind, TaxSetting, TaxSettingStore

from .common import echo_json, load_data_file, sdk_errors
from .renderers.payroll_renderer import render_brackets, render_settings

KIND_CHOICES = [k.value for k in SettingKind]


@click.group()
def settings():
    """Manage tax settings and brackets per effective year.

    \b
    Setting kinds:
    - DEDUCTION: flat annual amount subtracted before tax
    - RATE: percentage (e.g. SSF_RATE 5 means 5%)
    - LIMIT: cap on an amount (e.g. SSF_MAX_SALARY)
    """
    pass


@settings.command("list")
@click.argument("year", type=int)
@click.option("--enabled-only", is_flag=True, help="Hide disabled settings")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def settings_list(year: int, enabled_only: bool, output_json: bool):
    """List the tax settings for YEAR."""
    with sdk_errors():
        rows = [s.model_dump(mode="json") for s in TaxSettingStore().list_settings(year, enabled_only)]

    if output_json:
        echo_json(rows)
    else:
        render_settings(Console(), year, rows)


@settings.command("set")
@click.argument("year", type=int)
@click.argument("key")
@click.argument("value")
@click.option("--kind", type=click.Choice(KIND_CHOICES, case_sensitive=False),
              help="Setting kind (required when creating a setting)")
@click.option("--description", help="Human-readable description")
def settings_set(year: int, key: str, value: str, kind: Optional[str], description: Optional[str]):
    """Create or update setting KEY for YEAR.

    \b
    Examples:
      hr-payroll settings set 2025 PERSONAL_ALLOWANCE 60000 --kind DEDUCTION
      hr-payroll settings set 2025 SSF_RATE 5
    """
    store = TaxSettingStore()
    kind = kind.upper() if kind else None

    with sdk_errors():
        if store.get_setting(year, key) is None:
            if kind is None:
                raise click.UsageError(f"{key} is new for {year}; --kind is required")
            setting = store.create_setting(TaxSetting(
                key=key, value=value, kind=kind, effective_year=year, description=description,
            ))
            click.echo(f"Created {key} = {setting.value} ({setting.kind.value}) for {year}")
        else:
            setting = store.update_setting(year, key, value=value, kind=kind, description=description)
            click.echo(f"Updated {key} = {setting.value} ({setting.kind.value}) for {year}")


@settings.command("toggle")
@click.argument("year", type=int)
@click.argument("key")
@click.option("--on/--off", "enabled", default=None, help="Set explicitly instead of flipping")
def settings_toggle(year: int, key: str, enabled: Optional[bool]):
    """Enable or disable setting KEY for YEAR (flips it by default)."""
    with sdk_errors():
        setting = TaxSettingStore().toggle_selection(year, key, enabled)
    state = "enabled" if setting.enabled else "disabled"
    click.echo(f"{key} is now {state} for {year}")


@settings.command("delete")
@click.argument("year", type=int)
@click.argument("key")
def settings_delete(year: int, key: str):
    """Delete setting KEY for YEAR."""
    with sdk_errors():
        TaxSettingStore().delete_setting(year, key)
    click.echo(f"Deleted {key} for {year}")


@settings.command("brackets")
@click.argument("year", type=int)
@click.option("--set", "table_file", type=click.Path(exists=True, dir_okay=False),
              help="Replace the table from a YAML/JSON file ({period, table: [...]})")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def settings_brackets(year: int, table_file: Optional[str], output_json: bool):
    """Show or replace the tax bracket table for YEAR."""
    store = TaxSettingStore()

    with sdk_errors():
        if table_file:
            data = load_data_file(table_file)
            if not isinstance(data, dict) or "table" not in data:
                raise click.ClickException(f"{table_file} must contain 'period' and 'table'")
            table = BracketTable(
                year=year, period=data.get("period", "annual"), brackets=data["table"],
            )
            store.set_brackets(table)
            click.echo(f"Replaced {len(table.brackets)} bracket(s) for {year}")
            return

        table = store.get_brackets(year)
        if table is None:
            raise ConfigurationError(f"No tax brackets defined for {year}", year=year)

    if output_json:
        echo_json(table.model_dump(mode="json"))
    else:
        render_brackets(Console(), table.model_dump(mode="json"))
