"""Config CLI commands for HR Payroll.

Manages settings.json - machine-specific paths (tax rules, employee
directory, data dir).
"""

import os
from pathlib import Path

import click

from hrpayroll.sdk import (
    clear_setting,
    get_config_dir,
    get_data_path,
    get_employees_path,
    get_settings_path,
    get_tax_rules_dir,
    load_settings,
    set_setting,
)
from hrpayroll.sdk.config import CONFIG_PATH_ENV


@click.group()
def config():
    """Manage machine-specific settings (settings.json).

    \b
    Settings include:
    - tax_rules_dir: directory holding {year}.yaml tax rules
    - employees_file: YAML list of known employee ids
    - data_dir: custom data directory
    """
    pass


@config.command("show")
def config_show():
    """Show configuration paths and current settings."""
    config_dir = get_config_dir()
    source = f"from {CONFIG_PATH_ENV}" if os.environ.get(CONFIG_PATH_ENV) else "XDG default"

    click.echo("Configuration paths:")
    click.echo(f"  Config directory: {config_dir}")
    click.echo(f"    ({source})")

    settings_path = get_settings_path()
    exists = "[exists]" if settings_path.exists() else "[not found]"
    click.echo(f"  Settings file:    {settings_path} {exists}")

    current = load_settings()
    click.echo()
    if current:
        click.echo("Current settings:")
        for key, value in current.items():
            click.echo(f"  {key}: {value}")
    else:
        click.echo("No settings configured (using defaults).")

    click.echo()
    click.echo("Effective paths:")
    click.echo(f"  tax_rules_dir:  {get_tax_rules_dir()}")
    click.echo(f"  employees_file: {get_employees_path()}")
    click.echo(f"  data_dir:       {get_data_path()}")


def _path_setting(key: str, path, clear: bool, must_be_dir: bool, effective) -> None:
    if clear:
        if clear_setting(key):
            click.echo(f"Cleared {key} setting.")
        else:
            click.echo(f"{key} was not set.")
        return

    if not path:
        click.echo(f"{key}: {effective()}")
        return

    resolved = Path(path).expanduser().resolve()
    if must_be_dir and resolved.exists() and not resolved.is_dir():
        raise click.ClickException(f"Path exists but is not a directory: {resolved}")
    if not must_be_dir and resolved.is_dir():
        raise click.ClickException(f"Path is a directory, expected a file: {resolved}")

    set_setting(key, str(resolved))
    click.echo(f"Set {key} = {resolved}")


@config.command("tax-rules-dir")
@click.argument("path", required=False, type=click.Path())
@click.option("--clear", is_flag=True, help="Clear custom tax_rules_dir, revert to default")
def config_tax_rules_dir(path, clear):
    """Show, set or clear the tax rules directory.

    \b
    Examples:
      hr-payroll config tax-rules-dir ~/payroll/tax-rules
      hr-payroll config tax-rules-dir --clear
    """
    _path_setting("tax_rules_dir", path, clear, must_be_dir=True, effective=get_tax_rules_dir)


@config.command("employees-file")
@click.argument("path", required=False, type=click.Path())
@click.option("--clear", is_flag=True, help="Clear custom employees_file, revert to default")
def config_employees_file(path, clear):
    """Show, set or clear the employee directory file."""
    _path_setting("employees_file", path, clear, must_be_dir=False, effective=get_employees_path)
