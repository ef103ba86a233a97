"""HR Payroll CLI - Command-line interface for payroll and income tax."""

import click

from hrpayroll import __version__
from hrpayroll.sdk import configure_logging

from .config_commands import config as config_group
from .payroll_commands import payroll as payroll_group
from .settings_commands import settings as settings_group
from .tax_commands import tax as tax_group


@click.group()
@click.version_option(version=__version__, prog_name="hr-payroll")
def cli():
    """HR Payroll - Monthly payroll, income tax and year-end reconciliation.

    Tax settings and brackets are read from tax-rules/{year}.yaml.
    Paths are configured in settings.json, located via (in order):

    \b
    1. HR_PAYROLL_CONFIG_PATH environment variable
    2. ~/.config/hr-payroll/settings.json (XDG default)

    Run 'hr-payroll config show' to see the effective paths.
    Set LOG_LEVEL=INFO to see settings changes logged.
    """
    configure_logging()


# Add subcommand groups
cli.add_command(payroll_group)
cli.add_command(tax_group)
cli.add_command(settings_group)
cli.add_command(config_group)


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
