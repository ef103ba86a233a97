"""Helpers shared by the CLI command groups."""

import json
from contextlib import contextmanager
from pathlib import Path

import click
import yaml

from hrpayroll.sdk import PayrollError


@contextmanager
def sdk_errors():
    """Turn SDK failures into click errors with a clean message."""
    try:
        yield
    except PayrollError as e:
        raise click.ClickException(str(e))
    except KeyError as e:
        # KeyError str() wraps the message in quotes
        raise click.ClickException(e.args[0] if e.args else str(e))
    except ValueError as e:
        raise click.ClickException(str(e))


def parse_items(pairs, option_name: str) -> list:
    """Parse repeated TYPE=AMOUNT options into item dicts."""
    items = []
    for pair in pairs:
        item_type, sep, amount = pair.partition("=")
        if not sep or not item_type or not amount:
            raise click.BadParameter(f"Expected TYPE=AMOUNT, got '{pair}'", param_hint=option_name)
        items.append({"type": item_type.strip(), "amount": amount.strip()})
    return items


def load_data_file(path) -> object:
    """Load a YAML or JSON file (JSON is valid YAML)."""
    try:
        with open(Path(path), "r") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise click.ClickException(f"Invalid YAML/JSON in {path}: {e}")


def echo_json(data) -> None:
    click.echo(json.dumps(data, indent=2, default=str))
