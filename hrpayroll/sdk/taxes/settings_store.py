"""YAML-backed store of tax settings and bracket tables.

One file per effective year, tax-rules/{year}.yaml:

    year: 2025
    brackets:
      period: annual
      table:
        - {lower_bound: 0, upper_bound: 150000, rate: 0}
        - {lower_bound: 150000, upper_bound: null, rate: 5}
    settings:
      - {key: PERSONAL_ALLOWANCE, value: 60000, kind: DEDUCTION, enabled: true}

Every write commits the file and then, under the same lock, notifies
subscribers (the deduction cache) that the year changed. A calculation
started after a write returns therefore sees the new values.
"""

import logging
import os
import tempfile
import threading
from decimal import Decimal
from pathlib import Path
from typing import Callable, Iterable, List, Optional

import yaml
from pydantic import ValidationError as PydanticValidationError

from ..config import get_tax_rules_dir
from ..errors import ConfigurationError, InfrastructureError
from ..money import to_decimal
from .progressive import validate_brackets
from .schemas import BracketTable, SettingKind, TaxBracket, TaxSetting

logger = logging.getLogger(__name__)


def _yaml_number(value: Decimal):
    """Render a Decimal as a plain YAML number where that round-trips exactly."""
    if value == value.to_integral_value():
        return int(value)
    as_float = float(value)
    if Decimal(str(as_float)) == value:
        return as_float
    return str(value)


def _setting_to_row(setting: TaxSetting) -> dict:
    row = {
        "key": setting.key,
        "value": _yaml_number(setting.value),
        "kind": setting.kind.value,
        "enabled": setting.enabled,
    }
    if setting.description:
        row["description"] = setting.description
    return row


def _bracket_to_row(bracket: TaxBracket) -> dict:
    return {
        "lower_bound": _yaml_number(bracket.lower_bound),
        "upper_bound": None if bracket.upper_bound is None else _yaml_number(bracket.upper_bound),
        "rate": _yaml_number(bracket.rate),
    }


class TaxSettingStore:
    """Tax settings and brackets for every configured year.

    Args:
        rules_dir: Directory of {year}.yaml files (default: configured tax_rules_dir)
    """

    def __init__(self, rules_dir: Optional[Path] = None):
        self.rules_dir = Path(rules_dir) if rules_dir else get_tax_rules_dir()
        self._lock = threading.RLock()
        self._subscribers: List[Callable[[int], None]] = []

    # --- subscriptions ---

    def subscribe(self, callback: Callable[[int], None]) -> None:
        """Register a callback invoked with the year after every committed write."""
        with self._lock:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[int], None]) -> None:
        """Remove a callback registered with subscribe(); unknown callbacks are ignored."""
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def _notify(self, year: int) -> None:
        for callback in list(self._subscribers):
            callback(year)
        logger.info(f"Tax configuration for {year} changed; cached values invalidated")

    # --- file access ---

    def _path(self, year: int) -> Path:
        return self.rules_dir / f"{year}.yaml"

    def _read_raw(self, year: int) -> Optional[dict]:
        path = self._path(year)
        try:
            with open(path, "r") as f:
                raw = yaml.safe_load(f)
        except FileNotFoundError:
            return None
        except (OSError, yaml.YAMLError) as e:
            raise InfrastructureError(f"Cannot read tax rules for {year} from {path}: {e}") from e

        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Tax rules file {path} must contain a mapping", year=year)
        file_year = raw.get("year", year)
        if file_year != year:
            raise ConfigurationError(
                f"Tax rules file {path} declares year {file_year}, expected {year}", year=year
            )
        return raw

    def _write_raw(self, year: int, raw: dict) -> None:
        path = self._path(year)
        raw = {"year": year, **{k: v for k, v in raw.items() if k != "year"}}
        try:
            self.rules_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.rules_dir, prefix=f".{year}.", suffix=".yaml")
            with os.fdopen(fd, "w") as f:
                yaml.safe_dump(raw, f, sort_keys=False)
            os.replace(tmp_name, path)
        except OSError as e:
            raise InfrastructureError(f"Cannot write tax rules for {year} to {path}: {e}") from e
        logger.debug(f"Wrote tax rules: {path}")

    # --- parsing ---

    def _parse_settings(self, year: int, raw: dict) -> List[TaxSetting]:
        settings = []
        seen = set()
        for index, row in enumerate(raw.get("settings") or []):
            if not isinstance(row, dict):
                raise ConfigurationError(f"Setting #{index + 1} for {year} is not a mapping", year=year)
            try:
                setting = TaxSetting(
                    key=row.get("key"),
                    value=to_decimal(row.get("value")),
                    kind=row.get("kind"),
                    effective_year=year,
                    enabled=row.get("enabled", True),
                    description=row.get("description"),
                )
            except (ValueError, PydanticValidationError) as e:
                raise ConfigurationError(
                    f"Invalid tax setting #{index + 1} for {year}: {e}", year=year, key=row.get("key")
                ) from e
            if setting.key in seen:
                raise ConfigurationError(
                    f"Duplicate tax setting {setting.key} for {year}", year=year, key=setting.key
                )
            seen.add(setting.key)
            settings.append(setting)
        return settings

    def _parse_brackets(self, year: int, raw: dict) -> Optional[BracketTable]:
        section = raw.get("brackets")
        if not section:
            return None
        try:
            brackets = [
                TaxBracket(
                    lower_bound=to_decimal(row["lower_bound"]),
                    upper_bound=None if row.get("upper_bound") is None else to_decimal(row["upper_bound"]),
                    rate=to_decimal(row["rate"]),
                )
                for row in section.get("table") or []
            ]
            return BracketTable(year=year, period=section.get("period"), brackets=brackets)
        except (KeyError, TypeError, AttributeError, ValueError, PydanticValidationError) as e:
            raise ConfigurationError(f"Invalid tax brackets for {year}: {e}", year=year) from e

    # --- reads ---

    def available_years(self) -> List[int]:
        """Years with a rules file, ascending."""
        if not self.rules_dir.exists():
            return []
        return sorted(int(p.stem) for p in self.rules_dir.glob("*.yaml") if p.stem.isdigit())

    def list_settings(self, year: int, enabled_only: bool = False) -> List[TaxSetting]:
        raw = self._read_raw(year) or {}
        settings = self._parse_settings(year, raw)
        if enabled_only:
            settings = [s for s in settings if s.enabled]
        return settings

    def get_setting(self, year: int, key: str) -> Optional[TaxSetting]:
        for setting in self.list_settings(year):
            if setting.key == key:
                return setting
        return None

    def get_brackets(self, year: int) -> Optional[BracketTable]:
        raw = self._read_raw(year) or {}
        return self._parse_brackets(year, raw)

    def read_year(self, year: int):
        """Enabled settings and the bracket table for a year, from a single file read.

        Returns:
            Tuple of (enabled settings, bracket table or None)
        """
        raw = self._read_raw(year) or {}
        settings = [s for s in self._parse_settings(year, raw) if s.enabled]
        return settings, self._parse_brackets(year, raw)

    # --- writes ---

    def _mutate_settings(self, year: int, mutate: Callable[[List[TaxSetting]], List[TaxSetting]]) -> None:
        with self._lock:
            raw = self._read_raw(year) or {}
            settings = mutate(self._parse_settings(year, raw))
            raw["settings"] = [_setting_to_row(s) for s in settings]
            self._write_raw(year, raw)
            self._notify(year)

    def create_setting(self, setting: TaxSetting) -> TaxSetting:
        """Add a new setting.

        Raises:
            ValueError: If the key already exists for that year
        """
        def mutate(settings):
            if any(s.key == setting.key for s in settings):
                raise ValueError(f"Tax setting {setting.key} already exists for {setting.effective_year}")
            return settings + [setting]

        self._mutate_settings(setting.effective_year, mutate)
        logger.info(f"Created tax setting {setting.key} for {setting.effective_year}")
        return setting

    def update_setting(
        self,
        year: int,
        key: str,
        value: Optional[Decimal] = None,
        kind: Optional[SettingKind] = None,
        description: Optional[str] = None,
    ) -> TaxSetting:
        """Change a setting's value, kind or description.

        Raises:
            KeyError: If the setting does not exist
        """
        updates = {}
        if value is not None:
            updates["value"] = to_decimal(value)
        if kind is not None:
            updates["kind"] = SettingKind(kind)
        if description is not None:
            updates["description"] = description
        return self._replace(year, key, updates)

    def toggle_selection(self, year: int, key: str, enabled: Optional[bool] = None) -> TaxSetting:
        """Enable or disable a setting (flips it when `enabled` is None).

        Raises:
            KeyError: If the setting does not exist
        """
        with self._lock:
            if enabled is None:
                current = self.get_setting(year, key)
                if current is None:
                    raise KeyError(f"Tax setting {key} not defined for {year}")
                enabled = not current.enabled
            return self._replace(year, key, {"enabled": enabled})

    def _replace(self, year: int, key: str, updates: dict) -> TaxSetting:
        result = {}

        def mutate(settings):
            for index, setting in enumerate(settings):
                if setting.key == key:
                    data = setting.model_dump()
                    data.update(updates)
                    updated = TaxSetting(**data)
                    result["setting"] = updated
                    return settings[:index] + [updated] + settings[index + 1:]
            raise KeyError(f"Tax setting {key} not defined for {year}")

        self._mutate_settings(year, mutate)
        logger.info(f"Updated tax setting {key} for {year}: {updates}")
        return result["setting"]

    def delete_setting(self, year: int, key: str) -> None:
        """Remove a setting.

        Raises:
            KeyError: If the setting does not exist
        """
        def mutate(settings):
            remaining = [s for s in settings if s.key != key]
            if len(remaining) == len(settings):
                raise KeyError(f"Tax setting {key} not defined for {year}")
            return remaining

        self._mutate_settings(year, mutate)
        logger.info(f"Deleted tax setting {key} for {year}")

    def bulk_update(self, year: int, settings: Iterable[TaxSetting]) -> List[TaxSetting]:
        """Create or replace several settings for one year in a single commit."""
        incoming = list(settings)
        for setting in incoming:
            if setting.effective_year != year:
                raise ValueError(
                    f"Setting {setting.key} is for {setting.effective_year}, not {year}"
                )

        def mutate(existing):
            by_key = {s.key: s for s in existing}
            for setting in incoming:
                by_key[setting.key] = setting
            return list(by_key.values())

        self._mutate_settings(year, mutate)
        logger.info(f"Bulk updated {len(incoming)} tax setting(s) for {year}")
        return incoming

    def set_brackets(self, table: BracketTable) -> BracketTable:
        """Replace a year's bracket table after checking its structure.

        Raises:
            ConfigurationError: If the table is not sorted and contiguous
        """
        validate_brackets(table)
        with self._lock:
            raw = self._read_raw(table.year) or {}
            raw["brackets"] = {
                "period": table.period,
                "table": [_bracket_to_row(b) for b in table.brackets],
            }
            self._write_raw(table.year, raw)
            self._notify(table.year)
        logger.info(f"Replaced {len(table.brackets)} tax bracket(s) for {table.year}")
        return table
