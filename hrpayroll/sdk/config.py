"""Configuration management for HR Payroll.

Machine-specific settings live in settings.json inside the config directory:
   - tax_rules_dir: directory holding {year}.yaml tax rule files
   - employees_file: YAML file listing known employee ids
   - data_dir: custom data directory

Config directory resolution:
1. HR_PAYROLL_CONFIG_PATH environment variable (if set)
2. ~/.config/hr-payroll/ (XDG_CONFIG_HOME fallback)

Data paths follow XDG spec:
- Data: settings.json "data_dir", else XDG_DATA_HOME/hr-payroll/ or
  ~/.local/share/hr-payroll/
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

APP_NAME = "hr-payroll"
CONFIG_PATH_ENV = "HR_PAYROLL_CONFIG_PATH"
SETTINGS_FILENAME = "settings.json"
EMPLOYEES_FILENAME = "employees.yaml"
TAX_RULES_DIRNAME = "tax-rules"


def configure_logging() -> None:
    """Configure root logging from the LOG_LEVEL environment variable."""
    log_level = os.environ.get("LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Resolution order:
    1. HR_PAYROLL_CONFIG_PATH environment variable
    2. ~/.config/hr-payroll/ (XDG_CONFIG_HOME)

    Returns:
        Path to the configuration directory
    """
    env_path = os.environ.get(CONFIG_PATH_ENV)
    if env_path:
        return Path(env_path)

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
    return Path(xdg_config_home) / APP_NAME


def get_settings_path() -> Path:
    """Get the path to settings.json (may not exist yet)."""
    return get_config_dir() / SETTINGS_FILENAME


def load_settings() -> dict:
    """Load machine-specific settings from settings.json.

    Returns:
        Settings dictionary (empty dict if file doesn't exist)
    """
    settings_file = get_settings_path()

    if not settings_file.exists():
        return {}

    with open(settings_file, "r") as f:
        return json.load(f)


def save_settings(settings: dict) -> Path:
    """Save machine-specific settings to settings.json.

    Args:
        settings: Settings dictionary to save

    Returns:
        Path to the saved settings file
    """
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)

    settings_file = config_dir / SETTINGS_FILENAME

    with open(settings_file, "w") as f:
        json.dump(settings, f, indent=2)

    return settings_file


def get_setting(key: str, default: Any = None) -> Any:
    """Get a setting value from settings.json."""
    settings = load_settings()
    return settings.get(key, default)


def set_setting(key: str, value: Any) -> Path:
    """Set a setting value in settings.json.

    Returns:
        Path to the saved settings file
    """
    settings = load_settings()
    settings[key] = value
    return save_settings(settings)


def clear_setting(key: str) -> bool:
    """Remove a setting from settings.json.

    Returns:
        True if the key was present
    """
    settings = load_settings()
    if key not in settings:
        return False
    del settings[key]
    save_settings(settings)
    return True


def get_data_path() -> Path:
    """Get the data directory path.

    Uses settings.json "data_dir" when set, otherwise XDG_DATA_HOME/hr-payroll/.

    Returns:
        Path to the data directory (created if doesn't exist)
    """
    custom = get_setting("data_dir")
    if custom:
        data_path = Path(custom).expanduser()
    else:
        xdg_data_home = os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share")
        data_path = Path(xdg_data_home) / APP_NAME
    data_path.mkdir(parents=True, exist_ok=True)
    return data_path


def get_default_tax_rules_dir() -> Path:
    """Tax rules shipped with the project (tax-rules/ at the project root)."""
    package_root = Path(__file__).parent.parent.parent  # sdk -> hrpayroll -> project root
    return package_root / TAX_RULES_DIRNAME


def get_tax_rules_dir() -> Path:
    """Get the directory holding {year}.yaml tax rule files.

    Resolution order:
    1. settings.json "tax_rules_dir"
    2. tax-rules/ at the project root
    """
    custom = get_setting("tax_rules_dir")
    if custom:
        return Path(custom).expanduser()
    return get_default_tax_rules_dir()


def get_employees_path() -> Path:
    """Get the employee directory file (settings.json "employees_file" or data dir)."""
    custom = get_setting("employees_file")
    if custom:
        return Path(custom).expanduser()
    return get_data_path() / EMPLOYEES_FILENAME
