"""Configuration management for Shaho Calc.

Configuration is a single machine-specific file:

settings.json - tool behavior preferences
   - grade_tables_dir: directory holding grade table YAML files
     (defaults to the grade-tables/ directory shipped with the project)
   - default_era_format: "kanji" or "compact" for CLI output

Config directory resolution:
1. SHAHO_CALC_CONFIG_PATH environment variable (if set)
2. ~/.config/shaho-calc/ (XDG_CONFIG_HOME fallback)
"""

import json
import os
from pathlib import Path
from typing import Any

APP_NAME = "shaho-calc"
SETTINGS_FILENAME = "settings.json"

ERA_FORMATS = ("kanji", "compact")


class SettingsError(Exception):
    """Raised when settings.json holds an unusable value."""
    pass


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Resolution order:
    1. SHAHO_CALC_CONFIG_PATH environment variable
    2. ~/.config/shaho-calc/ (XDG_CONFIG_HOME)
    """
    env_path = os.environ.get("SHAHO_CALC_CONFIG_PATH")
    if env_path:
        return Path(env_path)

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
    return Path(xdg_config_home) / APP_NAME


def get_settings_path() -> Path:
    """Get the path to settings.json (may not exist yet)."""
    return get_config_dir() / SETTINGS_FILENAME


def load_settings() -> dict:
    """Load settings from settings.json.

    Returns:
        Settings dictionary (empty dict if file doesn't exist)
    """
    settings_file = get_settings_path()

    if not settings_file.exists():
        return {}

    with open(settings_file, "r") as f:
        return json.load(f)


def save_settings(settings: dict) -> Path:
    """Save settings to settings.json.

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
    return load_settings().get(key, default)


def set_setting(key: str, value: Any) -> Path:
    """Set a setting value in settings.json.

    Returns:
        Path to the saved settings file
    """
    settings = load_settings()
    settings[key] = value
    return save_settings(settings)


def get_default_grade_tables_dir() -> Path:
    """The grade-tables/ directory at the project root."""
    package_root = Path(__file__).parent.parent.parent  # sdk -> shahocalc -> project root
    return package_root / "grade-tables"


def get_grade_tables_dir() -> Path:
    """Directory holding grade table YAML files.

    Uses the grade_tables_dir setting when present, else the project default.
    """
    custom = get_setting("grade_tables_dir")
    if custom:
        return Path(custom).expanduser()
    return get_default_grade_tables_dir()


def get_default_era_format() -> str:
    """Era date style for CLI output ("kanji" unless configured).

    Raises:
        SettingsError: If default_era_format holds an unknown style
    """
    value = get_setting("default_era_format", "kanji")
    if value not in ERA_FORMATS:
        raise SettingsError(
            f"default_era_format must be one of {', '.join(ERA_FORMATS)}, got {value!r}\n"
            f"Fix it in: {get_settings_path()}"
        )
    return value
