"""Settings CLI commands for Shaho Calc.

Manages settings.json - grade table directory, output preferences.
"""

import os
from pathlib import Path

import click

from shahocalc.sdk import (
    load_settings,
    save_settings,
    get_setting,
    set_setting,
    get_settings_path,
    get_grade_tables_dir,
    get_default_grade_tables_dir,
)
from shahocalc.sdk.config import ERA_FORMATS


@click.group()
def settings():
    """Manage settings (settings.json).

    Available settings:
    - grade_tables_dir: custom grade table directory
    - default_era_format: kanji or compact era output
    """
    pass


@settings.command("show")
def settings_show():
    """Show current settings and their values."""
    settings_path = get_settings_path()
    current = load_settings()

    click.echo(f"Settings file: {settings_path}")
    if os.environ.get("SHAHO_CALC_CONFIG_PATH"):
        click.echo("  (from SHAHO_CALC_CONFIG_PATH)")
    click.echo(f"File exists: {settings_path.exists()}")
    click.echo()

    if not current:
        click.echo("No settings configured (using defaults).")
    else:
        click.echo("Current settings:")
        for key, value in current.items():
            click.echo(f"  {key}: {value}")

    click.echo()
    click.echo("Effective paths:")
    suffix = "" if current.get("grade_tables_dir") else " (default)"
    click.echo(f"  grade_tables_dir: {get_grade_tables_dir()}{suffix}")


@settings.command("grade-tables-dir")
@click.argument("path", required=False, type=click.Path())
@click.option("--clear", is_flag=True, help="Clear custom grade_tables_dir, revert to default")
def settings_grade_tables_dir(path, clear):
    """Set or clear the custom grade table directory.

    PATH is a directory of grade table YAML files (one per revision).

    \b
    Examples:
        shaho-calc settings grade-tables-dir ~/shaho/grade-tables
        shaho-calc settings grade-tables-dir --clear
    """
    if clear:
        current = load_settings()
        if "grade_tables_dir" in current:
            del current["grade_tables_dir"]
            save_settings(current)
            click.echo("Cleared grade_tables_dir setting.")
            click.echo(f"Grade tables are now read from: {get_default_grade_tables_dir()} (default)")
        else:
            click.echo("grade_tables_dir was not set.")
        return

    if not path:
        current_dir = get_setting("grade_tables_dir")
        if current_dir:
            click.echo(f"Current grade_tables_dir: {current_dir}")
        else:
            click.echo(f"No custom grade_tables_dir set. Using default: {get_default_grade_tables_dir()}")
        return

    tables_path = Path(path).expanduser().resolve()
    if not tables_path.is_dir():
        raise click.ClickException(f"Not a directory: {tables_path}")
    if not any(tables_path.glob("*.yaml")):
        click.echo(f"Warning: no *.yaml grade tables in {tables_path}", err=True)

    set_setting("grade_tables_dir", str(tables_path))
    click.echo(f"Set grade_tables_dir: {tables_path}")
    click.echo(f"Saved to: {get_settings_path()}")


@settings.command("era-format")
@click.argument("style", required=False, type=click.Choice(list(ERA_FORMATS)))
def settings_era_format(style):
    """Show or set the default era date style (kanji or compact)."""
    if not style:
        click.echo(get_setting("default_era_format", "kanji"))
        return

    set_setting("default_era_format", style)
    click.echo(f"Set default_era_format: {style}")
