"""Era calendar CLI commands."""

import json
from datetime import date

import click

from shahocalc.sdk import (
    EraCalendarError,
    EraDate,
    SettingsError,
    format_era_date,
    get_default_era_format,
    parse_era,
    to_era_date,
    to_gregorian_date,
)


def _era_date_dict(era_date: EraDate) -> dict:
    return {
        "era": era_date.era.value,
        "era_label": era_date.era.label,
        "era_year": era_date.era_year,
        "month": era_date.month,
        "day": era_date.day,
        "kanji": format_era_date(era_date, "kanji"),
        "compact": format_era_date(era_date, "compact"),
    }


@click.group("era")
def era():
    """Convert between Gregorian dates and Japanese era dates (和暦).

    \b
    Examples:
      shaho-calc era to-era 2019-05-01          # 令和1年5月1日
      shaho-calc era to-gregorian heisei 31 4 30
      shaho-calc era to-gregorian R 1 5 1
    """
    pass


@era.command("to-era")
@click.argument("gregorian")
@click.option("--format", "style", type=click.Choice(["kanji", "compact"]),
              help="Output style (default: default_era_format setting, else kanji).")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def era_to_era(gregorian, style, as_json):
    """Convert GREGORIAN (YYYY-MM-DD) to an era date."""
    try:
        d = date.fromisoformat(gregorian)
    except ValueError:
        raise click.BadParameter(f"Invalid date '{gregorian}'. Use YYYY-MM-DD.")

    try:
        era_date = to_era_date(d)
    except EraCalendarError as e:
        raise click.ClickException(str(e))

    if as_json:
        click.echo(json.dumps(_era_date_dict(era_date), ensure_ascii=False, indent=2))
        return

    if style is None:
        try:
            style = get_default_era_format()
        except SettingsError as e:
            raise click.ClickException(str(e))
    click.echo(format_era_date(era_date, style))


@era.command("to-gregorian")
@click.argument("era_name")
@click.argument("era_year", type=int)
@click.argument("month", type=int)
@click.argument("day", type=int)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def era_to_gregorian(era_name, era_year, month, day, as_json):
    """Convert an era date to YYYY-MM-DD.

    ERA_NAME may be the key (reiwa), kanji (令和) or code (R).
    """
    try:
        era_date = EraDate(era=parse_era(era_name), era_year=era_year, month=month, day=day)
    except ValueError as e:
        # pydantic ValidationError is a ValueError
        raise click.BadParameter(str(e))
    except EraCalendarError as e:
        raise click.BadParameter(str(e))

    try:
        result = to_gregorian_date(era_date)
    except EraCalendarError as e:
        raise click.ClickException(str(e))

    if as_json:
        payload = _era_date_dict(era_date)
        payload["gregorian"] = result.isoformat()
        click.echo(json.dumps(payload, ensure_ascii=False, indent=2))
        return

    click.echo(result.isoformat())
