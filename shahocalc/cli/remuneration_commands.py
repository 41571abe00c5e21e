"""Remuneration averaging and bonus CLI commands."""

import json
from datetime import date
from pathlib import Path

import click
import yaml

from shahocalc.sdk import (
    GradeNotFoundError,
    GradeTableNotFoundError,
    aggregate,
    annual_revision_window,
    assess_monthly_change,
    build_window,
    determine_grade,
    grade_table_date,
    load_grade_table,
    revision_window,
    round_bonus,
)


def parse_month_option(value: str) -> dict:
    """Parse BASE_DAYS:CASH[:IN_KIND[:RETRO]] into a salary row.

    Example: "17:300000:5000:0"
    """
    parts = value.split(":")
    if not 2 <= len(parts) <= 4:
        raise click.BadParameter(f"'{value}' must be BASE_DAYS:CASH[:IN_KIND[:RETRO]]")
    try:
        values = [int(p.replace(",", "")) if p else 0 for p in parts]
    except ValueError:
        raise click.BadParameter(f"'{value}' contains a non-integer value")
    if any(v < 0 for v in values):
        raise click.BadParameter(f"'{value}' contains a negative value")

    values += [0] * (4 - len(values))
    return {
        "base_days": values[0],
        "cash_amount": values[1],
        "in_kind_amount": values[2],
        "retroactive_amount": values[3],
    }


def load_rows_file(path: Path) -> tuple:
    """Load a salary window from YAML.

    Format:
        first_month: 4          # optional, default April-June
        months:
          - {base_days: 31, cash_amount: 300000, in_kind_amount: 0, retroactive_amount: 0}
          - ...

    Returns:
        Tuple of (first_month or None, rows)
    """
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise click.ClickException(f"{path}: expected a mapping with 'months', got {type(data).__name__}")
    rows = data.get("months") or []
    if not isinstance(rows, list):
        raise click.ClickException(f"{path}: 'months' must be a list")
    for i, row in enumerate(rows, 1):
        if not isinstance(row, dict):
            raise click.ClickException(f"{path}: month {i} must be a mapping, got {type(row).__name__}")
    return data.get("first_month"), rows


@click.group("remuneration")
def remuneration():
    """Standard remuneration averaging (算定基礎届 / 月額変更届).

    Months with fewer than 17 base days are excluded from the total and
    average. Retroactive pay is subtracted for the adjusted average.
    """
    pass


@remuneration.command("aggregate")
@click.option("--month", "month_values", multiple=True,
              help="BASE_DAYS:CASH[:IN_KIND[:RETRO]], given three times in window order.")
@click.option("--file", "rows_file", type=click.Path(exists=True),
              help="YAML file with the salary window (instead of --month).")
@click.option("--first-month", type=click.IntRange(1, 12),
              help="First month of a monthly change window (default: April-June).")
@click.option("--grade", "with_grade", is_flag=True, help="Also look up the grade of the adjusted average.")
@click.option("--previous-grade", type=int, help="Current grade; assess whether a monthly change filing is required.")
@click.option("--year", type=click.IntRange(1900, 9998),
              help="Year of the window's first month; selects the grade table in force when the new grade applies.")
@click.option("--as-of", type=str,
              help="Grade table date (YYYY-MM-DD). Defaults to the date derived from --year, else today.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def remuneration_aggregate(month_values, rows_file, first_month, with_grade, previous_grade, year, as_of,
                           as_json):
    """Compute total, average and adjusted average for a three-month window.

    \b
    Examples:
      shaho-calc remuneration aggregate --month 17:300000 --month 10:999999 --month 20:330000
      shaho-calc remuneration aggregate --month 31:300000::30000 --month 30:300000 --month 31:300000
      shaho-calc remuneration aggregate --file window.yaml --previous-grade 20 --year 2025
    """
    if rows_file and month_values:
        raise click.UsageError("Use either --month or --file, not both.")

    if rows_file:
        file_first_month, rows = load_rows_file(Path(rows_file))
        if first_month is None:
            first_month = file_first_month
    else:
        rows = [parse_month_option(m) for m in month_values]

    if len(rows) != 3:
        raise click.UsageError(f"A salary window needs exactly 3 months, got {len(rows)}.")

    try:
        months = revision_window(first_month) if first_month else annual_revision_window()
        entries, retro = build_window(months, rows)
    except ValueError as e:
        raise click.ClickException(str(e))

    result = aggregate(entries, retro)
    output = {
        "months": months,
        "result": result.model_dump(),
    }

    if with_grade or previous_grade is not None:
        try:
            as_of_date = date.fromisoformat(as_of) if as_of else None
        except ValueError:
            raise click.BadParameter(f"Invalid date '{as_of}'. Use YYYY-MM-DD.")
        if as_of_date is None and year is not None:
            as_of_date = grade_table_date(year, first_month)
            output["grade_table_date"] = as_of_date.isoformat()
        try:
            table = load_grade_table(as_of_date)
            if previous_grade is not None:
                assessment = assess_monthly_change(result, previous_grade, table)
                output["assessment"] = assessment.model_dump()
            elif result.adjusted_average is not None:
                output["grade"] = determine_grade(result.adjusted_average, table).model_dump()
        except (GradeTableNotFoundError, GradeNotFoundError) as e:
            raise click.ClickException(str(e))

    if as_json:
        click.echo(json.dumps(output, ensure_ascii=False, indent=2))
        return

    def fmt(value):
        return f"{value:,}" if value is not None else "-"

    click.echo(f"Months:           {', '.join(str(m) for m in months)}")
    click.echo(f"Eligible months:  {result.eligible_months} of 3")
    click.echo(f"Total:            {fmt(result.total)}")
    click.echo(f"Average:          {fmt(result.average)}")
    click.echo(f"Adjusted average: {fmt(result.adjusted_average)}")

    if "grade" in output:
        g = output["grade"]
        click.echo(f"Grade:            {g['grade']} (pension {g['pension_grade']}), standard {g['standard_amount']:,}")
    if "assessment" in output:
        a = output["assessment"]
        status = "REQUIRED" if a["requires_filing"] else "not required"
        click.echo(f"Monthly change:   {status} ({a['reason']})")


@click.group("bonus")
def bonus():
    """Bonus payment filing (賞与支払届) amounts."""
    pass


@bonus.command("round")
@click.argument("cash", type=click.IntRange(min=0))
@click.argument("in_kind", type=click.IntRange(min=0), default=0)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def bonus_round(cash, in_kind, as_json):
    """Standard bonus amount: CASH + IN_KIND truncated to the thousand yen."""
    amount = round_bonus(cash, in_kind)
    if as_json:
        click.echo(json.dumps({"cash": cash, "in_kind": in_kind, "standard_bonus": amount}))
        return
    click.echo(f"{amount:,}")
