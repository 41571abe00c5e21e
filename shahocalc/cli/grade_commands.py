"""Standard remuneration grade CLI commands."""

import json
from datetime import date

import click

from shahocalc.sdk import (
    GradeNotFoundError,
    GradeTableNotFoundError,
    determine_grade,
    get_grade_tables_dir,
    load_grade_table,
)


@click.group("grade")
def grade():
    """Standard remuneration grade table (標準報酬月額等級表).

    Tables are read from the grade_tables_dir setting, else the bundled
    grade-tables/ directory.
    """
    pass


@grade.command("lookup")
@click.argument("average", type=click.IntRange(min=0))
@click.option("--as-of", type=str, help="Date the table must be in force (YYYY-MM-DD). Defaults to today.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def grade_lookup(average, as_of, as_json):
    """Find the grade and standard amount for a monthly AVERAGE."""
    try:
        as_of_date = date.fromisoformat(as_of) if as_of else None
    except ValueError:
        raise click.BadParameter(f"Invalid date '{as_of}'. Use YYYY-MM-DD.")

    try:
        table = load_grade_table(as_of_date)
        result = determine_grade(average, table)
    except (GradeTableNotFoundError, GradeNotFoundError) as e:
        raise click.ClickException(str(e))

    if as_json:
        payload = {"average": average, "table": table.name, **result.model_dump()}
        click.echo(json.dumps(payload, ensure_ascii=False, indent=2))
        return

    click.echo(f"Table:           {table.name}")
    click.echo(f"Grade:           {result.grade}")
    click.echo(f"Pension grade:   {result.pension_grade}")
    click.echo(f"Standard amount: {result.standard_amount:,}")


@grade.command("table")
@click.option("--as-of", type=str, help="Date the table must be in force (YYYY-MM-DD). Defaults to today.")
def grade_table(as_of):
    """Print the grade table in force."""
    try:
        as_of_date = date.fromisoformat(as_of) if as_of else None
    except ValueError:
        raise click.BadParameter(f"Invalid date '{as_of}'. Use YYYY-MM-DD.")

    try:
        table = load_grade_table(as_of_date)
    except GradeTableNotFoundError as e:
        raise click.ClickException(str(e))

    click.echo(f"{table.name} (from {table.effective_from.isoformat()}, {get_grade_tables_dir()})")
    click.echo()
    click.echo(f"{'Grade':>5} {'Pension':>7} {'Standard':>11} {'From':>11} {'Below':>11}")
    for band in table.bands:
        below = f"{band.max_amount:,}" if band.max_amount is not None else ""
        pension = str(band.pension_grade) if band.pension_grade else ""
        click.echo(
            f"{band.grade:>5} {pension:>7} {band.standard_amount:>11,} "
            f"{band.min_amount:>11,} {below:>11}"
        )
