"""Shaho Calc MCP Server - FastMCP implementation for filing calculation tools."""

import logging
from datetime import date
from typing import Any

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from shahocalc.sdk import (
    EraCalendarError,
    EraDate,
    FormVariant,
    GradeNotFoundError,
    GradeTableNotFoundError,
    InvalidChangeType,
    aggregate,
    annual_revision_window,
    assess_monthly_change,
    build_window,
    determine_grade,
    format_era_date,
    grade_table_date,
    load_grade_table,
    parse_era,
    revision_window,
    round_bonus,
    required_fields as sdk_required_fields,
    to_era_date,
    to_gregorian_date,
)

logger = logging.getLogger(__name__)

# Initialize FastMCP server
mcp = FastMCP("shaho-calc")


def _parse_date(value: str | None) -> date | None:
    if not value:
        return None
    return date.fromisoformat(value)


# --- Tools ---

@mcp.tool()
async def convert_to_era(
    gregorian: str = Field(description="Gregorian date as YYYY-MM-DD (on or after 1912-07-30)"),
) -> dict[str, Any]:
    """Convert a Gregorian date to a Japanese era date (和暦). Returns era, era year, month, day and formatted forms."""
    try:
        era_date = to_era_date(date.fromisoformat(gregorian))
        return {
            "era": era_date.era.value,
            "era_label": era_date.era.label,
            "era_year": era_date.era_year,
            "month": era_date.month,
            "day": era_date.day,
            "kanji": format_era_date(era_date, "kanji"),
            "compact": format_era_date(era_date, "compact"),
        }
    except (ValueError, EraCalendarError) as e:
        logger.error(f"Error converting {gregorian} to era: {e}")
        return {"error": str(e)}


@mcp.tool()
async def convert_to_gregorian(
    era: str = Field(description="Era as key (reiwa), kanji (令和) or code (R)"),
    era_year: int = Field(description="Year within the era, 1-based (元年 = 1)"),
    month: int = Field(description="Month 1-12"),
    day: int = Field(description="Day of month"),
) -> dict[str, Any]:
    """Convert a Japanese era date to a Gregorian date (YYYY-MM-DD)."""
    try:
        era_date = EraDate(era=parse_era(era), era_year=era_year, month=month, day=day)
        return {"gregorian": to_gregorian_date(era_date).isoformat()}
    except (ValueError, EraCalendarError) as e:
        logger.error(f"Error converting {era} {era_year}/{month}/{day}: {e}")
        return {"error": str(e)}


@mcp.tool()
async def aggregate_remuneration(
    months: list[dict[str, int]] = Field(
        description="Exactly 3 salary months in window order, each with base_days, cash_amount, "
                    "and optional in_kind_amount, retroactive_amount"
    ),
    first_month: int | None = Field(
        default=None, description="First month of a monthly change window (1-12). Omit for April-June."
    ),
    previous_grade: int | None = Field(
        default=None, description="Current grade; when given, assess whether a monthly change filing is required"
    ),
    year: int | None = Field(
        default=None,
        description="Year of the window's first month; the grade table in force when the new grade applies is used",
    ),
    as_of: str | None = Field(
        default=None, description="Grade table date YYYY-MM-DD (default: derived from year, else today)"
    ),
) -> dict[str, Any]:
    """Average a three-month salary window for standard remuneration. Months under 17 base days are excluded; retroactive pay is subtracted for the adjusted average."""
    try:
        window = revision_window(first_month) if first_month else annual_revision_window()
        entries, retro = build_window(window, months)
        result = aggregate(entries, retro)
        response: dict[str, Any] = {"months": window, "result": result.model_dump()}

        if previous_grade is not None:
            as_of_date = _parse_date(as_of)
            if as_of_date is None and year is not None:
                as_of_date = grade_table_date(year, first_month)
                response["grade_table_date"] = as_of_date.isoformat()
            table = load_grade_table(as_of_date)
            response["assessment"] = assess_monthly_change(result, previous_grade, table).model_dump()
        return response
    except (ValueError, GradeTableNotFoundError, GradeNotFoundError) as e:
        logger.error(f"Error aggregating remuneration: {e}")
        return {"error": str(e)}


@mcp.tool()
async def standard_bonus_amount(
    cash: int = Field(description="Cash bonus in yen"),
    in_kind: int = Field(default=0, description="In-kind bonus in yen"),
) -> dict[str, Any]:
    """Standard bonus amount for the bonus payment filing: total truncated to the thousand yen."""
    if cash < 0 or in_kind < 0:
        return {"error": "Bonus amounts must be non-negative"}
    return {"cash": cash, "in_kind": in_kind, "standard_bonus": round_bonus(cash, in_kind)}


@mcp.tool()
async def lookup_grade(
    average: int = Field(description="Average monthly remuneration in yen"),
    as_of: str | None = Field(default=None, description="Date the table must be in force, YYYY-MM-DD (default today)"),
) -> dict[str, Any]:
    """Find the health insurance grade, pension grade and standard monthly amount for an average remuneration."""
    try:
        table = load_grade_table(_parse_date(as_of))
        return {"table": table.name, **determine_grade(average, table).model_dump()}
    except (ValueError, GradeTableNotFoundError, GradeNotFoundError) as e:
        logger.error(f"Error looking up grade for {average}: {e}")
        return {"error": str(e)}


@mcp.tool()
async def required_fields(
    kind: str = Field(description="'spouse' or 'other_dependent'"),
    context: str = Field(description="'internal' (request to HR) or 'external' (filing to the pension office)"),
    change_type: str = Field(description="'no_change', 'applicable', 'not_applicable' or 'change'"),
    start_reason: str | None = Field(default=None, description="Start reason value (applicable only)"),
    end_reason: str | None = Field(default=None, description="End reason value, e.g. 'death' (not_applicable only)"),
    has_non_dependent_spouse: bool = Field(
        default=False, description="Spouse exists but is not a dependent (external spouse only)"
    ),
) -> dict[str, Any]:
    """List the required fields of a dependent change filing record for the given change type and reasons."""
    try:
        variant = FormVariant.of(kind, context)
        fields = sdk_required_fields(
            change_type,
            variant,
            end_reason=end_reason,
            start_reason=start_reason,
            has_non_dependent_spouse=has_non_dependent_spouse,
        )
        ordered = [path for path in variant.fields if path in fields]
        return {"variant": str(variant), "required": ordered, "count": len(ordered)}
    except (ValueError, InvalidChangeType) as e:
        logger.error(f"Error deriving required fields: {e}")
        return {"error": str(e), "required": []}


def run_server():
    """Run the MCP server in stdio mode."""
    mcp.run(transport="stdio")


if __name__ == "__main__":
    run_server()
