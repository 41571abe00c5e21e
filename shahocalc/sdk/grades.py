"""Standard remuneration grade tables (標準報酬月額等級表).

Maps an average monthly remuneration to its health insurance grade, pension
grade and standard amount, and decides whether a monthly change filing
(月額変更届) is required.

Grade tables live in grade-tables/*.yaml (or the grade_tables_dir setting),
one file per revision of the table:

    name: "標準報酬月額 (2020年9月以降)"
    effective_from: 2020-09-01
    bands:
      - {grade: 1, pension_grade: 1, standard_amount: 58000, min_amount: 0, max_amount: 63000}
      ...

Bands are half-open: min_amount <= average < max_amount. The top band has
no max_amount.
"""

import logging
import os
from datetime import date
from pathlib import Path
from typing import List, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .config import get_grade_tables_dir
from .remuneration import RemunerationResult

# Configure logging based on LOG_LEVEL environment variable
_log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, _log_level, logging.INFO),
    format="%(asctime)s.%(msecs)03d %(levelname)s: %(message)s",
    datefmt="%H:%M:%S"
)
logger = logging.getLogger(__name__)

# A monthly change filing needs a move of at least this many grades
MONTHLY_CHANGE_GRADE_THRESHOLD = 2

# The annual revision (算定基礎届) applies from September
ANNUAL_REVISION_EFFECTIVE_MONTH = 9


class GradeTableNotFoundError(Exception):
    """Raised when no grade table applies to the requested date."""
    pass


class GradeNotFoundError(Exception):
    """Raised when an amount falls in no band of the grade table."""
    pass


class GradeBand(BaseModel):
    """One row of the grade table."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    grade: int = Field(..., ge=1, description="Health insurance grade")
    pension_grade: Optional[int] = Field(
        default=None, ge=1, description="Pension grade (None when the row has no pension grade)"
    )
    standard_amount: int = Field(..., gt=0, description="Standard monthly remuneration")
    min_amount: int = Field(..., ge=0, description="Inclusive lower bound")
    max_amount: Optional[int] = Field(default=None, description="Exclusive upper bound, None for top band")

    def contains(self, amount: int) -> bool:
        return amount >= self.min_amount and (self.max_amount is None or amount < self.max_amount)


class GradeTable(BaseModel):
    """A complete grade table revision."""

    model_config = ConfigDict(extra="forbid")

    name: str
    effective_from: date
    bands: List[GradeBand] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_bands(self) -> "GradeTable":
        """Bands must be ordered by grade, contiguous, and only the last open-ended."""
        errors = []
        for prev, band in zip(self.bands, self.bands[1:]):
            if band.grade != prev.grade + 1:
                errors.append(f"grade {band.grade} follows grade {prev.grade}")
            if prev.max_amount is None:
                errors.append(f"grade {prev.grade} has no max_amount but is not the top band")
            elif prev.max_amount != band.min_amount:
                errors.append(
                    f"grade {prev.grade} max_amount {prev.max_amount} != "
                    f"grade {band.grade} min_amount {band.min_amount}"
                )
        if errors:
            raise ValueError("; ".join(errors))
        return self

    def band_for_grade(self, grade: int) -> Optional[GradeBand]:
        for band in self.bands:
            if band.grade == grade:
                return band
        return None


class GradeResult(BaseModel):
    """Grade assigned to an average remuneration."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    grade: int
    pension_grade: int
    standard_amount: int


class RevisionAssessment(BaseModel):
    """Outcome of the monthly change test."""

    model_config = ConfigDict(extra="forbid")

    requires_filing: bool
    reason: str
    average: Optional[int] = None
    new_grade: Optional[GradeResult] = None
    previous_grade: Optional[int] = None
    grade_change: int = 0


def load_grade_table_file(path: Path) -> GradeTable:
    """Load and validate a single grade table YAML file."""
    with open(path, "r") as f:
        raw = yaml.safe_load(f) or {}
    return GradeTable.model_validate(raw)


def list_grade_tables(tables_dir: Optional[Path] = None) -> List[Tuple[Path, GradeTable]]:
    """All grade tables in the directory, oldest effective_from first."""
    if tables_dir is None:
        tables_dir = get_grade_tables_dir()

    tables = [(p, load_grade_table_file(p)) for p in sorted(tables_dir.glob("*.yaml"))]
    tables.sort(key=lambda item: item[1].effective_from)
    return tables


def load_grade_table(as_of: Optional[date] = None, tables_dir: Optional[Path] = None) -> GradeTable:
    """Load the grade table in force on as_of (default today).

    Raises:
        GradeTableNotFoundError: If no table's effective_from is on or before as_of
    """
    if as_of is None:
        as_of = date.today()
    if tables_dir is None:
        tables_dir = get_grade_tables_dir()

    selected = None
    for path, table in list_grade_tables(tables_dir):
        if table.effective_from <= as_of:
            selected = (path, table)

    if selected is None:
        raise GradeTableNotFoundError(
            f"No grade table in {tables_dir} is effective on {as_of.isoformat()}"
        )

    logger.debug(f"grade table for {as_of.isoformat()}: {selected[0].name} ({selected[1].name})")
    return selected[1]


def determine_grade(average: int, table: GradeTable) -> GradeResult:
    """Find the band containing average.

    Raises:
        GradeNotFoundError: If no band contains the amount (e.g. negative)
    """
    for band in table.bands:
        if band.contains(average):
            return GradeResult(
                grade=band.grade,
                pension_grade=band.pension_grade or band.grade,
                standard_amount=band.standard_amount,
            )
    raise GradeNotFoundError(f"No grade in '{table.name}' for average {average:,} yen")


def assess_monthly_change(
    result: RemunerationResult,
    previous_grade: Optional[int],
    table: GradeTable,
) -> RevisionAssessment:
    """Decide whether a fixed-wage change requires a monthly change filing.

    A filing is required when:
    - all three months in the window have at least 17 base days,
    - the grade of the adjusted average differs from the previous grade by
      two or more, and
    - the direction agrees: a grade increase needs an average at or above the
      previous grade's standard amount, a decrease one at or below it.

    Args:
        result: Aggregated three-month window
        previous_grade: Current health insurance grade, None if unknown
        table: Grade table in force from the fourth month

    Returns:
        RevisionAssessment
    """
    if not result.all_months_eligible:
        return RevisionAssessment(
            requires_filing=False,
            reason=f"only {result.eligible_months} of 3 months have 17 or more base days",
            average=result.adjusted_average,
            previous_grade=previous_grade,
        )

    average = result.adjusted_average
    new_grade = determine_grade(average, table)

    if previous_grade is None:
        return RevisionAssessment(
            requires_filing=False,
            reason="no previous grade to compare against",
            average=average,
            new_grade=new_grade,
        )

    grade_change = new_grade.grade - previous_grade
    if abs(grade_change) < MONTHLY_CHANGE_GRADE_THRESHOLD:
        return RevisionAssessment(
            requires_filing=False,
            reason=f"grade moved by {abs(grade_change)}, less than {MONTHLY_CHANGE_GRADE_THRESHOLD}",
            average=average,
            new_grade=new_grade,
            previous_grade=previous_grade,
            grade_change=grade_change,
        )

    previous_band = table.band_for_grade(previous_grade)
    if previous_band is not None:
        if grade_change > 0 and average < previous_band.standard_amount:
            reason = "grade rose but the average fell below the previous standard amount"
            logger.debug(f"monthly change: {reason}")
            return RevisionAssessment(
                requires_filing=False,
                reason=reason,
                average=average,
                new_grade=new_grade,
                previous_grade=previous_grade,
                grade_change=grade_change,
            )
        if grade_change < 0 and average > previous_band.standard_amount:
            reason = "grade fell but the average rose above the previous standard amount"
            logger.debug(f"monthly change: {reason}")
            return RevisionAssessment(
                requires_filing=False,
                reason=reason,
                average=average,
                new_grade=new_grade,
                previous_grade=previous_grade,
                grade_change=grade_change,
            )

    return RevisionAssessment(
        requires_filing=True,
        reason=f"grade {previous_grade} -> {new_grade.grade}",
        average=average,
        new_grade=new_grade,
        previous_grade=previous_grade,
        grade_change=grade_change,
    )


def revision_effective_month(year: int, first_month: int) -> Tuple[int, int]:
    """Month from which a monthly change applies: the fourth month of the window.

    Example:
        revision_effective_month(2025, 11)  # (2026, 2)
    """
    if not 1 <= first_month <= 12:
        raise ValueError(f"first_month must be 1-12, got {first_month}")
    month = first_month + 3
    if month > 12:
        return year + 1, month - 12
    return year, month


def grade_table_date(year: int, first_month: Optional[int] = None) -> date:
    """Date whose grade table applies to a window starting in year.

    A monthly change window applies from its fourth month. The annual
    revision (April-June, first_month None) applies from September.

    Example:
        grade_table_date(2025, 11)  # date(2026, 2, 1)
        grade_table_date(2025)      # date(2025, 9, 1)
    """
    if first_month is None:
        return date(year, ANNUAL_REVISION_EFFECTIVE_MONTH, 1)
    effective_year, effective_month = revision_effective_month(year, first_month)
    return date(effective_year, effective_month, 1)
