"""Standard remuneration averaging (報酬月額の総計・平均額・修正平均額).

SDK layer - pure logic, returns results. No CLI or presentation.

Both the annual revision filing (算定基礎届, April-June) and the monthly
change filing (月額変更届, three months from the month pay changed) print
three figures derived from a three-month salary window:

- total: sum of the eligible months' pay (cash + in-kind)
- average: total // eligible month count
- adjusted average: (total - retroactive pay) // eligible month count

A month is eligible only when it has at least 17 base days. Fractions of a
yen are truncated (floor division), never rounded.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

BASE_DAYS_THRESHOLD = 17
WINDOW_SIZE = 3

MonthId = Optional[Union[int, str]]


class SalaryMonthEntry(BaseModel):
    """One month of the averaging window."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    month: MonthId = Field(default=None, description="Month number (1-12), key ('april') or None")
    base_days: int = Field(default=0, ge=0, description="Payment base days (支払基礎日数)")
    cash_amount: int = Field(default=0, ge=0, description="Pay in currency (通貨)")
    in_kind_amount: int = Field(default=0, ge=0, description="Pay in kind (現物)")

    @property
    def total(self) -> int:
        return self.cash_amount + self.in_kind_amount

    @property
    def eligible(self) -> bool:
        return self.base_days >= BASE_DAYS_THRESHOLD


class RetroactivePayment(BaseModel):
    """Back pay already included in a month's cash amount (遡及支払額)."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    month: MonthId = None
    amount: int = Field(default=0, ge=0)


class RemunerationResult(BaseModel):
    """Figures printed on the filing. Derived; recompute on any input change."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    total: int = Field(..., description="Sum of eligible months (総計)")
    average: Optional[int] = Field(None, description="Floor average, None if no eligible month (平均額)")
    adjusted_total: int = Field(..., description="Total minus all retroactive pay")
    adjusted_average: Optional[int] = Field(
        None, description="Floor adjusted average, None if no eligible month (修正平均額)"
    )
    eligible_months: int = Field(..., ge=0, le=WINDOW_SIZE)

    @property
    def all_months_eligible(self) -> bool:
        return self.eligible_months == WINDOW_SIZE


def aggregate(
    entries: Sequence[SalaryMonthEntry],
    retro: Sequence[RetroactivePayment],
) -> RemunerationResult:
    """Compute total, average and adjusted average for a three-month window.

    Args:
        entries: Exactly three SalaryMonthEntry values
        retro: Exactly three RetroactivePayment values (amount 0 where none)

    Returns:
        RemunerationResult. average and adjusted_average are None when no
        month reaches BASE_DAYS_THRESHOLD.

    Raises:
        ValueError: If either sequence is not exactly three long
    """
    if len(entries) != WINDOW_SIZE or len(retro) != WINDOW_SIZE:
        raise ValueError(
            f"aggregate needs {WINDOW_SIZE} salary entries and {WINDOW_SIZE} retroactive payments, "
            f"got {len(entries)} and {len(retro)}"
        )

    eligible = [e for e in entries if e.eligible]
    for e in entries:
        if not e.eligible:
            logger.debug(f"month {e.month}: {e.base_days} base days < {BASE_DAYS_THRESHOLD}, excluded")

    total = sum(e.total for e in eligible)
    # Retroactive pay is subtracted whichever month it belongs to
    adjusted_total = total - sum(r.amount for r in retro)

    count = len(eligible)
    average = total // count if count else None
    adjusted_average = adjusted_total // count if count else None

    return RemunerationResult(
        total=total,
        average=average,
        adjusted_total=adjusted_total,
        adjusted_average=adjusted_average,
        eligible_months=count,
    )


def annual_revision_window() -> List[int]:
    """Months averaged for the annual revision (算定基礎届): April to June."""
    return [4, 5, 6]


def revision_window(first_month: int) -> List[int]:
    """Three consecutive months starting at first_month, wrapping past December.

    Example:
        revision_window(11)  # [11, 12, 1]
    """
    if not isinstance(first_month, int) or not 1 <= first_month <= 12:
        raise ValueError(f"first_month must be 1-12, got {first_month!r}")
    return [((first_month - 1 + i) % 12) + 1 for i in range(WINDOW_SIZE)]


def build_window(
    months: Sequence[MonthId],
    rows: Sequence[Dict[str, Any]],
) -> tuple:
    """Pair a month window with raw salary rows.

    Each row may carry base_days, cash_amount, in_kind_amount and
    retroactive_amount; missing values count as zero, as blank form inputs do.

    Returns:
        Tuple of (entries, retro) ready for aggregate()
    """
    if len(months) != len(rows):
        raise ValueError(f"{len(months)} months but {len(rows)} salary rows")

    entries = []
    retro = []
    for month, row in zip(months, rows):
        entries.append(SalaryMonthEntry(
            month=month,
            base_days=row.get("base_days") or 0,
            cash_amount=row.get("cash_amount") or 0,
            in_kind_amount=row.get("in_kind_amount") or 0,
        ))
        retro.append(RetroactivePayment(month=month, amount=row.get("retroactive_amount") or 0))

    return entries, retro
