"""Japanese era calendar (和暦) conversion.

SDK layer - pure logic, no I/O.

Every date printed on a statutory filing is written as era + year-within-era
(e.g. 令和1年5月1日). This module converts between Gregorian dates and
EraDate values and renders them the way the filings print them.

Era boundaries use the actual accession dates, not calendar years:
2019-04-30 is Heisei 31, 2019-05-01 is Reiwa 1.

Usage:
    from datetime import date
    from shahocalc.sdk.era import to_era_date, to_gregorian_date, format_era_date

    ed = to_era_date(date(2019, 5, 1))       # EraDate(era=reiwa, era_year=1, ...)
    to_gregorian_date(ed)                    # date(2019, 5, 1)
    format_era_date(ed, "compact")           # "R-010501"
"""

import calendar
import logging
from datetime import date
from enum import Enum
from typing import Any, Dict, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class EraCalendarError(Exception):
    """Base class for era calendar conversion errors."""
    pass


class InvalidEraYear(EraCalendarError):
    """Raised when an era date does not name a real calendar day."""
    pass


class EraRangeExceeded(EraCalendarError):
    """Raised when a date or era-year falls outside the era's historical span."""
    pass


class Era(str, Enum):
    TAISHO = "taisho"
    SHOWA = "showa"
    HEISEI = "heisei"
    REIWA = "reiwa"

    @property
    def start(self) -> date:
        return ERA_TABLE[self]["start"]

    @property
    def offset(self) -> int:
        """Gregorian year = era year + offset."""
        return ERA_TABLE[self]["offset"]

    @property
    def label(self) -> str:
        return ERA_TABLE[self]["label"]

    @property
    def code(self) -> str:
        return ERA_TABLE[self]["code"]

    @property
    def end(self) -> Optional[date]:
        """Last day of the era, None for the current era."""
        return _ERA_END.get(self)


# Oldest first. Each era ends the day before the next one starts.
ERA_TABLE: Dict[Era, Dict[str, Any]] = {
    Era.TAISHO: {"start": date(1912, 7, 30), "offset": 1911, "label": "大正", "code": "T"},
    Era.SHOWA: {"start": date(1926, 12, 25), "offset": 1925, "label": "昭和", "code": "S"},
    Era.HEISEI: {"start": date(1989, 1, 8), "offset": 1988, "label": "平成", "code": "H"},
    Era.REIWA: {"start": date(2019, 5, 1), "offset": 2018, "label": "令和", "code": "R"},
}

_ERAS_OLDEST_FIRST = list(ERA_TABLE)

_ERA_END: Dict[Era, date] = {
    era: date.fromordinal(_ERAS_OLDEST_FIRST[i + 1].start.toordinal() - 1)
    for i, era in enumerate(_ERAS_OLDEST_FIRST[:-1])
}

SUPPORTED_FROM = ERA_TABLE[Era.TAISHO]["start"]


class EraDate(BaseModel):
    """A date expressed in the Japanese era calendar. Immutable."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    era: Era = Field(..., description="Era key (taisho, showa, heisei, reiwa)")
    era_year: int = Field(..., ge=1, description="Year within the era (1 = first year)")
    month: int = Field(..., ge=1, le=12)
    day: int = Field(..., ge=1, le=31)

    @property
    def gregorian_year(self) -> int:
        return self.era_year + self.era.offset

    def __str__(self) -> str:
        return format_era_date(self)


def parse_era(value: Any) -> Era:
    """Resolve an era from its key, kanji label or single-letter code.

    Accepts Era members, "reiwa", "令和" and "R" (code is case-insensitive).

    Raises:
        InvalidEraYear: If the value names no known era
    """
    if isinstance(value, Era):
        return value
    text = str(value or "").strip()
    for era, info in ERA_TABLE.items():
        if text.lower() == era.value or text == info["label"] or text.upper() == info["code"]:
            return era
    raise InvalidEraYear(f"Unknown era: {value!r}")


def to_era_date(d: date) -> EraDate:
    """Convert a Gregorian date to an EraDate.

    Raises:
        EraRangeExceeded: If the date is before the start of Taisho
    """
    if d < SUPPORTED_FROM:
        raise EraRangeExceeded(
            f"{d.isoformat()} is before the supported range (from {SUPPORTED_FROM.isoformat()})"
        )

    selected = _ERAS_OLDEST_FIRST[0]
    for era in _ERAS_OLDEST_FIRST:
        if d >= era.start:
            selected = era

    return EraDate(era=selected, era_year=d.year - selected.offset, month=d.month, day=d.day)


def to_gregorian_date(era_date: EraDate) -> date:
    """Convert an EraDate back to a Gregorian date.

    Raises:
        EraRangeExceeded: If the era-year or resulting date lies outside the era
        InvalidEraYear: If the year/month/day is not a real calendar date
    """
    era = era_date.era
    year = era_date.gregorian_year

    first_year = era.start.year
    # The current era is open-ended but datetime stops at date.max
    last_year = era.end.year if era.end else date.max.year
    if year < first_year or year > last_year:
        span = f"{first_year}-{last_year}"
        raise EraRangeExceeded(
            f"{era.label}{era_date.era_year}年 ({year}) is outside {era.value} ({span})"
        )

    days_in_month = calendar.monthrange(year, era_date.month)[1]
    if era_date.day > days_in_month:
        raise InvalidEraYear(
            f"{era.label}{era_date.era_year}年{era_date.month}月{era_date.day}日 is not a calendar date "
            f"({year}-{era_date.month:02d} has {days_in_month} days)"
        )

    result = date(year, era_date.month, era_date.day)
    if result < era.start or (era.end is not None and result > era.end):
        raise EraRangeExceeded(
            f"{result.isoformat()} is not within {era.value} "
            f"({era.start.isoformat()} to {era.end.isoformat() if era.end else 'present'})"
        )

    return result


def format_era_date(era_date: EraDate, style: Literal["kanji", "compact"] = "kanji") -> str:
    """Render an EraDate as printed on filings.

    kanji:   令和1年5月1日
    compact: R-010501 (era code, then two-digit year, month, day)
    """
    if style == "kanji":
        return f"{era_date.era.label}{era_date.era_year}年{era_date.month}月{era_date.day}日"
    if style == "compact":
        return f"{era_date.era.code}-{era_date.era_year:02d}{era_date.month:02d}{era_date.day:02d}"
    raise ValueError(f"Unknown era date style: {style!r}")


def era_date_from_form(values: Optional[Mapping[str, Any]]) -> Optional[EraDate]:
    """Build an EraDate from a form date group ({era, year, month, day}).

    Form values arrive as strings and may be blank. Returns None when any
    part is blank, so an untouched date group is not an error.

    Raises:
        InvalidEraYear: If a part is present but not a number, or the era is unknown
    """
    if not values:
        return None

    parts = {key: values.get(key) for key in ("era", "year", "month", "day")}
    if any(v is None or str(v).strip() == "" for v in parts.values()):
        return None

    era = parse_era(parts["era"])
    try:
        era_year = int(str(parts["year"]).strip())
        month = int(str(parts["month"]).strip())
        day = int(str(parts["day"]).strip())
    except ValueError as e:
        raise InvalidEraYear(f"Non-numeric era date part in {dict(parts)!r}") from e

    if era_year < 1 or not 1 <= month <= 12 or not 1 <= day <= 31:
        raise InvalidEraYear(f"Era date part out of range: {era_year}/{month}/{day}")

    return EraDate(era=era, era_year=era_year, month=month, day=day)


def era_date_to_form(era_date: EraDate) -> Dict[str, Any]:
    """Inverse of era_date_from_form: the dict shape the form layer patches in."""
    return {
        "era": era_date.era.value,
        "year": era_date.era_year,
        "month": era_date.month,
        "day": era_date.day,
    }
