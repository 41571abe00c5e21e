"""Unit tests for standard remuneration averaging and bonus rounding."""
import pytest
from pydantic import ValidationError

from shahocalc.sdk.bonus import round_bonus
from shahocalc.sdk.remuneration import (
    RetroactivePayment,
    SalaryMonthEntry,
    aggregate,
    annual_revision_window,
    build_window,
    revision_window,
)


def entry(base_days: int, cash: int, in_kind: int = 0, month=None) -> SalaryMonthEntry:
    return SalaryMonthEntry(month=month, base_days=base_days, cash_amount=cash, in_kind_amount=in_kind)


def no_retro() -> list:
    return [RetroactivePayment(amount=0) for _ in range(3)]


class TestAggregate:
    """Test total, average and adjusted average."""

    def test_short_month_excluded(self):
        """A month under 17 base days is left out of the total and the divisor."""
        entries = [entry(17, 300000), entry(10, 999999), entry(20, 330000)]
        result = aggregate(entries, no_retro())

        assert result.total == 630000
        assert result.average == 315000
        assert result.eligible_months == 2
        assert not result.all_months_eligible

    def test_retroactive_pay_subtracted(self):
        entries = [entry(31, 300000), entry(30, 300000), entry(31, 300000)]
        retro = [RetroactivePayment(amount=30000), RetroactivePayment(), RetroactivePayment()]
        result = aggregate(entries, retro)

        assert result.total == 900000
        assert result.average == 300000
        assert result.adjusted_total == 870000
        assert result.adjusted_average == 290000

    def test_retroactive_pay_of_excluded_month_still_subtracted(self):
        entries = [entry(31, 300000), entry(31, 300000), entry(5, 330000)]
        retro = [RetroactivePayment(), RetroactivePayment(), RetroactivePayment(amount=30000)]
        result = aggregate(entries, retro)

        assert result.total == 600000
        assert result.adjusted_total == 570000
        assert result.adjusted_average == 285000

    def test_in_kind_included(self):
        entries = [entry(31, 290000, 10000), entry(30, 300000), entry(31, 300000)]
        assert aggregate(entries, no_retro()).total == 900000

    def test_average_truncates(self):
        entries = [entry(31, 100000), entry(30, 100000), entry(31, 100001)]
        result = aggregate(entries, no_retro())
        assert result.average == 100000

    def test_no_eligible_month(self):
        entries = [entry(5, 100000), entry(0, 0), entry(16, 200000)]
        result = aggregate(entries, no_retro())

        assert result.total == 0
        assert result.average is None
        assert result.adjusted_average is None
        assert result.eligible_months == 0

    def test_eligible_month_with_zero_pay_counts(self):
        entries = [entry(17, 0), entry(17, 0), entry(17, 0)]
        result = aggregate(entries, no_retro())
        assert result.average == 0
        assert result.all_months_eligible

    def test_exactly_threshold_is_eligible(self):
        assert entry(17, 1).eligible
        assert not entry(16, 1).eligible

    def test_wrong_length_rejected(self):
        with pytest.raises(ValueError):
            aggregate([entry(31, 1), entry(31, 1)], no_retro())

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError):
            entry(31, -1)

    def test_recompute_matches(self):
        """Aggregation is a pure function of its inputs."""
        entries = [entry(31, 310000), entry(30, 320000), entry(31, 330000)]
        assert aggregate(entries, no_retro()) == aggregate(list(entries), no_retro())


class TestWindows:
    """Test averaging window months."""

    def test_annual_revision(self):
        assert annual_revision_window() == [4, 5, 6]

    def test_wraps_past_december(self):
        assert revision_window(11) == [11, 12, 1]
        assert revision_window(12) == [12, 1, 2]

    def test_plain_window(self):
        assert revision_window(1) == [1, 2, 3]

    @pytest.mark.parametrize("month", [0, 13])
    def test_invalid_first_month(self, month):
        with pytest.raises(ValueError):
            revision_window(month)


class TestBuildWindow:
    """Test pairing raw rows with window months."""

    def test_missing_values_are_zero(self):
        entries, retro = build_window([4, 5, 6], [
            {"base_days": 31, "cash_amount": 300000},
            {"base_days": 30, "cash_amount": 300000, "retroactive_amount": 30000},
            {"base_days": None, "cash_amount": ""},
        ])

        assert [e.month for e in entries] == [4, 5, 6]
        assert entries[2].base_days == 0
        assert entries[2].cash_amount == 0
        assert [r.amount for r in retro] == [0, 30000, 0]

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            build_window([4, 5, 6], [{}])


class TestRoundBonus:
    """Test standard bonus amount truncation."""

    def test_truncates_to_thousand(self):
        assert round_bonus(123456) == 123000

    def test_includes_in_kind(self):
        assert round_bonus(100500, 600) == 101000

    def test_exact_thousand_unchanged(self):
        assert round_bonus(500000) == 500000

    def test_under_thousand_is_zero(self):
        assert round_bonus(999) == 0
