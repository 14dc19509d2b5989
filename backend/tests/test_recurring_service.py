"""Tests for due-date evaluation and advancement."""

import pytest
from datetime import date, datetime, timedelta, timezone

from budgeting.services.recurring_service import (
    add_months,
    calculate_next_due,
    is_due,
    is_valid_pay_frequency,
    is_valid_recurrence_frequency,
    to_utc_date,
)
from budgeting.models.expense import RecurrenceFrequency
from budgeting.models.income_source import PayFrequency


class TestCalculateNextDue:
    """Test next due date calculations."""

    def test_weekly(self):
        """Weekly should add 7 days."""
        result = calculate_next_due(date(2024, 1, 15), PayFrequency.weekly)
        assert result == date(2024, 1, 22)

    def test_biweekly(self):
        """Biweekly should add 14 days."""
        result = calculate_next_due(date(2024, 1, 15), PayFrequency.biweekly)
        assert result == date(2024, 1, 29)

    def test_monthly_normal(self):
        """Monthly should add one month."""
        result = calculate_next_due(date(2024, 1, 15), PayFrequency.monthly)
        assert result == date(2024, 2, 15)

    def test_monthly_year_rollover(self):
        """Monthly in December should roll to January."""
        result = calculate_next_due(date(2024, 12, 15), PayFrequency.monthly)
        assert result == date(2025, 1, 15)

    def test_monthly_end_of_month_leap_year(self):
        """Jan 31 moves to the last day of February (29th in 2024)."""
        result = calculate_next_due(date(2024, 1, 31), RecurrenceFrequency.monthly)
        assert result == date(2024, 2, 29)

    def test_monthly_end_of_month_common_year(self):
        """Jan 31 moves to Feb 28 outside leap years."""
        result = calculate_next_due(date(2023, 1, 31), RecurrenceFrequency.monthly)
        assert result == date(2023, 2, 28)

    def test_monthly_thirty_day_month(self):
        """Mar 31 moves to Apr 30."""
        result = calculate_next_due(date(2024, 3, 31), "monthly")
        assert result == date(2024, 4, 30)

    def test_annually(self):
        """Annually should add one year."""
        result = calculate_next_due(date(2024, 1, 15), RecurrenceFrequency.annually)
        assert result == date(2025, 1, 15)

    def test_annually_leap_day(self):
        """Annually on Feb 29 should land on Feb 28 in a common year."""
        result = calculate_next_due(date(2024, 2, 29), RecurrenceFrequency.annually)
        assert result == date(2025, 2, 28)

    @pytest.mark.parametrize("frequency", ["", None, "fortnightly", "quarterly", "daily"])
    def test_unknown_frequency_falls_back_to_weekly(self, frequency):
        """Blank or unrecognized frequencies advance exactly 7 days."""
        result = calculate_next_due(date(2024, 1, 15), frequency)
        assert result == date(2024, 1, 22)

    def test_accepts_loose_strings(self):
        """Stored values are matched case-insensitively."""
        assert calculate_next_due(date(2024, 1, 15), " BiWeekly ") == date(2024, 1, 29)

    def test_monthly_returns_to_anchor_day(self):
        """A clamped date goes back to the anchor day when the month has it."""
        result = calculate_next_due(date(2024, 2, 29), RecurrenceFrequency.monthly, anchor_day=31)
        assert result == date(2024, 3, 31)

    def test_monthly_end_of_month_does_not_drift(self):
        """Day 31 stays at the month end all year."""
        due = date(2024, 1, 31)
        seen = []
        for _ in range(4):
            due = calculate_next_due(due, "monthly", anchor_day=31)
            seen.append(due)
        assert seen == [date(2024, 2, 29), date(2024, 3, 31), date(2024, 4, 30), date(2024, 5, 31)]

    def test_annually_leap_day_anchor(self):
        """Feb 29 schedules land on Feb 28 and return on the next leap year."""
        result = calculate_next_due(date(2027, 2, 28), RecurrenceFrequency.annually, anchor_day=29)
        assert result == date(2028, 2, 29)

    def test_weekly_ignores_anchor(self):
        assert calculate_next_due(date(2024, 1, 15), "weekly", anchor_day=31) == date(2024, 1, 22)

    def test_does_not_change_input(self):
        """The given date is left untouched."""
        due = date(2024, 1, 15)
        calculate_next_due(due, PayFrequency.monthly)
        assert due == date(2024, 1, 15)


class TestAddMonths:
    """Test calendar month arithmetic."""

    def test_twelve_months(self):
        assert add_months(date(2024, 5, 31), 12) == date(2025, 5, 31)

    def test_crosses_year(self):
        assert add_months(date(2024, 11, 30), 3) == date(2025, 2, 28)

    def test_anchor_day(self):
        assert add_months(date(2024, 4, 30), 1, day=31) == date(2024, 5, 31)
        assert add_months(date(2024, 4, 30), 10, day=31) == date(2025, 2, 28)


class TestIsDue:
    """Test exact-day due evaluation."""

    def test_same_day(self):
        """Due when now falls on the due date."""
        assert is_due(datetime(2024, 1, 1, 15, 45), date(2024, 1, 1)) is True

    def test_time_of_day_ignored(self):
        """Both sides are truncated to midnight."""
        assert is_due(datetime(2024, 1, 1, 0, 0, 1), datetime(2024, 1, 1, 23, 59)) is True

    def test_past_due_date_is_not_due(self):
        """A missed date is not caught up."""
        assert is_due(date(2024, 1, 4), date(2024, 1, 1)) is False

    def test_future_due_date_is_not_due(self):
        assert is_due(date(2024, 1, 1), date(2024, 1, 8)) is False

    def test_aware_datetime_uses_utc_day(self):
        """11:30pm in New York on Jan 1 is already Jan 2 in UTC."""
        eastern = timezone(timedelta(hours=-5))
        now = datetime(2024, 1, 1, 23, 30, tzinfo=eastern)
        assert is_due(now, date(2024, 1, 2)) is True
        assert is_due(now, date(2024, 1, 1)) is False


class TestToUtcDate:
    """Test UTC truncation."""

    def test_date_passthrough(self):
        assert to_utc_date(date(2024, 6, 1)) == date(2024, 6, 1)

    def test_naive_datetime_taken_as_utc(self):
        assert to_utc_date(datetime(2024, 6, 1, 23, 59)) == date(2024, 6, 1)

    def test_aware_datetime_converted(self):
        tokyo = timezone(timedelta(hours=9))
        assert to_utc_date(datetime(2024, 6, 1, 3, 0, tzinfo=tokyo)) == date(2024, 5, 31)


class TestFrequencyValidation:
    """Test the closed frequency sets."""

    def test_pay_frequencies(self):
        assert is_valid_pay_frequency("weekly")
        assert is_valid_pay_frequency(PayFrequency.monthly)
        assert not is_valid_pay_frequency("annually")
        assert not is_valid_pay_frequency("")
        assert not is_valid_pay_frequency(None)

    def test_recurrence_frequencies(self):
        assert is_valid_recurrence_frequency("annually")
        assert is_valid_recurrence_frequency(RecurrenceFrequency.biweekly)
        assert not is_valid_recurrence_frequency("quarterly")
