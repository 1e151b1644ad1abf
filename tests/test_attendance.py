"""Tests for attendance, leave and calendar aggregation."""

from datetime import date, datetime
from decimal import Decimal

from erp_payroll.calculators.attendance import (
    MAX_REGULAR_HOURS_PER_DAY,
    aggregate_attendance,
    classify_overtime,
    count_standard_work_days,
    is_holiday,
    sum_paid_leave_days,
)
from erp_payroll.calculators.types import PayrollMonth

MIN_HOURS = Decimal("7")


class TestAggregateAttendance:
    """Test per-date aggregation of attendance rows."""

    def test_split_shifts_on_same_date(self, data_source):
        """5h + 4h on one date is one work day with regular hours capped at 8."""
        employee = data_source.add_employee()
        data_source.add_attendance(employee, datetime(2024, 4, 1, 8), "5", overtime="1")
        data_source.add_attendance(employee, datetime(2024, 4, 1, 14), "4", overtime="0.5")

        summary = aggregate_attendance(data_source.attendance, employee.id, MIN_HOURS)

        assert summary.actual_work_days == 1
        assert summary.days[date(2024, 4, 1)].total_hours == Decimal("9")
        assert summary.regular_hours == Decimal("8")
        assert summary.ot_hours == Decimal("1.5")

    def test_regular_hours_never_exceed_cap_per_date(self, data_source):
        employee = data_source.add_employee()
        for day in (1, 2, 3):
            data_source.add_attendance(employee, datetime(2024, 4, day, 7), "12")

        summary = aggregate_attendance(data_source.attendance, employee.id, MIN_HOURS)

        assert summary.regular_hours == 3 * MAX_REGULAR_HOURS_PER_DAY
        for day in summary.days.values():
            assert min(day.total_hours, MAX_REGULAR_HOURS_PER_DAY) <= MAX_REGULAR_HOURS_PER_DAY

    def test_short_day_is_not_a_work_day(self, data_source):
        """Hours below the threshold still count as regular hours."""
        employee = data_source.add_employee()
        data_source.add_attendance(employee, datetime(2024, 4, 2, 8), "6.5")

        summary = aggregate_attendance(data_source.attendance, employee.id, MIN_HOURS)

        assert summary.actual_work_days == 0
        assert summary.regular_hours == Decimal("6.5")

    def test_threshold_is_inclusive(self, data_source):
        employee = data_source.add_employee()
        data_source.add_attendance(employee, datetime(2024, 4, 2, 8), "7")

        summary = aggregate_attendance(data_source.attendance, employee.id, MIN_HOURS)

        assert summary.actual_work_days == 1

    def test_skips_rows_without_check_in(self, data_source):
        employee = data_source.add_employee()
        data_source.add_attendance(employee, None, "8")
        data_source.add_attendance(employee, datetime(2024, 4, 3, 8), "8")

        summary = aggregate_attendance(data_source.attendance, employee.id, MIN_HOURS)

        assert summary.actual_work_days == 1
        assert list(summary.days) == [date(2024, 4, 3)]

    def test_status_filter(self, data_source):
        """Pending rows with hours count; rows without hours need a countable status."""
        employee = data_source.add_employee()
        data_source.add_attendance(employee, datetime(2024, 4, 1, 8), "8", status="pending")
        data_source.add_attendance(employee, datetime(2024, 4, 2, 8), "0", status="absent")
        data_source.add_attendance(employee, datetime(2024, 4, 3, 8), "0", status="late")

        summary = aggregate_attendance(data_source.attendance, employee.id, MIN_HOURS)

        assert set(summary.days) == {date(2024, 4, 1), date(2024, 4, 3)}
        assert summary.actual_work_days == 1

    def test_ignores_other_employees(self, data_source):
        employee = data_source.add_employee()
        other = data_source.add_employee("Pham Thi D")
        data_source.add_attendance(other, datetime(2024, 4, 1, 8), "8")

        summary = aggregate_attendance(data_source.attendance, employee.id, MIN_HOURS)

        assert summary.actual_work_days == 0
        assert summary.regular_hours == Decimal("0")

    def test_night_shift_counted_on_check_in_date(self, data_source):
        employee = data_source.add_employee()
        data_source.add_attendance(
            employee,
            datetime(2024, 4, 1, 22),
            "8",
            check_out=datetime(2024, 4, 2, 6),
        )

        summary = aggregate_attendance(data_source.attendance, employee.id, MIN_HOURS)

        assert list(summary.days) == [date(2024, 4, 1)]
        assert summary.night_shifts == 1

    def test_iso_string_timestamps(self, data_source):
        employee = data_source.add_employee()
        record = data_source.add_attendance(employee, datetime(2024, 4, 5, 8), "8")
        record.check_in = "2024-04-05T08:00:00+07:00"

        summary = aggregate_attendance(data_source.attendance, employee.id, MIN_HOURS)

        assert list(summary.days) == [date(2024, 4, 5)]


class TestPaidLeave:
    """Test paid leave summation."""

    def test_sums_paid_approved_leave(self, data_source):
        employee = data_source.add_employee()
        data_source.add_leave(employee, date(2024, 4, 10), "1.5")
        data_source.add_leave(employee, date(2024, 4, 11), "1")
        data_source.add_leave(employee, date(2024, 4, 12), "2", is_paid=False)
        data_source.add_leave(employee, date(2024, 4, 15), "3", status="pending")

        assert sum_paid_leave_days(data_source.leaves, employee.id) == Decimal("2.5")

    def test_no_leave(self, data_source):
        employee = data_source.add_employee()
        assert sum_paid_leave_days([], employee.id) == Decimal("0")


class TestStandardWorkDays:
    """Test the working calendar."""

    def test_excludes_sundays(self):
        assert count_standard_work_days(PayrollMonth.parse("2024-04"), [], 26) == 26
        assert count_standard_work_days(PayrollMonth.parse("2024-06"), [], 26) == 25

    def test_excludes_fixed_holiday(self, data_source):
        data_source.add_holiday(date(2024, 4, 30))
        data_source.add_holiday(date(2023, 4, 30))

        result = count_standard_work_days(PayrollMonth.parse("2024-04"), data_source.holidays, 26)

        assert result == 25

    def test_recurring_holiday_matches_any_year(self, data_source):
        """A recurring 12-25 holiday stored with an old year excludes every Dec 25."""
        data_source.add_holiday(date(1999, 12, 25), "Christmas", is_recurring=True)
        month = PayrollMonth.parse("2024-12")

        without = count_standard_work_days(month, [], 26)
        with_holiday = count_standard_work_days(month, data_source.holidays, 26)

        assert without - with_holiday == 1
        assert is_holiday(date(2031, 12, 25), data_source.holidays)
        assert not is_holiday(date(2031, 12, 24), data_source.holidays)

    def test_holiday_on_sunday_not_double_counted(self, data_source):
        data_source.add_holiday(date(2024, 4, 7))

        assert count_standard_work_days(PayrollMonth.parse("2024-04"), data_source.holidays, 26) == 26

    def test_fallback_when_no_working_days(self, data_source):
        month = PayrollMonth.parse("2024-02")
        day = month.start_date
        while day <= month.end_date:
            data_source.add_holiday(day)
            day = date.fromordinal(day.toordinal() + 1)

        assert count_standard_work_days(month, data_source.holidays, 26) == 26
        assert count_standard_work_days(month, data_source.holidays, 22) == 22


class TestClassifyOvertime:
    def test_buckets(self, data_source):
        employee = data_source.add_employee()
        data_source.add_holiday(date(2024, 4, 30))
        data_source.add_holiday(date(2024, 4, 14))
        data_source.add_attendance(employee, datetime(2024, 4, 1, 8), "8", overtime="2")
        data_source.add_attendance(employee, datetime(2024, 4, 7, 8), "8", overtime="3")
        data_source.add_attendance(employee, datetime(2024, 4, 14, 8), "8", overtime="4")
        data_source.add_attendance(employee, datetime(2024, 4, 30, 8), "8", overtime="1")
        summary = aggregate_attendance(data_source.attendance, employee.id, MIN_HOURS)

        weekday, weekend, holiday = classify_overtime(summary, data_source.holidays)

        assert weekday == Decimal("2")
        assert weekend == Decimal("3")
        # 2024-04-14 is a Sunday holiday: holiday wins
        assert holiday == Decimal("5")
