"""Attendance, leave and working-calendar aggregation.

Everything here is pure: rows come in already loaded, totals come out.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Iterable, Sequence
from uuid import UUID

from erp_payroll.calculators.types import (
    COUNTABLE_STATUSES,
    ZERO,
    AttendanceSummary,
    DayAttendance,
    PayrollMonth,
)

if TYPE_CHECKING:
    from erp_payroll.models import AttendanceRecord, Holiday, LeaveRequest

logger = logging.getLogger(__name__)

# A single date never contributes more than this many regular hours
MAX_REGULAR_HOURS_PER_DAY = Decimal("8")

SUNDAY = 6  # date.weekday()


def _to_date(value: Any) -> date | None:
    """Extract a calendar date from a timestamp value, None if unparseable."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.split("T")[0].strip())
        except ValueError:
            return None
    return None


def _hours(value: Decimal | float | int | None) -> Decimal:
    if value is None:
        return ZERO
    return value if isinstance(value, Decimal) else Decimal(str(value))


def is_countable(record: AttendanceRecord) -> bool:
    """Whether an attendance row counts toward worked time.

    Rows with recorded hours count even before formal approval.
    """
    return record.status in COUNTABLE_STATUSES or _hours(record.hours_worked) > 0


def aggregate_attendance(
    records: Iterable[AttendanceRecord],
    employee_id: UUID,
    min_hours_for_lunch: Decimal,
) -> AttendanceSummary:
    """Aggregate an employee's attendance rows into per-date totals.

    Shifts on the same check-in date are combined. A date is a work day when
    its combined hours reach ``min_hours_for_lunch``.
    """
    days: dict[date, DayAttendance] = {}

    for record in records:
        if record.employee_id != employee_id or not is_countable(record):
            continue

        work_date = _to_date(record.check_in)
        if work_date is None:
            logger.debug("Skipping attendance %s without check-in date", record.id)
            continue

        day = days.setdefault(work_date, DayAttendance())
        day.total_hours += _hours(record.hours_worked)
        day.ot_hours += _hours(record.overtime_hours)

        check_out_date = _to_date(record.check_out)
        if check_out_date is not None and check_out_date > work_date:
            day.night_shifts += 1

    summary = AttendanceSummary(days=dict(sorted(days.items())))
    for day in summary.days.values():
        if day.total_hours >= min_hours_for_lunch:
            summary.actual_work_days += 1
        summary.regular_hours += min(day.total_hours, MAX_REGULAR_HOURS_PER_DAY)
        summary.ot_hours += day.ot_hours
    return summary


def sum_paid_leave_days(leaves: Iterable[LeaveRequest], employee_id: UUID) -> Decimal:
    """Total approved paid leave days for an employee.

    Not reconciled against attendance: a date that is both attended and on
    leave counts twice.
    """
    total = ZERO
    for leave in leaves:
        if leave.employee_id != employee_id or leave.status != "approved":
            continue
        if leave.leave_type is None or not leave.leave_type.is_paid:
            continue
        total += _hours(leave.total_days)
    return total


def is_holiday(day: date, holidays: Sequence[Holiday]) -> bool:
    """Exact-date match, or month/day match for recurring holidays."""
    for holiday in holidays:
        holiday_date = _to_date(holiday.date)
        if holiday_date is None:
            continue
        if holiday.is_recurring:
            if (holiday_date.month, holiday_date.day) == (day.month, day.day):
                return True
        elif holiday_date == day:
            return True
    return False


def iter_month_days(month: PayrollMonth) -> Iterable[date]:
    day = month.start_date
    end = month.end_date
    while day <= end:
        yield day
        day += timedelta(days=1)


def count_standard_work_days(
    month: PayrollMonth,
    holidays: Sequence[Holiday],
    fallback: int,
) -> int:
    """Days in the month that are neither Sunday nor a holiday.

    Returns ``fallback`` when nothing is left so the result can safely be used
    as a divisor.
    """
    count = sum(
        1
        for day in iter_month_days(month)
        if day.weekday() != SUNDAY and not is_holiday(day, holidays)
    )
    if count == 0:
        logger.warning("No working days found in %s, using fallback %s", month, fallback)
        return fallback
    return count


def classify_overtime(
    summary: AttendanceSummary,
    holidays: Sequence[Holiday],
) -> tuple[Decimal, Decimal, Decimal]:
    """Split overtime hours into (weekday, weekend, holiday) buckets.

    Holidays take precedence over Sundays.
    """
    weekday = weekend = holiday = ZERO
    for work_date, day in summary.days.items():
        if is_holiday(work_date, holidays):
            holiday += day.ot_hours
        elif work_date.weekday() == SUNDAY:
            weekend += day.ot_hours
        else:
            weekday += day.ot_hours
    return weekday, weekend, holiday
