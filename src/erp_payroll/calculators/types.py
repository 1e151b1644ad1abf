"""Type definitions for the calculation pipeline."""

from __future__ import annotations

import re
from calendar import monthrange
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Union
from uuid import UUID

ZERO = Decimal("0")
HUNDRED = Decimal("100")

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


class PayType(str, Enum):
    """Compensation scheme of an employee."""

    MONTHLY = "monthly"
    HOURLY = "hourly"

    @classmethod
    def from_employee(cls, value: str | None) -> PayType:
        """Resolve an employee's pay type; missing means monthly."""
        return cls(value) if value else cls.MONTHLY


class AttendanceStatus(str, Enum):
    """Attendance record status values."""

    PENDING = "pending"
    APPROVED = "approved"
    ONTIME = "ontime"
    LATE = "late"
    EARLY_LEAVE = "early_leave"
    ABSENT = "absent"
    REJECTED = "rejected"


# Statuses that count toward worked time without further checks
COUNTABLE_STATUSES = frozenset(
    s.value for s in (AttendanceStatus.APPROVED, AttendanceStatus.ONTIME, AttendanceStatus.LATE)
)


class InvalidMonthError(ValueError):
    """Raised when a month string is not in YYYY-MM form."""

    def __init__(self, month: str):
        self.month = month
        super().__init__(f"Invalid month '{month}', expected YYYY-MM")


@dataclass(frozen=True)
class PayrollMonth:
    """A calendar month with inclusive start and end dates."""

    year: int
    month: int

    @classmethod
    def parse(cls, value: str) -> PayrollMonth:
        match = _MONTH_RE.match(value or "")
        if match is None:
            raise InvalidMonthError(value)
        year, month = int(match.group(1)), int(match.group(2))
        if not 1 <= month <= 12:
            raise InvalidMonthError(value)
        return cls(year, month)

    @property
    def start_date(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def end_date(self) -> date:
        return date(self.year, self.month, monthrange(self.year, self.month)[1])

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


@dataclass(frozen=True)
class PayrollOverrides:
    """Manual per-run adjustments.

    ``bonus``/``penalty`` default to zero and ``kpi_percent`` to 100.
    ``insurance_override``/``pit_override`` replace the computed deduction
    entirely when set, including when set to zero.
    """

    bonus: Decimal | None = None
    penalty: Decimal | None = None
    kpi_percent: Decimal | None = None
    insurance_override: Decimal | None = None
    pit_override: Decimal | None = None

    @property
    def effective_bonus(self) -> Decimal:
        return self.bonus if self.bonus is not None else ZERO

    @property
    def effective_penalty(self) -> Decimal:
        return self.penalty if self.penalty is not None else ZERO

    @property
    def effective_kpi_percent(self) -> Decimal:
        return self.kpi_percent if self.kpi_percent is not None else HUNDRED


@dataclass
class DayAttendance:
    """Attendance totals for one calendar date."""

    total_hours: Decimal = ZERO
    ot_hours: Decimal = ZERO
    night_shifts: int = 0


@dataclass
class AttendanceSummary:
    """Aggregated attendance for an employee-month."""

    days: dict[date, DayAttendance] = field(default_factory=dict)
    actual_work_days: int = 0
    regular_hours: Decimal = ZERO
    ot_hours: Decimal = ZERO

    @property
    def night_shifts(self) -> int:
        return sum(d.night_shifts for d in self.days.values())


@dataclass
class PayrollCalculationResult:
    """Payroll breakdown for a monthly-pay employee."""

    employee_id: UUID
    employee_name: str
    month: str

    # Work time
    actual_work_days: int
    paid_leave_days: Decimal
    total_work_days: Decimal
    regular_hours: Decimal
    ot_hours: Decimal
    standard_work_days: int

    # Salary components
    base_salary: Decimal
    daily_rate: Decimal
    salary_based_on_work_days: Decimal
    lunch_allowance_per_day: Decimal
    lunch_allowance: Decimal
    transport_allowance: Decimal
    phone_allowance: Decimal
    other_allowance: Decimal
    kpi_target: Decimal
    kpi_percent: Decimal
    kpi_bonus: Decimal
    hourly_rate: Decimal
    ot_pay: Decimal
    bonus: Decimal
    penalty: Decimal

    # Totals
    gross_salary: Decimal
    insurance_deduction: Decimal
    pit_deduction: Decimal
    net_salary: Decimal

    has_insurance: bool
    dependents_count: int
    taxable_income: Decimal

    branch_id: UUID | None = None
    pay_type: PayType = PayType.MONTHLY


@dataclass
class HourlyPayrollResult:
    """Payroll breakdown for an hourly-pay employee."""

    employee_id: UUID
    employee_name: str
    month: str

    actual_work_days: int
    regular_hours: Decimal
    ot_weekday_hours: Decimal
    ot_weekend_hours: Decimal
    ot_holiday_hours: Decimal
    night_shift_count: int

    hourly_rate: Decimal
    regular_pay: Decimal
    ot_weekday_pay: Decimal
    ot_weekend_pay: Decimal
    ot_holiday_pay: Decimal
    night_shift_pay: Decimal
    attendance_bonus: Decimal
    bonus: Decimal
    penalty: Decimal

    gross_salary: Decimal
    insurance_deduction: Decimal
    pit_deduction: Decimal
    net_salary: Decimal

    has_insurance: bool

    branch_id: UUID | None = None
    pay_type: PayType = PayType.HOURLY

    @property
    def ot_hours(self) -> Decimal:
        return self.ot_weekday_hours + self.ot_weekend_hours + self.ot_holiday_hours


EmployeePayroll = Union[PayrollCalculationResult, HourlyPayrollResult]


@dataclass
class PayrollSuccess:
    """Bulk run entry for an employee whose payroll was computed."""

    result: EmployeePayroll

    @property
    def employee_id(self) -> UUID:
        return self.result.employee_id

    @property
    def ok(self) -> bool:
        return True


@dataclass
class PayrollFailure:
    """Bulk run entry for an employee whose calculation raised."""

    employee_id: UUID
    employee_name: str | None
    reason: str

    @property
    def ok(self) -> bool:
        return False


PayrollOutcome = Union[PayrollSuccess, PayrollFailure]
