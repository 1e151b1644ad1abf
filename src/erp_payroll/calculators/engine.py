"""Payroll calculation engine - main orchestrator."""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Awaitable, Sequence, TypeVar
from uuid import UUID

from erp_payroll.calculators.attendance import (
    aggregate_attendance,
    classify_overtime,
    count_standard_work_days,
    sum_paid_leave_days,
)
from erp_payroll.calculators.salary_config import (
    HourlySalaryConfig,
    MonthlySalaryConfig,
    load_salary_config,
)
from erp_payroll.calculators.tax_calculator import (
    calculate_insurance,
    calculate_pit,
    calculate_taxable_income,
)
from erp_payroll.calculators.types import (
    HUNDRED,
    ZERO,
    EmployeePayroll,
    HourlyPayrollResult,
    PayrollCalculationResult,
    PayrollFailure,
    PayrollMonth,
    PayrollOutcome,
    PayrollOverrides,
    PayrollSuccess,
    PayType,
)
from erp_payroll.config import Settings, get_settings

if TYPE_CHECKING:
    from erp_payroll.models import AttendanceRecord, Employee, Holiday, LeaveRequest
    from erp_payroll.services.repository import PayrollDataSource

logger = logging.getLogger(__name__)

T = TypeVar("T")

HOURS_PER_DAY = Decimal("8")
OT_MULTIPLIER = Decimal("1.5")


class EmployeeNotFoundError(Exception):
    """Raised when the employee to calculate does not exist."""

    def __init__(self, employee_id: UUID):
        self.employee_id = employee_id
        super().__init__(f"Employee {employee_id} not found")


class PayrollDataTimeoutError(Exception):
    """Raised when a read from the data source exceeds the configured timeout."""

    def __init__(self, operation: str, timeout: float):
        self.operation = operation
        self.timeout = timeout
        super().__init__(f"Data read '{operation}' timed out after {timeout}s")


def _first(*values: Decimal | None) -> Decimal:
    """First value that is not None, else zero."""
    return next((v for v in values if v is not None), ZERO)


class PayrollEngine:
    """Main payroll calculation engine.

    Calculation pipeline (per employee):
    1) Load employee, then configs/attendance/leaves/holidays concurrently
    2) Aggregate attendance per date and sum paid leave
    3) Count standard work days for the month
    4) Compute salary components (monthly or hourly formulas)
    5) Compute insurance and PIT, applying overrides
    6) Assemble net = gross - insurance - pit
    """

    def __init__(self, repository: PayrollDataSource, settings: Settings | None = None):
        self.repository = repository
        self.settings = settings or get_settings()

    async def calculate_employee_payroll(
        self,
        employee_id: UUID,
        month: str,
        overrides: PayrollOverrides | None = None,
    ) -> EmployeePayroll:
        """Calculate payroll for a single employee for a ``YYYY-MM`` month.

        Raises:
            InvalidMonthError: If ``month`` is malformed
            EmployeeNotFoundError: If the employee does not exist
            SalaryConfigError: If a config value is not numeric
            PayrollDataTimeoutError: If a read times out
        """
        payroll_month = PayrollMonth.parse(month)
        employee = await self._read("get_employee", self.repository.get_employee(employee_id))
        if employee is None:
            raise EmployeeNotFoundError(employee_id)

        return await self._calculate_for_employee(
            employee, payroll_month, overrides or PayrollOverrides()
        )

    async def calculate_bulk_payroll(
        self,
        month: str,
        branch_id: UUID | None = None,
    ) -> list[PayrollOutcome]:
        """Calculate payroll for every active employee, optionally in one branch.

        Each employee runs independently: a failure becomes a PayrollFailure
        entry and never aborts the others. Outcomes keep the employee order
        returned by the data source.
        """
        payroll_month = PayrollMonth.parse(month)
        employees = await self._read(
            "list_active_employees", self.repository.list_active_employees(branch_id)
        )
        semaphore = asyncio.Semaphore(max(1, self.settings.bulk_concurrency))

        async def run(employee: Employee) -> PayrollOutcome:
            async with semaphore:
                try:
                    result = await self._calculate_for_employee(
                        employee, payroll_month, PayrollOverrides()
                    )
                except Exception as e:
                    logger.exception(
                        "Payroll calculation failed for employee %s (%s)",
                        employee.id,
                        payroll_month,
                    )
                    return PayrollFailure(
                        employee_id=employee.id,
                        employee_name=employee.name,
                        reason=str(e) or type(e).__name__,
                    )
                return PayrollSuccess(result)

        outcomes = list(await asyncio.gather(*(run(e) for e in employees)))
        failed = sum(1 for o in outcomes if not o.ok)
        logger.info(
            "Bulk payroll %s: %d employees, %d failed",
            payroll_month,
            len(outcomes),
            failed,
        )
        return outcomes

    async def _calculate_for_employee(
        self,
        employee: Employee,
        month: PayrollMonth,
        overrides: PayrollOverrides,
    ) -> EmployeePayroll:
        pay_type = PayType.from_employee(employee.pay_type)
        start, end = month.start_date, month.end_date

        configs, attendance, leaves, holidays = await asyncio.gather(
            self._read("get_salary_configs", self.repository.get_salary_configs(pay_type)),
            self._read(
                "get_attendance_records",
                self.repository.get_attendance_records(employee.id, start, end),
            ),
            self._read(
                "get_paid_leave_requests",
                self.repository.get_approved_leave_requests(employee.id, start, end),
            ),
            self._read("get_holidays", self.repository.get_holidays()),
        )

        config = load_salary_config(pay_type, configs)
        if isinstance(config, HourlySalaryConfig):
            result: EmployeePayroll = self._calculate_hourly(
                employee, month, config, attendance, holidays, overrides
            )
        else:
            result = self._calculate_monthly(
                employee, month, config, attendance, leaves, holidays, overrides
            )

        logger.debug(
            "Calculated %s payroll for %s (%s): gross=%s net=%s",
            pay_type.value,
            employee.id,
            month,
            result.gross_salary,
            result.net_salary,
        )
        return result

    def _calculate_monthly(
        self,
        employee: Employee,
        month: PayrollMonth,
        config: MonthlySalaryConfig,
        attendance: Sequence[AttendanceRecord],
        leaves: Sequence[LeaveRequest],
        holidays: Sequence[Holiday],
        overrides: PayrollOverrides,
    ) -> PayrollCalculationResult:
        """Prorated monthly salary with allowances, KPI and flat 1.5x overtime."""
        summary = aggregate_attendance(attendance, employee.id, config.min_hours)
        paid_leave_days = sum_paid_leave_days(leaves, employee.id)
        total_work_days = summary.actual_work_days + paid_leave_days

        # A zero employee salary falls back to the configured base
        base_salary = employee.salary or _first(config.base_salary)
        lunch_per_day = _first(employee.lunch_allowance, config.lunch_allowance)
        transport_allowance = _first(employee.transport_allowance, config.transport_allowance)
        phone_allowance = _first(employee.phone_allowance, config.phone_allowance)
        other_allowance = _first(employee.other_allowance)
        kpi_target = employee.kpi_target or ZERO

        standard_work_days = count_standard_work_days(
            month, holidays, config.fallback_standard_work_days
        )

        daily_rate = base_salary / standard_work_days
        salary_based_on_work_days = daily_rate * total_work_days
        lunch_allowance = lunch_per_day * summary.actual_work_days

        kpi_percent = overrides.effective_kpi_percent
        kpi_bonus = kpi_target * kpi_percent / HUNDRED

        hourly_rate = base_salary / standard_work_days / HOURS_PER_DAY
        ot_pay = summary.ot_hours * hourly_rate * OT_MULTIPLIER

        bonus = overrides.effective_bonus
        penalty = overrides.effective_penalty

        gross_salary = (
            salary_based_on_work_days
            + lunch_allowance
            + transport_allowance
            + phone_allowance
            + other_allowance
            + kpi_bonus
            + ot_pay
            + bonus
            - penalty
        )

        if overrides.insurance_override is not None:
            insurance_deduction = overrides.insurance_override
        else:
            insurance_deduction = calculate_insurance(
                base_salary, config.insurance_enabled, config.insurance_percent
            )

        dependents_count = config.dependents
        taxable_income = calculate_taxable_income(
            gross_salary, insurance_deduction, dependents_count
        )
        if overrides.pit_override is not None:
            pit_deduction = overrides.pit_override
        else:
            pit_deduction = calculate_pit(taxable_income)

        net_salary = gross_salary - insurance_deduction - pit_deduction

        return PayrollCalculationResult(
            employee_id=employee.id,
            employee_name=employee.name,
            month=str(month),
            actual_work_days=summary.actual_work_days,
            paid_leave_days=paid_leave_days,
            total_work_days=total_work_days,
            regular_hours=summary.regular_hours,
            ot_hours=summary.ot_hours,
            standard_work_days=standard_work_days,
            base_salary=base_salary,
            daily_rate=daily_rate,
            salary_based_on_work_days=salary_based_on_work_days,
            lunch_allowance_per_day=lunch_per_day,
            lunch_allowance=lunch_allowance,
            transport_allowance=transport_allowance,
            phone_allowance=phone_allowance,
            other_allowance=other_allowance,
            kpi_target=kpi_target,
            kpi_percent=kpi_percent,
            kpi_bonus=kpi_bonus,
            hourly_rate=hourly_rate,
            ot_pay=ot_pay,
            bonus=bonus,
            penalty=penalty,
            gross_salary=gross_salary,
            insurance_deduction=insurance_deduction,
            pit_deduction=pit_deduction,
            net_salary=net_salary,
            has_insurance=config.insurance_enabled,
            dependents_count=dependents_count,
            taxable_income=taxable_income,
            branch_id=employee.branch_id,
        )

    def _calculate_hourly(
        self,
        employee: Employee,
        month: PayrollMonth,
        config: HourlySalaryConfig,
        attendance: Sequence[AttendanceRecord],
        holidays: Sequence[Holiday],
        overrides: PayrollOverrides,
    ) -> HourlyPayrollResult:
        """Logged hours times tiered rates; insurance is based on regular pay only."""
        summary = aggregate_attendance(attendance, employee.id, config.min_hours)
        ot_weekday, ot_weekend, ot_holiday = classify_overtime(summary, holidays)

        hourly_rate = employee.hourly_rate or _first(config.hourly_rate)
        regular_pay = summary.regular_hours * hourly_rate
        ot_weekday_pay = ot_weekday * hourly_rate * config.weekday_multiplier
        ot_weekend_pay = ot_weekend * hourly_rate * config.weekend_multiplier
        ot_holiday_pay = ot_holiday * hourly_rate * config.holiday_multiplier
        night_shift_count = summary.night_shifts
        night_shift_pay = night_shift_count * _first(config.night_shift_allowance)
        attendance_bonus = _first(config.attendance_bonus)

        bonus = overrides.effective_bonus
        penalty = overrides.effective_penalty

        gross_salary = (
            regular_pay
            + ot_weekday_pay
            + ot_weekend_pay
            + ot_holiday_pay
            + night_shift_pay
            + attendance_bonus
            + bonus
            - penalty
        )

        if overrides.insurance_override is not None:
            insurance_deduction = overrides.insurance_override
        else:
            insurance_deduction = calculate_insurance(
                regular_pay, config.insurance_enabled, config.insurance_percent
            )
        # Hourly staff are not withheld PIT unless an amount is given explicitly
        pit_deduction = overrides.pit_override if overrides.pit_override is not None else ZERO

        net_salary = gross_salary - insurance_deduction - pit_deduction

        return HourlyPayrollResult(
            employee_id=employee.id,
            employee_name=employee.name,
            month=str(month),
            actual_work_days=summary.actual_work_days,
            regular_hours=summary.regular_hours,
            ot_weekday_hours=ot_weekday,
            ot_weekend_hours=ot_weekend,
            ot_holiday_hours=ot_holiday,
            night_shift_count=night_shift_count,
            hourly_rate=hourly_rate,
            regular_pay=regular_pay,
            ot_weekday_pay=ot_weekday_pay,
            ot_weekend_pay=ot_weekend_pay,
            ot_holiday_pay=ot_holiday_pay,
            night_shift_pay=night_shift_pay,
            attendance_bonus=attendance_bonus,
            bonus=bonus,
            penalty=penalty,
            gross_salary=gross_salary,
            insurance_deduction=insurance_deduction,
            pit_deduction=pit_deduction,
            net_salary=net_salary,
            has_insurance=config.insurance_enabled,
            branch_id=employee.branch_id,
        )

    async def _read(self, operation: str, awaitable: Awaitable[T]) -> T:
        """Await a data-source read, bounded by the configured timeout."""
        timeout = self.settings.read_timeout_seconds
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout)
        except asyncio.TimeoutError:
            raise PayrollDataTimeoutError(operation, timeout) from None
