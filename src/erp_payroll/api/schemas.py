"""Pydantic schemas for API request/response models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from erp_payroll.calculators.types import PayrollOverrides

MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


# ============================================================================
# Requests
# ============================================================================


class OverridesRequest(BaseModel):
    """Manual adjustments; omitted fields keep the computed value."""

    bonus: Decimal | None = None
    penalty: Decimal | None = None
    kpi_percent: Decimal | None = Field(default=None, ge=0)
    insurance_override: Decimal | None = None
    pit_override: Decimal | None = None

    def to_overrides(self) -> PayrollOverrides:
        return PayrollOverrides(**self.model_dump())


class CalculateRequest(BaseModel):
    """Schema for calculating one employee's payroll."""

    employee_id: UUID
    month: str = Field(pattern=MONTH_PATTERN)
    overrides: OverridesRequest | None = None


class SaveRequest(CalculateRequest):
    """Schema for calculating and persisting one employee's payroll."""

    notes: str | None = None


class BulkRequest(BaseModel):
    """Schema for a bulk payroll run."""

    month: str = Field(pattern=MONTH_PATTERN)
    branch_id: UUID | None = None


class FinalizeRequest(BaseModel):
    """Schema for locking a month's payroll."""

    month: str = Field(pattern=MONTH_PATTERN)
    employee_ids: list[UUID] = Field(min_length=1)
    user_id: str
    user_name: str


class UnfinalizeRequest(BaseModel):
    """Schema for unlocking a month's payroll."""

    month: str = Field(pattern=MONTH_PATTERN)
    employee_ids: list[UUID] = Field(min_length=1)


# ============================================================================
# Calculation responses
# ============================================================================


class MonthlyPayrollResponse(BaseModel):
    """Breakdown for a monthly-pay employee."""

    model_config = ConfigDict(from_attributes=True)

    pay_type: Literal["monthly"] = "monthly"
    employee_id: UUID
    employee_name: str
    month: str
    branch_id: UUID | None = None

    actual_work_days: int
    paid_leave_days: Decimal
    total_work_days: Decimal
    regular_hours: Decimal
    ot_hours: Decimal
    standard_work_days: int

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

    gross_salary: Decimal
    insurance_deduction: Decimal
    pit_deduction: Decimal
    net_salary: Decimal

    has_insurance: bool
    dependents_count: int
    taxable_income: Decimal


class HourlyPayrollResponse(BaseModel):
    """Breakdown for an hourly-pay employee."""

    model_config = ConfigDict(from_attributes=True)

    pay_type: Literal["hourly"] = "hourly"
    employee_id: UUID
    employee_name: str
    month: str
    branch_id: UUID | None = None

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


PayrollResponse = Union[MonthlyPayrollResponse, HourlyPayrollResponse]


class BulkItemResponse(BaseModel):
    """One entry of a bulk run: either a result or an error."""

    employee_id: UUID
    employee_name: str | None = None
    status: Literal["ok", "error"]
    result: MonthlyPayrollResponse | HourlyPayrollResponse | None = None
    error: str | None = None


class BulkResponse(BaseModel):
    """Schema for a bulk run response."""

    month: str
    items: list[BulkItemResponse]
    succeeded: int
    failed: int


# ============================================================================
# Persistence responses
# ============================================================================


class MonthlySalaryResponse(BaseModel):
    """Schema for a saved monthly salary row."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    employee_id: UUID
    month: str
    branch_id: UUID | None = None

    base_salary: Decimal | None = None
    hourly_rate: Decimal | None = None
    hours_worked: Decimal | None = None
    lunch_allowance: Decimal | None = None
    transport_allowance: Decimal | None = None
    phone_allowance: Decimal | None = None
    other_allowance: Decimal | None = None
    work_days: Decimal | None = None
    standard_work_days: int | None = None
    actual_work_days: int | None = None
    paid_leave_days: Decimal | None = None
    regular_hours: Decimal | None = None
    ot_hours: Decimal | None = None
    kpi_target: Decimal | None = None
    kpi_percent: Decimal | None = None
    kpi_bonus: Decimal | None = None
    bonus: Decimal | None = None
    penalty: Decimal | None = None
    insurance_deduction: Decimal | None = None
    pit_deduction: Decimal | None = None
    gross_salary: Decimal | None = None
    net_salary: Decimal | None = None
    notes: str | None = None

    is_finalized: bool
    finalized_at: datetime | None = None
    finalized_by: str | None = None
    finalized_by_name: str | None = None


class MonthlySalaryListResponse(BaseModel):
    """Schema for listing saved rows."""

    items: list[MonthlySalaryResponse]
    total: int


class TransitionResponse(BaseModel):
    """Schema for finalize/unfinalize responses."""

    month: str
    updated: int


class ErrorResponse(BaseModel):
    """Schema for error responses."""

    detail: str
    code: str | None = None
