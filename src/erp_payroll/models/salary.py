"""Salary configuration and monthly salary models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import Boolean, ForeignKey, Index, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from erp_payroll.models.base import Base, TimestampMixin


class SalaryConfig(Base, TimestampMixin):
    """Key/value salary configuration scoped by pay type.

    Values are stored as numeric strings and parsed on read.
    """

    __tablename__ = "salary_configs"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    pay_type: Mapped[str] = mapped_column(String, nullable=False)
    config_key: Mapped[str] = mapped_column(String, nullable=False)
    config_value: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (Index("ix_salary_configs_pay_type_key", "pay_type", "config_key"),)

class MonthlySalary(Base, TimestampMixin):
    """Persisted payroll for one employee-month."""

    __tablename__ = "monthly_salaries"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    month: Mapped[str] = mapped_column(String(7), nullable=False)
    branch_id: Mapped[UUID | None] = mapped_column(nullable=True)

    base_salary: Mapped[Decimal | None] = mapped_column(nullable=True)
    hourly_rate: Mapped[Decimal | None] = mapped_column(nullable=True)
    hours_worked: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    # per-day rate, not the month total
    lunch_allowance: Mapped[Decimal | None] = mapped_column(nullable=True)
    transport_allowance: Mapped[Decimal | None] = mapped_column(nullable=True)
    phone_allowance: Mapped[Decimal | None] = mapped_column(nullable=True)
    other_allowance: Mapped[Decimal | None] = mapped_column(nullable=True)

    work_days: Mapped[Decimal | None] = mapped_column(Numeric(6, 1), nullable=True)
    standard_work_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    actual_work_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    paid_leave_days: Mapped[Decimal | None] = mapped_column(Numeric(6, 1), nullable=True)
    regular_hours: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    ot_hours: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)

    kpi_target: Mapped[Decimal | None] = mapped_column(nullable=True)
    kpi_percent: Mapped[Decimal | None] = mapped_column(Numeric(6, 2), nullable=True)
    kpi_bonus: Mapped[Decimal | None] = mapped_column(nullable=True)
    bonus: Mapped[Decimal | None] = mapped_column(nullable=True)
    penalty: Mapped[Decimal | None] = mapped_column(nullable=True)

    insurance_deduction: Mapped[Decimal | None] = mapped_column(nullable=True)
    pit_deduction: Mapped[Decimal | None] = mapped_column(nullable=True)
    gross_salary: Mapped[Decimal | None] = mapped_column(nullable=True)
    net_salary: Mapped[Decimal | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    is_finalized: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    finalized_at: Mapped[datetime | None] = mapped_column(nullable=True)
    finalized_by: Mapped[str | None] = mapped_column(String, nullable=True)
    finalized_by_name: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        UniqueConstraint("employee_id", "month", name="monthly_salaries_employee_month_unique"),
        Index("ix_monthly_salaries_month_branch", "month", "branch_id"),
    )
