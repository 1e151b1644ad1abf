"""Attendance, leave and holiday calendar models."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import Boolean, Date, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from erp_payroll.models.base import Base, TimestampMixin


class AttendanceRecord(Base, TimestampMixin):
    """One check-in/check-out event. Several may exist for the same date."""

    __tablename__ = "attendance_records"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    branch_id: Mapped[UUID | None] = mapped_column(nullable=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    check_in: Mapped[dt.datetime | None] = mapped_column(nullable=True)
    check_out: Mapped[dt.datetime | None] = mapped_column(nullable=True)
    hours_worked: Mapped[Decimal | None] = mapped_column(Numeric(6, 2), nullable=True)
    overtime_hours: Mapped[Decimal | None] = mapped_column(Numeric(6, 2), nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")

    __table_args__ = (Index("ix_attendance_employee_date", "employee_id", "date"),)

class LeaveType(Base, TimestampMixin):
    """Kind of leave (annual, sick, unpaid, ...)."""

    __tablename__ = "leave_types"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String, nullable=False)
    is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

class LeaveRequest(Base, TimestampMixin):
    """Leave request spanning a date range."""

    __tablename__ = "leave_requests"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    leave_type_id: Mapped[UUID] = mapped_column(
        ForeignKey("leave_types.id"),
        nullable=False,
    )
    start_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    end_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    total_days: Mapped[Decimal] = mapped_column(Numeric(5, 1), nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")

    # Relationships
    leave_type: Mapped[LeaveType] = relationship(lazy="selectin")

    __table_args__ = (Index("ix_leave_employee_status", "employee_id", "status"),)

class Holiday(Base, TimestampMixin):
    """Public holiday. Recurring holidays match on month and day every year."""

    __tablename__ = "holidays"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    is_recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
