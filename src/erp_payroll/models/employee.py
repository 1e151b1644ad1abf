"""Employee master data (owned by the HR module, read by payroll)."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from erp_payroll.models.base import Base, TimestampMixin


class Employee(Base, TimestampMixin):
    """Employee record with its compensation baseline."""

    __tablename__ = "employees"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="active")
    # null pay_type is treated as monthly
    pay_type: Mapped[str | None] = mapped_column(String, nullable=True)
    branch_id: Mapped[UUID | None] = mapped_column(nullable=True)

    salary: Mapped[Decimal | None] = mapped_column(nullable=True)
    hourly_rate: Mapped[Decimal | None] = mapped_column(nullable=True)
    lunch_allowance: Mapped[Decimal | None] = mapped_column(nullable=True)
    transport_allowance: Mapped[Decimal | None] = mapped_column(nullable=True)
    phone_allowance: Mapped[Decimal | None] = mapped_column(nullable=True)
    other_allowance: Mapped[Decimal | None] = mapped_column(nullable=True)
    kpi_target: Mapped[Decimal | None] = mapped_column(nullable=True)

    __table_args__ = (Index("ix_employees_status_branch", "status", "branch_id"),)
