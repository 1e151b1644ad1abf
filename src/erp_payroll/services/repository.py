"""Read side of the payroll persistence contract."""

from __future__ import annotations

import logging
from datetime import date
from typing import Protocol, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from erp_payroll.calculators.salary_config import SalaryConfigError, parse_config_value
from erp_payroll.calculators.types import PayType
from erp_payroll.models import (
    AttendanceRecord,
    Employee,
    Holiday,
    LeaveRequest,
    SalaryConfig,
)

logger = logging.getLogger(__name__)


class SalaryConfigNotFoundError(Exception):
    """Raised when a salary config row does not exist."""

    def __init__(self, config_id: UUID):
        self.config_id = config_id
        super().__init__(f"Salary config {config_id} not found")


class SalaryConfigUpdateError(Exception):
    """Raised when some rows of a bulk config update failed."""

    def __init__(self, failed_ids: list[UUID]):
        self.failed_ids = failed_ids
        super().__init__(f"Failed to update {len(failed_ids)} configs")


class PayrollDataSource(Protocol):
    """What the engine needs to read. Every method is an independent read."""

    async def get_employee(self, employee_id: UUID) -> Employee | None: ...

    async def list_active_employees(self, branch_id: UUID | None = None) -> Sequence[Employee]: ...

    async def get_salary_configs(self, pay_type: PayType) -> Sequence[SalaryConfig]: ...

    async def get_attendance_records(
        self, employee_id: UUID, start_date: date, end_date: date
    ) -> Sequence[AttendanceRecord]: ...

    async def get_approved_leave_requests(
        self, employee_id: UUID, start_date: date, end_date: date
    ) -> Sequence[LeaveRequest]: ...

    async def get_holidays(self) -> Sequence[Holiday]: ...


class PayrollRepository:
    """SQLAlchemy implementation of PayrollDataSource.

    Each read opens its own session so that the engine can run reads
    concurrently without sharing a session between tasks.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_employee(self, employee_id: UUID) -> Employee | None:
        async with self.session_factory() as session:
            return await session.get(Employee, employee_id)

    async def list_active_employees(self, branch_id: UUID | None = None) -> list[Employee]:
        """Active employees, optionally scoped to a branch, ordered by name."""
        query = select(Employee).where(Employee.status == "active")
        if branch_id is not None:
            query = query.where(Employee.branch_id == branch_id)
        query = query.order_by(Employee.name, Employee.id)

        async with self.session_factory() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def get_salary_configs(self, pay_type: PayType) -> list[SalaryConfig]:
        """Active config rows for a pay type, in display order."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(SalaryConfig)
                .where(
                    SalaryConfig.pay_type == PayType(pay_type).value,
                    SalaryConfig.is_active.is_(True),
                )
                .order_by(SalaryConfig.sort_order)
            )
            return list(result.scalars().all())

    async def get_attendance_records(
        self, employee_id: UUID, start_date: date, end_date: date
    ) -> list[AttendanceRecord]:
        """Attendance rows whose work date lies in [start_date, end_date]."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(AttendanceRecord)
                .where(
                    AttendanceRecord.employee_id == employee_id,
                    AttendanceRecord.date >= start_date,
                    AttendanceRecord.date <= end_date,
                )
                .order_by(AttendanceRecord.check_in)
            )
            return list(result.scalars().all())

    async def get_approved_leave_requests(
        self, employee_id: UUID, start_date: date, end_date: date
    ) -> list[LeaveRequest]:
        """Approved leave requests fully inside the range, with leave type loaded."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(LeaveRequest)
                .where(
                    LeaveRequest.employee_id == employee_id,
                    LeaveRequest.status == "approved",
                    LeaveRequest.start_date >= start_date,
                    LeaveRequest.end_date <= end_date,
                )
                .options(selectinload(LeaveRequest.leave_type))
            )
            return list(result.scalars().all())

    async def get_holidays(self) -> list[Holiday]:
        async with self.session_factory() as session:
            result = await session.execute(select(Holiday).order_by(Holiday.date))
            return list(result.scalars().all())

    # === Salary config administration ===

    async def get_all_salary_configs(self) -> list[SalaryConfig]:
        """Active config rows for both pay types."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(SalaryConfig)
                .where(SalaryConfig.is_active.is_(True))
                .order_by(SalaryConfig.pay_type, SalaryConfig.sort_order)
            )
            return list(result.scalars().all())

    async def create_salary_config(
        self,
        pay_type: PayType,
        config_key: str,
        config_value: str,
        description: str | None = None,
        sort_order: int = 0,
    ) -> SalaryConfig:
        parse_config_value(config_key, config_value)
        async with self.session_factory() as session:
            config = SalaryConfig(
                pay_type=PayType(pay_type).value,
                config_key=config_key,
                config_value=config_value,
                description=description,
                sort_order=sort_order,
                is_active=True,
            )
            session.add(config)
            await session.commit()
            return config

    async def update_salary_config(self, config_id: UUID, config_value: str) -> SalaryConfig:
        async with self.session_factory() as session:
            config = await session.get(SalaryConfig, config_id)
            if config is None:
                raise SalaryConfigNotFoundError(config_id)
            parse_config_value(config.config_key, config_value)
            config.config_value = config_value
            await session.commit()
            return config

    async def update_salary_configs(self, updates: Sequence[tuple[UUID | None, str]]) -> None:
        """Apply several value updates, attempting all before reporting failures.

        Entries without an id are skipped.
        """
        failed: list[UUID] = []
        for config_id, config_value in updates:
            if not config_id:
                continue
            try:
                await self.update_salary_config(config_id, config_value)
            except (SalaryConfigNotFoundError, SalaryConfigError):
                logger.warning("Failed to update salary config %s", config_id, exc_info=True)
                failed.append(config_id)
        if failed:
            raise SalaryConfigUpdateError(failed)

    async def delete_salary_config(self, config_id: UUID) -> None:
        """Soft delete: the row stays but is no longer active."""
        async with self.session_factory() as session:
            config = await session.get(SalaryConfig, config_id)
            if config is None:
                raise SalaryConfigNotFoundError(config_id)
            config.is_active = False
            await session.commit()
