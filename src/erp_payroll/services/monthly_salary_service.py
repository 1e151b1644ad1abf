"""Persistence of calculated payroll and the month-end finalization lock."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from erp_payroll.calculators.types import (
    EmployeePayroll,
    HourlyPayrollResult,
    PayrollCalculationResult,
)
from erp_payroll.models import MonthlySalary
from erp_payroll.services.state_machine import FinalizationStateMachine, SalaryRowStatus

logger = logging.getLogger(__name__)


class PayrollFinalizedError(Exception):
    """Raised when writing to a finalized monthly salary row."""

    def __init__(self, employee_id: UUID, month: str):
        self.employee_id = employee_id
        self.month = month
        super().__init__(
            f"Payroll for employee {employee_id} in {month} is finalized; "
            "unfinalize it before recalculating"
        )


class MonthlySalaryService:
    """Service for saved monthly salaries.

    Operations:
    - save_payroll_calculation: upsert one row per (employee_id, month)
    - finalize_payroll: lock rows for a month
    - unfinalize_payroll: unlock rows for a month
    - get_monthly_salaries / get_employee_salary_history: reads
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_monthly_salary(self, employee_id: UUID, month: str) -> MonthlySalary | None:
        async with self.session_factory() as session:
            return await self._find(session, employee_id, month)

    async def is_finalized(self, employee_id: UUID, month: str) -> bool:
        row = await self.get_monthly_salary(employee_id, month)
        return row is not None and not FinalizationStateMachine.can_recalculate(row.is_finalized)

    async def save_payroll_calculation(
        self,
        calculation: EmployeePayroll,
        notes: str | None = None,
        kpi_percent: Any | None = None,
    ) -> MonthlySalary:
        """Upsert the calculated payroll for its (employee_id, month).

        A concurrent insert of the same key is retried once as an update.

        Raises:
            PayrollFinalizedError: If the existing row is finalized
        """
        values = self._row_values(calculation, notes, kpi_percent)

        try:
            return await self._upsert(calculation.employee_id, calculation.month, values)
        except IntegrityError:
            logger.info(
                "Concurrent insert for %s %s, retrying as update",
                calculation.employee_id,
                calculation.month,
            )
            return await self._upsert(calculation.employee_id, calculation.month, values)

    async def finalize_payroll(
        self,
        month: str,
        employee_ids: Sequence[UUID],
        user_id: str,
        user_name: str,
    ) -> int:
        """Lock the month's rows for the given employees. Returns rows changed."""
        return await self._transition(
            month,
            employee_ids,
            SalaryRowStatus.FINALIZED,
            {
                "is_finalized": True,
                "finalized_at": datetime.now(timezone.utc),
                "finalized_by": user_id,
                "finalized_by_name": user_name,
            },
        )

    async def unfinalize_payroll(self, month: str, employee_ids: Sequence[UUID]) -> int:
        """Unlock the month's rows for the given employees. Returns rows changed."""
        return await self._transition(
            month,
            employee_ids,
            SalaryRowStatus.OPEN,
            {
                "is_finalized": False,
                "finalized_at": None,
                "finalized_by": None,
                "finalized_by_name": None,
            },
        )

    async def get_monthly_salaries(
        self, month: str, branch_id: UUID | None = None
    ) -> list[MonthlySalary]:
        query = select(MonthlySalary).where(MonthlySalary.month == month)
        if branch_id is not None:
            query = query.where(MonthlySalary.branch_id == branch_id)
        query = query.order_by(MonthlySalary.employee_id)

        async with self.session_factory() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def get_employee_salary_history(self, employee_id: UUID) -> list[MonthlySalary]:
        """Finalized rows for an employee, newest month first."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(MonthlySalary)
                .where(
                    MonthlySalary.employee_id == employee_id,
                    MonthlySalary.is_finalized.is_(True),
                )
                .order_by(MonthlySalary.month.desc())
            )
            return list(result.scalars().all())

    async def _upsert(
        self, employee_id: UUID, month: str, values: dict[str, Any]
    ) -> MonthlySalary:
        async with self.session_factory() as session:
            async with session.begin():
                row = await self._find(session, employee_id, month, for_update=True)
                if row is None:
                    row = MonthlySalary(employee_id=employee_id, month=month, **values)
                    session.add(row)
                else:
                    if not FinalizationStateMachine.can_recalculate(row.is_finalized):
                        raise PayrollFinalizedError(employee_id, month)
                    for key, value in values.items():
                        setattr(row, key, value)
                    row.updated_at = datetime.now(timezone.utc)
            await session.refresh(row)
            return row

    async def _transition(
        self,
        month: str,
        employee_ids: Sequence[UUID],
        to_status: SalaryRowStatus,
        values: dict[str, Any],
    ) -> int:
        """Move every saved row of the month for ``employee_ids`` to ``to_status``.

        Employees without a saved row are skipped. All rows are validated
        before any is written, so one row in the wrong state changes nothing.

        Raises:
            InvalidTransitionError: If a row is already in ``to_status``
        """
        if not employee_ids:
            return 0

        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    select(MonthlySalary)
                    .where(
                        MonthlySalary.month == month,
                        MonthlySalary.employee_id.in_(list(employee_ids)),
                    )
                    .with_for_update()
                )
                rows = list(result.scalars().all())

                for row in rows:
                    FinalizationStateMachine.validate_transition(
                        SalaryRowStatus.of(row.is_finalized).value,
                        to_status.value,
                        reason=f"employee {row.employee_id} in {month}",
                    )

                now = datetime.now(timezone.utc)
                for row in rows:
                    for key, value in values.items():
                        setattr(row, key, value)
                    row.updated_at = now

        changed = len(rows)
        logger.info(
            "Payroll %s -> %s for %d of %d employees",
            month,
            to_status.value,
            changed,
            len(employee_ids),
        )
        return changed

    @staticmethod
    async def _find(
        session: AsyncSession, employee_id: UUID, month: str, for_update: bool = False
    ) -> MonthlySalary | None:
        query = select(MonthlySalary).where(
            MonthlySalary.employee_id == employee_id,
            MonthlySalary.month == month,
        )
        if for_update:
            query = query.with_for_update()
        result = await session.execute(query)
        return result.scalar_one_or_none()

    @staticmethod
    def _row_values(
        calculation: EmployeePayroll,
        notes: str | None,
        kpi_percent: Any | None,
    ) -> dict[str, Any]:
        """Map a calculation result onto monthly_salaries columns."""
        values: dict[str, Any] = {
            "branch_id": calculation.branch_id,
            "actual_work_days": calculation.actual_work_days,
            "regular_hours": calculation.regular_hours,
            "ot_hours": calculation.ot_hours,
            "bonus": calculation.bonus,
            "penalty": calculation.penalty,
            "insurance_deduction": calculation.insurance_deduction,
            "pit_deduction": calculation.pit_deduction,
            "gross_salary": calculation.gross_salary,
            "net_salary": calculation.net_salary,
            "notes": notes,
            "is_finalized": False,
        }

        if isinstance(calculation, PayrollCalculationResult):
            values.update(
                base_salary=calculation.base_salary,
                hourly_rate=None,
                hours_worked=None,
                lunch_allowance=calculation.lunch_allowance_per_day,
                transport_allowance=calculation.transport_allowance,
                phone_allowance=calculation.phone_allowance,
                other_allowance=calculation.other_allowance,
                work_days=calculation.total_work_days,
                standard_work_days=calculation.standard_work_days,
                paid_leave_days=calculation.paid_leave_days,
                kpi_target=calculation.kpi_target,
                kpi_percent=kpi_percent if kpi_percent is not None else calculation.kpi_percent,
                kpi_bonus=calculation.kpi_bonus,
            )
        elif isinstance(calculation, HourlyPayrollResult):
            values.update(
                base_salary=None,
                hourly_rate=calculation.hourly_rate,
                hours_worked=calculation.regular_hours + calculation.ot_hours,
                lunch_allowance=None,
                transport_allowance=None,
                phone_allowance=None,
                other_allowance=None,
                work_days=calculation.actual_work_days,
                standard_work_days=None,
                paid_leave_days=None,
                kpi_target=None,
                kpi_percent=None,
                kpi_bonus=None,
            )
        else:
            raise TypeError(f"Unsupported calculation type {type(calculation).__name__}")

        return values
