"""Pytest fixtures for payroll engine tests."""

from __future__ import annotations

import asyncio
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import AsyncGenerator
from uuid import UUID, uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from erp_payroll.calculators.types import PayrollMonth, PayType
from erp_payroll.config import Settings
from erp_payroll.database import create_session_factory, get_engine
from erp_payroll.models import (
    AttendanceRecord,
    Base,
    Employee,
    Holiday,
    LeaveRequest,
    LeaveType,
    SalaryConfig,
)


def working_dates(month: str) -> list[date]:
    """Every non-Sunday date of a YYYY-MM month."""
    payroll_month = PayrollMonth.parse(month)
    day = payroll_month.start_date
    dates = []
    while day <= payroll_month.end_date:
        if day.weekday() != 6:
            dates.append(day)
        day += timedelta(days=1)
    return dates


class FakePayrollDataSource:
    """In-memory PayrollDataSource used by engine tests.

    Rows are transient ORM instances; nothing touches a database.
    """

    def __init__(self) -> None:
        self.employees: dict[UUID, Employee] = {}
        self.configs: dict[str, list[SalaryConfig]] = {"monthly": [], "hourly": []}
        self.attendance: list[AttendanceRecord] = []
        self.leaves: list[LeaveRequest] = []
        self.holidays: list[Holiday] = []
        self.delay: float = 0

    def add_employee(self, name: str = "Nguyen Van A", **kwargs) -> Employee:
        kwargs.setdefault("status", "active")
        employee = Employee(id=uuid4(), name=name, **kwargs)
        self.employees[employee.id] = employee
        return employee

    def set_config(self, pay_type: str, **values) -> None:
        rows = self.configs[pay_type]
        for key, value in values.items():
            rows.append(
                SalaryConfig(
                    id=uuid4(),
                    pay_type=pay_type,
                    config_key=key,
                    config_value=str(value),
                    sort_order=len(rows),
                    is_active=True,
                )
            )

    def add_attendance(
        self,
        employee: Employee,
        check_in: datetime | None,
        hours: str | Decimal,
        overtime: str | Decimal = "0",
        check_out: datetime | None = None,
        status: str = "approved",
    ) -> AttendanceRecord:
        work_date = check_in.date() if check_in else date(2000, 1, 1)
        record = AttendanceRecord(
            id=uuid4(),
            employee_id=employee.id,
            date=work_date,
            check_in=check_in,
            check_out=check_out,
            hours_worked=Decimal(hours),
            overtime_hours=Decimal(overtime),
            status=status,
        )
        self.attendance.append(record)
        return record

    def add_full_days(self, employee: Employee, dates: list[date], hours: str = "8") -> None:
        for day in dates:
            self.add_attendance(employee, datetime(day.year, day.month, day.day, 8), hours)

    def add_leave(
        self,
        employee: Employee,
        start: date,
        total_days: str,
        is_paid: bool = True,
        status: str = "approved",
    ) -> LeaveRequest:
        leave_type = LeaveType(id=uuid4(), name="Annual" if is_paid else "Unpaid", is_paid=is_paid)
        leave = LeaveRequest(
            id=uuid4(),
            employee_id=employee.id,
            leave_type_id=leave_type.id,
            leave_type=leave_type,
            start_date=start,
            end_date=start,
            total_days=Decimal(total_days),
            status=status,
        )
        self.leaves.append(leave)
        return leave

    def add_holiday(self, day: date, name: str = "Holiday", is_recurring: bool = False) -> Holiday:
        holiday = Holiday(id=uuid4(), date=day, name=name, is_recurring=is_recurring)
        self.holidays.append(holiday)
        return holiday

    # === PayrollDataSource ===

    async def get_employee(self, employee_id: UUID) -> Employee | None:
        return self.employees.get(employee_id)

    async def list_active_employees(self, branch_id: UUID | None = None) -> list[Employee]:
        return [
            e
            for e in self.employees.values()
            if e.status == "active" and (branch_id is None or e.branch_id == branch_id)
        ]

    async def get_salary_configs(self, pay_type: PayType) -> list[SalaryConfig]:
        return list(self.configs[PayType(pay_type).value])

    async def get_attendance_records(
        self, employee_id: UUID, start_date: date, end_date: date
    ) -> list[AttendanceRecord]:
        return [
            r
            for r in self.attendance
            if r.employee_id == employee_id and start_date <= r.date <= end_date
        ]

    async def get_approved_leave_requests(
        self, employee_id: UUID, start_date: date, end_date: date
    ) -> list[LeaveRequest]:
        return [
            leave
            for leave in self.leaves
            if leave.employee_id == employee_id
            and leave.status == "approved"
            and start_date <= leave.start_date
            and leave.end_date <= end_date
        ]

    async def get_holidays(self) -> list[Holiday]:
        if self.delay:
            await asyncio.sleep(self.delay)
        return list(self.holidays)


def make_settings(**overrides) -> Settings:
    values = {
        "database_url": "sqlite+aiosqlite:///:memory:",
        "engine_version": "test",
        "host": "127.0.0.1",
        "port": 8000,
        "debug": False,
        "log_level": "DEBUG",
        "read_timeout_seconds": 5.0,
        "bulk_concurrency": 4,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings() -> Settings:
    """Test settings that never read the environment."""
    return make_settings()


@pytest.fixture
def data_source() -> FakePayrollDataSource:
    """Empty in-memory data source."""
    return FakePayrollDataSource()


@pytest.fixture
def settings_factory():
    """Build Settings with selected fields overridden."""
    return make_settings


@pytest.fixture
def april_2024() -> list[date]:
    """The 26 non-Sunday dates of April 2024 (no holidays configured)."""
    return working_dates("2024-04")


# ============================================================================
# SQLite-backed fixtures for repository, service and API tests
# ============================================================================


@pytest.fixture
async def db_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a file-backed SQLite engine with the schema installed.

    A file is used so that every session sees the same database.
    """
    engine = get_engine(f"sqlite+aiosqlite:///{tmp_path / 'payroll.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test database."""
    return create_session_factory(db_engine)


@pytest.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for fixture setup."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def test_employee(session: AsyncSession) -> Employee:
    """Create a monthly-pay employee."""
    employee = Employee(
        id=uuid4(),
        name="Tran Thi B",
        status="active",
        pay_type="monthly",
        branch_id=uuid4(),
        salary=Decimal("10400000"),
    )
    session.add(employee)
    await session.commit()
    return employee


@pytest.fixture
async def test_hourly_employee(session: AsyncSession) -> Employee:
    """Create an hourly-pay employee."""
    employee = Employee(
        id=uuid4(),
        name="Le Van C",
        status="active",
        pay_type="hourly",
        hourly_rate=Decimal("25000"),
    )
    session.add(employee)
    await session.commit()
    return employee


@pytest.fixture
async def test_salary_configs(session: AsyncSession) -> list[SalaryConfig]:
    """Create monthly and hourly configuration rows."""
    rows = [
        SalaryConfig(pay_type="monthly", config_key="base_salary", config_value="8000000", sort_order=0),
        SalaryConfig(pay_type="monthly", config_key="lunch_allowance", config_value="30000", sort_order=1),
        SalaryConfig(pay_type="monthly", config_key="has_insurance", config_value="1", sort_order=2),
        SalaryConfig(pay_type="monthly", config_key="bhxh_percent", config_value="8", sort_order=3),
        SalaryConfig(pay_type="monthly", config_key="bhyt_percent", config_value="1.5", sort_order=4),
        SalaryConfig(pay_type="monthly", config_key="bhtn_percent", config_value="1", sort_order=5),
        SalaryConfig(pay_type="hourly", config_key="hourly_rate", config_value="20000", sort_order=0),
        SalaryConfig(pay_type="hourly", config_key="has_insurance", config_value="0", sort_order=1),
    ]
    session.add_all(rows)
    await session.commit()
    return rows
