"""FastAPI dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from erp_payroll.calculators.engine import PayrollEngine
from erp_payroll.config import get_settings
from erp_payroll.database import init_db
from erp_payroll.services.monthly_salary_service import MonthlySalaryService
from erp_payroll.services.repository import PayrollRepository


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get the shared session factory."""
    _, factory = init_db()
    return factory


SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]


def get_repository(session_factory: SessionFactory) -> PayrollRepository:
    return PayrollRepository(session_factory)


def get_payroll_engine(
    repository: Annotated[PayrollRepository, Depends(get_repository)],
) -> PayrollEngine:
    return PayrollEngine(repository, get_settings())


def get_salary_service(session_factory: SessionFactory) -> MonthlySalaryService:
    return MonthlySalaryService(session_factory)


# Type aliases for cleaner dependency injection
Engine = Annotated[PayrollEngine, Depends(get_payroll_engine)]
SalaryService = Annotated[MonthlySalaryService, Depends(get_salary_service)]
