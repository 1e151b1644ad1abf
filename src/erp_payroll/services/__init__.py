"""Payroll engine services."""

from erp_payroll.services.monthly_salary_service import MonthlySalaryService, PayrollFinalizedError
from erp_payroll.services.repository import PayrollDataSource, PayrollRepository
from erp_payroll.services.state_machine import (
    FinalizationStateMachine,
    InvalidTransitionError,
    SalaryRowStatus,
)

__all__ = [
    "FinalizationStateMachine",
    "InvalidTransitionError",
    "MonthlySalaryService",
    "PayrollDataSource",
    "PayrollFinalizedError",
    "PayrollRepository",
    "SalaryRowStatus",
]
