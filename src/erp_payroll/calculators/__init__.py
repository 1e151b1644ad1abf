"""Payroll calculation engine."""

from erp_payroll.calculators.engine import (
    EmployeeNotFoundError,
    PayrollDataTimeoutError,
    PayrollEngine,
)
from erp_payroll.calculators.salary_config import (
    HourlySalaryConfig,
    MonthlySalaryConfig,
    SalaryConfigError,
    get_config_value,
)
from erp_payroll.calculators.tax_calculator import calculate_pit
from erp_payroll.calculators.types import (
    HourlyPayrollResult,
    PayrollCalculationResult,
    PayrollFailure,
    PayrollOverrides,
    PayrollSuccess,
    PayType,
)

__all__ = [
    "EmployeeNotFoundError",
    "HourlyPayrollResult",
    "HourlySalaryConfig",
    "MonthlySalaryConfig",
    "PayType",
    "PayrollCalculationResult",
    "PayrollDataTimeoutError",
    "PayrollEngine",
    "PayrollFailure",
    "PayrollOverrides",
    "PayrollSuccess",
    "SalaryConfigError",
    "calculate_pit",
    "get_config_value",
]
