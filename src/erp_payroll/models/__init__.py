"""ORM models for the payroll engine."""

from erp_payroll.models.attendance import AttendanceRecord, Holiday, LeaveRequest, LeaveType
from erp_payroll.models.base import Base, TimestampMixin
from erp_payroll.models.employee import Employee
from erp_payroll.models.salary import MonthlySalary, SalaryConfig

__all__ = [
    "AttendanceRecord",
    "Base",
    "Employee",
    "Holiday",
    "LeaveRequest",
    "LeaveType",
    "MonthlySalary",
    "SalaryConfig",
    "TimestampMixin",
]
