"""Payroll engine for monthly and hourly staff."""

__version__ = "1.0.0"
