"""Salary configuration lookup.

Configuration arrives as ``(pay_type, config_key, config_value)`` rows. Two
ways of reading them exist:

- ``get_config_value`` is the lenient accessor: an absent or unparseable key
  reads as zero.
- ``MonthlySalaryConfig`` / ``HourlySalaryConfig`` are the typed views used by
  the engine. They are built once per calculation, reject unparseable values
  and keep "not configured" (``None``) distinct from an explicit zero. The
  accessor properties apply the documented defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Sequence

from erp_payroll.calculators.types import ZERO, PayType

if TYPE_CHECKING:
    from erp_payroll.models import SalaryConfig

DEFAULT_MIN_HOURS_FOR_LUNCH = Decimal("7")
DEFAULT_STANDARD_WORK_DAYS = 26
DEFAULT_OT_RATE_WEEKDAY = Decimal("1.5")
DEFAULT_OT_RATE_WEEKEND = Decimal("2.0")
DEFAULT_OT_RATE_HOLIDAY = Decimal("3.0")


class SalaryConfigError(ValueError):
    """Raised when a configuration value is not a number or is out of range."""

    def __init__(self, key: str, value: str | None, reason: str = "is not a number"):
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(f"Salary config '{key}' has value {value!r}, which {reason}")


def parse_config_value(key: str, value: str | None) -> Decimal:
    """Parse a numeric config string, raising SalaryConfigError if invalid."""
    if value is None:
        raise SalaryConfigError(key, value)
    try:
        parsed = Decimal(value.strip())
    except (InvalidOperation, AttributeError):
        raise SalaryConfigError(key, value) from None
    if not parsed.is_finite():
        raise SalaryConfigError(key, value)
    return parsed


def get_config_value(configs: Sequence[SalaryConfig], key: str) -> Decimal:
    """Return the numeric value for ``key``, or zero if absent or unparseable."""
    config = next((c for c in configs if c.config_key == key), None)
    if config is None:
        return ZERO
    try:
        return parse_config_value(key, config.config_value)
    except SalaryConfigError:
        return ZERO


def _collect(cls: type, configs: Sequence[SalaryConfig]) -> dict[str, Decimal | None]:
    """Parse the rows matching the dataclass fields of ``cls``."""
    known = {f.name for f in fields(cls)}
    values: dict[str, Decimal | None] = {name: None for name in known}
    for row in configs:
        if row.config_key in known and values[row.config_key] is None:
            values[row.config_key] = parse_config_value(row.config_key, row.config_value)
    return values


def _or_zero(value: Decimal | None) -> Decimal:
    return value if value is not None else ZERO


@dataclass(frozen=True)
class _InsuranceConfig:
    has_insurance: Decimal | None = None
    bhxh_percent: Decimal | None = None
    bhyt_percent: Decimal | None = None
    bhtn_percent: Decimal | None = None

    @property
    def insurance_enabled(self) -> bool:
        return self.has_insurance == 1

    @property
    def insurance_percent(self) -> Decimal:
        """Combined employee contribution rate (BHXH + BHYT + BHTN), in percent."""
        return (
            _or_zero(self.bhxh_percent)
            + _or_zero(self.bhyt_percent)
            + _or_zero(self.bhtn_percent)
        )


@dataclass(frozen=True)
class MonthlySalaryConfig(_InsuranceConfig):
    """Configuration for monthly-pay employees."""

    base_salary: Decimal | None = None
    lunch_allowance: Decimal | None = None
    transport_allowance: Decimal | None = None
    phone_allowance: Decimal | None = None
    min_hours_for_lunch: Decimal | None = None
    standard_work_days: Decimal | None = None
    dependents_count: Decimal | None = None

    def __post_init__(self) -> None:
        if self.standard_work_days is not None and self.standard_work_days < 1:
            raise SalaryConfigError(
                "standard_work_days", str(self.standard_work_days), "must be at least 1"
            )

    @classmethod
    def from_rows(cls, configs: Sequence[SalaryConfig]) -> MonthlySalaryConfig:
        return cls(**_collect(cls, configs))

    @property
    def min_hours(self) -> Decimal:
        # zero is treated as unset, matching how the threshold was always read
        return self.min_hours_for_lunch or DEFAULT_MIN_HOURS_FOR_LUNCH

    @property
    def fallback_standard_work_days(self) -> int:
        if self.standard_work_days is None:
            return DEFAULT_STANDARD_WORK_DAYS
        return int(self.standard_work_days)

    @property
    def dependents(self) -> int:
        return int(_or_zero(self.dependents_count))


@dataclass(frozen=True)
class HourlySalaryConfig(_InsuranceConfig):
    """Configuration for hourly-pay employees."""

    hourly_rate: Decimal | None = None
    ot_rate_weekday: Decimal | None = None
    ot_rate_weekend: Decimal | None = None
    ot_rate_holiday: Decimal | None = None
    night_shift_allowance: Decimal | None = None
    attendance_bonus: Decimal | None = None
    min_hours_for_lunch: Decimal | None = None

    @classmethod
    def from_rows(cls, configs: Sequence[SalaryConfig]) -> HourlySalaryConfig:
        return cls(**_collect(cls, configs))

    @property
    def min_hours(self) -> Decimal:
        return self.min_hours_for_lunch or DEFAULT_MIN_HOURS_FOR_LUNCH

    @property
    def weekday_multiplier(self) -> Decimal:
        return self.ot_rate_weekday if self.ot_rate_weekday is not None else DEFAULT_OT_RATE_WEEKDAY

    @property
    def weekend_multiplier(self) -> Decimal:
        return self.ot_rate_weekend if self.ot_rate_weekend is not None else DEFAULT_OT_RATE_WEEKEND

    @property
    def holiday_multiplier(self) -> Decimal:
        return self.ot_rate_holiday if self.ot_rate_holiday is not None else DEFAULT_OT_RATE_HOLIDAY


def load_salary_config(
    pay_type: PayType, configs: Sequence[SalaryConfig]
) -> MonthlySalaryConfig | HourlySalaryConfig:
    """Build the typed configuration for a pay type."""
    if pay_type == PayType.HOURLY:
        return HourlySalaryConfig.from_rows(configs)
    return MonthlySalaryConfig.from_rows(configs)
