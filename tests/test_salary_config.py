"""Tests for salary configuration parsing."""

from decimal import Decimal
from uuid import uuid4

import pytest

from erp_payroll.calculators.salary_config import (
    DEFAULT_MIN_HOURS_FOR_LUNCH,
    DEFAULT_STANDARD_WORK_DAYS,
    HourlySalaryConfig,
    MonthlySalaryConfig,
    SalaryConfigError,
    get_config_value,
    load_salary_config,
    parse_config_value,
)
from erp_payroll.calculators.types import PayType
from erp_payroll.models import SalaryConfig


def _rows(**values) -> list[SalaryConfig]:
    return [
        SalaryConfig(id=uuid4(), pay_type="monthly", config_key=k, config_value=v, sort_order=i)
        for i, (k, v) in enumerate(values.items())
    ]


class TestParseConfigValue:
    """Test strict parsing of numeric strings."""

    def test_integer_and_decimal(self):
        assert parse_config_value("base_salary", "10000000") == Decimal("10000000")
        assert parse_config_value("bhyt_percent", " 1.5 ") == Decimal("1.5")

    @pytest.mark.parametrize("value", ["abc", "", "12,5", "NaN", "Infinity", None])
    def test_rejects_non_numeric(self, value):
        with pytest.raises(SalaryConfigError) as exc_info:
            parse_config_value("base_salary", value)
        assert exc_info.value.key == "base_salary"


class TestGetConfigValue:
    """Test the lenient accessor."""

    def test_present_key(self):
        assert get_config_value(_rows(base_salary="9000000"), "base_salary") == Decimal("9000000")

    def test_missing_key_reads_as_zero(self):
        assert get_config_value(_rows(base_salary="9000000"), "phone_allowance") == Decimal("0")

    def test_unparseable_reads_as_zero(self):
        assert get_config_value(_rows(base_salary="lots"), "base_salary") == Decimal("0")


class TestMonthlySalaryConfig:
    """Test the typed monthly configuration."""

    def test_defaults_when_unconfigured(self):
        config = MonthlySalaryConfig.from_rows([])
        assert config.base_salary is None
        assert config.min_hours == DEFAULT_MIN_HOURS_FOR_LUNCH
        assert config.fallback_standard_work_days == DEFAULT_STANDARD_WORK_DAYS
        assert config.dependents == 0
        assert config.insurance_enabled is False
        assert config.insurance_percent == Decimal("0")

    def test_explicit_zero_is_kept(self):
        config = MonthlySalaryConfig.from_rows(_rows(phone_allowance="0"))
        assert config.phone_allowance == Decimal("0")
        assert config.transport_allowance is None

    def test_insurance_rate_is_summed(self):
        config = MonthlySalaryConfig.from_rows(
            _rows(has_insurance="1", bhxh_percent="8", bhyt_percent="1.5", bhtn_percent="1")
        )
        assert config.insurance_enabled is True
        assert config.insurance_percent == Decimal("10.5")

    def test_has_insurance_must_be_one(self):
        config = MonthlySalaryConfig.from_rows(_rows(has_insurance="2"))
        assert config.insurance_enabled is False

    def test_first_row_wins(self):
        rows = _rows(base_salary="5000000") + _rows(base_salary="7000000")
        assert MonthlySalaryConfig.from_rows(rows).base_salary == Decimal("5000000")

    def test_unknown_keys_ignored(self):
        config = MonthlySalaryConfig.from_rows(_rows(legacy_flag="yes", dependents_count="2"))
        assert config.dependents == 2

    def test_unparseable_value_fails_fast(self):
        with pytest.raises(SalaryConfigError):
            MonthlySalaryConfig.from_rows(_rows(base_salary="ten million"))

    def test_configured_standard_work_days(self):
        config = MonthlySalaryConfig.from_rows(_rows(standard_work_days="22"))
        assert config.fallback_standard_work_days == 22

    @pytest.mark.parametrize("value", ["0", "0.5", "-3"])
    def test_standard_work_days_below_one_rejected(self, value):
        with pytest.raises(SalaryConfigError) as exc_info:
            MonthlySalaryConfig.from_rows(_rows(standard_work_days=value))
        assert exc_info.value.key == "standard_work_days"
        assert "at least 1" in str(exc_info.value)


class TestHourlySalaryConfig:
    """Test the typed hourly configuration."""

    def test_default_multipliers(self):
        config = HourlySalaryConfig.from_rows([])
        assert config.weekday_multiplier == Decimal("1.5")
        assert config.weekend_multiplier == Decimal("2.0")
        assert config.holiday_multiplier == Decimal("3.0")

    def test_configured_multipliers(self):
        config = HourlySalaryConfig.from_rows(_rows(ot_rate_weekend="2.5", ot_rate_holiday="4"))
        assert config.weekday_multiplier == Decimal("1.5")
        assert config.weekend_multiplier == Decimal("2.5")
        assert config.holiday_multiplier == Decimal("4")


class TestLoadSalaryConfig:
    def test_dispatch_on_pay_type(self):
        assert isinstance(load_salary_config(PayType.MONTHLY, []), MonthlySalaryConfig)
        assert isinstance(load_salary_config(PayType.HOURLY, []), HourlySalaryConfig)
