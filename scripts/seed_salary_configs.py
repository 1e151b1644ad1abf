"""Seed script for default salary configuration.

Run with:
    python scripts/seed_salary_configs.py

This creates the monthly and hourly configuration rows the engine reads.
Existing keys are left untouched.
"""

from __future__ import annotations

import asyncio

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from erp_payroll.calculators.types import PayType
from erp_payroll.database import get_session
from erp_payroll.models import SalaryConfig

MONTHLY_DEFAULTS: list[tuple[str, str, str]] = [
    ("base_salary", "10000000", "Base monthly salary (VND)"),
    ("lunch_allowance", "30000", "Lunch allowance per qualifying day"),
    ("transport_allowance", "0", "Monthly transport allowance"),
    ("phone_allowance", "0", "Monthly phone allowance"),
    ("min_hours_for_lunch", "7", "Hours needed for a day to count"),
    ("standard_work_days", "26", "Fallback standard work days"),
    ("has_insurance", "1", "1 to withhold social insurance"),
    ("bhxh_percent", "8", "Social insurance (BHXH) %"),
    ("bhyt_percent", "1.5", "Health insurance (BHYT) %"),
    ("bhtn_percent", "1", "Unemployment insurance (BHTN) %"),
    ("dependents_count", "0", "Registered dependents"),
]

HOURLY_DEFAULTS: list[tuple[str, str, str]] = [
    ("hourly_rate", "25000", "Default hourly rate (VND)"),
    ("ot_rate_weekday", "1.5", "Weekday overtime multiplier"),
    ("ot_rate_weekend", "2.0", "Sunday overtime multiplier"),
    ("ot_rate_holiday", "3.0", "Holiday overtime multiplier"),
    ("night_shift_allowance", "0", "Allowance per night shift"),
    ("attendance_bonus", "0", "Monthly attendance bonus"),
    ("min_hours_for_lunch", "7", "Hours needed for a day to count"),
    ("has_insurance", "0", "1 to withhold social insurance"),
    ("bhxh_percent", "8", "Social insurance (BHXH) %"),
    ("bhyt_percent", "1.5", "Health insurance (BHYT) %"),
    ("bhtn_percent", "1", "Unemployment insurance (BHTN) %"),
]


async def seed_pay_type(
    session: AsyncSession,
    pay_type: PayType,
    defaults: list[tuple[str, str, str]],
) -> int:
    """Insert missing config keys for a pay type. Returns rows created."""
    result = await session.execute(
        select(SalaryConfig.config_key).where(SalaryConfig.pay_type == pay_type.value)
    )
    existing = set(result.scalars().all())

    created = 0
    for sort_order, (key, value, description) in enumerate(defaults):
        if key in existing:
            continue
        session.add(
            SalaryConfig(
                pay_type=pay_type.value,
                config_key=key,
                config_value=value,
                description=description,
                sort_order=sort_order,
                is_active=True,
            )
        )
        created += 1

    await session.flush()
    print(f"Created {created} {pay_type.value} config rows")
    return created


async def main():
    """Run seed script."""
    print("Seeding salary configs...")

    async with get_session() as session:
        await seed_pay_type(session, PayType.MONTHLY, MONTHLY_DEFAULTS)
        await seed_pay_type(session, PayType.HOURLY, HOURLY_DEFAULTS)

    print("\nDone! Salary configs seeded successfully.")


if __name__ == "__main__":
    asyncio.run(main())
