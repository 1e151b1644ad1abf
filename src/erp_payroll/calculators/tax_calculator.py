"""Insurance and Vietnamese personal income tax (PIT) calculation."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from erp_payroll.calculators.types import HUNDRED, ZERO

PERSONAL_DEDUCTION = Decimal("11000000")
DEPENDENT_DEDUCTION = Decimal("4400000")


@dataclass(frozen=True)
class TaxBracket:
    """Tax bracket for progressive taxation."""

    max_amount: Decimal | None  # None = no upper limit
    rate: Decimal  # As decimal, e.g., 0.05 for 5%


# Monthly taxable income, after personal and dependent deductions
PIT_BRACKETS: tuple[TaxBracket, ...] = (
    TaxBracket(Decimal("5000000"), Decimal("0.05")),
    TaxBracket(Decimal("10000000"), Decimal("0.10")),
    TaxBracket(Decimal("18000000"), Decimal("0.15")),
    TaxBracket(Decimal("32000000"), Decimal("0.20")),
    TaxBracket(Decimal("52000000"), Decimal("0.25")),
    TaxBracket(Decimal("80000000"), Decimal("0.30")),
    TaxBracket(None, Decimal("0.35")),
)


def calculate_pit(
    taxable_income: Decimal,
    brackets: Sequence[TaxBracket] = PIT_BRACKETS,
) -> Decimal:
    """Progressive tax on ``taxable_income``.

    Each bracket taxes only the slice between the previous ceiling and its
    own. The total is rounded half-up to a whole currency unit.

    Example:
        20,000,000 taxable -> 5M*5% + 5M*10% + 8M*15% + 2M*20% = 2,350,000
    """
    if taxable_income <= 0:
        return ZERO

    tax = ZERO
    remaining = taxable_income
    previous_max = ZERO

    for bracket in brackets:
        if bracket.max_amount is None:
            slice_amount = remaining
        else:
            slice_amount = min(remaining, bracket.max_amount - previous_max)
        if slice_amount <= 0:
            break
        tax += slice_amount * bracket.rate
        remaining -= slice_amount
        if bracket.max_amount is not None:
            previous_max = bracket.max_amount

    return tax.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def calculate_taxable_income(
    gross_salary: Decimal,
    insurance_deduction: Decimal,
    dependents_count: int,
) -> Decimal:
    """Gross minus insurance, personal and dependent deductions, floored at zero."""
    dependent_deduction = DEPENDENT_DEDUCTION * dependents_count
    return max(
        ZERO,
        gross_salary - insurance_deduction - PERSONAL_DEDUCTION - dependent_deduction,
    )


def calculate_insurance(
    insurance_base: Decimal,
    enabled: bool,
    percent: Decimal,
) -> Decimal:
    """Employee insurance contribution on ``insurance_base``."""
    if not enabled:
        return ZERO
    return insurance_base * percent / HUNDRED
