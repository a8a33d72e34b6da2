"""Payroll arithmetic for daily reports.

All money is held as whole rubles in ``int``. Rounding is half away from zero
(``ROUND_HALF_UP`` on ``Decimal``) and is applied the same way everywhere.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from errors import ValidationError

SALARY_PERCENT = Decimal("0.20")
BONUS_PER_TARGET = 500
BEST_REVENUE_BONUS = 500
CURRENCY = "₽"

_AMOUNT_RE = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)")


@dataclass(slots=True, frozen=True)
class CalculationResult:
    total_revenue: int
    salary: int
    responsible_salary: int
    total_daily: int
    total_cash: int
    total_qr: int


def round_money(value: int | Decimal) -> int:
    return int(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def parse_amount(text: str, *, allow_negative: bool = False) -> int:
    """Parse user input like ``"2 500"``, ``"1000,5"`` or ``"-200"`` into rubles."""
    normalized = re.sub(r"\s+", "", text or "").replace(",", ".")
    if not normalized:
        raise ValidationError("empty amount")
    if normalized.count(".") > 1:
        raise ValidationError(f"too many decimal points: {text!r}")
    if not _AMOUNT_RE.fullmatch(normalized):
        raise ValidationError(f"not a number: {text!r}")
    value = Decimal(normalized)
    if value < 0 and not allow_negative:
        raise ValidationError(f"negative amount: {text!r}")
    return round_money(value)


def format_amount(amount: int | None) -> str:
    value = int(amount or 0)
    return f"{value:,}".replace(",", " ") + f" {CURRENCY}"


def format_signed_amount(amount: int | None) -> str:
    value = int(amount or 0)
    return ("+" if value > 0 else "") + format_amount(value)


def calculate(qr_amount: int, cash_amount: int, terminal_amount: int | None = None) -> CalculationResult:
    total_revenue = round_money(Decimal(qr_amount) + Decimal(cash_amount) + Decimal(terminal_amount or 0))
    salary = round_money(total_revenue * SALARY_PERCENT)
    return CalculationResult(
        total_revenue=total_revenue,
        salary=salary,
        responsible_salary=salary,
        total_daily=total_revenue,
        total_cash=round_money(cash_amount),
        total_qr=round_money(qr_amount),
    )


def calculate_cash_in_envelope(
    cash_amount: int,
    bonus_by_targets: int = 0,
    bonus_penalty: int = 0,
    responsible_salary_bonus: int = 0,
    best_revenue_bonus: int = 0,
) -> int:
    deductions = (
        Decimal(bonus_by_targets or 0)
        + Decimal(bonus_penalty or 0)
        + Decimal(responsible_salary_bonus or 0)
        + Decimal(best_revenue_bonus or 0)
    )
    return round_money(Decimal(cash_amount or 0) - deductions)


__all__ = [
    "SALARY_PERCENT",
    "BONUS_PER_TARGET",
    "BEST_REVENUE_BONUS",
    "CalculationResult",
    "round_money",
    "parse_amount",
    "format_amount",
    "format_signed_amount",
    "calculate",
    "calculate_cash_in_envelope",
]
