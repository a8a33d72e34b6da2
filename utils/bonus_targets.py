"""Bonus tier thresholds of a site.

Stored as a comma-joined string (``"1000,2000,3000"``), used everywhere else as
a list of whole-ruble amounts.
"""

from __future__ import annotations

from typing import Sequence

from errors import ValidationError
from services.calculation import BONUS_PER_TARGET, format_amount, parse_amount


def parse_bonus_targets(text: str | None) -> list[int] | None:
    parts = [part.strip() for part in (text or "").split(",")]
    parts = [part for part in parts if part]
    if not parts:
        return None
    targets: list[int] = []
    for part in parts:
        try:
            targets.append(parse_amount(part))
        except ValidationError:
            return None
    return targets


def bonus_targets_to_string(targets: Sequence[int]) -> str:
    return ",".join(str(int(t)) for t in targets)


def format_bonus_targets(targets: Sequence[int]) -> str:
    if not targets:
        return "—"
    return ", ".join(format_amount(t) for t in targets)


def count_reached_targets(total_revenue: int, targets: Sequence[int]) -> int:
    reached = 0
    for target in sorted(targets):
        if target > total_revenue:
            break
        reached += 1
    return reached


def calculate_bonus_by_targets(total_revenue: int, targets: Sequence[int]) -> int:
    return count_reached_targets(total_revenue, targets) * BONUS_PER_TARGET
