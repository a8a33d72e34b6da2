"""Creation and mutation of daily reports.

Every path that touches money on a report goes through ``recalculate_report``
or ``DailyReport.recompute_envelope`` so the derived fields always agree with
the current raw inputs and bonus components.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from errors import ValidationError
from services.calculation import calculate, format_amount, parse_amount
from services.models import DailyReport, Site
from services.repository import Repository
from utils.bonus_targets import calculate_bonus_by_targets

logger = logging.getLogger(__name__)

BONUS_TYPE_PENALTY = "penalty"
BONUS_TYPE_RESPONSIBLE_SALARY = "responsible_salary"


class EditableField(Enum):
    LASTNAME = "lastname"
    FIRSTNAME = "firstname"
    QR_NUMBER = "qr_number"
    QR_AMOUNT = "qr_amount"
    CASH_AMOUNT = "cash_amount"
    TERMINAL_AMOUNT = "terminal_amount"
    COMMENT = "comment"

    @property
    def label(self) -> str:
        return FIELD_LABELS[self]

    @property
    def is_amount(self) -> bool:
        return self in (EditableField.QR_AMOUNT, EditableField.CASH_AMOUNT, EditableField.TERMINAL_AMOUNT)

    def parse(self, text: str) -> Any:
        if self.is_amount:
            return parse_amount(text)
        value = (text or "").strip()
        if not value:
            raise ValidationError(f"{self.value} is empty")
        return value

    def format(self, value: Any) -> str:
        if value is None or str(value).strip() == "":
            return "нет значения"
        if self.is_amount:
            return format_amount(value)
        return str(value)

    def read(self, report: DailyReport) -> Any:
        return getattr(report, self.value)

    def write(self, report: DailyReport, value: Any) -> None:
        setattr(report, self.value, value)


FIELD_LABELS = {
    EditableField.LASTNAME: "Фамилия",
    EditableField.FIRSTNAME: "Имя",
    EditableField.QR_NUMBER: "№ QR",
    EditableField.QR_AMOUNT: "Сумма по QR",
    EditableField.CASH_AMOUNT: "Сумма наличных",
    EditableField.TERMINAL_AMOUNT: "Сумма по терминалу",
    EditableField.COMMENT: "Комментарий",
}


@dataclass(slots=True, frozen=True)
class FieldChange:
    field: EditableField
    old_value: Any
    new_value: Any


def recalculate_report(report: DailyReport, site: Site) -> DailyReport:
    report.apply_calculation(calculate(report.qr_amount, report.cash_amount, report.terminal_amount))
    report.bonus_by_targets = calculate_bonus_by_targets(report.total_revenue, site.bonus_targets)
    report.recompute_envelope()
    return report


def build_report(
    site: Site,
    *,
    lastname: str,
    firstname: str,
    qr_number: str,
    qr_amount: int,
    cash_amount: int,
    terminal_amount: int | None = None,
    comment: str | None = None,
    is_responsible: bool = False,
) -> DailyReport:
    """New report with derived fields; responsible and best-revenue bonuses start at zero."""
    report = DailyReport(
        site_id=site.id,
        date=site.date,
        lastname=lastname,
        firstname=firstname,
        qr_number=qr_number,
        qr_amount=qr_amount,
        cash_amount=cash_amount,
        terminal_amount=terminal_amount,
        comment=comment,
        is_responsible=is_responsible,
    )
    return recalculate_report(report, site)


async def apply_field_edits(
    repo: Repository,
    report: DailyReport,
    edits: Mapping[EditableField, Any],
    user_id: str,
) -> list[FieldChange]:
    changes = [
        FieldChange(field, field.read(report), value)
        for field, value in edits.items()
        if field.read(report) != value
    ]
    if not changes:
        return []
    site = await repo.require_site(report.site_id)
    for change in changes:
        change.field.write(report, change.new_value)
    if any(change.field.is_amount for change in changes):
        recalculate_report(report, site)
    else:
        report.recompute_envelope()
    await repo.update_report(report)
    for change in changes:
        await repo.create_log(
            user_id,
            "field_edited",
            {"field": change.field.value, "value": change.old_value},
            {
                "report_id": report.id,
                "field": change.field.value,
                "old_value": change.old_value,
                "new_value": change.new_value,
            },
            report_id=report.id,
        )
    logger.info("[edit] report=%s fields=%s user=%s", report.id, [c.field.value for c in changes], user_id)
    return changes


async def post_bonus_penalty(repo: Repository, report: DailyReport, amount: int, user_id: str) -> DailyReport:
    """Adds a signed amount to the accumulated bonus/penalty."""
    if amount == 0:
        raise ValidationError("bonus/penalty amount is zero")
    before = {"bonus_penalty": report.bonus_penalty, "cash_in_envelope": report.cash_in_envelope}
    report.bonus_penalty = int(report.bonus_penalty or 0) + amount
    report.recompute_envelope()
    await repo.update_report(report)
    await repo.create_log(
        user_id,
        "bonus_penalty_added",
        before,
        {
            "report_id": report.id,
            "amount": amount,
            "bonus_penalty": report.bonus_penalty,
            "cash_in_envelope": report.cash_in_envelope,
        },
        report_id=report.id,
    )
    return report


async def post_responsible_salary(repo: Repository, report: DailyReport, amount: int, user_id: str) -> DailyReport:
    """Replaces the responsible person's salary bonus."""
    if amount <= 0:
        raise ValidationError("responsible salary must be positive")
    before = {
        "responsible_salary_bonus": report.responsible_salary_bonus,
        "cash_in_envelope": report.cash_in_envelope,
    }
    report.responsible_salary_bonus = amount
    report.recompute_envelope()
    await repo.update_report(report)
    await repo.create_log(
        user_id,
        "responsible_salary_set",
        before,
        {
            "report_id": report.id,
            "responsible_salary_bonus": amount,
            "cash_in_envelope": report.cash_in_envelope,
        },
        report_id=report.id,
    )
    return report
