from __future__ import annotations

from itertools import groupby

from services.models import DailyReport, LogEntry
from services.payroll import EditableField
from services.repository import Repository
from utils.dates import format_date_short, format_timestamp
from utils.text import split_blocks

EMPTY_HISTORY = "📝 История изменений пуста. Этот отчёт ещё не редактировался."


def _format_value(field_key: str, value) -> str:
    if value is None or value == "":
        return "<пусто>"
    try:
        return EditableField(field_key).format(value)
    except ValueError:
        return str(value)


def _field_label(field_key: str) -> str:
    try:
        return EditableField(field_key).label
    except ValueError:
        return field_key


def _group_key(entry: LogEntry) -> tuple[str, str]:
    return entry.user_id, format_timestamp(entry.timestamp)


async def render_report_history(repo: Repository, report: DailyReport) -> list[str]:
    """Field edits of a report as ready-to-send messages."""
    entries = [e for e in await repo.logs_by_report(report.id) if e.action_type == "field_edited"]
    if not entries:
        return [EMPTY_HISTORY]

    header = "\n".join(
        [
            "📝 История изменений отчёта:",
            f"Сотрудник: {report.full_name}",
            f"Дата: {format_date_short(report.date)}",
            f"Всего изменений: {len(entries)}",
        ]
    )
    blocks = [header]
    authors: dict[str, str] = {}
    for (user_id, when), group in groupby(entries, key=_group_key):
        if user_id not in authors:
            user = await repo.get_user(user_id)
            authors[user_id] = user.display_name if user else "Неизвестный"
        lines = [f"🕐 {when}", f"👤 {authors[user_id]}"]
        for entry in group:
            payload = entry.payload_after or {}
            field_key = str(payload.get("field") or "")
            lines.append(f"📝 {_field_label(field_key)}:")
            lines.append(f"   Было: {_format_value(field_key, payload.get('old_value'))}")
            lines.append(f"   Стало: {_format_value(field_key, payload.get('new_value'))}")
        blocks.append("\n".join(lines))
    return split_blocks(blocks)
