import pytest

from services.history import EMPTY_HISTORY, render_report_history
from services.payroll import EditableField, apply_field_edits, build_report
from utils.text import split_blocks


async def _saved_report(repo, site):
    report = build_report(site, lastname="Петров", firstname="Пётр", qr_number="1", qr_amount=600, cash_amount=900)
    return await repo.create_report(report)


@pytest.mark.asyncio
async def test_empty_history(repo, user, make_site):
    report = await _saved_report(repo, await make_site(user))
    assert await render_report_history(repo, report) == [EMPTY_HISTORY]


@pytest.mark.asyncio
async def test_history_groups_by_author(repo, user, admin, make_site):
    report = await _saved_report(repo, await make_site(user))
    await apply_field_edits(repo, report, {EditableField.QR_AMOUNT: 700, EditableField.COMMENT: "ок"}, user.id)
    await apply_field_edits(repo, report, {EditableField.FIRSTNAME: "Павел"}, admin.id)

    (message,) = await render_report_history(repo, report)
    assert "Всего изменений: 3" in message
    assert message.count("👤 ") == 2
    assert "👤 @resp" in message
    assert "👤 @boss" in message
    assert "Было: <пусто>" in message
    assert "Стало: ок" in message


@pytest.mark.asyncio
async def test_history_ignores_other_actions(repo, user, make_site):
    report = await _saved_report(repo, await make_site(user))
    await repo.create_log(user.id, "bonus_penalty_added", None, {"amount": 10}, report_id=report.id)
    assert await render_report_history(repo, report) == [EMPTY_HISTORY]


def test_split_blocks_respects_limit():
    blocks = ["a" * 30, "b" * 30, "c" * 30]
    parts = split_blocks(blocks, limit=70)
    assert parts == ["a" * 30 + "\n\n" + "b" * 30, "c" * 30]
    assert split_blocks(["x" * 25], limit=10) == ["x" * 10, "x" * 10, "x" * 5]
