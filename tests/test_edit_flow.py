import pytest

from flows.states import EditFSM
from services.history import EMPTY_HISTORY

from conftest import FakeChat, buttons


async def _two_reports(user, make_site, fill_evening):
    site = await make_site(user)
    await fill_evening(user, "600", "900")
    await fill_evening(user, "1000", "1200", name=("Петров", "Пётр"))
    return site


@pytest.mark.asyncio
async def test_edit_by_site_and_commit(flows, repo, make_state, user, make_site, fill_evening):
    site = await _two_reports(user, make_site, fill_evening)
    first, second = await repo.reports_by_site(site.id, site.date)
    chat = FakeChat()
    state = make_state(user)

    await flows.edit.start(chat, state, user)
    await flows.edit.select_mode(chat, state, user, "site")
    assert await state.get_state() == EditFSM.select_site.state
    await flows.edit.select_site(chat, state, user, site.id)
    assert await state.get_state() == EditFSM.select_report.state
    await flows.edit.select_report(chat, state, user, second.id)
    assert await state.get_state() == EditFSM.menu.state

    await flows.edit.select_field(chat, state, user, "cash_amount")
    assert await state.get_state() == EditFSM.value.state
    await flows.edit.value(chat, state, user, "abc")
    assert await state.get_state() == EditFSM.value.state
    await flows.edit.value(chat, state, user, "3000")
    assert await state.get_state() == EditFSM.menu.state
    # staged only
    assert (await repo.get_report(second.id)).cash_amount == 1200
    assert ("Сумма наличных: 3 000 ₽", "edit_field:cash_amount") in buttons(chat.last_markup)

    await flows.edit.finish(chat, state, user)
    stored = await repo.get_report(second.id)
    assert stored.cash_amount == 3000
    assert stored.total_revenue == 4000
    assert "Отчёт успешно обновлён" in chat.last_text
    assert await state.get_state() is None


@pytest.mark.asyncio
async def test_finish_without_changes(flows, repo, make_state, user, make_site, fill_evening):
    site = await make_site(user)
    await fill_evening(user, "600", "900")
    (report,) = await repo.reports_by_site(site.id, site.date)
    chat = FakeChat()
    state = make_state(user)
    await flows.edit.start(chat, state, user)
    await flows.edit.select_mode(chat, state, user, "site")
    # a single report opens right away
    await flows.edit.select_site(chat, state, user, site.id)
    await flows.edit.select_field(chat, state, user, "qr_amount")
    await flows.navigation.skip(chat, state, user)
    await flows.edit.select_field(chat, state, user, "qr_amount")
    await flows.edit.value(chat, state, user, "600")
    await flows.edit.finish(chat, state, user)
    assert chat.last_text.startswith("Изменений нет")
    assert [e.action_type for e in await repo.logs_by_report(report.id)] == ["evening_fill_completed"]


@pytest.mark.asyncio
async def test_edit_by_name_deduplicates(flows, repo, make_state, user, make_site, fill_evening):
    site = await make_site(user)
    await fill_evening(user, "600", "900")
    await fill_evening(user, "100", "100", name=("Петров", "Пётр"))
    await fill_evening(user, "200", "200", name=("Петров", "Пётр"))
    await fill_evening(user, "300", "300", name=("Петров", "Иван"))
    chat = FakeChat()
    state = make_state(user)

    await flows.edit.start(chat, state, user)
    await flows.edit.select_mode(chat, state, user, "name")
    names = [text for text, _ in buttons(chat.edited[-1][1])]
    assert names == ["Иванова Анна", "Петров Иван", "Петров Пётр"]

    await flows.edit.select_name(chat, state, user, 2)
    assert await state.get_state() == EditFSM.select_report.state
    assert len(buttons(chat.edited[-1][1])) == 2

    await flows.edit.select_name(chat, state, user, 1)
    assert await state.get_state() == EditFSM.menu.state


@pytest.mark.asyncio
async def test_edit_foreign_report_is_denied(flows, repo, make_state, user, other_user, make_site, fill_evening):
    site = await make_site(user)
    await fill_evening(user, "600", "900")
    (report,) = await repo.reports_by_site(site.id, site.date)
    await make_site(other_user, "Своя")
    chat = FakeChat()
    state = make_state(other_user)
    logs_before = len(await repo.kv.lrange(f"logs:user:{other_user.id}"))

    await flows.edit.start(chat, state, other_user)
    await flows.edit.select_mode(chat, state, other_user, "site")
    await flows.edit.select_report(chat, state, other_user, report.id)

    assert chat.last_text == "❌ У вас нет доступа к редактированию этого отчёта"
    assert len(await repo.kv.lrange(f"logs:user:{other_user.id}")) == logs_before
    assert [e.action_type for e in await repo.logs_by_report(report.id)] == ["evening_fill_completed"]


@pytest.mark.asyncio
async def test_edit_without_sites(flows, make_state, user):
    chat = FakeChat()
    state = make_state(user)
    await flows.edit.start(chat, state, user)
    await flows.edit.select_mode(chat, state, user, "name")
    assert chat.edited[-1][0] == "❌ На сегодня нет ваших площадок"
    assert await state.get_state() is None


@pytest.mark.asyncio
async def test_stale_name_index(flows, make_state, user, make_site, fill_evening):
    await make_site(user)
    await fill_evening(user, "600", "900")
    chat = FakeChat()
    state = make_state(user)
    await flows.edit.start(chat, state, user)
    await flows.edit.select_mode(chat, state, user, "name")
    await flows.edit.select_name(chat, state, user, 5)
    assert "Сессия не найдена" in chat.last_text
    assert await state.get_state() is None


@pytest.mark.asyncio
async def test_history_lists_field_edits(flows, repo, make_state, user, make_site, fill_evening):
    site = await make_site(user)
    await fill_evening(user, "600", "900")
    (report,) = await repo.reports_by_site(site.id, site.date)
    chat = FakeChat()
    state = make_state(user)
    await flows.edit.start(chat, state, user)
    await flows.edit.select_mode(chat, state, user, "site")
    await flows.edit.select_site(chat, state, user, site.id)

    await flows.edit.history(chat, state, user)
    assert EMPTY_HISTORY in [text for text, _ in chat.sent]

    await flows.edit.select_field(chat, state, user, "lastname")
    await flows.edit.value(chat, state, user, "Смирнова")
    await flows.edit.select_field(chat, state, user, "qr_amount")
    await flows.edit.value(chat, state, user, "700")
    await flows.edit.finish(chat, state, user)

    chat.reset()
    await flows.edit.start(chat, state, user)
    await flows.edit.select_mode(chat, state, user, "site")
    await flows.edit.select_site(chat, state, user, site.id)
    await flows.edit.history(chat, state, user)
    text = chat.all_text()
    assert "Всего изменений: 2" in text
    assert "Было: Иванова" in text
    assert "Стало: Смирнова" in text
    assert "Было: 600 ₽" in text
    assert "Стало: 700 ₽" in text


@pytest.mark.asyncio
async def test_invalid_value_repeats_prompt(flows, repo, make_state, user, make_site, fill_evening):
    site = await make_site(user)
    await fill_evening(user, "600", "900")
    chat = FakeChat()
    state = make_state(user)
    await flows.edit.start(chat, state, user)
    await flows.edit.select_mode(chat, state, user, "site")
    await flows.edit.select_site(chat, state, user, site.id)
    await flows.edit.select_field(chat, state, user, "qr_amount")
    prompt = chat.last_text
    assert prompt.startswith("Текущее значение «")

    await flows.edit.value(chat, state, user, "-5")
    assert chat.sent[-2][0] == "❌ Пожалуйста, введите корректное неотрицательное число"
    assert chat.last_text == prompt
    assert await state.get_state() == EditFSM.value.state

    await flows.edit.select_field(chat, state, user, "lastname")
    await flows.edit.value(chat, state, user, "   ")
    assert chat.sent[-2][0] == "❌ Значение не может быть пустым"
    assert chat.last_text.startswith("Текущее значение «")
    assert await state.get_state() == EditFSM.value.state
