import pytest

from flows.base import NO_ACTIVE_FLOW_TEXT, REQUIRED_FIELD_TEXT
from flows.states import EveningFillFSM, MorningFillFSM

from conftest import buttons


@pytest.mark.asyncio
async def test_controls_without_flow(flows, chat, state, user):
    for action in (flows.navigation.skip, flows.navigation.back, flows.navigation.ok, flows.navigation.cancel):
        await action(chat, state, user)
        assert chat.last_text == NO_ACTIVE_FLOW_TEXT


@pytest.mark.asyncio
async def test_skip_on_required_step(flows, chat, state, user):
    await flows.morning.start(chat, state, user)
    await flows.navigation.skip(chat, state, user)
    assert chat.last_text == REQUIRED_FIELD_TEXT
    assert await state.get_state() == MorningFillFSM.site_name.state


@pytest.mark.asyncio
async def test_back_outside_evening_flow(flows, chat, state, user):
    await flows.morning.start(chat, state, user)
    await flows.navigation.back(chat, state, user)
    assert chat.last_text == "Возврат назад недоступен на этом шаге"


@pytest.mark.asyncio
async def test_ok_outside_confirm(flows, chat, state, user):
    await flows.morning.start(chat, state, user)
    await flows.navigation.ok(chat, state, user)
    assert chat.last_text == "Подтверждение недоступно на этом шаге"


@pytest.mark.asyncio
async def test_cancel_asks_then_clears(flows, chat, state, user):
    await flows.morning.start(chat, state, user)
    await flows.morning.site_name(chat, state, user, "Парк")
    await flows.navigation.cancel(chat, state, user)
    assert [cb for _, cb in buttons(chat.last_markup)] == ["cancel:yes", "cancel:no"]

    await flows.navigation.cancel_confirmed(chat, state, user, False)
    assert chat.edited[-1][0] == "Продолжаем заполнение"
    assert await state.get_state() == MorningFillFSM.bonus_target.state

    await flows.navigation.cancel_confirmed(chat, state, user, True)
    assert chat.edited[-1][0] == "Заполнение отменено"
    assert chat.last_text == "Главное меню:"
    assert await state.get_state() is None
    assert await state.get_data() == {}


@pytest.mark.asyncio
async def test_cancel_in_idle_forgets_site(flows, state, user, make_site, fill_evening, chat):
    await make_site(user)
    await fill_evening(user, "600", "900")
    assert await state.get_state() == EveningFillFSM.idle.state
    await flows.navigation.cancel(chat, state, user)
    assert chat.last_text == NO_ACTIVE_FLOW_TEXT
    assert await state.get_state() is None


@pytest.mark.asyncio
async def test_skip_in_confirm_shows_hint(flows, chat, state, user, make_site):
    await make_site(user)
    await flows.evening.start(chat, state, user)
    await flows.evening.qr_number(chat, state, user, "QR")
    await flows.evening.qr_amount(chat, state, user, "1")
    await flows.evening.cash_amount(chat, state, user, "1")
    await flows.evening.skip_terminal_amount(chat, state, user)
    await flows.evening.skip_comment(chat, state, user)
    await flows.navigation.skip(chat, state, user)
    assert "Нажмите «✅ Ок»" in chat.last_text
    assert await state.get_state() == EveningFillFSM.confirm.state
