import pytest

import flows.admin as admin_module
from flows.admin import BAD_TELEGRAM_ID, NO_SITES
from flows.states import AdminFSM
from services.models import ROLE_ADMIN, ROLE_SUPERADMIN, ROLE_USER

from conftest import FakeChat, buttons


@pytest.fixture
def rendered(monkeypatch):
    documents = []

    def fake_render(document, font_path=None):
        documents.append(document)
        return b"%PDF-fake"

    monkeypatch.setattr(admin_module, "render_pdf", fake_render)
    return documents


@pytest.mark.asyncio
async def test_panel_requires_admin(flows, chat, state, user):
    await flows.admin.panel(chat, state, user)
    assert chat.last_text == "❌ У вас нет доступа к админ-панели"


@pytest.mark.asyncio
async def test_panel_buttons_by_role(flows, make_state, admin, superadmin):
    chat = FakeChat()
    await flows.admin.panel(chat, make_state(admin), admin)
    assert [cb for _, cb in buttons(chat.last_markup)] == ["admin:sites", "admin:pdf", "admin:history"]
    await flows.admin.panel(chat, make_state(superadmin), superadmin)
    assert "admin:add" in [cb for _, cb in buttons(chat.last_markup)]


@pytest.mark.asyncio
async def test_view_sites(flows, make_state, admin, user, make_site, fill_evening):
    chat = FakeChat()
    await flows.admin.view_sites(chat, make_state(admin), admin)
    assert chat.last_text == NO_SITES

    await make_site(user)
    await fill_evening(user, "600", "900")
    await flows.admin.view_sites(chat, make_state(admin), admin)
    assert "📍 Парк Горького" in chat.last_text
    assert "Отчётов: 1" in chat.last_text
    assert "Общая выручка: 1 500 ₽" in chat.last_text


@pytest.mark.asyncio
async def test_generate_pdf_reassigns_best_revenue(
    flows, repo, kv, make_state, admin, user, make_site, fill_evening, rendered
):
    site = await make_site(user)
    await fill_evening(user, "600", "900")
    await fill_evening(user, "1000", "1200", name=("Петров", "Пётр"))
    chat = FakeChat()

    await flows.admin.pdf_menu(chat, make_state(admin), admin)
    assert buttons(chat.last_markup) == [(site.name, f"admin_pdf:{site.id}")]
    await flows.admin.generate_pdf(chat, make_state(admin), admin, site.id)

    data, filename, caption = chat.documents[-1]
    assert data == b"%PDF-fake"
    assert filename == f"summary_{site.id}_{site.date}.pdf"
    assert site.name in caption

    first, second = await repo.reports_by_site(site.id, site.date)
    assert (first.best_revenue_bonus, second.best_revenue_bonus) == (0, 500)
    document = rendered[-1]
    assert document.rows[1][9] == "500 ₽"

    ids = await kv.lrange(f"logs:user:{admin.id}")
    last = await kv.get(f"log:{ids[0]}")
    assert last["action_type"] == "pdf_generated"
    assert last["payload_after"] == {"site_id": site.id, "reports_count": 2}


@pytest.mark.asyncio
async def test_generate_pdf_without_reports(flows, make_state, admin, user, make_site, rendered):
    site = await make_site(user)
    chat = FakeChat()
    await flows.admin.generate_pdf(chat, make_state(admin), admin, site.id)
    assert chat.last_text == "❌ Отчёты по этой площадке не найдены"
    assert chat.documents == []
    assert rendered == []


@pytest.mark.asyncio
async def test_generate_pdf_unknown_site(flows, make_state, admin, rendered):
    chat = FakeChat()
    await flows.admin.generate_pdf(chat, make_state(admin), admin, "site_404")
    assert chat.last_text == "❌ Площадка не найдена."


@pytest.mark.asyncio
async def test_history_view(flows, repo, make_state, admin, user, make_site, fill_evening):
    site = await make_site(user)
    await fill_evening(user, "600", "900")
    (report,) = await repo.reports_by_site(site.id, site.date)
    chat = FakeChat()
    state = make_state(admin)

    await flows.admin.history_menu(chat, state, admin)
    assert await state.get_state() == AdminFSM.history_site.state
    await flows.admin.history_site(chat, state, admin, site.id)
    assert await state.get_state() == AdminFSM.history_report.state
    await flows.admin.history_report(chat, state, admin, report.id)
    assert await state.get_state() is None
    assert "История изменений пуста" in chat.last_text


@pytest.mark.asyncio
async def test_add_and_remove_admin(flows, repo, make_state, superadmin, user):
    chat = FakeChat()
    state = make_state(superadmin)

    await flows.admin.add_admin_prompt(chat, state, superadmin)
    assert await state.get_state() == AdminFSM.add_admin.state
    await flows.admin.add_admin(chat, state, superadmin, "не число")
    assert chat.last_text == BAD_TELEGRAM_ID
    assert await state.get_state() == AdminFSM.add_admin.state

    await flows.admin.add_admin(chat, state, superadmin, str(user.telegram_id))
    assert (await repo.get_user(user.id)).role == ROLE_ADMIN
    assert await state.get_state() is None

    await flows.admin.add_admin_prompt(chat, state, superadmin)
    await flows.admin.add_admin(chat, state, superadmin, str(user.telegram_id))
    assert chat.last_text == "Пользователь уже является админом"

    await flows.admin.remove_admin_prompt(chat, state, superadmin)
    await flows.admin.remove_admin(chat, state, superadmin, str(user.telegram_id))
    assert (await repo.get_user(user.id)).role == ROLE_USER

    await flows.admin.remove_admin_prompt(chat, state, superadmin)
    await flows.admin.remove_admin(chat, state, superadmin, str(superadmin.telegram_id))
    assert chat.last_text == "❌ Нельзя убрать роль у супер-админа"
    assert (await repo.get_user(superadmin.id)).role == ROLE_SUPERADMIN


@pytest.mark.asyncio
async def test_unknown_user_for_role_change(flows, make_state, superadmin):
    chat = FakeChat()
    state = make_state(superadmin)
    await flows.admin.add_admin_prompt(chat, state, superadmin)
    await flows.admin.add_admin(chat, state, superadmin, "999999")
    assert chat.last_text == "❌ Пользователь не найден."
    assert await state.get_state() is None


@pytest.mark.asyncio
async def test_only_superadmin_manages_roles(flows, make_state, admin, user, repo):
    chat = FakeChat()
    await flows.admin.add_admin_prompt(chat, make_state(admin), admin)
    assert chat.last_text == "❌ Только супер-админ может управлять ролями админов"
    await flows.admin.add_admin(chat, make_state(admin), admin, str(user.telegram_id))
    assert (await repo.get_user(user.id)).role == ROLE_USER
