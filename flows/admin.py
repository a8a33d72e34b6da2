"""Admin panel: site overview, summary PDF, edit history, admin roles."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from aiogram.fsm.context import FSMContext

from errors import AccessDeniedError, NotFoundError
from flows.base import BaseFlow, flow_step
from flows.chat import Chat
from flows.contexts import AdminContext, load_context, save_context, start_context
from flows.states import AdminFSM
from services.best_revenue import reassign_best_revenue_bonus
from services.calculation import format_amount
from services.history import render_report_history
from services.models import ROLE_ADMIN, ROLE_USER, SITE_STATUS_LABELS, User
from services.pdf import build_site_summary, render_pdf
from services.repository import Repository
from utils.dates import format_date_short, moscow_today
from utils.text import split_blocks
from utils.ui import admin_panel_kb, flow_kb, main_menu_kb, reports_kb, sites_kb

logger = logging.getLogger(__name__)

NO_SITES = "На сегодня нет площадок"
BAD_TELEGRAM_ID = "❌ Пожалуйста, введите корректный Telegram ID (число)"


class AdminFlow(BaseFlow):
    name = "admin"

    def __init__(
        self,
        repo: Repository,
        today: Callable[[], str] = moscow_today,
        font_path: str | None = None,
    ) -> None:
        super().__init__(repo, today)
        self.font_path = font_path

    @staticmethod
    def _require_admin(user: User) -> None:
        if not user.is_admin:
            raise AccessDeniedError("У вас нет доступа к админ-панели")

    @staticmethod
    def _require_superadmin(user: User) -> None:
        if not user.is_superadmin:
            raise AccessDeniedError("Только супер-админ может управлять ролями админов")

    @flow_step("panel")
    async def panel(self, chat: Chat, state: FSMContext, user: User) -> None:
        self._require_admin(user)
        await chat.answer("Админ-панель:", reply_markup=admin_panel_kb(user))

    @flow_step("view_sites")
    async def view_sites(self, chat: Chat, state: FSMContext, user: User) -> None:
        self._require_admin(user)
        today = self.today()
        sites = await self.repo.sites_by_date(today)
        if not sites:
            return await chat.answer(NO_SITES)
        blocks = [f"📊 Площадки на {format_date_short(today)}:"]
        for site in sites:
            reports = await self.repo.reports_by_site(site.id, site.date)
            lines = [
                f"📍 {site.name}",
                f"Ответственный: {site.responsible_name}",
                f"Статус: {SITE_STATUS_LABELS.get(site.status, site.status)}",
                f"Отчётов: {len(reports)}",
            ]
            if reports:
                lines.append(f"Общая выручка: {format_amount(sum(r.total_revenue for r in reports))}")
            blocks.append("\n".join(lines))
        for part in split_blocks(blocks):
            await chat.answer(part)

    @flow_step("pdf_menu")
    async def pdf_menu(self, chat: Chat, state: FSMContext, user: User) -> None:
        self._require_admin(user)
        sites = await self.repo.sites_by_date(self.today())
        if not sites:
            return await chat.answer(NO_SITES)
        await chat.answer("Выберите площадку для генерации PDF:", reply_markup=sites_kb(sites, "admin_pdf"))

    @flow_step("pdf")
    async def generate_pdf(self, chat: Chat, state: FSMContext, user: User, site_id: str) -> None:
        self._require_admin(user)
        site = await self.repo.require_site(site_id)
        if not await self.repo.reports_by_site(site.id, site.date):
            return await chat.answer("❌ Отчёты по этой площадке не найдены")
        await reassign_best_revenue_bonus(self.repo, site.id, site.date, user.id)
        reports = await self.repo.reports_by_site(site.id, site.date)
        document = build_site_summary(site, reports)
        data = await asyncio.to_thread(render_pdf, document, self.font_path)
        await chat.answer_document(
            data,
            filename=f"summary_{site.id}_{site.date}.pdf",
            caption=f"Сводный отчёт по площадке: {site.name} - {format_date_short(site.date)}",
        )
        await self.log(user, "pdf_generated", {"site_id": site.id, "reports_count": len(reports)})

    @flow_step("history_menu")
    async def history_menu(self, chat: Chat, state: FSMContext, user: User) -> None:
        self._require_admin(user)
        sites = await self.repo.sites_by_date(self.today())
        if not sites:
            return await chat.answer(NO_SITES)
        await start_context(state, AdminContext(), AdminFSM.history_site)
        await chat.answer("Выберите площадку:", reply_markup=sites_kb(sites, "admin_history_site"))

    @flow_step("history_site")
    async def history_site(self, chat: Chat, state: FSMContext, user: User, site_id: str) -> None:
        self._require_admin(user)
        ctx = await load_context(state, AdminContext)
        site = await self.repo.require_site(site_id)
        reports = await self.repo.reports_by_site(site.id, site.date)
        if not reports:
            await state.clear()
            return await chat.edit("❌ Отчёты по этой площадке не найдены")
        ctx.site_id = site.id
        await save_context(state, ctx, AdminFSM.history_report)
        await chat.edit("Выберите отчёт:", reply_markup=reports_kb(reports, "admin_history_report"))

    @flow_step("history_report")
    async def history_report(self, chat: Chat, state: FSMContext, user: User, report_id: str) -> None:
        self._require_admin(user)
        await load_context(state, AdminContext)
        report = await self.repo.require_report(report_id)
        await state.clear()
        for part in await render_report_history(self.repo, report):
            await chat.answer(part)

    @flow_step("add_admin_prompt")
    async def add_admin_prompt(self, chat: Chat, state: FSMContext, user: User) -> None:
        self._require_superadmin(user)
        await start_context(state, AdminContext(), AdminFSM.add_admin)
        await chat.answer("Введите Telegram ID пользователя, которого нужно сделать админом:", reply_markup=flow_kb())

    @flow_step("remove_admin_prompt")
    async def remove_admin_prompt(self, chat: Chat, state: FSMContext, user: User) -> None:
        self._require_superadmin(user)
        await start_context(state, AdminContext(), AdminFSM.remove_admin)
        await chat.answer(
            "Введите Telegram ID пользователя, у которого нужно убрать роль админа:", reply_markup=flow_kb()
        )

    async def _target(self, chat: Chat, text: str) -> User | None:
        raw = (text or "").strip()
        if not raw.isdigit():
            await chat.answer(BAD_TELEGRAM_ID, reply_markup=flow_kb())
            return None
        target = await self.repo.get_user_by_telegram_id(int(raw))
        if target is None:
            raise NotFoundError("user", raw)
        return target

    @flow_step("add_admin")
    async def add_admin(self, chat: Chat, state: FSMContext, user: User, text: str) -> None:
        self._require_superadmin(user)
        target = await self._target(chat, text)
        if target is None:
            return
        await state.clear()
        if target.is_admin:
            return await chat.answer("Пользователь уже является админом", reply_markup=main_menu_kb(user))
        old_role = target.role
        target.role = ROLE_ADMIN
        await self.repo.update_user(target)
        await self.repo.create_log(
            user.id,
            "admin_added",
            {"user_id": target.id, "old_role": old_role},
            {"user_id": target.id, "new_role": ROLE_ADMIN},
        )
        await chat.answer(f"✅ Пользователь {target.display_name} теперь админ", reply_markup=main_menu_kb(user))

    @flow_step("remove_admin")
    async def remove_admin(self, chat: Chat, state: FSMContext, user: User, text: str) -> None:
        self._require_superadmin(user)
        target = await self._target(chat, text)
        if target is None:
            return
        await state.clear()
        if target.is_superadmin:
            return await chat.answer("❌ Нельзя убрать роль у супер-админа", reply_markup=main_menu_kb(user))
        if not target.is_admin:
            return await chat.answer("Пользователь уже является обычным пользователем", reply_markup=main_menu_kb(user))
        old_role = target.role
        target.role = ROLE_USER
        await self.repo.update_user(target)
        await self.repo.create_log(
            user.id,
            "admin_removed",
            {"user_id": target.id, "old_role": old_role},
            {"user_id": target.id, "new_role": ROLE_USER},
        )
        await chat.answer(
            f"✅ Роль админа убрана у пользователя {target.display_name}", reply_markup=main_menu_kb(user)
        )
