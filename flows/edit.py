"""Editing an existing daily report through a field menu.

Entered values are staged in the session and written by "finish", so a
report is recalculated and logged once per editing session.
"""

from __future__ import annotations

import logging
from typing import Any

from aiogram.fsm.context import FSMContext

from errors import AccessDeniedError, NotFoundError, ValidationError
from flows.base import BaseFlow, flow_step
from flows.chat import Chat
from flows.contexts import EditContext, load_context, save_context, start_context
from flows.states import EditFSM
from services.calculation import format_amount
from services.history import render_report_history
from services.models import DailyReport, Site, User
from services.payroll import EditableField, apply_field_edits
from utils.ui import edit_menu_kb, edit_mode_kb, flow_kb, main_menu_kb, names_kb, reports_kb, sites_kb

logger = logging.getLogger(__name__)

MODE_BY_NAME = "name"
MODE_BY_SITE = "site"

BAD_AMOUNT = "❌ Пожалуйста, введите корректное неотрицательное число"
EMPTY_TEXT = "❌ Значение не может быть пустым"


class EditFlow(BaseFlow):
    name = "edit"

    @flow_step("start")
    async def start(self, chat: Chat, state: FSMContext, user: User) -> None:
        await start_context(state, EditContext(), EditFSM.select_mode)
        await chat.answer("Выберите режим редактирования:", reply_markup=edit_mode_kb())

    async def _user_sites(self, chat: Chat, state: FSMContext, user: User) -> list[Site]:
        sites = await self.repo.sites_for_user(self.today(), user)
        if not sites:
            await state.clear()
            text = "❌ На сегодня нет площадок" if user.is_admin else "❌ На сегодня нет ваших площадок"
            await chat.edit(text)
        return sites

    def _check_access(self, user: User, site: Site, what: str) -> None:
        if not user.is_admin and site.responsible_user_id != user.id:
            raise AccessDeniedError(f"У вас нет доступа к редактированию {what}")

    @flow_step("select_mode")
    async def select_mode(self, chat: Chat, state: FSMContext, user: User, mode: str) -> None:
        ctx = await load_context(state, EditContext)
        sites = await self._user_sites(chat, state, user)
        if not sites:
            return
        ctx.mode = mode
        if mode == MODE_BY_SITE:
            await save_context(state, ctx, EditFSM.select_site)
            return await chat.edit("Выберите площадку:", reply_markup=sites_kb(sites, "edit_site", with_date=True))

        reports: list[DailyReport] = []
        for site in sites:
            reports.extend(await self.repo.reports_by_site(site.id, site.date))
        if not reports:
            await state.clear()
            return await chat.edit("❌ На ваших площадках нет отчётов для редактирования")
        # full name, not surname: two employees may share a last name
        ctx.names = sorted({r.full_name for r in reports})
        await save_context(state, ctx, EditFSM.select_name)
        await chat.edit("Выберите сотрудника:", reply_markup=names_kb(ctx.names))

    @flow_step("select_name")
    async def select_name(self, chat: Chat, state: FSMContext, user: User, index: int) -> None:
        ctx = await load_context(state, EditContext)
        if not 0 <= index < len(ctx.names):
            raise NotFoundError("session")
        full_name = ctx.names[index].lower()
        sites = await self.repo.sites_for_user(self.today(), user)
        reports: list[DailyReport] = []
        for site in sites:
            reports.extend(
                r for r in await self.repo.reports_by_site(site.id, site.date) if r.full_name.lower() == full_name
            )
        if not reports:
            await state.clear()
            return await chat.edit("❌ Отчёты с такой фамилией и именем не найдены")
        if len(reports) == 1:
            return await self._open(chat, state, user, ctx, reports[0].id)
        await save_context(state, ctx, EditFSM.select_report)
        await chat.edit(
            "Выберите отчёт для редактирования:",
            reply_markup=reports_kb(reports, "edit_report", {s.id: s.name for s in sites}),
        )

    @flow_step("select_site")
    async def select_site(self, chat: Chat, state: FSMContext, user: User, site_id: str) -> None:
        ctx = await load_context(state, EditContext)
        site = await self.repo.require_site(site_id)
        self._check_access(user, site, "этой площадки")
        reports = await self.repo.reports_by_site(site.id, site.date)
        if not reports:
            await state.clear()
            return await chat.edit("❌ Отчёты по этой площадке не найдены")
        if len(reports) == 1:
            return await self._open(chat, state, user, ctx, reports[0].id)
        await save_context(state, ctx, EditFSM.select_report)
        await chat.edit(
            "Выберите отчёт для редактирования:",
            reply_markup=reports_kb(reports, "edit_report", {site.id: site.name}),
        )

    @flow_step("select_report")
    async def select_report(self, chat: Chat, state: FSMContext, user: User, report_id: str) -> None:
        ctx = await load_context(state, EditContext)
        await self._open(chat, state, user, ctx, report_id)

    async def _open(self, chat: Chat, state: FSMContext, user: User, ctx: EditContext, report_id: str) -> None:
        report = await self.repo.require_report(report_id)
        site = await self.repo.require_site(report.site_id)
        self._check_access(user, site, "этого отчёта")
        ctx.report_id = report.id
        ctx.current_field = None
        ctx.pending = {}
        await save_context(state, ctx, EditFSM.menu)
        await chat.edit(f"Редактирование отчёта: {report.full_name} ({site.name})")
        await self._show_menu(chat, report, ctx)

    @staticmethod
    def _value(field: EditableField, report: DailyReport, ctx: EditContext) -> Any:
        return ctx.pending[field.value] if field.value in ctx.pending else field.read(report)

    async def _show_menu(self, chat: Chat, report: DailyReport, ctx: EditContext) -> None:
        values = [(f.value, f.label, f.format(self._value(f, report, ctx))) for f in EditableField]
        await chat.answer("Выберите параметр для редактирования:", reply_markup=edit_menu_kb(values))

    @flow_step("select_field")
    async def select_field(self, chat: Chat, state: FSMContext, user: User, field_key: str) -> None:
        ctx = await load_context(state, EditContext)
        report = await self.repo.require_report(ctx.report_id)
        try:
            field = EditableField(field_key)
        except ValueError:
            return await chat.answer("❌ Поле не найдено")
        ctx.current_field = field.value
        await save_context(state, ctx, EditFSM.value)
        await self._prompt_value(chat, field, report, ctx)

    async def _prompt_value(self, chat: Chat, field: EditableField, report: DailyReport, ctx: EditContext) -> None:
        await chat.answer(
            f"Текущее значение «{field.label}»: {field.format(self._value(field, report, ctx))}\n"
            "Введите новое значение или нажмите «Далее», чтобы оставить без изменений:",
            reply_markup=flow_kb(),
        )

    async def _current_field(self, state: FSMContext) -> tuple[EditContext, EditableField]:
        ctx = await load_context(state, EditContext)
        try:
            return ctx, EditableField(ctx.current_field)
        except ValueError:
            raise NotFoundError("session") from None

    @flow_step("value")
    async def value(self, chat: Chat, state: FSMContext, user: User, text: str) -> None:
        ctx, field = await self._current_field(state)
        report = await self.repo.require_report(ctx.report_id)
        try:
            parsed = field.parse(text)
        except ValidationError as exc:
            logger.debug("[edit] bad value for %s: %s", field.value, exc)
            await chat.answer(BAD_AMOUNT if field.is_amount else EMPTY_TEXT)
            return await self._prompt_value(chat, field, report, ctx)
        ctx.pending[field.value] = parsed
        ctx.current_field = None
        await save_context(state, ctx, EditFSM.menu)
        await chat.answer(f"✅ «{field.label}»: {field.format(parsed)}. Изменения сохранятся после завершения редактирования.")
        await self._show_menu(chat, report, ctx)

    @flow_step("value_skip")
    async def skip_value(self, chat: Chat, state: FSMContext, user: User) -> None:
        ctx, field = await self._current_field(state)
        report = await self.repo.require_report(ctx.report_id)
        ctx.current_field = None
        await save_context(state, ctx, EditFSM.menu)
        await chat.answer(f"«{field.label}» оставлено без изменений")
        await self._show_menu(chat, report, ctx)

    @flow_step("history")
    async def history(self, chat: Chat, state: FSMContext, user: User) -> None:
        ctx = await load_context(state, EditContext)
        report = await self.repo.require_report(ctx.report_id)
        for part in await render_report_history(self.repo, report):
            await chat.answer(part)
        await self._show_menu(chat, report, ctx)

    @flow_step("finish")
    async def finish(self, chat: Chat, state: FSMContext, user: User) -> None:
        ctx = await load_context(state, EditContext)
        report = await self.repo.require_report(ctx.report_id)
        edits = {EditableField(key): value for key, value in ctx.pending.items()}
        changes = await apply_field_edits(self.repo, report, edits, user.id)
        await state.clear()
        if not changes:
            return await chat.answer("Изменений нет, отчёт оставлен без изменений.", reply_markup=main_menu_kb(user))
        changed = ", ".join(c.field.label for c in changes)
        await chat.answer(
            "✅ Отчёт успешно обновлён!\n\n"
            f"Изменено: {changed}\n"
            f"Выручка: {format_amount(report.total_revenue)}\n"
            f"Зарплата: {format_amount(report.salary)}\n"
            f"Бонус по планкам: {format_amount(report.bonus_by_targets)}\n"
            f"Нал в конверте: {format_amount(report.cash_in_envelope)}",
            reply_markup=main_menu_kb(user),
        )
