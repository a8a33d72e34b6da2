"""Posting a bonus/penalty or the responsible person's salary to a report."""

from __future__ import annotations

import logging

from aiogram.fsm.context import FSMContext

from errors import AccessDeniedError, NotFoundError, ValidationError
from flows.base import BaseFlow, flow_step
from flows.chat import Chat
from flows.contexts import BonusContext, load_context, save_context, start_context
from flows.states import BonusFSM
from services.calculation import format_amount, format_signed_amount, parse_amount
from services.models import DailyReport, Site, User
from services.payroll import (
    BONUS_TYPE_PENALTY,
    BONUS_TYPE_RESPONSIBLE_SALARY,
    post_bonus_penalty,
    post_responsible_salary,
)
from utils.ui import bonus_type_kb, flow_kb, main_menu_kb, reports_kb, sites_kb

logger = logging.getLogger(__name__)

BAD_PENALTY = (
    "❌ Пожалуйста, введите корректное ненулевое число.\n"
    "Для бонуса: положительное число (например: 500)\n"
    "Для штрафа: отрицательное число (например: -500)"
)
BAD_RESPONSIBLE_SALARY = "❌ ЗП ответственного должна быть положительным числом (например: 1500)"


class BonusPenaltyFlow(BaseFlow):
    name = "bonus"

    @flow_step("start")
    async def start(self, chat: Chat, state: FSMContext, user: User) -> None:
        sites = await self.repo.sites_for_user(self.today(), user)
        if not sites:
            await state.clear()
            return await chat.answer("❌ На сегодня нет заполненных площадок.", reply_markup=main_menu_kb(user))
        if len(sites) == 1:
            return await self._open_site(chat, state, sites[0])
        await start_context(state, BonusContext(), BonusFSM.select_site)
        await chat.answer("Выберите площадку:", reply_markup=sites_kb(sites, "bonus_site"))

    @flow_step("select_site")
    async def select_site(self, chat: Chat, state: FSMContext, user: User, site_id: str) -> None:
        await load_context(state, BonusContext)
        site = await self.repo.require_site(site_id)
        if not user.is_admin and site.responsible_user_id != user.id:
            raise AccessDeniedError("У вас нет доступа к этой площадке")
        await chat.edit(f"Площадка выбрана: {site.name}")
        await self._open_site(chat, state, site)

    async def _open_site(self, chat: Chat, state: FSMContext, site: Site) -> None:
        reports = await self.repo.reports_by_site(site.id, site.date)
        if not reports:
            await state.clear()
            return await chat.answer("❌ На этой площадке нет сотрудников за сегодня.")
        await start_context(state, BonusContext(site_id=site.id), BonusFSM.select_employee)
        await chat.answer(
            f"Площадка: {site.name}\nВыберите сотрудника:",
            reply_markup=reports_kb(reports, "bonus_employee"),
        )

    @flow_step("select_employee")
    async def select_employee(self, chat: Chat, state: FSMContext, user: User, report_id: str) -> None:
        ctx = await load_context(state, BonusContext)
        report = await self.repo.require_report(report_id)
        if report.site_id != ctx.site_id:
            raise NotFoundError("report", report_id)
        ctx.report_id = report.id
        if report.is_responsible:
            await save_context(state, ctx, BonusFSM.select_type)
            return await chat.edit(
                f"Сотрудник выбран: {report.full_name} (ответственный)\nВыберите тип начисления:",
                reply_markup=bonus_type_kb(),
            )
        ctx.bonus_type = BONUS_TYPE_PENALTY
        await save_context(state, ctx, BonusFSM.input_amount)
        await chat.edit(f"Сотрудник выбран: {report.full_name}")
        await self._prompt(chat, report, ctx.bonus_type)

    @flow_step("select_type")
    async def select_type(self, chat: Chat, state: FSMContext, user: User, bonus_type: str) -> None:
        ctx = await load_context(state, BonusContext)
        if bonus_type not in (BONUS_TYPE_PENALTY, BONUS_TYPE_RESPONSIBLE_SALARY):
            return await chat.answer("❌ Неизвестный тип начисления", reply_markup=bonus_type_kb())
        report = await self.repo.require_report(ctx.report_id)
        ctx.bonus_type = bonus_type
        await save_context(state, ctx, BonusFSM.input_amount)
        label = "ЗП ответственного" if bonus_type == BONUS_TYPE_RESPONSIBLE_SALARY else "Бонус/штраф"
        await chat.edit(f"Тип начисления: {label}")
        await self._prompt(chat, report, bonus_type)

    async def _prompt(self, chat: Chat, report: DailyReport, bonus_type: str | None) -> None:
        if bonus_type == BONUS_TYPE_RESPONSIBLE_SALARY:
            text = (
                "Введите сумму ЗП ответственного (положительное число):\n\n"
                f"Текущая ЗП ответственного: {format_amount(report.responsible_salary_bonus)}"
            )
        else:
            text = (
                "Введите сумму бонуса (положительное число) или штрафа (отрицательное число, например: -500):\n\n"
                f"Текущий бонус/штраф: {format_signed_amount(report.bonus_penalty)}"
            )
        await chat.answer(text, reply_markup=flow_kb())

    @flow_step("input_amount")
    async def amount(self, chat: Chat, state: FSMContext, user: User, text: str) -> None:
        ctx = await load_context(state, BonusContext)
        report = await self.repo.require_report(ctx.report_id)
        responsible = ctx.bonus_type == BONUS_TYPE_RESPONSIBLE_SALARY
        try:
            value = parse_amount(text, allow_negative=True)
            if responsible:
                await post_responsible_salary(self.repo, report, value, user.id)
            else:
                await post_bonus_penalty(self.repo, report, value, user.id)
        except ValidationError as exc:
            logger.debug("[bonus] bad amount %r: %s", text, exc)
            await chat.answer(BAD_RESPONSIBLE_SALARY if responsible else BAD_PENALTY)
            return await self._prompt(chat, report, ctx.bonus_type)

        await state.clear()
        logger.info("[bonus] report=%s type=%s amount=%s user=%s", report.id, ctx.bonus_type, value, user.telegram_id)
        if responsible:
            text = (
                f"✅ ЗП ответственного {format_amount(value)} назначена сотруднику {report.full_name}!\n\n"
                f"Нал в конверте: {format_amount(report.cash_in_envelope)}"
            )
        else:
            what = f"бонус {format_signed_amount(value)}" if value > 0 else f"штраф {format_amount(value)}"
            text = (
                f"✅ {what} начислен сотруднику {report.full_name}!\n\n"
                f"Общий бонус/штраф: {format_signed_amount(report.bonus_penalty)}\n"
                f"Нал в конверте: {format_amount(report.cash_in_envelope)}"
            )
        await chat.answer(text, reply_markup=main_menu_kb(user))
