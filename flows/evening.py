"""Evening fill: one employee's daily report on a site."""

from __future__ import annotations

import logging

from aiogram.fsm.context import FSMContext

from errors import AccessDeniedError, NotFoundError, ValidationError
from flows.base import BaseFlow, flow_step
from flows.chat import Chat
from flows.contexts import EveningFillContext, context_from_data, load_context, save_context, start_context
from flows.states import EVENING_ORDER, EveningFillFSM
from services.calculation import format_amount, parse_amount
from services.models import SITE_COMPLETED, SITE_EVENING_FILLED, DailyReport, Site, User
from services.payroll import build_report
from utils.ui import flow_kb, main_menu_kb, sites_kb

logger = logging.getLogger(__name__)

PROMPTS = {
    EveningFillFSM.lastname.state: "Введите фамилию сотрудника:",
    EveningFillFSM.firstname.state: "Введите имя сотрудника:",
    EveningFillFSM.qr_number.state: "Введите № QR:",
    EveningFillFSM.qr_amount.state: "Введите сумму по QR (в рублях, например: 1000 или 1000,50):",
    EveningFillFSM.cash_amount.state: "Введите сумму наличных (в рублях):",
    EveningFillFSM.terminal_amount.state: "Введите сумму по терминалу (в рублях) или нажмите «Далее», чтобы пропустить:",
    EveningFillFSM.comment.state: "Введите комментарий по итогам дня или нажмите «Далее», чтобы пропустить:",
}
NO_SITES = "❌ На сегодня нет заполненных площадок. Сначала заполните утреннюю форму."
BAD_AMOUNT = "❌ Пожалуйста, введите корректное неотрицательное число (например: 1000 или 1000,50)"
EMPTY_TEXT = "❌ Значение не может быть пустым"
FIRST_STEP = "Вы на первом шаге"
CONFIRM_HINT = "Нажмите «✅ Ок», чтобы сохранить отчёт, или «⬅️ Назад», чтобы исправить данные."


class EveningFillFlow(BaseFlow):
    name = "evening"

    @flow_step("start")
    async def start(self, chat: Chat, state: FSMContext, user: User) -> None:
        today = self.today()
        if await state.get_state() == EveningFillFSM.idle.state:
            remembered = context_from_data(await state.get_data())
            if isinstance(remembered, EveningFillContext) and remembered.site_id:
                site = await self.repo.get_site(remembered.site_id)
                if site is not None and site.date == today:
                    return await self._begin(chat, state, user, site)

        sites = await self.repo.sites_for_user(today, user)
        if not sites:
            await state.clear()
            return await chat.answer(NO_SITES, reply_markup=main_menu_kb(user))
        if len(sites) == 1:
            return await self._begin(chat, state, user, sites[0])
        await start_context(state, EveningFillContext(), EveningFillFSM.select_site)
        await chat.answer("Выберите площадку:", reply_markup=sites_kb(sites, "evening_site"))

    @flow_step("select_site")
    async def select_site(self, chat: Chat, state: FSMContext, user: User, site_id: str) -> None:
        await load_context(state, EveningFillContext)
        site = await self.repo.require_site(site_id)
        if not user.is_admin and site.responsible_user_id != user.id:
            raise AccessDeniedError("У вас нет доступа к этой площадке")
        await chat.edit(f"Площадка выбрана: {site.name}")
        await self._begin(chat, state, user, site)

    async def _begin(self, chat: Chat, state: FSMContext, user: User, site: Site) -> None:
        reports = await self.repo.reports_by_site(site.id, site.date)
        ctx = EveningFillContext(site_id=site.id)
        await self.log(user, "evening_fill_started", {"site_id": site.id})
        if reports:
            await start_context(state, ctx, EveningFillFSM.lastname)
            await chat.answer(f"Площадка: {site.name}")
            return await self._prompt(chat, EveningFillFSM.lastname.state, ctx)

        ctx.lastname = site.responsible_lastname
        ctx.firstname = site.responsible_firstname
        ctx.is_responsible = True
        await start_context(state, ctx, EveningFillFSM.qr_number)
        await chat.answer(
            f"Площадка: {site.name}\n"
            f"Первый отчёт заполняется на ответственного: {site.responsible_name}"
        )
        await self._prompt(chat, EveningFillFSM.qr_number.state, ctx)

    async def _prompt(self, chat: Chat, state_name: str, ctx: EveningFillContext) -> None:
        if state_name == EveningFillFSM.confirm.state:
            site = await self.repo.require_site(ctx.site_id)
            await chat.answer(self._summary(site, self._preview(site, ctx)), reply_markup=flow_kb(back=True, confirm=True))
            return
        await chat.answer(PROMPTS[state_name], reply_markup=flow_kb(back=True))

    async def _text_step(self, chat: Chat, state: FSMContext, text: str, attr: str, current, nxt) -> None:
        ctx = await load_context(state, EveningFillContext)
        value = (text or "").strip()
        if not value:
            await chat.answer(EMPTY_TEXT)
            return await self._prompt(chat, current.state, ctx)
        setattr(ctx, attr, value)
        await save_context(state, ctx, nxt)
        await self._prompt(chat, nxt.state, ctx)

    async def _amount_step(self, chat: Chat, state: FSMContext, text: str, attr: str, current, nxt) -> None:
        ctx = await load_context(state, EveningFillContext)
        try:
            amount = parse_amount(text)
        except ValidationError as exc:
            logger.debug("[evening] bad amount %r: %s", text, exc)
            await chat.answer(BAD_AMOUNT)
            return await self._prompt(chat, current.state, ctx)
        setattr(ctx, attr, amount)
        await save_context(state, ctx, nxt)
        await self._prompt(chat, nxt.state, ctx)

    @flow_step("lastname")
    async def lastname(self, chat: Chat, state: FSMContext, user: User, text: str) -> None:
        await self._text_step(chat, state, text, "lastname", EveningFillFSM.lastname, EveningFillFSM.firstname)

    @flow_step("firstname")
    async def firstname(self, chat: Chat, state: FSMContext, user: User, text: str) -> None:
        await self._text_step(chat, state, text, "firstname", EveningFillFSM.firstname, EveningFillFSM.qr_number)

    @flow_step("qr_number")
    async def qr_number(self, chat: Chat, state: FSMContext, user: User, text: str) -> None:
        await self._text_step(chat, state, text, "qr_number", EveningFillFSM.qr_number, EveningFillFSM.qr_amount)

    @flow_step("qr_amount")
    async def qr_amount(self, chat: Chat, state: FSMContext, user: User, text: str) -> None:
        await self._amount_step(chat, state, text, "qr_amount", EveningFillFSM.qr_amount, EveningFillFSM.cash_amount)

    @flow_step("cash_amount")
    async def cash_amount(self, chat: Chat, state: FSMContext, user: User, text: str) -> None:
        await self._amount_step(
            chat, state, text, "cash_amount", EveningFillFSM.cash_amount, EveningFillFSM.terminal_amount
        )

    @flow_step("terminal_amount")
    async def terminal_amount(self, chat: Chat, state: FSMContext, user: User, text: str) -> None:
        await self._amount_step(
            chat, state, text, "terminal_amount", EveningFillFSM.terminal_amount, EveningFillFSM.comment
        )

    @flow_step("terminal_amount_skip")
    async def skip_terminal_amount(self, chat: Chat, state: FSMContext, user: User) -> None:
        ctx = await load_context(state, EveningFillContext)
        ctx.terminal_amount = None
        await save_context(state, ctx, EveningFillFSM.comment)
        await self._prompt(chat, EveningFillFSM.comment.state, ctx)

    @flow_step("comment")
    async def comment(self, chat: Chat, state: FSMContext, user: User, text: str) -> None:
        ctx = await load_context(state, EveningFillContext)
        ctx.comment = (text or "").strip() or None
        await save_context(state, ctx, EveningFillFSM.confirm)
        await self._prompt(chat, EveningFillFSM.confirm.state, ctx)

    @flow_step("comment_skip")
    async def skip_comment(self, chat: Chat, state: FSMContext, user: User) -> None:
        ctx = await load_context(state, EveningFillContext)
        ctx.comment = None
        await save_context(state, ctx, EveningFillFSM.confirm)
        await self._prompt(chat, EveningFillFSM.confirm.state, ctx)

    @flow_step("confirm_hint")
    async def confirm_hint(self, chat: Chat, state: FSMContext, user: User) -> None:
        await chat.answer(CONFIRM_HINT, reply_markup=flow_kb(back=True, confirm=True))

    @flow_step("back")
    async def back(self, chat: Chat, state: FSMContext, user: User) -> None:
        ctx = await load_context(state, EveningFillContext)
        current = await state.get_state()
        order = [s.state for s in EVENING_ORDER]
        if ctx.is_responsible:
            order = [s for s in order if s not in (EveningFillFSM.lastname.state, EveningFillFSM.firstname.state)]
        idx = order.index(current) if current in order else -1
        if idx <= 0:
            return await chat.answer(FIRST_STEP, reply_markup=flow_kb(back=True))
        previous = order[idx - 1]
        await state.set_state(previous)
        await self._prompt(chat, previous, ctx)

    @flow_step("confirm")
    async def confirm(self, chat: Chat, state: FSMContext, user: User) -> None:
        ctx = await load_context(state, EveningFillContext)
        site = await self.repo.require_site(ctx.site_id)
        report = await self.repo.create_report(self._preview(site, ctx))
        # the session leaves confirm as soon as the report exists
        await start_context(state, EveningFillContext(site_id=site.id), EveningFillFSM.idle)
        if site.status != SITE_COMPLETED:
            site.status = SITE_EVENING_FILLED
            await self.repo.update_site(site)
        await self.log(user, "evening_fill_completed", {"report_id": report.id, "site_id": site.id}, report_id=report.id)
        logger.info("[evening] report=%s site=%s user=%s", report.id, site.id, user.telegram_id)
        await chat.answer(
            "✅ Отчёт сохранён!\n\n"
            "📊 Итоги:\n"
            f"Выручка: {format_amount(report.total_revenue)}\n"
            f"Зарплата: {format_amount(report.salary)}\n"
            f"Оборот: {format_amount(report.total_daily)}\n"
            f"Нал в конверте: {format_amount(report.cash_in_envelope)}\n\n"
            "⚠️ Пожалуйста, проверьте соответствие сумм с отчётом.\n"
            f"Чтобы заполнить отчёт следующего сотрудника на площадке «{site.name}», "
            "снова нажмите кнопку вечернего заполнения.",
            reply_markup=main_menu_kb(user),
        )

    @staticmethod
    def _preview(site: Site, ctx: EveningFillContext) -> DailyReport:
        if not ctx.lastname or not ctx.firstname or not ctx.qr_number:
            raise NotFoundError("session")
        if ctx.qr_amount is None or ctx.cash_amount is None:
            raise NotFoundError("session")
        return build_report(
            site,
            lastname=ctx.lastname,
            firstname=ctx.firstname,
            qr_number=ctx.qr_number,
            qr_amount=ctx.qr_amount,
            cash_amount=ctx.cash_amount,
            terminal_amount=ctx.terminal_amount,
            comment=ctx.comment,
            is_responsible=ctx.is_responsible,
        )

    @staticmethod
    def _summary(site: Site, report: DailyReport) -> str:
        employee = report.full_name + (" (ответственный)" if report.is_responsible else "")
        terminal = format_amount(report.terminal_amount) if report.terminal_amount is not None else "—"
        return (
            "📋 Проверьте данные отчёта:\n\n"
            f"Площадка: {site.name}\n"
            f"Сотрудник: {employee}\n"
            f"№ QR: {report.qr_number}\n"
            f"Сумма по QR: {format_amount(report.qr_amount)}\n"
            f"Сумма наличных: {format_amount(report.cash_amount)}\n"
            f"Сумма по терминалу: {terminal}\n"
            f"Комментарий: {report.comment or '—'}\n\n"
            "📊 Предварительный расчёт:\n"
            f"Выручка: {format_amount(report.total_revenue)}\n"
            f"Зарплата: {format_amount(report.salary)}\n"
            f"Бонус по планкам: {format_amount(report.bonus_by_targets)}\n"
            f"Оборот: {format_amount(report.total_daily)}\n"
            f"Нал в конверте: {format_amount(report.cash_in_envelope)}\n\n"
            f"{CONFIRM_HINT}"
        )
