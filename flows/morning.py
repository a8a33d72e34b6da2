"""Morning fill: registers the day's site with its bonus tiers."""

from __future__ import annotations

import logging

from aiogram.fsm.context import FSMContext

from flows.base import REQUIRED_FIELD_TEXT, BaseFlow, flow_step
from flows.chat import Chat
from flows.contexts import MorningFillContext, load_context, save_context, start_context
from flows.states import MorningFillFSM
from services.models import SITE_MORNING_FILLED, User
from utils.bonus_targets import format_bonus_targets, parse_bonus_targets
from utils.dates import format_date_short
from utils.text import normalize_phone
from utils.ui import flow_kb, main_menu_kb, phone_kb

logger = logging.getLogger(__name__)

PROMPT_SITE_NAME = "Введите название площадки:"
PROMPT_BONUS_TARGET = (
    "Введите бонусные планки через запятую (в рублях, например: 1000, 2000, 3000):"
)
PROMPT_LASTNAME = "Введите фамилию ответственного:"
PROMPT_FIRSTNAME = "Введите имя ответственного:"
PROMPT_PHONE = "Введите номер телефона ответственного или нажмите «Далее», чтобы взять номер из профиля:"
BAD_BONUS_TARGET = "❌ Пожалуйста, введите одно или несколько неотрицательных чисел через запятую (например: 1000, 2000)"
BAD_PHONE = "❌ Введите номер в формате +7XXXXXXXXXX"
EMPTY_TEXT = "❌ Значение не может быть пустым"


class MorningFillFlow(BaseFlow):
    name = "morning"

    @flow_step("start")
    async def start(self, chat: Chat, state: FSMContext, user: User) -> None:
        await start_context(state, MorningFillContext(), MorningFillFSM.site_name)
        await self.log(user, "morning_fill_started")
        await chat.answer(PROMPT_SITE_NAME, reply_markup=flow_kb())

    @flow_step("site_name")
    async def site_name(self, chat: Chat, state: FSMContext, user: User, text: str) -> None:
        ctx = await load_context(state, MorningFillContext)
        name = (text or "").strip()
        if not name:
            await chat.answer(EMPTY_TEXT)
            return await chat.answer(PROMPT_SITE_NAME, reply_markup=flow_kb())
        ctx.site_name = name
        await save_context(state, ctx, MorningFillFSM.bonus_target)
        await chat.answer(PROMPT_BONUS_TARGET, reply_markup=flow_kb())

    @flow_step("bonus_target")
    async def bonus_target(self, chat: Chat, state: FSMContext, user: User, text: str) -> None:
        ctx = await load_context(state, MorningFillContext)
        targets = parse_bonus_targets(text)
        if targets is None:
            logger.debug("[morning] bad bonus targets %r", text)
            await chat.answer(BAD_BONUS_TARGET)
            return await chat.answer(PROMPT_BONUS_TARGET, reply_markup=flow_kb())
        ctx.bonus_targets = targets
        await save_context(state, ctx, MorningFillFSM.responsible_lastname)
        await chat.answer(PROMPT_LASTNAME, reply_markup=flow_kb())

    @flow_step("responsible_lastname")
    async def responsible_lastname(self, chat: Chat, state: FSMContext, user: User, text: str) -> None:
        ctx = await load_context(state, MorningFillContext)
        value = (text or "").strip()
        if not value:
            await chat.answer(EMPTY_TEXT)
            return await chat.answer(PROMPT_LASTNAME, reply_markup=flow_kb())
        ctx.responsible_lastname = value
        await save_context(state, ctx, MorningFillFSM.responsible_firstname)
        await chat.answer(PROMPT_FIRSTNAME, reply_markup=flow_kb())

    @flow_step("responsible_firstname")
    async def responsible_firstname(self, chat: Chat, state: FSMContext, user: User, text: str) -> None:
        ctx = await load_context(state, MorningFillContext)
        value = (text or "").strip()
        if not value:
            await chat.answer(EMPTY_TEXT)
            return await chat.answer(PROMPT_FIRSTNAME, reply_markup=flow_kb())
        ctx.responsible_firstname = value
        await save_context(state, ctx, MorningFillFSM.phone)
        await chat.answer(PROMPT_PHONE, reply_markup=phone_kb())

    @flow_step("phone")
    async def phone(self, chat: Chat, state: FSMContext, user: User, text: str) -> None:
        phone = normalize_phone(text)
        if phone is None:
            logger.debug("[morning] bad phone %r", text)
            await chat.answer(BAD_PHONE)
            return await chat.answer(PROMPT_PHONE, reply_markup=phone_kb())
        await self._finish(chat, state, user, phone)

    @flow_step("phone_skip")
    async def skip_phone(self, chat: Chat, state: FSMContext, user: User) -> None:
        if not user.phone:
            return await chat.answer(REQUIRED_FIELD_TEXT, reply_markup=phone_kb())
        await self._finish(chat, state, user, user.phone)

    async def _finish(self, chat: Chat, state: FSMContext, user: User, phone: str) -> None:
        ctx = await load_context(state, MorningFillContext)
        site = await self.repo.create_site(
            name=ctx.site_name or "",
            responsible_user_id=user.id,
            responsible_lastname=ctx.responsible_lastname or "",
            responsible_firstname=ctx.responsible_firstname or "",
            bonus_targets=ctx.bonus_targets,
            phone=phone,
            date=self.today(),
            status=SITE_MORNING_FILLED,
        )
        await self.log(user, "morning_fill_completed", {"site_id": site.id})
        await state.clear()
        logger.info("[morning] site=%s created by user=%s", site.id, user.telegram_id)
        await chat.answer(
            "✅ Утреннее заполнение завершено!\n\n"
            f"Площадка: {site.name}\n"
            f"Дата: {format_date_short(site.date)}\n"
            f"Ответственный: {site.responsible_name}\n"
            f"Телефон: {site.phone}\n"
            f"Бонусные планки: {format_bonus_targets(site.bonus_targets)}",
            reply_markup=main_menu_kb(user),
        )
