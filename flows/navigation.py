"""Reply-keyboard navigation shared by all flows: skip, back, ok, cancel."""

from __future__ import annotations

import logging

from aiogram.fsm.context import FSMContext

from flows.base import NO_ACTIVE_FLOW_TEXT, REQUIRED_FIELD_TEXT
from flows.chat import Chat
from flows.edit import EditFlow
from flows.evening import EveningFillFlow
from flows.morning import MorningFillFlow
from flows.states import EditFSM, EveningFillFSM, MorningFillFSM
from services.models import User
from utils.ui import cancel_confirm_kb, flow_kb, main_menu_kb

logger = logging.getLogger(__name__)


class Navigation:
    def __init__(self, morning: MorningFillFlow, evening: EveningFillFlow, edit: EditFlow) -> None:
        self.morning = morning
        self.evening = evening
        self.edit = edit
        self._skips = {
            MorningFillFSM.phone.state: morning.skip_phone,
            EveningFillFSM.terminal_amount.state: evening.skip_terminal_amount,
            EveningFillFSM.comment.state: evening.skip_comment,
            EveningFillFSM.confirm.state: evening.confirm_hint,
            EditFSM.value.state: edit.skip_value,
        }

    @staticmethod
    async def _active(chat: Chat, state: FSMContext, user: User) -> str | None:
        current = await state.get_state()
        if current is None or current == EveningFillFSM.idle.state:
            await chat.answer(NO_ACTIVE_FLOW_TEXT, reply_markup=main_menu_kb(user))
            return None
        return current

    async def skip(self, chat: Chat, state: FSMContext, user: User) -> None:
        current = await self._active(chat, state, user)
        if current is None:
            return
        logger.info("[nav] step=skip state=%s user=%s", current, user.telegram_id)
        handler = self._skips.get(current)
        if handler is None:
            return await chat.answer(REQUIRED_FIELD_TEXT, reply_markup=flow_kb())
        await handler(chat, state, user)

    async def back(self, chat: Chat, state: FSMContext, user: User) -> None:
        current = await self._active(chat, state, user)
        if current is None:
            return
        logger.info("[nav] step=back state=%s user=%s", current, user.telegram_id)
        if current.startswith(f"{EveningFillFSM.__full_group_name__}:"):
            return await self.evening.back(chat, state, user)
        await chat.answer("Возврат назад недоступен на этом шаге", reply_markup=flow_kb())

    async def ok(self, chat: Chat, state: FSMContext, user: User) -> None:
        current = await self._active(chat, state, user)
        if current is None:
            return
        logger.info("[nav] step=ok state=%s user=%s", current, user.telegram_id)
        if current == EveningFillFSM.confirm.state:
            return await self.evening.confirm(chat, state, user)
        await chat.answer("Подтверждение недоступно на этом шаге", reply_markup=flow_kb())

    async def cancel(self, chat: Chat, state: FSMContext, user: User) -> None:
        current = await state.get_state()
        if current == EveningFillFSM.idle.state:
            await state.clear()
        if await self._active(chat, state, user) is None:
            return
        logger.info("[nav] step=cancel_request state=%s user=%s", current, user.telegram_id)
        await chat.answer("Вы уверены, что хотите отменить заполнение?", reply_markup=cancel_confirm_kb())

    async def cancel_confirmed(self, chat: Chat, state: FSMContext, user: User, confirmed: bool) -> None:
        logger.info("[nav] step=cancel confirmed=%s user=%s", confirmed, user.telegram_id)
        if not confirmed:
            return await chat.edit("Продолжаем заполнение")
        await state.clear()
        await chat.edit("Заполнение отменено")
        await chat.answer("Главное меню:", reply_markup=main_menu_kb(user))
