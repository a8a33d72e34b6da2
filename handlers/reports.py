"""Morning and evening fill steps."""

from __future__ import annotations

from aiogram import F, Router
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from flows import CallbackChat, FlowSet, MessageChat
from flows.states import EveningFillFSM, MorningFillFSM
from services.models import User

router = Router(name="reports")


# ===== Morning =====
@router.message(MorningFillFSM.site_name, F.text)
async def morning_site_name(msg: Message, state: FSMContext, user: User, flows: FlowSet):
    await flows.morning.site_name(MessageChat(msg), state, user, msg.text)


@router.message(MorningFillFSM.bonus_target, F.text)
async def morning_bonus_target(msg: Message, state: FSMContext, user: User, flows: FlowSet):
    await flows.morning.bonus_target(MessageChat(msg), state, user, msg.text)


@router.message(MorningFillFSM.responsible_lastname, F.text)
async def morning_lastname(msg: Message, state: FSMContext, user: User, flows: FlowSet):
    await flows.morning.responsible_lastname(MessageChat(msg), state, user, msg.text)


@router.message(MorningFillFSM.responsible_firstname, F.text)
async def morning_firstname(msg: Message, state: FSMContext, user: User, flows: FlowSet):
    await flows.morning.responsible_firstname(MessageChat(msg), state, user, msg.text)


@router.message(MorningFillFSM.phone, F.text)
async def morning_phone(msg: Message, state: FSMContext, user: User, flows: FlowSet):
    await flows.morning.phone(MessageChat(msg), state, user, msg.text)


# ===== Evening =====
@router.callback_query(EveningFillFSM.select_site, F.data.startswith("evening_site:"))
async def evening_site(query: CallbackQuery, state: FSMContext, user: User, flows: FlowSet):
    await query.answer()
    site_id = query.data.split(":", 1)[1]
    await flows.evening.select_site(CallbackChat(query), state, user, site_id)


@router.message(EveningFillFSM.lastname, F.text)
async def evening_lastname(msg: Message, state: FSMContext, user: User, flows: FlowSet):
    await flows.evening.lastname(MessageChat(msg), state, user, msg.text)


@router.message(EveningFillFSM.firstname, F.text)
async def evening_firstname(msg: Message, state: FSMContext, user: User, flows: FlowSet):
    await flows.evening.firstname(MessageChat(msg), state, user, msg.text)


@router.message(EveningFillFSM.qr_number, F.text)
async def evening_qr_number(msg: Message, state: FSMContext, user: User, flows: FlowSet):
    await flows.evening.qr_number(MessageChat(msg), state, user, msg.text)


@router.message(EveningFillFSM.qr_amount, F.text)
async def evening_qr_amount(msg: Message, state: FSMContext, user: User, flows: FlowSet):
    await flows.evening.qr_amount(MessageChat(msg), state, user, msg.text)


@router.message(EveningFillFSM.cash_amount, F.text)
async def evening_cash_amount(msg: Message, state: FSMContext, user: User, flows: FlowSet):
    await flows.evening.cash_amount(MessageChat(msg), state, user, msg.text)


@router.message(EveningFillFSM.terminal_amount, F.text)
async def evening_terminal_amount(msg: Message, state: FSMContext, user: User, flows: FlowSet):
    await flows.evening.terminal_amount(MessageChat(msg), state, user, msg.text)


@router.message(EveningFillFSM.comment, F.text)
async def evening_comment(msg: Message, state: FSMContext, user: User, flows: FlowSet):
    await flows.evening.comment(MessageChat(msg), state, user, msg.text)


@router.message(EveningFillFSM.confirm, F.text)
async def evening_confirm_text(msg: Message, state: FSMContext, user: User, flows: FlowSet):
    await flows.evening.confirm_hint(MessageChat(msg), state, user)
