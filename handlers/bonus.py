from __future__ import annotations

from aiogram import F, Router
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from flows import CallbackChat, FlowSet, MessageChat
from flows.states import BonusFSM
from services.models import User

router = Router(name="bonus")


@router.callback_query(BonusFSM.select_site, F.data.startswith("bonus_site:"))
async def bonus_site(query: CallbackQuery, state: FSMContext, user: User, flows: FlowSet):
    await query.answer()
    await flows.bonus.select_site(CallbackChat(query), state, user, query.data.split(":", 1)[1])


@router.callback_query(BonusFSM.select_employee, F.data.startswith("bonus_employee:"))
async def bonus_employee(query: CallbackQuery, state: FSMContext, user: User, flows: FlowSet):
    await query.answer()
    await flows.bonus.select_employee(CallbackChat(query), state, user, query.data.split(":", 1)[1])


@router.callback_query(BonusFSM.select_type, F.data.startswith("bonus_type:"))
async def bonus_type(query: CallbackQuery, state: FSMContext, user: User, flows: FlowSet):
    await query.answer()
    await flows.bonus.select_type(CallbackChat(query), state, user, query.data.split(":", 1)[1])


@router.message(BonusFSM.input_amount, F.text)
async def bonus_amount(msg: Message, state: FSMContext, user: User, flows: FlowSet):
    await flows.bonus.amount(MessageChat(msg), state, user, msg.text)
