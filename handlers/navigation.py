from __future__ import annotations

from aiogram import F, Router
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from flows import CallbackChat, FlowSet, MessageChat
from services.models import User
from utils.ui import BTN_BACK, BTN_CANCEL, BTN_OK, BTN_SKIP

router = Router(name="navigation")


@router.message(F.text == BTN_SKIP)
async def nav_skip(msg: Message, state: FSMContext, user: User, flows: FlowSet):
    await flows.navigation.skip(MessageChat(msg), state, user)


@router.message(F.text == BTN_BACK)
async def nav_back(msg: Message, state: FSMContext, user: User, flows: FlowSet):
    await flows.navigation.back(MessageChat(msg), state, user)


@router.message(F.text == BTN_OK)
async def nav_ok(msg: Message, state: FSMContext, user: User, flows: FlowSet):
    await flows.navigation.ok(MessageChat(msg), state, user)


@router.message(F.text == BTN_CANCEL)
async def nav_cancel(msg: Message, state: FSMContext, user: User, flows: FlowSet):
    await flows.navigation.cancel(MessageChat(msg), state, user)


@router.callback_query(F.data.in_({"cancel:yes", "cancel:no"}))
async def nav_cancel_confirm(query: CallbackQuery, state: FSMContext, user: User, flows: FlowSet):
    await query.answer()
    await flows.navigation.cancel_confirmed(CallbackChat(query), state, user, query.data == "cancel:yes")
