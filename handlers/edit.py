from __future__ import annotations

from aiogram import F, Router
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from flows import CallbackChat, FlowSet, MessageChat
from flows.states import EditFSM
from services.models import User

router = Router(name="edit")


def _arg(query: CallbackQuery) -> str:
    return (query.data or "").split(":", 1)[1]


@router.callback_query(EditFSM.select_mode, F.data.in_({"edit_mode:name", "edit_mode:site"}))
async def edit_mode(query: CallbackQuery, state: FSMContext, user: User, flows: FlowSet):
    await query.answer()
    await flows.edit.select_mode(CallbackChat(query), state, user, _arg(query))


@router.callback_query(EditFSM.select_name, F.data.regexp(r"^edit_name:\d+$"))
async def edit_name(query: CallbackQuery, state: FSMContext, user: User, flows: FlowSet):
    await query.answer()
    await flows.edit.select_name(CallbackChat(query), state, user, int(_arg(query)))


@router.callback_query(EditFSM.select_site, F.data.startswith("edit_site:"))
async def edit_site(query: CallbackQuery, state: FSMContext, user: User, flows: FlowSet):
    await query.answer()
    await flows.edit.select_site(CallbackChat(query), state, user, _arg(query))


@router.callback_query(EditFSM.select_report, F.data.startswith("edit_report:"))
async def edit_report(query: CallbackQuery, state: FSMContext, user: User, flows: FlowSet):
    await query.answer()
    await flows.edit.select_report(CallbackChat(query), state, user, _arg(query))


@router.callback_query(EditFSM.menu, F.data.startswith("edit_field:"))
async def edit_field(query: CallbackQuery, state: FSMContext, user: User, flows: FlowSet):
    await query.answer()
    await flows.edit.select_field(CallbackChat(query), state, user, _arg(query))


@router.callback_query(EditFSM.menu, F.data == "edit_history")
async def edit_history(query: CallbackQuery, state: FSMContext, user: User, flows: FlowSet):
    await query.answer()
    await flows.edit.history(CallbackChat(query), state, user)


@router.callback_query(EditFSM.menu, F.data == "edit_finish")
async def edit_finish(query: CallbackQuery, state: FSMContext, user: User, flows: FlowSet):
    await query.answer()
    await flows.edit.finish(CallbackChat(query), state, user)


@router.message(EditFSM.value, F.text)
async def edit_value(msg: Message, state: FSMContext, user: User, flows: FlowSet):
    await flows.edit.value(MessageChat(msg), state, user, msg.text)
