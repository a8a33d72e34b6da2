from __future__ import annotations

import logging

from aiogram import F, Router
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from flows import CallbackChat, FlowSet, MessageChat
from flows.states import AdminFSM
from services.models import User

router = Router(name="admin")
logger = logging.getLogger(__name__)


@router.callback_query(F.data.startswith("admin:"))
async def admin_action(query: CallbackQuery, state: FSMContext, user: User, flows: FlowSet):
    await query.answer()
    chat = CallbackChat(query)
    action = query.data.split(":", 1)[1]
    actions = {
        "sites": flows.admin.view_sites,
        "pdf": flows.admin.pdf_menu,
        "history": flows.admin.history_menu,
        "add": flows.admin.add_admin_prompt,
        "remove": flows.admin.remove_admin_prompt,
    }
    handler = actions.get(action)
    if handler is None:
        logger.warning("[admin] unknown action %r from user=%s", action, user.telegram_id)
        return
    await handler(chat, state, user)


@router.callback_query(F.data.startswith("admin_pdf:"))
async def admin_pdf(query: CallbackQuery, state: FSMContext, user: User, flows: FlowSet):
    await query.answer("Генерирую PDF…")
    await flows.admin.generate_pdf(CallbackChat(query), state, user, query.data.split(":", 1)[1])


@router.callback_query(AdminFSM.history_site, F.data.startswith("admin_history_site:"))
async def admin_history_site(query: CallbackQuery, state: FSMContext, user: User, flows: FlowSet):
    await query.answer()
    await flows.admin.history_site(CallbackChat(query), state, user, query.data.split(":", 1)[1])


@router.callback_query(AdminFSM.history_report, F.data.startswith("admin_history_report:"))
async def admin_history_report(query: CallbackQuery, state: FSMContext, user: User, flows: FlowSet):
    await query.answer()
    await flows.admin.history_report(CallbackChat(query), state, user, query.data.split(":", 1)[1])


@router.message(AdminFSM.add_admin, F.text)
async def admin_add(msg: Message, state: FSMContext, user: User, flows: FlowSet):
    await flows.admin.add_admin(MessageChat(msg), state, user, msg.text)


@router.message(AdminFSM.remove_admin, F.text)
async def admin_remove(msg: Message, state: FSMContext, user: User, flows: FlowSet):
    await flows.admin.remove_admin(MessageChat(msg), state, user, msg.text)
