from __future__ import annotations

import logging

from aiogram import F, Router
from aiogram.filters import Command, CommandStart
from aiogram.fsm.context import FSMContext
from aiogram.types import Message

from flows import FlowSet, MessageChat
from flows.states import MorningFillFSM
from services.models import User
from services.repository import Repository
from utils.text import normalize_phone
from utils.ui import (
    BTN_ADMIN,
    BTN_BONUS,
    BTN_EDIT,
    BTN_EVENING,
    BTN_HELP,
    BTN_MORNING,
    HELP_TEXT,
    main_menu_kb,
)

router = Router(name="menu")
logger = logging.getLogger(__name__)


@router.message(CommandStart())
async def cmd_start(msg: Message, state: FSMContext, user: User, flows: FlowSet):
    logger.info("[menu] step=start user=%s", user.telegram_id)
    await msg.answer(
        f"Привет, {msg.from_user.first_name or user.display_name}!\n\n"
        "Я бот для сбора отчётности аквагрима.\n"
        "Используйте кнопки ниже для навигации.",
        reply_markup=main_menu_kb(user),
    )
    if user.is_admin:
        await flows.admin.panel(MessageChat(msg), state, user)


@router.message(Command("help"))
@router.message(F.text == BTN_HELP)
async def cmd_help(msg: Message, user: User):
    await msg.answer(HELP_TEXT, reply_markup=main_menu_kb(user))


@router.message(F.text == BTN_MORNING)
async def morning_entry(msg: Message, state: FSMContext, user: User, flows: FlowSet):
    await flows.morning.start(MessageChat(msg), state, user)


@router.message(F.text == BTN_EVENING)
async def evening_entry(msg: Message, state: FSMContext, user: User, flows: FlowSet):
    await flows.evening.start(MessageChat(msg), state, user)


@router.message(F.text == BTN_EDIT)
async def edit_entry(msg: Message, state: FSMContext, user: User, flows: FlowSet):
    await flows.edit.start(MessageChat(msg), state, user)


@router.message(F.text == BTN_BONUS)
async def bonus_entry(msg: Message, state: FSMContext, user: User, flows: FlowSet):
    await flows.bonus.start(MessageChat(msg), state, user)


@router.message(F.text == BTN_ADMIN)
async def admin_entry(msg: Message, state: FSMContext, user: User, flows: FlowSet):
    await flows.admin.panel(MessageChat(msg), state, user)


@router.message(F.contact)
async def contact_shared(msg: Message, state: FSMContext, user: User, repo: Repository, flows: FlowSet):
    contact = msg.contact
    if contact.user_id != msg.from_user.id:
        return await msg.answer("❌ Пожалуйста, отправьте свой собственный контакт.")
    phone = normalize_phone(contact.phone_number or "")
    if phone is None:
        return await msg.answer("❌ Не удалось распознать номер телефона.")
    logger.info("[menu] step=contact user=%s", user.telegram_id)
    user.phone = phone
    await repo.update_user(user)
    if await state.get_state() == MorningFillFSM.phone.state:
        return await flows.morning.phone(MessageChat(msg), state, user, phone)
    await msg.answer(f"✅ Номер {phone} сохранён в профиле.", reply_markup=main_menu_kb(user))
