from __future__ import annotations

from typing import Mapping, Sequence

from aiogram.types import (
    InlineKeyboardMarkup,
    KeyboardButton,
    ReplyKeyboardMarkup,
)
from aiogram.utils.keyboard import InlineKeyboardBuilder

from services.models import DailyReport, Site, User
from utils.dates import format_date_short
from utils.text import truncate

BTN_MORNING = "🌅 Заполнить площадку (утро)"
BTN_EVENING = "🌆 Заполнить площадку (вечер)"
BTN_EDIT = "✏️ Редактировать данные"
BTN_BONUS = "💰 Начислить бонус/штраф"
BTN_HELP = "ℹ️ Помощь"
BTN_ADMIN = "🔧 Админ-панель"

BTN_SKIP = "⏭️ Далее"
BTN_BACK = "⬅️ Назад"
BTN_OK = "✅ Ок"
BTN_CANCEL = "❌ Отмена"
BTN_SHARE_PHONE = "📱 Отправить мой номер"

HELP_TEXT = (
    "📖 Помощь по использованию бота:\n\n"
    f"{BTN_MORNING} - утреннее заполнение площадки\n"
    f"{BTN_EVENING} - вечерний отчёт по площадке\n"
    f"{BTN_EDIT} - редактирование существующих отчётов\n"
    f"{BTN_BONUS} - начисление бонусов или штрафов сотрудникам\n"
    f"{BTN_HELP} - показать это сообщение\n"
    f"{BTN_ADMIN} - доступ к административным функциям\n\n"
    "Во время заполнения:\n"
    f"{BTN_SKIP} - пропустить текущий шаг (если поле необязательное)\n"
    f"{BTN_BACK} - вернуться на предыдущий шаг\n"
    f"{BTN_OK} - подтвердить отчёт\n"
    f"{BTN_CANCEL} - отменить заполнение"
)


def main_menu_kb(user: User | None = None) -> ReplyKeyboardMarkup:
    rows = [
        [KeyboardButton(text=BTN_MORNING)],
        [KeyboardButton(text=BTN_EVENING)],
        [KeyboardButton(text=BTN_EDIT), KeyboardButton(text=BTN_BONUS)],
        [KeyboardButton(text=BTN_HELP)],
    ]
    if user is None or user.is_admin:
        rows[-1].append(KeyboardButton(text=BTN_ADMIN))
    if user is not None and not user.phone:
        rows.append([KeyboardButton(text=BTN_SHARE_PHONE, request_contact=True)])
    return ReplyKeyboardMarkup(keyboard=rows, resize_keyboard=True)


def flow_kb(*, back: bool = False, confirm: bool = False) -> ReplyKeyboardMarkup:
    first = [KeyboardButton(text=BTN_SKIP)]
    if back:
        first.insert(0, KeyboardButton(text=BTN_BACK))
    rows = [first]
    if confirm:
        rows.append([KeyboardButton(text=BTN_OK)])
    rows.append([KeyboardButton(text=BTN_CANCEL)])
    return ReplyKeyboardMarkup(keyboard=rows, resize_keyboard=True)


def phone_kb() -> ReplyKeyboardMarkup:
    rows = [
        [KeyboardButton(text=BTN_SHARE_PHONE, request_contact=True)],
        [KeyboardButton(text=BTN_SKIP)],
        [KeyboardButton(text=BTN_CANCEL)],
    ]
    return ReplyKeyboardMarkup(keyboard=rows, resize_keyboard=True)


def cancel_confirm_kb() -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="Да, отменить", callback_data="cancel:yes")
    kb.button(text="Нет, продолжить", callback_data="cancel:no")
    kb.adjust(1)
    return kb.as_markup()


def sites_kb(sites: Sequence[Site], prefix: str, *, with_date: bool = False) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    for site in sites:
        text = f"{site.name} - {format_date_short(site.date)}" if with_date else site.name
        kb.button(text=text, callback_data=f"{prefix}:{site.id}")
    kb.adjust(1)
    return kb.as_markup()


def reports_kb(
    reports: Sequence[DailyReport],
    prefix: str,
    site_names: Mapping[str, str] | None = None,
) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    for report in reports:
        text = report.full_name
        if site_names is not None:
            site_name = site_names.get(report.site_id, "неизвестная площадка")
            text = f"{text} - {site_name} - {format_date_short(report.date)}"
        kb.button(text=text, callback_data=f"{prefix}:{report.id}")
    kb.adjust(1)
    return kb.as_markup()


def names_kb(names: Sequence[str]) -> InlineKeyboardMarkup:
    # callback_data is limited to 64 bytes, so names are addressed by index
    kb = InlineKeyboardBuilder()
    for idx, name in enumerate(names):
        kb.button(text=name, callback_data=f"edit_name:{idx}")
    kb.adjust(1)
    return kb.as_markup()


def edit_mode_kb() -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="По фамилии и имени", callback_data="edit_mode:name")
    kb.button(text="По площадке", callback_data="edit_mode:site")
    kb.adjust(1)
    return kb.as_markup()


def edit_menu_kb(values: Sequence[tuple[str, str, str]]) -> InlineKeyboardMarkup:
    """``values`` are ``(field_key, label, display_value)`` triples."""
    kb = InlineKeyboardBuilder()
    for key, label, display in values:
        kb.button(text=f"{label}: {truncate(display)}", callback_data=f"edit_field:{key}")
    kb.button(text="📝 История изменений", callback_data="edit_history")
    kb.button(text="✅ Завершить редактирование", callback_data="edit_finish")
    kb.adjust(1)
    return kb.as_markup()


def bonus_type_kb() -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="💰 Бонус/штраф", callback_data="bonus_type:penalty")
    kb.button(text="👔 ЗП ответственного", callback_data="bonus_type:responsible_salary")
    kb.adjust(1)
    return kb.as_markup()


def admin_panel_kb(user: User) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="📊 Посмотреть площадки", callback_data="admin:sites")
    kb.button(text="📄 Получить PDF отчёта", callback_data="admin:pdf")
    kb.button(text="📝 История изменений отчёта", callback_data="admin:history")
    if user.is_superadmin:
        kb.button(text="➕ Добавить админа", callback_data="admin:add")
        kb.button(text="➖ Убрать админа", callback_data="admin:remove")
    kb.adjust(1)
    return kb.as_markup()
