from __future__ import annotations

import logging

from aiogram import Router
from aiogram.types import CallbackQuery

router = Router(name="fallback")
logger = logging.getLogger(__name__)


@router.callback_query()
async def stale_callback(query: CallbackQuery):
    # buttons of a finished or replaced flow
    logger.info("[fallback] stale callback data=%s user=%s", query.data, query.from_user.id)
    await query.answer("Эта кнопка больше не активна", show_alert=False)
