"""Outbound side of a conversation as seen by the flows."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from aiogram.exceptions import TelegramBadRequest
from aiogram.types import BufferedInputFile, CallbackQuery, Message

logger = logging.getLogger(__name__)


class Chat(Protocol):
    async def answer(self, text: str, reply_markup: Any = None) -> None: ...

    async def edit(self, text: str, reply_markup: Any = None) -> None: ...

    async def answer_document(self, data: bytes, filename: str, caption: str | None = None) -> None: ...


class MessageChat:
    def __init__(self, message: Message) -> None:
        self.message = message

    async def answer(self, text: str, reply_markup: Any = None) -> None:
        await self.message.answer(text, reply_markup=reply_markup)

    async def edit(self, text: str, reply_markup: Any = None) -> None:
        # a user's own message cannot be edited by the bot
        await self.answer(text, reply_markup=reply_markup)

    async def answer_document(self, data: bytes, filename: str, caption: str | None = None) -> None:
        await self.message.answer_document(BufferedInputFile(data, filename=filename), caption=caption)


class CallbackChat:
    def __init__(self, query: CallbackQuery) -> None:
        self.query = query

    @property
    def message(self) -> Message:
        return self.query.message  # type: ignore[return-value]

    async def answer(self, text: str, reply_markup: Any = None) -> None:
        await self.message.answer(text, reply_markup=reply_markup)

    async def edit(self, text: str, reply_markup: Any = None) -> None:
        try:
            await self.message.edit_text(text, reply_markup=reply_markup)
        except TelegramBadRequest as exc:
            logger.debug("edit_text failed, sending new message: %s", exc)
            await self.answer(text, reply_markup=reply_markup)

    async def answer_document(self, data: bytes, filename: str, caption: str | None = None) -> None:
        await self.message.answer_document(BufferedInputFile(data, filename=filename), caption=caption)
