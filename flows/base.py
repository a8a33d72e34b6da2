from __future__ import annotations

import functools
import logging
from typing import Awaitable, Callable, TypeVar

from aiogram.fsm.context import FSMContext

from errors import AccessDeniedError, NotFoundError
from flows.chat import Chat
from services.models import User
from services.repository import Repository
from utils.dates import moscow_today
from utils.ui import main_menu_kb

logger = logging.getLogger(__name__)

NOT_FOUND_TEXTS = {
    "site": "❌ Площадка не найдена.",
    "report": "❌ Отчёт не найден.",
    "user": "❌ Пользователь не найден.",
    "session": "❌ Сессия не найдена. Пожалуйста, начните заново.",
}
REQUIRED_FIELD_TEXT = "Это поле обязательно для заполнения"
NO_ACTIVE_FLOW_TEXT = "Нет активного процесса заполнения"

F = TypeVar("F", bound=Callable[..., Awaitable[None]])


def flow_step(name: str) -> Callable[[F], F]:
    """Log the step and turn missing-entity and access errors into replies.

    A missing entity ends the flow; a denied access leaves the session as is.
    Everything else propagates to the dispatcher's error handler.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(self: "BaseFlow", chat: Chat, state: FSMContext, user: User, *args, **kwargs):
            logger.info("[%s] step=%s user=%s", self.name, name, user.telegram_id)
            try:
                return await func(self, chat, state, user, *args, **kwargs)
            except NotFoundError as exc:
                logger.warning("[%s] step=%s user=%s %s", self.name, name, user.telegram_id, exc)
                await state.clear()
                await chat.answer(NOT_FOUND_TEXTS.get(exc.kind, "❌ Не найдено."), reply_markup=main_menu_kb(user))
            except AccessDeniedError as exc:
                logger.info("[%s] step=%s user=%s denied: %s", self.name, name, user.telegram_id, exc)
                await chat.answer(f"❌ {exc}")

        return wrapper  # type: ignore[return-value]

    return decorator


class BaseFlow:
    name = "flow"

    def __init__(self, repo: Repository, today: Callable[[], str] = moscow_today) -> None:
        self.repo = repo
        self.today = today

    async def log(self, user: User, action: str, after=None, *, report_id: str | None = None) -> None:
        await self.repo.create_log(user.id, action, None, after, report_id=report_id)
