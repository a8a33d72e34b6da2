import asyncio
import logging
from typing import Any

import asyncpg
from aiogram import BaseMiddleware, Bot, Dispatcher
from aiogram.types import BotCommand, BotCommandScopeDefault, ErrorEvent

from config import Settings, load_settings
from flows import FlowSet
from handlers.admin import router as admin_router
from handlers.bonus import router as bonus_router
from handlers.edit import router as edit_router
from handlers.fallback import router as fallback_router
from handlers.menu import router as menu_router
from handlers.navigation import router as navigation_router
from handlers.reports import router as reports_router
from services.kv import KVStore, MemoryKVStore, PgKVStore, ensure_kv_schema
from services.repository import Repository
from services.session_storage import KVSessionStorage
from services.webhook import TelegramWebhookServer

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

GENERIC_ERROR_TEXT = "Произошла ошибка. Попробуйте ещё раз или обратитесь к администратору."


# === Ignore group/supergroup/channel updates; work only in private chats ===
class IgnoreNonPrivateMiddleware(BaseMiddleware):
    async def __call__(self, handler, event, data):
        chat = data.get("event_chat")
        if chat and getattr(chat, "type", None) != "private":
            return
        return await handler(event, data)


class UserMiddleware(BaseMiddleware):
    """Creates the User record on first contact and passes it as ``user``."""

    def __init__(self, repo: Repository, superadmin_ids: frozenset[int]) -> None:
        self.repo = repo
        self.superadmin_ids = superadmin_ids

    async def __call__(self, handler, event, data):
        tg_user = data.get("event_from_user")
        if tg_user is None:
            return
        data["user"] = await self.repo.ensure_user(tg_user.id, tg_user.username, self.superadmin_ids)
        return await handler(event, data)


async def on_error(event: ErrorEvent) -> bool:
    logger.exception("Unhandled error while processing update %s", event.update.update_id, exc_info=event.exception)
    update = event.update
    target: Any = update.message
    if target is None and update.callback_query is not None:
        target = update.callback_query.message
    if target is not None:
        try:
            await target.answer(GENERIC_ERROR_TEXT)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to report error to user: %s", exc)
    return True


def build_dispatcher(kv: KVStore, settings: Settings) -> Dispatcher:
    repo = Repository(kv)
    flows = FlowSet.create(repo, font_path=settings.pdf_font_path)
    dp = Dispatcher(storage=KVSessionStorage(kv), repo=repo, flows=flows, settings=settings)

    for observer in (dp.message, dp.callback_query):
        observer.middleware(IgnoreNonPrivateMiddleware())
        observer.middleware(UserMiddleware(repo, settings.superadmin_ids))

    # menu buttons must win over free-text steps of an active flow
    dp.include_router(menu_router)
    dp.include_router(navigation_router)
    dp.include_router(reports_router)
    dp.include_router(edit_router)
    dp.include_router(bonus_router)
    dp.include_router(admin_router)
    dp.include_router(fallback_router)
    dp.errors.register(on_error)
    return dp


async def set_commands(bot: Bot) -> None:
    cmds = [
        BotCommand(command="start", description="Старт"),
        BotCommand(command="help", description="Помощь"),
    ]
    await bot.set_my_commands(cmds, scope=BotCommandScopeDefault())


async def main():
    settings = load_settings()
    pool: asyncpg.Pool | None = None
    if settings.db_dsn:
        pool = await asyncpg.create_pool(dsn=settings.db_dsn, min_size=1, max_size=5)
        async with pool.acquire() as _conn:
            await ensure_kv_schema(_conn)
        kv: KVStore = PgKVStore(pool)
    else:
        logger.warning("DB_DSN is not set, using in-memory storage; data is lost on restart")
        kv = MemoryKVStore()

    bot = Bot(settings.bot_token)
    dp = build_dispatcher(kv, settings)
    await set_commands(bot)

    webhook: TelegramWebhookServer | None = None
    try:
        if settings.webhook_url:
            webhook = TelegramWebhookServer(dp, bot, path=settings.webhook_path, secret=settings.webhook_secret)
            await webhook.start(settings.webhook_host, settings.webhook_port)
            await bot.set_webhook(
                f"{settings.webhook_url}{settings.webhook_path}",
                secret_token=settings.webhook_secret,
            )
            await asyncio.Event().wait()
        else:
            await bot.delete_webhook(drop_pending_updates=False)
            await dp.start_polling(bot)
    finally:
        if webhook is not None:
            await webhook.stop()
        await bot.session.close()
        if pool is not None:
            await pool.close()


if __name__ == "__main__":
    asyncio.run(main())
