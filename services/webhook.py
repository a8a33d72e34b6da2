"""aiohttp server that feeds Telegram webhook updates into the dispatcher."""

from __future__ import annotations

import logging

from aiogram import Bot, Dispatcher
from aiogram.webhook.aiohttp_server import SimpleRequestHandler, setup_application
from aiohttp import web

logger = logging.getLogger(__name__)


class TelegramWebhookServer:
    def __init__(
        self,
        dp: Dispatcher,
        bot: Bot,
        *,
        path: str = "/api/webhook",
        secret: str | None = None,
        **workflow_data,
    ) -> None:
        self.dp = dp
        self.bot = bot
        self.path = path
        self.secret = secret
        self.workflow_data = workflow_data
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None

    def create_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/health", self._health)
        SimpleRequestHandler(
            dispatcher=self.dp,
            bot=self.bot,
            secret_token=self.secret,
        ).register(app, path=self.path)
        setup_application(app, self.dp, bot=self.bot, **self.workflow_data)
        return app

    async def start(self, host: str, port: int) -> None:
        if self._runner:
            return
        app = self.create_app()
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, host, port)
        await self._site.start()
        logger.info("Telegram webhook server listening on %s:%s%s", host, port, self.path)

    async def stop(self) -> None:
        if self._site:
            await self._site.stop()
            self._site = None
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
        logger.info("Telegram webhook server stopped")

    async def _health(self, request: web.Request) -> web.Response:
        return web.json_response({"ok": True})
