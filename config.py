from __future__ import annotations

import os
import re
from dataclasses import dataclass

from dotenv import load_dotenv


@dataclass(slots=True, frozen=True)
class Settings:
    bot_token: str
    db_dsn: str | None
    superadmin_ids: frozenset[int]
    webhook_url: str | None = None
    webhook_path: str = "/api/webhook"
    webhook_secret: str | None = None
    webhook_host: str = "0.0.0.0"
    webhook_port: int = 3000
    pdf_font_path: str | None = None

    def is_superadmin(self, telegram_id: int) -> bool:
        return telegram_id in self.superadmin_ids


def parse_id_list(raw: str | None) -> frozenset[int]:
    ids: set[int] = set()
    for part in re.split(r"[ ,;]+", (raw or "").strip()):
        if part.isdigit():
            ids.add(int(part))
    return frozenset(ids)


def load_settings() -> Settings:
    load_dotenv()
    bot_token = os.getenv("BOT_TOKEN")
    if not bot_token:
        raise RuntimeError("BOT_TOKEN is not set")
    return Settings(
        bot_token=bot_token,
        db_dsn=os.getenv("DB_DSN") or None,
        superadmin_ids=parse_id_list(os.getenv("SUPERADMIN_IDS")),
        webhook_url=(os.getenv("WEBHOOK_URL") or "").rstrip("/") or None,
        webhook_path=os.getenv("WEBHOOK_PATH", "/api/webhook") or "/api/webhook",
        webhook_secret=os.getenv("WEBHOOK_SECRET") or None,
        webhook_host=os.getenv("WEBHOOK_HOST", "0.0.0.0"),
        webhook_port=int(os.getenv("WEBHOOK_PORT", "3000") or "3000"),
        pdf_font_path=os.getenv("PDF_FONT_PATH") or None,
    )
