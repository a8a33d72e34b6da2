"""Entity access on top of the key-value store."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from errors import NotFoundError
from services.kv import KVStore
from services.models import (
    ROLE_SUPERADMIN,
    ROLE_USER,
    DailyReport,
    LogEntry,
    Site,
    User,
    id_sequence,
    utcnow_iso,
)

logger = logging.getLogger(__name__)

USER = "user:"
USER_BY_TG = "user:tg:"
SITE = "site:"
SITE_BY_DATE = "site:date:"
REPORT = "report:"
REPORT_BY_SITE = "report:site:"
LOG = "log:"
LOGS_BY_USER = "logs:user:"
LOGS_BY_REPORT = "logs:report:"
COUNTER = "counter:"


class Repository:
    def __init__(self, kv: KVStore) -> None:
        self.kv = kv

    async def _next_id(self, kind: str) -> str:
        seq = await self.kv.incr(f"{COUNTER}{kind}")
        return f"{kind}_{seq}"

    # ===== Users =====
    async def get_user(self, user_id: str) -> User | None:
        data = await self.kv.get(f"{USER}{user_id}")
        return User.from_record(data) if data else None

    async def get_user_by_telegram_id(self, telegram_id: int) -> User | None:
        user_id = await self.kv.get(f"{USER_BY_TG}{telegram_id}")
        if not user_id:
            return None
        return await self.get_user(user_id)

    async def create_user(self, telegram_id: int, username: str | None = None, role: str = ROLE_USER) -> User:
        user = User(id=await self._next_id("user"), telegram_id=telegram_id, username=username, role=role)
        await self.kv.set(f"{USER}{user.id}", user.to_record())
        await self.kv.set(f"{USER_BY_TG}{telegram_id}", user.id)
        await self.create_log(user.id, "user_created", None, {"telegram_id": telegram_id, "role": role})
        return user

    async def update_user(self, user: User) -> None:
        await self.kv.set(f"{USER}{user.id}", user.to_record())

    async def ensure_user(self, telegram_id: int, username: str | None, superadmin_ids: Iterable[int] = ()) -> User:
        user = await self.get_user_by_telegram_id(telegram_id)
        is_super = telegram_id in set(superadmin_ids)
        if user is None:
            return await self.create_user(telegram_id, username, ROLE_SUPERADMIN if is_super else ROLE_USER)
        changed = False
        if username and user.username != username:
            user.username = username
            changed = True
        if is_super and user.role != ROLE_SUPERADMIN:
            user.role = ROLE_SUPERADMIN
            changed = True
        if changed:
            await self.update_user(user)
        return user

    # ===== Sites =====
    async def get_site(self, site_id: str) -> Site | None:
        data = await self.kv.get(f"{SITE}{site_id}")
        return Site.from_record(data) if data else None

    async def require_site(self, site_id: str | None) -> Site:
        site = await self.get_site(site_id) if site_id else None
        if site is None:
            raise NotFoundError("site", site_id)
        return site

    async def create_site(
        self,
        *,
        name: str,
        responsible_user_id: str,
        responsible_lastname: str,
        responsible_firstname: str,
        bonus_targets: list[int],
        phone: str,
        date: str,
        status: str,
    ) -> Site:
        site = Site(
            id=await self._next_id("site"),
            name=name,
            responsible_user_id=responsible_user_id,
            responsible_lastname=responsible_lastname,
            responsible_firstname=responsible_firstname,
            bonus_targets=list(bonus_targets),
            phone=phone,
            date=date,
            status=status,
        )
        await self.kv.set(f"{SITE}{site.id}", site.to_record())
        await self.kv.sadd(f"{SITE_BY_DATE}{date}", site.id)
        return site

    async def update_site(self, site: Site) -> None:
        site.updated_at = utcnow_iso()
        await self.kv.set(f"{SITE}{site.id}", site.to_record())

    async def sites_by_date(self, date: str) -> list[Site]:
        ids = await self.kv.smembers(f"{SITE_BY_DATE}{date}")
        sites = [await self.get_site(site_id) for site_id in sorted(ids, key=id_sequence)]
        return [s for s in sites if s is not None]

    async def sites_for_user(self, date: str, user: User) -> list[Site]:
        sites = await self.sites_by_date(date)
        if user.is_admin:
            return sites
        return [s for s in sites if s.responsible_user_id == user.id]

    # ===== Reports =====
    async def get_report(self, report_id: str) -> DailyReport | None:
        data = await self.kv.get(f"{REPORT}{report_id}")
        return DailyReport.from_record(data) if data else None

    async def require_report(self, report_id: str | None) -> DailyReport:
        report = await self.get_report(report_id) if report_id else None
        if report is None:
            raise NotFoundError("report", report_id)
        return report

    async def create_report(self, report: DailyReport) -> DailyReport:
        report.id = await self._next_id("report")
        report.created_at = report.updated_at = utcnow_iso()
        await self.kv.set(f"{REPORT}{report.id}", report.to_record())
        await self.kv.sadd(f"{REPORT_BY_SITE}{report.site_id}:{report.date}", report.id)
        return report

    async def update_report(self, report: DailyReport) -> None:
        report.updated_at = utcnow_iso()
        await self.kv.set(f"{REPORT}{report.id}", report.to_record())

    async def reports_by_site(self, site_id: str, date: str) -> list[DailyReport]:
        """Reports of a site for a day, in creation order."""
        ids = await self.kv.smembers(f"{REPORT_BY_SITE}{site_id}:{date}")
        reports = [await self.get_report(report_id) for report_id in sorted(ids, key=id_sequence)]
        return [r for r in reports if r is not None]

    # ===== Logs =====
    async def create_log(
        self,
        user_id: str,
        action_type: str,
        payload_before: Any = None,
        payload_after: Any = None,
        *,
        report_id: str | None = None,
    ) -> LogEntry:
        entry = LogEntry(
            id=await self._next_id("log"),
            user_id=user_id,
            action_type=action_type,
            payload_before=payload_before,
            payload_after=payload_after,
        )
        await self.kv.set(f"{LOG}{entry.id}", entry.to_record())
        await self.kv.lpush(f"{LOGS_BY_USER}{user_id}", entry.id)
        if report_id:
            await self.kv.lpush(f"{LOGS_BY_REPORT}{report_id}", entry.id)
        logger.debug("log %s %s by %s", entry.id, action_type, user_id)
        return entry

    async def logs_by_report(self, report_id: str) -> list[LogEntry]:
        """Oldest first."""
        ids = await self.kv.lrange(f"{LOGS_BY_REPORT}{report_id}")
        entries: list[LogEntry] = []
        for log_id in reversed(ids):
            data = await self.kv.get(f"{LOG}{log_id}")
            if data:
                entries.append(LogEntry.from_record(data))
        return entries
