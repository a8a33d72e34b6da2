"""Re-derive the money fields of every report in a date range.

Usage (from the repository root):
    python -m scripts.recalculate_reports 2025-12-01 2025-12-31 [--dry-run]
"""

from __future__ import annotations

import argparse
import asyncio
import os
from datetime import date, timedelta

import asyncpg
from dotenv import load_dotenv

from services.kv import PgKVStore
from services.payroll import recalculate_report
from services.repository import Repository

DERIVED_FIELDS = (
    "total_revenue",
    "salary",
    "responsible_salary",
    "bonus_by_targets",
    "total_daily",
    "total_cash",
    "total_qr",
    "cash_in_envelope",
)


async def recalculate_date(repo: Repository, day: date, *, dry_run: bool = False) -> tuple[int, int]:
    """Returns ``(seen, changed)`` report counts for one day."""
    seen = changed = 0
    for site in await repo.sites_by_date(day.isoformat()):
        for report in await repo.reports_by_site(site.id, site.date):
            seen += 1
            before = {name: getattr(report, name) for name in DERIVED_FIELDS}
            recalculate_report(report, site)
            after = {name: getattr(report, name) for name in DERIVED_FIELDS}
            if before == after:
                continue
            changed += 1
            print(f"  {report.id} {report.full_name}: {before} -> {after}")
            if not dry_run:
                await repo.update_report(report)
    return seen, changed


async def recalculate_range(repo: Repository, start: date, end: date, *, dry_run: bool = False) -> int:
    total_changed = 0
    cur = start
    while cur <= end:
        seen, changed = await recalculate_date(repo, cur, dry_run=dry_run)
        print(f"{cur}: reports {seen}, changed {changed}")
        total_changed += changed
        cur += timedelta(days=1)
    return total_changed


async def run(dsn: str, start: date, end: date, dry_run: bool) -> None:
    pool = await asyncpg.create_pool(dsn=dsn, min_size=1, max_size=2)
    try:
        changed = await recalculate_range(Repository(PgKVStore(pool)), start, end, dry_run=dry_run)
        print(f"Total changed: {changed}{' (dry run)' if dry_run else ''}")
    finally:
        await pool.close()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Recalculate daily reports for a date range")
    parser.add_argument("start", help="Start date YYYY-MM-DD")
    parser.add_argument("end", help="End date YYYY-MM-DD")
    parser.add_argument("--dry-run", action="store_true", help="Only print what would change")
    return parser.parse_args()


def main() -> None:
    load_dotenv()
    dsn = os.getenv("DB_DSN")
    if not dsn:
        raise SystemExit("DB_DSN is not set")
    args = parse_args()
    asyncio.run(run(dsn, date.fromisoformat(args.start), date.fromisoformat(args.end), args.dry_run))


if __name__ == "__main__":
    main()
