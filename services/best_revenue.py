"""Best-revenue bonus of a site's day.

Run before every site summary: reports may have been edited since the last
run, so the holder of the bonus is recomputed from scratch each time. Two
concurrent runs for one site are not locked against each other; the last
writer wins.
"""

from __future__ import annotations

import logging
from typing import Sequence

from services.calculation import BEST_REVENUE_BONUS
from services.models import DailyReport, id_sequence
from services.repository import Repository

logger = logging.getLogger(__name__)


def find_best_report(reports: Sequence[DailyReport]) -> DailyReport | None:
    """Highest total revenue; on a tie the earliest-created report wins."""
    best: DailyReport | None = None
    for report in sorted(reports, key=lambda r: id_sequence(r.id)):
        if best is None or report.total_revenue > best.total_revenue:
            best = report
    return best


def assign_best_revenue_bonus(reports: Sequence[DailyReport]) -> list[DailyReport]:
    """Moves the bonus in place and returns the reports whose values changed."""
    if len(reports) < 2:
        return []
    winner = find_best_report(reports)
    changed: list[DailyReport] = []
    for report in reports:
        target = BEST_REVENUE_BONUS if report is winner else 0
        if report.best_revenue_bonus == target:
            continue
        report.best_revenue_bonus = target
        report.recompute_envelope()
        changed.append(report)
    return changed


async def reassign_best_revenue_bonus(
    repo: Repository,
    site_id: str,
    date: str,
    user_id: str | None = None,
) -> list[DailyReport]:
    reports = await repo.reports_by_site(site_id, date)
    changed = assign_best_revenue_bonus(reports)
    for report in changed:
        await repo.update_report(report)
        if user_id:
            await repo.create_log(
                user_id,
                "best_revenue_bonus_changed",
                None,
                {
                    "report_id": report.id,
                    "best_revenue_bonus": report.best_revenue_bonus,
                    "cash_in_envelope": report.cash_in_envelope,
                },
                report_id=report.id,
            )
    if changed:
        logger.info(
            "best revenue bonus on site=%s date=%s: %s",
            site_id,
            date,
            {r.id: r.best_revenue_bonus for r in changed},
        )
    return changed
