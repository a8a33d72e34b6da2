"""Site summary document and its PDF rendering (reportlab)."""

from __future__ import annotations

import io
import logging
import os
from dataclasses import dataclass, field
from typing import Sequence
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from errors import RenderError
from services.calculation import format_amount
from services.models import SITE_STATUS_LABELS, DailyReport, Site
from utils.bonus_targets import format_bonus_targets
from utils.dates import format_date_short

logger = logging.getLogger(__name__)

FONT_CANDIDATES = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/TTF/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
)

SUMMARY_COLUMNS = (
    "Сотрудник",
    "№ QR",
    "QR",
    "Нал",
    "Терминал",
    "Выручка",
    "ЗП",
    "Бонус по планкам",
    "Бонус/штраф",
    "Лучшая выручка",
    "ЗП отв.",
    "Нал в конверте",
)


@dataclass(slots=True)
class SummaryDocument:
    title: str
    meta: list[tuple[str, str]]
    columns: Sequence[str]
    rows: list[list[str]]
    totals: list[str]
    notes: list[str] = field(default_factory=list)


def _report_row(report: DailyReport) -> list[str]:
    name = report.full_name + (" (отв.)" if report.is_responsible else "")
    return [
        name,
        report.qr_number or "—",
        format_amount(report.qr_amount),
        format_amount(report.cash_amount),
        format_amount(report.terminal_amount) if report.terminal_amount is not None else "—",
        format_amount(report.total_revenue),
        format_amount(report.salary),
        format_amount(report.bonus_by_targets),
        format_amount(report.bonus_penalty),
        format_amount(report.best_revenue_bonus),
        format_amount(report.responsible_salary_bonus),
        format_amount(report.cash_in_envelope),
    ]


def build_site_summary(site: Site, reports: Sequence[DailyReport]) -> SummaryDocument:
    def total(attr: str) -> int:
        return sum(int(getattr(r, attr) or 0) for r in reports)

    totals = [
        "Итого",
        "",
        format_amount(total("qr_amount")),
        format_amount(total("cash_amount")),
        format_amount(total("terminal_amount")),
        format_amount(total("total_revenue")),
        format_amount(total("salary")),
        format_amount(total("bonus_by_targets")),
        format_amount(total("bonus_penalty")),
        format_amount(total("best_revenue_bonus")),
        format_amount(total("responsible_salary_bonus")),
        format_amount(total("cash_in_envelope")),
    ]
    notes = [f"{r.full_name}: {r.comment}" for r in reports if r.comment]
    return SummaryDocument(
        title=f"Сводный отчёт по площадке «{site.name}»",
        meta=[
            ("Дата", format_date_short(site.date)),
            ("Ответственный", site.responsible_name or "—"),
            ("Телефон", site.phone or "—"),
            ("Бонусные планки", format_bonus_targets(site.bonus_targets)),
            ("Статус", SITE_STATUS_LABELS.get(site.status, site.status)),
            ("Сотрудников", str(len(reports))),
        ],
        columns=SUMMARY_COLUMNS,
        rows=[_report_row(r) for r in reports],
        totals=totals,
        notes=notes,
    )


def register_font(path: str | None = None) -> str:
    for name in ("DejaVuSans",):
        try:
            pdfmetrics.getFont(name)
            return name
        except KeyError:
            pass
    candidates = ([path] if path else []) + list(FONT_CANDIDATES)
    for candidate in candidates:
        if candidate and os.path.exists(candidate):
            try:
                pdfmetrics.registerFont(TTFont("DejaVuSans", candidate))
                return "DejaVuSans"
            except Exception as exc:  # noqa: BLE001
                logger.warning("Failed to register font %s: %s", candidate, exc)
    logger.warning("No Cyrillic font found, falling back to Helvetica")
    return "Helvetica"


def render_pdf(doc: SummaryDocument, font_path: str | None = None) -> bytes:
    try:
        font = register_font(font_path)
        styles = getSampleStyleSheet()
        title_style = styles["Title"].clone("SummaryTitle", fontName=font)
        normal_style = styles["Normal"].clone("SummaryNormal", fontName=font)
        cell_style = styles["Normal"].clone("SummaryCell", fontName=font, fontSize=7, leading=9)

        buf = io.BytesIO()
        pdf = SimpleDocTemplate(
            buf,
            pagesize=landscape(A4),
            leftMargin=20,
            rightMargin=20,
            topMargin=25,
            bottomMargin=25,
            title=doc.title,
        )
        story = [Paragraph(escape(doc.title), title_style)]
        for label, value in doc.meta:
            story.append(Paragraph(f"<b>{escape(label)}:</b> {escape(value)}", normal_style))
        story.append(Spacer(1, 10))

        header = [Paragraph(f"<b>{escape(c)}</b>", cell_style) for c in doc.columns]
        body = [[Paragraph(escape(v), cell_style) for v in row] for row in doc.rows]
        totals = [Paragraph(f"<b>{escape(v)}</b>", cell_style) for v in doc.totals]
        table = Table([header, *body, totals], repeatRows=1)
        table.setStyle(
            TableStyle(
                [
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                    ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                    ("BACKGROUND", (0, -1), (-1, -1), colors.whitesmoke),
                    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ]
            )
        )
        story.append(table)

        if doc.notes:
            story.append(Spacer(1, 10))
            story.append(Paragraph("<b>Комментарии:</b>", normal_style))
            for note in doc.notes:
                story.append(Paragraph(escape(note), normal_style))

        pdf.build(story)
        return buf.getvalue()
    except Exception as exc:  # noqa: BLE001
        logger.exception("PDF rendering failed: %s", exc)
        raise RenderError(str(exc)) from exc
