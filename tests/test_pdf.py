import pytest
from reportlab.platypus import SimpleDocTemplate

from errors import RenderError
from services.payroll import build_report
from services.pdf import SUMMARY_COLUMNS, build_site_summary, render_pdf


@pytest.fixture
async def summary(user, make_site):
    site = await make_site(user)
    reports = [
        build_report(site, lastname="Иванова", firstname="Анна", qr_number="1", qr_amount=600, cash_amount=900,
                     is_responsible=True),
        build_report(site, lastname="Петров", firstname="Пётр", qr_number="2", qr_amount=1000, cash_amount=1200,
                     terminal_amount=300, comment="закрыл кассу"),
    ]
    return build_site_summary(site, reports)


@pytest.mark.asyncio
async def test_summary_rows_and_totals(summary):
    assert list(summary.columns) == list(SUMMARY_COLUMNS)
    assert len(summary.rows) == 2
    assert summary.rows[0][0] == "Иванова Анна (отв.)"
    assert summary.rows[0][4] == "—"
    assert summary.totals[0] == "Итого"
    assert summary.totals[5] == "4 000 ₽"
    assert summary.notes == ["Петров Пётр: закрыл кассу"]
    assert ("Дата", "03.12.2025") in summary.meta
    assert ("Бонусные планки", "1 000 ₽, 2 000 ₽, 3 000 ₽") in summary.meta


@pytest.mark.asyncio
async def test_render_failure_is_wrapped(summary, monkeypatch):
    def broken(self, story, *args, **kwargs):
        raise ValueError("layout failed")

    monkeypatch.setattr(SimpleDocTemplate, "build", broken)
    with pytest.raises(RenderError):
        render_pdf(summary)


@pytest.mark.asyncio
async def test_render_real_pdf(summary):
    data = render_pdf(summary)
    assert data.startswith(b"%PDF")


@pytest.mark.asyncio
@pytest.mark.parametrize("comment", ["<b>жирно", "итог <i>", "a<br>b", "Q&A > 5 < 7"])
async def test_render_keeps_markup_in_user_text_literal(user, make_site, comment):
    site = await make_site(user, name="<Пляж & Co>")
    reports = [
        build_report(site, lastname="Иванова", firstname="Анна", qr_number="1", qr_amount=600, cash_amount=900,
                     is_responsible=True),
        build_report(site, lastname="<Петров>", firstname="Пётр&", qr_number="<2>", qr_amount=1000,
                     cash_amount=1200, comment=comment),
    ]
    data = render_pdf(build_site_summary(site, reports))
    assert data.startswith(b"%PDF")
