from decimal import Decimal

import pytest

from errors import ValidationError
from services.calculation import (
    calculate,
    calculate_cash_in_envelope,
    format_amount,
    format_signed_amount,
    parse_amount,
    round_money,
)
from utils.bonus_targets import (
    bonus_targets_to_string,
    calculate_bonus_by_targets,
    format_bonus_targets,
    parse_bonus_targets,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("1000", 1000),
        ("2 500", 2500),
        ("1000,50", 1001),
        ("1000.49", 1000),
        ("0", 0),
        (" 15 ", 15),
    ],
)
def test_parse_amount(text, expected):
    assert parse_amount(text) == expected


@pytest.mark.parametrize("text", ["", "abc", "12a", "1.2.3", "-5", "1,2,3"])
def test_parse_amount_rejects(text):
    with pytest.raises(ValidationError):
        parse_amount(text)


def test_parse_amount_negative_allowed():
    assert parse_amount("-200", allow_negative=True) == -200
    assert parse_amount("+50", allow_negative=True) == 50


def test_round_money_half_up():
    assert round_money(300) == 300
    assert round_money(Decimal("0.5")) == 1
    assert round_money(Decimal("2.5")) == 3
    assert round_money(Decimal("-2.5")) == -3


def test_calculate_basic_day():
    result = calculate(600, 900, 0)
    assert result.total_revenue == 1500
    assert result.salary == 300
    assert result.responsible_salary == 300
    assert result.total_daily == 1500
    assert result.total_cash == 900
    assert result.total_qr == 600


def test_calculate_without_terminal():
    assert calculate(1000, 1000).total_revenue == 2000


def test_salary_rounding():
    # 20% of 1003 is 200.6
    assert calculate(1003, 0).salary == 201
    # 20% of 1002 is 200.4
    assert calculate(1002, 0).salary == 200


def test_cash_in_envelope_deducts_every_bonus():
    assert calculate_cash_in_envelope(900, 500) == 400
    assert calculate_cash_in_envelope(900, 500, -150, 1200, 500) == -1150
    assert calculate_cash_in_envelope(0) == 0


def test_format_amount():
    assert format_amount(1500) == "1 500 ₽"
    assert format_amount(None) == "0 ₽"
    assert format_signed_amount(50) == "+50 ₽"
    assert format_signed_amount(-200) == "-200 ₽"


def test_parse_bonus_targets():
    assert parse_bonus_targets("1000,2000,3000") == [1000, 2000, 3000]
    assert parse_bonus_targets(" 1 000 , 2000 ") == [1000, 2000]
    assert parse_bonus_targets("") is None
    assert parse_bonus_targets("1000,abc") is None
    assert parse_bonus_targets("-100") is None


def test_bonus_targets_storage_format():
    assert bonus_targets_to_string([1000, 2000]) == "1000,2000"
    assert format_bonus_targets([1000, 2000]) == "1 000 ₽, 2 000 ₽"
    assert format_bonus_targets([]) == "—"


@pytest.mark.parametrize(
    "revenue, expected",
    [(0, 0), (999, 0), (1000, 500), (1500, 500), (2000, 1000), (5000, 1500)],
)
def test_bonus_by_targets(revenue, expected):
    assert calculate_bonus_by_targets(revenue, [1000, 2000, 3000]) == expected


def test_bonus_by_targets_unsorted_thresholds():
    assert calculate_bonus_by_targets(2500, [3000, 1000, 2000]) == 1000
    assert calculate_bonus_by_targets(2500, []) == 0
