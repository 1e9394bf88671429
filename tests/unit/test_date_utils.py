"""Unit tests for calendar month arithmetic"""

from datetime import date
from finplan_gateway.utils.date_utils import add_months


def test_add_months_simple():
    assert add_months(date(2024, 3, 15), 2) == date(2024, 5, 15)


def test_add_months_rolls_year():
    assert add_months(date(2024, 11, 10), 14) == date(2026, 1, 10)


def test_add_months_clamps_to_month_end():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)


def test_add_zero_months():
    assert add_months(date(2024, 7, 4), 0) == date(2024, 7, 4)
