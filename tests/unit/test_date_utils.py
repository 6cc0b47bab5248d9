"""Unit tests for calendar and money helpers"""

from datetime import date
from decimal import Decimal
from mailcenter_pricing.utils.date_utils import add_months, age_on, nth_birthday, whole_months_between
from mailcenter_pricing.utils.money import format_amount, format_currency, to_money


def test_add_months_clamps_to_month_end():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
    assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)


def test_age_on_birthday():
    assert age_on(date(2006, 5, 1), date(2024, 4, 30)) == 17
    assert age_on(date(2006, 5, 1), date(2024, 5, 1)) == 18


def test_leap_day_eighteenth_birthday():
    assert nth_birthday(date(2008, 2, 29), 18) == date(2026, 2, 28)
    assert nth_birthday(date(2006, 2, 28), 18) == date(2024, 2, 28)


def test_whole_months_between_floors():
    assert whole_months_between(date(2024, 1, 15), date(2024, 3, 14)) == 1
    assert whole_months_between(date(2024, 1, 15), date(2024, 3, 15)) == 2
    assert whole_months_between(date(2024, 3, 1), date(2025, 3, 1)) == 12


def test_whole_months_between_never_negative():
    assert whole_months_between(date(2024, 3, 1), date(2024, 3, 1)) == 0
    assert whole_months_between(date(2024, 3, 1), date(2024, 1, 1)) == 0


def test_to_money_rounds_half_up():
    assert to_money(Decimal("1.005")) == Decimal("1.01")
    assert to_money(Decimal("1.004")) == Decimal("1.00")
    assert to_money(0.1 + 0.2) == Decimal("0.30")
    assert to_money(7) == Decimal("7.00")


def test_currency_formatting():
    assert format_amount(Decimal("45")) == "45.00"
    assert format_currency(Decimal("1234.5")) == "$1,234.50"
    assert format_currency(Decimal("-1")) == "-$1.00"
