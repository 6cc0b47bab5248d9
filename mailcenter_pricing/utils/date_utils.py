"""Calendar date utilities for age and whole-month arithmetic"""

from datetime import date, timedelta
from dateutil.relativedelta import relativedelta


def add_years(day: date, years: int) -> date:
    """Add calendar years. 29 February maps to 28 February in non-leap years."""
    return day + relativedelta(years=years)


def add_months(day: date, months: int) -> date:
    """Add calendar months, clamping the day to the end of the target month"""
    return day + relativedelta(months=months)


def age_on(birthdate: date, reference_date: date) -> int:
    """Age in whole years as of reference_date"""
    return relativedelta(reference_date, birthdate).years


def nth_birthday(birthdate: date, years: int) -> date:
    return add_years(birthdate, years)


def whole_months_between(start: date, end: date) -> int:
    """
    Whole calendar months from start to end, fractional remainder dropped.

    Jan 15 -> Mar 14 is 1 month, Jan 15 -> Mar 15 is 2 months.
    Never negative.
    """
    if end <= start:
        return 0
    delta = relativedelta(end, start)
    return delta.years * 12 + delta.months


def add_days(day: date, days: int) -> date:
    return day + timedelta(days=days)
