# recurrence/calendar_math.py

"""
Date-shifting primitives.

Month and year shifts use relativedelta, which clamps an overflowing day to the
last day of the target month (Jan 31 + 1 month = Feb 28/29, Feb 29 + 1 year = Feb 28).
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import TypeVar

from dateutil.relativedelta import relativedelta

D = TypeVar("D", date, datetime)


def add_days(d: D, n: int) -> D:
    return d + timedelta(days=n)


def add_months(d: D, n: int) -> D:
    return d + relativedelta(months=n)


def add_years(d: D, n: int) -> D:
    return d + relativedelta(years=n)
