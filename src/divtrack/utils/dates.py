"""
Calendar helpers shared by the portfolio engine and the data services.
"""
from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta

import pandas as pd


def today() -> date:
    return date.today()


def parse_ymd(s: str) -> date:
    """Parse YYYY-MM-DD string to date. Raises ValueError on failure."""
    return date.fromisoformat(s.strip())


def parse_short_ymd(s: str | None) -> date | None:
    """
    Parse the dividend table's two-digit-year format: `'24/07/18`.

    The leading apostrophe is part of the stored value. "nan" and empty
    strings mean missing. Anything after a space (a time part) is ignored.
    """
    if s is None:
        return None
    s = s.strip()
    if not s or s.lower() == "nan":
        return None
    s = s.split(" ")[0].lstrip("'")
    try:
        return datetime.strptime(s, "%y/%m/%d").date()
    except ValueError:
        return None


def add_months(d: date, months: int) -> date:
    """Calendar month arithmetic; the day clamps to the end of the target month."""
    return (pd.Timestamp(d) + pd.DateOffset(months=int(months))).date()


def add_days(d: date, days: int) -> date:
    return d + timedelta(days=int(days))


def end_of_month(d: date) -> date:
    return d.replace(day=calendar.monthrange(d.year, d.month)[1])


def months_between(start: date, end: date) -> int:
    """Whole calendar months from start to end (negative if end precedes start)."""
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if months > 0 and end.day < start.day:
        months -= 1
    elif months < 0 and end.day > start.day:
        months += 1
    return months


def days_between(d1: date, d2: date) -> int:
    """Return number of days between two dates."""
    return (d2 - d1).days

