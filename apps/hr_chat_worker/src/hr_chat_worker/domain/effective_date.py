"""Effective-date helpers evaluated in the application timezone."""

from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo


def localize(moment: datetime, timezone: ZoneInfo) -> datetime:
    """Return ``moment`` in ``timezone``; naive values are taken as local."""

    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone)
    return moment.astimezone(timezone)


def first_day_of_next_month(moment: datetime, timezone: ZoneInfo) -> date:
    """Return the first calendar day of the month after ``moment``."""

    localized = localize(moment, timezone)
    if localized.month == 12:
        return date(year=localized.year + 1, month=1, day=1)
    return date(year=localized.year, month=localized.month + 1, day=1)
