"""
Canonical edition dates.

Every edition is keyed by the calendar day observed at UTC+05:30, whatever
the server or client timezone. Parsing rule: a date-only value
(``YYYY-MM-DD`` or a ``date``) already names a calendar day and is returned
unchanged; a value with a time of day is converted to UTC+05:30 first, with
naive datetimes read as UTC.
"""

import calendar
import re
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union

EDITION_TZ = timezone(timedelta(hours=5, minutes=30), name="IST")
DATE_FORMAT = "%Y-%m-%d"

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DateInput = Union[None, str, date, datetime]


def edition_now(now: Optional[datetime] = None) -> datetime:
    """Current instant (or the given one) expressed in the edition timezone"""
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    return current.astimezone(EDITION_TZ)


def to_edition_date(value: DateInput = None, *, now: Optional[datetime] = None) -> str:
    """Return the canonical YYYY-MM-DD key for ``value`` (``None`` means now).

    Raises ``ValueError`` for strings that are not ISO 8601 dates.
    """
    if value is None:
        return edition_now(now).strftime(DATE_FORMAT)

    if isinstance(value, datetime):
        return edition_now(value).strftime(DATE_FORMAT)

    if isinstance(value, date):
        return value.strftime(DATE_FORMAT)

    text = str(value).strip()
    if not text:
        raise ValueError("Empty date value")

    if _DATE_ONLY.match(text):
        # Validates the calendar day, e.g. rejects 2025-02-30
        return datetime.strptime(text, DATE_FORMAT).strftime(DATE_FORMAT)

    parsed = datetime.fromisoformat(text.replace('Z', '+00:00'))
    return edition_now(parsed).strftime(DATE_FORMAT)


def today_edition_date(now: Optional[datetime] = None) -> str:
    return to_edition_date(now=now)


def yesterday_edition_date(now: Optional[datetime] = None) -> str:
    return (edition_now(now) - timedelta(days=1)).strftime(DATE_FORMAT)


def is_future_date(date_str: str, now: Optional[datetime] = None) -> bool:
    """True when the canonical date lies after today in the edition timezone"""
    # Canonical keys sort lexicographically in date order
    return to_edition_date(date_str) > today_edition_date(now)


def month_dates(year: int, month: int) -> list[str]:
    """All canonical date keys of a calendar month"""
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")
    days_in_month = calendar.monthrange(year, month)[1]
    return [date(year, month, day).strftime(DATE_FORMAT) for day in range(1, days_in_month + 1)]
