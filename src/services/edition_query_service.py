"""
Read side of the edition store: single days, the latest past edition and
month calendars.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from src.models.api import CalendarDay, CalendarResponse
from src.models.domain import Edition
from src.models.errors import EditionValidationError
from src.repositories.edition_repository import EditionRepository
from src.utils.edition_dates import (
    month_dates, to_edition_date, today_edition_date, yesterday_edition_date
)

logger = logging.getLogger(__name__)


class EditionQueryService:
    """Service for reading published editions"""

    def __init__(self, repository: EditionRepository, clock: Optional[Callable[[], datetime]] = None):
        self.repository = repository
        self.clock = clock

    def _now(self) -> Optional[datetime]:
        return self.clock() if self.clock else None

    def get_edition(self, date: str) -> Optional[Edition]:
        """Edition for ``date`` (any ISO form), or None when nothing was published"""
        try:
            edition_date = to_edition_date(date)
        except ValueError as e:
            raise EditionValidationError("Invalid date", cause=e) from e

        return self.repository.get_by_date(edition_date)

    def get_latest_available(self) -> str:
        """Most recent edition date before today; yesterday when there is none"""
        now = self._now()
        try:
            latest = self.repository.get_latest_before(today_edition_date(now))
        except Exception as e:
            logger.error(f"Error looking up latest edition, falling back to yesterday: {e}")
            return yesterday_edition_date(now)

        if latest is None:
            return yesterday_edition_date(now)
        return latest.date

    def get_calendar_month(self, year: int, month: int) -> CalendarResponse:
        """Availability of every day of a month; future days are never available"""
        try:
            dates = month_dates(year, month)
        except ValueError as e:
            raise EditionValidationError("Invalid year or month", cause=e) from e

        today = today_edition_date(self._now())
        entries = self.repository.get_range(dates[0], dates[-1])

        data = {}
        for day in dates:
            entry = entries.get(day)
            if entry is None or day > today:
                data[day] = CalendarDay(available=False, headline=None, image_url=None, label=day)
            else:
                data[day] = CalendarDay(
                    available=True,
                    headline=entry.headline,
                    image_url=entry.image_url,
                    label=entry.label
                )

        available = sum(1 for day in data.values() if day.available)
        logger.debug(f"Calendar {year}-{month:02d}: {available} of {len(dates)} days available")
        return CalendarResponse(year=year, month=month, data=data)
