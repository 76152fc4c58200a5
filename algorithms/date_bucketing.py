import calendar
import datetime
from typing import Iterator, Optional, Union
from zoneinfo import ZoneInfo

Timestamp = Union[datetime.datetime, datetime.date, None]


class DateBucketing:
    """Normalize timestamps to Gregorian calendar days in one time zone.

    Aware datetimes are converted to ``timezone`` before the day is taken.
    Naive datetimes are treated as wall-clock time in ``timezone``. Plain
    ``date`` objects are already day keys.
    """

    def __init__(self, timezone: str = "UTC") -> None:
        self.timezone = timezone
        self.zone = ZoneInfo(timezone)

    def day_key(self, timestamp: Timestamp) -> Optional[datetime.date]:
        """Return the calendar day of ``timestamp`` or ``None`` when missing."""
        if timestamp is None:
            return None
        if isinstance(timestamp, datetime.datetime):
            if timestamp.tzinfo is not None:
                timestamp = timestamp.astimezone(self.zone)
            return timestamp.date()
        return timestamp

    def year_of(self, timestamp: Timestamp) -> Optional[int]:
        day = self.day_key(timestamp)
        return day.year if day is not None else None

    def month_of(self, timestamp: Timestamp) -> Optional[int]:
        day = self.day_key(timestamp)
        return day.month if day is not None else None

    def week_of_year_of(self, timestamp: Timestamp) -> Optional[int]:
        """Return the ISO week number of ``timestamp``."""
        day = self.day_key(timestamp)
        return day.isocalendar()[1] if day is not None else None

    def iso_year_of(self, timestamp: Timestamp) -> Optional[int]:
        """Return the ISO year that owns the week of ``timestamp``."""
        day = self.day_key(timestamp)
        return day.isocalendar()[0] if day is not None else None

    def now(self) -> datetime.datetime:
        return datetime.datetime.now(self.zone)

    def today(self) -> datetime.date:
        return self.now().date()

    @staticmethod
    def previous_day(day: datetime.date) -> datetime.date:
        return day - datetime.timedelta(days=1)

    @staticmethod
    def start_of_year(year: int) -> datetime.date:
        return datetime.date(year, 1, 1)

    @staticmethod
    def end_of_year(year: int) -> datetime.date:
        return datetime.date(year, 12, 31)

    @staticmethod
    def days_in_year(year: int) -> int:
        return 366 if calendar.isleap(year) else 365

    @staticmethod
    def days_in_month(year: int, month: int) -> int:
        return calendar.monthrange(year, month)[1]

    @staticmethod
    def days_since_start_of_year(day: datetime.date) -> int:
        """Return whole days between Jan 1 of ``day.year`` and ``day``."""
        return (day - datetime.date(day.year, 1, 1)).days

    @staticmethod
    def iter_days(
        start: datetime.date, end: datetime.date
    ) -> Iterator[datetime.date]:
        """Yield every day from ``start`` to ``end`` inclusive."""
        current = start
        step = datetime.timedelta(days=1)
        while current <= end:
            yield current
            current += step

    def period_end(self, year: int, reference: Timestamp) -> datetime.date:
        """Return the last day counted for ``year`` as seen from ``reference``.

        The reference day for its own year, Dec 31 for every other year.
        """
        ref_day = self.day_key(reference)
        if ref_day is not None and ref_day.year == year:
            return ref_day
        return self.end_of_year(year)
