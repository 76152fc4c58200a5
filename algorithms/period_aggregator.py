import datetime
from typing import Iterable, Iterator, Optional

from models import WorkoutRecord
from .date_bucketing import DateBucketing, Timestamp


class PeriodAggregator:
    """Count workouts over calendar windows and derive yearly ratios."""

    def __init__(self, bucketing: Optional[DateBucketing] = None) -> None:
        self.bucketing = bucketing or DateBucketing()

    def _days(self, records: Iterable[WorkoutRecord]) -> Iterator[datetime.date]:
        for rec in records:
            day = self.bucketing.day_key(rec.date)
            if day is not None:
                yield day

    def count_in_year(self, records: Iterable[WorkoutRecord], year: int) -> int:
        return sum(1 for day in self._days(records) if day.year == year)

    def count_in_month(
        self, records: Iterable[WorkoutRecord], year: int, month: int
    ) -> int:
        return sum(
            1 for day in self._days(records) if day.year == year and day.month == month
        )

    def count_in_week(
        self, records: Iterable[WorkoutRecord], year: int, week: int
    ) -> int:
        """Count records in ISO ``week`` of ISO ``year``."""
        return sum(
            1 for day in self._days(records) if day.isocalendar()[:2] == (year, week)
        )

    def count_on_day(
        self, records: Iterable[WorkoutRecord], day: datetime.date
    ) -> int:
        return sum(1 for d in self._days(records) if d == day)

    def records_on_day(
        self, records: Iterable[WorkoutRecord], day: datetime.date
    ) -> list[WorkoutRecord]:
        return [r for r in records if self.bucketing.day_key(r.date) == day]

    def unique_active_days(
        self,
        records: Iterable[WorkoutRecord],
        year: int,
        until: Optional[datetime.date] = None,
    ) -> int:
        """Count distinct days of ``year`` with a workout, up to ``until``."""
        days = {
            day
            for day in self._days(records)
            if day.year == year and (until is None or day <= until)
        }
        return len(days)

    def completion_percentage(
        self, records: Iterable[WorkoutRecord], year: int, reference: Timestamp
    ) -> float:
        """Return the share of considered days in ``year`` with a workout."""
        end = self.bucketing.period_end(year, reference)
        total = (end - self.bucketing.start_of_year(year)).days + 1
        if total <= 0:
            return 0.0
        active = self.unique_active_days(records, year, until=end)
        return active / total * 100

    def average_per_week(
        self, records: Iterable[WorkoutRecord], year: int, reference: Timestamp
    ) -> float:
        """Return workouts per elapsed whole week of ``year``."""
        end = self.bucketing.period_end(year, reference)
        weeks = (end - self.bucketing.start_of_year(year)).days // 7
        if weeks <= 0:
            return 0.0
        return self.count_in_year(records, year) / weeks

    def monthly_counts(
        self, records: Iterable[WorkoutRecord], year: int
    ) -> list[int]:
        counts = [0] * 12
        for day in self._days(records):
            if day.year == year:
                counts[day.month - 1] += 1
        return counts

    def available_years(self, records: Iterable[WorkoutRecord]) -> list[int]:
        """Return the years having records, most recent first."""
        return sorted({day.year for day in self._days(records)}, reverse=True)
