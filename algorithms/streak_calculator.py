import datetime
from typing import Iterable, Optional

from models import WorkoutRecord
from .date_bucketing import DateBucketing, Timestamp


class StreakCalculator:
    """Compute the current workout streak allowing single rest days."""

    def __init__(self, bucketing: Optional[DateBucketing] = None) -> None:
        self.bucketing = bucketing or DateBucketing()

    def active_days(self, records: Iterable[WorkoutRecord]) -> set[datetime.date]:
        """Return the set of days with at least one dated record."""
        days: set[datetime.date] = set()
        for rec in records:
            day = self.bucketing.day_key(rec.date)
            if day is not None:
                days.add(day)
        return days

    def current_streak(
        self, records: list[WorkoutRecord], today: Timestamp = None
    ) -> int:
        """Walk back from ``today`` counting active days.

        A missed day is skipped once; the allowance is restored by the next
        active day further back. Two missed days in a row end the walk.
        """
        if not records:
            return 0
        day = self.bucketing.day_key(today) or self.bucketing.today()
        active = self.active_days(records)
        streak = 0
        rest_day_used = False
        while True:
            if day in active:
                streak += 1
                rest_day_used = False
            elif not rest_day_used:
                rest_day_used = True
            else:
                break
            day = self.bucketing.previous_day(day)
        return streak
