import datetime
from collections import Counter
from typing import Iterable, Optional

from models import UNKNOWN_TYPE, WorkoutRecord, canonical_type
from .date_bucketing import DateBucketing, Timestamp


class FrequencyHistogram:
    """Bucket days and workout types for the yearly statistics views."""

    def __init__(
        self,
        bucketing: Optional[DateBucketing] = None,
        unknown_label: str = UNKNOWN_TYPE,
    ) -> None:
        self.bucketing = bucketing or DateBucketing()
        self.unknown_label = unknown_label

    def _per_day(self, records: Iterable[WorkoutRecord]) -> Counter:
        per_day: Counter = Counter()
        for rec in records:
            day = self.bucketing.day_key(rec.date)
            if day is not None:
                per_day[day] += 1
        return per_day

    def daily_frequency_histogram(
        self, records: Iterable[WorkoutRecord], year: int, reference: Timestamp
    ) -> dict[int, int]:
        """Return how many days of ``year`` had 0, 1 or 2+ workouts.

        Key ``2`` stands for two or more. The range ends at the reference
        day for the reference's own year and at Dec 31 otherwise.
        """
        per_day = self._per_day(records)
        frequency = {0: 0, 1: 0, 2: 0}
        start = self.bucketing.start_of_year(year)
        end = self.bucketing.period_end(year, reference)
        for day in self.bucketing.iter_days(start, end):
            frequency[min(per_day.get(day, 0), 2)] += 1
        return frequency

    def type_histogram(self, records: Iterable[WorkoutRecord]) -> dict[str, int]:
        counts: dict[str, int] = {}
        for rec in records:
            label = canonical_type(rec.type, self.unknown_label)
            counts[label] = counts.get(label, 0) + 1
        return counts

    def month_calendar(
        self,
        records: Iterable[WorkoutRecord],
        year: int,
        month: int,
        reference: Timestamp,
    ) -> dict:
        """Return heat-map cells for one month.

        ``leading_blanks`` is the number of empty cells before day 1 in a
        Sunday-first week grid. Each cell status is ``future``, ``rest``,
        ``multiple`` or the category of the day's only workout.
        """
        by_day: dict[datetime.date, list[WorkoutRecord]] = {}
        for rec in records:
            day = self.bucketing.day_key(rec.date)
            if day is not None and day.year == year and day.month == month:
                by_day.setdefault(day, []).append(rec)
        ref_day = self.bucketing.day_key(reference)
        first = datetime.date(year, month, 1)
        cells = []
        for num in range(1, self.bucketing.days_in_month(year, month) + 1):
            day = first.replace(day=num)
            workouts = by_day.get(day, [])
            if ref_day is not None and day > ref_day:
                status = "future"
            elif not workouts:
                status = "rest"
            elif len(workouts) > 1:
                status = "multiple"
            else:
                status = canonical_type(workouts[0].type, self.unknown_label)
            cells.append(
                {
                    "day": num,
                    "date": day.isoformat(),
                    "count": len(workouts),
                    "types": [
                        canonical_type(w.type, self.unknown_label) for w in workouts
                    ],
                    "status": status,
                }
            )
        return {
            "year": year,
            "month": month,
            "leading_blanks": (first.weekday() + 1) % 7,
            "days": cells,
        }
