from typing import Iterable, Optional

from models import WorkoutRecord
from .date_bucketing import DateBucketing


class WorkoutFilter:
    """Type, search and year filters as used by the history views."""

    ALL = "All"

    def __init__(self, bucketing: Optional[DateBucketing] = None) -> None:
        self.bucketing = bucketing or DateBucketing()

    @classmethod
    def matches_type(cls, record: WorkoutRecord, workout_type: Optional[str]) -> bool:
        """Exact, case-insensitive match on the type or any tag."""
        if not workout_type or workout_type == cls.ALL:
            return True
        wanted = workout_type.lower()
        if record.type is not None and record.type.lower() == wanted:
            return True
        return any(tag.lower() == wanted for tag in record.tags)

    @staticmethod
    def matches_search(record: WorkoutRecord, search: Optional[str]) -> bool:
        """Case-insensitive substring match on type, tags and notes."""
        if not search or not search.strip():
            return True
        needle = search.strip().lower()
        fields = [record.type or "", record.notes or "", *record.tags]
        return any(needle in f.lower() for f in fields)

    @classmethod
    def matches(
        cls,
        record: WorkoutRecord,
        workout_type: Optional[str] = None,
        search: Optional[str] = None,
    ) -> bool:
        return cls.matches_type(record, workout_type) and cls.matches_search(
            record, search
        )

    def filter_records(
        self,
        records: Iterable[WorkoutRecord],
        year: Optional[int] = None,
        workout_type: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[WorkoutRecord]:
        result = []
        for rec in records:
            if year is not None and self.bucketing.year_of(rec.date) != year:
                continue
            if self.matches(rec, workout_type, search):
                result.append(rec)
        return result
