from __future__ import annotations
import datetime
import logging
from typing import Dict, List, Optional, Sequence

from algorithms import (
    DateBucketing,
    FrequencyHistogram,
    PeriodAggregator,
    StreakCalculator,
    WorkoutFilter,
)
from algorithms.date_bucketing import Timestamp
from db import AsyncWorkoutRepository, SettingsRepository, WorkoutRepository
from models import UNKNOWN_TYPE, WorkoutRecord

logger = logging.getLogger(__name__)


class StatisticsService:
    """Compute streaks, calendar aggregates and histograms for workouts.

    Every public method reads one snapshot of the workout table and runs the
    whole computation on it; the repository is never consulted mid-pass.
    """

    def __init__(
        self,
        workout_repo: WorkoutRepository,
        settings_repo: SettingsRepository | None = None,
        async_workout_repo: AsyncWorkoutRepository | None = None,
        timezone: str | None = None,
    ) -> None:
        self.workouts = workout_repo
        self.settings = settings_repo
        self.async_workouts = async_workout_repo
        if timezone is None:
            timezone = (
                settings_repo.get_text("timezone", "UTC")
                if settings_repo is not None
                else "UTC"
            )
        unknown = (
            settings_repo.get_text("unknown_type_label", UNKNOWN_TYPE)
            if settings_repo is not None
            else UNKNOWN_TYPE
        )
        self.bucketing = DateBucketing(timezone)
        self.streaks = StreakCalculator(self.bucketing)
        self.periods = PeriodAggregator(self.bucketing)
        self.histograms = FrequencyHistogram(self.bucketing, unknown)
        self.filter = WorkoutFilter(self.bucketing)

    def snapshot(self) -> Sequence[WorkoutRecord]:
        records = self.workouts.fetch_records()
        logger.debug("loaded %d workout records", len(records))
        return records

    def _reference(self, reference: Timestamp) -> datetime.datetime | datetime.date:
        return reference if reference is not None else self.bucketing.now()

    def current_streak(self, today: Timestamp = None) -> int:
        return self.streaks.current_streak(list(self.snapshot()), today)

    def filtered(
        self,
        year: Optional[int] = None,
        workout_type: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[WorkoutRecord]:
        return self.filter.filter_records(self.snapshot(), year, workout_type, search)

    def _summary(
        self,
        records: Sequence[WorkoutRecord],
        year: int,
        reference: Timestamp,
        workout_type: Optional[str] = None,
    ) -> Dict[str, float]:
        ref = self._reference(reference)
        selected = self.filter.filter_records(records, year, workout_type)
        streak_records = self.filter.filter_records(records, None, workout_type)
        return {
            "year": year,
            "workouts": self.periods.count_in_year(selected, year),
            "active_days": self.periods.unique_active_days(selected, year),
            "completion_percentage": round(
                self.periods.completion_percentage(selected, year, ref), 2
            ),
            "average_per_week": round(
                self.periods.average_per_week(selected, year, ref), 2
            ),
            "current_streak": self.streaks.current_streak(streak_records, ref),
        }

    def year_summary(
        self,
        year: Optional[int] = None,
        reference: Timestamp = None,
        workout_type: Optional[str] = None,
    ) -> Dict[str, float]:
        """Return yearly totals, completion and streak for the stats view."""
        ref = self._reference(reference)
        if year is None:
            year = self.bucketing.year_of(ref)
        return self._summary(self.snapshot(), year, ref, workout_type)

    async def async_year_summary(
        self,
        year: Optional[int] = None,
        reference: Timestamp = None,
        workout_type: Optional[str] = None,
    ) -> Dict[str, float]:
        """Read the snapshot asynchronously, then compute without awaiting."""
        if self.async_workouts is None:
            raise ValueError("async workout repository not configured")
        records = await self.async_workouts.fetch_records()
        ref = self._reference(reference)
        if year is None:
            year = self.bucketing.year_of(ref)
        return self._summary(records, year, ref, workout_type)

    def period_counts(self, reference: Timestamp = None) -> Dict[str, int]:
        """Return workout counts for today, this week, month and year."""
        records = self.snapshot()
        ref = self._reference(reference)
        day = self.bucketing.day_key(ref)
        iso_year, week, _ = day.isocalendar()
        return {
            "today": self.periods.count_on_day(records, day),
            "week": self.periods.count_in_week(records, iso_year, week),
            "month": self.periods.count_in_month(records, day.year, day.month),
            "year": self.periods.count_in_year(records, day.year),
        }

    def has_worked_out_today(self, reference: Timestamp = None) -> bool:
        return self.period_counts(reference)["today"] > 0

    def frequency_histogram(
        self,
        year: Optional[int] = None,
        reference: Timestamp = None,
        workout_type: Optional[str] = None,
    ) -> Dict[int, int]:
        ref = self._reference(reference)
        if year is None:
            year = self.bucketing.year_of(ref)
        records = self.filter.filter_records(self.snapshot(), year, workout_type)
        return self.histograms.daily_frequency_histogram(records, year, ref)

    def type_histogram(self, year: Optional[int] = None) -> Dict[str, int]:
        records = self.filter.filter_records(self.snapshot(), year)
        return self.histograms.type_histogram(records)

    def monthly_counts(
        self, year: Optional[int] = None, workout_type: Optional[str] = None
    ) -> List[int]:
        if year is None:
            year = self.bucketing.today().year
        records = self.filter.filter_records(self.snapshot(), year, workout_type)
        return self.periods.monthly_counts(records, year)

    def month_calendar(
        self,
        year: int,
        month: int,
        reference: Timestamp = None,
        workout_type: Optional[str] = None,
    ) -> dict:
        if not 1 <= month <= 12:
            raise ValueError("month must be between 1 and 12")
        records = self.filter.filter_records(self.snapshot(), year, workout_type)
        return self.histograms.month_calendar(
            records, year, month, self._reference(reference)
        )

    def available_years(self) -> List[int]:
        return self.periods.available_years(self.snapshot())
