import os
import sys
import datetime
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from db import SettingsRepository, WorkoutRepository
from stats_service import StatisticsService


class StatisticsServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db_path = "test_stats.db"
        self.yaml_path = "test_stats.yaml"
        for path in [self.db_path, self.yaml_path]:
            if os.path.exists(path):
                os.remove(path)
        self.workouts = WorkoutRepository(self.db_path)
        self.settings = SettingsRepository(self.db_path, self.yaml_path)
        self.service = StatisticsService(self.workouts, self.settings)
        self.ref = datetime.datetime(2024, 1, 10, 20, 0)
        for day, w_type in [
            (datetime.datetime(2023, 12, 31, 9), "Cardio"),
            (datetime.datetime(2024, 1, 1, 9), "Cardio"),
            (datetime.datetime(2024, 1, 8, 9), "Strength"),
            (datetime.datetime(2024, 1, 9, 9), "Cardio"),
            (datetime.datetime(2024, 1, 9, 19), "Yoga"),
            (datetime.datetime(2024, 1, 10, 7), "Boxing"),
        ]:
            self.workouts.create(day, w_type, 30)
        self.workouts.create(None, "Cardio", 30)

    def tearDown(self) -> None:
        for path in [self.db_path, self.yaml_path]:
            if os.path.exists(path):
                os.remove(path)

    def test_year_summary(self) -> None:
        summary = self.service.year_summary(2024, self.ref)
        self.assertEqual(summary["year"], 2024)
        self.assertEqual(summary["workouts"], 5)
        self.assertEqual(summary["active_days"], 4)
        self.assertEqual(summary["completion_percentage"], 40.0)
        self.assertEqual(summary["average_per_week"], 5.0)
        self.assertEqual(summary["current_streak"], 3)

    def test_year_summary_by_type(self) -> None:
        summary = self.service.year_summary(2024, self.ref, workout_type="Cardio")
        self.assertEqual(summary["workouts"], 2)
        self.assertEqual(summary["active_days"], 2)
        # today forgiven, Jan 9 counts, Jan 8 forgiven, Jan 7 breaks the walk
        self.assertEqual(summary["current_streak"], 1)

    def test_streak_crosses_year(self) -> None:
        ref = datetime.datetime(2024, 1, 1, 12)
        self.assertEqual(self.service.current_streak(ref), 2)
        self.assertEqual(self.service.year_summary(2024, ref)["current_streak"], 2)

    def test_period_counts(self) -> None:
        counts = self.service.period_counts(self.ref)
        self.assertEqual(counts, {"today": 1, "week": 4, "month": 5, "year": 5})
        self.assertTrue(self.service.has_worked_out_today(self.ref))
        self.assertFalse(
            self.service.has_worked_out_today(datetime.datetime(2024, 1, 11, 8))
        )

    def test_histograms(self) -> None:
        freq = self.service.frequency_histogram(2024, self.ref)
        self.assertEqual(freq, {0: 6, 1: 3, 2: 1})
        types = self.service.type_histogram(2024)
        self.assertEqual(
            types, {"Cardio": 2, "Strength": 1, "Yoga": 1, "Unknown": 1}
        )
        self.assertEqual(self.service.monthly_counts(2024)[0], 5)
        self.assertEqual(self.service.available_years(), [2024, 2023])

    def test_unknown_label_from_settings(self) -> None:
        self.settings.set_text("unknown_type_label", "Other")
        service = StatisticsService(self.workouts, self.settings)
        self.assertEqual(service.type_histogram(2024)["Other"], 1)

    def test_timezone_from_settings(self) -> None:
        self.workouts.delete_all()
        self.workouts.create(
            datetime.datetime(2024, 3, 10, 3, 0, tzinfo=datetime.timezone.utc), "Yoga"
        )
        self.settings.set_text("timezone", "America/New_York")
        service = StatisticsService(self.workouts, self.settings)
        cal = service.month_calendar(2024, 3, datetime.datetime(2024, 3, 31))
        self.assertEqual(cal["days"][8]["status"], "Yoga")
        self.assertEqual(cal["days"][9]["status"], "rest")

    def test_month_calendar_rejects_bad_month(self) -> None:
        with self.assertRaises(ValueError):
            self.service.month_calendar(2024, 13)

    def test_filtered(self) -> None:
        self.assertEqual(len(self.service.filtered(workout_type="Cardio")), 4)
        self.assertEqual(len(self.service.filtered(year=2023)), 1)


if __name__ == "__main__":
    unittest.main()
