import os
import sys
import datetime
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from algorithms import DateBucketing, WorkoutFilter
from models import WorkoutRecord


class WorkoutFilterTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.filter = WorkoutFilter(DateBucketing("UTC"))
        self.records = [
            WorkoutRecord(
                id=1,
                date=datetime.datetime(2024, 4, 1, 7),
                type="Cardio",
                notes="Morning run by the lake",
                tags=["outdoor", "long"],
            ),
            WorkoutRecord(
                id=2, date=datetime.datetime(2024, 4, 2, 7), type="Strength", tags=["cardio"]
            ),
            WorkoutRecord(id=3, date=datetime.datetime(2023, 6, 1, 7), type="Yoga"),
            WorkoutRecord(id=4, type="Cardio"),
        ]

    def ids(self, records) -> list:
        return [r.id for r in records]

    def test_all_matches_everything(self) -> None:
        self.assertEqual(
            self.ids(self.filter.filter_records(self.records, workout_type="All")),
            [1, 2, 3, 4],
        )

    def test_type_matches_type_or_tag(self) -> None:
        result = self.filter.filter_records(self.records, workout_type="CARDIO")
        self.assertEqual(self.ids(result), [1, 2, 4])

    def test_year_filter_skips_undated(self) -> None:
        result = self.filter.filter_records(self.records, year=2024)
        self.assertEqual(self.ids(result), [1, 2])

    def test_search(self) -> None:
        self.assertEqual(
            self.ids(self.filter.filter_records(self.records, search="LAKE")), [1]
        )
        self.assertEqual(
            self.ids(self.filter.filter_records(self.records, search="door")), [1]
        )
        self.assertEqual(
            self.ids(self.filter.filter_records(self.records, search="  ")),
            [1, 2, 3, 4],
        )

    def test_combined(self) -> None:
        result = self.filter.filter_records(
            self.records, year=2024, workout_type="Cardio", search="run"
        )
        self.assertEqual(self.ids(result), [1])


if __name__ == "__main__":
    unittest.main()
