import os
import sys
import datetime
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from algorithms import DateBucketing


class DateBucketingTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.utc = DateBucketing("UTC")

    def test_same_day_gives_equal_keys(self) -> None:
        morning = datetime.datetime(2024, 5, 4, 0, 1)
        night = datetime.datetime(2024, 5, 4, 23, 59)
        self.assertEqual(self.utc.day_key(morning), self.utc.day_key(night))
        self.assertLess(
            self.utc.day_key(night),
            self.utc.day_key(datetime.datetime(2024, 5, 5, 0, 0)),
        )

    def test_none_and_plain_dates(self) -> None:
        self.assertIsNone(self.utc.day_key(None))
        self.assertIsNone(self.utc.year_of(None))
        day = datetime.date(2024, 2, 29)
        self.assertEqual(self.utc.day_key(day), day)

    def test_aware_timestamps_use_configured_zone(self) -> None:
        ny = DateBucketing("America/New_York")
        ts = datetime.datetime(2024, 3, 10, 3, 0, tzinfo=datetime.timezone.utc)
        self.assertEqual(ny.day_key(ts), datetime.date(2024, 3, 9))
        self.assertEqual(self.utc.day_key(ts), datetime.date(2024, 3, 10))

    def test_accessors(self) -> None:
        ts = datetime.datetime(2024, 12, 30, 12, 0)
        self.assertEqual(self.utc.year_of(ts), 2024)
        self.assertEqual(self.utc.month_of(ts), 12)
        self.assertEqual(self.utc.week_of_year_of(ts), 1)
        self.assertEqual(self.utc.iso_year_of(ts), 2025)

    def test_previous_day_crosses_boundaries(self) -> None:
        self.assertEqual(
            DateBucketing.previous_day(datetime.date(2024, 1, 1)),
            datetime.date(2023, 12, 31),
        )
        self.assertEqual(
            DateBucketing.previous_day(datetime.date(2024, 3, 1)),
            datetime.date(2024, 2, 29),
        )
        self.assertEqual(
            DateBucketing.previous_day(datetime.date(2023, 3, 1)),
            datetime.date(2023, 2, 28),
        )

    def test_year_lengths(self) -> None:
        self.assertEqual(DateBucketing.days_in_year(2024), 366)
        self.assertEqual(DateBucketing.days_in_year(2023), 365)
        self.assertEqual(DateBucketing.days_in_year(1900), 365)
        self.assertEqual(DateBucketing.days_in_year(2000), 366)
        self.assertEqual(DateBucketing.days_in_month(2024, 2), 29)
        self.assertEqual(
            DateBucketing.days_since_start_of_year(datetime.date(2024, 12, 31)), 365
        )
        self.assertEqual(
            DateBucketing.days_since_start_of_year(datetime.date(2024, 1, 1)), 0
        )

    def test_iter_days_inclusive(self) -> None:
        days = list(
            DateBucketing.iter_days(datetime.date(2023, 12, 30), datetime.date(2024, 1, 2))
        )
        self.assertEqual(len(days), 4)
        self.assertEqual(days[-1], datetime.date(2024, 1, 2))

    def test_period_end(self) -> None:
        ref = datetime.datetime(2024, 6, 15, 18, 0)
        self.assertEqual(self.utc.period_end(2024, ref), datetime.date(2024, 6, 15))
        self.assertEqual(self.utc.period_end(2023, ref), datetime.date(2023, 12, 31))
        self.assertEqual(self.utc.period_end(2025, ref), datetime.date(2025, 12, 31))


if __name__ == "__main__":
    unittest.main()
