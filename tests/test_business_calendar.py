import unittest
from datetime import date, datetime, timedelta, timezone

from stockledger.core.business_calendar import (
    business_date_of,
    business_day_window,
    current_business_date,
    day_label,
    iter_business_dates,
    previous_business_date,
)
from tests.support import local_time


class BusinessDateTest(unittest.TestCase):
    def test_one_second_before_five_belongs_to_previous_day(self):
        self.assertEqual(business_date_of(local_time(2024, 3, 10, 4, 59, 59)), date(2024, 3, 9))

    def test_five_oclock_starts_new_day(self):
        self.assertEqual(business_date_of(local_time(2024, 3, 10, 5, 0, 0)), date(2024, 3, 10))

    def test_utc_timestamps_are_converted_to_local_time(self):
        # 21:00 UTC is 05:00 the next morning in Taipei.
        self.assertEqual(
            business_date_of(datetime(2024, 3, 9, 21, 0, tzinfo=timezone.utc)),
            date(2024, 3, 10),
        )
        self.assertEqual(
            business_date_of(datetime(2024, 3, 9, 20, 59, 59, tzinfo=timezone.utc)),
            date(2024, 3, 9),
        )

    def test_naive_timestamp_is_local(self):
        self.assertEqual(business_date_of(datetime(2024, 3, 10, 1, 30)), date(2024, 3, 9))
        self.assertEqual(business_date_of(datetime(2024, 3, 10, 23, 30)), date(2024, 3, 10))

    def test_current_business_date_uses_supplied_now(self):
        self.assertEqual(current_business_date(local_time(2024, 1, 1, 3)), date(2023, 12, 31))


class BusinessWindowTest(unittest.TestCase):
    def test_window_bounds(self):
        start, end = business_day_window(date(2024, 3, 10))
        self.assertEqual(start, local_time(2024, 3, 10, 5))
        self.assertEqual(end, local_time(2024, 3, 11, 4, 59, 59, 999000))

    def test_window_edges_map_back_to_the_same_date(self):
        start, end = business_day_window(date(2024, 3, 10))
        self.assertEqual(business_date_of(start), date(2024, 3, 10))
        self.assertEqual(business_date_of(end), date(2024, 3, 10))
        self.assertEqual(business_date_of(end + timedelta(milliseconds=1)), date(2024, 3, 11))
        self.assertEqual(business_date_of(start - timedelta(milliseconds=1)), date(2024, 3, 9))


class CalendarHelpersTest(unittest.TestCase):
    def test_iter_business_dates_is_inclusive(self):
        dates = list(iter_business_dates(date(2024, 2, 27), date(2024, 3, 1)))
        self.assertEqual(
            dates,
            [date(2024, 2, 27), date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1)],
        )

    def test_iter_business_dates_empty_when_reversed(self):
        self.assertEqual(list(iter_business_dates(date(2024, 3, 2), date(2024, 3, 1))), [])

    def test_previous_business_date(self):
        self.assertEqual(previous_business_date(date(2024, 3, 1)), date(2024, 2, 29))

    def test_day_label(self):
        self.assertEqual(day_label(date(2024, 3, 9)), "0309")
        self.assertEqual(day_label(date(2024, 12, 31)), "1231")


if __name__ == "__main__":
    unittest.main()
