# ========================
# tests/test_derivation.py
# ========================

import unittest
import sys
import os
from datetime import date, datetime, timedelta, timezone

# Add the project root to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.trip_pipeline.derivation import FieldDeriver
from src.trip_pipeline.errors import InvalidTimestamp
from src.trip_pipeline.models import TripRecord, Weekday

def make_record(started_at, ended_at, **overrides):
    values = dict(
        ride_id='R1', rideable_type='docked_bike',
        started_at=started_at, ended_at=ended_at,
        start_station_name='Streeter Dr & Grand Ave', start_station_id='35',
        end_station_name='Shedd Aquarium', end_station_id='3',
        member_casual='member',
    )
    values.update(overrides)
    return TripRecord(**values)

class TestFieldDeriver(unittest.TestCase):

    def setUp(self):
        self.deriver = FieldDeriver()

    def test_ride_length_and_weekday(self):
        """A 12m30s ride on 2019-01-01 is 12.5 minutes on a Tuesday."""
        record = self.deriver.derive(make_record('2019-01-01T10:00:00', '2019-01-01T10:12:30'))

        self.assertEqual(record.ride_length_minutes, 12.5)
        self.assertEqual(record.weekday, Weekday.TUESDAY)
        self.assertEqual(record.date, date(2019, 1, 1))
        self.assertEqual((record.year, record.month, record.day, record.hour), (2019, 1, 1, 10))

    def test_timestamps_parsed(self):
        record = self.deriver.derive(make_record('2020-03-07 23:59:10', '2020-03-08 00:04:10'))

        self.assertEqual(record.started_at, datetime(2020, 3, 7, 23, 59, 10))
        self.assertEqual(record.ended_at, datetime(2020, 3, 8, 0, 4, 10))
        self.assertEqual(record.weekday, Weekday.SATURDAY)
        self.assertEqual(record.ride_length_minutes, 5.0)

    def test_ride_length_rounded(self):
        record = self.deriver.derive(make_record('2019-01-01 10:00:00', '2019-01-01 10:00:20'))
        self.assertEqual(record.ride_length_minutes, 0.33)

    def test_negative_ride_length_passes(self):
        record = self.deriver.derive(make_record('2019-01-01 10:10:00', '2019-01-01 10:00:00'))
        self.assertEqual(record.ride_length_minutes, -10.0)

    def test_datetime_inputs(self):
        start = datetime(2020, 2, 2, 8, 0)
        record = self.deriver.derive(make_record(start, start + timedelta(minutes=3)))
        self.assertEqual(record.ride_length_minutes, 3.0)
        self.assertEqual(record.weekday, Weekday.SUNDAY)

    def test_no_timezone_conversion(self):
        tz = timezone(timedelta(hours=-6))
        start = datetime(2020, 1, 31, 23, 30, tzinfo=tz)
        record = self.deriver.derive(make_record(start, start + timedelta(minutes=45)))
        self.assertEqual((record.month, record.day, record.hour), (1, 31, 23))

    def test_idempotent(self):
        once = self.deriver.derive(make_record('2019-02-14 17:45:00', '2019-02-14 18:01:15'))
        twice = self.deriver.derive(once)
        self.assertEqual(once, twice)

    def test_input_not_mutated(self):
        original = make_record('2019-01-01 10:00:00', '2019-01-01 10:05:00')
        self.deriver.derive(original)
        self.assertEqual(original.started_at, '2019-01-01 10:00:00')
        self.assertIsNone(original.ride_length_minutes)

    def test_invalid_timestamps(self):
        cases = [
            ('not-a-timestamp', '2019-01-01 10:00:00', 'started_at'),
            ('2019-01-01 10:00:00', '', 'ended_at'),
            (None, '2019-01-01 10:00:00', 'started_at'),
            ('2019-01-01 10:00:00', '2019-13-45 10:00:00', 'ended_at'),
        ]
        for started_at, ended_at, field in cases:
            with self.assertRaises(InvalidTimestamp) as ctx:
                self.deriver.derive(make_record(started_at, ended_at))
            self.assertEqual(ctx.exception.field, field)

        self.assertEqual(self.deriver.get_statistics()['timestamp_failures'], len(cases))

    def test_legacy_timestamp_formats(self):
        record = self.deriver.derive(make_record('1/5/2019 7:05', '1/5/2019 7:20'))
        self.assertEqual(record.ride_length_minutes, 15.0)
        self.assertEqual(record.weekday, Weekday.SATURDAY)

class TestWeekday(unittest.TestCase):

    def test_sunday_first_order(self):
        ordered = sorted(reversed(list(Weekday)))
        self.assertEqual([d.label for d in ordered],
                         ['Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday'])
        self.assertLess(Weekday.SUNDAY, Weekday.MONDAY)
        self.assertLess(Weekday.FRIDAY, Weekday.SATURDAY)

    def test_from_date(self):
        # 2020-01-05 was a Sunday
        for offset, expected in enumerate(Weekday):
            self.assertEqual(Weekday.from_date(date(2020, 1, 5) + timedelta(days=offset)), expected)

if __name__ == '__main__':
    unittest.main()
