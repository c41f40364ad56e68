# ========================
# tests/test_pipeline.py
# ========================

import unittest
import sys
import os
import csv
import json
import tempfile
from pathlib import Path

# Add the project root to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.trip_pipeline.errors import ErrorPolicy, InvalidTimestamp, SchemaMismatch
from src.trip_pipeline.ingestion import SourceBatch
from src.trip_pipeline.orchestrator import TripPipeline
from src.trip_pipeline.views import VIEW_NAMES
from src.utils.config import Config
from src.utils.data_generator import TripDataGenerator

def legacy_row(**overrides):
    row = {
        'trip_id': 21742443, 'start_time': '2019-01-01 00:04:37', 'end_time': '2019-01-01 00:11:07',
        'bikeid': 2167, 'tripduration': '390.0',
        'from_station_id': 199, 'from_station_name': 'Wabash Ave & Grand Ave',
        'to_station_id': 84, 'to_station_name': 'Milwaukee Ave & Grand Ave',
        'usertype': 'Subscriber', 'gender': 'Male', 'birthyear': 1989,
    }
    row.update(overrides)
    return row

def modern_row(**overrides):
    row = {
        'ride_id': 'EACB19130B0CDA4A', 'rideable_type': 'docked_bike',
        'started_at': '2020-01-21 20:06:59', 'ended_at': '2020-01-21 20:14:30',
        'start_station_name': 'Western Ave & Leland Ave', 'start_station_id': '239',
        'end_station_name': 'Clark St & Leland Ave', 'end_station_id': '326',
        'start_lat': 41.9665, 'start_lng': -87.6884, 'end_lat': 41.9671, 'end_lng': -87.6674,
        'member_casual': 'member',
    }
    row.update(overrides)
    return row

class TestTripPipeline(unittest.TestCase):

    def setUp(self):
        self.batches = [
            SourceBatch('2019_q1', 'divvy_2019', [
                legacy_row(trip_id=1, usertype='Subscriber'),
                legacy_row(trip_id=2, usertype='Customer',
                           start_time='2019-01-02 09:00:00', end_time='2019-01-02 09:30:00'),
                # ends before it starts
                legacy_row(trip_id=3, start_time='2019-01-03 09:00:00', end_time='2019-01-03 08:00:00'),
                legacy_row(trip_id=4, usertype='Dependent'),
            ]),
            SourceBatch('2020_q1', 'divvy_2020', [
                modern_row(ride_id='A'),
                modern_row(ride_id='B', start_station_name='HQ QR'),
                modern_row(ride_id='C', started_at='bad'),
                modern_row(ride_id='D', member_casual='casual'),
            ]),
        ]

    def test_run_skip_policy(self):
        pipeline = TripPipeline(config=Config({'error_policy': 'skip'}))
        result = pipeline.run(self.batches)
        stats = result.statistics

        self.assertEqual(stats['rows_read'], 8)
        self.assertEqual(stats['mapping_failures'], 1)
        self.assertEqual(stats['timestamp_failures'], 1)
        self.assertEqual(stats['records_excluded'], 2)
        self.assertEqual(stats['exclusions_by_rule'],
                         {'negative_ride_length': 1, 'blacklisted_start_station': 1})
        self.assertEqual(stats['records_cleaned'], 4)
        self.assertEqual([r.ride_id for r in result.cleaned_records], ['1', '2', 'A', 'D'])

    def test_repeated_runs_report_same_statistics(self):
        pipeline = TripPipeline()
        first = pipeline.run(self.batches).statistics
        second = pipeline.run(self.batches).statistics

        for key in ('rows_read', 'mapping_failures', 'timestamp_failures',
                    'records_excluded', 'exclusions_by_rule', 'records_cleaned'):
            self.assertEqual(first[key], second[key], key)
        self.assertEqual(
            second['mapping_failures'] + second['timestamp_failures']
            + second['records_excluded'] + second['records_cleaned'],
            second['rows_read']
        )
        self.assertEqual(pipeline.deriver.get_statistics(),
                         {'records_derived': 6, 'timestamp_failures': 1})

    def test_all_views_built(self):
        result = TripPipeline().run(self.batches)

        self.assertEqual(set(result.tables), set(VIEW_NAMES))
        ride_lengths = result.tables['ride_length_stats'].to_dicts()
        self.assertEqual([row['member_casual'] for row in ride_lengths], ['casual', 'member'])
        self.assertEqual(sum(row['count'] for row in ride_lengths), len(result.cleaned_records))

    def test_strict_policy_aborts_on_mapping_error(self):
        pipeline = TripPipeline(error_policy=ErrorPolicy.STRICT)
        with self.assertRaises(SchemaMismatch):
            pipeline.run(self.batches)

    def test_strict_policy_aborts_on_timestamp_error(self):
        batches = [SourceBatch('2020_q1', 'divvy_2020', [modern_row(), modern_row(ended_at='')])]
        with self.assertRaises(InvalidTimestamp):
            TripPipeline(config=Config({'error_policy': 'strict'})).run(batches)

    def test_export(self):
        with tempfile.TemporaryDirectory() as output_dir:
            result = TripPipeline(output_dir=output_dir).run(self.batches)

            for view in VIEW_NAMES:
                self.assertTrue(Path(result.saved_files[view]).exists())

            with open(Path(output_dir) / 'weekday_stats.csv', newline='') as f:
                rows = list(csv.reader(f))
            self.assertEqual(rows[0], ['member_casual', 'weekday', 'count', 'mean'])
            # 2020-01-21 was a Tuesday, 2019-01-02 a Wednesday
            self.assertEqual(rows[1], ['casual', 'Tuesday', '1', '7.52'])
            self.assertEqual(rows[2], ['casual', 'Wednesday', '1', '30.0'])

            with open(Path(output_dir) / 'pipeline_summary.json') as f:
                summary = json.load(f)
            self.assertEqual(summary['records_cleaned'], 4)

    def test_generated_exports_end_to_end(self):
        with tempfile.TemporaryDirectory() as tmp:
            legacy = os.path.join(tmp, 'legacy.csv')
            modern = os.path.join(tmp, 'modern.csv')
            generator = TripDataGenerator(seed=7)
            generator.generate_legacy_dataset(legacy, 400, error_rate=0.1)
            generator.generate_modern_dataset(modern, 400, error_rate=0.1)

            pipeline = TripPipeline(output_dir=os.path.join(tmp, 'out'))
            result = pipeline.run_files({'divvy_2019': legacy, 'divvy_2020': modern})
            stats = result.statistics

            self.assertEqual(stats['rows_read'], 800)
            self.assertEqual(
                stats['mapping_failures'] + stats['timestamp_failures']
                + stats['records_excluded'] + stats['records_cleaned'],
                800
            )
            for record in result.cleaned_records:
                self.assertGreaterEqual(record.ride_length_minutes, 0)
                self.assertNotEqual(record.start_station_name, 'HQ QR')
                self.assertIn(record.member_casual, ('member', 'casual'))

            top = result.tables['top_start_stations']
            for rider_class in ('casual', 'member'):
                self.assertLessEqual(len([r for r in top.rows if r[0] == rider_class]), 10)

if __name__ == '__main__':
    unittest.main()
