# ========================
# src/utils/data_generator.py
# ========================

"""
Data Generation Utilities

Writes sample trip exports in both source layouts, with injected defects,
for demos and end-to-end tests.
"""

import csv
import random
import logging
from datetime import datetime, timedelta
from typing import List, Dict, Any, Optional
from pathlib import Path

logger = logging.getLogger(__name__)

LEGACY_HEADER = [
    'trip_id', 'start_time', 'end_time', 'bikeid', 'tripduration',
    'from_station_id', 'from_station_name', 'to_station_id', 'to_station_name',
    'usertype', 'gender', 'birthyear'
]

MODERN_HEADER = [
    'ride_id', 'rideable_type', 'started_at', 'ended_at',
    'start_station_name', 'start_station_id', 'end_station_name', 'end_station_id',
    'start_lat', 'start_lng', 'end_lat', 'end_lng', 'member_casual'
]

TEST_STATION = {"id": 675, "name": "HQ QR", "lat": 41.8899, "lng": -87.6803}

class TripDataGenerator:
    """
    Generates trip exports in the 2019 (legacy) and 2020 (modern) layouts.
    """

    def __init__(self, seed: Optional[int] = None):
        """
        Initialize data generator.

        Args:
            seed (int): Random seed for reproducible data generation
        """
        self.random = random.Random(seed)
        self._initialize_data_patterns()
        logger.info(f"TripDataGenerator initialized with seed: {seed}")

    def _initialize_data_patterns(self) -> None:
        """Initialize stations and rider patterns."""
        self.stations = [
            {"id": 35, "name": "Streeter Dr & Grand Ave", "lat": 41.8923, "lng": -87.6120},
            {"id": 192, "name": "Canal St & Adams St", "lat": 41.8793, "lng": -87.6399},
            {"id": 91, "name": "Clinton St & Washington Blvd", "lat": 41.8834, "lng": -87.6412},
            {"id": 77, "name": "Clinton St & Madison St", "lat": 41.8822, "lng": -87.6411},
            {"id": 133, "name": "Kingsbury St & Kinzie St", "lat": 41.8892, "lng": -87.6385},
            {"id": 174, "name": "Canal St & Madison St", "lat": 41.8820, "lng": -87.6398},
            {"id": 43, "name": "Michigan Ave & Washington St", "lat": 41.8839, "lng": -87.6247},
            {"id": 195, "name": "Columbus Dr & Randolph St", "lat": 41.8847, "lng": -87.6195},
            {"id": 76, "name": "Lake Shore Dr & Monroe St", "lat": 41.8810, "lng": -87.6166},
            {"id": 268, "name": "Lake Shore Dr & North Blvd", "lat": 41.9117, "lng": -87.6268},
            {"id": 3, "name": "Shedd Aquarium", "lat": 41.8672, "lng": -87.6154},
            {"id": 90, "name": "Millennium Park", "lat": 41.8810, "lng": -87.6241},
        ]

        # Share of rides by rider class per layout vocabulary
        self.legacy_user_types = [("Subscriber", 0.85), ("Customer", 0.15)]
        self.modern_user_types = [("member", 0.8), ("casual", 0.2)]

        # Hour-of-day demand weights, commute peaks at 8 and 17
        self.hour_weights = [1, 1, 1, 1, 2, 4, 8, 14, 18, 10, 8, 9,
                             10, 10, 10, 12, 16, 20, 14, 9, 6, 4, 3, 2]

    def generate_legacy_dataset(self, file_path: str, num_rows: int,
                                error_rate: float = 0.05,
                                start_date: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Generate a 2019-layout export (trip_id, start_time, usertype, ...).

        Returns:
            dict: Generation statistics
        """
        start_date = start_date or datetime(2019, 1, 1)
        return self._write_dataset(file_path, num_rows, error_rate, start_date,
                                   LEGACY_HEADER, self._legacy_row)

    def generate_modern_dataset(self, file_path: str, num_rows: int,
                                error_rate: float = 0.05,
                                start_date: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Generate a 2020-layout export (ride_id, started_at, member_casual, ...).

        Returns:
            dict: Generation statistics
        """
        start_date = start_date or datetime(2020, 1, 1)
        return self._write_dataset(file_path, num_rows, error_rate, start_date,
                                   MODERN_HEADER, self._modern_row)

    def _write_dataset(self, file_path, num_rows, error_rate, start_date, header, row_builder):
        logger.info(f"Generating {num_rows:,} rows with {error_rate:.1%} error rate...")

        stats = {
            'total_rows': num_rows,
            'error_rate': error_rate,
            'records_with_errors': 0,
            'error_types': {}
        }

        Path(file_path).parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(header)

            for i in range(num_rows):
                trip = self._generate_trip(i, start_date, error_rate, stats)
                writer.writerow(row_builder(trip))

        logger.info(f"Dataset generated: {file_path}")
        logger.info(f"Error breakdown: {stats['error_types']}")
        return stats

    def _generate_trip(self, index: int, start_date: datetime,
                       error_rate: float, stats: Dict[str, Any]) -> Dict[str, Any]:
        """Generate one trip in a layout-neutral form, possibly with a defect."""
        hour = self.random.choices(range(24), weights=self.hour_weights)[0]
        started_at = start_date + timedelta(
            days=self.random.randint(0, 89),
            hours=hour,
            minutes=self.random.randint(0, 59),
            seconds=self.random.randint(0, 59)
        )
        duration_seconds = int(self.random.lognormvariate(6.6, 0.7))
        origin, destination = self.random.sample(self.stations, 2)

        trip = {
            'index': index,
            'started_at': started_at,
            'ended_at': started_at + timedelta(seconds=duration_seconds),
            'duration_seconds': duration_seconds,
            'origin': origin,
            'destination': destination,
            'rider_class_pick': self.random.random(),
            'bike_id': self.random.randint(1, 6400),
            'defect': None,
        }

        if self.random.random() < error_rate:
            stats['records_with_errors'] += 1
            trip['defect'] = self.random.choice([
                'negative_duration', 'test_station', 'bad_timestamp', 'unknown_rider_class'
            ])
            self._inject_defect(trip)
            self._track_error_type(stats, trip['defect'])

        return trip

    def _inject_defect(self, trip: Dict[str, Any]) -> None:
        defect = trip['defect']
        if defect == 'negative_duration':
            trip['ended_at'] = trip['started_at'] - timedelta(seconds=self.random.randint(60, 600))
            trip['duration_seconds'] = -1
        elif defect == 'test_station':
            trip['origin'] = TEST_STATION
        elif defect == 'bad_timestamp':
            trip['started_at'] = "not-a-timestamp"

    def _pick_rider_class(self, trip: Dict[str, Any], options: List) -> str:
        if trip['defect'] == 'unknown_rider_class':
            return "Dependent"
        threshold = 0.0
        for label, share in options:
            threshold += share
            if trip['rider_class_pick'] < threshold:
                return label
        return options[-1][0]

    @staticmethod
    def _format(value: Any) -> Any:
        if isinstance(value, datetime):
            return value.strftime("%Y-%m-%d %H:%M:%S")
        return value

    def _legacy_row(self, trip: Dict[str, Any]) -> List[Any]:
        return [
            21742443 + trip['index'],
            self._format(trip['started_at']),
            self._format(trip['ended_at']),
            trip['bike_id'],
            f"{trip['duration_seconds']:,}.0",
            trip['origin']['id'],
            trip['origin']['name'],
            trip['destination']['id'],
            trip['destination']['name'],
            self._pick_rider_class(trip, self.legacy_user_types),
            self.random.choice(["Male", "Female", ""]),
            self.random.choice([self.random.randint(1950, 2001), ""]),
        ]

    def _modern_row(self, trip: Dict[str, Any]) -> List[Any]:
        return [
            f"{self.random.getrandbits(64):016X}",
            "docked_bike",
            self._format(trip['started_at']),
            self._format(trip['ended_at']),
            trip['origin']['name'],
            trip['origin']['id'],
            trip['destination']['name'],
            trip['destination']['id'],
            trip['origin']['lat'],
            trip['origin']['lng'],
            trip['destination']['lat'],
            trip['destination']['lng'],
            self._pick_rider_class(trip, self.modern_user_types),
        ]

    def _track_error_type(self, stats: Dict[str, Any], error_type: str) -> None:
        """Track error types for statistics."""
        if error_type not in stats['error_types']:
            stats['error_types'][error_type] = 0
        stats['error_types'][error_type] += 1
