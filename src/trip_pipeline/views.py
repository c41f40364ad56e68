# ========================
# src/trip_pipeline/views.py
# ========================

"""
Summary Views

The five standard summary tables handed to the exporter.
"""

from typing import Dict, Sequence

from .models import TripRecord
from .transformation import (
    NATURAL_ORDER,
    WEEKDAY_ORDER,
    DataAggregator,
    GroupSpec,
    SummaryTable,
    top_n_order,
)

BY_RIDER_CLASS = GroupSpec(('member_casual',), lambda r: (r.member_casual,))
BY_WEEKDAY = GroupSpec(('member_casual', 'weekday'), lambda r: (r.member_casual, r.weekday))
BY_MONTH = GroupSpec(('member_casual', 'month'), lambda r: (r.member_casual, r.month))
BY_HOUR = GroupSpec(('member_casual', 'hour'), lambda r: (r.member_casual, r.hour))
BY_START_STATION = GroupSpec(('member_casual', 'start_station_name'),
                             lambda r: (r.member_casual, r.start_station_name))

VIEW_NAMES = (
    'ride_length_stats',
    'weekday_stats',
    'monthly_stats',
    'hourly_stats',
    'top_start_stations',
)


def ride_length_stats(aggregator: DataAggregator, records: Sequence[TripRecord]) -> SummaryTable:
    return aggregator.aggregate(records, BY_RIDER_CLASS, ['count', 'mean', 'median', 'min', 'max'],
                                NATURAL_ORDER, name='ride_length_stats')


def weekday_stats(aggregator: DataAggregator, records: Sequence[TripRecord]) -> SummaryTable:
    return aggregator.aggregate(records, BY_WEEKDAY, ['count', 'mean'],
                                WEEKDAY_ORDER, name='weekday_stats')


def monthly_stats(aggregator: DataAggregator, records: Sequence[TripRecord]) -> SummaryTable:
    return aggregator.aggregate(records, BY_MONTH, ['count'], NATURAL_ORDER, name='monthly_stats')


def hourly_stats(aggregator: DataAggregator, records: Sequence[TripRecord]) -> SummaryTable:
    return aggregator.aggregate(records, BY_HOUR, ['count'], NATURAL_ORDER, name='hourly_stats')


def top_start_stations(aggregator: DataAggregator, records: Sequence[TripRecord],
                       limit: int = 10) -> SummaryTable:
    return aggregator.aggregate(records, BY_START_STATION, ['count'],
                                top_n_order(limit), name='top_start_stations')


def build_all_views(aggregator: DataAggregator, records: Sequence[TripRecord],
                    top_stations_limit: int = 10) -> Dict[str, SummaryTable]:
    """Build every standard view, keyed by table name."""
    return {
        'ride_length_stats': ride_length_stats(aggregator, records),
        'weekday_stats': weekday_stats(aggregator, records),
        'monthly_stats': monthly_stats(aggregator, records),
        'hourly_stats': hourly_stats(aggregator, records),
        'top_start_stations': top_start_stations(aggregator, records, top_stations_limit),
    }
