# ========================
# src/trip_pipeline/derivation.py
# ========================

"""
Field Derivation Module

Computes calendar fields and ride length from the canonical timestamps.
Negative ride lengths are passed through; filtering is the Validator's job.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any

from .errors import InvalidTimestamp
from .models import TripRecord, Weekday

logger = logging.getLogger(__name__)


class FieldDeriver:
    """
    Produces a new TripRecord with date, year, month, day, hour, weekday and
    ride_length_minutes populated.
    """

    TIMESTAMP_FORMATS = [
        "%Y-%m-%d %H:%M:%S",
        "%Y-%m-%d %H:%M:%S.%f",
        "%Y-%m-%d %H:%M",
        "%Y/%m/%d %H:%M:%S",
        "%m/%d/%Y %H:%M:%S",
        "%m/%d/%Y %H:%M",
    ]

    def __init__(self):
        self.reset_statistics()

    def reset_statistics(self) -> None:
        self.records_derived = 0
        self.records_failed = 0

    def derive(self, record: TripRecord) -> TripRecord:
        """
        Derive analytical fields for one record.

        Args:
            record (TripRecord): A mapped record; timestamps may be strings
                                 or datetime objects.

        Returns:
            TripRecord: A new record with parsed timestamps and derived fields.

        Raises:
            InvalidTimestamp: started_at or ended_at is missing or unparsable.
        """
        try:
            started_at = self.parse_timestamp(record.started_at, 'started_at')
            ended_at = self.parse_timestamp(record.ended_at, 'ended_at')
            if (started_at.tzinfo is None) != (ended_at.tzinfo is None):
                raise InvalidTimestamp('ended_at', record.ended_at)
        except InvalidTimestamp:
            self.records_failed += 1
            raise

        ride_length = round((ended_at - started_at).total_seconds() / 60, 2)
        self.records_derived += 1

        return replace(
            record,
            started_at=started_at,
            ended_at=ended_at,
            date=started_at.date(),
            year=started_at.year,
            month=started_at.month,
            day=started_at.day,
            hour=started_at.hour,
            weekday=Weekday.from_date(started_at),
            ride_length_minutes=ride_length,
        )

    def parse_timestamp(self, value: Any, field_name: str) -> datetime:
        """Parse a timestamp value; no timezone conversion is applied."""
        if isinstance(value, datetime):
            return value
        if not isinstance(value, str) or not value.strip():
            raise InvalidTimestamp(field_name, value)

        text = value.strip()
        for fmt in self.TIMESTAMP_FORMATS:
            try:
                return datetime.strptime(text, fmt)
            except ValueError:
                continue

        # ISO 8601 variants, e.g. "2019-01-01T10:00:00" or with an offset
        try:
            return datetime.fromisoformat(text.replace('Z', '+00:00'))
        except ValueError:
            raise InvalidTimestamp(field_name, value)

    def get_statistics(self) -> dict:
        return {
            'records_derived': self.records_derived,
            'timestamp_failures': self.records_failed,
        }
