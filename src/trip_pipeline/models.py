# ========================
# src/trip_pipeline/models.py
# ========================

"""
Trip Data Model

Canonical trip record shared by every pipeline stage.
"""

from dataclasses import dataclass, fields
from datetime import date as calendar_date, datetime
from enum import IntEnum
from typing import Any, Optional


MEMBER = "member"
CASUAL = "casual"
RIDER_CLASSES = (CASUAL, MEMBER)


class Weekday(IntEnum):
    """Days of the week, ordered Sunday first."""

    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6

    @classmethod
    def from_date(cls, value: calendar_date) -> 'Weekday':
        # isoweekday(): Monday=1 ... Sunday=7
        return cls(value.isoweekday() % 7)

    @property
    def label(self) -> str:
        return self.name.title()

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class TripRecord:
    """
    One bicycle rental event in the canonical schema.

    The timestamp fields hold whatever the source supplied until the
    FieldDeriver parses them; derived fields stay None until then.
    """

    ride_id: str
    rideable_type: str
    started_at: Any
    ended_at: Any
    start_station_name: str
    start_station_id: str
    end_station_name: str
    end_station_id: str
    member_casual: str

    # Derived fields
    date: Optional[calendar_date] = None
    year: Optional[int] = None
    month: Optional[int] = None
    day: Optional[int] = None
    weekday: Optional[Weekday] = None
    hour: Optional[int] = None
    ride_length_minutes: Optional[float] = None

    @property
    def is_derived(self) -> bool:
        return self.ride_length_minutes is not None

    def to_dict(self) -> dict:
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, datetime):
                value = value.strftime('%Y-%m-%d %H:%M:%S')
            elif isinstance(value, calendar_date):
                value = value.isoformat()
            elif isinstance(value, Weekday):
                value = value.label
            result[f.name] = value
        return result


CANONICAL_FIELDS = (
    'ride_id',
    'rideable_type',
    'started_at',
    'ended_at',
    'start_station_name',
    'start_station_id',
    'end_station_name',
    'end_station_id',
    'member_casual',
)
