# ========================
# src/trip_pipeline/schema_mapping.py
# ========================

"""
Schema Mapping Module

Translates raw rows from each known source layout into canonical TripRecords.
Every source has a static rename table and a rider-class recode table; columns
outside the canonical schema are dropped here.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Mapping, Optional

from .errors import SchemaMismatch
from .models import CANONICAL_FIELDS, CASUAL, MEMBER, TripRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceSchema:
    """Static description of one source layout."""

    schema_id: str
    columns: Dict[str, str]  # canonical field -> source column
    rider_class_map: Dict[str, str] = field(default_factory=dict)
    dropped_columns: FrozenSet[str] = frozenset()

    def source_column(self, canonical_field: str) -> str:
        try:
            return self.columns[canonical_field]
        except KeyError:
            raise SchemaMismatch(self.schema_id, canonical_field,
                                 f"No source column mapped for canonical field '{canonical_field}'")


# Canonical rider-class values recode to themselves in every schema
_CANONICAL_RIDER_CLASSES = {MEMBER: MEMBER, CASUAL: CASUAL}

DIVVY_2019 = SourceSchema(
    schema_id="divvy_2019",
    columns={
        'ride_id': 'trip_id',
        'rideable_type': 'bikeid',
        'started_at': 'start_time',
        'ended_at': 'end_time',
        'start_station_name': 'from_station_name',
        'start_station_id': 'from_station_id',
        'end_station_name': 'to_station_name',
        'end_station_id': 'to_station_id',
        'member_casual': 'usertype',
    },
    rider_class_map={"subscriber": MEMBER, "customer": CASUAL, **_CANONICAL_RIDER_CLASSES},
    dropped_columns=frozenset({'tripduration', 'gender', 'birthyear'}),
)

DIVVY_2020 = SourceSchema(
    schema_id="divvy_2020",
    columns={name: name for name in CANONICAL_FIELDS},
    rider_class_map=dict(_CANONICAL_RIDER_CLASSES),
    dropped_columns=frozenset({'start_lat', 'start_lng', 'end_lat', 'end_lng'}),
)

SOURCE_SCHEMAS: Dict[str, SourceSchema] = {
    DIVVY_2019.schema_id: DIVVY_2019,
    DIVVY_2020.schema_id: DIVVY_2020,
}

_TIMESTAMP_FIELDS = ('started_at', 'ended_at')
_REQUIRED_VALUE_FIELDS = ('ride_id',)


def coerce_identifier(value: Any) -> str:
    """
    Coerce an identifier that may arrive as a number or as text to a
    canonical string. Integral floats lose their trailing '.0'.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        raise ValueError(f"Boolean is not a valid identifier: {value!r}")
    if isinstance(value, float):
        if value != value:  # NaN
            return ""
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, int):
        return str(value)

    text = str(value).strip()
    # "199.0" from a float-typed text export
    if text.endswith('.0') and text[:-2].lstrip('-').isdigit():
        return text[:-2]
    return text


class SchemaMapper:
    """
    Maps raw rows into the canonical TripRecord shape.
    """

    def __init__(self, schemas: Optional[Mapping[str, SourceSchema]] = None):
        """
        Initialize the mapper.

        Args:
            schemas (dict): Known source schemas keyed by id. Defaults to
                            the built-in Divvy layouts.
        """
        self.schemas = dict(schemas) if schemas is not None else dict(SOURCE_SCHEMAS)
        logger.info(f"SchemaMapper initialized with schemas: {sorted(self.schemas)}")

    def get_schema(self, schema_id: str) -> SourceSchema:
        try:
            return self.schemas[schema_id]
        except KeyError:
            raise SchemaMismatch(schema_id, None, f"Unknown source schema '{schema_id}'")

    def map(self, raw_row: Mapping[str, Any], source_schema_id: str) -> TripRecord:
        """
        Map a single raw row into a TripRecord.

        Args:
            raw_row (dict): Column name -> scalar value, as parsed from the source.
            source_schema_id (str): Id of the schema the row was captured under.

        Returns:
            TripRecord: The canonical record, without derived fields.

        Raises:
            SchemaMismatch: A mapped source column is missing from the row,
                            or a value cannot be coerced.
        """
        schema = self.get_schema(source_schema_id)
        values = {}

        for canonical_field in CANONICAL_FIELDS:
            source_column = schema.source_column(canonical_field)
            if source_column not in raw_row:
                raise SchemaMismatch(schema.schema_id, source_column,
                                     f"Missing source field '{source_column}' "
                                     f"(canonical '{canonical_field}')")
            raw_value = raw_row[source_column]

            if canonical_field in _TIMESTAMP_FIELDS:
                values[canonical_field] = raw_value
            elif canonical_field == 'member_casual':
                values[canonical_field] = self._recode_rider_class(schema, raw_value)
            else:
                try:
                    values[canonical_field] = coerce_identifier(raw_value)
                except ValueError as e:
                    raise SchemaMismatch(schema.schema_id, source_column, str(e))

        for canonical_field in _REQUIRED_VALUE_FIELDS:
            if not values[canonical_field]:
                raise SchemaMismatch(schema.schema_id, schema.columns[canonical_field],
                                     f"Empty value for required field '{schema.columns[canonical_field]}'")

        return TripRecord(**values)

    def _recode_rider_class(self, schema: SourceSchema, value: Any) -> str:
        """Translate a source rider-class label to 'member' or 'casual'."""
        key = str(value).strip().lower() if value is not None else ""
        try:
            return schema.rider_class_map[key]
        except KeyError:
            raise SchemaMismatch(schema.schema_id, schema.columns['member_casual'],
                                 f"Unrecognized rider class {value!r}")
