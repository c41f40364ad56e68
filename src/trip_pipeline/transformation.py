# ========================
# src/trip_pipeline/transformation.py
# ========================

"""
Data Aggregation Module

Generic group-by/reduce engine used for every summary table. Groups keep
their full value lists so the median is exact.
"""

import logging
import statistics as stats_lib
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .models import TripRecord, Weekday

logger = logging.getLogger(__name__)

SUPPORTED_STATISTICS = ('count', 'mean', 'median', 'min', 'max')

GroupKey = Tuple[Any, ...]


class GroupAccumulator:
    """Collects the ride lengths of one group."""

    def __init__(self, values: Optional[List[float]] = None):
        self.values = list(values) if values else []

    def add(self, value: float) -> None:
        self.values.append(value)

    def combine(self, other: 'GroupAccumulator') -> 'GroupAccumulator':
        """Merge two partial accumulators of the same group."""
        return GroupAccumulator(self.values + other.values)

    @property
    def count(self) -> int:
        return len(self.values)

    def compute(self, statistic: str) -> float:
        if statistic == 'count':
            return self.count
        if statistic == 'mean':
            value = sum(self.values) / len(self.values)
        elif statistic == 'median':
            value = stats_lib.median(self.values)
        elif statistic == 'min':
            value = min(self.values)
        elif statistic == 'max':
            value = max(self.values)
        else:
            raise ValueError(f"Unsupported statistic: {statistic}")
        return round(value, 2)


@dataclass(frozen=True)
class GroupSpec:
    """Output column names for the group key, and the function producing it."""

    columns: Tuple[str, ...]
    key_fn: Callable[[TripRecord], GroupKey]


@dataclass(frozen=True)
class Ordering:
    """
    Deterministic row ordering. Rows are sorted by member_casual first, then
    by `secondary`; `limit` keeps only the first N rows of each
    member_casual partition.
    """

    secondary: Callable[[GroupKey, Dict[str, Any]], Any]
    limit: Optional[int] = None

    def sort_key(self, key: GroupKey, row_stats: Dict[str, Any]):
        return (str(key[0]), self.secondary(key, row_stats))


def by_key_value(key: GroupKey, row_stats: Dict[str, Any]):
    """Secondary order by the remaining key values (numeric for month and hour)."""
    return tuple(key[1:])


def by_weekday(key: GroupKey, row_stats: Dict[str, Any]):
    return int(Weekday(key[1]))


def by_count_then_name(key: GroupKey, row_stats: Dict[str, Any]):
    return (-row_stats['count'], str(key[1]))


NATURAL_ORDER = Ordering(by_key_value)
WEEKDAY_ORDER = Ordering(by_weekday)


def top_n_order(n: int = 10) -> Ordering:
    return Ordering(by_count_then_name, limit=n)


@dataclass
class SummaryTable:
    """A finished aggregation: group key columns first, statistic columns last."""

    name: str
    columns: Tuple[str, ...]
    rows: List[Tuple[Any, ...]] = field(default_factory=list)

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [dict(zip(self.columns, row)) for row in self.rows]

    def column(self, name: str) -> List[Any]:
        index = self.columns.index(name)
        return [row[index] for row in self.rows]

    def __len__(self) -> int:
        return len(self.rows)


class DataAggregator:
    """
    Builds summary tables from cleaned records.
    """

    def __init__(self):
        self.tables_built = 0

    def accumulate(self, records: Iterable[TripRecord],
                   group_spec: GroupSpec) -> Dict[GroupKey, GroupAccumulator]:
        """Partition records into groups. Can be run per input partition."""
        groups: Dict[GroupKey, GroupAccumulator] = defaultdict(GroupAccumulator)
        for record in records:
            groups[group_spec.key_fn(record)].add(record.ride_length_minutes)
        return dict(groups)

    @staticmethod
    def combine(partials: Iterable[Dict[GroupKey, GroupAccumulator]]) -> Dict[GroupKey, GroupAccumulator]:
        """Merge accumulators computed over separate partitions."""
        combined: Dict[GroupKey, GroupAccumulator] = {}
        for partial in partials:
            for key, accumulator in partial.items():
                if key in combined:
                    combined[key] = combined[key].combine(accumulator)
                else:
                    combined[key] = accumulator
        return combined

    def build_table(self, groups: Dict[GroupKey, GroupAccumulator], group_spec: GroupSpec,
                    statistics: Sequence[str], ordering: Ordering,
                    name: str = "summary") -> SummaryTable:
        """Reduce accumulated groups into an ordered SummaryTable."""
        unknown = [s for s in statistics if s not in SUPPORTED_STATISTICS]
        if unknown:
            raise ValueError(f"Unsupported statistics: {unknown}")

        # count is always computed so count-based orderings work
        reduced = []
        for key, accumulator in groups.items():
            row_stats = {s: accumulator.compute(s) for s in statistics}
            row_stats.setdefault('count', accumulator.count)
            reduced.append((key, row_stats))

        reduced.sort(key=lambda item: ordering.sort_key(item[0], item[1]))

        rows = []
        per_partition: Dict[Any, int] = defaultdict(int)
        for key, row_stats in reduced:
            if ordering.limit is not None:
                if per_partition[key[0]] >= ordering.limit:
                    continue
                per_partition[key[0]] += 1
            rows.append(tuple(key) + tuple(row_stats[s] for s in statistics))

        self.tables_built += 1
        logger.info(f"Built table '{name}': {len(rows)} rows from {len(groups)} groups")
        return SummaryTable(name=name, columns=tuple(group_spec.columns) + tuple(statistics), rows=rows)

    def aggregate(self, records: Iterable[TripRecord], group_spec: GroupSpec,
                  statistics: Sequence[str], ordering: Ordering,
                  name: str = "summary") -> SummaryTable:
        """
        Group records and reduce their ride lengths.

        Args:
            records (iterable): Cleaned TripRecords.
            group_spec (GroupSpec): Key columns and key function.
            statistics (list): Names drawn from count, mean, median, min, max.
            ordering (Ordering): Row order and optional per-partition limit.
            name (str): Table name used by the exporter.

        Returns:
            SummaryTable: The ordered result table.
        """
        groups = self.accumulate(records, group_spec)
        return self.build_table(groups, group_spec, statistics, ordering, name)
