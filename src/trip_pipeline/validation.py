# ========================
# src/trip_pipeline/validation.py
# ========================

"""
Validation Module

Drops records matched by any exclusion rule. A record survives only when
no rule matches, so rule order never changes the result.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, Iterable, List, NamedTuple, Optional, Sequence

from .models import TripRecord

logger = logging.getLogger(__name__)

DEFAULT_STATION_BLACKLIST = frozenset({"HQ QR"})


class ExclusionRule(NamedTuple):
    """A named predicate; a record is excluded when it returns True."""

    name: str
    predicate: Callable[[TripRecord], bool]


def _ends_before_start(record: TripRecord) -> bool:
    # sub-second negatives round to -0.0, so compare the timestamps when parsed
    if isinstance(record.started_at, datetime) and isinstance(record.ended_at, datetime):
        return record.ended_at < record.started_at
    return record.ride_length_minutes is not None and record.ride_length_minutes < 0


def negative_ride_length_rule() -> ExclusionRule:
    return ExclusionRule('negative_ride_length', _ends_before_start)


def station_blacklist_rule(blacklist: Iterable[str] = DEFAULT_STATION_BLACKLIST) -> ExclusionRule:
    stations = frozenset(blacklist)
    return ExclusionRule(
        'blacklisted_start_station',
        lambda record: record.start_station_name in stations,
    )


def default_rules(blacklist: Optional[Iterable[str]] = None) -> List[ExclusionRule]:
    """The standard rule set: negative ride length and blacklisted start station."""
    return [
        negative_ride_length_rule(),
        station_blacklist_rule(DEFAULT_STATION_BLACKLIST if blacklist is None else blacklist),
    ]


class Validator:
    """
    Applies exclusion rules and keeps per-rule exclusion counts so business
    exclusions can be reported apart from parse failures.
    """

    def __init__(self, rules: Optional[Sequence[ExclusionRule]] = None):
        self.rules = list(rules) if rules is not None else default_rules()
        self.reset_statistics()
        logger.info(f"Validator initialized with rules: {[rule.name for rule in self.rules]}")

    def reset_statistics(self) -> None:
        """Zero the exclusion counters, keeping the configured rules."""
        self.records_checked = 0
        self.records_excluded = 0
        self.exclusions_by_rule: Dict[str, int] = {rule.name: 0 for rule in self.rules}

    def add_rule(self, rule: ExclusionRule) -> None:
        self.rules.append(rule)
        self.exclusions_by_rule.setdefault(rule.name, 0)

    def filter(self, records: Iterable[TripRecord],
               rules: Optional[Sequence[ExclusionRule]] = None) -> List[TripRecord]:
        """
        Return the records no exclusion rule matches.

        Args:
            records (iterable): Derived TripRecords.
            rules (list): Optional rule set overriding the validator's own.

        Returns:
            list[TripRecord]: The cleaned records, in input order.
        """
        active_rules = list(rules) if rules is not None else self.rules
        cleaned = []

        for record in records:
            self.records_checked += 1
            matched = [rule.name for rule in active_rules if rule.predicate(record)]
            if matched:
                self.records_excluded += 1
                for name in matched:
                    self.exclusions_by_rule[name] = self.exclusions_by_rule.get(name, 0) + 1
                logger.debug(f"Record {record.ride_id} excluded by {matched}")
            else:
                cleaned.append(record)

        logger.info(f"Validation: {len(cleaned)} records kept, "
                    f"{self.records_excluded} excluded so far {self.exclusions_by_rule}")
        return cleaned

    def get_statistics(self) -> dict:
        return {
            'records_checked': self.records_checked,
            'records_excluded': self.records_excluded,
            'exclusions_by_rule': dict(self.exclusions_by_rule),
        }
