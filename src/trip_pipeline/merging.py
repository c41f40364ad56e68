# ========================
# src/trip_pipeline/merging.py
# ========================

"""
Record Merging Module

Concatenates mapped record sequences from several sources into one.
"""

import logging
from itertools import chain
from typing import Iterable, List, Sequence

from .models import TripRecord

logger = logging.getLogger(__name__)


def merge(sequences: Iterable[Sequence[TripRecord]]) -> List[TripRecord]:
    """
    Concatenate canonical record sequences in the order given.

    No deduplication or reordering is done; the output length is the
    sum of the input lengths.

    Args:
        sequences (list): Sequences of already-mapped TripRecords.

    Returns:
        list[TripRecord]: The unified sequence.
    """
    sequences = list(sequences)
    merged = list(chain.from_iterable(sequences))

    for record in merged:
        if not isinstance(record, TripRecord):
            raise TypeError(f"merge() expects TripRecord items, got {type(record).__name__}")

    logger.info(f"Merged {len(sequences)} sources into {len(merged)} records "
                f"(sizes: {[len(s) for s in sequences]})")
    return merged
