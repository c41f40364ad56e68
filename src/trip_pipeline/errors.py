# ========================
# src/trip_pipeline/errors.py
# ========================

"""
Pipeline Errors

Exception types raised by the mapping and derivation stages, and the
policy that decides whether a failing record is skipped or aborts the batch.
"""

from enum import Enum
from typing import Any, Optional


class PipelineError(Exception):
    """Base class for record-level pipeline failures."""


class SchemaMismatch(PipelineError):
    """
    A canonical field has no source in the given schema, or a source value
    could not be coerced into its canonical form.
    """

    def __init__(self, source_schema: str, field: Optional[str], message: str):
        self.source_schema = source_schema
        self.field = field
        super().__init__(f"[{source_schema}] {message}")


class InvalidTimestamp(PipelineError):
    """started_at or ended_at is missing or cannot be parsed."""

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value
        super().__init__(f"Invalid timestamp in '{field}': {value!r}")


class ErrorPolicy(str, Enum):
    """How record-level errors are handled."""

    SKIP = "skip"
    STRICT = "strict"

    @classmethod
    def from_value(cls, value: Any) -> 'ErrorPolicy':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown error policy: {value!r} (expected 'skip' or 'strict')")
