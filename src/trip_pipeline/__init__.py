# ========================
# src/trip_pipeline/__init__.py
# ========================

"""
Trip Pipeline Package

Core components for harmonizing bike trip exports:
- schema_mapping: Source layout -> canonical TripRecord
- merging: Concatenation of mapped sources
- derivation: Calendar fields and ride length
- validation: Exclusion rules
- transformation: Group-by/reduce engine
- views: The standard summary tables
- ingestion / storage: CSV input and table export
- orchestrator: Pipeline coordination
"""

from .errors import ErrorPolicy, InvalidTimestamp, PipelineError, SchemaMismatch
from .models import TripRecord, Weekday
from .ingestion import CSVReader, SourceBatch
from .schema_mapping import SchemaMapper
from .merging import merge
from .derivation import FieldDeriver
from .validation import ExclusionRule, Validator, default_rules
from .transformation import DataAggregator, GroupSpec, Ordering, SummaryTable
from .storage import TableExporter
from .orchestrator import PipelineResult, TripPipeline

__all__ = [
    'ErrorPolicy',
    'InvalidTimestamp',
    'PipelineError',
    'SchemaMismatch',
    'TripRecord',
    'Weekday',
    'CSVReader',
    'SourceBatch',
    'SchemaMapper',
    'merge',
    'FieldDeriver',
    'ExclusionRule',
    'Validator',
    'default_rules',
    'DataAggregator',
    'GroupSpec',
    'Ordering',
    'SummaryTable',
    'TableExporter',
    'PipelineResult',
    'TripPipeline',
]

__version__ = "1.0.0"
