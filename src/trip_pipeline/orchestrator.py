# ========================
# src/trip_pipeline/orchestrator.py
# ========================

"""
Pipeline Orchestrator Module

Runs the fixed stage sequence: map each source batch, merge, derive fields,
validate, then build the summary views and hand them to the exporter.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from .derivation import FieldDeriver
from .errors import ErrorPolicy, PipelineError
from .ingestion import CSVReader, SourceBatch
from .merging import merge
from .models import TripRecord
from .schema_mapping import SchemaMapper
from .storage import TableExporter
from .transformation import DataAggregator, SummaryTable
from .validation import Validator, default_rules
from .views import build_all_views
from ..utils.config import Config
from ..utils.performance_monitor import monitor_performance

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Outcome of one pipeline run."""

    cleaned_records: List[TripRecord]
    tables: Dict[str, SummaryTable]
    statistics: Dict[str, Any]
    saved_files: Dict[str, str] = field(default_factory=dict)


class TripPipeline:
    """
    Orchestrates the trip harmonization pipeline.
    """

    def __init__(self,
                 output_dir: Optional[str] = None,
                 config: Optional[Config] = None,
                 error_policy: Optional[ErrorPolicy] = None):
        """
        Initialize the pipeline.

        Args:
            output_dir (str): Directory for exported tables; nothing is
                              written when None.
            config (Config): Configuration object
            error_policy (ErrorPolicy): Overrides config.ERROR_POLICY
        """
        self.config = config or Config()
        self.output_dir = output_dir
        self.error_policy = ErrorPolicy.from_value(error_policy or self.config.ERROR_POLICY)

        self.mapper = SchemaMapper()
        self.deriver = FieldDeriver()
        self.validator = Validator(default_rules(self.config.STATION_BLACKLIST))
        self.aggregator = DataAggregator()
        self.exporter = TableExporter(output_dir) if output_dir else None

        self.reset_statistics()

        logger.info("TripPipeline initialized:")
        logger.info(f"  Output: {self.output_dir}")
        logger.info(f"  Error policy: {self.error_policy.value}")

    def load_batches(self, input_files: Optional[Dict[str, str]] = None) -> List[SourceBatch]:
        """
        Read the configured input files.

        Args:
            input_files (dict): Source schema id -> CSV path. Defaults to
                                config.get_input_batches().
        """
        input_files = input_files or self.config.get_input_batches()
        return [
            CSVReader(path).read_batch(schema_id, chunk_size=self.config.DEFAULT_CHUNK_SIZE)
            for schema_id, path in input_files.items()
        ]

    def run(self, batches: Sequence[SourceBatch]) -> PipelineResult:
        """
        Execute the complete pipeline over already-parsed batches.

        Args:
            batches (list[SourceBatch]): Raw rows per source schema.

        Returns:
            PipelineResult: Cleaned records, summary tables and run statistics.

        Raises:
            PipelineError: Only under the strict error policy.
        """
        logger.info(f"Starting trip pipeline over {len(batches)} batches...")
        self.reset_statistics()

        with monitor_performance("TripPipeline") as monitor:
            mapped = [self._map_batch(batch) for batch in batches]
            monitor.add_checkpoint('map', {'records': sum(len(m) for m in mapped)})

            merged = merge(mapped)
            monitor.update_progress(len(merged))

            derived = self._apply(self.deriver.derive, merged, 'derive')
            monitor.add_checkpoint('derive', {'records': len(derived)})

            cleaned = self.validator.filter(derived)
            monitor.add_checkpoint('validate', {'records': len(cleaned)})

            tables = build_all_views(self.aggregator, cleaned, self.config.TOP_STATIONS_LIMIT)
            monitor.add_checkpoint('aggregate', {'tables': len(tables)})

        statistics = self.get_statistics(len(cleaned))
        statistics['performance'] = monitor.summary

        saved_files = {}
        if self.exporter is not None:
            logger.info("Saving summary tables...")
            saved_files = self.exporter.save_all(tables, statistics)

        result = PipelineResult(cleaned, tables, statistics, saved_files)
        self._log_final_summary(result)
        return result

    def run_files(self, input_files: Optional[Dict[str, str]] = None) -> PipelineResult:
        """Load the input files and run the pipeline over them."""
        return self.run(self.load_batches(input_files))

    def _map_batch(self, batch: SourceBatch) -> List[TripRecord]:
        logger.info(f"Mapping batch '{batch.name}' ({batch.schema_id}) with {len(batch)} rows...")
        self.rows_read += len(batch)
        records = self._apply(lambda row: self.mapper.map(row, batch.schema_id), batch.rows, 'map')
        logger.info(f"Batch '{batch.name}': {len(records)}/{len(batch)} rows mapped")
        return records

    def _apply(self, stage: Callable[[Any], TripRecord], items: Sequence[Any], stage_name: str) -> List[TripRecord]:
        """Run a per-record stage, honouring the error policy."""
        results = []
        for item in items:
            try:
                results.append(stage(item))
            except PipelineError as e:
                if stage_name == 'map':
                    self.mapping_failures += 1
                else:
                    self.timestamp_failures += 1
                if self.error_policy is ErrorPolicy.STRICT:
                    logger.error(f"Aborting batch at {stage_name} stage: {e}")
                    raise
                logger.warning(f"Skipping record at {stage_name} stage: {e}")
        return results

    def reset_statistics(self) -> None:
        """Zero the per-run counters; rules and configuration are kept."""
        self.rows_read = 0
        self.mapping_failures = 0
        self.timestamp_failures = 0
        self.deriver.reset_statistics()
        self.validator.reset_statistics()

    def get_statistics(self, records_cleaned: int) -> Dict[str, Any]:
        validation = self.validator.get_statistics()
        return {
            'rows_read': self.rows_read,
            'mapping_failures': self.mapping_failures,
            'timestamp_failures': self.timestamp_failures,
            'records_excluded': validation['records_excluded'],
            'exclusions_by_rule': validation['exclusions_by_rule'],
            'records_cleaned': records_cleaned,
            'error_policy': self.error_policy.value,
        }

    def _log_final_summary(self, result: PipelineResult) -> None:
        stats = result.statistics
        logger.info("=" * 60)
        logger.info("PIPELINE EXECUTION SUMMARY")
        logger.info("=" * 60)
        logger.info(f"Rows read: {stats['rows_read']:,}")
        logger.info(f"Mapping failures: {stats['mapping_failures']:,}")
        logger.info(f"Timestamp failures: {stats['timestamp_failures']:,}")
        logger.info(f"Records excluded: {stats['records_excluded']:,} {stats['exclusions_by_rule']}")
        logger.info(f"Records cleaned: {stats['records_cleaned']:,}")
        for name, file_path in result.saved_files.items():
            logger.info(f"  - {name}: {file_path}")
        logger.info("=" * 60)
