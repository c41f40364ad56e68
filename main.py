#!/usr/bin/env python3
# ========================
# main.py
# ========================

"""
Main Entry Point for the Bike Trip Harmonization Pipeline

Generates sample 2019 and 2020 trip exports (unless they already exist),
harmonizes them and writes the summary tables.
"""

import sys
import logging
from pathlib import Path

from src.trip_pipeline import TripPipeline, PipelineError
from src.utils import Config, setup_logging, TripDataGenerator

def main():
    """Main execution function."""
    config = Config()

    setup_logging(
        log_level=config.LOG_LEVEL,
        log_file="pipeline.log",
        log_dir="logs"
    )

    logger = logging.getLogger(__name__)
    logger.info("=" * 60)
    logger.info("BIKE TRIP HARMONIZATION PIPELINE - MAIN EXECUTION")
    logger.info("=" * 60)

    invalid = [name for name, ok in config.validate_config().items() if not ok]
    if invalid:
        logger.error(f"Invalid configuration values: {invalid}")
        return 1

    try:
        config.ensure_directories()

        # Step 1: Sample exports
        generator = TripDataGenerator(seed=42)
        if not Path(config.LEGACY_INPUT_FILE).exists():
            logger.info("Step 1a: Generating legacy (2019) sample export...")
            generator.generate_legacy_dataset(config.LEGACY_INPUT_FILE, config.DEFAULT_SAMPLE_ROWS)
        if not Path(config.MODERN_INPUT_FILE).exists():
            logger.info("Step 1b: Generating modern (2020) sample export...")
            generator.generate_modern_dataset(config.MODERN_INPUT_FILE, config.DEFAULT_SAMPLE_ROWS)

        # Step 2: Run the pipeline
        logger.info("Step 2: Running trip pipeline...")
        pipeline = TripPipeline(output_dir=config.DEFAULT_OUTPUT_DIR, config=config)
        result = pipeline.run_files()

        _print_execution_summary(result)
        logger.info("Pipeline execution completed successfully!")
        return 0

    except PipelineError as e:
        logger.error(f"Pipeline aborted under strict error policy: {e}")
        return 2
    except Exception as e:
        logger.error(f"Pipeline execution failed: {e}", exc_info=True)
        return 1

def _print_execution_summary(result) -> None:
    """Print final execution summary."""
    stats = result.statistics
    print("\n" + "=" * 70)
    print("PIPELINE EXECUTION SUMMARY")
    print("=" * 70)
    print(f"   Rows read:          {stats['rows_read']:,}")
    print(f"   Mapping failures:   {stats['mapping_failures']:,}")
    print(f"   Timestamp failures: {stats['timestamp_failures']:,}")
    print(f"   Records excluded:   {stats['records_excluded']:,}")
    print(f"   Records cleaned:    {stats['records_cleaned']:,}")

    ride_lengths = result.tables['ride_length_stats']
    print("\nRide length by rider class (minutes):")
    for row in ride_lengths.to_dicts():
        print(f"   {row['member_casual']:<7} count={row['count']:,} mean={row['mean']} "
              f"median={row['median']} max={row['max']}")

    print("\nGenerated outputs:")
    for name, file_path in result.saved_files.items():
        print(f"   - {name}: {Path(file_path).name}")
    print("=" * 70)

if __name__ == '__main__':
    exit_code = main()
    sys.exit(exit_code)
