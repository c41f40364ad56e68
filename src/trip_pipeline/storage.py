# ========================
# src/trip_pipeline/storage.py
# ========================

"""
Data Storage Module

Writes summary tables and run statistics to the output directory.
"""

import csv
import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List

from .transformation import SummaryTable

logger = logging.getLogger(__name__)


def format_value(value: Any) -> Any:
    """Render enum members (weekdays) by name; leave other scalars alone."""
    if isinstance(value, Enum):
        return str(value)
    return value


class TableExporter:
    """
    Saves summary tables to CSV, keeping each table's column order.
    """

    def __init__(self, output_dir: str = "data/processed"):
        """
        Initialize the exporter.

        Args:
            output_dir (str): Directory to save output files
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"TableExporter initialized with output directory: {self.output_dir}")

    def save_all(self, tables: Dict[str, SummaryTable], run_summary: Dict[str, Any]) -> Dict[str, str]:
        """
        Save every table plus the run summary.

        Args:
            tables (dict): Table name -> SummaryTable
            run_summary (dict): Run statistics for the JSON summary

        Returns:
            dict: Mapping of output name to saved file path
        """
        saved_files = {}
        for name, table in tables.items():
            saved_files[name] = self.save_table(table)

        saved_files['summary'] = self._save_summary(run_summary)
        saved_files['data_dictionary'] = self.create_data_dictionary()

        logger.info(f"All data saved successfully to {len(saved_files)} files")
        return saved_files

    def save_table(self, table: SummaryTable) -> str:
        file_path = self.output_dir / f"{table.name}.csv"
        rows = [[format_value(v) for v in row] for row in table.rows]
        self._write_csv(file_path, list(table.columns), rows)
        return str(file_path)

    def _save_summary(self, summary_data: Dict[str, Any]) -> str:
        file_path = self.output_dir / "pipeline_summary.json"

        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(summary_data, f, indent=2, ensure_ascii=False, default=str)

        logger.info(f"Summary saved to {file_path}")
        return str(file_path)

    def _write_csv(self, file_path: Path, headers: List[str], rows: List[List[Any]]) -> None:
        try:
            with open(file_path, 'w', newline='', encoding='utf-8') as f:
                writer = csv.writer(f)
                writer.writerow(headers)
                writer.writerows(rows)

            logger.info(f"Saved {len(rows)} records to {file_path}")

        except OSError as e:
            logger.error(f"Error writing CSV file {file_path}: {e}")
            raise

    def create_data_dictionary(self) -> str:
        """Create a data dictionary explaining all output files."""
        file_path = self.output_dir / "DATA_DICTIONARY.md"

        content = """# Data Dictionary

All duration statistics are ride lengths in minutes, rounded to 2 decimal
places. Rows are ordered by member_casual (casual first).

### ride_length_stats.csv
| Column | Type | Description |
|--------|------|-------------|
| member_casual | string | Rider class (casual, member) |
| count | integer | Number of rides |
| mean | float | Average ride length |
| median | float | Median ride length |
| min | float | Shortest ride |
| max | float | Longest ride |

### weekday_stats.csv
Ordered Sunday through Saturday within each rider class.

| Column | Type | Description |
|--------|------|-------------|
| member_casual | string | Rider class |
| weekday | string | Day of week of the ride start |
| count | integer | Number of rides |
| mean | float | Average ride length |

### monthly_stats.csv
| Column | Type | Description |
|--------|------|-------------|
| member_casual | string | Rider class |
| month | integer | Month of the ride start (1-12) |
| count | integer | Number of rides |

### hourly_stats.csv
| Column | Type | Description |
|--------|------|-------------|
| member_casual | string | Rider class |
| hour | integer | Hour of the ride start (0-23) |
| count | integer | Number of rides |

### top_start_stations.csv
Most used start stations per rider class, by ride count descending, ties
broken by station name.

| Column | Type | Description |
|--------|------|-------------|
| member_casual | string | Rider class |
| start_station_name | string | Start station |
| count | integer | Number of rides |

### pipeline_summary.json
Counts of rows read, mapping and timestamp failures, records excluded per
rule, and records kept.
"""

        with open(file_path, 'w', encoding='utf-8') as f:
            f.write(content)

        logger.info(f"Data dictionary created at {file_path}")
        return str(file_path)
