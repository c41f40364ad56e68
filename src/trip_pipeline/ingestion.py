# ========================
# src/trip_pipeline/ingestion.py
# ========================

"""
Data Ingestion Module

Reads trip CSV exports in chunks and pairs the raw rows with the id of the
schema they were captured under.
"""

import csv
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


@dataclass
class SourceBatch:
    """Raw rows from one source, plus the schema they follow."""

    name: str
    schema_id: str
    rows: List[Dict[str, Any]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)


class CSVReader:
    """
    A CSV reader that yields rows in chunks so large quarterly exports
    never need to be held twice in memory.
    """

    def __init__(self, file_path):
        """
        Initialize the CSV reader.

        Args:
            file_path (str): Path to the CSV file to read
        """
        self.file_path = file_path
        self.header = []
        logger.info(f"Initialized CSVReader for file: {file_path}")

    def read_in_chunks(self, chunk_size):
        """
        A generator that yields a list of dictionaries for each chunk of data.

        Args:
            chunk_size (int): The number of rows to yield per chunk.

        Yields:
            list[dict]: A list of dictionaries representing a chunk of rows.
        """
        try:
            with open(self.file_path, 'r', newline='', encoding='utf-8') as f:
                reader = csv.DictReader(f)
                self.header = reader.fieldnames
                logger.info(f"CSV header: {self.header}")

                chunk = []
                row_count = 0

                for row in reader:
                    chunk.append(row)
                    row_count += 1

                    if len(chunk) == chunk_size:
                        logger.debug(f"Yielding chunk with {len(chunk)} rows")
                        yield chunk
                        chunk = []

                if chunk:
                    logger.debug(f"Yielding final chunk with {len(chunk)} rows")
                    yield chunk

                logger.info(f"Total rows read: {row_count}")

        except FileNotFoundError:
            logger.error(f"File '{self.file_path}' was not found")
            raise

    def read_batch(self, schema_id: str, name: str = None, chunk_size: int = 1000) -> SourceBatch:
        """
        Read the whole file into a SourceBatch.

        Args:
            schema_id (str): Source schema the file was captured under.
            name (str): Batch name; defaults to the file path.
            chunk_size (int): Rows per read chunk.

        Returns:
            SourceBatch: The raw rows tagged with their schema id.
        """
        batch = SourceBatch(name=name or str(self.file_path), schema_id=schema_id)
        for chunk in self.read_in_chunks(chunk_size):
            batch.rows.extend(chunk)
        logger.info(f"Loaded batch '{batch.name}' ({schema_id}): {len(batch)} rows")
        return batch
