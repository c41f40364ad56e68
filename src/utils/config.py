# ========================
# src/utils/config.py
# ========================

"""
Configuration Management

Centralized configuration for the trip pipeline with environment support.
"""

import os
import json
from pathlib import Path
from typing import Dict, Any, List, Optional

class Config:
    """
    Configuration class for the trip pipeline.
    Supports environment variables and default values.
    """

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration.

        Args:
            config_dict (dict): Optional configuration overrides
        """
        # Data Processing Configuration
        self.DEFAULT_CHUNK_SIZE = int(os.getenv('PIPELINE_CHUNK_SIZE', '1000'))
        self.ERROR_POLICY = os.getenv('ERROR_POLICY', 'skip')

        # File Paths
        self.LEGACY_INPUT_FILE = os.getenv('LEGACY_INPUT_FILE', 'data/raw/divvy_trips_2019_q1.csv')
        self.MODERN_INPUT_FILE = os.getenv('MODERN_INPUT_FILE', 'data/raw/divvy_trips_2020_q1.csv')
        self.DEFAULT_OUTPUT_DIR = os.getenv('PIPELINE_OUTPUT_DIR', 'data/processed')

        # Data Generation Settings
        self.DEFAULT_SAMPLE_ROWS = int(os.getenv('SAMPLE_ROWS', '5000'))

        # Business Rules
        self.STATION_BLACKLIST = self._parse_list(os.getenv('STATION_BLACKLIST', 'HQ QR'))
        self.TOP_STATIONS_LIMIT = int(os.getenv('TOP_STATIONS_LIMIT', '10'))

        # API Settings
        self.API_PORT = int(os.getenv('API_PORT', '8000'))

        # Logging Configuration
        self.LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

        # Override with provided config
        if config_dict:
            self._update_from_dict(config_dict)

    @staticmethod
    def _parse_list(value: str) -> List[str]:
        return [item.strip() for item in value.split(',') if item.strip()]

    def _update_from_dict(self, config_dict: Dict[str, Any]) -> None:
        """Update configuration from dictionary."""
        for key, value in config_dict.items():
            if hasattr(self, key.upper()):
                if key.upper() == 'STATION_BLACKLIST' and isinstance(value, str):
                    value = self._parse_list(value)
                setattr(self, key.upper(), value)

    def get_input_batches(self) -> Dict[str, str]:
        """Configured input files keyed by source schema id."""
        return {
            'divvy_2019': self.LEGACY_INPUT_FILE,
            'divvy_2020': self.MODERN_INPUT_FILE,
        }

    def ensure_directories(self) -> None:
        """Create necessary directories if they don't exist."""
        for path in self.get_input_batches().values():
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        Path(self.DEFAULT_OUTPUT_DIR).mkdir(parents=True, exist_ok=True)
        Path('logs').mkdir(parents=True, exist_ok=True)

    def validate_config(self) -> Dict[str, bool]:
        """
        Validate configuration values.

        Returns:
            dict: Validation results for each setting
        """
        validations = {}

        validations['chunk_size'] = self.DEFAULT_CHUNK_SIZE > 0
        validations['sample_rows'] = self.DEFAULT_SAMPLE_ROWS > 0
        validations['top_stations_limit'] = self.TOP_STATIONS_LIMIT > 0
        validations['api_port'] = 1000 <= self.API_PORT <= 65535
        validations['error_policy'] = str(self.ERROR_POLICY).lower() in ('skip', 'strict')

        valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        validations['log_level'] = self.LOG_LEVEL.upper() in valid_log_levels

        return validations

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            attr: getattr(self, attr)
            for attr in dir(self)
            if not attr.startswith('_') and not callable(getattr(self, attr))
        }

    def save_to_file(self, file_path: str) -> None:
        """Save configuration to JSON file."""
        with open(file_path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2, default=str)

    @classmethod
    def load_from_file(cls, file_path: str) -> 'Config':
        """Load configuration from JSON file."""
        with open(file_path, 'r') as f:
            config_dict = json.load(f)
        return cls(config_dict)

    def __str__(self) -> str:
        lines = ["Configuration Settings:"]
        for key, value in sorted(self.to_dict().items()):
            lines.append(f"  {key}: {value}")
        return "\n".join(lines)
