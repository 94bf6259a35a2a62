"""
Central configuration for the Clinical Dates normalizer.

This module contains all application settings, paths, and constants.
All other modules import configuration from here to maintain consistency.
"""

import os
from pathlib import Path
from typing import Dict
from dotenv import load_dotenv

from clinical_dates.validation.parameter_validator import validate_choice

# Load environment variables from .env file
load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


class Config:
    """Application configuration and constants"""

    # ==========================================
    # Project Paths
    # ==========================================
    PROJECT_ROOT = Path(__file__).parent.parent
    DATA_DIR = PROJECT_ROOT / "data"
    RAW_DATA_DIR = DATA_DIR / "raw"
    PROCESSED_DATA_DIR = DATA_DIR / "processed"

    # ==========================================
    # Normalization Defaults
    # ==========================================
    IMPUTATION_RULE = os.getenv("IMPUTATION_RULE", "min")               # min | max
    WARN_ON_INVALID = _env_flag("WARN_ON_INVALID", "true")              # False downgrades diagnostics to INFO
    MISSING_TIME_ALLOWED = os.getenv("MISSING_TIME_ALLOWED", "yes")     # yes | no

    # Input columns for batch processing
    DATE_COLUMN = os.getenv("DATE_COLUMN", "date")
    TIME_COLUMN = os.getenv("TIME_COLUMN", "time")

    # ==========================================
    # Ray Configuration
    # ==========================================
    RAY_ENABLED = _env_flag("RAY_ENABLED", "false")
    RAY_NUM_CPUS = int(os.getenv("RAY_NUM_CPUS", "4"))
    RAY_OBJECT_STORE_MEMORY = int(os.getenv("RAY_OBJECT_STORE_MEMORY", str(200 * 1024 * 1024)))
    RAY_MIN_ROWS = int(os.getenv("RAY_MIN_ROWS", "10000"))  # smaller batches are not worth the fan-out

    # ==========================================
    # Application Settings
    # ==========================================
    BATCH_SIZE = int(os.getenv("BATCH_SIZE", "2000"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")          # DEBUG, INFO, WARNING, ERROR

    # ==========================================
    # Case Report Form Tokens
    # ==========================================
    # Placeholders used on CRFs for components that were not recorded
    UNKNOWN_DAY_TOKENS = ("UN", "UK")
    UNKNOWN_MONTH_TOKEN = "UNK"

    # Month abbreviations accepted in DDMMMYYYY dates
    MONTH_ABBREVIATIONS: Dict[str, int] = {
        "JAN": 1,
        "FEB": 2,
        "MAR": 3,
        "APR": 4,
        "MAY": 5,
        "JUN": 6,
        "JUL": 7,
        "AUG": 8,
        "SEP": 9,
        "OCT": 10,
        "NOV": 11,
        "DEC": 12,
    }

    # ==========================================
    # Logging Configuration
    # ==========================================
    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
    LOGS_DIR = PROJECT_ROOT / "logs"

    # ==========================================
    # Output Formatting
    # ==========================================
    CLI_MAX_WIDTH = 100
    DEFAULT_OUTPUT_FILE = PROCESSED_DATA_DIR / "clean_dates.csv"

    # ==========================================
    # Class Methods
    # ==========================================
    @classmethod
    def ensure_directories(cls) -> None:
        """
        Create all necessary directories if they don't exist.

        This should be called at application startup to ensure
        the file system is properly initialized.
        """
        directories = [
            cls.DATA_DIR,
            cls.RAW_DATA_DIR,
            cls.PROCESSED_DATA_DIR,
            cls.LOGS_DIR
        ]

        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)

    @classmethod
    def validate_settings(cls) -> None:
        """
        Validate the normalization defaults loaded from the environment.

        Raises:
            ParameterError: if IMPUTATION_RULE is neither "min" nor "max"
        """
        validate_choice("IMPUTATION_RULE", cls.IMPUTATION_RULE, ("min", "max"))

    @classmethod
    def print_config_summary(cls) -> None:
        """Print configuration summary for debugging"""
        print("=" * 60)
        print("Clinical Dates - Configuration Summary")
        print("=" * 60)
        print(f"Imputation rule:      {cls.IMPUTATION_RULE}")
        print(f"Warn on invalid:      {cls.WARN_ON_INVALID}")
        print(f"Missing time allowed: {cls.MISSING_TIME_ALLOWED}")
        print(f"Date/time columns:    {cls.DATE_COLUMN} / {cls.TIME_COLUMN}")
        print(f"Batch size:           {cls.BATCH_SIZE}")
        print(f"Ray enabled:          {cls.RAY_ENABLED} ({cls.RAY_NUM_CPUS} CPUs)")
        print(f"Output file:          {cls.DEFAULT_OUTPUT_FILE}")
        print("=" * 60)
