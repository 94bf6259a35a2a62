"""
Batch processing pipeline for clinical date/time records.

Ingests a CSV (or DataFrame) of raw CRF dates and times, normalizes every
record, and returns a clean DataFrame plus processing metadata.

1. Load CSV with all columns kept as text
2. Normalize dates (with imputation) and times for each record
3. Combine them into datetimes under the missing-time policy
4. Optionally fan large batches out to Ray workers
5. Emit the collected diagnostics and return the clean DataFrame
"""

import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from clinical_dates.config import Config
from clinical_dates.normalization.date_normalizer import (
    DateNormalizer,
    ImputationRule,
    date_imputation_flag,
)
from clinical_dates.normalization.datetime_combiner import DatetimeCombiner
from clinical_dates.normalization.diagnostics import Diagnostic, emit
from clinical_dates.normalization.time_normalizer import TimeNormalizer
from clinical_dates.validation.parameter_validator import is_yes

logger = logging.getLogger(__name__)

OUTPUT_COLUMNS = [
    "normalized_date",
    "normalized_time",
    "normalized_datetime",
    "date_imputation_flag",
    "diagnostics",
]


def process_records(
    records: Sequence[Tuple[Any, Any]],
    rule: str,
    warn: bool,
    missing_time_allowed: bool,
    has_time: bool,
) -> List[Dict[str, Any]]:
    """
    Normalize a chunk of (date_text, time_text) records.

    Runs in the driver or inside a Ray worker, so nothing is logged here;
    diagnostics are returned with each row for the caller to emit.

    Args:
        records: (date_text, time_text) pairs
        rule: Imputation rule ("min" or "max")
        warn: False downgrades diagnostics to INFO
        missing_time_allowed: Fill missing times with midnight
        has_time: False when the input has no time column at all

    Returns:
        One dict per record with the OUTPUT_COLUMNS values
    """
    date_normalizer = DateNormalizer(rule=rule, warn=warn, log_sink=None)
    time_normalizer = TimeNormalizer(warn=warn, log_sink=None)
    combiner = DatetimeCombiner(missing_time_allowed)

    rows = []
    for date_text, time_text in records:
        date_value, date_diagnostic = date_normalizer.normalize_date(date_text)

        time_diagnostic: Optional[Diagnostic] = None
        if has_time:
            time_value, time_diagnostic = time_normalizer.normalize_time(time_text)
            datetime_value = combiner.combine(date_value, time_value)
        else:
            time_value = None
            datetime_value = combiner.combine(date_value)

        diagnostics = [d for d in (date_diagnostic, time_diagnostic) if d is not None]
        rows.append({
            "normalized_date": date_value,
            "normalized_time": time_value,
            "normalized_datetime": datetime_value,
            "date_imputation_flag": date_imputation_flag(date_text) if date_value is not None else None,
            "diagnostics": "; ".join(d.message for d in diagnostics) or None,
            "date_diagnostic": date_diagnostic,
            "time_diagnostic": time_diagnostic,
        })

    return rows


class RecordPipeline:
    """
    Pipeline for normalizing a batch of CRF date/time records.

    All knobs are validated up front, so a misconfigured pipeline fails
    before any record is touched.
    """

    def __init__(
        self,
        rule: Any = None,
        warn: Optional[bool] = None,
        missing_time_allowed: Any = None,
        date_column: Optional[str] = None,
        time_column: Optional[str] = None,
        use_ray: Optional[bool] = None,
    ):
        """Initialize pipeline; unset arguments fall back to Config"""
        self.rule = ImputationRule.from_value(rule if rule is not None else Config.IMPUTATION_RULE)
        self.warn = Config.WARN_ON_INVALID if warn is None else warn
        self.missing_time_allowed = is_yes(
            Config.MISSING_TIME_ALLOWED if missing_time_allowed is None else missing_time_allowed
        )
        self.date_column = date_column or Config.DATE_COLUMN
        self.time_column = time_column or Config.TIME_COLUMN
        self.use_ray = Config.RAY_ENABLED if use_ray is None else use_ray

        logger.info(
            f"Pipeline initialized (rule={self.rule.value}, warn={self.warn}, "
            f"missing_time_allowed={self.missing_time_allowed}, use_ray={self.use_ray})"
        )

    def process_csv(self, csv_path: Path) -> Tuple[pd.DataFrame, Dict]:
        """
        Process a CSV file through the pipeline.

        Args:
            csv_path: Path to the raw CSV

        Returns:
            Tuple of (clean_dataframe, metadata_dict)
        """
        logger.info(f"Processing CSV: {csv_path}")

        if not csv_path.exists():
            raise FileNotFoundError(f"CSV file not found: {csv_path}")

        try:
            # keep CRF tokens such as "01JAN2020" or "09:05" as text
            df = pd.read_csv(csv_path, dtype=str)
        except Exception as e:
            raise ValueError(f"Failed to read CSV file: {e}")

        logger.info(f"Loaded {len(df)} rows from CSV")
        clean_df, metadata = self.process_dataframe(df)
        metadata["input_file"] = str(csv_path)
        return clean_df, metadata

    def process_dataframe(self, df: pd.DataFrame) -> Tuple[pd.DataFrame, Dict]:
        """
        Normalize every row of a DataFrame.

        The date column is required. Without a time column every record is
        treated as having its time omitted.

        Returns:
            Tuple of (clean_dataframe, metadata_dict)
            - clean_dataframe: input columns plus OUTPUT_COLUMNS
            - metadata_dict: counts, diagnostics and timing
        """
        start_time = time.time()

        if self.date_column not in df.columns:
            raise ValueError(f"Missing required columns: {[self.date_column]}")

        has_time = self.time_column in df.columns
        if not has_time:
            logger.info(f"No '{self.time_column}' column; times treated as omitted")

        date_texts = df[self.date_column].tolist()
        time_texts = df[self.time_column].tolist() if has_time else [None] * len(df)
        records = list(zip(date_texts, time_texts))

        if self.use_ray and len(records) >= Config.RAY_MIN_ROWS:
            rows = self._process_with_ray(records, has_time)
        else:
            rows = process_records(records, self.rule.value, self.warn, self.missing_time_allowed, has_time)

        clean_df = df.copy()
        for column in OUTPUT_COLUMNS:
            clean_df[column] = [row[column] for row in rows]

        metadata = self._summarize(rows, has_time)
        metadata["processing_time_seconds"] = time.time() - start_time

        logger.info(
            f"Pipeline complete in {metadata['processing_time_seconds']:.2f}s: "
            f"{metadata['invalid_dates']} invalid dates, {metadata['invalid_times']} invalid times, "
            f"{metadata['imputed_dates']} imputed dates"
        )

        return clean_df, metadata

    def _process_with_ray(self, records: List[Tuple[Any, Any]], has_time: bool) -> List[Dict[str, Any]]:
        """Split records into chunks and normalize them on Ray workers, keeping row order"""
        import ray

        if not ray.is_initialized():
            logger.info(f"Initializing local Ray with {Config.RAY_NUM_CPUS} CPUs")
            ray.init(
                num_cpus=Config.RAY_NUM_CPUS,
                object_store_memory=Config.RAY_OBJECT_STORE_MEMORY,
                logging_level=logging.INFO
            )

        batch_size = max(1, Config.BATCH_SIZE)
        chunks = [records[i:i + batch_size] for i in range(0, len(records), batch_size)]
        logger.info(f"Split {len(records)} records into {len(chunks)} chunks of up to {batch_size}")

        process_remote = ray.remote(process_records)
        futures = [
            process_remote.remote(chunk, self.rule.value, self.warn, self.missing_time_allowed, has_time)
            for chunk in chunks
        ]

        # ray.get returns results in the order of the futures
        chunk_results = ray.get(futures)
        return [row for chunk_rows in chunk_results for row in chunk_rows]

    def _summarize(self, rows: List[Dict[str, Any]], has_time: bool) -> Dict[str, Any]:
        """Emit collected diagnostics and count outcomes"""
        metadata = {
            "total_rows": len(rows),
            "has_time_column": has_time,
            "invalid_dates": 0,
            "invalid_times": 0,
            "missing_datetimes": 0,
            "imputed_dates": 0,
            "diagnostics": [],
        }

        for row in rows:
            for key, counter in (("date_diagnostic", "invalid_dates"), ("time_diagnostic", "invalid_times")):
                diagnostic = row[key]
                if diagnostic is None:
                    continue
                emit(diagnostic, logger)
                metadata["diagnostics"].append(diagnostic.message)
                metadata[counter] += 1

            if row["normalized_datetime"] is None:
                metadata["missing_datetimes"] += 1
            if row["date_imputation_flag"]:
                metadata["imputed_dates"] += 1

        return metadata


# Helper function for CLI
def process_file(csv_path: str, **pipeline_options: Any) -> Tuple[pd.DataFrame, Dict]:
    """
    Helper function to process a CSV file.

    Args:
        csv_path: Path to CSV file (string)
        **pipeline_options: Forwarded to RecordPipeline

    Returns:
        Tuple of (clean_dataframe, metadata)
    """
    pipeline = RecordPipeline(**pipeline_options)
    return pipeline.process_csv(Path(csv_path))


def shutdown_ray():
    """Shutdown Ray cluster if one was started. Call this when exiting the CLI."""
    # Only a pipeline that fanned out has imported ray; the extra may not be installed
    ray = sys.modules.get("ray")
    if ray is None:
        return
    if ray.is_initialized():
        ray.shutdown()
        logger.info("Ray cluster shutdown complete")
