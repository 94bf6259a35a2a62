"""
Clinical Dates CLI

A CLI tool for normalizing partial case report form dates and times.

Usage:
    python -m clinical_dates.cli process <input.csv> [--rule max] [--no-warn] [--parallel]
    python -m clinical_dates.cli parse "UNFEB2020" "9:05" [--rule max]
    python -m clinical_dates.cli config          # Show configuration summary
    python -m clinical_dates.cli                # Interactive: enter values when prompted
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from clinical_dates.config import Config
from clinical_dates.normalization.date_normalizer import normalize_date
from clinical_dates.normalization.datetime_combiner import combine
from clinical_dates.normalization.time_normalizer import normalize_time
from clinical_dates.pipeline.batch_pipeline import process_file, shutdown_ray
from clinical_dates.validation.parameter_validator import ParameterError

# Configure logging for CLI
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    format=Config.LOG_FORMAT,
    datefmt=Config.LOG_DATE_FORMAT
)
logger = logging.getLogger(__name__)


def display_results(df: pd.DataFrame, metadata: Dict):
    """Display processing results in a formatted summary"""
    print("\n" + "=" * Config.CLI_MAX_WIDTH)
    print("PROCESSING RESULTS")
    print("=" * Config.CLI_MAX_WIDTH)
    print(f"Total records: {metadata.get('total_rows', len(df))}")
    print(f"Processing time: {metadata.get('processing_time_seconds', 0):.2f} seconds")
    print(f"Invalid dates: {metadata.get('invalid_dates', 0)}")
    print(f"Invalid times: {metadata.get('invalid_times', 0)}")
    print(f"Imputed dates: {metadata.get('imputed_dates', 0)}")
    print(f"Missing datetimes: {metadata.get('missing_datetimes', 0)}")

    diagnostics = metadata.get('diagnostics', [])
    if diagnostics:
        print("\nDiagnostics (first 10):")
        print("-" * Config.CLI_MAX_WIDTH)
        for message in diagnostics[:10]:
            print(f"  {message}")

    print("\nSample Records (first 10):")
    print("-" * Config.CLI_MAX_WIDTH)
    print(df.head(10).to_string(index=False))


def display_single(date_text: str, time_text: Optional[str], rule: str, warn: bool,
                   missing_time_allowed: str):
    """Normalize one date/time pair and print each stage"""
    date_value, date_diagnostic = normalize_date(date_text, rule=rule, warn=warn, log_sink=None)
    if time_text is None:
        time_value, time_diagnostic = None, None
        datetime_value = combine(date_value, missing_time_allowed=missing_time_allowed)
    else:
        time_value, time_diagnostic = normalize_time(time_text, warn=warn, log_sink=None)
        datetime_value = combine(date_value, time_value, missing_time_allowed=missing_time_allowed)

    print(f"\nDate:     {date_value.isoformat() if date_value else 'missing'}")
    if time_text is not None:
        print(f"Time:     {time_value.isoformat() if time_value else 'missing'}")
    print(f"Datetime: {datetime_value.isoformat() if datetime_value else 'missing'}")
    for diagnostic in (date_diagnostic, time_diagnostic):
        if diagnostic:
            print(diagnostic.message)


def run_process(args: argparse.Namespace) -> bool:
    """
    Run the batch pipeline over a CSV and save the clean output.

    Returns:
        True if successful, False otherwise
    """
    print("\n" + "=" * Config.CLI_MAX_WIDTH)
    print("Clinical Dates")
    print("=" * Config.CLI_MAX_WIDTH)
    print(f"Processing {args.input}...")

    try:
        df, metadata = process_file(
            args.input,
            rule=args.rule,
            warn=args.warn,
            missing_time_allowed=args.missing_time_allowed,
            date_column=args.date_column,
            time_column=args.time_column,
            use_ray=args.parallel,
        )
    except ParameterError as e:
        print(f"\nError: {e}")
        return False
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Error processing data: {e}", exc_info=True)
        print(f"\nError: Failed to process data: {e}")
        return False
    finally:
        if args.parallel:
            shutdown_ray()

    display_results(df, metadata)

    output_path = Path(args.output) if args.output else Config.DEFAULT_OUTPUT_FILE
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output_path, index=False)
    print("\n" + "=" * Config.CLI_MAX_WIDTH)
    print(f"Results saved to: {output_path}")
    print(f"Total rows saved: {len(df)}")
    print("=" * Config.CLI_MAX_WIDTH + "\n")

    return True


def run_parse(args: argparse.Namespace) -> bool:
    """Normalize a single date (and optional time) given on the command line"""
    try:
        display_single(args.date, args.time, args.rule, args.warn, args.missing_time_allowed)
    except ParameterError as e:
        print(f"\nError: {e}")
        return False
    return True


def interactive_loop(rule: str, warn: bool, missing_time_allowed: str):
    """Prompt for date/time pairs until the user exits"""
    print("\n" + "=" * Config.CLI_MAX_WIDTH)
    print("Clinical Dates")
    print("=" * Config.CLI_MAX_WIDTH)
    print("Interactive Mode")
    print("-" * Config.CLI_MAX_WIDTH)

    while True:
        print("\nOptions:")
        print("  0. Exit")
        print("  1. Normalize a date/time")

        try:
            choice = input("\nEnter your choice: ").strip()

            if choice == "0":
                print("\nExiting. Goodbye!")
                break
            elif choice == "1":
                date_text = input("Enter date (e.g. 01JAN2020, UNUNK2020): ")
                time_text = input("Enter time (blank to omit): ")
                display_single(date_text, time_text if time_text.strip() else None,
                               rule, warn, missing_time_allowed)
            else:
                print("Error: Invalid choice. Please enter 1 or 0.")

        except (KeyboardInterrupt, EOFError):
            print("\n\nInterrupted by user. Exiting...")
            break
        except ParameterError as e:
            print(f"Error: {e}")


def _common_options(suppress_defaults: bool) -> argparse.ArgumentParser:
    """
    Options accepted both before and after the subcommand.

    Subcommand copies suppress their defaults so a value given before the
    subcommand is not overwritten by the subparser.
    """
    def default(value):
        return argparse.SUPPRESS if suppress_defaults else value

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--rule", default=default(Config.IMPUTATION_RULE),
                        help="Imputation rule for unknown day/month: min or max")
    common.add_argument("--no-warn", dest="warn", action="store_false", default=default(Config.WARN_ON_INVALID),
                        help="Report invalid input at INFO instead of WARNING")
    common.add_argument("--missing-time-allowed", default=default(Config.MISSING_TIME_ALLOWED),
                        help="'yes' fills a missing time with 00:00:00; anything else leaves the datetime missing")
    return common


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with process/parse subcommands"""
    common = _common_options(suppress_defaults=True)

    ap = argparse.ArgumentParser(prog="clinical_dates", parents=[_common_options(suppress_defaults=False)],
                                 description="Normalize partial clinical dates and times.")
    subparsers = ap.add_subparsers(dest="command")

    process_ap = subparsers.add_parser("process", parents=[common], help="Normalize a CSV of records")
    process_ap.add_argument("input", help="CSV file with date (and optional time) columns")
    process_ap.add_argument("--output", help=f"Output CSV (default: {Config.DEFAULT_OUTPUT_FILE})")
    process_ap.add_argument("--date-column", default=Config.DATE_COLUMN)
    process_ap.add_argument("--time-column", default=Config.TIME_COLUMN)
    process_ap.add_argument("--parallel", action="store_true", default=Config.RAY_ENABLED,
                            help="Fan large batches out to Ray workers")

    parse_ap = subparsers.add_parser("parse", parents=[common], help="Normalize a single date/time")
    parse_ap.add_argument("date", help="Date text, e.g. 01JAN2020 or UNUNK2020")
    parse_ap.add_argument("time", nargs="?", default=None, help="Optional time text, e.g. 9:05")

    subparsers.add_parser("config", help="Show the configuration loaded from the environment")

    return ap


def main(argv: Optional[List[str]] = None):
    """Main entry point for CLI"""
    args = build_parser().parse_args(argv)

    try:
        Config.validate_settings()
    except ParameterError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if args.command == "process":
        Config.ensure_directories()
        sys.exit(0 if run_process(args) else 1)
    elif args.command == "parse":
        sys.exit(0 if run_parse(args) else 1)
    elif args.command == "config":
        Config.print_config_summary()
        return

    interactive_loop(args.rule, args.warn, args.missing_time_allowed)


if __name__ == '__main__':
    main()
