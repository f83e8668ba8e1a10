#!/usr/bin/env python3
"""
Command-line interface for the LOMAC variance-ratio framework.
"""

import argparse
import json
import logging
import sqlite3
import sys
from contextlib import closing
from pathlib import Path
from typing import Optional

from .analysis.efficiency_analyzer import EfficiencyTestResults, RandomWalkAnalyzer, save_results
from .config import (
    VarianceRatioConfig,
    load_config_from_file,
    save_config_to_file,
)
from .data.price_sources import PriceSource, SqlitePriceSource, load_csv_price_source
from .utils.exceptions import VarianceRatioError


def main(argv: Optional[list] = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="LOMAC: Lo-MacKinlay variance-ratio tests on weekly index series",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Wednesday variance ratios from a CSV of daily levels
  lomac run --csv levels.csv --first-date 1962-09-05 --last-date 1985-12-31

  # S&P 500 from FRED at horizons 2, 4 and 8, saved as JSON
  lomac run --fred-series SP500 --first-date 2015-01-01 --last-date 2024-12-31 \\
      --horizons 2 4 8 --output results/sp500.json

  # Generate configuration template
  lomac config create --output vr_config.json
        """
    )

    # Global arguments
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument("--quiet", "-q", action="store_true", help="Suppress output except errors")
    parser.add_argument("--log-file", help="Log file path")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Variance ratio run
    run_parser = subparsers.add_parser("run", help="Run variance-ratio tests")
    run_parser.add_argument("--config", "-c", help="Configuration file path")
    source_group = run_parser.add_mutually_exclusive_group()
    source_group.add_argument("--csv", help="CSV file with daily index levels")
    source_group.add_argument("--sqlite", help="SQLite database with daily index levels")
    source_group.add_argument("--fred-series", help="FRED series id (needs FRED_API_KEY)")
    run_parser.add_argument("--table", help="SQLite table name")
    run_parser.add_argument("--date-column", help="Date column name")
    run_parser.add_argument("--level-column", help="Level column name")
    run_parser.add_argument("--first-date", help="Start date (YYYY-MM-DD)")
    run_parser.add_argument("--last-date", help="End date (YYYY-MM-DD)")
    run_parser.add_argument("--anchor-weekday", help="Weekday to sample (e.g. wednesday)")
    run_parser.add_argument("--horizons", type=int, nargs="+", help="Horizons q to evaluate")
    run_parser.add_argument("--output", "-o", help="Write results JSON to this path")

    # Configuration management
    config_parser = subparsers.add_parser("config", help="Configuration management")
    config_subparsers = config_parser.add_subparsers(dest="config_command", help="Configuration operations")

    create_config_parser = config_subparsers.add_parser("create", help="Create configuration template")
    create_config_parser.add_argument("--output", "-o", default="vr_config.json", help="Output file path")

    validate_config_parser = config_subparsers.add_parser("validate", help="Validate configuration file")
    validate_config_parser.add_argument("config_file", help="Configuration file to validate")

    show_config_parser = config_subparsers.add_parser("show", help="Show current configuration")
    show_config_parser.add_argument("--config", "-c", help="Configuration file path")
    show_config_parser.add_argument("--format", choices=["json", "table"], default="table",
                                    help="Output format")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args)

    try:
        if args.command == "run":
            return run_variance_ratio(args)
        elif args.command == "config":
            return handle_config_command(args)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130

    return 0


def setup_logging(args):
    """Setup logging configuration."""
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.ERROR
    else:
        level = logging.INFO

    # Configure logging
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    if hasattr(args, 'log_file') and args.log_file:
        logging.basicConfig(
            level=level,
            format=log_format,
            handlers=[
                logging.FileHandler(args.log_file),
                logging.StreamHandler(sys.stdout)
            ]
        )
    else:
        logging.basicConfig(level=level, format=log_format)


def handle_config_command(args):
    """Handle configuration management commands."""
    if args.config_command == "create":
        return create_config_template(args)
    elif args.config_command == "validate":
        return validate_config_file(args)
    elif args.config_command == "show":
        return show_config(args)
    else:
        print("Unknown config command", file=sys.stderr)
        return 1


def build_run_config(args) -> VarianceRatioConfig:
    """Load the configuration file (if any) and apply command line overrides."""
    config = load_config_from_file(args.config) if args.config else VarianceRatioConfig()

    if args.csv:
        config.source_type, config.csv_path = "csv", args.csv
    elif args.sqlite:
        config.source_type, config.sqlite_path = "sqlite", args.sqlite
    elif args.fred_series:
        config.source_type, config.fred_series_id = "fred", args.fred_series

    overrides = {
        "sqlite_table": args.table,
        "date_column": args.date_column,
        "level_column": args.level_column,
        "first_date": args.first_date,
        "last_date": args.last_date,
        "anchor_weekday": args.anchor_weekday,
        "horizons": args.horizons,
    }
    for key, value in overrides.items():
        if value is not None:
            setattr(config, key, value)

    return config


def run_variance_ratio(args):
    """Run the variance-ratio pipeline on the configured price source."""
    try:
        config = build_run_config(args)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    errors = config.validate()
    if errors:
        for error in errors:
            print(f"  ERROR: {error}", file=sys.stderr)
        return 1

    analyzer = RandomWalkAnalyzer(config)

    try:
        if config.source_type == "sqlite":
            with closing(sqlite3.connect(config.sqlite_path)) as conn:
                source = SqlitePriceSource(conn, config.sqlite_table,
                                           config.date_column, config.level_column)
                results = analyzer.run(source)
        else:
            results = analyzer.run(open_price_source(config))
    except VarianceRatioError as e:
        logging.error(f"Variance-ratio run failed: {e}")
        print(f"Error ({type(e).__name__}): {e}", file=sys.stderr)
        return 1
    except (OSError, ValueError, sqlite3.Error) as e:
        logging.error(f"Could not read price source: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print_results_table(results, config)

    if args.output:
        save_results(results, Path(args.output))
        print(f"\nResults saved to: {args.output}")

    return 0


def open_price_source(config: VarianceRatioConfig) -> PriceSource:
    """Build a CSV or FRED price source from configuration."""
    if config.source_type == "csv":
        return load_csv_price_source(config.csv_path, config.date_column, config.level_column)

    from .data.collectors.fred_collector import FREDCollector
    collector = FREDCollector()
    return collector.fetch_price_source(config.fred_series_id, config.first_date, config.last_date)


def print_results_table(results: EfficiencyTestResults, config: VarianceRatioConfig):
    """Print variance-ratio results."""
    period = results.data_period
    print(f"\nWeekly observations: {len(results.weekly_series)} "
          f"({period['start']} to {period['end']})")
    print(f"{'q':>4}{'n':>8}{'VR(q)':>10}{'z*(q)':>10}{'p-value':>10}{'z(q)':>10}")
    print("-" * 52)
    for r in results.variance_ratios:
        marker = " *" if r.rejects_random_walk(config.significance_level) else ""
        print(f"{r.q:>4}{r.n:>8}{r.variance_ratio:>10.4f}{r.z_statistic:>10.3f}"
              f"{r.p_value:>10.4f}{r.z_homoskedastic:>10.3f}{marker}")

    if results.ljung_box is not None:
        print("\nLjung-Box")
        for lag, row in results.ljung_box.iterrows():
            print(f"  lag {int(lag):>3}: Q = {row['lb_stat']:.3f}, p = {row['lb_pvalue']:.4f}")


def create_config_template(args):
    """Create configuration template."""
    output_file = Path(args.output)
    save_config_to_file(VarianceRatioConfig(), str(output_file))
    print(f"Configuration template created: {output_file}")
    return 0


def validate_config_file(args):
    """Validate configuration file."""
    config_file = Path(args.config_file)

    if not config_file.exists():
        print(f"Configuration file not found: {config_file}", file=sys.stderr)
        return 1

    try:
        config = load_config_from_file(str(config_file))
    except json.JSONDecodeError as e:
        print(f"Invalid JSON in configuration file: {e}", file=sys.stderr)
        return 1
    except (TypeError, ValueError) as e:
        print(f"Error validating configuration: {e}", file=sys.stderr)
        return 1

    errors = config.validate()
    if errors:
        print("Configuration validation FAILED:")
        for error in errors:
            print(f"  ERROR: {error}")
        return 1

    print("Configuration validation PASSED")
    return 0


def show_config(args):
    """Show current configuration."""
    try:
        config = load_config_from_file(args.config) if args.config else VarianceRatioConfig()
    except (OSError, TypeError, ValueError) as e:
        print(f"Error showing configuration: {e}", file=sys.stderr)
        return 1

    config_dict = config.to_dict()

    if args.format == "json":
        print(json.dumps(config_dict, indent=2, default=str))
    else:
        print("Current Configuration:")
        print("=" * 50)
        for key, value in config_dict.items():
            print(f"{key:30} : {value}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
